"""Encoding table, byte-order-mark helpers, charset detection and conversion.

Text lives in memory as ``str`` (the ``UNICODE`` pseudo-encoding). Every
other table entry names a byte encoding a memo file may be stored in; the
``*_BOM`` entries share a codec with their plain variant and differ only in
the BOM policy applied after transcoding.
"""

from __future__ import annotations

import codecs
import unicodedata
from dataclasses import dataclass
from enum import Enum

import chardet

from ..logging_utils import get_logger
from .errors import UnsupportedOperation

_LOGGER = get_logger(__name__)

UNICODE = "UNICODE"
OUTPUT_STRING = "string"


class BomVariant(Enum):
    NONE = "none"
    REQUIRED = "required"
    ABSENT = "absent"
    UNSPECIFIED = "unspecified"


@dataclass(frozen=True)
class EncodingDescriptor:
    name: str
    family: str
    bom: BomVariant
    codec: str | None

    @property
    def bom_policy(self) -> bool | None:
        if self.bom is BomVariant.REQUIRED:
            return True
        if self.bom is BomVariant.ABSENT:
            return False
        return None


ENCODING_TABLE: dict[str, EncodingDescriptor] = {
    entry.name: entry
    for entry in (
        EncodingDescriptor("UTF8", "UTF8", BomVariant.ABSENT, "utf-8"),
        EncodingDescriptor("UTF8_BOM", "UTF8", BomVariant.REQUIRED, "utf-8"),
        EncodingDescriptor("SJIS", "SJIS", BomVariant.NONE, "cp932"),
        EncodingDescriptor("JIS", "JIS", BomVariant.NONE, "iso2022_jp"),
        EncodingDescriptor("EUCJP", "EUCJP", BomVariant.NONE, "euc_jp"),
        # Big-endian without BOM unless a BOM says otherwise on read.
        EncodingDescriptor("UTF16", "UTF16", BomVariant.UNSPECIFIED, "utf-16-be"),
        EncodingDescriptor("UTF16BE", "UTF16BE", BomVariant.ABSENT, "utf-16-be"),
        EncodingDescriptor("UTF16LE", "UTF16LE", BomVariant.ABSENT, "utf-16-le"),
        EncodingDescriptor("UTF16BE_BOM", "UTF16BE", BomVariant.REQUIRED, "utf-16-be"),
        EncodingDescriptor("UTF16LE_BOM", "UTF16LE", BomVariant.REQUIRED, "utf-16-le"),
        EncodingDescriptor(UNICODE, UNICODE, BomVariant.NONE, None),
    )
}

# Offered in encoding pickers; UTF16 stays valid but is only produced by detection.
SELECTABLE_ENCODINGS = (
    "UTF8",
    "UTF8_BOM",
    "SJIS",
    "EUCJP",
    "JIS",
    "UTF16BE",
    "UTF16LE",
    "UTF16BE_BOM",
    "UTF16LE_BOM",
)

_BOM_SIGNATURES = (
    ("UTF8", codecs.BOM_UTF8),
    ("UTF16BE", codecs.BOM_UTF16_BE),
    ("UTF16LE", codecs.BOM_UTF16_LE),
)
_BOM_BY_FAMILY = dict(_BOM_SIGNATURES)
_UNICODE_FAMILIES = {"UTF8", "UTF16", "UTF16BE", "UTF16LE"}

_CHARDET_NAMES = {
    "utf-8": "UTF8",
    "utf-8-sig": "UTF8",
    "shift_jis": "SJIS",
    "cp932": "SJIS",
    "euc-jp": "EUCJP",
    "iso-2022-jp": "JIS",
    "utf-16": "UTF16",
    "utf-16be": "UTF16BE",
    "utf-16le": "UTF16LE",
    "utf-16-be": "UTF16BE",
    "utf-16-le": "UTF16LE",
}

_WITH_BOM = {"UTF8": "UTF8_BOM", "UTF16BE": "UTF16BE_BOM", "UTF16LE": "UTF16LE_BOM"}

_PROBE_SAMPLE_BYTES = 4096
_UTF16_MIN_TEXT_RATIO = 0.3


@dataclass(frozen=True)
class DetectedCharset:
    name: str
    bom: bool | None = None
    confidence: float = 0.0

    @property
    def table_key(self) -> str:
        """Table entry to record for the detected data, BOM variant included."""
        if self.bom:
            return _WITH_BOM.get(self.name, self.name)
        return self.name


def get_descriptor(name: str) -> EncodingDescriptor:
    try:
        return ENCODING_TABLE[name]
    except KeyError:
        raise KeyError(f"unknown encoding: {name!r}") from None


def is_known_encoding(name: object) -> bool:
    return isinstance(name, str) and name in ENCODING_TABLE


def is_persistable_encoding(name: object) -> bool:
    return is_known_encoding(name) and name != UNICODE


def persistable_encoding_names() -> tuple[str, ...]:
    return SELECTABLE_ENCODINGS


def _as_bytes(data) -> bytes:
    if isinstance(data, str):
        raise TypeError("BOM helpers operate on encoded bytes, not str")
    return bytes(data)


def detect_bom(data) -> str | None:
    raw = _as_bytes(data)
    for family, signature in _BOM_SIGNATURES:
        if raw.startswith(signature):
            return family
    return None


def add_bom(data, encoding: str) -> bytes:
    raw = _as_bytes(data)
    family = ENCODING_TABLE[encoding].family if encoding in ENCODING_TABLE else encoding
    signature = _BOM_BY_FAMILY.get(family)
    if signature is None or detect_bom(raw) is not None:
        return raw
    return signature + raw


def remove_bom(data) -> bytes:
    raw = _as_bytes(data)
    found = detect_bom(raw)
    if found is None:
        return raw
    return raw[len(_BOM_BY_FAMILY[found]) :]


def _utf16_text_score(text: str) -> int | None:
    """Count characters typical of memo text; ``None`` when the text cannot be real."""
    score = 0
    for char in text:
        code = ord(char)
        if char in "\t\r\n" or 0x20 <= code < 0x7F:
            score += 1
            continue
        if unicodedata.category(char) in ("Cc", "Cn", "Co", "Cs"):
            return None
        # CJK punctuation, kana and full-width forms.
        if 0x3000 <= code <= 0x30FF or 0xFF00 <= code <= 0xFFEF:
            score += 1
    return score


def guess_utf16_without_bom(data) -> str | None:
    """Pick UTF16BE or UTF16LE for BOM-less data, or ``None`` when neither reads as text.

    Each byte order is decoded strictly over a leading sample; a candidate is
    dropped on a decode error (unpaired surrogates included) or on control,
    private-use or unassigned characters. The survivor with more kana, CJK
    punctuation and ASCII wins, big-endian on a tie.
    """
    raw = _as_bytes(data)
    if len(raw) < 2 or len(raw) % 2 or detect_bom(raw) is not None:
        return None
    sample = raw[:_PROBE_SAMPLE_BYTES]
    best_name, best_score = None, 0
    for name in ("UTF16BE", "UTF16LE"):
        decoder = codecs.getincrementaldecoder(ENCODING_TABLE[name].codec)("strict")
        try:
            text = decoder.decode(sample, final=len(sample) == len(raw))
        except UnicodeDecodeError:
            continue
        score = _utf16_text_score(text)
        if score is None or not text:
            continue
        if score > best_score and score >= len(text) * _UTF16_MIN_TEXT_RATIO:
            best_name, best_score = name, score
    return best_name


def probe_utf16_endianness(data) -> str:
    """Pick UTF16BE or UTF16LE for 16-bit data, preferring big-endian on a tie."""
    raw = _as_bytes(data)
    found = detect_bom(raw)
    if found in ("UTF16BE", "UTF16LE"):
        return found
    sample = raw[:_PROBE_SAMPLE_BYTES]
    even_zeros = sample[0::2].count(0)
    odd_zeros = sample[1::2].count(0)
    if even_zeros != odd_zeros:
        return "UTF16LE" if odd_zeros > even_zeros else "UTF16BE"
    return guess_utf16_without_bom(raw) or "UTF16BE"


def detect_charset(data, fallback: str) -> DetectedCharset:
    raw = _as_bytes(data)
    result = chardet.detect(raw)
    reported = str(result.get("encoding") or "").strip().lower()
    confidence = float(result.get("confidence") or 0.0)
    name = _CHARDET_NAMES.get(reported)
    if name is None:
        # chardet has no model for BOM-less 16-bit text without zero bytes (kana, kanji).
        name = guess_utf16_without_bom(raw)
        if name is None:
            _LOGGER.debug(
                "detect_charset unsupported result=%s confidence=%.2f fallback=%s",
                reported or None,
                confidence,
                fallback,
            )
            return DetectedCharset(fallback, None, confidence)
        _LOGGER.debug("detect_charset utf-16 guess name=%s chardet=%s", name, reported or None)
    if name == "UTF16":
        name = probe_utf16_endianness(raw)
    bom = None
    if name in _UNICODE_FAMILIES:
        bom = detect_bom(raw) is not None
    _LOGGER.debug("detect_charset result=%s name=%s bom=%s confidence=%.2f", reported, name, bom, confidence)
    return DetectedCharset(name, bom, confidence)


def _decode(data, source: EncodingDescriptor) -> str:
    if isinstance(data, str):
        if source.name != UNICODE:
            raise TypeError(f"str input must be converted from {UNICODE}, not {source.name}")
        return data
    if source.name == UNICODE:
        raise TypeError(f"bytes input cannot be converted from {UNICODE}")
    raw = bytes(data)
    codec = source.codec
    found = detect_bom(raw)
    if found is not None and source.family in _UNICODE_FAMILIES:
        if source.family == "UTF16" and found != "UTF8":
            codec = ENCODING_TABLE[found].codec
            raw = remove_bom(raw)
        elif found == source.family:
            raw = remove_bom(raw)
    return raw.decode(codec, errors="replace")


def convert(data, *, to: str, from_: str, bom: bool | None = None, output: str = OUTPUT_STRING):
    """Transcode ``data`` between two table entries.

    ``str`` data is read as ``UNICODE``; bytes data as ``from_``. Converting
    into ``UNICODE`` yields ``str``, anything else yields the encoded bytes
    with ``bom`` applied: ``True`` ensures a BOM, ``False`` strips it and
    ``None`` leaves the output untouched.
    """
    if output != OUTPUT_STRING:
        raise UnsupportedOperation(f"convert() only supports output={OUTPUT_STRING!r}, got {output!r}")
    target = get_descriptor(to)
    source = get_descriptor(from_)
    text = _decode(data, source)
    if target.name == UNICODE:
        return text
    encoded = text.encode(target.codec, errors="replace")
    if bom is True:
        encoded = add_bom(encoded, target.family)
    elif bom is False:
        encoded = remove_bom(encoded)
    return encoded
