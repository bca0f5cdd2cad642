import codecs
import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from memopages.core import encoding as enc
from memopages.core.errors import UnsupportedOperation

JAPANESE = "吾輩は猫である。名前はまだ無い。どこで生れたかとんと見当がつかぬ。"


class BomHelperTests(unittest.TestCase):
    def test_detect_bom_per_signature(self) -> None:
        self.assertEqual(enc.detect_bom(codecs.BOM_UTF8 + b"abc"), "UTF8")
        self.assertEqual(enc.detect_bom(codecs.BOM_UTF16_BE + b"\x00a"), "UTF16BE")
        self.assertEqual(enc.detect_bom(codecs.BOM_UTF16_LE + b"a\x00"), "UTF16LE")
        self.assertIsNone(enc.detect_bom(b"abc"))
        self.assertIsNone(enc.detect_bom(b""))

    def test_add_bom_is_idempotent(self) -> None:
        once = enc.add_bom(b"abc", "UTF8")
        self.assertEqual(once, codecs.BOM_UTF8 + b"abc")
        self.assertEqual(enc.add_bom(once, "UTF8"), once)
        self.assertEqual(enc.add_bom(b"\x00a", "UTF16BE_BOM"), codecs.BOM_UTF16_BE + b"\x00a")

    def test_add_then_remove_round_trip(self) -> None:
        raw = b"\x00m\x00e"
        for name in ("UTF8", "UTF8_BOM", "UTF16BE", "UTF16LE", "UTF16BE_BOM", "UTF16LE_BOM"):
            with self.subTest(encoding=name):
                added = enc.add_bom(raw, name)
                self.assertNotEqual(added, raw)
                self.assertEqual(enc.remove_bom(added), raw)
                self.assertEqual(enc.add_bom(added, name), added)

    def test_add_bom_ignores_families_without_bom(self) -> None:
        self.assertEqual(enc.add_bom(b"abc", "SJIS"), b"abc")

    def test_remove_bom(self) -> None:
        self.assertEqual(enc.remove_bom(codecs.BOM_UTF8 + b"abc"), b"abc")
        self.assertEqual(enc.remove_bom(codecs.BOM_UTF16_LE + b"a\x00"), b"a\x00")
        self.assertEqual(enc.remove_bom(b"abc"), b"abc")

    def test_helpers_reject_str(self) -> None:
        with self.assertRaises(TypeError):
            enc.detect_bom("abc")
        with self.assertRaises(TypeError):
            enc.add_bom("abc", "UTF8")
        with self.assertRaises(TypeError):
            enc.remove_bom("abc")

    def test_probe_utf16_endianness(self) -> None:
        self.assertEqual(enc.probe_utf16_endianness("memo".encode("utf-16-be")), "UTF16BE")
        self.assertEqual(enc.probe_utf16_endianness("memo".encode("utf-16-le")), "UTF16LE")
        self.assertEqual(enc.probe_utf16_endianness(codecs.BOM_UTF16_LE + "memo".encode("utf-16-le")), "UTF16LE")
        self.assertEqual(enc.probe_utf16_endianness(codecs.BOM_UTF16_BE + "memo".encode("utf-16-be")), "UTF16BE")
        # No zero bytes either way: big-endian wins the tie.
        self.assertEqual(enc.probe_utf16_endianness(JAPANESE.encode("utf-16-le")[:2]), "UTF16BE")


class DetectCharsetTests(unittest.TestCase):
    def test_utf8_with_bom(self) -> None:
        found = enc.detect_charset(codecs.BOM_UTF8 + "hello memo".encode("utf-8"), "SJIS")
        self.assertEqual(found.name, "UTF8")
        self.assertTrue(found.bom)
        self.assertEqual(found.table_key, "UTF8_BOM")

    def test_utf16_with_bom(self) -> None:
        little = enc.detect_charset(codecs.BOM_UTF16_LE + JAPANESE.encode("utf-16-le"), "UTF8")
        self.assertEqual(little.table_key, "UTF16LE_BOM")
        big = enc.detect_charset(codecs.BOM_UTF16_BE + JAPANESE.encode("utf-16-be"), "UTF8")
        self.assertEqual(big.table_key, "UTF16BE_BOM")

    def test_iso2022jp(self) -> None:
        found = enc.detect_charset(JAPANESE.encode("iso2022_jp"), "UTF8")
        self.assertEqual(found.name, "JIS")
        self.assertIsNone(found.bom)
        self.assertEqual(found.table_key, "JIS")

    def test_utf8_without_bom(self) -> None:
        found = enc.detect_charset((JAPANESE * 4).encode("utf-8"), "SJIS")
        self.assertEqual(found.name, "UTF8")
        self.assertFalse(found.bom)
        self.assertEqual(found.table_key, "UTF8")

    def test_utf16_without_bom_in_both_byte_orders(self) -> None:
        for codec, expected in (("utf-16-be", "UTF16BE"), ("utf-16-le", "UTF16LE")):
            with self.subTest(codec=codec):
                found = enc.detect_charset(JAPANESE.encode(codec), "UTF8")
                self.assertEqual(found.name, expected)
                self.assertFalse(found.bom)
                self.assertEqual(found.table_key, expected)

    def test_utf16_guess_rejects_non_utf16_data(self) -> None:
        self.assertIsNone(enc.guess_utf16_without_bom(b"plain ascii memo"))
        self.assertIsNone(enc.guess_utf16_without_bom(JAPANESE.encode("utf-16-le")[:-1]))
        self.assertIsNone(enc.guess_utf16_without_bom(codecs.BOM_UTF16_LE + JAPANESE.encode("utf-16-le")))
        # A lone high surrogate cannot be UTF-16 text in either byte order.
        self.assertIsNone(enc.guess_utf16_without_bom(b"\xd8\x00\x00\xd8"))

    def test_endianness_tie_uses_text_guess(self) -> None:
        self.assertEqual(enc.probe_utf16_endianness(JAPANESE.encode("utf-16-le")), "UTF16LE")
        self.assertEqual(enc.probe_utf16_endianness(JAPANESE.encode("utf-16-be")), "UTF16BE")

    def test_empty_and_ascii_fall_back(self) -> None:
        self.assertEqual(enc.detect_charset(b"", "EUCJP").name, "EUCJP")
        self.assertEqual(enc.detect_charset(b"plain ascii memo", "SJIS").name, "SJIS")


class ConvertTests(unittest.TestCase):
    def test_round_trip_for_persistable_encodings(self) -> None:
        text = "Memo 123\nsecond line"
        for name in enc.ENCODING_TABLE:
            if name == enc.UNICODE:
                continue
            with self.subTest(encoding=name):
                encoded = enc.convert(text, to=name, from_=enc.UNICODE, bom=enc.get_descriptor(name).bom_policy)
                self.assertIsInstance(encoded, bytes)
                self.assertEqual(enc.convert(encoded, to=enc.UNICODE, from_=name), text)

    def test_bom_policy_on_output(self) -> None:
        with_bom = enc.convert("a", to="UTF8_BOM", from_=enc.UNICODE, bom=True)
        self.assertEqual(with_bom, codecs.BOM_UTF8 + b"a")
        self.assertEqual(enc.convert("a", to="UTF16LE", from_=enc.UNICODE, bom=False), b"a\x00")
        self.assertEqual(enc.convert("a", to="UTF8", from_=enc.UNICODE), b"a")

    def test_decode_strips_source_bom(self) -> None:
        raw = codecs.BOM_UTF16_LE + "memo".encode("utf-16-le")
        self.assertEqual(enc.convert(raw, to=enc.UNICODE, from_="UTF16LE_BOM"), "memo")
        self.assertEqual(enc.convert(raw, to=enc.UNICODE, from_="UTF16"), "memo")

    def test_byte_to_byte_transcoding(self) -> None:
        sjis = JAPANESE.encode("cp932")
        self.assertEqual(enc.convert(sjis, to="EUCJP", from_="SJIS"), JAPANESE.encode("euc_jp"))

    def test_undecodable_bytes_are_replaced(self) -> None:
        self.assertEqual(enc.convert(b"a\xffb", to=enc.UNICODE, from_="UTF8"), "a�b")

    def test_only_string_output_is_supported(self) -> None:
        with self.assertRaises(UnsupportedOperation):
            enc.convert("a", to="UTF8", from_=enc.UNICODE, output="array")

    def test_input_type_must_match_source(self) -> None:
        with self.assertRaises(TypeError):
            enc.convert("a", to="UTF8", from_="SJIS")
        with self.assertRaises(TypeError):
            enc.convert(b"a", to="UTF8", from_=enc.UNICODE)

    def test_unknown_encoding(self) -> None:
        with self.assertRaises(KeyError):
            enc.convert("a", to="LATIN1", from_=enc.UNICODE)
        self.assertFalse(enc.is_persistable_encoding(enc.UNICODE))
        self.assertFalse(enc.is_persistable_encoding(None))
        self.assertTrue(enc.is_persistable_encoding("UTF16"))
        self.assertNotIn("UTF16", enc.persistable_encoding_names())
        self.assertTrue(all(enc.is_persistable_encoding(name) for name in enc.persistable_encoding_names()))


if __name__ == "__main__":
    unittest.main()
