import codecs
import shutil
import sys
import time
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from memopages.core.errors import MemoError
from memopages.core.slot import Slot, check_filename, same_path


class SlotTestCase(unittest.TestCase):
    def setUp(self) -> None:
        tmp_root = ROOT / "tests_tmp"
        self.tmp = tmp_root / f"slot_{time.time_ns()}"
        self.tmp.mkdir(parents=True, exist_ok=True)

    def tearDown(self) -> None:
        shutil.rmtree(self.tmp, ignore_errors=True)

    def make_slot(self, **kwargs) -> Slot:
        kwargs.setdefault("auto_encoding", False)
        return Slot(str(self.tmp), **kwargs)


class SlotSaveTests(SlotTestCase):
    def test_first_save_then_overwrite(self) -> None:
        slot = self.make_slot()
        slot.mark_unsaved()
        first = slot.save("note", "hello")
        self.assertEqual(first.error, MemoError.OK)
        self.assertEqual(first.save_count, 1)
        self.assertFalse(first.is_external_file)
        self.assertFalse(slot.unsaved)
        self.assertEqual((self.tmp / "note.txt").read_bytes(), b"hello")

        second = slot.save("note", "hello again")
        self.assertEqual(second.error, MemoError.OK)
        self.assertEqual(second.save_count, 2)
        self.assertEqual((self.tmp / "note.txt").read_bytes(), b"hello again")

    def test_existing_file_needs_overwrite(self) -> None:
        (self.tmp / "note.txt").write_bytes(b"old")
        slot = self.make_slot()
        refused = slot.save("note", "new")
        self.assertEqual(refused.error, MemoError.FILE_EXISTS)
        self.assertEqual(refused.save_count, 0)
        self.assertIsNone(slot.save_path)
        self.assertEqual((self.tmp / "note.txt").read_bytes(), b"old")

        forced = slot.save("note", "new", overwrite=True)
        self.assertEqual(forced.error, MemoError.OK)
        self.assertEqual(forced.save_count, 1)
        self.assertEqual((self.tmp / "note.txt").read_bytes(), b"new")

    def test_renaming_restarts_save_count(self) -> None:
        slot = self.make_slot()
        slot.save("first", "a")
        slot.save("first", "b")
        renamed = slot.save("second", "c")
        self.assertEqual(renamed.save_count, 1)
        self.assertEqual(slot.filename, "second.txt")

    def test_filename_checks(self) -> None:
        slot = self.make_slot()
        self.assertEqual(slot.save("", "text").error, MemoError.NO_FILENAME)
        self.assertEqual(slot.save(None, "text").error, MemoError.NO_FILENAME)
        for name in ("a/b", "a\\b", "a:b", "a*b", "a?b", 'a"b', "a<b", "a>b", "a|b", "line\nbreak|"):
            with self.subTest(name=name):
                self.assertEqual(slot.save(name, "text").error, MemoError.INVALID_FILENAME)
        self.assertEqual(check_filename("memo 2024-01-01"), MemoError.OK)
        self.assertEqual(list(self.tmp.iterdir()), [])

    def test_missing_directory(self) -> None:
        slot = Slot(str(self.tmp / "missing"))
        self.assertEqual(slot.save("note", "text").error, MemoError.DIRECTORY_NOT_FOUND)

    def test_locked_slot_refuses_save_and_clear(self) -> None:
        slot = self.make_slot()
        self.assertTrue(slot.toggle_lock())
        self.assertEqual(slot.save("note", "text").error, MemoError.LOCKED)
        self.assertEqual(slot.clear(), MemoError.LOCKED)
        self.assertFalse((self.tmp / "note.txt").exists())
        self.assertFalse(slot.toggle_lock())
        self.assertEqual(slot.save("note", "text").error, MemoError.OK)

    def test_encoding_restored_when_write_fails(self) -> None:
        (self.tmp / "note.txt").write_bytes(b"old")
        slot = self.make_slot()
        self.assertEqual(slot.set_encoding("SJIS"), MemoError.OK)
        self.assertEqual(slot.save("note", "text").error, MemoError.FILE_EXISTS)
        self.assertEqual(slot.encoding, "SJIS")

    def test_internal_save_uses_default_encoding(self) -> None:
        slot = self.make_slot(default_encoding="UTF16LE_BOM")
        slot.save("wide", "ab")
        self.assertEqual((self.tmp / "wide.txt").read_bytes(), codecs.BOM_UTF16_LE + b"a\x00b\x00")
        self.assertEqual(slot.file_info()["encoding"], "UTF16LE_BOM")

    def test_clear_returns_to_fresh(self) -> None:
        slot = self.make_slot()
        slot.save("note", "text")
        slot.mark_unsaved()
        self.assertEqual(slot.clear(), MemoError.OK)
        self.assertTrue(slot.is_pristine)
        self.assertEqual(slot.save_count, 0)
        self.assertIsNone(slot.filename)


class SlotLoadTests(SlotTestCase):
    def test_load_binds_external_file(self) -> None:
        path = self.tmp / "external.md"
        path.write_bytes(b"# title")
        slot = self.make_slot()
        result = slot.load(str(path))
        self.assertEqual(result.error, MemoError.OK)
        self.assertEqual(result.text, "# title")
        self.assertEqual(result.filename, "external.md")
        self.assertTrue(slot.is_external_file)
        self.assertTrue(same_path(slot.save_path, path))

        saved = slot.save("external.md", "# changed")
        self.assertEqual(saved.error, MemoError.OK)
        self.assertTrue(saved.is_external_file)
        self.assertEqual(path.read_bytes(), b"# changed")
        self.assertFalse((self.tmp / "external.md.txt").exists())

    def test_load_refuses_pending_content(self) -> None:
        path = self.tmp / "a.txt"
        path.write_bytes(b"a")
        slot = self.make_slot()
        slot.mark_unsaved()
        self.assertEqual(slot.load(str(path)).error, MemoError.CONTENT_PENDING)
        self.assertTrue(slot.unsaved)
        self.assertEqual(slot.load(str(path), overwrite=True).error, MemoError.OK)

    def test_load_missing_file(self) -> None:
        slot = self.make_slot()
        result = slot.load(str(self.tmp / "missing.txt"))
        self.assertEqual(result.error, MemoError.NOT_FOUND)
        self.assertIsNone(result.text)
        self.assertTrue(slot.is_pristine)

    def test_file_size_warning(self) -> None:
        path = self.tmp / "big.txt"
        path.write_bytes(b"0123456789")
        slot = self.make_slot(file_size_warning_bytes=4)
        self.assertEqual(slot.load(str(path)).error, MemoError.FILE_TOO_LARGE)
        self.assertTrue(slot.is_pristine)
        result = slot.load(str(path), ignore_size_check=True)
        self.assertEqual(result.error, MemoError.OK)
        self.assertEqual(result.text, "0123456789")

    def test_forced_encoding_must_be_persistable(self) -> None:
        path = self.tmp / "a.txt"
        path.write_bytes(b"a")
        slot = self.make_slot()
        for name in ("UNICODE", "LATIN1"):
            with self.subTest(encoding=name):
                self.assertEqual(slot.load(str(path), encoding=name).error, MemoError.INVALID_PARAMETER)
                self.assertTrue(slot.is_pristine)
                self.assertEqual(slot.encoding, "UTF8")

    def test_forced_encoding_decodes(self) -> None:
        path = self.tmp / "sjis.txt"
        path.write_bytes("メモ帳".encode("cp932"))
        slot = self.make_slot()
        result = slot.load(str(path), encoding="SJIS")
        self.assertEqual(result.text, "メモ帳")
        self.assertEqual(slot.encoding, "SJIS")

    def test_auto_detected_bom_is_kept_on_save(self) -> None:
        path = self.tmp / "bom.txt"
        path.write_bytes(codecs.BOM_UTF8 + "日本語のメモです。".encode("utf-8"))
        slot = self.make_slot(auto_encoding=True)
        result = slot.load(str(path))
        self.assertEqual(result.text, "日本語のメモです。")
        self.assertEqual(slot.encoding, "UTF8_BOM")
        slot.save("bom.txt", "edited")
        self.assertEqual(path.read_bytes(), codecs.BOM_UTF8 + b"edited")

    def test_auto_detects_utf16_without_bom(self) -> None:
        text = "吾輩は猫である。名前はまだ無い。どこで生れたかとんと見当がつかぬ。"
        for codec, expected in (("utf-16-le", "UTF16LE"), ("utf-16-be", "UTF16BE")):
            with self.subTest(codec=codec):
                path = self.tmp / f"{codec}.txt"
                path.write_bytes(text.encode(codec))
                slot = self.make_slot(auto_encoding=True)
                result = slot.load(str(path))
                self.assertEqual(result.error, MemoError.OK)
                self.assertEqual(result.text, text)
                self.assertEqual(slot.encoding, expected)
                slot.save(path.name, text + "\n")
                self.assertEqual(path.read_bytes(), (text + "\n").encode(codec))

    def test_undetectable_data_falls_back_to_default(self) -> None:
        path = self.tmp / "ascii.txt"
        path.write_bytes(b"plain text")
        slot = self.make_slot(default_encoding="SJIS", auto_encoding=True)
        self.assertEqual(slot.load(str(path)).error, MemoError.OK)
        self.assertEqual(slot.encoding, "SJIS")


class SlotDefaultsTests(SlotTestCase):
    def test_default_encoding_only_reaches_fresh_internal_slots(self) -> None:
        fresh = self.make_slot()
        saved = self.make_slot()
        saved.save("note", "x")
        self.assertEqual(fresh.set_default_encoding("EUCJP"), MemoError.OK)
        self.assertEqual(saved.set_default_encoding("EUCJP"), MemoError.OK)
        self.assertEqual(fresh.encoding, "EUCJP")
        self.assertEqual(saved.encoding, "UTF8")
        self.assertEqual(fresh.set_default_encoding("UNICODE"), MemoError.INVALID_PARAMETER)

    def test_default_directory_skips_external_slots(self) -> None:
        other = self.tmp / "other"
        other.mkdir()
        path = self.tmp / "ext.txt"
        path.write_bytes(b"x")
        external = self.make_slot()
        external.load(str(path))
        internal = self.make_slot()
        external.set_default_directory(str(other))
        internal.set_default_directory(str(other))
        self.assertEqual(internal.directory, str(other))
        self.assertNotEqual(external.directory, str(other))

    def test_invalid_default_encoding_rejected(self) -> None:
        with self.assertRaises(ValueError):
            Slot(str(self.tmp), default_encoding="UNICODE")


if __name__ == "__main__":
    unittest.main()
