"""Tests for requestlog/query/reader.py"""

import json
import os
import shutil
import tempfile
import unittest
from datetime import datetime, timezone

from requestlog.query.reader import (
    list_log_files,
    parse_log_file,
    parse_timestamp,
    read_all,
)


class ReaderTestCase(unittest.TestCase):
    def setUp(self):
        self.log_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.log_dir)

    def _write(self, name, lines, mtime=None):
        path = os.path.join(self.log_dir, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path


class TestListLogFiles(ReaderTestCase):
    def test_only_log_files(self):
        self._write("combined-2024-03-10.log", ["{}"])
        self._write("notes.txt", ["hello"])
        names = [os.path.basename(p) for p in list_log_files(self.log_dir)]
        self.assertEqual(names, ["combined-2024-03-10.log"])

    def test_newest_first(self):
        self._write("combined-2024-03-09.log", ["{}"], mtime=1000)
        self._write("combined-2024-03-10.log", ["{}"], mtime=2000)
        names = [os.path.basename(p) for p in list_log_files(self.log_dir)]
        self.assertEqual(names, ["combined-2024-03-10.log", "combined-2024-03-09.log"])

    def test_pattern(self):
        self._write("combined-2024-03-10.log", ["{}"])
        self._write("error-2024-03-10.log", ["{}"])
        names = [os.path.basename(p) for p in list_log_files(self.log_dir, "error-*.log")]
        self.assertEqual(names, ["error-2024-03-10.log"])

    def test_missing_dir(self):
        with self.assertRaises(FileNotFoundError):
            list_log_files(os.path.join(self.log_dir, "nope"))


class TestParseLogFile(ReaderTestCase):
    def test_malformed_line_skipped(self):
        good = [json.dumps({"level": "info", "message": f"m{i}"}) for i in range(5)]
        path = self._write("combined.log", good[:2] + ["{not json"] + good[2:])
        records = parse_log_file(path)
        self.assertEqual(len(records), 5)
        self.assertEqual([r["message"] for r in records], ["m0", "m1", "m2", "m3", "m4"])

    def test_blank_and_non_object_lines_skipped(self):
        path = self._write("combined.log", ["", "[1, 2]", "42", '{"message": "ok"}'])
        self.assertEqual(parse_log_file(path), [{"message": "ok"}])

    def test_unreadable_file(self):
        self.assertEqual(parse_log_file(os.path.join(self.log_dir, "gone.log")), [])

    def test_read_all(self):
        a = self._write("a.log", ['{"n": 1}'])
        b = self._write("b.log", ['{"n": 2}', '{"n": 3}'])
        self.assertEqual([r["n"] for r in read_all([a, b])], [1, 2, 3])


class TestParseTimestamp(unittest.TestCase):
    def test_zulu(self):
        self.assertEqual(
            parse_timestamp("2024-03-10T12:00:00.000Z"),
            datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc),
        )

    def test_naive_is_utc(self):
        self.assertEqual(parse_timestamp("2024-03-10T12:00:00").tzinfo, timezone.utc)

    def test_invalid(self):
        self.assertIsNone(parse_timestamp("yesterday"))
        self.assertIsNone(parse_timestamp(None))
        self.assertIsNone(parse_timestamp(""))


if __name__ == "__main__":
    unittest.main()
