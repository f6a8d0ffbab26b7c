#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import json
import os
import stat
import sys
import tempfile
import unittest

from pageshare.document import PageFormatError, default_page
from pageshare.storage import RuntimeLog, export_page, import_page, load_config


class PageStorageTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = self._tmp.name

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _path(self, name: str) -> str:
        return os.path.join(self.root, name)

    def test_export_import_roundtrip(self) -> None:
        page = default_page()
        page.profile["bio"] = "Привет 🎉"
        path = self._path("sub/bio-page-data.json")
        export_page(path, page)
        self.assertFalse(os.path.exists(path + ".tmp"))
        with open(path, "r", encoding="utf-8") as f:
            raw = f.read()
        # Pretty-printed with the editor's camelCase keys, non-ASCII kept as-is.
        self.assertIn('\n  "seoConfig": {', raw)
        self.assertIn("Привет 🎉", raw)
        self.assertEqual(import_page(path).to_json_obj(), page.to_json_obj())

    def test_import_rejects_invalid_json(self) -> None:
        path = self._path("broken.json")
        with open(path, "w", encoding="utf-8") as f:
            f.write("{not json")
        with self.assertRaises(PageFormatError):
            import_page(path)

    def test_import_rejects_wrong_shape(self) -> None:
        path = self._path("shape.json")
        with open(path, "w", encoding="utf-8") as f:
            json.dump({"profile": {}, "blocks": []}, f)
        with self.assertRaises(PageFormatError):
            import_page(path)

    def test_import_rejects_deeply_nested_json(self) -> None:
        path = self._path("deep.json")
        with open(path, "w", encoding="utf-8") as f:
            f.write("[" * 100000 + "]" * 100000)
        with self.assertRaises(PageFormatError):
            import_page(path)

    @unittest.skipIf(sys.platform.startswith("win"), "POSIX permissions")
    def test_export_and_log_leave_parent_mode_alone(self) -> None:
        shared = self._path("shared")
        os.makedirs(shared)
        os.chmod(shared, 0o1777)
        export_page(os.path.join(shared, "page.json"), default_page())
        self.assertEqual(stat.S_IMODE(os.stat(shared).st_mode), 0o1777)
        RuntimeLog(os.path.join(shared, "runtime.log")).append("hello")
        self.assertEqual(stat.S_IMODE(os.stat(shared).st_mode), 0o1777)
        self.assertEqual(stat.S_IMODE(os.stat(os.path.join(shared, "page.json")).st_mode), 0o600)
        os.chmod(shared, 0o700)

    def test_export_failure_removes_tmp_file(self) -> None:
        page = default_page()
        page.profile["avatar"] = object()
        path = self._path("page.json")
        with self.assertRaises(TypeError):
            export_page(path, page)
        self.assertFalse(os.path.exists(path + ".tmp"))
        self.assertFalse(os.path.exists(path))

    def test_import_missing_file(self) -> None:
        with self.assertRaises(OSError):
            import_page(self._path("missing.json"))

    def test_load_config(self) -> None:
        self.assertEqual(load_config(None), {})
        self.assertEqual(load_config(self._path("missing.json")), {})
        path = self._path("cfg.json")
        with open(path, "w", encoding="utf-8") as f:
            json.dump({"base_url": "https://bio.example/"}, f)
        self.assertEqual(load_config(path), {"base_url": "https://bio.example/"})
        with open(path, "w", encoding="utf-8") as f:
            f.write("[1, 2]")
        self.assertEqual(load_config(path), {})
        with open(path, "w", encoding="utf-8") as f:
            f.write("{oops")
        self.assertEqual(load_config(path), {})

    def test_runtime_log_appends_timestamped_lines(self) -> None:
        path = self._path("logs/runtime.log")
        log = RuntimeLog(path)
        self.assertTrue(log.enabled)
        log.append("ENCODE: chars=3 token=4")
        log.append("")
        log.append("DECODE: token=4 chars=3")
        with open(path, "r", encoding="utf-8") as f:
            lines = f.read().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertRegex(lines[0], r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} ENCODE: chars=3 token=4$")
        self.assertTrue(lines[1].endswith("DECODE: token=4 chars=3"))
        log.clear()
        with open(path, "r", encoding="utf-8") as f:
            self.assertEqual(f.read(), "")

    def test_runtime_log_disabled(self) -> None:
        log = RuntimeLog(None)
        self.assertFalse(log.enabled)
        log.append("ignored")
        log.clear()
        self.assertEqual(os.listdir(self.root), [])

    def test_runtime_log_ignores_write_errors(self) -> None:
        # A directory in place of the log file makes open() fail.
        path = self._path("as_dir")
        os.makedirs(path)
        log = RuntimeLog(path)
        log.append("still fine")
        self.assertTrue(os.path.isdir(path))


if __name__ == "__main__":
    unittest.main()
