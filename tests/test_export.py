"""Multi-root export orchestration and output writing."""

from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path
from typing import List

from filetree_export.core import (
    IGNORE_FILE_NAME,
    InvalidOutputNameError,
    OutputError,
    WalkEvent,
    export_roots,
    validate_output_name,
    write_output,
)


class ExportRootsTests(unittest.TestCase):
    def test_single_root_has_no_banner(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp) / "A"
            root.mkdir()
            (root / "a.txt").write_text("", encoding="utf-8")

            result = export_roots([root], create_ignore=False)

            self.assertEqual(result.text, "a.txt")
            self.assertEqual(result.failed, [])

    def test_multiple_roots_get_banners_in_order(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            a = Path(tmp) / "A"
            b = Path(tmp) / "B"
            a.mkdir()
            b.mkdir()
            (a / "a.txt").write_text("", encoding="utf-8")
            (b / "b.txt").write_text("", encoding="utf-8")

            result = export_roots([a, b], create_ignore=False)

            self.assertEqual(
                result.text,
                "\n=== Root: A ===\na.txt\n\n=== Root: B ===\nb.txt",
            )
            self.assertEqual([r.name for r in result.roots], ["A", "B"])

    def test_failing_root_is_annotated_and_others_continue(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            a = Path(tmp) / "A"
            a.mkdir()
            (a / "a.txt").write_text("", encoding="utf-8")
            missing = Path(tmp) / "missing"
            events: List[WalkEvent] = []

            result = export_roots([missing, a], create_ignore=False, observer=events.append)

            sections = result.text.split("\n=== Root: ")
            self.assertEqual(sections[0], "")
            self.assertTrue(sections[1].startswith("missing ===\n[Error: Failed to read directory "))
            self.assertEqual(sections[2], "A ===\na.txt")
            self.assertEqual([r.root for r in result.failed], [missing])
            self.assertIn("root_failed", [e.kind for e in events])
            self.assertIn("root_done", [e.kind for e in events])

    def test_single_failing_root_has_bare_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            missing = Path(tmp) / "missing"
            result = export_roots([missing], create_ignore=False)
            self.assertTrue(result.text.startswith("[Error: Failed to read directory "))
            self.assertTrue(result.text.endswith("]"))

    def test_bootstrap_failure_fails_only_that_root(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            missing = Path(tmp) / "missing"
            result = export_roots([missing])
            self.assertEqual(len(result.failed), 1)
            self.assertTrue(result.failed[0].error.startswith("Failed to create .filetreeignore"))

    def test_bootstrapped_defaults_are_applied(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "node_modules").mkdir()
            (root / "node_modules" / "x.js").write_text("", encoding="utf-8")
            (root / "main.py").write_text("", encoding="utf-8")

            result = export_roots([root])

            self.assertTrue((root / IGNORE_FILE_NAME).exists())
            self.assertEqual(
                sorted(result.text.split("\n")),
                sorted([IGNORE_FILE_NAME, "main.py"]),
            )

    def test_gitignore_is_opt_in(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / ".gitignore").write_text("*.pyc\nbuild/\n", encoding="utf-8")
            (root / "x.py").write_text("", encoding="utf-8")
            (root / "x.pyc").write_text("", encoding="utf-8")
            (root / "build").mkdir()
            (root / "build" / "out.txt").write_text("", encoding="utf-8")

            plain = export_roots([root], create_ignore=False)
            filtered = export_roots([root], create_ignore=False, use_gitignore=True)

            self.assertIn("x.pyc", plain.text.split("\n"))
            self.assertEqual(
                sorted(filtered.text.split("\n")),
                sorted([".gitignore", "x.py"]),
            )

    def test_bad_gitignore_does_not_stop_other_roots(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            a = Path(tmp) / "A"
            b = Path(tmp) / "B"
            a.mkdir()
            b.mkdir()
            (a / ".gitignore").write_bytes(b"\xff\xfe bad")
            (a / "a.txt").write_text("", encoding="utf-8")
            (b / "b.txt").write_text("", encoding="utf-8")

            result = export_roots([a, b], create_ignore=False, use_gitignore=True)

            self.assertEqual(result.failed, [])
            sections = result.text.split("\n=== Root: ")
            self.assertEqual(sorted(sections[1].split("\n")[1:]), ["", ".gitignore", "a.txt"])
            self.assertEqual(sections[2], "B ===\nb.txt")

    def test_repeated_export_is_identical(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "pkg").mkdir()
            (root / "pkg" / "mod.py").write_text("", encoding="utf-8")
            (root / "setup.cfg").write_text("", encoding="utf-8")

            first = export_roots([root])
            second = export_roots([root])

            self.assertEqual(first.text, second.text)


class OutputTests(unittest.TestCase):
    def test_write_output(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            out_path = write_output("a\n  b", Path(tmp), "tree.txt")
            self.assertEqual(out_path, (Path(tmp) / "tree.txt").resolve())
            self.assertEqual(out_path.read_text(encoding="utf-8"), "a\n  b")

    def test_rejects_bad_names(self) -> None:
        for name in ("", "   ", "sub/dir.txt", "tree?.txt", "a b.txt"):
            with self.assertRaises(InvalidOutputNameError, msg=name):
                validate_output_name(name)

    def test_accepts_simple_names(self) -> None:
        for name in ("file-structure.txt", "tree_v2.md", "OUT"):
            self.assertEqual(validate_output_name(name), name)

    def test_write_failure_raises_output_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(OutputError) as ctx:
                write_output("x", Path(tmp) / "missing", "tree.txt")
            self.assertTrue(str(ctx.exception).startswith("Failed to write output file: "))

    def test_undecodable_file_name_is_written_as_original_bytes(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            raw_name = os.path.join(os.fsencode(tmp), b"bad\xffname")
            try:
                with open(raw_name, "wb"):
                    pass
            except (OSError, ValueError):
                self.skipTest("filesystem rejects non-UTF-8 names")

            result = export_roots([root], create_ignore=False)
            out_path = write_output(result.text, root, "tree.txt")

            self.assertEqual(out_path.read_bytes(), b"bad\xffname")


if __name__ == "__main__":
    unittest.main()
