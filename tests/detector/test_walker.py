"""Tests for the bounded-depth project walk."""

import os
from pathlib import Path, PurePosixPath
from unittest.mock import patch

from productrules.detector.walker import walk_project


def _write(path: Path, content: str = "") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


class TestWalkProject:
    def test_collects_files_and_directories(self, tmp_path):
        _write(tmp_path / "README.md")
        _write(tmp_path / "src" / "app.py")

        snapshot = walk_project(tmp_path, max_depth=4)
        assert PurePosixPath("README.md") in snapshot.files
        assert PurePosixPath("src/app.py") in snapshot.files
        assert snapshot.directories == (PurePosixPath("src"),)

    def test_output_is_sorted(self, tmp_path):
        for name in ("zeta.txt", "alpha.txt", "mid.txt"):
            _write(tmp_path / name)

        snapshot = walk_project(tmp_path, max_depth=4)
        assert [f.name for f in snapshot.files] == ["alpha.txt", "mid.txt", "zeta.txt"]

    def test_skips_vendor_and_hidden_directories(self, tmp_path):
        _write(tmp_path / "node_modules" / "pkg" / "package.json", "{}")
        _write(tmp_path / ".git" / "config")
        _write(tmp_path / "bin" / "Debug" / "app.dll")
        _write(tmp_path / "src" / "main.ts")

        snapshot = walk_project(tmp_path, max_depth=4)
        assert snapshot.files == (PurePosixPath("src/main.ts"),)

    def test_respects_max_depth(self, tmp_path):
        _write(tmp_path / "a" / "one.txt")
        _write(tmp_path / "a" / "b" / "two.txt")

        snapshot = walk_project(tmp_path, max_depth=1)
        assert PurePosixPath("a/one.txt") in snapshot.files
        assert PurePosixPath("a/b/two.txt") not in snapshot.files
        assert PurePosixPath("a/b") not in snapshot.directories

    def test_missing_root_gives_empty_snapshot(self, tmp_path):
        snapshot = walk_project(tmp_path / "does-not-exist", max_depth=4)
        assert snapshot.files == ()
        assert snapshot.directories == ()
        assert snapshot.diagnostics == ()

    def test_unreadable_directory_is_a_diagnostic(self, tmp_path):
        _write(tmp_path / "locked" / "secret.txt")
        _write(tmp_path / "open" / "visible.txt")
        real_scandir = os.scandir

        def fake_scandir(path):
            if Path(path).name == "locked":
                raise PermissionError("denied")
            return real_scandir(path)

        with patch("productrules.detector.walker.os.scandir", side_effect=fake_scandir):
            snapshot = walk_project(tmp_path, max_depth=4)

        assert PurePosixPath("open/visible.txt") in snapshot.files
        assert PurePosixPath("locked/secret.txt") not in snapshot.files
        assert any(d.startswith("walk: locked") for d in snapshot.diagnostics)


class TestSnapshotHelpers:
    def test_files_named_is_case_insensitive(self, tmp_path):
        _write(tmp_path / "Web" / "SystemSettings.config")

        snapshot = walk_project(tmp_path, max_depth=4)
        assert snapshot.files_named("systemsettings.config") == [
            PurePosixPath("Web/SystemSettings.config")
        ]

    def test_absolute_joins_root(self, tmp_path):
        _write(tmp_path / "a" / "b.txt")

        snapshot = walk_project(tmp_path, max_depth=4)
        assert snapshot.absolute(PurePosixPath("a/b.txt")) == tmp_path / "a" / "b.txt"
