"""Tests for copy planning."""

from __future__ import annotations

from pathlib import Path

import pytest

from wslsync.core.types import OperationAction
from wslsync.sync.operations import plan_copy


@pytest.fixture
def source(tmp_path: Path) -> Path:
    root = tmp_path / "src"
    (root / "docs").mkdir(parents=True)
    (root / "a.txt").write_text("a")
    (root / "docs" / "b.txt").write_text("b")
    return root


class TestPlanCopy:
    """Tests for plan_copy function."""

    def test_plans_dirs_and_files(self, source: Path, tmp_path: Path) -> None:
        """Should plan a mkdir per directory and a copy per file."""
        ops = plan_copy(source, tmp_path / "dst")
        assert [(op.action, op.path) for op in ops] == [
            (OperationAction.MKDIR, "docs"),
            (OperationAction.COPY, "a.txt"),
            (OperationAction.COPY, "docs/b.txt"),
        ]

    def test_operations_copy_the_tree(self, source: Path, tmp_path: Path) -> None:
        """Running the planned operations should copy the tree."""
        destination = tmp_path / "dst"
        # Run out of order: copies create their own parents
        for op in reversed(plan_copy(source, destination)):
            op.func()
        assert (destination / "a.txt").read_text() == "a"
        assert (destination / "docs" / "b.txt").read_text() == "b"

    def test_source_must_be_directory(self, tmp_path: Path) -> None:
        """Should raise when the source is not a directory."""
        with pytest.raises(NotADirectoryError):
            plan_copy(tmp_path / "missing", tmp_path / "dst")

    def test_missing_source_file_raises_at_run_time(self, source: Path, tmp_path: Path) -> None:
        """A file vanishing after planning should fail when copied."""
        ops = plan_copy(source, tmp_path / "dst")
        (source / "a.txt").unlink()
        copy_a = next(op for op in ops if op.path == "a.txt")
        with pytest.raises(FileNotFoundError):
            copy_a.func()

    def test_case_collision(self, tmp_path: Path) -> None:
        """Names differing only by case collide on a case-insensitive target."""
        root = tmp_path / "src"
        root.mkdir()
        (root / "README").write_text("upper")
        (root / "readme").write_text("lower")
        if len(list(root.iterdir())) < 2:
            pytest.skip("filesystem is case-insensitive")

        ops = plan_copy(root, tmp_path / "dst", case_insensitive=True)
        assert [op.path for op in ops] == ["README", "readme"]
        with pytest.raises(FileExistsError, match="case-insensitive"):
            ops[1].func()

    def test_case_collision_ignored_when_case_sensitive(self, tmp_path: Path) -> None:
        """Case-only differences are fine on a case-sensitive target."""
        root = tmp_path / "src"
        root.mkdir()
        (root / "Data").mkdir()
        (root / "data").mkdir()
        if len(list(root.iterdir())) < 2:
            pytest.skip("filesystem is case-insensitive")
        (root / "data" / "x").write_text("x")

        ops = plan_copy(root, tmp_path / "dst")
        assert [op.path for op in ops] == ["Data", "data", "data/x"]

        # Case-insensitive: the colliding directory is not descended into
        ops = plan_copy(root, tmp_path / "dst", case_insensitive=True)
        assert [op.path for op in ops] == ["Data", "data"]
