"""Bounded-depth project walk shared by every evidence extractor.

The walk happens once per detection call. Extractors then work on the
resulting ProjectSnapshot, which keeps probes cheap and deterministic.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

logger = logging.getLogger(__name__)

# Directories never descended into. Hidden directories are skipped too.
SKIP_DIRS = {
    "node_modules", "bin", "obj", "dist", "build", "packages",
    "__pycache__", ".venv", "venv", "coverage",
}


@dataclass(frozen=True)
class ProjectSnapshot:
    """Relative POSIX paths of files and directories found by the walk.

    depth is the number of directory levels below the root: a file at
    the root has depth 0, a directory directly under the root depth 1.
    """

    root: Path
    files: tuple[PurePosixPath, ...] = ()
    directories: tuple[PurePosixPath, ...] = ()
    diagnostics: tuple[str, ...] = ()

    def files_named(self, *names: str) -> list[PurePosixPath]:
        wanted = {n.lower() for n in names}
        return [f for f in self.files if f.name.lower() in wanted]

    def absolute(self, rel_path: PurePosixPath) -> Path:
        return self.root.joinpath(*rel_path.parts)


@dataclass
class _WalkState:
    files: list[PurePosixPath] = field(default_factory=list)
    directories: list[PurePosixPath] = field(default_factory=list)
    diagnostics: list[str] = field(default_factory=list)


def walk_project(root: Path, max_depth: int) -> ProjectSnapshot:
    """Collect files and directories up to max_depth levels below root.

    Missing or unreadable paths are recorded as diagnostics and never
    raised. A missing root yields an empty snapshot.
    """
    root = Path(root)
    state = _WalkState()

    if not root.is_dir():
        logger.debug("Project root %s is not a directory", root)
        return ProjectSnapshot(root=root)

    _scan(root, PurePosixPath(), 0, max_depth, state)

    # Sorted so every extractor sees the same order on every platform
    return ProjectSnapshot(
        root=root,
        files=tuple(sorted(state.files)),
        directories=tuple(sorted(state.directories)),
        diagnostics=tuple(state.diagnostics),
    )


def _scan(
    directory: Path,
    rel_dir: PurePosixPath,
    depth: int,
    max_depth: int,
    state: _WalkState,
) -> None:
    try:
        with os.scandir(directory) as entries:
            children = list(entries)
    except OSError as exc:
        logger.warning("Cannot scan %s: %s", directory, exc)
        state.diagnostics.append(f"walk: {rel_dir.as_posix() or '.'}: {exc}")
        return

    for entry in children:
        rel_path = rel_dir / entry.name
        try:
            if entry.is_dir(follow_symlinks=False):
                if entry.name.startswith(".") or entry.name in SKIP_DIRS:
                    continue
                if depth + 1 > max_depth:
                    continue
                state.directories.append(rel_path)
                _scan(Path(entry.path), rel_path, depth + 1, max_depth, state)
            elif entry.is_file():
                state.files.append(rel_path)
        except OSError as exc:
            logger.warning("Cannot stat %s: %s", entry.path, exc)
            state.diagnostics.append(f"walk: {rel_path.as_posix()}: {exc}")


def path_depth(rel_path: PurePosixPath) -> int:
    """Directory levels of a relative directory path ("a/b" -> 2)."""
    return len(rel_path.parts)
