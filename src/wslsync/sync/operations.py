"""Planning of one-way tree copies as FileOperations.

The operations are independent of each other so the pool can run them in
any order: a copy creates its own parent directories.
"""

from __future__ import annotations

import errno
import logging
import os
import shutil
from functools import partial
from pathlib import Path

from wslsync.core.types import OperationAction
from wslsync.sync.pool import FileOperation

logger = logging.getLogger(__name__)


def _mkdir(target: Path) -> None:
    target.mkdir(parents=True, exist_ok=True)


def _copy(source: Path, target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(source, target)


def _collision(target: Path, other: str) -> None:
    raise FileExistsError(
        errno.EEXIST,
        f"Name collision on case-insensitive target (with {other!r})",
        str(target),
    )


def plan_copy(
    source: Path,
    destination: Path,
    case_insensitive: bool = False,
) -> list[FileOperation]:
    """Build the operations copying a tree into another.

    Args:
        source: Root of the tree to copy.
        destination: Root receiving the copy.
        case_insensitive: Treat the destination as case-insensitive (a
            Windows drive); entries whose names differ only by case then
            fail as conflicts instead of overwriting each other.

    Returns:
        mkdir operations for every directory and copy operations for every
        file, in walk order.

    Raises:
        NotADirectoryError: If source is not a directory.
    """
    source = Path(source)
    destination = Path(destination)
    if not source.is_dir():
        raise NotADirectoryError(errno.ENOTDIR, "Not a directory", str(source))

    operations: list[FileOperation] = []
    seen: dict[str, str] = {}

    for dirpath, dirnames, filenames in os.walk(source):
        dirnames.sort()
        collided_dirs: set[str] = set()
        current = Path(dirpath)
        relative_dir = current.relative_to(source)

        for name in [*dirnames, *sorted(filenames)]:
            relative = (relative_dir / name).as_posix()
            src = current / name
            dst = destination / relative_dir / name
            is_dir = name in dirnames
            action = OperationAction.MKDIR if is_dir else OperationAction.COPY

            folded = relative.casefold()
            if case_insensitive and folded in seen:
                other = seen[folded]
                operations.append(
                    FileOperation(
                        path=relative,
                        action=action,
                        func=partial(_collision, dst, other),
                    )
                )
                if is_dir:
                    collided_dirs.add(name)
                continue
            seen[folded] = relative

            func = partial(_mkdir, dst) if is_dir else partial(_copy, src, dst)
            operations.append(FileOperation(path=relative, action=action, func=func))

        # Do not descend into a directory that collided
        dirnames[:] = [d for d in dirnames if d not in collided_dirs]

    logger.debug(f"Planned {len(operations)} operation(s) from {source} to {destination}")
    return operations
