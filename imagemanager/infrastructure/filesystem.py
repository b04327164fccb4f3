"""Local disk implementation of the FileSystem protocol."""
from __future__ import annotations

import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Iterator, Optional

from ..core.protocols import FileStat


def _birth_time(st: os.stat_result) -> Optional[datetime]:
    """Creation time where the platform records one.

    macOS/BSD expose st_birthtime; on Windows st_ctime is the creation time.
    Linux stat() has neither, so callers fall back to modification time.
    """
    birth = getattr(st, "st_birthtime", None)
    if birth is None and os.name == "nt":
        birth = st.st_ctime
    if birth is None:
        return None
    return datetime.fromtimestamp(birth)


class LocalFileSystem:
    """Thin wrapper over os/shutil so the core never calls them directly."""

    def read_file(self, path: Path) -> bytes:
        return Path(path).read_bytes()

    def open(self, path: Path) -> BinaryIO:
        return Path(path).open("rb")

    def create(self, path: Path) -> BinaryIO:
        # "x" refuses to clobber a file that appeared since we checked.
        return Path(path).open("xb")

    def stat(self, path: Path) -> FileStat:
        st = Path(path).stat()
        return FileStat(
            size=st.st_size,
            mod_time=datetime.fromtimestamp(st.st_mtime),
            birth_time=_birth_time(st),
            is_dir=Path(path).is_dir(),
        )

    def rename(self, source: Path, target: Path) -> None:
        if Path(target).exists():
            raise FileExistsError(f"Target already exists: {target}")
        # shutil.move falls back to copy+delete across devices.
        shutil.move(str(source), str(target))

    def mkdir_all(self, path: Path) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)

    def exists(self, path: Path) -> bool:
        return Path(path).exists()

    def walk(self, root: Path) -> Iterator[Path]:
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames.sort()
            for name in sorted(filenames):
                path = Path(dirpath) / name
                if path.is_symlink():
                    continue
                yield path

    def remove(self, path: Path) -> None:
        Path(path).unlink(missing_ok=True)
