"""Creating release archives from a file or directory tree."""

from __future__ import annotations

import os
import shutil
import stat
import tarfile
import zipfile
from enum import Enum
from typing import Iterator


class ArchiveFormat(str, Enum):
    """Archive formats that can be produced."""

    TAR_GZ = "tar.gz"
    ZIP = "zip"


def _walk(path: str) -> Iterator[tuple[str, os.stat_result]]:
    """Yield ``path`` and everything below it in lexical order, without following links."""
    info = os.lstat(path)
    yield path, info
    if stat.S_ISDIR(info.st_mode):
        for name in sorted(os.listdir(path)):
            yield from _walk(os.path.join(path, name))


def create_archive(
    source_path: str, output_path: str, archive_format: ArchiveFormat | str
) -> None:
    """Pack ``source_path`` into ``output_path`` in the given format."""
    try:
        fmt = ArchiveFormat(archive_format)
    except ValueError:
        raise ValueError(f"unsupported archive format: {archive_format}") from None
    if fmt is ArchiveFormat.TAR_GZ:
        _create_tar_gz(source_path, output_path)
    else:
        _create_zip(source_path, output_path)


def _create_tar_gz(source_path: str, output_path: str) -> None:
    base_dir = os.path.dirname(source_path)
    with tarfile.open(output_path, "w:gz") as archive:
        for path, info in _walk(source_path):
            rel_path = os.path.relpath(path, base_dir or os.curdir)
            member = archive.gettarinfo(path, arcname=rel_path)
            if member is None:
                raise ValueError(f"unsupported file type: {path}")
            if stat.S_ISREG(info.st_mode):
                with open(path, "rb") as handle:
                    archive.addfile(member, handle)
            else:
                archive.addfile(member)


def _create_zip(source_path: str, output_path: str) -> None:
    base_dir = os.path.dirname(source_path)
    with zipfile.ZipFile(output_path, "w") as archive:
        for path, info in _walk(source_path):
            if stat.S_ISDIR(info.st_mode):
                continue
            rel_path = os.path.relpath(path, base_dir or os.curdir)
            archive.write(path, arcname=rel_path, compress_type=zipfile.ZIP_DEFLATED)


def copy_file(src: str, dst: str) -> None:
    """Copy the contents of ``src`` to ``dst``."""
    shutil.copyfile(src, dst)