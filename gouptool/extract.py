"""Unpacking downloaded SDK archives."""

from __future__ import annotations

import os
import shutil
import tarfile
import zipfile

_ZIP_MAGIC = b"PK\x03\x04"
_GZIP_MAGIC = b"\x1f\x8b"


def _join(destination: str, name: str) -> str:
    return os.path.normpath(destination + os.sep + name)


def archive_type(source: str) -> str:
    """Return ``"zip"`` or ``"tar.gz"`` judged by the file's leading bytes."""
    with open(source, "rb") as handle:
        head = handle.read(4)
    if head == _ZIP_MAGIC:
        return "zip"
    if head[:2] == _GZIP_MAGIC:
        return "tar.gz"
    if source.endswith(".xip"):
        return "zip"
    raise ValueError(f"unable to determine archive type for {source}")


def extract(source: str, destination: str) -> None:
    """Unpack the archive at ``source`` into ``destination``."""
    kind = archive_type(source)
    if kind == "zip":
        _unzip(source, destination)
    elif kind == "tar.gz":
        _untar_gz(source, destination)
    else:
        raise ValueError(f"unsupported archive format: {kind}")


def _write_member(path: str, mode: int, stream) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
    with os.fdopen(fd, "wb") as out:
        shutil.copyfileobj(stream, out)


def _untar_gz(source: str, destination: str) -> None:
    with tarfile.open(source, "r:gz") as archive:
        for member in archive:
            path = _join(destination, member.name)
            if member.isdir():
                os.makedirs(path, mode=member.mode, exist_ok=True)
            elif member.isreg():
                stream = archive.extractfile(member)
                if stream is None:
                    raise ValueError(f"cannot read {member.name}")
                with stream:
                    _write_member(path, member.mode, stream)
            else:
                flag = member.type.decode("latin-1")
                raise ValueError(f"unknown type: {flag} in {member.name}")


def _zip_mode(info: zipfile.ZipInfo) -> int:
    return ((info.external_attr >> 16) & 0o777) or 0o666


def _unzip(source: str, destination: str) -> None:
    with zipfile.ZipFile(source) as archive:
        for info in archive.infolist():
            path = _join(destination, info.filename)
            if info.is_dir():
                os.makedirs(path, exist_ok=True)
                continue
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with archive.open(info) as stream:
                _write_member(path, _zip_mode(info), stream)