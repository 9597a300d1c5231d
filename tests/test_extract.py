import io
import os
import tarfile
import zipfile

import pytest

from gouptool.extract import archive_type, extract


def _make_zip(path):
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr("top.txt", "top content")
        archive.writestr("nested/dir/inner.txt", "inner content")
        archive.writestr("emptydir/", "")


def _add_tar_file(archive, name, data):
    info = tarfile.TarInfo(name)
    info.size = len(data)
    info.mode = 0o644
    archive.addfile(info, io.BytesIO(data))


def _add_tar_dir(archive, name):
    info = tarfile.TarInfo(name)
    info.type = tarfile.DIRTYPE
    info.mode = 0o755
    archive.addfile(info)


def _make_tar_gz(path):
    with tarfile.open(path, "w:gz") as archive:
        _add_tar_dir(archive, "pkg")
        _add_tar_file(archive, "pkg/readme.txt", b"hello tar")
        _add_tar_dir(archive, "pkg/bin")
        _add_tar_file(archive, "pkg/bin/tool", b"binary bytes")


def test_archive_type_zip(tmp_path):
    path = str(tmp_path / "a.zip")
    _make_zip(path)
    assert archive_type(path) == "zip"


def test_archive_type_tar_gz(tmp_path):
    path = str(tmp_path / "a.tar.gz")
    _make_tar_gz(path)
    assert archive_type(path) == "tar.gz"


def test_archive_type_xip_fallback(tmp_path):
    path = tmp_path / "Xcode.xip"
    path.write_bytes(b"xar!rest")
    assert archive_type(str(path)) == "zip"


def test_archive_type_unknown(tmp_path):
    path = tmp_path / "plain.bin"
    path.write_bytes(b"just text")
    with pytest.raises(ValueError, match="unable to determine archive type"):
        archive_type(str(path))


def test_archive_type_empty_file(tmp_path):
    path = tmp_path / "empty.dat"
    path.write_bytes(b"")
    with pytest.raises(ValueError):
        archive_type(str(path))


def test_archive_type_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        archive_type(str(tmp_path / "nope.zip"))


def test_extract_zip(tmp_path):
    source = str(tmp_path / "a.zip")
    _make_zip(source)
    dest = tmp_path / "out"
    extract(source, str(dest))
    assert (dest / "top.txt").read_text() == "top content"
    assert (dest / "nested" / "dir" / "inner.txt").read_text() == "inner content"
    assert (dest / "emptydir").is_dir()


def test_extract_tar_gz(tmp_path):
    source = str(tmp_path / "a.tar.gz")
    _make_tar_gz(source)
    dest = tmp_path / "out"
    dest.mkdir()
    extract(source, str(dest))
    assert (dest / "pkg" / "readme.txt").read_bytes() == b"hello tar"
    assert (dest / "pkg" / "bin" / "tool").read_bytes() == b"binary bytes"


def test_extract_tar_gz_overwrites_existing_file(tmp_path):
    source = str(tmp_path / "a.tar.gz")
    _make_tar_gz(source)
    dest = tmp_path / "out"
    (dest / "pkg").mkdir(parents=True)
    (dest / "pkg" / "readme.txt").write_bytes(b"old and much longer content")
    extract(source, str(dest))
    assert (dest / "pkg" / "readme.txt").read_bytes() == b"hello tar"


def test_extract_tar_gz_rejects_symlinks(tmp_path):
    source = str(tmp_path / "links.tar.gz")
    with tarfile.open(source, "w:gz") as archive:
        info = tarfile.TarInfo("link")
        info.type = tarfile.SYMTYPE
        info.linkname = "target"
        archive.addfile(info)
    dest = tmp_path / "out"
    dest.mkdir()
    with pytest.raises(ValueError, match="unknown type"):
        extract(source, str(dest))
    assert not os.path.lexists(dest / "link")


def test_extract_unknown_archive(tmp_path):
    path = tmp_path / "plain.bin"
    path.write_bytes(b"nothing here")
    with pytest.raises(ValueError):
        extract(str(path), str(tmp_path / "out"))