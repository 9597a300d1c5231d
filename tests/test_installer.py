import functools
import hashlib
import io
import os
import stat
import tarfile
import threading
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from unittest import mock

import pytest

from gouptool.cache import SDK, Cache
from gouptool.installer import (
    InstallError,
    install,
    install_android_sdk,
    is_sdk_complete,
    resolve_install_path,
)


class _QuietHandler(SimpleHTTPRequestHandler):
    def log_message(self, format, *args):
        pass


@pytest.fixture
def served(tmp_path):
    root = tmp_path / "served"
    root.mkdir()
    handler = functools.partial(_QuietHandler, directory=str(root))
    server = ThreadingHTTPServer(("127.0.0.1", 0), handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield root, f"http://127.0.0.1:{server.server_address[1]}"
    finally:
        server.shutdown()
        server.server_close()


def _make_tar_gz(path):
    with tarfile.open(path, "w:gz") as archive:
        folder = tarfile.TarInfo("bin")
        folder.type = tarfile.DIRTYPE
        folder.mode = 0o755
        archive.addfile(folder)
        body = b"tool contents"
        member = tarfile.TarInfo("bin/tool")
        member.size = len(body)
        member.mode = 0o644
        archive.addfile(member, io.BytesIO(body))
    return path.read_bytes()


# Resolution of install paths


def test_empty_path_uses_sdk_dir(tmp_path):
    sdk_dir = str(tmp_path / "sdks-root")
    assert resolve_install_path("", sdk_dir) == sdk_dir


def test_sdks_prefix_uses_sdk_dir(tmp_path):
    sdk_dir = str(tmp_path / "sdks-root")
    assert resolve_install_path("sdks/android-31", sdk_dir) == os.path.join(
        sdk_dir, "android-31"
    )


def test_absolute_path_returned_as_is(tmp_path):
    assert resolve_install_path("/opt/android-sdk", str(tmp_path)) == "/opt/android-sdk"


def test_relative_path_uses_current_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    result = resolve_install_path("local-sdk", str(tmp_path / "sdks-root"))
    assert os.path.isabs(result)
    assert result.endswith("local-sdk")
    assert result == os.path.join(os.getcwd(), "local-sdk")


@pytest.mark.parametrize("value", ["", "sdks/android-31", "sdks/build-tools/31.0.0"])
def test_resolve_uses_sdk_dir_level(tmp_path, value):
    sdk_dir = str(tmp_path / "sdks-root")
    result = resolve_install_path(value, sdk_dir)
    assert os.path.isabs(result)
    assert result.startswith(sdk_dir)
    assert "./" not in result
    assert "../" not in result


def test_resolve_expands_env_vars(tmp_path, monkeypatch):
    monkeypatch.setenv("GOUP_TEST_PATH", "/test/path")
    assert resolve_install_path("$GOUP_TEST_PATH/sdk", str(tmp_path)) == "/test/path/sdk"


def test_resolve_expands_braced_env_vars(tmp_path, monkeypatch):
    monkeypatch.setenv("GOUP_TEST_PATH", "/test/path")
    assert resolve_install_path("${GOUP_TEST_PATH}/sdk", str(tmp_path)) == "/test/path/sdk"


def test_resolve_unset_env_var_becomes_empty(tmp_path, monkeypatch):
    monkeypatch.delenv("GOUP_SURELY_UNSET", raising=False)
    sdk_dir = str(tmp_path / "root")
    assert resolve_install_path("sdks/$GOUP_SURELY_UNSET", sdk_dir) == sdk_dir


def test_sdk_installation_uses_sdk_dir_paths(tmp_path):
    sdk_dir = str(tmp_path / "sdks-root")
    sdk = SDK(name="test-sdk", version="1.0.0", install_path="sdks/test-sdk")
    resolved = resolve_install_path(sdk.install_path, sdk_dir)
    assert resolved.startswith(sdk_dir)
    assert os.path.isabs(resolved)


# Completeness checks


def test_openjdk_complete_needs_java(tmp_path):
    assert not is_sdk_complete(str(tmp_path), "openjdk-17")
    (tmp_path / "bin").mkdir()
    (tmp_path / "bin" / "java").write_text("")
    assert is_sdk_complete(str(tmp_path), "openjdk-17")


def test_android_complete_needs_jar(tmp_path):
    assert not is_sdk_complete(str(tmp_path), "android-31")
    (tmp_path / "android.jar").write_text("")
    assert is_sdk_complete(str(tmp_path), "android-31")


def test_android_check_wins_over_build_tools(tmp_path):
    (tmp_path / "aapt").write_text("")
    assert not is_sdk_complete(str(tmp_path), "android-build-tools")


def test_build_tools_and_platform_tools(tmp_path):
    assert not is_sdk_complete(str(tmp_path), "build-tools-31")
    (tmp_path / "aapt").write_text("")
    assert is_sdk_complete(str(tmp_path), "build-tools-31")
    assert not is_sdk_complete(str(tmp_path), "platform-tools")
    (tmp_path / "adb").write_text("")
    assert is_sdk_complete(str(tmp_path), "platform-tools")


def test_ndk_complete_needs_ndk_build(tmp_path):
    assert not is_sdk_complete(str(tmp_path), "ndk-26")
    (tmp_path / "ndk-build").write_text("")
    assert is_sdk_complete(str(tmp_path), "ndk-26")


def test_other_sdk_always_complete(tmp_path):
    assert is_sdk_complete(str(tmp_path / "missing"), "something-else")


# Installation


def test_install_already_cached_does_nothing(tmp_path, capsys):
    cache = Cache(path=str(tmp_path / "cache.json"))
    sdk = SDK(name="thing", version="1", checksum="abc", install_path="sdks/thing")
    cache.add(sdk)
    install(sdk, cache, str(tmp_path / "sdks-root"))
    assert "already installed and up-to-date" in capsys.readouterr().out
    assert not (tmp_path / "cache.json").exists()


def test_install_existing_complete_is_recorded(tmp_path):
    sdk_dir = tmp_path / "sdks-root"
    (sdk_dir / "android-31").mkdir(parents=True)
    (sdk_dir / "android-31" / "android.jar").write_text("")
    cache = Cache(path=str(tmp_path / "cache.json"))
    sdk = SDK(name="android-31", version="31", install_path="sdks/android-31")
    install(sdk, cache, str(sdk_dir))
    assert cache.is_cached(sdk)
    assert Cache.load(str(tmp_path / "cache.json")).is_cached(sdk)


def test_install_without_url_raises(tmp_path):
    cache = Cache(path=str(tmp_path / "cache.json"))
    sdk = SDK(name="test-sdk", version="1.0.0", install_path="sdks/test-sdk")
    with pytest.raises(InstallError, match="cannot automatically install SDK test-sdk"):
        install(sdk, cache, str(tmp_path / "sdks-root"))
    assert "test-sdk" not in cache.entries


def test_install_removes_incomplete_installation(tmp_path):
    sdk_dir = tmp_path / "sdks-root"
    (sdk_dir / "ndk").mkdir(parents=True)
    (sdk_dir / "ndk" / "partial").write_text("")
    cache = Cache(path=str(tmp_path / "cache.json"))
    sdk = SDK(name="ndk", version="26", install_path="sdks/ndk")
    with pytest.raises(InstallError):
        install(sdk, cache, str(sdk_dir))
    assert not (sdk_dir / "ndk").exists()


def test_install_downloads_and_extracts(tmp_path, served):
    root, base = served
    payload = _make_tar_gz(root / "pkg.tar.gz")
    digest = hashlib.sha256(payload).hexdigest()
    sdk_dir = tmp_path / "sdks-root"
    cache = Cache(path=str(tmp_path / "cache.json"))
    sdk = SDK(
        name="pkg",
        version="2.0",
        url=f"{base}/pkg.tar.gz",
        checksum="sha256:" + digest,
        install_path="sdks/pkg",
    )
    install(sdk, cache, str(sdk_dir))
    assert (sdk_dir / "pkg" / "bin" / "tool").read_bytes() == b"tool contents"
    reloaded = Cache.load(str(tmp_path / "cache.json"))
    assert reloaded.is_cached(sdk)
    assert reloaded.entries["pkg"].version == "2.0"


def test_install_checksum_mismatch(tmp_path, served):
    root, base = served
    _make_tar_gz(root / "pkg.tar.gz")
    sdk_dir = tmp_path / "sdks-root"
    cache = Cache(path=str(tmp_path / "cache.json"))
    sdk = SDK(
        name="pkg",
        url=f"{base}/pkg.tar.gz",
        checksum="sha256:" + "0" * 64,
        install_path="sdks/pkg",
    )
    with pytest.raises(InstallError, match="checksum mismatch"):
        install(sdk, cache, str(sdk_dir))
    assert not (sdk_dir / "pkg").exists()
    assert "pkg" not in cache.entries


def test_install_retries_then_fails(tmp_path, served):
    _, base = served
    cache = Cache(path=str(tmp_path / "cache.json"))
    sdk = SDK(name="pkg", url=f"{base}/missing.tar.gz", install_path="sdks/pkg")
    with mock.patch("time.sleep") as sleeper:
        with pytest.raises(InstallError, match="after 3 attempts"):
            install(sdk, cache, str(tmp_path / "sdks-root"))
    assert [call.args[0] for call in sleeper.call_args_list] == [1, 2]


def test_install_bad_url_raises(tmp_path):
    cache = Cache(path=str(tmp_path / "cache.json"))
    sdk = SDK(name="pkg", url="not a url", install_path="sdks/pkg")
    with pytest.raises(InstallError, match="failed to create request"):
        install(sdk, cache, str(tmp_path / "sdks-root"))


# Android SDK manager


def _fake_sdkmanager(sdk_root, body):
    bin_dir = sdk_root / "cmdline-tools" / "11.0" / "cmdline-tools" / "bin"
    bin_dir.mkdir(parents=True)
    script = bin_dir / "sdkmanager"
    script.write_text("#!/bin/sh\n" + body)
    script.chmod(script.stat().st_mode | stat.S_IXUSR)
    return script


def test_install_android_sdk_missing_manager(tmp_path):
    with pytest.raises(InstallError, match="sdkmanager not found"):
        install_android_sdk("platform", "platforms;android-31", str(tmp_path))


def test_install_android_sdk_runs_manager(tmp_path):
    record = tmp_path / "args.txt"
    _fake_sdkmanager(tmp_path, f'echo "$1 $2 $ANDROID_HOME" > "{record}"\n')
    install_android_sdk("platform", "platforms;android-31", str(tmp_path))
    assert record.read_text().strip() == (
        f"platforms;android-31 --sdk_root={tmp_path} {tmp_path}"
    )


def test_install_android_sdk_retries_and_fails(tmp_path):
    counter = tmp_path / "count.txt"
    _fake_sdkmanager(tmp_path, f'echo x >> "{counter}"\nexit 1\n')
    with mock.patch("time.sleep"):
        with pytest.raises(InstallError, match="after 3 attempts"):
            install_android_sdk("platform", "platforms;android-31", str(tmp_path))
    assert len(counter.read_text().splitlines()) == 3