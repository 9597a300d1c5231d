"""Installing, upgrading and removing the tool's own binary."""

from __future__ import annotations

import json
import os
import shutil
import subprocess
import sys
import tempfile
import urllib.error
import urllib.request
from typing import Any

from . import report
from .architecture import (
    BINARY_NAME,
    GOARCH,
    GOOS,
    TEMP_FILE_PATTERN,
    UNIX_INSTALL_DIR,
    UNIX_INSTALL_PATH,
    current_architecture,
    install_path,
    latest_release_url,
)
from .doctor import check_command, find_all_installations
from .results import SetupResult, UninstallResult, UpgradeResult
from .version import VERSION

COMMAND_SETUP = "self setup"
COMMAND_UPGRADE = "self upgrade"
COMMAND_UNINSTALL = "self uninstall"

_WRITE_TEST_NAME = ".write-test"
_QUARANTINE_ATTR = "com.apple.quarantine"
_CHUNK_SIZE = 64 * 1024


def _execute(args: list[str], quiet: bool = False) -> str | None:
    """Run ``args``; return None on success or a description of the failure."""
    streams: dict[str, Any] = {}
    if quiet:
        streams = {"stdout": subprocess.DEVNULL, "stderr": subprocess.DEVNULL}
    try:
        completed = subprocess.run(args, check=False, **streams)
    except OSError as exc:
        return str(exc)
    if completed.returncode != 0:
        return f"exit status {completed.returncode}"
    return None


def _current_executable(resolve_links: bool) -> str:
    candidate = sys.argv[0] if sys.argv and sys.argv[0] else ""
    if not candidate or not os.path.exists(candidate):
        candidate = sys.executable
    if not candidate:
        raise RuntimeError("failed to get executable path: unknown")
    return os.path.realpath(candidate) if resolve_links else os.path.abspath(candidate)


def _command_ok(name: str, *args: str) -> bool:
    try:
        check_command(name, *args)
    except (OSError, subprocess.CalledProcessError):
        return False
    return True


def _sudo_copy(src: str, dst: str) -> None:
    failure = _execute(["sudo", "cp", src, dst])
    if failure is not None:
        raise RuntimeError(f"sudo cp failed: {failure}")
    failure = _execute(["sudo", "chmod", "+x", dst], quiet=True)
    if failure is not None:
        raise RuntimeError(f"chmod failed: {failure}")


def _clear_quarantine(path: str) -> None:
    # The attribute may not be present; failures are expected and ignored.
    _execute(["sudo", "xattr", "-d", _QUARANTINE_ATTR, path], quiet=True)


def _unblock(path: str) -> None:
    _execute(["powershell", "-Command", "Unblock-File", "-Path", path], quiet=True)


def install_self() -> SetupResult:
    """Copy the running binary to the system location and print a JSON report."""
    if GOOS in ("darwin", "linux"):
        location = _install_self_unix()
    elif GOOS == "windows":
        location = _install_self_windows()
    else:
        raise RuntimeError(f"unsupported platform: {GOOS}")

    found = shutil.which(BINARY_NAME)
    in_path = found is not None and found == location

    checks = [
        _command_ok("git", "--version"),
        _command_ok("go", "version"),
        _command_ok("task", "--version"),
    ]

    result = SetupResult(
        installed=True,
        location=location,
        in_path=in_path,
        dependencies_ok=all(checks),
    )
    report.ok(COMMAND_SETUP, result)
    return result


def _install_self_unix() -> str:
    target = UNIX_INSTALL_PATH
    exe_path = _current_executable(resolve_links=True)

    if is_writable(UNIX_INSTALL_DIR):
        try:
            copy_file(exe_path, target)
        except RuntimeError as exc:
            raise RuntimeError(f"failed to copy binary: {exc}") from exc
    else:
        _sudo_copy(exe_path, target)

    if GOOS == "darwin":
        _clear_quarantine(target)

    if not os.path.exists(target):
        raise RuntimeError(f"installation verification failed: {target} does not exist")
    return target


def _install_self_windows() -> str:
    user_profile = os.environ.get("USERPROFILE", "")
    if not user_profile:
        raise RuntimeError("USERPROFILE environment variable not set")

    target = os.path.join(user_profile, BINARY_NAME + ".exe")
    exe_path = _current_executable(resolve_links=False)

    try:
        copy_file(exe_path, target)
    except RuntimeError as exc:
        raise RuntimeError(f"failed to copy binary: {exc}") from exc

    _unblock(target)

    if not os.path.exists(target):
        raise RuntimeError(f"installation verification failed: {target} does not exist")
    return target


def copy_file(src: str, dst: str) -> None:
    """Copy ``src`` to ``dst``, creating it with the source's permissions."""
    try:
        source = open(src, "rb")
    except OSError as exc:
        raise RuntimeError(f"failed to open source: {exc}") from exc
    with source:
        try:
            mode = os.fstat(source.fileno()).st_mode & 0o7777
        except OSError as exc:
            raise RuntimeError(f"failed to stat source: {exc}") from exc
        try:
            fd = os.open(dst, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, mode)
        except OSError as exc:
            raise RuntimeError(f"failed to create destination: {exc}") from exc
        with os.fdopen(fd, "wb") as target:
            try:
                shutil.copyfileobj(source, target)
            except OSError as exc:
                raise RuntimeError(f"failed to copy contents: {exc}") from exc


def is_writable(path: str) -> bool:
    """Return True if a file can be created in directory ``path``."""
    probe = os.path.join(path, _WRITE_TEST_NAME)
    try:
        with open(probe, "wb"):
            pass
    except OSError:
        return False
    try:
        os.remove(probe)
    except OSError:
        pass
    return True


def platform_binary_name() -> str:
    """Return the release asset name for this machine."""
    arch = current_architecture()
    if arch is None:
        return f"{BINARY_NAME}-{GOOS}-{GOARCH}"
    return arch.binary_name()


def _http_status(exc: urllib.error.HTTPError) -> str:
    return f"{exc.code} {exc.reason}"


def _fetch_release() -> dict[str, Any]:
    url = latest_release_url()
    try:
        with urllib.request.urlopen(url) as response:
            status = response.status
            body = response.read()
    except urllib.error.HTTPError as exc:
        exc.close()
        raise RuntimeError(f"failed to fetch release info: {_http_status(exc)}") from exc
    except (OSError, ValueError) as exc:
        raise RuntimeError(f"failed to check for updates: {exc}") from exc
    if status != 200:
        raise RuntimeError(f"failed to fetch release info: {status}")
    try:
        payload = json.loads(body)
    except ValueError as exc:
        raise RuntimeError(f"failed to parse release info: {exc}") from exc
    if not isinstance(payload, dict):
        raise RuntimeError("failed to parse release info: expected a JSON object")
    return payload


def _asset_url(release: dict[str, Any], name: str) -> str:
    for asset in release.get("assets") or []:
        if isinstance(asset, dict) and asset.get("name") == name:
            return asset.get("browser_download_url") or ""
    return ""


def _download_to(url: str, target) -> None:
    try:
        with urllib.request.urlopen(url) as response:
            if response.status != 200:
                raise RuntimeError(f"download failed: {response.status}")
            try:
                while True:
                    chunk = response.read(_CHUNK_SIZE)
                    if not chunk:
                        break
                    target.write(chunk)
            except OSError as exc:
                raise RuntimeError(f"failed to save binary: {exc}") from exc
    except urllib.error.HTTPError as exc:
        exc.close()
        raise RuntimeError(f"download failed: {_http_status(exc)}") from exc
    except (OSError, ValueError) as exc:
        raise RuntimeError(f"failed to download binary: {exc}") from exc


def download_and_install_latest(repo: str) -> UpgradeResult:
    """Download the latest release binary, install it and print a JSON report."""
    result = UpgradeResult(previous_version=VERSION)

    release = _fetch_release()
    tag_name = release.get("tag_name") or ""
    result.new_version = tag_name

    binary_name = platform_binary_name()
    download_url = _asset_url(release, binary_name)
    if not download_url:
        raise RuntimeError(f"binary not found for {GOOS}/{GOARCH} in release {tag_name}")

    try:
        tmp = tempfile.NamedTemporaryFile(
            prefix=TEMP_FILE_PATTERN.rstrip("*"), delete=False
        )
    except OSError as exc:
        raise RuntimeError(f"failed to create temp file: {exc}") from exc

    try:
        with tmp:
            _download_to(download_url, tmp)
        result.downloaded = True

        try:
            os.chmod(tmp.name, 0o755)
        except OSError as exc:
            raise RuntimeError(f"failed to make binary executable: {exc}") from exc

        target = install_path()
        result.location = target

        if GOOS != "windows":
            if not is_writable(os.path.dirname(target)):
                _sudo_copy(tmp.name, target)
            else:
                try:
                    copy_file(tmp.name, target)
                except RuntimeError as exc:
                    raise RuntimeError(f"failed to install: {exc}") from exc
            if GOOS == "darwin":
                _clear_quarantine(target)
        else:
            try:
                copy_file(tmp.name, target)
            except RuntimeError as exc:
                raise RuntimeError(f"failed to install: {exc}") from exc
            _unblock(target)
    finally:
        try:
            os.remove(tmp.name)
        except OSError:
            pass

    result.installed = True
    report.ok(COMMAND_UPGRADE, result)
    return result


def remove_binary(path: str) -> None:
    """Delete ``path``, falling back to sudo on Unix; raise if it remains."""
    try:
        os.remove(path)
    except OSError as exc:
        if GOOS == "windows":
            raise RuntimeError(f"failed to remove: {exc}") from exc
        print(f"🔐 Need sudo privileges to remove {path}")
        failure = _execute(["sudo", "rm", path])
        if failure is not None:
            raise RuntimeError(f"failed to remove: {failure}") from exc

    if os.path.exists(path):
        raise RuntimeError("removal verification failed - file still exists")


def uninstall_self() -> UninstallResult:
    """Remove every copy of the tool found on the search path and print a JSON report."""
    result = UninstallResult(removed=[], failed=[])
    for path in find_all_installations():
        try:
            remove_binary(path)
        except RuntimeError:
            result.failed.append(path)
        else:
            result.removed.append(path)
    report.ok(COMMAND_UNINSTALL, result)
    return result