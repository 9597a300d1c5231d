"""Downloading, verifying and unpacking SDKs into the SDK directory."""

from __future__ import annotations

import hashlib
import os
import re
import shutil
import subprocess
import sys
import tarfile
import tempfile
import time
import urllib.request
import zipfile

from tqdm import tqdm

from .cache import SDK, Cache
from .extract import extract

MAX_RETRIES = 3
DOWNLOAD_TIMEOUT = 60 * 60  # seconds; large archives such as the NDK take a while
_CHUNK_SIZE = 64 * 1024
_SDKS_PREFIX = "sdks/"

_ENV_REF = re.compile(
    r"\$(?:\{(?P<braced>[^}]*)\}|(?P<special>[*#$@!?\-0-9])|(?P<name>[A-Za-z0-9_]+))"
)


class InstallError(Exception):
    """Raised when an SDK or tool cannot be installed."""


def _expand_env(text: str) -> str:
    """Replace ``$NAME`` and ``${NAME}`` with environment values; unset names become empty."""

    def replace(match: re.Match[str]) -> str:
        name = match.group("braced")
        if name is None:
            name = match.group("special") or match.group("name")
        return os.environ.get(name, "") if name else ""

    return _ENV_REF.sub(replace, text)


def resolve_install_path(path: str, sdk_dir: str) -> str:
    """Turn an SDK install path into an absolute location.

    An empty path means ``sdk_dir`` itself; paths starting with ``sdks/`` are
    placed under ``sdk_dir``; other relative paths are taken from the current
    directory. Environment variables are expanded first.
    """
    if not path:
        return sdk_dir
    expanded = _expand_env(path)
    if os.path.isabs(expanded):
        return expanded
    if expanded.startswith(_SDKS_PREFIX):
        return os.path.normpath(os.path.join(sdk_dir, expanded[len(_SDKS_PREFIX):]))
    try:
        cwd = os.getcwd()
    except OSError:
        return expanded
    return os.path.normpath(os.path.join(cwd, expanded))


def _executable(path: str, windows_suffix: str = ".exe") -> str:
    return path + windows_suffix if sys.platform == "win32" else path


def is_sdk_complete(dest: str, sdk_name: str) -> bool:
    """Check for a file that a complete installation of ``sdk_name`` must contain."""
    if "openjdk" in sdk_name:
        marker = _executable(os.path.join(dest, "bin", "java"))
    elif "android" in sdk_name:
        marker = os.path.join(dest, "android.jar")
    elif "build-tools" in sdk_name:
        marker = _executable(os.path.join(dest, "aapt"))
    elif "platform-tools" in sdk_name:
        marker = _executable(os.path.join(dest, "adb"))
    elif "ndk" in sdk_name:
        marker = _executable(os.path.join(dest, "ndk-build"), ".cmd")
    else:
        return True
    return os.path.exists(marker)


def _url_extension(url: str) -> str:
    tail = url.rsplit("/", 1)[-1]
    dot = tail.rfind(".")
    return tail[dot:] if dot >= 0 else ""


def _open_with_retry(url: str):
    try:
        request = urllib.request.Request(url, method="GET")
    except ValueError as exc:
        raise InstallError(f"failed to create request: {exc}") from exc
    reason = ""
    for attempt in range(1, MAX_RETRIES + 1):
        print(f"🔄 Download attempt {attempt}/{MAX_RETRIES}...")
        try:
            response = urllib.request.urlopen(request, timeout=DOWNLOAD_TIMEOUT)
        except (OSError, ValueError) as exc:
            reason = str(exc)
            close = getattr(exc, "close", None)
            if callable(close):
                close()
        else:
            if response.status == 200:
                return response
            reason = f"received status code {response.status}"
            response.close()
        if attempt < MAX_RETRIES:
            print(f"⏳ Retrying in {attempt}s...")
            time.sleep(attempt)
    raise InstallError(f"failed to download SDK after {MAX_RETRIES} attempts: {reason}")


def _download(url: str, target) -> tuple[str, int]:
    """Stream ``url`` into ``target``; return the SHA-256 hex digest and content length."""
    hasher = hashlib.sha256()
    with _open_with_retry(url) as response:
        try:
            content_length = int(response.headers.get("Content-Length", "-1"))
        except ValueError:
            content_length = -1
        with tqdm(
            total=content_length if content_length > 0 else None,
            desc="Downloading",
            unit="B",
            unit_scale=True,
            file=sys.stderr,
            mininterval=0.065,
        ) as bar:
            while True:
                chunk = response.read(_CHUNK_SIZE)
                if not chunk:
                    break
                hasher.update(chunk)
                target.write(chunk)
                bar.update(len(chunk))
    return hasher.hexdigest(), content_length


def _save_cache(cache: Cache) -> None:
    try:
        cache.save()
    except OSError as exc:
        raise InstallError(f"failed to save cache: {exc}") from exc


def install(sdk: SDK, cache: Cache, sdk_dir: str) -> None:
    """Download, verify and unpack ``sdk`` unless it is already installed."""
    if cache.is_cached(sdk):
        print(f"{sdk.name} {sdk.version} is already installed and up-to-date.")
        return

    dest = resolve_install_path(sdk.install_path, sdk_dir)

    if os.path.exists(dest):
        if is_sdk_complete(dest, sdk.name):
            print(f"✅ {sdk.name} {sdk.version} is already installed at {dest}")
            cache.add(sdk)
            _save_cache(cache)
            return
        print(f"⚠️  {sdk.name} found but appears incomplete, reinstalling...")
        shutil.rmtree(dest, ignore_errors=True)

    if not sdk.url:
        raise InstallError(
            f"cannot automatically install SDK {sdk.name}. Please install it manually "
            "(e.g., by installing or updating Xcode) and ensure it is available at "
            f"{dest}"
        )

    print(f"📥 Downloading {sdk.name} {sdk.version}...")

    try:
        tmp = tempfile.NamedTemporaryFile(
            prefix="sdk-download-", suffix=_url_extension(sdk.url), delete=False
        )
    except OSError as exc:
        raise InstallError(f"failed to create temporary file: {exc}") from exc

    try:
        with tmp:
            try:
                calculated, content_length = _download(sdk.url, tmp)
            except OSError as exc:
                raise InstallError(f"failed to write to temporary file: {exc}") from exc

        expected = sdk.checksum.removeprefix("sha256:")
        if expected and calculated != expected:
            raise InstallError(f"checksum mismatch: expected {expected}, got {calculated}")
        print("✅ Checksum verified.")
        print(
            f"📦 Downloaded {sdk.name} {sdk.version} "
            f"({content_length / 1024 / 1024:.1f} MB)"
        )

        try:
            os.makedirs(dest, exist_ok=True)
        except OSError as exc:
            raise InstallError(f"failed to create destination directory: {exc}") from exc

        print(f"📂 Extracting to {dest}...")
        try:
            extract(tmp.name, dest)
        except (OSError, ValueError, tarfile.TarError, zipfile.BadZipFile) as exc:
            raise InstallError(f"failed to extract SDK: {exc}") from exc
        print("✅ Extraction complete.")
    finally:
        try:
            os.remove(tmp.name)
        except OSError:
            pass

    cache.add(sdk)
    _save_cache(cache)

    print(f"Successfully installed {sdk.name} {sdk.version} to {dest}")

    if "openjdk" in sdk.name:
        rule = "-" * 69
        print("\n" + rule)
        print("IMPORTANT: To use this JDK for Android development with Gio,")
        print("you need to set the JAVA_HOME environment variable.")
        print("\nFor your current shell session, run:")
        print(f'export JAVA_HOME="{dest}"')
        print("\nTo make this change permanent, add the line above to your")
        print("shell profile file (e.g., ~/.zshrc, ~/.bash_profile).")
        print(rule)


def install_android_sdk(sdk_name: str, sdk_manager_name: str, sdk_root: str) -> None:
    """Install an Android SDK component with ``sdkmanager``, retrying on failure."""
    print(f"📦 Installing {sdk_name} via Android SDK Manager...")

    sdk_root = os.path.normpath(sdk_root)
    cmdline_tools = os.path.join(sdk_root, "cmdline-tools", "11.0", "cmdline-tools", "bin")
    java_home = os.path.join(
        sdk_root, "openjdk", "17", "jdk-17.0.11+9", "Contents", "Home"
    )

    sdk_manager = os.path.join(cmdline_tools, "sdkmanager")
    if not os.path.exists(sdk_manager):
        raise InstallError(f"sdkmanager not found at {sdk_manager}")

    env = dict(os.environ)
    env["JAVA_HOME"] = java_home
    env["ANDROID_SDK_ROOT"] = sdk_root
    env["ANDROID_HOME"] = sdk_root
    env["PATH"] = cmdline_tools + os.pathsep + os.environ.get("PATH", "")

    command = [sdk_manager, sdk_manager_name, f"--sdk_root={sdk_root}"]
    for attempt in range(1, MAX_RETRIES + 1):
        print(f"🔄 Attempt {attempt}/{MAX_RETRIES}...")
        try:
            completed = subprocess.run(command, env=env, check=False)
        except OSError as exc:
            failure = str(exc)
        else:
            if completed.returncode == 0:
                print(f"✅ Successfully installed {sdk_name}")
                return
            failure = f"exit status {completed.returncode}"
        if attempt < MAX_RETRIES:
            print(f"❌ Attempt {attempt} failed: {failure}")
            time.sleep(attempt)
        else:
            raise InstallError(
                f"failed to install {sdk_name} after {MAX_RETRIES} attempts: {failure}"
            )