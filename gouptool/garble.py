"""Installing the garble obfuscator into the SDK directory."""

from __future__ import annotations

import os
import shutil
import subprocess
import sys

from .cache import SDK, Cache
from .installer import InstallError, resolve_install_path

GARBLE_VERSION = "latest"
GARBLE_PACKAGE = "mvdan.cc/garble"
GARBLE_INSTALL_PATH = "sdks/tools/garble"


def _binary_name() -> str:
    return "garble.exe" if sys.platform == "win32" else "garble"


def garble_path(sdk_dir: str) -> str:
    """Return where the garble binary lives inside ``sdk_dir``."""
    return os.path.join(resolve_install_path(GARBLE_INSTALL_PATH, sdk_dir), _binary_name())


def is_garble_installed(sdk_dir: str) -> bool:
    """Return True if the garble binary is present in ``sdk_dir``."""
    return os.path.exists(garble_path(sdk_dir))


def install_garble(cache: Cache, sdk_dir: str) -> str:
    """Install garble with ``go install`` and return the binary's path."""
    print(f"📥 Installing garble {GARBLE_VERSION} to SDK directory...")

    install_path = resolve_install_path(GARBLE_INSTALL_PATH, sdk_dir)
    binary = os.path.join(install_path, _binary_name())

    entry = cache.entries.get("garble")
    if entry is not None and os.path.exists(binary):
        print(f"✅ garble {entry.version} is already installed at: {binary}")
        return binary

    if shutil.which("go") is None:
        raise InstallError("go command not found. Please install Go first")

    try:
        os.makedirs(install_path, mode=0o755, exist_ok=True)
    except OSError as exc:
        raise InstallError(f"failed to create install directory: {exc}") from exc

    env = dict(os.environ)
    env["GOBIN"] = install_path
    try:
        subprocess.run(
            ["go", "install", f"{GARBLE_PACKAGE}@{GARBLE_VERSION}"], env=env, check=True
        )
    except (OSError, subprocess.CalledProcessError) as exc:
        raise InstallError(f"failed to install garble: {exc}") from exc

    if not os.path.exists(binary):
        raise InstallError(f"garble binary not found at {binary} after installation")

    print(f"✅ garble installed successfully at: {binary}")

    try:
        version = subprocess.run(
            [binary, "version"], capture_output=True, text=True, check=True
        ).stdout
    except (OSError, subprocess.CalledProcessError) as exc:
        print(f"⚠️  Warning: Could not verify garble version: {exc}")
    else:
        print(f"   Version: {version.strip()}")

    cache.add(
        SDK(
            name="garble",
            version=GARBLE_VERSION,
            checksum="go-install",
            install_path=GARBLE_INSTALL_PATH,
        )
    )
    try:
        cache.save()
    except OSError as exc:
        print(f"⚠️  Warning: Could not update cache: {exc}")

    return binary