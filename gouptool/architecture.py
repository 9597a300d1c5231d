"""Release build targets and the locations the tool installs itself to."""

from __future__ import annotations

import os
import platform
import sys
from dataclasses import dataclass

GITHUB_OWNER = "joeblew999"
GITHUB_REPO = "goup-util"
FULL_REPO_NAME = f"{GITHUB_OWNER}/{GITHUB_REPO}"

GITHUB_API_BASE = "https://api.github.com"
GITHUB_BASE = "https://github.com"

BINARY_NAME = "goup-util"

UNIX_INSTALL_DIR = "/usr/local/bin"
UNIX_INSTALL_PATH = f"{UNIX_INSTALL_DIR}/{BINARY_NAME}"

SCRIPTS_DIR = "scripts"
DIST_DIR = ".dist"
MACOS_BOOTSTRAP_SCRIPT = "macos-bootstrap.sh"
WINDOWS_BOOTSTRAP_SCRIPT = "windows-bootstrap.ps1"

TEMP_FILE_PATTERN = "goup-util-*"


def _runtime_os() -> str:
    name = sys.platform
    if name.startswith("linux"):
        return "linux"
    if name == "darwin":
        return "darwin"
    if name in ("win32", "cygwin"):
        return "windows"
    for prefix in ("freebsd", "openbsd", "netbsd"):
        if name.startswith(prefix):
            return prefix
    return name


def _runtime_arch() -> str:
    machine = platform.machine().lower()
    if machine in ("x86_64", "amd64", "x64"):
        return "amd64"
    if machine in ("aarch64", "arm64", "armv8l"):
        return "arm64"
    if machine in ("i386", "i486", "i586", "i686", "x86"):
        return "386"
    if machine.startswith("arm"):
        return "arm"
    return machine


GOOS = _runtime_os()
GOARCH = _runtime_arch()


@dataclass(frozen=True)
class Architecture:
    """A build target: operating system, CPU architecture and binary suffix."""

    goos: str
    goarch: str
    suffix: str

    def binary_name(self) -> str:
        """Return the release binary's file name for this target."""
        return f"{BINARY_NAME}-{self.suffix}"

    def validate(self) -> None:
        """Raise ValueError if a required field is empty."""
        if not self.goos:
            raise ValueError("GOOS is required")
        if not self.goarch:
            raise ValueError("GOARCH is required")
        if not self.suffix:
            raise ValueError("Suffix is required")


def supported_architectures() -> list[Architecture]:
    """Return every target a release is built for."""
    return [
        Architecture("darwin", "arm64", "darwin-arm64"),
        Architecture("darwin", "amd64", "darwin-amd64"),
        Architecture("linux", "amd64", "linux-amd64"),
        Architecture("linux", "arm64", "linux-arm64"),
        Architecture("windows", "amd64", "windows-amd64.exe"),
        Architecture("windows", "arm64", "windows-arm64.exe"),
    ]


def filter_by_os(archs: list[Architecture], target_os: str) -> list[Architecture]:
    """Return the targets for ``target_os``, in their original order."""
    return [arch for arch in archs if arch.goos == target_os]


def archs_to_goarch_list(archs: list[Architecture]) -> list[str]:
    """Return the CPU architecture of each target, in order."""
    return [arch.goarch for arch in archs]


def current_architecture() -> Architecture | None:
    """Return the target matching this machine, or None if it is not supported."""
    for arch in supported_architectures():
        if arch.goos == GOOS and arch.goarch == GOARCH:
            return arch
    return None


def install_path() -> str:
    """Return where the tool installs itself on this platform."""
    if GOOS == "windows":
        return os.path.join(os.environ.get("USERPROFILE", ""), BINARY_NAME + ".exe")
    return UNIX_INSTALL_PATH


def latest_release_url() -> str:
    """Return the API address describing the latest release."""
    return f"{GITHUB_API_BASE}/repos/{FULL_REPO_NAME}/releases/latest"


def repo_git_url() -> str:
    """Return the address to clone the repository from."""
    return f"{GITHUB_BASE}/{FULL_REPO_NAME}.git"