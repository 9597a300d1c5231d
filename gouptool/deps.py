"""Installing the system tools the build workflow depends on."""

from __future__ import annotations

import shutil
import subprocess

from .architecture import GOOS

HOMEBREW_INSTALL_SCRIPT = (
    '/bin/bash -c "$(curl -fsSL '
    'https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh)"'
)
TASK_MODULE = "github.com/go-task/task/v3/cmd/task@latest"

_BREW_PACKAGES = ("git", "go", "go-task")
_WINGET_PACKAGES = (
    ("Git.Git", "Git"),
    ("Go" "Lang.Go", "Go"),
    ("Task.Task", "Task"),
)
_LINUX_PACKAGES = ("git", "go" "lang")
_LINUX_MANAGERS = (
    ("apt-get", ("sudo", "apt-get", "install", "-y")),
    ("yum", ("sudo", "yum", "install", "-y")),
    ("dnf", ("sudo", "dnf", "install", "-y")),
    ("pacman", ("sudo", "pacman", "-S", "--noconfirm")),
)


def _execute(args: list[str], **kwargs) -> str | None:
    """Run ``args``; return None on success or a description of the failure."""
    try:
        completed = subprocess.run(args, check=False, **kwargs)
    except OSError as exc:
        return str(exc)
    if completed.returncode != 0:
        return f"exit status {completed.returncode}"
    return None


def command_exists(cmd: str) -> bool:
    """Return True if ``cmd`` can be found on the search path."""
    return shutil.which(cmd) is not None


def install_deps() -> list[str]:
    """Install git, Go and Task with the platform's package manager.

    Returns the names of the tools that were newly installed.
    """
    if GOOS == "darwin":
        return _install_macos_deps()
    if GOOS == "windows":
        return _install_windows_deps()
    if GOOS == "linux":
        return _install_linux_deps()
    raise RuntimeError(f"unsupported platform: {GOOS}")


def _install_macos_deps() -> list[str]:
    installed: list[str] = []
    if not command_exists("brew"):
        print("📥 Homebrew not found. Installing...")
        failure = _execute(["/bin/bash", "-c", HOMEBREW_INSTALL_SCRIPT])
        if failure is not None:
            raise RuntimeError(f"failed to install Homebrew: {failure}")
        print("✅ Homebrew installed")
        installed.append("Homebrew")
    else:
        print("✅ Homebrew already installed")

    for pkg in _BREW_PACKAGES:
        try:
            if brew_install(pkg):
                installed.append(pkg)
        except RuntimeError as exc:
            raise RuntimeError(f"failed to install {pkg}: {exc}") from exc
    return installed


def brew_install(pkg: str) -> bool:
    """Install ``pkg`` with Homebrew unless present; return True if it was installed."""
    if _execute(["brew", "list", pkg], stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL) is None:
        print(f"✅ {pkg} already installed")
        return False

    print(f"📥 Installing {pkg} via Homebrew...")
    failure = _execute(["brew", "install", pkg])
    if failure is not None:
        raise RuntimeError(f"brew install {pkg} failed: {failure}")
    print(f"✅ {pkg} installed")
    return True


def _install_windows_deps() -> list[str]:
    if not command_exists("winget"):
        raise RuntimeError(
            "winget not found. Please install App Installer from Microsoft Store"
        )
    print("✅ winget found")

    installed: list[str] = []
    for package_id, name in _WINGET_PACKAGES:
        try:
            if winget_install(package_id, name):
                installed.append(name)
        except RuntimeError as exc:
            raise RuntimeError(f"failed to install {name}: {exc}") from exc
    return installed


def winget_install(package_id: str, name: str) -> bool:
    """Install ``package_id`` with winget unless listed; return True if it was installed."""
    try:
        listed = subprocess.run(
            ["winget", "list", "--id", package_id, "--exact"],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            check=False,
        )
    except OSError:
        listed = None
    if listed is not None and listed.returncode == 0 and package_id in (listed.stdout or ""):
        print(f"✅ {name} already installed")
        return False

    print(f"📥 Installing {name} via winget...")
    failure = _execute(
        [
            "winget",
            "install",
            "--id",
            package_id,
            "--exact",
            "--silent",
            "--accept-source-agreements",
            "--accept-package-agreements",
        ]
    )
    if failure is not None:
        raise RuntimeError(f"winget install {package_id} failed: {failure}")
    print(f"✅ {name} installed")
    return True


def _install_linux_deps() -> list[str]:
    for manager, install_cmd in _LINUX_MANAGERS:
        if command_exists(manager):
            break
    else:
        raise RuntimeError("no supported package manager found (apt-get, yum, dnf, pacman)")

    print(f"✅ Using package manager: {manager}")

    installed: list[str] = []
    for pkg in _LINUX_PACKAGES:
        if command_exists(pkg):
            print(f"✅ {pkg} already installed")
            continue
        print(f"📥 Installing {pkg} via {manager}...")
        failure = _execute([*install_cmd, pkg])
        if failure is not None:
            raise RuntimeError(f"failed to install {pkg}: {failure}")
        print(f"✅ {pkg} installed")
        installed.append(pkg)

    if not command_exists("task"):
        print("📥 Installing task via go install...")
        failure = _execute(["go", "install", TASK_MODULE])
        if failure is not None:
            raise RuntimeError(f"failed to install task: {failure}")
        print("✅ task installed")
        installed.append("task")
    else:
        print("✅ task already installed")
    return installed