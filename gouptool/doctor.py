"""Checking the tool's installation and the tools it depends on."""

from __future__ import annotations

import os
import stat
import subprocess

from . import report
from .architecture import BINARY_NAME, FULL_REPO_NAME, GITHUB_BASE, GOOS, MACOS_BOOTSTRAP_SCRIPT
from .results import COMMAND_DOCTOR, DependencyInfo, DoctorResult, InstallationInfo

TASK_MODULE = "github.com/go-task/task/v3/cmd/task@latest"


def doctor() -> DoctorResult:
    """Inspect installations and dependencies, print the JSON report and return it."""
    result = DoctorResult()

    installations = find_all_installations()
    if not installations:
        result.issues.append(f"{BINARY_NAME} not found in PATH")
        result.suggestions.append(
            f"Run: curl -sSL {GITHUB_BASE}/{FULL_REPO_NAME}/releases/latest/download/"
            f"{MACOS_BOOTSTRAP_SCRIPT} | bash"
        )
    else:
        result.installations = [
            InstallationInfo(path=path, active=index == 0, shadowed=index > 0)
            for index, path in enumerate(installations)
        ]
        if len(installations) > 1:
            result.issues.append(f"Multiple {BINARY_NAME} installations found")
            result.suggestions.extend(f"Remove: {path}" for path in installations[1:])

    if GOOS == "darwin":
        result.dependencies.append(check_dep("Homebrew", "brew", "--version"))
    elif GOOS == "windows":
        result.dependencies.append(check_dep("winget", "winget", "--version"))

    checks = (
        ("git", ("--version",), "Install git"),
        ("go", ("version",), "Install go"),
        ("task", ("--version",), f"Install task: go install {TASK_MODULE}"),
    )
    for name, args, suggestion in checks:
        dep = check_dep(name, name, *args)
        result.dependencies.append(dep)
        if not dep.installed:
            result.issues.append(f"{name} not installed")
            result.suggestions.append(suggestion)

    report.ok(COMMAND_DOCTOR, result)
    return result


def check_dep(name: str, command: str, *args: str) -> DependencyInfo:
    """Run ``command`` and record whether it worked and the first line it printed."""
    dep = DependencyInfo(name=name, installed=False)
    try:
        completed = subprocess.run(
            [command, *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            check=False,
        )
    except OSError:
        return dep
    if completed.returncode == 0:
        dep.installed = True
        dep.version = (completed.stdout or "").split("\n")[0].strip()
    return dep


def find_all_installations() -> list[str]:
    """Return every executable copy of the tool on the search path, in path order."""
    path_env = os.environ.get("PATH", "")
    if not path_env:
        return []
    found = []
    for directory in path_env.split(os.pathsep):
        candidate = os.path.join(directory, BINARY_NAME)
        try:
            info = os.stat(candidate)
        except OSError:
            continue
        if stat.S_ISDIR(info.st_mode):
            continue
        if info.st_mode & 0o111:
            found.append(candidate)
    return found


def check_command(name: str, *args: str) -> None:
    """Run ``name`` quietly; raise if it cannot start or exits with an error."""
    subprocess.run(
        [name, *args],
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        check=True,
    )