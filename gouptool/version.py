"""Reporting the tool's version and whether a newer release exists."""

from __future__ import annotations

import shutil
import subprocess

from . import report
from .architecture import BINARY_NAME, FULL_REPO_NAME, GITHUB_BASE, GOARCH, GOOS
from .release import normalize_version
from .results import COMMAND_STATUS, COMMAND_VERSION, StatusResult, VersionResult

VERSION = "dev"


def show_version() -> VersionResult:
    """Print the version report and return it."""
    result = VersionResult(
        version=VERSION,
        os=GOOS,
        arch=GOARCH,
        location=shutil.which(BINARY_NAME) or "",
    )
    report.ok(COMMAND_VERSION, result)
    return result


def show_status() -> StatusResult:
    """Print whether the tool is installed and up to date, and return the report."""
    result = StatusResult()
    location = shutil.which(BINARY_NAME)
    if location is not None:
        result.installed = True
        result.current_version = normalize_version(VERSION)
        result.location = location
        try:
            latest = latest_version(FULL_REPO_NAME)
        except (OSError, RuntimeError):
            latest = ""
        if latest:
            result.latest_version = latest
            result.update_available = result.current_version != latest
    report.ok(COMMAND_STATUS, result)
    return result


def latest_tag(ls_remote_output: str) -> str:
    """Pick the last ``v``-prefixed dotted tag from ``git ls-remote --tags`` output."""
    latest = ""
    for line in ls_remote_output.split("\n"):
        parts = line.split()
        if len(parts) < 2:
            continue
        ref = parts[1].rstrip("/")
        tag = ref.rsplit("/", 1)[-1] if ref else "/"
        if tag.startswith("v") and "." in tag:
            latest = tag
    return latest


def latest_version(repo: str) -> str:
    """Return the newest release tag of ``repo`` as listed by git."""
    try:
        completed = subprocess.run(
            ["git", "ls-remote", "--tags", "--refs", f"{GITHUB_BASE}/{repo}.git"],
            capture_output=True,
            text=True,
            check=True,
        )
    except subprocess.CalledProcessError as exc:
        raise RuntimeError(f"git ls-remote failed: exit status {exc.returncode}") from exc
    return latest_tag(completed.stdout)