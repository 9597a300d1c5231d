"""Tagging releases and checking whether a published release is ready."""

from __future__ import annotations

import json
import re
import subprocess
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from . import report
from .architecture import FULL_REPO_NAME, GITHUB_API_BASE, GITHUB_BASE
from .results import COMMAND_RELEASE, EXIT_SUCCESS, BaseResult, ReleaseResult, Status

COMMAND_CHECK_RELEASE = "self check-release"
DEFAULT_VERSION = "v1.0.0"
CHECK_TIMEOUT = 10  # seconds

_BUMP_TYPES = ("patch", "minor", "major")
_VERSION_RE = re.compile(r"v[0-9]+\.[0-9]+\.[0-9]+")
_INT_RE = re.compile(r"[+-]?[0-9]+")
_RFC3339_RE = re.compile(
    r"([0-9]{4})-([0-9]{2})-([0-9]{2})[Tt]([0-9]{2}):([0-9]{2}):([0-9]{2})"
    r"(?:\.[0-9]+)?([Zz]|[+-][0-9]{2}:[0-9]{2})"
)
_ZERO_TIME = "0001-01-01T00:00:00Z"


@dataclass
class CheckReleaseResult:
    """What is known about a release tag on the hosting service."""

    tag: str = ""
    exists: bool = False
    published: bool = False
    published_at: str = ""
    assets: list[str] = field(default_factory=list)
    release_url: str = ""
    workflow_url: str = ""
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the result as a JSON-ready dictionary."""
        payload: dict[str, Any] = {"tag": self.tag, "exists": self.exists, "published": self.published}
        if self.published_at:
            payload["published_at"] = self.published_at
        if self.assets:
            payload["assets"] = list(self.assets)
        if self.release_url:
            payload["release_url"] = self.release_url
        payload["workflow_url"] = self.workflow_url
        payload["message"] = self.message
        return payload

    def to_base_result(self, command: str) -> BaseResult:
        return BaseResult(
            command=command, status=Status.OK, exit_code=EXIT_SUCCESS, data=self.to_dict()
        )


def _atoi(text: str) -> int:
    return int(text) if _INT_RE.fullmatch(text) else 0


def bump_version(current: str, bump_type: str) -> str:
    """Increment the major, minor or patch number of ``current``."""
    parts = current.removeprefix("v").split(".")
    if len(parts) != 3:
        return DEFAULT_VERSION
    major, minor, patch = (_atoi(part) for part in parts)
    if bump_type == "major":
        major, minor, patch = major + 1, 0, 0
    elif bump_type == "minor":
        minor, patch = minor + 1, 0
    elif bump_type == "patch":
        patch += 1
    return f"v{major}.{minor}.{patch}"


def normalize_version(version: str) -> str:
    """Resolve patch/minor/major against the latest git tag and add a ``v`` prefix."""
    if version in _BUMP_TYPES:
        try:
            described = subprocess.run(
                ["git", "describe", "--tags", "--abbrev=0"],
                capture_output=True,
                text=True,
                check=True,
            )
        except (OSError, subprocess.CalledProcessError):
            return DEFAULT_VERSION
        return bump_version(described.stdout.strip(), version)
    if not version.startswith("v"):
        return "v" + version
    return version


def validate_version(version: str) -> None:
    """Raise ValueError unless ``version`` looks like v1.2.3."""
    if not _VERSION_RE.fullmatch(version):
        raise ValueError(
            f"invalid version format: {version} (use v1.2.3, patch, minor, or major)"
        )


def _git(*args: str) -> str | None:
    """Run git quietly; return None on success or a description of the failure."""
    try:
        completed = subprocess.run(
            ["git", *args],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=False,
        )
    except OSError as exc:
        return str(exc)
    if completed.returncode != 0:
        return f"exit status {completed.returncode}"
    return None


def release(version: str) -> None:
    """Tag the current commit and push the tag, printing a JSON report."""

    def perform() -> ReleaseResult:
        result = ReleaseResult()
        normalized = normalize_version(version)
        validate_version(normalized)
        result.version = normalized

        if _git("diff-index", "--quiet", "HEAD", "--") is not None:
            raise RuntimeError("working directory is not clean. Please commit changes first")

        failure = _git("tag", "-a", normalized, "-m", f"Release {normalized}")
        if failure is not None:
            raise RuntimeError(f"failed to create tag: {failure}")
        result.tagged = True

        failure = _git("push", "origin", normalized)
        if failure is not None:
            raise RuntimeError(f"failed to push tag: {failure}")
        result.pushed = True
        return result

    report.run(COMMAND_RELEASE, perform)


def _format_published(raw: Any) -> str:
    if raw is None:
        return _ZERO_TIME
    if not isinstance(raw, str):
        raise ValueError("published_at must be a string")
    match = _RFC3339_RE.fullmatch(raw)
    if match is None:
        raise ValueError(f"cannot parse {raw!r} as a timestamp")
    year, month, day, hour, minute, second, zone = match.groups()
    if zone in ("Z", "z"):
        offset = timedelta(0)
    else:
        sign = 1 if zone[0] == "+" else -1
        offset = sign * timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6]))
    moment = datetime(
        int(year), int(month), int(day), int(hour), int(minute), int(second),
        tzinfo=timezone(offset),
    )
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    if not offset:
        return text + "Z"
    return text + zone


def _parse_release(body: bytes) -> tuple[str, str, list[str]]:
    payload = json.loads(body)
    if not isinstance(payload, dict):
        raise ValueError("release info must be a JSON object")
    published_at = _format_published(payload.get("published_at"))
    html_url = payload.get("html_url") or ""
    if not isinstance(html_url, str):
        raise ValueError("html_url must be a string")
    raw_assets = payload.get("assets") or []
    if not isinstance(raw_assets, list):
        raise ValueError("assets must be a list")
    names = []
    for asset in raw_assets:
        if not isinstance(asset, dict):
            raise ValueError("each asset must be a JSON object")
        name = asset.get("name") or ""
        if not isinstance(name, str):
            raise ValueError("asset name must be a string")
        names.append(name)
    return published_at, html_url, names


def _inspect_release(tag: str) -> CheckReleaseResult:
    result = CheckReleaseResult(
        tag=tag, workflow_url=f"{GITHUB_BASE}/{FULL_REPO_NAME}/actions"
    )
    url = f"{GITHUB_API_BASE}/repos/{FULL_REPO_NAME}/releases/tags/{tag}"
    not_found = f"Release {tag} not found - workflow may still be running"

    try:
        with urllib.request.urlopen(url, timeout=CHECK_TIMEOUT) as response:
            status = response.status
            body = response.read() if status == 200 else b""
    except urllib.error.HTTPError as exc:
        exc.close()
        status, body = exc.code, b""
    except (OSError, ValueError) as exc:
        result.message = f"Failed to check release: {exc}"
        return result

    if status == 404:
        result.message = not_found
        return result
    if status != 200:
        result.message = f"GitHub API returned status {status}"
        return result

    try:
        published_at, html_url, assets = _parse_release(body)
    except ValueError as exc:
        result.message = f"Failed to parse release info: {exc}"
        return result

    result.exists = True
    result.published = True
    result.published_at = published_at
    result.release_url = html_url
    result.assets = assets
    if not assets:
        result.message = "Release exists but has no assets yet - workflow may still be building"
    else:
        result.message = f"Release is ready with {len(assets)} assets"
    return result


def check_release(tag: str) -> CheckReleaseResult:
    """Look up release ``tag``, print a JSON report and return the findings."""
    result = _inspect_release(tag)
    report.ok(COMMAND_CHECK_RELEASE, result)
    return result