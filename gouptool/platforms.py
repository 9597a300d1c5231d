"""Lists of supported target platforms and small directory helpers."""

from __future__ import annotations

import os

ICON_PLATFORMS = ["android", "ios", "macos", "windows", "windows-msix", "windows-ico"]
BUILD_PLATFORMS = ["macos", "android", "ios", "ios-simulator", "windows", "all"]


def validate_platform(platform: str, valid_platforms: list[str]) -> str:
    """Return ``platform`` if it is one of ``valid_platforms``; raise ValueError otherwise."""
    if platform not in valid_platforms:
        listing = "[" + " ".join(valid_platforms) + "]"
        raise ValueError(f"invalid platform: {platform}. Valid platforms: {listing}")
    return platform


def ensure_dir(path: str) -> None:
    """Create ``path`` and its parents if they do not exist."""
    os.makedirs(path, mode=0o755, exist_ok=True)


def ensure_dir_for_file(file_path: str) -> None:
    """Create the directory that will hold ``file_path``."""
    ensure_dir(os.path.dirname(file_path) or os.curdir)