"""Preparing the icon assets and version string an MSIX package needs."""

from __future__ import annotations

import os
import re

from .bundle import copy_file

DEFAULT_MSIX_VERSION = ("1", "0", "0", "0")
MSIX_ASSETS = (
    "logo.png",
    "Square150x150Logo.png",
    "Square44x44Logo.png",
)

_NON_DIGITS = re.compile(r"[^0-9]")


def normalize_msix_version(version: str) -> str:
    """Return a four-part numeric version, filling missing parts from 1.0.0.0.

    Characters other than digits and dots are ignored, empty parts are
    skipped and parts beyond the fourth are dropped.
    """
    parsed = [
        digits
        for digits in (_NON_DIGITS.sub("", part) for part in version.split("."))
        if digits
    ]
    parts = list(DEFAULT_MSIX_VERSION)
    for index, value in enumerate(parsed[: len(parts)]):
        parts[index] = value
    return ".".join(parts)


def copy_assets(source_dir: str, dest_dir: str) -> list[str]:
    """Copy those required logo files that exist in ``source_dir``; return their names."""
    copied = []
    for asset in MSIX_ASSETS:
        src = os.path.join(source_dir, asset)
        if not os.path.exists(src):
            continue
        try:
            copy_file(src, os.path.join(dest_dir, asset))
        except OSError as exc:
            raise OSError(f"failed to copy {asset}: {exc}") from exc
        copied.append(asset)
    return copied


def generate_placeholder_assets(dest_dir: str) -> list[str]:
    """Create empty files for each required logo; return their paths."""
    created = []
    for asset in MSIX_ASSETS:
        path = os.path.join(dest_dir, asset)
        try:
            with open(path, "wb"):
                pass
        except OSError as exc:
            raise OSError(f"failed to create {asset}: {exc}") from exc
        created.append(path)
    print("  ⚠️  Using placeholder assets - provide real icons for production")
    return created