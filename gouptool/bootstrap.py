"""Settings for the bootstrap install scripts shipped with a release."""

from __future__ import annotations

import json
from dataclasses import dataclass, field

SETUP_COMMAND = "self setup"


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


@dataclass
class BootstrapConfig:
    """What a bootstrap script needs to know to fetch and set up the tool."""

    repo: str = ""
    supported_archs: str = ""
    macos_archs: list[str] = field(default_factory=list)
    windows_archs: list[str] = field(default_factory=list)
    local_bin_dir: str = ""
    use_local: bool = False
    setup_command: str = SETUP_COMMAND

    def validate(self) -> None:
        """Raise ValueError if a required setting is missing or wrong."""
        if not self.repo:
            raise ValueError("Repo is required")
        if not self.supported_archs:
            raise ValueError("SupportedArchs is required")
        if not self.macos_archs and not self.windows_archs:
            raise ValueError("at least one of MacOSArchs or WindowsArchs is required")
        if self.use_local and not self.local_bin_dir:
            raise ValueError("LocalBinDir is required when UseLocal is true")
        if self.setup_command != SETUP_COMMAND:
            raise ValueError(
                f"SetupCommand must be {_quote(SETUP_COMMAND)}, "
                f"got {_quote(self.setup_command)}"
            )


def archs_to_string(archs: list[str] | None) -> str:
    """Join architecture names with ", "; empty input gives an empty string."""
    if not archs:
        return ""
    return ", ".join(archs)