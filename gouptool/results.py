"""Structured JSON results reported by the self-management commands."""

from __future__ import annotations

import dataclasses
import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, ClassVar

JSON_SCHEMA_VERSION = "1"

ERROR_TYPE_EXECUTION = "execution_error"
ERROR_TYPE_PANIC = "panic"

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_PANIC = 2

COMMAND_VERSION = "self version"
COMMAND_STATUS = "self status"
COMMAND_DOCTOR = "self doctor"
COMMAND_BUILD = "self build"
COMMAND_SETUP = "self setup"
COMMAND_UNINSTALL = "self uninstall"
COMMAND_TEST = "self test"
COMMAND_UPGRADE = "self upgrade"
COMMAND_RELEASE = "self release"


class Status(str, Enum):
    """Overall outcome of a command."""

    OK = "ok"
    WARNING = "warning"
    ERROR = "error"


_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_TIMESTAMP_RE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})"
    r"(?:\.(\d+))?(Z|z|[+-]\d{2}:\d{2})$"
)

# Characters the result encoder escapes inside JSON strings.
_JSON_ESCAPES = (
    ("&", "\\u0026"),
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)


def _format_timestamp(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset() or timedelta(0)
    if not offset:
        return text + "Z"
    sign = "+" if offset >= timedelta(0) else "-"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def _parse_timestamp(text: str) -> datetime:
    match = _TIMESTAMP_RE.match(text)
    if match is None:
        raise ValueError(f"invalid timestamp: {text!r}")
    year, month, day, hour, minute, second, fraction, zone = match.groups()
    micro = int((fraction or "")[:6].ljust(6, "0"))
    if zone in ("Z", "z"):
        tz = timezone.utc
    else:
        sign = 1 if zone[0] == "+" else -1
        hours, mins = int(zone[1:3]), int(zone[4:6])
        tz = timezone(sign * timedelta(hours=hours, minutes=mins))
    return datetime(
        int(year), int(month), int(day), int(hour), int(minute), int(second), micro, tzinfo=tz
    )


def _encode_json(document: Any) -> str:
    text = json.dumps(document, indent=2, ensure_ascii=False)
    for char, escape in _JSON_ESCAPES:
        text = text.replace(char, escape)
    return text


def _plain(value: Any) -> Any:
    if isinstance(value, _ResultData):
        return value._as_dict()
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value


@dataclass
class ErrorInfo:
    """Details of a failed command."""

    message: str
    type: str = ""
    details: str = ""

    def _as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"message": self.message}
        if self.type:
            payload["type"] = self.type
        if self.details:
            payload["details"] = self.details
        return payload

    @classmethod
    def _from_dict(cls, payload: Any) -> ErrorInfo:
        if not isinstance(payload, dict):
            raise ValueError("error information must be a JSON object")
        return cls(
            message=payload.get("message") or "",
            type=payload.get("type") or "",
            details=payload.get("details") or "",
        )


@dataclass
class BaseResult:
    """The envelope every command prints."""

    command: str
    status: Status = Status.OK
    exit_code: int = EXIT_SUCCESS
    data: Any = None
    error: ErrorInfo | None = None
    version: str = JSON_SCHEMA_VERSION
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        """Return the envelope as a JSON-ready dictionary."""
        payload: dict[str, Any] = {
            "command": self.command,
            "version": self.version,
            "timestamp": _format_timestamp(self.timestamp),
            "status": Status(self.status).value,
            "exit_code": self.exit_code,
        }
        if self.data is not None:
            payload["data"] = self.data
        if self.error is not None:
            payload["error"] = self.error._as_dict()
        return payload

    def to_json(self) -> str:
        """Return the envelope as indented JSON text."""
        return _encode_json(self.to_dict())

    @classmethod
    def from_json(cls, text: str) -> BaseResult:
        """Parse an envelope from JSON text."""
        payload = json.loads(text)
        if not isinstance(payload, dict):
            raise ValueError("result must be a JSON object")
        raw_time = payload.get("timestamp")
        raw_error = payload.get("error")
        return cls(
            command=payload.get("command") or "",
            version=payload.get("version") or "",
            timestamp=_parse_timestamp(raw_time) if raw_time else _ZERO_TIME,
            status=Status(payload.get("status") or Status.OK.value),
            exit_code=payload.get("exit_code") or EXIT_SUCCESS,
            data=payload.get("data"),
            error=ErrorInfo._from_dict(raw_error) if raw_error is not None else None,
        )

    def parse_data(self, result_type: type) -> Any:
        """Decode the data payload as an instance of ``result_type``."""
        if self.data is None:
            raise ValueError("no data in response")
        return result_type._from_dict(self.data)


class _ResultData:
    """Shared JSON handling for the command result records."""

    _OMIT_EMPTY: ClassVar[frozenset[str]] = frozenset()

    def _as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for spec in dataclasses.fields(self):  # type: ignore[arg-type]
            value = _plain(getattr(self, spec.name))
            if spec.name in self._OMIT_EMPTY and not value:
                continue
            payload[spec.name] = value
        return payload

    @classmethod
    def _from_dict(cls, payload: Any) -> Any:
        if not isinstance(payload, dict):
            raise ValueError(f"{cls.__name__} data must be a JSON object")
        values = {
            spec.name: cls._convert(spec.name, payload[spec.name])
            for spec in dataclasses.fields(cls)  # type: ignore[arg-type]
            if payload.get(spec.name) is not None
        }
        return cls(**values)

    @classmethod
    def _convert(cls, name: str, raw: Any) -> Any:
        return raw

    def _base_result(self, command: str, status: Status, exit_code: int) -> BaseResult:
        return BaseResult(
            command=command, status=status, exit_code=exit_code, data=self._as_dict()
        )


@dataclass
class VersionResult(_ResultData):
    """Output of the version command."""

    _OMIT_EMPTY: ClassVar[frozenset[str]] = frozenset({"location"})

    version: str = ""
    os: str = ""
    arch: str = ""
    location: str = ""

    def to_base_result(self, command: str) -> BaseResult:
        return self._base_result(command, Status.OK, EXIT_SUCCESS)


@dataclass
class StatusResult(_ResultData):
    """Output of the status command."""

    _OMIT_EMPTY: ClassVar[frozenset[str]] = frozenset(
        {"current_version", "latest_version", "location"}
    )

    installed: bool = False
    current_version: str = ""
    latest_version: str = ""
    update_available: bool = False
    location: str = ""

    def to_base_result(self, command: str) -> BaseResult:
        status = Status.OK if self.installed else Status.WARNING
        return self._base_result(command, status, EXIT_SUCCESS)


@dataclass
class InstallationInfo(_ResultData):
    """One installed copy of the tool found on the search path."""

    path: str = ""
    active: bool = False
    shadowed: bool = False


@dataclass
class DependencyInfo(_ResultData):
    """An external tool and the version it reported."""

    _OMIT_EMPTY: ClassVar[frozenset[str]] = frozenset({"version"})

    name: str = ""
    installed: bool = False
    version: str = ""


@dataclass
class DoctorResult(_ResultData):
    """Output of the doctor command."""

    _OMIT_EMPTY: ClassVar[frozenset[str]] = frozenset({"issues", "suggestions"})

    installations: list[InstallationInfo] = field(default_factory=list)
    dependencies: list[DependencyInfo] = field(default_factory=list)
    issues: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    @classmethod
    def _convert(cls, name: str, raw: Any) -> Any:
        if name == "installations":
            return [InstallationInfo._from_dict(item) for item in raw]
        if name == "dependencies":
            return [DependencyInfo._from_dict(item) for item in raw]
        return list(raw)

    def to_base_result(self, command: str) -> BaseResult:
        status, exit_code = Status.OK, EXIT_SUCCESS
        if not self.installations:
            status, exit_code = Status.ERROR, EXIT_ERROR
        elif len(self.installations) > 1 or self.issues:
            status = Status.WARNING
        return self._base_result(command, status, exit_code)


@dataclass
class BuildResult(_ResultData):
    """Output of the build command."""

    _OMIT_EMPTY: ClassVar[frozenset[str]] = frozenset({"garble_installed"})

    binaries: list[str] = field(default_factory=list)
    scripts_generated: bool = False
    output_dir: str = ""
    local_mode: bool = False
    garble_installed: bool = False
    obfuscated: bool = False

    def to_base_result(self, command: str) -> BaseResult:
        return self._base_result(command, Status.OK, EXIT_SUCCESS)


@dataclass
class SetupResult(_ResultData):
    """Output of the setup command."""

    installed: bool = False
    location: str = ""
    in_path: bool = False
    dependencies_ok: bool = False

    def to_base_result(self, command: str) -> BaseResult:
        status = Status.OK if self.dependencies_ok else Status.WARNING
        return self._base_result(command, status, EXIT_SUCCESS)


@dataclass
class UninstallResult(_ResultData):
    """Output of the uninstall command."""

    _OMIT_EMPTY: ClassVar[frozenset[str]] = frozenset({"failed"})

    removed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    def to_base_result(self, command: str) -> BaseResult:
        status, exit_code = Status.OK, EXIT_SUCCESS
        if self.failed:
            status, exit_code = Status.WARNING, EXIT_ERROR
        if not self.removed and not self.failed:
            status = Status.WARNING
        return self._base_result(command, status, exit_code)


@dataclass
class SelfTestResult(_ResultData):
    """Output of the bootstrap self-test command."""

    _OMIT_EMPTY: ClassVar[frozenset[str]] = frozenset({"errors"})

    phase: str = ""
    passed: bool = False
    steps: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_base_result(self, command: str) -> BaseResult:
        if self.passed:
            return self._base_result(command, Status.OK, EXIT_SUCCESS)
        return self._base_result(command, Status.ERROR, EXIT_ERROR)


@dataclass
class UpgradeResult(_ResultData):
    """Output of the upgrade command."""

    _OMIT_EMPTY: ClassVar[frozenset[str]] = frozenset({"previous_version"})

    previous_version: str = ""
    new_version: str = ""
    downloaded: bool = False
    installed: bool = False
    location: str = ""

    def to_base_result(self, command: str) -> BaseResult:
        return self._base_result(command, Status.OK, EXIT_SUCCESS)


@dataclass
class ReleaseResult(_ResultData):
    """Output of the release command."""

    _OMIT_EMPTY: ClassVar[frozenset[str]] = frozenset({"binaries"})

    version: str = ""
    tests_passed: bool = False
    built: bool = False
    tagged: bool = False
    pushed: bool = False
    binaries: list[str] = field(default_factory=list)

    def to_base_result(self, command: str) -> BaseResult:
        return self._base_result(command, Status.OK, EXIT_SUCCESS)