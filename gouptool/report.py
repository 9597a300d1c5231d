"""Printing command results as JSON documents on standard output."""

from __future__ import annotations

import json
import sys
import traceback
from typing import Any, Callable

from .results import (
    ERROR_TYPE_EXECUTION,
    ERROR_TYPE_PANIC,
    EXIT_ERROR,
    EXIT_PANIC,
    EXIT_SUCCESS,
    JSON_SCHEMA_VERSION,
    BaseResult,
    ErrorInfo,
    Status,
)


def _print_json(base: BaseResult) -> None:
    try:
        text = base.to_json()
    except (TypeError, ValueError) as exc:
        sys.stdout.write(
            '{"command":"unknown","version":"%s","status":"%s","exit_code":%d,'
            '"error":{"message":"JSON encoding failed: %s"}}\n'
            % (JSON_SCHEMA_VERSION, Status.ERROR.value, EXIT_PANIC, exc)
        )
        sys.stdout.flush()
        raise SystemExit(EXIT_PANIC) from exc
    sys.stdout.write(text + "\n")
    sys.stdout.flush()


def _payload(data: Any) -> Any:
    """Turn ``data`` into a JSON value, or None when it cannot be encoded."""
    if hasattr(data, "to_base_result"):
        return data.to_base_result("").data
    try:
        json.dumps(data)
    except (TypeError, ValueError):
        return None
    return data


def print_result(result: Any, command: str) -> None:
    """Print a result record wrapped in its envelope."""
    _print_json(result.to_base_result(command))


def print_error(command: str, error: BaseException | str) -> None:
    """Print an error envelope and exit with the error code."""
    base = BaseResult(
        command=command,
        status=Status.ERROR,
        exit_code=EXIT_ERROR,
        error=ErrorInfo(message=str(error), type=ERROR_TYPE_EXECUTION),
    )
    _print_json(base)
    raise SystemExit(EXIT_ERROR)


def print_success(command: str, data: Any) -> None:
    """Print a successful envelope carrying ``data``."""
    _print_json(
        BaseResult(command=command, status=Status.OK, exit_code=EXIT_SUCCESS, data=_payload(data))
    )


def ok(command: str, data: Any) -> None:
    """Print ``data`` as a successful result of ``command``."""
    print_success(command, data)


def err(command: str, error: BaseException | str) -> None:
    """Print ``error`` as the failure of ``command`` and exit."""
    print_error(command, error)


def run(command: str, fn: Callable[[], Any]) -> None:
    """Call ``fn`` and print its return value, or the exception it raised."""
    try:
        result = fn()
    except Exception as exc:
        print_error(command, exc)
        return
    print_success(command, result)


def safe_execute(command: str, fn: Callable[[], BaseException | None]) -> None:
    """Call ``fn``, which returns an error or None; report crashes as panics.

    A returned exception is reported as an execution error. An exception
    raised by ``fn`` is reported with its traceback and exit code 2.
    """
    try:
        outcome = fn()
    except Exception as exc:
        base = BaseResult(
            command=command,
            status=Status.ERROR,
            exit_code=EXIT_PANIC,
            error=ErrorInfo(
                message=f"panic: {exc}",
                type=ERROR_TYPE_PANIC,
                details=traceback.format_exc(),
            ),
        )
        _print_json(base)
        raise SystemExit(EXIT_PANIC) from exc
    if outcome is not None:
        print_error(command, outcome)