"""
``KEY=value`` response envelope written by the CLI.

Success goes to stdout as::

    STATUS=SUCCESS
    RESULT=<value>

Failure goes to stderr as::

    STATUS=ERROR
    ERROR_TYPE=<exception class name>
    ERROR_MESSAGE=<message>
"""

from __future__ import annotations

__all__ = [
    "RESPONSE_KEYS",
    "STATUS_ERROR",
    "STATUS_SUCCESS",
    "format_error",
    "format_result",
    "parse_envelope",
]

import re

from ...errors import ArgumentError

STATUS_SUCCESS = "SUCCESS"
STATUS_ERROR = "ERROR"

# Envelope key -> parsed dict key
RESPONSE_KEYS: dict[str, str] = {
    "STATUS": "status",
    "RESULT": "result",
    "ERROR_TYPE": "error_type",
    "ERROR_MESSAGE": "error_message",
}

_LINE_RE = re.compile(r"^([A-Za-z_]+)=(.+)$")


def _one_line(text: str) -> str:
    return " ".join(text.splitlines())


def format_result(result: str) -> str:
    return f"STATUS={STATUS_SUCCESS}\nRESULT={_one_line(result)}"


def format_error(error: BaseException) -> str:
    message = _one_line(str(error)) or type(error).__name__
    return f"STATUS={STATUS_ERROR}\nERROR_TYPE={type(error).__name__}\nERROR_MESSAGE={message}"


def parse_envelope(text: str) -> dict[str, str | None]:
    """Parse an envelope back into a dict.

    Every known key is present in the result, None when absent.

    Raises:
        ArgumentError: On a malformed line or an unknown key.
    """
    parsed: dict[str, str | None] = dict.fromkeys(RESPONSE_KEYS.values())
    for line in text.splitlines():
        if not line:
            continue
        m = _LINE_RE.match(line)
        if m is None:
            raise ArgumentError(f"Could not parse response line: {line!r}")
        key, value = m.groups()
        if key not in RESPONSE_KEYS:
            raise ArgumentError(f"Unsupported response key {key!r}")
        parsed[RESPONSE_KEYS[key]] = value
    return parsed
