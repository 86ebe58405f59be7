"""
Command-line interface for pdfsig.

Usage::

    pdfsig <command> [--flag value ...]

Flags may appear in any order.  Results and failures are reported in the
``KEY=value`` envelope (see :mod:`.envelope`); the exit status is always 0
so callers read the envelope rather than the status.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable, Sequence
from typing import NoReturn

from ...config import get_log_level
from ...core.types import CertificationLevel
from ...errors import ArgumentError, PdfSigError
from .commands import (
    cmd_digest,
    cmd_help,
    cmd_ltv,
    cmd_placeholder,
    cmd_sign,
    cmd_verify,
    cmd_version,
)
from .envelope import format_error, format_result

__all__ = ["build_parser", "main", "run"]

_logger = logging.getLogger(__name__)

Handler = Callable[[argparse.Namespace], str]

COMMANDS: dict[str, Handler] = {
    "help": cmd_help,
    "version": cmd_version,
    "--version": cmd_version,
    "-v": cmd_version,
    "placeholder": cmd_placeholder,
    "digest": cmd_digest,
    "sign": cmd_sign,
    "ltv": cmd_ltv,
    "verify": cmd_verify,
}


class _Parser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of printing usage and exiting."""

    def error(self, message: str) -> NoReturn:
        raise ArgumentError(message)


def _certlevel(value: str) -> CertificationLevel:
    return CertificationLevel.from_value(value)


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(prog="pdfsig", add_help=False, allow_abbrev=False)
    parser.add_argument("--file", "--buffer", dest="file")
    parser.add_argument("--out")
    parser.add_argument("--password")
    parser.add_argument("--estimatedsize", type=int)
    parser.add_argument("--certlevel", type=_certlevel, default=CertificationLevel.NOT_CERTIFIED)
    parser.add_argument("--reason")
    parser.add_argument("--location")
    parser.add_argument("--contact")
    parser.add_argument("--date")
    parser.add_argument("--algorithm")
    parser.add_argument("--signature")
    parser.add_argument("--crl", action="append", default=[])
    parser.add_argument("--ocsp", action="append", default=[])
    return parser


def _setup_logging() -> None:
    logging.basicConfig(
        level=get_log_level(),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def run(argv: Sequence[str]) -> tuple[str, bool]:
    """Execute one command.

    Returns:
        (output text, True if it went to stdout / False for stderr).
    """
    command = argv[0] if argv else "help"
    handler = COMMANDS.get(command, cmd_help)
    try:
        args = build_parser().parse_args(list(argv[1:]))
        result = handler(args)
    except PdfSigError as e:
        _logger.debug("Command %s failed", command, exc_info=True)
        return format_error(e), False
    # help and version print raw text instead of the envelope
    if handler in (cmd_help, cmd_version):
        return result, True
    return format_result(result), True


def main(argv: Sequence[str] | None = None) -> None:
    _setup_logging()
    output, ok = run(sys.argv[1:] if argv is None else argv)
    print(output, file=sys.stdout if ok else sys.stderr)


if __name__ == "__main__":
    main()
