"""Common helpers for the sysprobes command-line tools."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Mapping, NoReturn, Optional, Sequence

from .env_flags import log_level

_LOGGER_NAME = "sysprobes"
_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(environ: Optional[Mapping[str, str]] = None) -> logging.Logger:
    """Attach a single stderr handler to the package logger."""

    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(log_level(os.environ if environ is None else environ))
    if getattr(logger, "_configured", False):
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    logger._configured = True
    return logger


def help_hint(prog: str) -> str:
    return f"Try `{prog} --help' for more information."


def usage_error(prog: str, message: Optional[str] = None) -> NoReturn:
    """Report a malformed or conflicting command line and exit with status 1."""

    if message:
        print(message, file=sys.stderr)
    print(help_hint(prog), file=sys.stderr)
    raise SystemExit(1)


def fatal(prog: str, message: str) -> NoReturn:
    """Report an unrecoverable runtime failure and exit with status 1."""

    print(f"{prog}: {message}", file=sys.stderr)
    raise SystemExit(1)


class ProbeParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors with exit status 1."""

    def error(self, message: str) -> NoReturn:
        usage_error(self.prog, f"{self.prog}: {message}")


def build_parser(
    prog: str,
    description: str,
    *,
    version: str,
    short_help: bool = True,
    short_version: Optional[str] = None,
) -> ProbeParser:
    """Expose the common CLI contract (help and version flags)."""

    parser = ProbeParser(prog=prog, description=description, add_help=False)
    help_flags: Sequence[str] = ("-h", "--help") if short_help else ("--help",)
    parser.add_argument(*help_flags, action="help", help="display this help and exit")
    version_flags = (short_version, "--version") if short_version else ("--version",)
    parser.add_argument(
        *version_flags,
        action="version",
        version=f"{prog} {version}",
        help="output version information and exit",
    )
    return parser
