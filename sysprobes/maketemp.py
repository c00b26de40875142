"""Create a temporary file in a safe manner and print its name."""

from __future__ import annotations

import logging
import os
import re
import secrets
import string
import sys
import tempfile
from typing import Mapping, Optional, Sequence

from . import __version__
from ._runner import build_parser, configure_logging, fatal, usage_error

PROG = "tempfile"
DEFAULT_MODE = 0o600
DEFAULT_PREFIX = "file"
MAX_MODE = 0o7777
TOKEN_LENGTH = 6
TOKEN_ALPHABET = string.ascii_letters + string.digits

_OCTAL = re.compile(r"\s*([+-]?)([0-7]+)")

logger = logging.getLogger(__name__)


class InvalidMode(ValueError):
    pass


class CreationError(OSError):
    """A filesystem failure other than a name collision in the retry loop."""

    def __init__(self, operation: str, path: str, cause: OSError) -> None:
        super().__init__(cause.errno, cause.strerror, path)
        self.operation = operation

    def __str__(self) -> str:
        return f"{self.operation} {self.filename}: {self.strerror}"


def parsemode(text: str) -> int:
    """Parse an octal permission string in the range 0..07777."""

    match = _OCTAL.fullmatch(text)
    if match is None:
        raise InvalidMode(text)
    sign, digits = match.groups()
    mode = int(digits, 8)
    if sign == "-":
        mode = -mode
    if mode < 0 or mode > MAX_MODE:
        raise InvalidMode(text)
    return mode


def resolve_directory(requested: Optional[str], environ: Optional[Mapping[str, str]] = None) -> str:
    """Pick the directory for a generated name.

    ``$TMPDIR`` wins when it is a directory, then ``requested``, then the
    platform temp location.
    """

    environ = os.environ if environ is None else environ
    for candidate in (environ.get("TMPDIR"), requested):
        if candidate and os.path.isdir(candidate):
            return candidate
    return tempfile.gettempdir()


def unique_token(length: int = TOKEN_LENGTH) -> str:
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


def candidate_path(directory: str, prefix: str = DEFAULT_PREFIX, suffix: str = "") -> str:
    return os.path.join(directory, f"{prefix}{unique_token()}{suffix}")


def create_exclusive(path: str, mode: int = DEFAULT_MODE) -> None:
    """Atomically create ``path``; raises FileExistsError if anything is there."""

    try:
        fd = os.open(path, os.O_RDWR | os.O_CREAT | os.O_EXCL, mode)
    except FileExistsError:
        raise
    except OSError as exc:
        raise CreationError("open", path, exc) from exc
    try:
        os.close(fd)
    except OSError as exc:
        raise CreationError("close", path, exc) from exc


def create_unique(
    directory: Optional[str] = None,
    prefix: Optional[str] = None,
    suffix: Optional[str] = None,
    name: Optional[str] = None,
    mode: int = DEFAULT_MODE,
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """Create a new empty file and return its path.

    With ``name`` the file is created exactly there and any failure, an
    existing file included, is fatal. Otherwise names are generated until one
    is claimed; collisions are retried without bound and every other error
    is fatal.
    """

    if name is not None:
        try:
            create_exclusive(name, mode)
        except FileExistsError as exc:
            raise CreationError("open", name, exc) from exc
        return name

    base = resolve_directory(directory, environ)
    prefix = DEFAULT_PREFIX if prefix is None else prefix
    suffix = suffix or ""
    while True:
        path = candidate_path(base, prefix, suffix)
        try:
            create_exclusive(path, mode)
        except FileExistsError:
            logger.debug("%s already exists, trying another name", path)
            continue
        return path


def _mode_arg(text: str) -> int:
    try:
        return parsemode(text)
    except InvalidMode:
        usage_error(PROG, f"Invalid mode `{text}'.  Mode must be octal.")


def build_tempfile_parser():
    parser = build_parser(
        PROG,
        "Create a temporary file in a safe manner.",
        version=__version__,
        short_help=False,
    )
    parser.add_argument("-d", "--directory", metavar="DIR", help="place temporary file in DIR")
    parser.add_argument(
        "-m",
        "--mode",
        metavar="MODE",
        type=_mode_arg,
        default=DEFAULT_MODE,
        help="open with MODE instead of 0600",
    )
    parser.add_argument("-n", "--name", metavar="FILE", help="use FILE instead of a generated name")
    parser.add_argument("-p", "--prefix", metavar="STRING", help="set temporary file's prefix to STRING")
    parser.add_argument("-s", "--suffix", metavar="STRING", help="set temporary file's suffix to STRING")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_tempfile_parser()
    args = parser.parse_args(argv)
    configure_logging()

    try:
        path = create_unique(
            directory=args.directory,
            prefix=args.prefix,
            suffix=args.suffix,
            name=args.name,
            mode=args.mode,
        )
    except CreationError as exc:
        fatal(PROG, str(exc))

    sys.stdout.write(path + "\n")
    raise SystemExit(0)


if __name__ == "__main__":
    main()
