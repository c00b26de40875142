"""Detect whether the current process runs inside a chroot.

Exit status 0 means the process sees the real system root (or runs under
fakechroot), 1 means it is inside a chroot. When detection is impossible the
status is 2 unless ``--default-false`` or ``--default-true`` picks an answer.
"""

from __future__ import annotations

import logging
import os
from typing import Mapping, Optional, Sequence

from . import __version__
from ._runner import build_parser, configure_logging, usage_error
from .identity import Detection, IdentityProbe, select_probe

PROG = "ischroot"
FAKECHROOT_LIBRARY = "libfakechroot.so"

logger = logging.getLogger(__name__)

_EXIT_CODES = {"outside": 0, "inside": 1}
_UNDETERMINABLE = 2


def is_fakechroot(environ: Mapping[str, str]) -> bool:
    """fakechroot intercepts libc calls instead of using the kernel chroot."""

    return (
        environ.get("FAKECHROOT") == "true"
        and "FAKECHROOT_BASE" in environ
        and FAKECHROOT_LIBRARY in environ.get("LD_PRELOAD", "")
    )


def detect(environ: Optional[Mapping[str, str]] = None, probe: Optional[IdentityProbe] = None) -> Detection:
    environ = os.environ if environ is None else environ
    if is_fakechroot(environ):
        return Detection("outside", "fakechroot library is preloaded")

    probe = select_probe() if probe is None else probe
    detection = probe.probe()
    logger.debug("%s probe: %s (%s)", probe.name, detection.status, detection.detail)
    return detection


def exit_status(detection: Detection, default: Optional[bool] = None) -> int:
    """Map a detection onto the exit status.

    ``default`` is the answer to give when the probe was inconclusive: True
    reports a chroot, False reports the real root, None keeps status 2.
    """

    if detection.status in _EXIT_CODES:
        return _EXIT_CODES[detection.status]
    if default is None:
        return _UNDETERMINABLE
    return 1 if default else 0


def build_ischroot_parser():
    parser = build_parser(
        PROG,
        "Detect if running in a chroot.",
        version=__version__,
        short_version="-V",
    )
    parser.add_argument(
        "-f",
        "--default-false",
        action="store_true",
        help="return false if detection fails",
    )
    parser.add_argument(
        "-t",
        "--default-true",
        action="store_true",
        help="return true if detection fails",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_ischroot_parser()
    args = parser.parse_args(argv)
    if args.default_false and args.default_true:
        usage_error(PROG, "Can't default to both true and false!")

    configure_logging()
    default = True if args.default_true else False if args.default_false else None
    raise SystemExit(exit_status(detect(), default))


if __name__ == "__main__":
    main()
