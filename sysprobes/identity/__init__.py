"""Platform probes that decide whether the process root is the real system root."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Literal

Status = Literal["outside", "inside", "undeterminable"]


@dataclass(frozen=True)
class Detection:
    status: Status
    detail: str


class IdentityProbe:
    """Classify the containment state of the running process.

    Implementations never raise for missing evidence: a probe that cannot
    gather what it needs reports ``undeterminable`` and leaves the decision to
    the caller's fallback.
    """

    name = "identity"

    def probe(self) -> Detection:
        raise NotImplementedError


class UnsupportedProbe(IdentityProbe):
    name = "unsupported"

    def __init__(self, platform: str = sys.platform) -> None:
        self.platform = platform

    def probe(self) -> Detection:
        return Detection("undeterminable", f"No chroot detection strategy for platform '{self.platform}'")


def select_probe(platform: str = sys.platform) -> IdentityProbe:
    """Pick the IdentityProbe implementation for ``platform``."""

    if platform.startswith("linux"):
        from .linux import LinuxRootProbe

        return LinuxRootProbe()
    if platform.startswith(("freebsd", "gnukfreebsd")):
        from .freebsd import FreeBSDJailProbe

        return FreeBSDJailProbe()
    if platform.startswith("gnu"):
        from .hurd import HurdDeviceProbe

        return HurdDeviceProbe()
    return UnsupportedProbe(platform)


__all__ = ["Detection", "IdentityProbe", "Status", "UnsupportedProbe", "select_probe"]
