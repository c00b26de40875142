"""Linux chroot detection via device/inode identity pairs."""

from __future__ import annotations

import logging
import os

from . import Detection, IdentityProbe

logger = logging.getLogger(__name__)

ROOT = "/"
# The init process always sees the real system root. Reading it needs root
# privileges or a mounted /proc.
INIT_ROOT = "/proc/1/root"


def identity_pair(path: str) -> tuple[int, int]:
    st = os.stat(path)
    return st.st_dev, st.st_ino


class LinuxRootProbe(IdentityProbe):
    name = "linux"

    def __init__(self, root: str = ROOT, reference: str = INIT_ROOT) -> None:
        self.root = root
        self.reference = reference

    def probe(self) -> Detection:
        try:
            ours = identity_pair(self.root)
            theirs = identity_pair(self.reference)
        except OSError as exc:
            logger.debug("stat failed: %s", exc)
            return Detection("undeterminable", f"Cannot stat '{exc.filename}': {exc.strerror}")

        logger.debug("%s=%s %s=%s", self.root, ours, self.reference, theirs)
        if ours == theirs:
            return Detection("outside", f"'{self.root}' matches '{self.reference}' {ours}")
        return Detection("inside", f"'{self.root}' {ours} differs from '{self.reference}' {theirs}")
