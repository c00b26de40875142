"""GNU/Hurd chroot detection via the device number of ``/``."""

from __future__ import annotations

import logging
import os

from . import Detection, IdentityProbe

logger = logging.getLogger(__name__)

# The first mounted filesystem always gets device number 3, and a chroot on
# the Hurd has to live on a different filesystem.
BOOT_DEVICE = 3


class HurdDeviceProbe(IdentityProbe):
    name = "hurd"

    def __init__(self, root: str = "/", boot_device: int = BOOT_DEVICE) -> None:
        self.root = root
        self.boot_device = boot_device

    def probe(self) -> Detection:
        try:
            device = os.stat(self.root).st_dev
        except OSError as exc:
            return Detection("undeterminable", f"Cannot stat '{self.root}': {exc.strerror}")

        logger.debug("%s is on device %s", self.root, device)
        if device == self.boot_device:
            return Detection("outside", f"'{self.root}' is on the boot device {device}")
        return Detection("inside", f"'{self.root}' is on device {device}, not {self.boot_device}")
