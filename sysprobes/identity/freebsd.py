"""FreeBSD chroot detection via the process descriptor table.

The kernel reports a pseudo descriptor of type ``KF_FD_TYPE_JAIL`` for a
process whose root has been changed, so no privileges are needed. The table
comes from the ``kern.proc.filedesc.<pid>`` sysctl as a packed run of
``struct kinfo_file`` records, each starting with its own size.
"""

from __future__ import annotations

import ctypes
import ctypes.util
import logging
import os
import struct
from typing import Callable, Optional

from . import Detection, IdentityProbe

logger = logging.getLogger(__name__)

CTL_KERN = 1
KERN_PROC = 14
KERN_PROC_FILEDESC = 33
KF_FD_TYPE_JAIL = -3

# int kf_structsize; int kf_type; int kf_fd; ...
_KINFO_HEADER = struct.Struct("=iii")


def _load_libc() -> ctypes.CDLL:
    path = ctypes.util.find_library("c")
    if path is None:
        raise OSError("C library not found")
    return ctypes.CDLL(path, use_errno=True)


def read_filedesc(pid: int) -> bytes:
    """Return the raw ``kinfo_file`` table of ``pid``."""

    libc = _load_libc()
    mib = (ctypes.c_int * 4)(CTL_KERN, KERN_PROC, KERN_PROC_FILEDESC, pid)
    size = ctypes.c_size_t(0)
    if libc.sysctl(mib, 4, None, ctypes.byref(size), None, 0) != 0:
        errno = ctypes.get_errno()
        raise OSError(errno, os.strerror(errno), "sysctl")

    buf = ctypes.create_string_buffer(size.value)
    if libc.sysctl(mib, 4, buf, ctypes.byref(size), None, 0) != 0:
        errno = ctypes.get_errno()
        raise OSError(errno, os.strerror(errno), "sysctl")
    return buf.raw[: size.value]


def has_jail_descriptor(table: bytes) -> bool:
    offset = 0
    while offset + _KINFO_HEADER.size <= len(table):
        structsize, _kf_type, kf_fd = _KINFO_HEADER.unpack_from(table, offset)
        if kf_fd == KF_FD_TYPE_JAIL:
            return True
        if structsize <= 0:
            raise ValueError(f"corrupt kinfo_file record at offset {offset}")
        offset += structsize
    return False


class FreeBSDJailProbe(IdentityProbe):
    name = "freebsd"

    def __init__(
        self,
        pid: Optional[int] = None,
        reader: Callable[[int], bytes] = read_filedesc,
    ) -> None:
        self.pid = os.getpid() if pid is None else pid
        self.reader = reader

    def probe(self) -> Detection:
        try:
            table = self.reader(self.pid)
            jailed = has_jail_descriptor(table)
        except (OSError, ValueError) as exc:
            logger.debug("descriptor scan failed: %s", exc)
            return Detection("undeterminable", f"Cannot read descriptor table of pid {self.pid}: {exc}")

        if jailed:
            return Detection("inside", f"pid {self.pid} holds a jail root descriptor")
        return Detection("outside", f"pid {self.pid} has no jail root descriptor")
