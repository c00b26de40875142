"""Chroot detection and safe temporary file creation for shell scripts."""

__version__ = "5.21"
