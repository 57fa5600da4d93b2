"""Application services.

This module contains services that orchestrate filesystem operations
by combining Core and Infrastructure components.
"""

from rootfs.application.services.base import ServiceBase
from rootfs.application.services.filesystem_service import FilesystemService

__all__ = [
    "ServiceBase",
    "FilesystemService",
]
