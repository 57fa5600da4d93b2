"""Infrastructure layer for rootfs."""
from .exceptions import (
    InfrastructureError,
    FilesystemError,
    IOErrorKind,
)

__all__ = [
    'InfrastructureError',
    'FilesystemError',
    'IOErrorKind',
]
