"""Filesystem infrastructure module."""
from .directory_manager import DirectoryManager
from .existence_probe import ExistenceProbe
from .file_reader import FileReader
from .file_writer import FileWriter
from .path_sandbox import PathSandbox

__all__ = [
    'DirectoryManager',
    'ExistenceProbe',
    'FileReader',
    'FileWriter',
    'PathSandbox',
]
