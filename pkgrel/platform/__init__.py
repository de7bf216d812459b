"""Platform abstraction layer."""

from .files import FileOps, LocalFileOps, atomic_write_text
from .process import CommandRunner, ProcessError, run, run_silent

__all__ = [
    # files
    "FileOps",
    "LocalFileOps",
    "atomic_write_text",
    # process
    "CommandRunner",
    "ProcessError",
    "run",
    "run_silent",
]
