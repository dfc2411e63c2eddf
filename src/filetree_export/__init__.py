"""
FileTree Export - write an indented listing of one or more directory trees.

Entries matching the patterns in each root's ``.filetreeignore`` are left
out of the listing.
"""

__version__ = "0.1.0"

from .core import (
    DirectoryReadError,
    ExportResult,
    FileTreeError,
    OutputError,
    RootResult,
    TreeLine,
    WalkEvent,
    export_roots,
    is_ignored,
    walk,
)

__all__ = [
    "DirectoryReadError",
    "ExportResult",
    "FileTreeError",
    "OutputError",
    "RootResult",
    "TreeLine",
    "WalkEvent",
    "export_roots",
    "is_ignored",
    "walk",
]
