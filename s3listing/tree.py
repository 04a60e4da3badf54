"""
Rebuild a folder hierarchy from the flat key listing of an S3 prefix.

Keys are fed one at a time, in listing order, to a TreeBuilder. Folder
markers (keys ending in '/') and the parents of every file are
materialized together with all of their ancestors, so the resulting tree
never holds an orphan folder.
"""

import logging
from typing import Dict, Iterator, Optional

from .models import ROOT, SEPARATOR, File, FileMetadata, Folder, normalize_key, parent_path, split_key

logger = logging.getLogger(__name__)


class TreeBuilder:
    """Owns one folder tree, built from a single listing pass."""

    def __init__(self):
        self._folders: Dict[str, Folder] = {}
        self._file_count = 0
        self.ensure_folder(ROOT)

    @property
    def root(self) -> Folder:
        return self._folders[ROOT]

    @property
    def folder_count(self) -> int:
        return len(self._folders)

    @property
    def file_count(self) -> int:
        return self._file_count

    @property
    def folders(self) -> Dict[str, Folder]:
        """Every materialized folder, keyed and ordered by path."""
        return {path: self._folders[path] for path in sorted(self._folders)}

    def get(self, path: str) -> Optional[Folder]:
        return self._folders.get(path)

    def ingest(self, key: str, is_folder_marker: bool, metadata: Optional[FileMetadata] = None) -> None:
        """
        Register one listed entry.

        Args:
            key: Full object key
            is_folder_marker: True when the key denotes a folder rather than an object
            metadata: Size, timestamp and headers for file entries
        """
        key = normalize_key(key, is_folder_marker)
        if is_folder_marker:
            folder = self.ensure_folder(key)
            logger.debug(f"Adding folder {folder.path}")
            return

        folder_path, filename = split_key(key)
        folder = self.ensure_folder(folder_path)
        if folder.add_file(File.from_metadata(key, metadata)):
            self._file_count += 1
            logger.debug(f"Adding file   {key}")
        else:
            logger.debug(f"{key} already registered, ignoring")

    def ingest_entry(self, entry) -> None:
        """Register a ListedEntry as returned by the object store."""
        metadata = None
        if not entry.is_folder_marker:
            metadata = FileMetadata(size=entry.size or 0, last_modified=entry.last_modified)
        self.ingest(entry.key, entry.is_folder_marker, metadata)

    def ensure_folder(self, path: str) -> Folder:
        """
        Materialize the folder at ``path`` and any missing ancestors.

        Returns the already registered folder untouched when the path is
        known. ROOT is checked for before any parent is derived, which is
        what stops the recursion.
        """
        folder = self._folders.get(path)
        if folder is not None:
            return folder

        logger.debug(f"{path or '<root>'} does not exist in tree, adding it")
        folder = Folder(path)
        self._folders[path] = folder
        if path == ROOT:
            return folder

        parent = self.ensure_folder(parent_path(path))
        parent.add_folder(folder)
        return folder

    def walk(self, start: str = ROOT) -> Iterator[Folder]:
        """Depth-first, pre-order traversal in path order."""
        folder = self._folders.get(start)
        if folder is None:
            return
        stack = [folder]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(list(current.iter_subfolders())))

    def folders_under(self, prefix: str) -> Iterator[Folder]:
        """Folders at or below ``prefix``, in path order."""
        for path in sorted(self._folders):
            if prefix == ROOT or path.startswith(prefix):
                yield self._folders[path]

    def depth(self, folder: Folder, relative_to: str = ROOT) -> int:
        """Number of segments between ``relative_to`` and ``folder``."""
        return folder.path[len(relative_to):].count(SEPARATOR)
