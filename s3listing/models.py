"""
In-memory representation of an S3 prefix as folders and files.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterator, Optional, Union

SEPARATOR = '/'

# Top of the listed bucket. Every other folder path ends with SEPARATOR.
ROOT = ''


@dataclass(frozen=True)
class FileMetadata:
    """Metadata reported by the store for one object."""
    size: int = 0
    last_modified: Optional[Union[datetime, str]] = None
    content_type: Optional[str] = None
    cache_control: Optional[str] = None


def folder_name(path: str) -> str:
    """Last segment of a folder path, without its trailing separator."""
    if path == ROOT:
        return ROOT
    trimmed = path[:-1] if path.endswith(SEPARATOR) else path
    return trimmed[trimmed.rfind(SEPARATOR) + 1:]


def parent_path(path: str) -> str:
    """
    Path of the folder containing the folder at ``path``.

    Cuts the path after the separator preceding its own trailing one.
    Anything without such a separator lives directly under ROOT.
    """
    end = len(path) - 1 if path.endswith(SEPARATOR) else len(path)
    return path[:path.rfind(SEPARATOR, 0, end) + 1]


def normalize_key(key: str, is_folder: bool = False) -> str:
    """
    Drop empty segments from a key, so "/x.txt" becomes "x.txt" and
    "a//b/" becomes "a/b/". A folder with no segments left is ROOT.
    """
    segments = [segment for segment in key.split(SEPARATOR) if segment]
    if not is_folder:
        return SEPARATOR.join(segments)
    return SEPARATOR.join(segments) + SEPARATOR if segments else ROOT


def split_key(key: str):
    """Split an object key into (parent folder path, filename)."""
    pos = key.rfind(SEPARATOR)
    return key[:pos + 1], key[pos + 1:]


@dataclass
class File:
    """A single object listed under a folder."""
    path: str
    size: int = 0
    last_modified: Optional[Union[datetime, str]] = None
    content_type: Optional[str] = None
    cache_control: Optional[str] = None

    @property
    def filename(self) -> str:
        return split_key(self.path)[1]

    @classmethod
    def from_metadata(cls, key: str, metadata: Optional[FileMetadata] = None) -> 'File':
        if metadata is None:
            return cls(path=key)
        return cls(
            path=key,
            size=max(int(metadata.size or 0), 0),
            last_modified=metadata.last_modified,
            content_type=metadata.content_type,
            cache_control=metadata.cache_control,
        )


@dataclass
class Folder:
    """
    A folder node. Children are keyed by their full path and always
    come back sorted by that path.
    """
    path: str
    _subfolders: Dict[str, 'Folder'] = field(default_factory=dict, repr=False)
    _files: Dict[str, File] = field(default_factory=dict, repr=False)

    @property
    def name(self) -> str:
        return folder_name(self.path)

    @property
    def is_root(self) -> bool:
        return self.path == ROOT

    @property
    def subfolders(self) -> Dict[str, 'Folder']:
        return {path: self._subfolders[path] for path in sorted(self._subfolders)}

    @property
    def files(self) -> Dict[str, File]:
        return {path: self._files[path] for path in sorted(self._files)}

    def add_folder(self, folder: 'Folder') -> None:
        self._subfolders.setdefault(folder.path, folder)

    def add_file(self, file: File) -> bool:
        """Attach a file. Returns False if the key was already present."""
        if file.path in self._files:
            return False
        self._files[file.path] = file
        return True

    def iter_subfolders(self) -> Iterator['Folder']:
        for path in sorted(self._subfolders):
            yield self._subfolders[path]

    def iter_files(self) -> Iterator[File]:
        for path in sorted(self._files):
            yield self._files[path]
