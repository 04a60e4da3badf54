"""
HTML index generation for a single folder of the tree.

Rendering is a pure function of the folder and a RenderContext: nothing
is read from the clock or the network, and children are always visited in
path order, so the same tree always renders to the same bytes.
"""

from dataclasses import dataclass, field
from html import escape
from typing import FrozenSet, List
from urllib.parse import quote

from .models import ROOT, SEPARATOR, Folder

DECIMAL_PREFIXES = 'kMGTPE'
BINARY_PREFIXES = 'KMGTPE'


def humanize_bytes(num_bytes: int, decimal: bool = True) -> str:
    """
    Convert a byte count into a human readable string, e.g. 1000 -> '1.0 kB'.

    Args:
        num_bytes: The number to convert
        decimal: True for SI units (kB, MB), False for binary ones (KiB, MiB)
    """
    base = 1000 if decimal else 1024
    if num_bytes < base:
        return f"{num_bytes} B"

    # Integer search instead of log() so exact powers never round down.
    exponent = 0
    while exponent < len(DECIMAL_PREFIXES) and base ** (exponent + 1) <= num_bytes:
        exponent += 1

    letter = (DECIMAL_PREFIXES if decimal else BINARY_PREFIXES)[exponent - 1]
    unit = letter if decimal else letter + 'i'
    return f"{num_bytes / base ** exponent:.1f} {unit}B"


@dataclass(frozen=True)
class RenderContext:
    """Settings shared by every page rendered in one run."""
    root_path: str = ROOT
    index_filename: str = 'index.html'
    css_filename: str = 'index.css'
    folder_icon_filename: str = 'folder-icon.svg'
    parent_icon_filename: str = 'folder-up-icon.svg'
    favicon_filename: str = 'favicon.svg'
    asset_base: str = '/'
    title: str = 'Directory Listing'
    favicon_url: str = ''
    decimal_units: bool = True
    extra_reserved: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def reserved_names(self) -> FrozenSet[str]:
        """Filenames that belong to the listing itself and are never shown."""
        return frozenset({
            self.index_filename,
            self.css_filename,
            self.folder_icon_filename,
            self.parent_icon_filename,
            self.favicon_filename,
        }) | self.extra_reserved

    def asset_url(self, filename: str) -> str:
        base = self.asset_base
        if base and not base.endswith(SEPARATOR):
            base += SEPARATOR
        return base + filename


class IndexRenderer:
    """Renders the index document of one folder."""

    def render(self, folder: Folder, context: RenderContext) -> str:
        lines = self._head(folder, context)
        lines.extend([
            '<table id="list">',
            '  <thead>',
            '    <tr>',
            '      <th class="icon"></th>',
            '      <th class="name">Name</th>',
            '      <th class="size" colspan="2">Size</th>',
            '      <th class="last-modified">Last modified</th>',
            '    </tr>',
            '  </thead>',
            '  <tbody>',
        ])

        # Users may navigate up, but never past the configured root.
        if folder.path != context.root_path:
            lines.extend(self._row(
                '..', 'Parent Directory', context.asset_url(context.parent_icon_filename)))

        for child in folder.iter_subfolders():
            lines.extend(self._row(
                child.name, child.name, context.asset_url(context.folder_icon_filename)))

        reserved = context.reserved_names
        for file in folder.iter_files():
            if not file.filename or file.filename in reserved:
                continue
            value, _, unit = humanize_bytes(file.size, context.decimal_units).partition(' ')
            modified = '' if file.last_modified is None else str(file.last_modified)
            lines.extend(self._row(file.filename, file.filename, None, value, unit, modified))

        lines.extend([
            '  </tbody>',
            '</table>',
            '',
            '</body>',
            '',
            '</html>',
            '',
        ])
        return '\n'.join(lines)

    def _head(self, folder: Folder, context: RenderContext) -> List[str]:
        lines = [
            '<!DOCTYPE html>',
            '<html lang="en">',
            '',
            '<head>',
            '  <meta charset="utf-8">',
        ]
        favicon = context.favicon_url or context.asset_url(context.favicon_filename)
        lines.extend([
            f'  <link rel="shortcut icon" href="{escape(favicon)}">',
            f'  <title>{escape(context.title)}</title>',
            f'  <link rel="stylesheet" href="{escape(context.asset_url(context.css_filename))}">',
            '</head>',
            '',
            '<body>',
            '',
            f'<h1>{escape(SEPARATOR if folder.is_root else folder.path)}</h1>',
            '',
        ])
        return lines

    @staticmethod
    def _row(target, label, icon=None, size='', units='', modified=''):
        href = escape(quote(target))
        icon_cell = '      <td class="icon"></td>'
        if icon is not None:
            icon_cell = f'      <td class="icon"><a href="{href}"><img src="{escape(icon)}" alt=""></a></td>'
        return [
            '    <tr>',
            icon_cell,
            f'      <td class="name"><a href="{href}">{escape(label)}</a></td>',
            f'      <td class="size">{escape(size)}</td>',
            f'      <td class="size-units">{escape(units)}</td>',
            f'      <td class="last-modified">{escape(modified)}</td>',
            '    </tr>',
        ]
