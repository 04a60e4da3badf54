"""
Run settings and their defaults.
"""

from dataclasses import dataclass
from typing import Optional

from .models import ROOT, SEPARATOR, normalize_key
from .renderer import RenderContext

INDEX_FILENAME = 'index.html'
CSS_FILENAME = 'index.css'
FOLDER_ICON_FILENAME = 'folder-icon.svg'
FOLDER_UP_ICON_FILENAME = 'folder-up-icon.svg'
FAVICON_FILENAME = 'favicon.svg'

# Cache-Control max-age in seconds for the generated index files and for
# the static resources (stylesheet, icons).
HTML_MAX_AGE = 2
RESOURCES_MAX_AGE = 9

PAGE_SIZE = 1000
REGION = 'us-east-2'
TITLE = 'Directory Listing'


def normalize_root(root: Optional[str]) -> str:
    """
    Normalize a root prefix argument.

    Returns ROOT for the top of the bucket, otherwise a prefix with no
    leading separator and exactly one trailing separator.
    """
    return normalize_key((root or '').strip(), is_folder=True)


def cache_control(max_age: int) -> Optional[str]:
    """Cache-Control header for a max-age; negative values disable it."""
    if max_age is None or max_age < 0:
        return None
    return f"max-age={max_age}"


@dataclass
class ListingConfig:
    """Everything one run of the listing needs to know."""
    bucket: str
    root: str = ROOT
    index_filename: str = INDEX_FILENAME
    css_filename: str = CSS_FILENAME
    folder_icon_filename: str = FOLDER_ICON_FILENAME
    folder_up_icon_filename: str = FOLDER_UP_ICON_FILENAME
    favicon_filename: str = FAVICON_FILENAME
    html_max_age: int = HTML_MAX_AGE
    resources_max_age: int = RESOURCES_MAX_AGE
    page_size: int = PAGE_SIZE
    max_workers: int = 1
    title: str = TITLE
    favicon_url: str = ''
    asset_base: Optional[str] = None
    fetch_metadata: bool = False
    print_only: bool = False

    def __post_init__(self):
        self.root = normalize_root(self.root)
        if self.page_size < 1:
            raise ValueError(f"page_size must be positive, got {self.page_size}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be positive, got {self.max_workers}")

    @property
    def resource_files(self):
        """Bundled resource name -> name it is published under."""
        return {
            CSS_FILENAME: self.css_filename,
            FOLDER_ICON_FILENAME: self.folder_icon_filename,
            FOLDER_UP_ICON_FILENAME: self.folder_up_icon_filename,
            FAVICON_FILENAME: self.favicon_filename,
        }

    def render_context(self) -> RenderContext:
        # Assets live in the root folder; by default link to them site-absolute.
        asset_base = self.asset_base if self.asset_base is not None else SEPARATOR + self.root
        return RenderContext(
            root_path=self.root,
            index_filename=self.index_filename,
            css_filename=self.css_filename,
            folder_icon_filename=self.folder_icon_filename,
            parent_icon_filename=self.folder_up_icon_filename,
            favicon_filename=self.favicon_filename,
            asset_base=asset_base,
            title=self.title,
            favicon_url=self.favicon_url,
        )
