"""
Create a browsable directory listing in an S3 bucket, recursively, from a
given root prefix.

The run lists every key under the root, rebuilds the folder tree, then
uploads an index.html per folder plus the stylesheet and icons the pages
link to.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import List, Optional

from tqdm import tqdm

from .config import ListingConfig
from .models import FileMetadata, Folder
from .publisher import Publisher
from .renderer import IndexRenderer
from .store import PutResult, S3ObjectStore, StoreError
from .tree import TreeBuilder

logger = logging.getLogger(__name__)


@dataclass
class PublishSummary:
    uploaded: List[str] = field(default_factory=list)
    failed: List[PutResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    def add(self, result: PutResult) -> None:
        if result.ok:
            self.uploaded.append(result.key)
        else:
            self.failed.append(result)


class S3DirectoryListing:
    """Builds the folder tree of one bucket prefix and publishes its index pages."""

    def __init__(self, store: S3ObjectStore, config: ListingConfig, renderer: Optional[IndexRenderer] = None):
        """
        Args:
            store: Object store used for listing and uploads
            config: Bucket, root prefix and publishing settings
            renderer: Index renderer (default: IndexRenderer())
        """
        self.store = store
        self.config = config
        self.renderer = renderer or IndexRenderer()
        self.publisher = Publisher(store, config)
        self.context = config.render_context()

    def read_root_folder(self) -> TreeBuilder:
        """
        List every key under the root prefix and build the folder tree.

        Any StoreError propagates: an incomplete tree must not be published.
        """
        bucket, root = self.config.bucket, self.config.root
        logger.info(f"Reading s3://{bucket}/{root}")
        builder = TreeBuilder()
        builder.ensure_folder(root)

        for page_number, page in enumerate(self.store.iter_pages(bucket, root), 1):
            logger.debug(f"Page {page_number}: {len(page.entries)} entries")
            for entry in page.entries:
                if self.config.fetch_metadata and not entry.is_folder_marker:
                    metadata = self.store.get_metadata(bucket, entry.key)
                    if metadata.last_modified is None:
                        metadata = FileMetadata(
                            size=metadata.size,
                            last_modified=entry.last_modified,
                            content_type=metadata.content_type,
                            cache_control=metadata.cache_control,
                        )
                    builder.ingest(entry.key, False, metadata)
                else:
                    builder.ingest_entry(entry)

        logger.info(f"Found {builder.folder_count} folders and {builder.file_count} files")
        return builder

    def render(self, folder: Folder) -> str:
        return self.renderer.render(folder, self.context)

    def _render_and_publish(self, folder: Folder) -> PutResult:
        logger.debug(f"Generating index file for {folder.path}")
        return self.publisher.publish_index(folder, self.render(folder))

    def _publish_failed(self, folder: Folder, exc: Exception) -> PutResult:
        key = self.publisher.index_key(folder)
        logger.error(f"Failed to publish {key}: {exc}")
        return PutResult(key, StoreError(str(exc), operation='publish_index'))

    def generate_index_files(self, builder: TreeBuilder) -> PublishSummary:
        """
        Render and upload an index for every folder at or below the root.

        A failed upload is recorded and the remaining folders still go out.
        """
        folders = list(builder.folders_under(self.config.root))
        summary = PublishSummary()
        logger.info(f"Generating {len(folders)} index files using {self.config.max_workers} worker(s)")

        with tqdm(total=len(folders), desc="Publishing indexes", unit="folder") as pbar:
            if self.config.max_workers == 1:
                for folder in folders:
                    try:
                        summary.add(self._render_and_publish(folder))
                    except Exception as e:
                        summary.add(self._publish_failed(folder, e))
                    pbar.update(1)
            else:
                with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
                    future_to_folder = {
                        executor.submit(self._render_and_publish, folder): folder
                        for folder in folders
                    }
                    for future in as_completed(future_to_folder):
                        folder = future_to_folder[future]
                        try:
                            summary.add(future.result())
                        except Exception as e:
                            summary.add(self._publish_failed(folder, e))
                        pbar.update(1)

        # Completion order varies with threads; keep the summary stable.
        summary.uploaded.sort()
        summary.failed.sort(key=lambda result: result.key)
        return summary

    def upload_resource_files(self) -> PublishSummary:
        summary = PublishSummary()
        for result in self.publisher.publish_resources():
            summary.add(result)
        return summary

    def print_listing(self, builder: TreeBuilder, out=None) -> None:
        """Print the tree below the root instead of publishing it."""
        root = self.config.root
        for folder in builder.walk(root):
            depth = builder.depth(folder, root)
            if folder.path != root:
                print('    ' * (depth - 1) + '|-- ' + folder.name + '/', file=out)
            for file in folder.iter_files():
                if not file.filename or file.filename in self.context.reserved_names:
                    continue
                print('    ' * depth + '|-- ' + file.filename, file=out)

    def run(self) -> PublishSummary:
        """List, build, then either print the tree or publish it."""
        builder = self.read_root_folder()

        if self.config.print_only:
            self.print_listing(builder)
            return PublishSummary()

        summary = self.generate_index_files(builder)
        resources = self.upload_resource_files()
        summary.uploaded.extend(resources.uploaded)
        summary.failed.extend(resources.failed)

        print(f"\n{'='*60}")
        print("Directory listing completed!")
        print(f"  Folders: {builder.folder_count}")
        print(f"  Files: {builder.file_count}")
        print(f"  Uploaded: {len(summary.uploaded)}")
        if summary.failed:
            print(f"  Errors: {len(summary.failed)}")
        print(f"{'='*60}")
        return summary
