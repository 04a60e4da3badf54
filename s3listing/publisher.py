"""
Writes generated index documents and the bundled static resources to S3.
"""

import logging
import mimetypes
from importlib import resources
from typing import List

from .config import ListingConfig, cache_control
from .models import Folder
from .store import PutResult, S3ObjectStore

logger = logging.getLogger(__name__)

INDEX_CONTENT_TYPE = 'text/html'


def read_resource(filename: str) -> bytes:
    """Contents of a file shipped in s3listing/resources."""
    return (resources.files('s3listing') / 'resources' / filename).read_bytes()


def log_failure(result: PutResult) -> None:
    error = result.error
    logger.error(f"Failed to upload {result.key}: {error.message}")
    logger.error(f"  HTTP Status Code: {error.status_code}")
    logger.error(f"  AWS Error Code:   {error.error_code}")
    logger.error(f"  Request ID:       {error.request_id}")


class Publisher:
    """Uploads listing artifacts into the configured bucket."""

    def __init__(self, store: S3ObjectStore, config: ListingConfig):
        self.store = store
        self.config = config

    def index_key(self, folder: Folder) -> str:
        return folder.path + self.config.index_filename

    def publish_index(self, folder: Folder, html: str) -> PutResult:
        key = self.index_key(folder)
        logger.debug(f"Uploading {key}")
        result = self.store.put_object(
            self.config.bucket,
            key,
            html.encode('utf-8'),
            INDEX_CONTENT_TYPE,
            cache_control(self.config.html_max_age),
        )
        if not result.ok:
            log_failure(result)
        return result

    def publish_resources(self) -> List[PutResult]:
        """Upload the stylesheet and icons into the root folder."""
        results = []
        for source, filename in self.config.resource_files.items():
            key = self.config.root + filename
            content_type = mimetypes.guess_type(source)[0] or 'application/octet-stream'
            logger.info(f"Uploading {key}")
            result = self.store.put_object(
                self.config.bucket,
                key,
                read_resource(source),
                content_type,
                cache_control(self.config.resources_max_age),
            )
            if not result.ok:
                log_failure(result)
            results.append(result)
        return results
