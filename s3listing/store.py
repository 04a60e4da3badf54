"""
Thin boto3 wrapper exposing exactly the S3 calls the listing needs.

Every botocore failure is translated into a StoreError that keeps the
message, HTTP status, S3 error code and request id for diagnosis.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .models import SEPARATOR, FileMetadata

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """A request to the object store failed."""

    def __init__(self, message, status_code=None, error_code=None, request_id=None, operation=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.request_id = request_id
        self.operation = operation

    @property
    def is_service_error(self) -> bool:
        """True when S3 answered with an error, False for transport problems."""
        return self.error_code is not None

    @classmethod
    def from_exception(cls, exc: Exception, operation: Optional[str] = None) -> 'StoreError':
        if isinstance(exc, ClientError):
            response = exc.response or {}
            error = response.get('Error', {})
            metadata = response.get('ResponseMetadata', {})
            return cls(
                error.get('Message') or str(exc),
                status_code=metadata.get('HTTPStatusCode'),
                error_code=error.get('Code'),
                request_id=metadata.get('RequestId'),
                operation=operation,
            )
        return cls(str(exc), operation=operation)

    def __str__(self):
        details = [self.message]
        if self.error_code:
            details.append(f"code={self.error_code}")
        if self.status_code:
            details.append(f"status={self.status_code}")
        if self.request_id:
            details.append(f"request_id={self.request_id}")
        return ', '.join(details)


@dataclass(frozen=True)
class ListedEntry:
    key: str
    is_folder_marker: bool
    size: Optional[int] = None
    last_modified: Optional[object] = None


@dataclass
class ListPage:
    entries: List[ListedEntry] = field(default_factory=list)
    next_token: Optional[str] = None
    truncated: bool = False


@dataclass
class PutResult:
    """Outcome of one put_object call."""
    key: str
    error: Optional[StoreError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class S3ObjectStore:
    """Handles listing, inspecting and writing objects in S3."""

    def __init__(self, client=None, page_size: int = 1000):
        """
        Args:
            client: A boto3 S3 client; see connect() to build one
            page_size: Maximum keys requested per listing page
        """
        self.client = client
        self.page_size = page_size

    @classmethod
    def connect(
        cls,
        aws_profile: Optional[str] = None,
        region: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        page_size: int = 1000,
    ) -> 'S3ObjectStore':
        """Build a store around a new S3 client."""
        try:
            if access_key and secret_key:
                session = boto3.Session(aws_access_key_id=access_key, aws_secret_access_key=secret_key)
            elif aws_profile:
                session = boto3.Session(profile_name=aws_profile)
            else:
                session = boto3.Session()
            config = Config(
                retries={'max_attempts': 5, 'mode': 'standard'},
                connect_timeout=60,
                read_timeout=120,
            )
            client = session.client('s3', region_name=region, endpoint_url=endpoint_url, config=config)
        except BotoCoreError as e:
            logger.error(f"AWS credentials error: {e}")
            raise StoreError.from_exception(e, 'connect') from e
        return cls(client, page_size=page_size)

    def check_bucket(self, bucket: str) -> None:
        """Fail early when the bucket is missing or not accessible."""
        try:
            self.client.head_bucket(Bucket=bucket)
        except (ClientError, BotoCoreError) as e:
            error = StoreError.from_exception(e, 'head_bucket')
            if error.error_code in ('404', 'NoSuchBucket'):
                logger.error(f"S3 bucket '{bucket}' does not exist")
            elif error.error_code in ('403', 'AccessDenied'):
                logger.error(f"Access denied to S3 bucket '{bucket}'")
            raise error from e
        logger.info(f"Successfully connected to S3 bucket: {bucket}")

    def list_page(self, bucket: str, prefix: str, continuation_token: Optional[str] = None) -> ListPage:
        """Fetch one page of keys under ``prefix``."""
        params = {'Bucket': bucket, 'Prefix': prefix, 'MaxKeys': self.page_size}
        if continuation_token:
            params['ContinuationToken'] = continuation_token
        try:
            response = self.client.list_objects_v2(**params)
        except (ClientError, BotoCoreError) as e:
            raise StoreError.from_exception(e, 'list_objects_v2') from e

        entries = [
            ListedEntry(
                key=obj['Key'],
                is_folder_marker=obj['Key'].endswith(SEPARATOR),
                size=obj.get('Size'),
                last_modified=obj.get('LastModified'),
            )
            for obj in response.get('Contents') or []
        ]
        return ListPage(
            entries=entries,
            next_token=response.get('NextContinuationToken'),
            truncated=bool(response.get('IsTruncated')),
        )

    def iter_pages(self, bucket: str, prefix: str) -> Iterator[ListPage]:
        """Yield pages until the listing is no longer truncated."""
        token = None
        while True:
            page = self.list_page(bucket, prefix, token)
            yield page
            if not page.truncated or not page.next_token:
                return
            token = page.next_token

    def get_metadata(self, bucket: str, key: str) -> FileMetadata:
        try:
            response = self.client.head_object(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise StoreError.from_exception(e, 'head_object') from e
        return FileMetadata(
            size=response.get('ContentLength', 0),
            last_modified=response.get('LastModified'),
            content_type=response.get('ContentType'),
            cache_control=response.get('CacheControl'),
        )

    def put_object(
        self,
        bucket: str,
        key: str,
        body: bytes,
        content_type: str,
        cache_control: Optional[str] = None,
    ) -> PutResult:
        """Write one object. Failures come back in the result instead of raising."""
        params = {'Bucket': bucket, 'Key': key, 'Body': body, 'ContentType': content_type}
        if cache_control:
            params['CacheControl'] = cache_control
        try:
            self.client.put_object(**params)
        except (ClientError, BotoCoreError) as e:
            return PutResult(key, StoreError.from_exception(e, 'put_object'))
        return PutResult(key)
