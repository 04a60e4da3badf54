#!/usr/bin/env python3
"""
Command line entry point for s3-directory-listing.
"""

import argparse
import logging
import sys

from . import config as defaults
from .config import ListingConfig
from .listing import S3DirectoryListing
from .store import S3ObjectStore, StoreError

logger = logging.getLogger(__name__)

LOG_LEVELS = ('critical', 'error', 'warning', 'info', 'debug')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='s3-directory-listing',
        description='Create a browsable directory listing in an S3 bucket from a given folder recursively',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Publish index.html files below public/releases/ using the default credentials:
  s3-directory-listing --bucket my.bucket.com --root public/releases

  # Using an AWS profile and four upload threads:
  s3-directory-listing --bucket my.bucket.com --root public/releases --profile ops --max-workers 4

  # Only print the tree, publish nothing:
  s3-directory-listing --bucket my.bucket.com --print-only
        """
    )

    parser.add_argument('-b', '--bucket', required=True, help='S3 bucket name')
    parser.add_argument('-r', '--root', default='', help='S3 key that serves as the root directory (default: top of bucket)')
    parser.add_argument('-k', '--key', help='AWS access key (optional, needs --secret)')
    parser.add_argument('-s', '--secret', help='AWS secret access key (optional, needs --key)')
    parser.add_argument('--profile', help='AWS profile name (optional)')
    parser.add_argument('--region', default=defaults.REGION, help=f'AWS region (default: {defaults.REGION})')
    parser.add_argument('--endpoint-url', help='Custom S3 endpoint URL (optional)')
    parser.add_argument('--max-age-html', type=int, default=defaults.HTML_MAX_AGE,
                        help=f'Cache-Control max-age for the index.html files, in seconds (default: {defaults.HTML_MAX_AGE})')
    parser.add_argument('--max-age-resources', type=int, default=defaults.RESOURCES_MAX_AGE,
                        help=f'Cache-Control max-age for static files such as CSS and images, in seconds (default: {defaults.RESOURCES_MAX_AGE})')
    parser.add_argument('--page-size', type=int, default=defaults.PAGE_SIZE,
                        help=f'Keys requested per listing page (default: {defaults.PAGE_SIZE})')
    parser.add_argument('--max-workers', type=int, default=1, help='Concurrent index uploads (default: 1)')
    parser.add_argument('--title', default=defaults.TITLE, help=f'Page title (default: {defaults.TITLE})')
    parser.add_argument('--favicon', default='', help='Favicon URL (optional)')
    parser.add_argument('--asset-base', help='URL prefix for the stylesheet and icons (default: /<root>)')
    parser.add_argument('--fetch-metadata', action='store_true', help='Read content type and cache headers of every file')
    parser.add_argument('--print-only', action='store_true', help='Print the listing instead of publishing index files')
    parser.add_argument('-l', '--log-level', choices=LOG_LEVELS, default='info', help='Logging level (default: info)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose logging')
    return parser


def configure_logging(level_name: str, verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else getattr(logging, level_name.upper())
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )
    logging.getLogger().setLevel(level)
    # botocore is chatty at DEBUG.
    logging.getLogger('botocore').setLevel(max(level, logging.INFO))


def main(argv=None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, args.verbose)

    if bool(args.key) != bool(args.secret):
        parser.error('--key and --secret must be given together')

    try:
        config = ListingConfig(
            bucket=args.bucket.strip(),
            root=args.root,
            html_max_age=args.max_age_html,
            resources_max_age=args.max_age_resources,
            page_size=args.page_size,
            max_workers=args.max_workers,
            title=args.title,
            favicon_url=args.favicon,
            asset_base=args.asset_base,
            fetch_metadata=args.fetch_metadata,
            print_only=args.print_only,
        )
    except ValueError as e:
        parser.error(str(e))

    try:
        store = S3ObjectStore.connect(
            aws_profile=args.profile,
            region=args.region,
            access_key=args.key,
            secret_key=args.secret,
            endpoint_url=args.endpoint_url,
            page_size=config.page_size,
        )
        store.check_bucket(config.bucket)
        summary = S3DirectoryListing(store, config).run()
    except KeyboardInterrupt:
        logger.info("Operation cancelled by user")
        return 130
    except StoreError as e:
        if e.is_service_error:
            logger.error(f"S3 rejected the request ({e.operation}): {e}")
        else:
            logger.error(f"Could not reach S3 ({e.operation}): {e}")
        return 1

    if not summary.ok:
        logger.error(f"{len(summary.failed)} upload(s) failed")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
