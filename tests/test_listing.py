import re

import pytest

from s3listing.config import ListingConfig
from s3listing.listing import S3DirectoryListing
from s3listing.renderer import IndexRenderer
from s3listing.store import S3ObjectStore, StoreError

from conftest import client_error, paged_responses, s3_object

OBJECTS = [
    s3_object('pub/'),
    s3_object('pub/index.css', 100),
    s3_object('pub/readme.txt', 1000),
    s3_object('pub/v1/', 0),
    s3_object('pub/v1/app.zip', 2500000),
    s3_object('pub/v2/lib/core.jar', 10),
]


def listing(s3_client, objects=OBJECTS, page_size=2, **kwargs):
    s3_client.list_objects_v2.side_effect = paged_responses(objects, page_size)
    config = ListingConfig(bucket='site', root='pub', page_size=page_size, **kwargs)
    return S3DirectoryListing(S3ObjectStore(s3_client, page_size=page_size), config)


def uploaded(s3_client):
    return {c.kwargs['Key']: c.kwargs for c in s3_client.put_object.call_args_list}


def test_read_root_folder_builds_tree_across_pages(s3_client):
    builder = listing(s3_client).read_root_folder()
    assert builder.get('pub/v2/lib/').files['pub/v2/lib/core.jar'].size == 10
    assert list(builder.get('pub/').subfolders) == ['pub/v1/', 'pub/v2/']
    assert s3_client.list_objects_v2.call_count == 3


def test_tree_does_not_depend_on_page_size(s3_client):
    expected = listing(s3_client, page_size=100).read_root_folder().folders
    for page_size in (1, 2, 4):
        s3_client.reset_mock()
        assert listing(s3_client, page_size=page_size).read_root_folder().folders == expected


def test_run_publishes_indexes_below_root_and_resources(s3_client):
    summary = listing(s3_client).run()

    assert summary.ok
    keys = uploaded(s3_client)
    assert sorted(keys) == [
        'pub/favicon.svg',
        'pub/folder-icon.svg',
        'pub/folder-up-icon.svg',
        'pub/index.css',
        'pub/index.html',
        'pub/v1/index.html',
        'pub/v2/index.html',
        'pub/v2/lib/index.html',
    ]
    root_html = keys['pub/index.html']['Body'].decode('utf-8')
    assert 'Parent Directory' not in root_html
    assert '>readme.txt<' in root_html
    assert '>index.css<' not in root_html
    assert 'href="/pub/index.css"' in root_html
    assert 'Parent Directory' in keys['pub/v1/index.html']['Body'].decode('utf-8')
    assert keys['pub/v1/index.html']['CacheControl'] == 'max-age=2'
    assert keys['pub/index.css']['CacheControl'] == 'max-age=9'


def test_listing_failure_publishes_nothing(s3_client):
    s3_client.list_objects_v2.side_effect = [
        paged_responses(OBJECTS, 2)[0],
        client_error('SlowDown', 503),
    ]
    config = ListingConfig(bucket='site', root='pub', page_size=2)
    with pytest.raises(StoreError):
        S3DirectoryListing(S3ObjectStore(s3_client, page_size=2), config).run()
    s3_client.put_object.assert_not_called()


def test_publish_failure_continues_with_other_folders(s3_client):
    def put_object(**kwargs):
        if kwargs['Key'] == 'pub/v1/index.html':
            raise client_error('AccessDenied', 403, 'PutObject')
        return {}

    s3_client.put_object.side_effect = put_object
    summary = listing(s3_client).run()

    assert not summary.ok
    assert [r.key for r in summary.failed] == ['pub/v1/index.html']
    assert 'pub/v2/lib/index.html' in summary.uploaded
    assert 'pub/index.css' in summary.uploaded


def test_parallel_publishing_matches_sequential(s3_client):
    sequential = listing(s3_client).run()
    sequential_bodies = {k: v['Body'] for k, v in uploaded(s3_client).items()}

    s3_client.reset_mock()
    parallel = listing(s3_client, max_workers=4).run()

    assert parallel.uploaded == sequential.uploaded
    assert {k: v['Body'] for k, v in uploaded(s3_client).items()} == sequential_bodies


def test_print_only_does_not_upload(s3_client, capsys):
    summary = listing(s3_client, print_only=True).run()

    assert summary.ok
    s3_client.put_object.assert_not_called()
    lines = capsys.readouterr().out.splitlines()
    assert lines == [
        '|-- readme.txt',
        '|-- v1/',
        '    |-- app.zip',
        '|-- v2/',
        '    |-- lib/',
        '        |-- core.jar',
    ]


def test_fetch_metadata_reads_headers(s3_client):
    s3_client.head_object.return_value = {
        'ContentLength': 7,
        'ContentType': 'application/zip',
        'CacheControl': 'no-cache',
    }
    builder = listing(s3_client, fetch_metadata=True).read_root_folder()

    file = builder.get('pub/v1/').files['pub/v1/app.zip']
    assert file.content_type == 'application/zip'
    assert file.cache_control == 'no-cache'
    assert file.size == 7
    assert file.last_modified is not None
    assert s3_client.head_object.call_count == 4


def test_empty_root_still_gets_an_index(s3_client):
    s3_client.list_objects_v2.side_effect = paged_responses([], 10)
    config = ListingConfig(bucket='site', root='empty/')
    summary = S3DirectoryListing(S3ObjectStore(s3_client), config).run()
    assert 'empty/index.html' in summary.uploaded
    html = uploaded(s3_client)['empty/index.html']['Body'].decode('utf-8')
    assert re.search(r'<tbody>\s*</tbody>', html)


def test_metadata_failure_publishes_nothing(s3_client):
    s3_client.head_object.side_effect = client_error('AccessDenied', 403, 'HeadObject')
    with pytest.raises(StoreError) as excinfo:
        listing(s3_client, fetch_metadata=True).run()
    assert excinfo.value.operation == 'head_object'
    s3_client.put_object.assert_not_called()


class BrokenRenderer(IndexRenderer):
    def render(self, folder, context):
        if folder.path == 'pub/v1/':
            raise RuntimeError('template blew up')
        return super().render(folder, context)


@pytest.mark.parametrize("max_workers", [1, 4])
def test_unexpected_error_in_one_folder_does_not_stop_the_others(s3_client, max_workers):
    s3_client.list_objects_v2.side_effect = paged_responses(OBJECTS, 2)
    config = ListingConfig(bucket='site', root='pub', page_size=2, max_workers=max_workers)
    summary = S3DirectoryListing(S3ObjectStore(s3_client, page_size=2), config, BrokenRenderer()).run()

    assert [r.key for r in summary.failed] == ['pub/v1/index.html']
    assert 'template blew up' in summary.failed[0].error.message
    assert {'pub/index.html', 'pub/v2/index.html', 'pub/v2/lib/index.html'} <= set(summary.uploaded)
    assert 'pub/v1/index.html' not in uploaded(s3_client)
