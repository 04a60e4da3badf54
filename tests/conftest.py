from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

MODIFIED = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def s3_object(key, size=0, modified=MODIFIED):
    return {'Key': key, 'Size': size, 'LastModified': modified}


def client_error(code, status, operation='ListObjectsV2', request_id='REQ123'):
    return ClientError(
        {
            'Error': {'Code': code, 'Message': f'{code} happened'},
            'ResponseMetadata': {'HTTPStatusCode': status, 'RequestId': request_id},
        },
        operation,
    )


def paged_responses(objects, page_size):
    """list_objects_v2 responses splitting ``objects`` into pages."""
    pages = [objects[i:i + page_size] for i in range(0, len(objects), page_size)] or [[]]
    responses = []
    for number, chunk in enumerate(pages, 1):
        response = {'Contents': chunk, 'IsTruncated': number < len(pages)}
        if number < len(pages):
            response['NextContinuationToken'] = f'token-{number}'
        responses.append(response)
    return responses


@pytest.fixture
def s3_client():
    client = MagicMock()
    client.put_object.return_value = {}
    return client
