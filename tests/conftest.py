"""
Pytest fixtures for the Webviz Lambda tests.

Uses moto to mock S3 and DynamoDB.
"""

import os
from typing import Generator

import boto3
import pytest
from moto import mock_aws

REGION = "us-east-1"
BASE_URL = "http://lb.example.com"


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch) -> None:
    """Set up mock AWS credentials for moto."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)
    for name in list(os.environ):
        if name.startswith("SCENE_DB_") or name in ("WEBVIZ_ELB_URL", "SCENE_URL_PREFIX", "PRESIGNED_URL_EXPIRY"):
            monkeypatch.delenv(name)


@pytest.fixture
def mocked_aws() -> Generator[None, None, None]:
    with mock_aws():
        yield


@pytest.fixture
def s3_client(mocked_aws):
    return boto3.client("s3", region_name=REGION)


@pytest.fixture
def bucket(s3_client) -> str:
    s3_client.create_bucket(Bucket="webviz-b1")
    return "webviz-b1"


def _create_table(name: str, partition_key: str, sort_key: str = None):
    dynamodb = boto3.resource("dynamodb", region_name=REGION)
    key_schema = [{"AttributeName": partition_key, "KeyType": "HASH"}]
    attributes = [{"AttributeName": partition_key, "AttributeType": "S"}]
    if sort_key:
        key_schema.append({"AttributeName": sort_key, "KeyType": "RANGE"})
        attributes.append({"AttributeName": sort_key, "AttributeType": "S"})
    table = dynamodb.create_table(
        TableName=name,
        KeySchema=key_schema,
        AttributeDefinitions=attributes,
        BillingMode="PAY_PER_REQUEST",
    )
    table.wait_until_exists()
    return table


@pytest.fixture
def scene_table(mocked_aws):
    """Scene table keyed on scene_id only, holding one scene."""
    table = _create_table("scenes", "scene_id")
    table.put_item(Item={"scene_id": "scene123", "title": "Parking lot run"})
    return table


@pytest.fixture
def scene_table_with_sort_key(mocked_aws):
    """Scene table keyed on (record_id, scene_id)."""
    table = _create_table("recordings", "record_id", "scene_id")
    table.put_item(Item={"record_id": "rec1", "scene_id": "scene7"})
    return table
