import base64
import json
from urllib.parse import unquote

import pytest
from botocore.exceptions import ClientError, ReadTimeoutError

from generate_url import index
from generate_url.config import ResolverConfig, SceneDbConfig
from generate_url.resolver import SceneUrlResolver
from generate_url.scene_store import SceneStore
from webviz_common import ConfigurationError

from conftest import BASE_URL, REGION

SCENE_ENV = {
    "WEBVIZ_ELB_URL": BASE_URL,
    "SCENE_DB_PARTITION_KEY": "scene_id",
    "SCENE_DB_REGION": REGION,
    "SCENE_DB_TABLE": "scenes",
}


def _resolver(table_name="scenes", partition_key="scene_id", sort_key=None, **config):
    scene_db = SceneDbConfig(partition_key=partition_key, region=REGION, table_name=table_name, sort_key=sort_key)
    return SceneUrlResolver(ResolverConfig(base_url=BASE_URL, scene_db=scene_db, **config))


def _client_error(code, status=400):
    return ClientError(
        {"Error": {"Code": code, "Message": f"{code} happened"}, "ResponseMetadata": {"HTTPStatusCode": status}},
        "GetItem",
    )


def _stub_store(mocker, side_effect):
    table = mocker.Mock()
    table.get_item.side_effect = side_effect
    return SceneStore(SceneDbConfig(partition_key="scene_id", region=REGION, table_name="scenes"), table=table)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

def test_config_from_env_with_scene_db():
    config = ResolverConfig.from_env({**SCENE_ENV, "WEBVIZ_ELB_URL": "http://lb.example.com/"})

    assert config.base_url == BASE_URL
    assert config.path_prefix == "scenes"
    assert config.presign_expiry_seconds == 3600
    assert config.scene_db == SceneDbConfig(partition_key="scene_id", region=REGION, table_name="scenes")


def test_config_without_scene_db():
    config = ResolverConfig.from_env({"WEBVIZ_ELB_URL": BASE_URL})
    assert config.scene_db is None


def test_config_requires_base_url():
    with pytest.raises(ConfigurationError, match="WEBVIZ_ELB_URL"):
        ResolverConfig.from_env({})


@pytest.mark.parametrize("drop", ["SCENE_DB_PARTITION_KEY", "SCENE_DB_REGION", "SCENE_DB_TABLE"])
def test_partial_scene_db_config_fails_fast(drop):
    env = {k: v for k, v in SCENE_ENV.items() if k != drop}
    with pytest.raises(ConfigurationError, match=drop):
        ResolverConfig.from_env(env)


def test_sort_key_alone_is_partial_config():
    with pytest.raises(ConfigurationError):
        ResolverConfig.from_env({"WEBVIZ_ELB_URL": BASE_URL, "SCENE_DB_SORT_KEY": "scene_id"})


@pytest.mark.parametrize("expiry", ["soon", "0"])
def test_invalid_presign_expiry(expiry):
    with pytest.raises(ConfigurationError, match="PRESIGNED_URL_EXPIRY"):
        ResolverConfig.from_env({"WEBVIZ_ELB_URL": BASE_URL, "PRESIGNED_URL_EXPIRY": expiry})


# ---------------------------------------------------------------------------
# Scene lookups
# ---------------------------------------------------------------------------

def test_resolve_existing_scene(scene_table):
    result = _resolver().resolve("scene123")

    assert result.ok
    assert result.to_dict() == {"resource_url": "http://lb.example.com/scenes/scene123"}


def test_resolve_is_deterministic(scene_table):
    resolver = _resolver()
    assert resolver.resolve("scene123") == resolver.resolve("scene123")


def test_resolve_missing_scene_is_not_found(scene_table):
    result = _resolver().resolve("missing-key")

    assert not result.ok
    assert result.kind == "not_found"
    assert result.to_dict()["error"]["kind"] == "not_found"


def test_resolve_with_custom_prefix_and_quoting(scene_table):
    scene_table.put_item(Item={"scene_id": "drive 2/a"})
    result = _resolver(path_prefix="viz/bags").resolve("drive 2/a")
    assert result.resource_url == "http://lb.example.com/viz/bags/drive%202%2Fa"


def test_resolve_with_sort_key(scene_table_with_sort_key):
    resolver = _resolver(table_name="recordings", partition_key="record_id", sort_key="scene_id")

    assert resolver.resolve("rec1", "scene7").resource_url == "http://lb.example.com/scenes/rec1/scene7"
    assert resolver.resolve("rec1", "scene8").kind == "not_found"
    assert resolver.resolve("rec1").kind == "invalid_request"


def test_resolve_requires_scene_key(scene_table):
    assert _resolver().resolve("").kind == "invalid_request"


def test_resolve_without_scene_db_is_configuration_error():
    result = SceneUrlResolver(ResolverConfig(base_url=BASE_URL)).resolve("scene123")
    assert result.kind == "configuration"


def test_missing_table_is_backend_rejected(mocked_aws):
    assert _resolver(table_name="no-such-table").resolve("scene123").kind == "backend_rejected"


@pytest.mark.parametrize("side_effect, kind", [
    (_client_error("ProvisionedThroughputExceededException"), "unavailable"),
    (_client_error("InternalServerError", status=500), "unavailable"),
    (_client_error("AccessDeniedException"), "unavailable"),
    (_client_error("ValidationException"), "backend_rejected"),
    (ReadTimeoutError(endpoint_url="https://dynamodb.us-east-1.amazonaws.com"), "unavailable"),
])
def test_lookup_faults_are_classified(mocker, side_effect, kind):
    config = ResolverConfig(base_url=BASE_URL)
    resolver = SceneUrlResolver(config, store=_stub_store(mocker, side_effect))

    result = resolver.resolve("scene123")

    assert result.kind == kind
    assert result.resource_url is None


# ---------------------------------------------------------------------------
# Direct S3 objects
# ---------------------------------------------------------------------------

def test_resolve_object_builds_remote_bag_url(s3_client, bucket):
    s3_client.put_object(Bucket=bucket, Key="bags/run 1.bag", Body=b"rosbag")
    resolver = SceneUrlResolver(ResolverConfig(base_url=BASE_URL), s3_client=s3_client)

    result = resolver.resolve_object(bucket, "bags/run 1.bag")

    assert result.ok
    prefix = f"{BASE_URL}/?remote-bag-url="
    assert result.resource_url.startswith(prefix)
    presigned = unquote(result.resource_url[len(prefix):])
    assert presigned.startswith("https://")
    assert "webviz-b1" in presigned
    assert "X-Amz-Signature" in presigned or "Signature=" in presigned


def test_resolve_missing_object_is_not_found(s3_client, bucket):
    resolver = SceneUrlResolver(ResolverConfig(base_url=BASE_URL), s3_client=s3_client)
    assert resolver.resolve_object(bucket, "bags/nothing.bag").kind == "not_found"


def test_resolve_object_requires_bucket_and_key(s3_client):
    resolver = SceneUrlResolver(ResolverConfig(base_url=BASE_URL), s3_client=s3_client)
    assert resolver.resolve_object("webviz-b1", "").kind == "invalid_request"


# ---------------------------------------------------------------------------
# Lambda entry point
# ---------------------------------------------------------------------------

@pytest.fixture
def scene_env(monkeypatch):
    for name, value in SCENE_ENV.items():
        monkeypatch.setenv(name, value)


def test_lambda_handler_direct_invocation(scene_env, scene_table):
    response = index.lambda_handler({"scene_key": "scene123"}, None)
    assert response == {"resource_url": "http://lb.example.com/scenes/scene123"}


def test_lambda_handler_direct_invocation_not_found(scene_env, scene_table):
    response = index.lambda_handler({"scene_key": "missing-key"}, None)
    assert response["error"]["kind"] == "not_found"


def test_lambda_handler_http_query_string(scene_env, scene_table):
    event = {
        "httpMethod": "GET",
        "requestContext": {},
        "queryStringParameters": {"scene_key": "scene123"},
    }

    response = index.lambda_handler(event, None)

    assert response["statusCode"] == 200
    assert response["headers"]["Content-Type"] == "application/json"
    assert json.loads(response["body"]) == {"resource_url": "http://lb.example.com/scenes/scene123"}


def test_lambda_handler_http_body(scene_env, scene_table):
    event = {
        "rawPath": "/generate-url",
        "requestContext": {},
        "body": json.dumps({"scene_key": "missing-key"}),
    }

    response = index.lambda_handler(event, None)

    assert response["statusCode"] == 404
    assert json.loads(response["body"])["error"]["kind"] == "not_found"


def test_lambda_handler_http_bad_body(scene_env, scene_table):
    event = {"rawPath": "/generate-url", "requestContext": {}, "body": "{not json"}

    response = index.lambda_handler(event, None)

    assert response["statusCode"] == 400
    assert json.loads(response["body"])["error"]["kind"] == "invalid_request"


@pytest.mark.parametrize("body", ["@@@not-base64", "//4="])
def test_lambda_handler_http_bad_base64_body(scene_env, scene_table, body):
    event = {"rawPath": "/generate-url", "requestContext": {}, "body": body, "isBase64Encoded": True}

    response = index.lambda_handler(event, None)

    assert response["statusCode"] == 400
    assert json.loads(response["body"])["error"]["kind"] == "invalid_request"


def test_lambda_handler_http_base64_body(scene_env, scene_table):
    body = base64.b64encode(json.dumps({"scene_key": "scene123"}).encode("utf-8")).decode("ascii")
    event = {"rawPath": "/generate-url", "requestContext": {}, "body": body, "isBase64Encoded": True}

    response = index.lambda_handler(event, None)

    assert response["statusCode"] == 200
    assert json.loads(response["body"]) == {"resource_url": "http://lb.example.com/scenes/scene123"}


def test_lambda_handler_without_base_url_reports_configuration(mocked_aws):
    response = index.lambda_handler({"scene_key": "scene123"}, None)
    assert response["error"]["kind"] == "configuration"
