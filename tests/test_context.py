import pytest

from stacks.context import SceneDbContext, WebvizContext

SCENE_DB = {"partitionKey": "record_id", "sortKey": "scene_id", "region": "eu-west-1", "tableName": "scenes"}


def test_minimal_context():
    ctx = WebvizContext.from_context({"bucket_name": "b1"}.get)

    assert ctx == WebvizContext(bucket_name="b1")
    assert not ctx.bucket_exists
    assert ctx.scene_db is None


def test_bucket_name_is_required():
    with pytest.raises(ValueError, match="bucket_name"):
        WebvizContext.from_context({}.get)


@pytest.mark.parametrize("raw, expected", [(True, True), ("true", True), ("false", False), (None, False)])
def test_bucket_exists_accepts_cli_strings(raw, expected):
    ctx = WebvizContext.from_context({"bucket_name": "b1", "bucket_exists": raw}.get)
    assert ctx.bucket_exists is expected


def test_scene_db_environment():
    ctx = WebvizContext.from_context({"bucket_name": "b1", "scene_db": SCENE_DB}.get)

    assert ctx.scene_db.to_environment() == {
        "SCENE_DB_PARTITION_KEY": "record_id",
        "SCENE_DB_SORT_KEY": "scene_id",
        "SCENE_DB_REGION": "eu-west-1",
        "SCENE_DB_TABLE": "scenes",
    }


def test_scene_db_without_sort_key_omits_it():
    scene_db = SceneDbContext(partition_key="scene_id", region="us-east-1", table_name="scenes")
    assert "SCENE_DB_SORT_KEY" not in scene_db.to_environment()


@pytest.mark.parametrize("missing", ["partitionKey", "region", "tableName"])
def test_partial_scene_db_is_rejected(missing):
    scene_db = {k: v for k, v in SCENE_DB.items() if k != missing}
    with pytest.raises(ValueError, match=missing):
        WebvizContext.from_context({"bucket_name": "b1", "scene_db": scene_db}.get)
