"""Deployment settings read from CDK context (cdk.json or ``-c key=value``).

Kept free of aws_cdk imports so it can be checked without synthesizing.
"""
from dataclasses import dataclass
from typing import Callable, Optional

SCENE_DB_FIELDS = ("partitionKey", "region", "tableName")


def _as_bool(value) -> bool:
    # -c bucket_exists=true arrives as a string
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


@dataclass(frozen=True)
class SceneDbContext:
    partition_key: str
    region: str
    table_name: str
    sort_key: Optional[str] = None

    def to_environment(self) -> dict:
        """Environment for the generate-url function."""
        env = {
            "SCENE_DB_PARTITION_KEY": self.partition_key,
            "SCENE_DB_REGION": self.region,
            "SCENE_DB_TABLE": self.table_name,
        }
        if self.sort_key:
            env["SCENE_DB_SORT_KEY"] = self.sort_key
        return env


@dataclass(frozen=True)
class WebvizContext:
    bucket_name: str
    bucket_exists: bool = False
    scene_db: Optional[SceneDbContext] = None
    generate_url_function_name: Optional[str] = None
    put_cors_function_name: Optional[str] = None
    region: Optional[str] = None

    @staticmethod
    def from_context(try_get_context: Callable[[str], object]) -> "WebvizContext":
        bucket_name = try_get_context("bucket_name")
        if not bucket_name:
            raise ValueError("Context value 'bucket_name' is required (cdk.json or -c bucket_name=...)")

        return WebvizContext(
            bucket_name=bucket_name,
            bucket_exists=_as_bool(try_get_context("bucket_exists")),
            scene_db=_parse_scene_db(try_get_context("scene_db")),
            generate_url_function_name=try_get_context("generate_url_function_name") or None,
            put_cors_function_name=try_get_context("put_cors_function_name") or None,
            region=try_get_context("region") or None,
        )


def _parse_scene_db(raw) -> Optional[SceneDbContext]:
    if not raw:
        return None
    if not isinstance(raw, dict):
        raise ValueError("Context value 'scene_db' must be an object")

    missing = [name for name in SCENE_DB_FIELDS if not raw.get(name)]
    if missing:
        raise ValueError(f"Context value 'scene_db' is missing: {', '.join(missing)}")

    return SceneDbContext(
        partition_key=raw["partitionKey"],
        region=raw["region"],
        table_name=raw["tableName"],
        sort_key=raw.get("sortKey") or None,
    )
