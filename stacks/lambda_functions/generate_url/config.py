from __future__ import annotations

import os
from dataclasses import dataclass
from typing import ClassVar, Mapping, Optional

from webviz_common import ConfigurationError


@dataclass(frozen=True)
class SceneDbConfig:
    """Where scene metadata lives: a DynamoDB table and its key schema."""

    partition_key: str
    region: str
    table_name: str
    sort_key: Optional[str] = None

    @staticmethod
    def from_env(environ: Mapping[str, str]) -> Optional["SceneDbConfig"]:
        partition_key = environ.get("SCENE_DB_PARTITION_KEY") or None
        region = environ.get("SCENE_DB_REGION") or None
        table_name = environ.get("SCENE_DB_TABLE") or None
        sort_key = environ.get("SCENE_DB_SORT_KEY") or None

        required = {
            "SCENE_DB_PARTITION_KEY": partition_key,
            "SCENE_DB_REGION": region,
            "SCENE_DB_TABLE": table_name,
        }
        if not any(required.values()) and sort_key is None:
            return None
        missing = sorted(name for name, value in required.items() if not value)
        if missing:
            raise ConfigurationError(
                "Scene DB config is partially specified; missing " + ", ".join(missing)
            )
        return SceneDbConfig(
            partition_key=partition_key,
            region=region,
            table_name=table_name,
            sort_key=sort_key,
        )


@dataclass(frozen=True)
class ResolverConfig:
    """Runtime configuration for the scene URL resolver.

    `base_url` is the public Webviz endpoint, e.g. "http://webviz-lb-123.elb.amazonaws.com".
    """

    base_url: str
    scene_db: Optional[SceneDbConfig] = None
    _DEFAULT_PATH_PREFIX: ClassVar[str] = "scenes"
    _DEFAULT_PRESIGN_EXPIRY: ClassVar[int] = 3600
    path_prefix: str = _DEFAULT_PATH_PREFIX
    presign_expiry_seconds: int = _DEFAULT_PRESIGN_EXPIRY

    @staticmethod
    def from_env(environ: Optional[Mapping[str, str]] = None) -> "ResolverConfig":
        environ = os.environ if environ is None else environ

        base_url = (environ.get("WEBVIZ_ELB_URL") or "").strip()
        if not base_url:
            raise ConfigurationError("Missing required environment variable: WEBVIZ_ELB_URL")

        path_prefix = (environ.get("SCENE_URL_PREFIX") or ResolverConfig._DEFAULT_PATH_PREFIX).strip("/")

        expiry_raw = environ.get("PRESIGNED_URL_EXPIRY")
        expiry = ResolverConfig._DEFAULT_PRESIGN_EXPIRY
        if expiry_raw:
            try:
                expiry = int(expiry_raw)
            except ValueError as exc:
                raise ConfigurationError("Invalid PRESIGNED_URL_EXPIRY; must be an integer") from exc
            if expiry <= 0:
                raise ConfigurationError("Invalid PRESIGNED_URL_EXPIRY; must be positive")

        return ResolverConfig(
            base_url=base_url.rstrip("/"),
            scene_db=SceneDbConfig.from_env(environ),
            path_prefix=path_prefix,
            presign_expiry_seconds=expiry,
        )
