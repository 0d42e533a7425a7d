"""Scene URL resolution.

Turns a scene key into a URL on the Webviz load balancer. Every call is
independent: the resolver keeps no per-request state, and all failures come
back as a ``Resolution`` carrying a typed error instead of an exception.
"""
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from webviz_common import ConfigurationError, InvalidRequest, NotFound, WebvizError, from_boto_error
from webviz_common.errors import error_code

from .config import ResolverConfig
from .scene_store import SceneStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    resource_url: Optional[str] = None
    error: Optional[WebvizError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> str:
        return "ok" if self.error is None else self.error.kind

    def to_dict(self) -> dict:
        if self.error is not None:
            return {"error": self.error.to_dict()}
        return {"resource_url": self.resource_url}


class SceneUrlResolver:
    def __init__(self, config: ResolverConfig, *, store: Optional[SceneStore] = None, s3_client=None) -> None:
        self._config = config
        if store is None and config.scene_db is not None:
            store = SceneStore(config.scene_db)
        self._store = store
        self._s3_client = s3_client

    def resolve(self, scene_key: str, sort_value: Optional[str] = None) -> Resolution:
        """Look up ``scene_key`` and build its Webviz URL."""
        try:
            url = self._scene_url(scene_key, sort_value)
        except WebvizError as error:
            logger.warning("Could not resolve scene %r: %s (%s)", scene_key, error, error.kind)
            return Resolution(error=error)
        logger.info("Resolved scene %r to %s", scene_key, url)
        return Resolution(resource_url=url)

    def resolve_object(self, bucket: str, key: str) -> Resolution:
        """Build a Webviz URL that streams an S3 object through a presigned link."""
        try:
            url = self._object_url(bucket, key)
        except WebvizError as error:
            logger.warning("Could not resolve s3://%s/%s: %s (%s)", bucket, key, error, error.kind)
            return Resolution(error=error)
        logger.info("Resolved s3://%s/%s", bucket, key)
        return Resolution(resource_url=url)

    def _scene_url(self, scene_key, sort_value):
        if not isinstance(scene_key, str) or not scene_key:
            raise InvalidRequest("scene_key is required")
        if self._store is None:
            raise ConfigurationError("No scene database configured (SCENE_DB_* variables are unset)")

        item = self._store.get(scene_key, sort_value)
        if item is None:
            raise NotFound(f"Scene {scene_key!r} not found")

        schema = self._store.config
        parts = [str(item.get(schema.partition_key, scene_key))]
        if schema.sort_key:
            parts.append(str(item.get(schema.sort_key, sort_value)))

        path = "/".join(quote(part, safe="") for part in parts)
        if self._config.path_prefix:
            path = f"{quote(self._config.path_prefix)}/{path}"
        return f"{self._config.base_url}/{path}"

    def _get_s3_client(self):
        if self._s3_client is None:
            self._s3_client = boto3.client("s3")
        return self._s3_client

    def _object_url(self, bucket, key):
        if not bucket or not key:
            raise InvalidRequest("bucket and key are both required")

        s3_client = self._get_s3_client()
        try:
            s3_client.head_object(Bucket=bucket, Key=key)
            presigned = s3_client.generate_presigned_url(
                "get_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=self._config.presign_expiry_seconds,
            )
        except ClientError as error:
            if error_code(error) in ("404", "NoSuchKey", "NoSuchBucket"):
                raise NotFound(f"s3://{bucket}/{key} does not exist") from error
            raise from_boto_error(error) from error
        except BotoCoreError as error:
            raise from_boto_error(error) from error

        return f"{self._config.base_url}/?remote-bag-url={quote(presigned, safe='')}"
