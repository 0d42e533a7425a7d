import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from webviz_common import InvalidRequest, Unavailable, from_boto_error
from webviz_common.errors import error_code

from .config import SceneDbConfig

logger = logging.getLogger(__name__)

# Treated as transient for lookups: IAM changes propagate, and the caller
# cannot fix them by changing the request.
ACCESS_DENIED_CODES = frozenset({"AccessDeniedException", "UnrecognizedClientException"})


class SceneStore:
    """Single-key reads against the scene metadata table."""

    def __init__(self, config: SceneDbConfig, table=None) -> None:
        self._config = config
        self._table = table

    @property
    def config(self) -> SceneDbConfig:
        return self._config

    def _get_table(self):
        if self._table is None:
            dynamodb = boto3.resource("dynamodb", region_name=self._config.region)
            self._table = dynamodb.Table(self._config.table_name)
        return self._table

    def key_for(self, scene_key: str, sort_value: Optional[str] = None) -> dict:
        key = {self._config.partition_key: scene_key}
        if self._config.sort_key:
            if sort_value is None or sort_value == "":
                raise InvalidRequest(
                    f"Scene table is keyed on {self._config.sort_key!r}; a sort_key value is required"
                )
            key[self._config.sort_key] = sort_value
        return key

    def get(self, scene_key: str, sort_value: Optional[str] = None) -> Optional[dict]:
        """Return the scene item, or None when the table has no such key."""
        key = self.key_for(scene_key, sort_value)
        try:
            response = self._get_table().get_item(Key=key)
        except ClientError as error:
            logger.warning("GetItem on %s failed: %s", self._config.table_name, error)
            if error_code(error) in ACCESS_DENIED_CODES:
                raise Unavailable(str(error)) from error
            raise from_boto_error(error) from error
        except BotoCoreError as error:
            logger.warning("GetItem on %s failed: %s", self._config.table_name, error)
            raise from_boto_error(error) from error
        return response.get("Item")
