import logging
from typing import List

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from webviz_common import from_boto_error
from webviz_common.cors_rules import CorsRule, to_cors_configuration

logger = logging.getLogger(__name__)


class CorsPolicyApplier:
    """Replaces a bucket's CORS configuration in one call.

    PutBucketCors overwrites the whole configuration, so applying the same
    rules again leaves the bucket unchanged.
    """

    def __init__(self, s3_client=None) -> None:
        self._s3_client = s3_client

    def _client(self):
        if self._s3_client is None:
            self._s3_client = boto3.client("s3")
        return self._s3_client

    def apply(self, bucket_name: str, rules: List[CorsRule]) -> None:
        configuration = to_cors_configuration(rules)
        logger.info("Putting %d CORS rule(s) on bucket %s", len(rules), bucket_name)
        try:
            self._client().put_bucket_cors(Bucket=bucket_name, CORSConfiguration=configuration)
        except (ClientError, BotoCoreError) as error:
            logger.error("PutBucketCors on %s failed: %s", bucket_name, error)
            raise from_boto_error(error) from error
