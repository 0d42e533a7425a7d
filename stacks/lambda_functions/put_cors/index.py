"""Put CORS Lambda.

Keeps the bucket's CORS rules pointed at the Webviz load balancer URL.

Triggered by:
  1. The CloudFormation custom resource (through the CDK Provider framework)
     on stack create, update and delete.
  2. Direct invocation with ``{"operation": ..., "properties": {...}}``,
     e.g. from scripts/put_cors.py after the load balancer URL changes.
"""
import logging

from put_cors.workflow import CorsSyncWorkflow, Operation

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def _resource_properties(event):
    properties = event.get("ResourceProperties")
    return properties if isinstance(properties, dict) else {}


def physical_resource_id(event):
    if event.get("RequestType") == Operation.DELETE.value and event.get("PhysicalResourceId"):
        return event["PhysicalResourceId"]
    bucket_name = _resource_properties(event).get("bucket_name")
    return f"{bucket_name}-cors"


def lambda_handler(event, _context):
    """Apply the lifecycle event and report the outcome to the caller."""
    logger.info("Put CORS triggered. Event: %s", event)

    result = CorsSyncWorkflow().handle(event)
    logger.info("Result: %s", result.to_dict())

    if not isinstance(event, dict) or "RequestType" not in event:
        return result.to_dict()

    # The Provider framework reports a raised error to CloudFormation as FAILED.
    if not result.succeeded:
        raise RuntimeError(result.reason)

    properties = _resource_properties(event)
    return {
        "PhysicalResourceId": physical_resource_id(event),
        "Data": {
            "BucketName": properties.get("bucket_name", ""),
            "AllowedOrigin": properties.get("allowed_origin", ""),
        },
    }
