"""CORS synchronization lifecycle.

Create and Update push the rule set derived from the allowed origin onto the
bucket; Delete does nothing. Nothing is stored between invocations, so a
re-delivered event simply overwrites the bucket with the same rules.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional

from webviz_common import ConfigurationError, WebvizError
from webviz_common.cors_rules import rule_set_for_origin

from .applier import CorsPolicyApplier

logger = logging.getLogger(__name__)

SUCCESS = "Success"
FAILED = "Failed"


class Operation(Enum):
    CREATE = "Create"
    UPDATE = "Update"
    DELETE = "Delete"

    @classmethod
    def parse(cls, value) -> "Operation":
        for operation in cls:
            if isinstance(value, str) and value.strip().lower() == operation.value.lower():
                return operation
        raise ConfigurationError(f"Unknown operation {value!r}; expected Create, Update or Delete")


@dataclass(frozen=True)
class ProvisioningEvent:
    operation: Operation
    properties: Mapping = field(default_factory=dict)
    request_token: Optional[str] = None
    physical_resource_id: Optional[str] = None

    @property
    def bucket_name(self) -> Optional[str]:
        return self.properties.get("bucket_name")

    @property
    def allowed_origin(self) -> Optional[str]:
        return self.properties.get("allowed_origin")

    @staticmethod
    def from_payload(payload) -> "ProvisioningEvent":
        """Accept CloudFormation custom resource events and direct invocations."""
        if not isinstance(payload, Mapping):
            raise ConfigurationError("Event must be a JSON object")

        if "RequestType" in payload:
            operation = Operation.parse(payload["RequestType"])
            return ProvisioningEvent(
                operation=operation,
                properties=_properties(operation, payload.get("ResourceProperties")),
                request_token=payload.get("RequestId"),
                physical_resource_id=payload.get("PhysicalResourceId"),
            )
        operation = Operation.parse(payload.get("operation"))
        return ProvisioningEvent(
            operation=operation,
            properties=_properties(operation, payload.get("properties")),
            request_token=payload.get("request_token"),
        )


def _properties(operation: Operation, raw) -> Mapping:
    # Delete never reads its properties, so it tolerates any shape.
    if operation is Operation.DELETE:
        return raw if isinstance(raw, Mapping) else {}
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"properties must be an object, got {type(raw).__name__}")
    return raw


@dataclass(frozen=True)
class SyncResult:
    status: str
    reason: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == SUCCESS

    def to_dict(self) -> dict:
        result = {"status": self.status}
        if self.reason is not None:
            result["reason"] = self.reason
        return result


def on_apply(event: ProvisioningEvent, applier: CorsPolicyApplier) -> SyncResult:
    bucket_name = event.bucket_name
    if not isinstance(bucket_name, str) or not bucket_name.strip():
        raise ConfigurationError("bucket_name is required")
    # Derived before any call so a bad origin never reaches the bucket.
    rules = rule_set_for_origin(event.allowed_origin)
    applier.apply(bucket_name.strip(), rules)
    return SyncResult(SUCCESS)


def on_delete(event: ProvisioningEvent, applier: CorsPolicyApplier) -> SyncResult:
    # Rules stay on the bucket; it is usually being deleted or repurposed.
    logger.info("Delete for bucket %s is a no-op", event.bucket_name)
    return SyncResult(SUCCESS)


HANDLERS = {
    Operation.CREATE: on_apply,
    Operation.UPDATE: on_apply,
    Operation.DELETE: on_delete,
}


class CorsSyncWorkflow:
    def __init__(self, applier: Optional[CorsPolicyApplier] = None) -> None:
        self._applier = applier or CorsPolicyApplier()

    def handle(self, payload) -> SyncResult:
        """Run one lifecycle event and report Success or Failed with a reason.

        Failures are returned, never retried here; the orchestrator re-delivers.
        """
        try:
            event = ProvisioningEvent.from_payload(payload)
        except WebvizError as error:
            logger.error("Rejected provisioning event: %s", error)
            return SyncResult(FAILED, str(error))

        logger.info(
            "Handling %s for bucket %s (request %s)",
            event.operation.value, event.bucket_name, event.request_token,
        )
        try:
            result = HANDLERS[event.operation](event, self._applier)
        except WebvizError as error:
            logger.error("%s for bucket %s failed: %s", event.operation.value, event.bucket_name, error)
            return SyncResult(FAILED, str(error))

        logger.info("%s for bucket %s succeeded", event.operation.value, event.bucket_name)
        return result
