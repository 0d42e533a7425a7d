"""Error taxonomy shared by the put-cors and generate-url functions.

Every error carries a ``kind`` string that ends up in the structured result
returned to the caller, so callers can tell "this scene does not exist"
apart from "try again later" without parsing messages.
"""
from botocore.exceptions import BotoCoreError, ClientError, ParamValidationError

# Client error codes that mean the backend was reachable but could not serve
# the request right now.
TRANSIENT_ERROR_CODES = frozenset({
    "InternalError",
    "InternalServerError",
    "ProvisionedThroughputExceededException",
    "RequestLimitExceeded",
    "RequestTimeout",
    "ServiceUnavailable",
    "SlowDown",
    "Throttling",
    "ThrottlingException",
})


class WebvizError(RuntimeError):
    kind = "error"

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": str(self)}


class ConfigurationError(WebvizError):
    """Required input missing or malformed. Raised before any side effect."""

    kind = "configuration"


class InvalidRequest(WebvizError):
    kind = "invalid_request"


class BackendRejected(WebvizError):
    """The backend answered with a permission or validation error."""

    kind = "backend_rejected"


class NotFound(WebvizError):
    kind = "not_found"


class Unavailable(WebvizError):
    """Transient failure reaching a dependency. Safe to retry."""

    kind = "unavailable"


def error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


def from_boto_error(error: Exception) -> WebvizError:
    """Translate a botocore exception into the shared taxonomy.

    The backend message is kept verbatim.
    """
    if isinstance(error, ClientError):
        status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode") or 0
        if error_code(error) in TRANSIENT_ERROR_CODES or status >= 500:
            return Unavailable(str(error))
        return BackendRejected(str(error))
    if isinstance(error, ParamValidationError):
        return BackendRejected(str(error))
    if isinstance(error, BotoCoreError):
        return Unavailable(str(error))
    raise TypeError(f"Not a botocore error: {error!r}")
