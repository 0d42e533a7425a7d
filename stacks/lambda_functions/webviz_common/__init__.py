"""Shared plumbing for the Webviz Lambda functions.

Packaged alongside each function (the whole ``lambda_functions`` directory is
the asset), so handlers import it as a top-level package.
"""
from .errors import (
    BackendRejected,
    ConfigurationError,
    InvalidRequest,
    NotFound,
    Unavailable,
    WebvizError,
    from_boto_error,
)

__all__ = [
    "BackendRejected",
    "ConfigurationError",
    "InvalidRequest",
    "NotFound",
    "Unavailable",
    "WebvizError",
    "from_boto_error",
]
