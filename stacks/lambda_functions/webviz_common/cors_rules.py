"""CORS rule set served to the Webviz front-end.

Used both by the put-cors function and by the CDK stack when it creates the
bucket itself, so a new bucket and an existing one end up with the same rules.
"""
from dataclasses import dataclass
from typing import List, Tuple
from urllib.parse import urlparse

from .errors import ConfigurationError

ALLOWED_HEADERS = ("*",)
ALLOWED_METHODS = ("HEAD", "GET")
# Webviz range-reads bag files, so it needs these response headers.
EXPOSED_HEADERS = ("ETag", "Content-Type", "Accept-Ranges", "Content-Length")


@dataclass(frozen=True)
class CorsRule:
    allowed_origins: Tuple[str, ...]
    allowed_methods: Tuple[str, ...] = ALLOWED_METHODS
    allowed_headers: Tuple[str, ...] = ALLOWED_HEADERS
    exposed_headers: Tuple[str, ...] = EXPOSED_HEADERS

    def to_s3(self) -> dict:
        """Render as one entry of ``CORSConfiguration["CORSRules"]``."""
        return {
            "AllowedHeaders": list(self.allowed_headers),
            "AllowedMethods": list(self.allowed_methods),
            "AllowedOrigins": list(self.allowed_origins),
            "ExposeHeaders": list(self.exposed_headers),
        }


def validate_origin(origin) -> str:
    """Return the origin with surrounding whitespace and trailing slash removed.

    Browsers send origins as ``scheme://host[:port]`` with no path, so anything
    else would never match.
    """
    if not isinstance(origin, str) or not origin.strip():
        raise ConfigurationError("allowed_origin is required")
    origin = origin.strip().rstrip("/")
    if origin == "*":
        return origin
    parsed = urlparse(origin)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigurationError(f"allowed_origin must look like http(s)://host, got {origin!r}")
    if parsed.path or parsed.query or parsed.fragment:
        raise ConfigurationError(f"allowed_origin must not carry a path or query, got {origin!r}")
    return origin


def rule_set_for_origin(origin: str) -> List[CorsRule]:
    return [CorsRule(allowed_origins=(validate_origin(origin),))]


def to_cors_configuration(rules: List[CorsRule]) -> dict:
    return {"CORSRules": [rule.to_s3() for rule in rules]}
