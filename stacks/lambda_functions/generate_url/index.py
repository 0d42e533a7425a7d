"""Generate URL Lambda.

Resolves a scene key (or an S3 object) to a URL on the Webviz load balancer.

Invoked either directly (``{"scene_key": ...}``) or through an HTTP front
(API Gateway / function URL), in which case the request is read from the
query string, path parameters or JSON body and a proxy response is returned.

Environment variables (set by CDK):
  WEBVIZ_ELB_URL          - public base URL of the Webviz service (required)
  SCENE_DB_PARTITION_KEY  - partition key attribute of the scene table
  SCENE_DB_SORT_KEY       - sort key attribute, if the table has one
  SCENE_DB_REGION         - region of the scene table
  SCENE_DB_TABLE          - name of the scene table
  SCENE_URL_PREFIX        - path segment placed before the scene key (default "scenes")
  PRESIGNED_URL_EXPIRY    - lifetime of presigned object links in seconds (default 3600)
"""
import base64
import json
import logging

from webviz_common import InvalidRequest, WebvizError

from generate_url.config import ResolverConfig
from generate_url.resolver import Resolution, SceneUrlResolver

logger = logging.getLogger()
logger.setLevel(logging.INFO)

STATUS_CODES = {
    "ok": 200,
    "invalid_request": 400,
    "not_found": 404,
    "configuration": 500,
    "backend_rejected": 502,
    "unavailable": 503,
}


def is_http_event(event):
    return "requestContext" in event or "httpMethod" in event or "rawPath" in event


def parse_request(event):
    """Collect request fields from wherever the caller put them."""
    if not isinstance(event, dict):
        raise InvalidRequest("Event must be a JSON object")
    if not is_http_event(event):
        return event

    request = {}
    request.update(event.get("queryStringParameters") or {})
    request.update(event.get("pathParameters") or {})

    body = event.get("body")
    if body:
        # binascii.Error and UnicodeDecodeError are both ValueErrors.
        try:
            if event.get("isBase64Encoded"):
                body = base64.b64decode(body, validate=True).decode("utf-8")
            parsed = json.loads(body)
        except ValueError as e:
            raise InvalidRequest(f"Request body is not valid JSON: {e}") from e
        if not isinstance(parsed, dict):
            raise InvalidRequest("Request body must be a JSON object")
        request.update(parsed)
    return request


def dispatch(resolver, request):
    if request.get("bucket") or request.get("key"):
        return resolver.resolve_object(request.get("bucket"), request.get("key"))
    return resolver.resolve(request.get("scene_key"), request.get("sort_key"))


def to_response(event, resolution: Resolution):
    payload = resolution.to_dict()
    if not is_http_event(event):
        return payload
    return {
        "statusCode": STATUS_CODES.get(resolution.kind, 500),
        "headers": {"Content-Type": "application/json", "Access-Control-Allow-Origin": "*"},
        "body": json.dumps(payload),
    }


def lambda_handler(event, _context):
    """Resolve the requested scene and return its URL or a typed error."""
    logger.info("Generate URL triggered. Event: %s", event)

    try:
        request = parse_request(event)
        resolver = SceneUrlResolver(ResolverConfig.from_env())
    except WebvizError as error:
        logger.error("Rejected request before lookup: %s (%s)", error, error.kind)
        resolution = Resolution(error=error)
    else:
        resolution = dispatch(resolver, request)

    logger.info("Resolution result: %s", resolution.kind)
    return to_response(event if isinstance(event, dict) else {}, resolution)
