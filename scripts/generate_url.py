"""Resolve a scene (or an S3 object) to a Webviz URL through the deployed Lambda.

Usage:
    python scripts/generate_url.py <scene_key> [sort_key]
    python scripts/generate_url.py --bucket <bucket> --key <key>
"""
import json
import sys
from typing import Optional

import boto3
from botocore.exceptions import ClientError

from config import REGION, get_stack_output

USAGE = __doc__.split("Usage:")[1]


def parse_args(args: list) -> Optional[dict]:
    """Build the invocation payload from command-line arguments."""
    if "--bucket" in args or "--key" in args:
        try:
            bucket = args[args.index("--bucket") + 1]
            key = args[args.index("--key") + 1]
        except (ValueError, IndexError):
            return None
        return {"bucket": bucket, "key": key}

    if not args or len(args) > 2:
        return None
    payload = {"scene_key": args[0]}
    if len(args) == 2:
        payload["sort_key"] = args[1]
    return payload


def invoke(payload: dict) -> dict:
    function_name = get_stack_output("GenerateUrlFunctionName")
    lambda_client = boto3.client("lambda", region_name=REGION)
    response = lambda_client.invoke(
        FunctionName=function_name,
        Payload=json.dumps(payload).encode(),
    )
    return json.loads(response["Payload"].read())


def main():
    payload = parse_args(sys.argv[1:])
    if payload is None:
        print(f"Usage:{USAGE}")
        sys.exit(2)

    try:
        result = invoke(payload)
    except ClientError as e:
        print(f"ERROR: Could not invoke generate-url function: {e}")
        sys.exit(1)

    if "resource_url" in result:
        print(result["resource_url"])
        return

    error = result.get("error", {})
    print(f"ERROR [{error.get('kind', 'unknown')}]: {error.get('message', result)}")
    sys.exit(1)


if __name__ == "__main__":
    main()
