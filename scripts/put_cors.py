"""Re-apply (or skip) the bucket CORS rules through the deployed put-cors Lambda.

Useful after the load balancer URL changes outside a stack update.

Usage:
    python scripts/put_cors.py              # Apply rules for the stack's Webviz URL
    python scripts/put_cors.py --delete     # Send a Delete event (no-op, for checking wiring)
"""
import json
import sys
import uuid

import boto3
from botocore.exceptions import ClientError

from config import REGION, get_stack_output


def main():
    operation = "Delete" if "--delete" in sys.argv[1:] else "Update"

    payload = {
        "operation": operation,
        "properties": {
            "bucket_name": get_stack_output("BucketName"),
            "allowed_origin": get_stack_output("WebvizUrl"),
        },
        "request_token": f"manual-{uuid.uuid4().hex[:12]}",
    }
    print(f"Sending {operation} for bucket {payload['properties']['bucket_name']}")
    print(f"  allowed origin: {payload['properties']['allowed_origin']}")

    lambda_client = boto3.client("lambda", region_name=REGION)
    try:
        response = lambda_client.invoke(
            FunctionName=get_stack_output("PutCorsFunctionName"),
            Payload=json.dumps(payload).encode(),
        )
    except ClientError as e:
        print(f"ERROR: Could not invoke put-cors function: {e}")
        sys.exit(1)

    result = json.loads(response["Payload"].read())
    print(f"Status: {result.get('status')}")
    if result.get("status") != "Success":
        print(f"Reason: {result.get('reason')}")
        sys.exit(1)


if __name__ == "__main__":
    main()
