"""Shared settings for the operator scripts (override through the environment)."""
import os

import boto3

REGION = os.environ.get("AWS_REGION", os.environ.get("AWS_DEFAULT_REGION", "us-east-1"))
STACK_NAME = os.environ.get("WEBVIZ_STACK_NAME", "WebvizStack")


def get_stack_output(output_key: str) -> str:
    """Read one CloudFormation output of the deployed Webviz stack."""
    cfn = boto3.client("cloudformation", region_name=REGION)
    response = cfn.describe_stacks(StackName=STACK_NAME)
    for output in response["Stacks"][0].get("Outputs", []):
        if output["OutputKey"] == output_key:
            return output["OutputValue"]
    raise KeyError(f"Stack {STACK_NAME} has no output {output_key}")
