"""CDK app entry point for Webviz on AWS.

One stack:
  - WebvizStack: Webviz on Fargate behind a load balancer, the data bucket
    and its CORS rules, and the generate-url / put-cors Lambdas

Before the first deploy:  ./scripts/build_dependencies.sh
Deploy:                   cdk deploy
Existing bucket:          cdk deploy -c bucket_name=my-bucket -c bucket_exists=true
Destroy:                  cdk destroy
"""
import aws_cdk as cdk
from stacks.webviz_stack import WebvizStack

app = cdk.App()

region = app.node.try_get_context("region")

WebvizStack(app, "WebvizStack",
            env=cdk.Environment(region=region),
            description="Webviz - hosted ROS bag visualization backed by S3")

tags: dict = app.node.try_get_context("tags") or {}
for tag_key, tag_value in tags.items():
    cdk.Tags.of(app).add(tag_key, tag_value)

app.synth()
