"""Webviz stack - hosted Webviz service plus its supporting Lambdas.

Creates the load-balanced Fargate service running Webviz, the S3 bucket
(or a reference to an existing one) with CORS rules pointing at the load
balancer, and the generate-url and put-cors Lambda functions.

Deploy:   cdk deploy WebvizStack
Destroy:  cdk destroy WebvizStack
"""
import os
import aws_cdk as cdk
from constructs import Construct
from aws_cdk import (
    aws_ecr_assets as ecr_assets,
    aws_ecs as ecs,
    aws_ecs_patterns as ecs_patterns,
    aws_iam as iam,
    aws_lambda as lambda_,
    aws_logs as logs,
    aws_s3 as s3,
    custom_resources as cr,
)

from stacks.context import WebvizContext
from stacks.lambda_functions.webviz_common.cors_rules import (
    ALLOWED_HEADERS,
    ALLOWED_METHODS,
    EXPOSED_HEADERS,
)

ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
LAMBDA_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "lambda_functions")
WEBVIZ_SOURCE_DIR = os.path.join(ROOT_DIR, "webviz_source")
WEBVIZ_DOCKERFILE = "Dockerfile-webviz-nginx"


class WebvizStack(cdk.Stack):

    def __init__(self, scope: Construct, construct_id: str, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        ctx = WebvizContext.from_context(self.node.try_get_context)

        if not os.path.exists(os.path.join(WEBVIZ_SOURCE_DIR, WEBVIZ_DOCKERFILE)):
            raise FileNotFoundError(
                "Webviz Dockerfile not found. Run ./scripts/build_dependencies.sh to clone webviz locally first"
            )

        # -----------------------------------------------------------
        # Webviz service (Fargate behind an application load balancer)
        # -----------------------------------------------------------
        webviz_image = ecr_assets.DockerImageAsset(
            self, "WebvizImage",
            directory=WEBVIZ_SOURCE_DIR,
            file=WEBVIZ_DOCKERFILE,
        )

        service = ecs_patterns.ApplicationLoadBalancedFargateService(
            self, "WebvizService",
            task_image_options=ecs_patterns.ApplicationLoadBalancedTaskImageOptions(
                image=ecs.ContainerImage.from_docker_image_asset(webviz_image),
                container_port=8080,
            ),
            # Lowercase name so the DNS name matches the CORS origin exactly
            load_balancer_name="webviz-lb",
        )
        webviz_url = f"http://{service.load_balancer.load_balancer_dns_name}"

        code = lambda_.Code.from_asset(LAMBDA_DIR, exclude=["**/__pycache__"])

        # -----------------------------------------------------------
        # Put CORS Lambda (custom resource handler, also invokable directly)
        # -----------------------------------------------------------
        put_cors_role = iam.Role(
            self, "PutCorsLambdaRole",
            assumed_by=iam.ServicePrincipal("lambda.amazonaws.com"),
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name("service-role/AWSLambdaBasicExecutionRole"),
            ],
        )
        put_cors = lambda_.Function(
            self, "PutCorsFunction",
            function_name=ctx.put_cors_function_name,
            runtime=lambda_.Runtime.PYTHON_3_12,
            handler="put_cors.index.lambda_handler",
            code=code,
            timeout=cdk.Duration.seconds(30),
            role=put_cors_role,
        )

        # -----------------------------------------------------------
        # Bucket: reference an existing one and sync CORS through the
        # custom resource, or create it with the rules inline
        # -----------------------------------------------------------
        if ctx.bucket_exists:
            self.target_bucket = s3.Bucket.from_bucket_name(self, "TargetBucket", ctx.bucket_name)

            provider = cr.Provider(
                self, "CorsProvider",
                on_event_handler=put_cors,
                log_retention=logs.RetentionDays.ONE_MONTH,
            )
            cdk.CustomResource(
                self, "PutCorsRules",
                service_token=provider.service_token,
                properties={
                    "bucket_name": self.target_bucket.bucket_name,
                    "allowed_origin": webviz_url,
                },
            )
        else:
            self.target_bucket = s3.Bucket(
                self, "TargetBucket",
                bucket_name=ctx.bucket_name,
                block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
                enforce_ssl=True,
                cors=[s3.CorsRule(
                    allowed_headers=list(ALLOWED_HEADERS),
                    allowed_methods=[getattr(s3.HttpMethods, method) for method in ALLOWED_METHODS],
                    allowed_origins=[webviz_url],
                    exposed_headers=list(EXPOSED_HEADERS),
                )],
            )

        put_cors_role.add_to_policy(iam.PolicyStatement(
            actions=["s3:PutBucketCORS"],
            resources=[self.target_bucket.bucket_arn],
        ))

        # -----------------------------------------------------------
        # Generate URL Lambda (scene key -> Webviz URL)
        # -----------------------------------------------------------
        generate_url_role = iam.Role(
            self, "GenerateUrlLambdaRole",
            assumed_by=iam.ServicePrincipal("lambda.amazonaws.com"),
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name("service-role/AWSLambdaBasicExecutionRole"),
            ],
        )
        self.target_bucket.grant_read(generate_url_role)

        environment = {"WEBVIZ_ELB_URL": webviz_url}
        if ctx.scene_db:
            environment.update(ctx.scene_db.to_environment())
            generate_url_role.add_to_policy(iam.PolicyStatement(
                actions=["dynamodb:GetItem"],
                resources=[self.format_arn(
                    service="dynamodb",
                    region=ctx.scene_db.region,
                    resource="table",
                    resource_name=ctx.scene_db.table_name,
                )],
            ))

        generate_url = lambda_.Function(
            self, "GenerateUrlFunction",
            function_name=ctx.generate_url_function_name,
            runtime=lambda_.Runtime.PYTHON_3_12,
            handler="generate_url.index.lambda_handler",
            code=code,
            timeout=cdk.Duration.seconds(30),
            environment=environment,
            role=generate_url_role,
        )

        # -----------------------------------------------------------
        # Outputs
        # -----------------------------------------------------------
        cdk.CfnOutput(self, "WebvizUrl", value=webviz_url)
        cdk.CfnOutput(self, "BucketName", value=self.target_bucket.bucket_name)
        cdk.CfnOutput(self, "GenerateUrlFunctionName", value=generate_url.function_name)
        cdk.CfnOutput(self, "PutCorsFunctionName", value=put_cors.function_name)
