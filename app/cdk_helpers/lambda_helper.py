# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

from os import path
from pathlib import Path
from aws_cdk import (
    Duration,
    RemovalPolicy,
    BundlingOptions,
    DockerImage,
    BundlingOutput,
    aws_lambda as lambda_,
    aws_logs as logs,
    aws_iam as iam,
    aws_kms as kms
)

BUILD_IMAGE = "public.ecr.aws/sam/build-python3.12:1.117.0-20240521231233"


def create_lambda_function(scope, function_name: str, function_path: str, retention_role: iam.IRole,
                           key: kms.IKey, timeout: int = 60, env_vars: dict = None,
                           description: str = 'Lambda') -> lambda_.IFunction:
    """
    Creates an AWS Lambda function from a folder under lambda_src.

    The folder is bundled with its requirements.txt and must contain main.py
    with a lambda_handler function.

    Args:
        scope (Construct): The CDK construct scope in which to define this function.
        function_name (str): The name of the Lambda function and of its source folder.
        function_path (str): The folder under lambda_src holding the function.
        retention_role (iam.IRole): The IAM role for log retention.
        key (kms.IKey): The KMS key to encrypt environment variables.
        timeout (int): The function timeout in seconds.
        env_vars (dict): Optional dict of environment variables.
        description (str): An optional description.

    Returns:
        lambda_.IFunction: The Lambda function object.
    """
    i_function = lambda_.Function(
        scope, f"rLambdaFunction{function_name}",
        function_name=function_name,
        runtime=lambda_.Runtime.PYTHON_3_12,
        handler="main.lambda_handler",
        description=description,
        code=lambda_.Code.from_asset(
            path=path.join(Path(__file__).parents[0], f"../lambda_src/{function_path}/{function_name}"),
            bundling=BundlingOptions(
                image=DockerImage.from_registry(BUILD_IMAGE),
                command=[
                    'bash',
                    '-c',
                    'pip3 install -r requirements.txt -t /asset-output && cp -au . /asset-output',
                ],
                output_type=BundlingOutput.AUTO_DISCOVER
            ),
        ),
        environment_encryption=key,
        timeout=Duration.seconds(timeout)
    )

    logs.LogRetention(
        scope, f"rLogRetention{function_name}",
        log_group_name=f"/aws/lambda/{function_name}",
        retention=logs.RetentionDays.TWO_MONTHS,
        removal_policy=RemovalPolicy.DESTROY,
        role=retention_role
    )

    if env_vars:
        for env_key, env_value in env_vars.items():
            i_function.add_environment(
                key=env_key,
                value=env_value
            )

    return i_function
