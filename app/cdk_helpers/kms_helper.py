# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

from aws_cdk import (
    aws_iam as iam,
    aws_kms as kms
)


def create_kms_keys(scope) -> dict:
    """
    Create the KMS keys used by the notification topic and the Lambda function.

    The SNS key allows EC2 Image Builder to encrypt the messages it publishes
    to the encrypted topic.

    Args:
        scope (Construct): The scope in which to define this construct's resources.

    Returns:
        dict: A dictionary containing the created KMS keys (IKey).
    """
    i_kms_keys = {}

    i_sns_key = kms.Key(
        scope, "rSnsTopicKmsKey",
        enable_key_rotation=True
    )
    i_sns_key.add_alias("alias/imagebuilder-notification/kms/snstopic/key")
    i_sns_key.grant(
        iam.ServicePrincipal("imagebuilder.amazonaws.com"),
        "kms:GenerateDataKey*",
        "kms:Decrypt"
    )
    i_kms_keys['SNS'] = i_sns_key

    i_lambda_key = kms.Key(
        scope, "rLambdaKmsKey",
        enable_key_rotation=True
    )
    i_lambda_key.add_alias("alias/imagebuilder-notification/kms/lambda/key")
    i_kms_keys['Lambda'] = i_lambda_key

    return i_kms_keys
