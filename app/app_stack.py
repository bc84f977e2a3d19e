# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

from aws_cdk import (
    Stack,
    Tags,
    Aspects,
    CfnOutput,
    aws_iam as iam
)
from constructs import Construct
from cdk_nag import AwsSolutionsChecks, NagSuppressions
from app.cdk_helpers.helper import replace_ssm_in_config
from app.cdk_helpers.kms_helper import create_kms_keys
from app.cdk_helpers.sns_helper import create_sns_topic, subscribe_lambda_function
from app.cdk_helpers.lambda_helper import create_lambda_function

PARAMETER_PREFIX = "ec2ImageBuilder"


class ImageBuilderNotificationStack(Stack):
    """
    Image Builder Notification Stack
    """

    def __init__(self, scope: Construct, construct_id: str, config: dict, **kwargs) -> None:
        """
        Initialize the construct.

        Creates the SNS topic EC2 Image Builder pipelines publish to and the
        Lambda function that tags each new AMI and stores its id in SSM.

        Args:
            scope (Construct): The construct scope
            construct_id (str): Unique ID for the construct
            config (dict): Configuration dictionary
            **kwargs: Additional arguments

        Returns:
            None
        """
        super().__init__(scope, construct_id, **kwargs)

        # Replace SSM Parameters within config file
        config = replace_ssm_in_config(scope=self, input_config=config)

        account_id = Stack.of(self).account
        region = Stack.of(self).region
        partition = Stack.of(self).partition

        # KMS Keys
        i_kms_keys = create_kms_keys(scope=self)

        # SNS Topic used as the Image Builder infrastructure configuration snsTopicArn
        i_notification_sns = create_sns_topic(
            scope=self, sns_name=config['appInfrastructure']['sns']['topicName'],
            key=i_kms_keys['SNS'],
            subscribers_email=config['appInfrastructure']['sns'].get('subscribersEmail'),
            publisher_services=["imagebuilder.amazonaws.com"]
        )

        # IAM Role for cdk log retention
        i_log_retention_role = iam.Role(
            self, "rLogRetentionRole",
            assumed_by=iam.ServicePrincipal("lambda.amazonaws.com"),
            description="IAM Role for the Log Retention Solution"
        )
        i_log_retention_role.add_managed_policy(
            iam.ManagedPolicy.from_aws_managed_policy_name("service-role/AWSLambdaBasicExecutionRole")
        )
        i_log_retention_role.add_to_policy(
            statement=iam.PolicyStatement(
            actions=[
                "logs:CreateLogGroup",
                "logs:DeleteRetentionPolicy",
                "logs:PutRetentionPolicy"
            ],
            resources=["*"]
        ))

        # Lambda Event Based
        i_notification_fn = create_lambda_function(
            scope=self,
            function_name='ImageBuilderNotification',
            function_path='event',
            description='This function will tag each new Image Builder AMI and store its id in an SSM Parameter.',
            timeout=config['appInfrastructure']['lambda'].get('timeout', 60),
            retention_role=i_log_retention_role,
            key=i_kms_keys['Lambda'],
            env_vars={
                "LOG_LEVEL": config['appInfrastructure']['lambda']['functionLogLevel']
            }
        )
        i_notification_fn.add_to_role_policy(
            statement=iam.PolicyStatement(
            actions=["ec2:CreateTags"],
            resources=[f"arn:{partition}:ec2:{region}::image/*"]
        ))
        i_notification_fn.add_to_role_policy(
            statement=iam.PolicyStatement(
            actions=["ssm:PutParameter"],
            resources=[f"arn:{partition}:ssm:{region}:{account_id}:parameter/{PARAMETER_PREFIX}/*"]
        ))
        subscribe_lambda_function(topic=i_notification_sns, function=i_notification_fn)

        CfnOutput(self, "oImageBuilderNotificationTopicArn", value=i_notification_sns.topic_arn)

        NagSuppressions.add_stack_suppressions(
            self,
            [{
                "id": 'AwsSolutions-IAM4',
                "reason": 'The IAM user, role, or group uses AWS managed policies.'
            },
            {
                "id": 'AwsSolutions-IAM5',
                "reason": 'The IAM entity contains wildcard permissions and does not have a cdk-nag rule suppression' \
                    ' with evidence for those permission. AMI ids and parameter paths are only known at runtime.'
            },
            {
                "id": 'AwsSolutions-L1',
                "reason": 'The non-container Lambda function is not configured to use the latest runtime version.'
            }]
        )

        # Add tags to all resources created
        for key, value in (config.get('tags') or {}).items():
            Tags.of(self).add(key, str(value))

        Aspects.of(self).add(AwsSolutionsChecks())
