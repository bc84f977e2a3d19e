# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

from aws_cdk import (
    aws_iam as iam,
    aws_sns as sns,
    aws_sns_subscriptions as sns_subscriptions,
    aws_kms as kms,
    aws_lambda as lambda_
)


def create_sns_topic(scope, sns_name: str, key: kms.IKey, subscribers_email: list = None,
                     publisher_services: list = None) -> sns.ITopic:
    """
    Creates an SNS topic.

    Args:
        scope (Construct): The CDK construct scope in which to define this topic.
        sns_name (str): The name of the SNS topic.
        key (kms.IKey): The KMS key to encrypt the topic.
        subscribers_email (list, optional): List of subscriber email addresses. Defaults to None.
        publisher_services (list, optional): Service principals allowed to publish. Defaults to None.

    Returns:
        sns.ITopic: The created SNS topic object.
    """
    i_sns_topic = sns.Topic(
        scope, f"rSnsTopic{sns_name.title().replace('/','').replace('-','')}",
        display_name=sns_name,
        topic_name=sns_name,
        master_key=key,
        enforce_ssl=True
    )

    if subscribers_email:
        for email_address in subscribers_email:
            i_sns_topic.add_subscription(sns_subscriptions.EmailSubscription(email_address))

    if publisher_services:
        for service in publisher_services:
            i_sns_topic.grant_publish(iam.ServicePrincipal(service))

    return i_sns_topic


def subscribe_lambda_function(topic: sns.ITopic, function: lambda_.IFunction) -> None:
    """
    Subscribes a Lambda function to an SNS topic.

    Args:
        topic (sns.ITopic): The SNS topic.
        function (lambda_.IFunction): The function invoked for each message.

    Returns:
        None
    """
    topic.add_subscription(sns_subscriptions.LambdaSubscription(function))
