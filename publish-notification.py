# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import os
import logging
import json
from argparse import ArgumentParser
import boto3

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOGGER = logging.getLogger()
LOGGER.setLevel(getattr(logging, LOG_LEVEL.upper(), logging.INFO))
logging.getLogger("botocore").setLevel(logging.ERROR)


def load_notification(file_path: str, status: str = None) -> dict:
    """
    Load an EC2 Image Builder notification from a JSON file.

    Args:
        file_path (str): Path of the JSON document, e.g. copied from a failed Lambda invocation log.
        status (str, optional): Replaces state.status in the document when set.

    Returns:
        dict: The notification.
    """
    with open(file_path, 'r', encoding="utf-8") as f:
        notification = json.load(f)

    if status:
        notification.setdefault('state', {})['status'] = status

    return notification


def get_topic_arn(topic_name: str, region: str) -> str:
    """
    Build the ARN of the notification topic in the caller's account.

    Args:
        topic_name (str): Name of the SNS topic.
        region (str): AWS Region of the topic.

    Returns:
        str: The topic ARN.
    """
    sts_client = boto3.client('sts', region_name=region)
    identity = sts_client.get_caller_identity()
    partition = identity['Arn'].split(':')[1]
    return f"arn:{partition}:sns:{region}:{identity['Account']}:{topic_name}"


if __name__ == "__main__":
    LOGGER.debug("Starting script...")

    try:
        parser = ArgumentParser(
            description='Publish an EC2 Image Builder notification to re-run AMI tagging and SSM publication'
        )
        # REQUIRED
        parser.add_argument('-f', '--file', dest='file_path', required=True,
                            help='Path to the Image Builder notification JSON document')

        # OPTIONAL
        parser.add_argument('-t', '--topic-name', dest='topic_name', default='ImageBuilderNotification',
                            required=False, help='Name of the SNS topic the notification Lambda Function subscribes to')
        parser.add_argument('-r', '--region', dest='region', default='us-east-1',
                            required=False, help='AWS Region the SNS topic resides')
        parser.add_argument('-s', '--status', dest='status', type=str.upper, required=False,
                            help='Override the image state status in the notification (e.g. AVAILABLE)')

        args, _ = parser.parse_known_args()

        notification = load_notification(file_path=args.file_path, status=args.status)
        topic_arn = get_topic_arn(topic_name=args.topic_name, region=args.region)

        sns_client = boto3.client('sns', region_name=args.region)
        response = sns_client.publish(
            TopicArn=topic_arn,
            Message=json.dumps(notification)
        )
        LOGGER.debug(response)
        print(f"Published notification to {topic_arn} with MessageId {response['MessageId']}")

    except Exception as e:
        LOGGER.exception(e)
