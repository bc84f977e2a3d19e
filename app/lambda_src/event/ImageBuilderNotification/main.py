# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import json
import logging
import os
from helper import ImageBuilderNotificationException, process_notification


LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOGGER = logging.getLogger()
LOGGER.setLevel(getattr(logging, LOG_LEVEL.upper(), logging.INFO))
logging.getLogger("botocore").setLevel(logging.ERROR)


def lambda_handler(event, context):
    """
    Handles Lambda function triggered by EC2 Image Builder SNS notifications.

    The function tags the newly built AMI (OS, Version, CostCenter, Date and Name)
    and stores the AMI id in an SSM Parameter prefixed with "/ec2ImageBuilder" so
    consumers can look up the latest image for a project and role.

    Args:
        event (dict): The SNS event payload passed by Lambda
        context (object): Lambda Context runtime methods and attributes

    Returns:
        dict: Summary of the tagged image and the SSM Parameter written
    """
    print(json.dumps(event))

    try:
        response = process_notification(
            event=event,
            region=os.getenv('AWS_REGION')
        )
        LOGGER.info(f"Published AMI {response['ImageId']} to {response['ParameterPath']}")
        return response

    except ImageBuilderNotificationException as err:
        LOGGER.error(err)
        raise
