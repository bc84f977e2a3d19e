#!/usr/bin/env python3
# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import os
import aws_cdk as cdk
import yaml
from app.app_stack import ImageBuilderNotificationStack

CONFIG_FILE_PATH = os.getenv('CONFIG_FILE_PATH', './configs/deploy-config.yaml')

with open(CONFIG_FILE_PATH, 'r', encoding="utf-8") as f:
    config = yaml.load(f, Loader=yaml.SafeLoader)

app = cdk.App()
stack_name = config['appInfrastructure']['cloudformation']['stackName']
ImageBuilderNotificationStack(
    app, stack_name,
    stack_name=stack_name,
    env=cdk.Environment(
        account=os.getenv('CDK_DEFAULT_ACCOUNT'),
        region=os.getenv('CDK_DEFAULT_REGION')
    ),
    config=config
)

app.synth()
