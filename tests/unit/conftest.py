# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0
import json
import botocore.session
from botocore.stub import Stubber
import pytest


@pytest.fixture(scope="function")
def aws_credentials(monkeypatch):
    """Mocked AWS creds for moto tests"""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.setenv("AWS_REGION", "us-east-1")


TEST_IMAGE_ID = "ami-0a1b2c3d4e5f67890"


@pytest.fixture
def notification_factory():
    """Returns a function building an Image Builder notification document"""

    def _build(role="webserver", project="acme", version="1.2.3", build_version=7,
               status="AVAILABLE", image_id=TEST_IMAGE_ID):
        return {
            "versionlessArn": "arn:aws:imagebuilder:us-east-1:123456789012:image/acme-webserver",
            "semver": 1237940039285380274899124231,
            "arn": f"arn:aws:imagebuilder:us-east-1:123456789012:image/acme-webserver/{version}/{build_version}",
            "name": "acme-webserver",
            "version": version,
            "type": "AMI",
            "buildVersion": build_version,
            "state": {"status": status},
            "platform": "Linux",
            "osVersion": "Amazon Linux 2",
            "dateCreated": "Oct 19, 2026 8:15:02 AM",
            "outputResources": {
                "amis": [
                    {
                        "region": "us-east-1",
                        "image": image_id,
                        "name": "acme-webserver 2026-10-19T08-15-02.112Z",
                        "accountId": "123456789012"
                    }
                ]
            },
            "distributionConfiguration": {
                "distributions": [
                    {
                        "region": "us-east-1",
                        "amiDistributionConfiguration": {
                            "name": "acme-webserver {{imagebuilder:buildDate}}",
                            "amiTags": {"role": role, "project": project}
                        }
                    }
                ],
                "timeoutMinutes": 720
            }
        }

    return _build


@pytest.fixture
def sns_event_factory():
    """Returns a function wrapping messages into an SNS Lambda event"""

    def _build(*messages):
        return {
            "Records": [
                {
                    "EventSource": "aws:sns",
                    "EventVersion": "1.0",
                    "Sns": {
                        "Type": "Notification",
                        "TopicArn": "arn:aws:sns:us-east-1:123456789012:ImageBuilderNotification",
                        "Subject": None,
                        "Message": message if isinstance(message, str) else json.dumps(message)
                    }
                }
                for message in messages
            ]
        }

    return _build


@pytest.fixture
def stubbed_ec2_client(aws_credentials):
    """Stubbed EC2 client, yields the client and its stubber

    Args:
        aws_credentials (_type_): Mocked creds to prevent unintended side effects
    """
    ec2_client = botocore.session.get_session().create_client(
        "ec2", region_name="us-east-1"
    )
    stubber = Stubber(ec2_client)
    stubber.activate()
    yield ec2_client, stubber
    stubber.deactivate()


@pytest.fixture
def stubbed_ssm_client(aws_credentials):
    """Stubbed SSM client, yields the client and its stubber

    Args:
        aws_credentials (_type_): Mocked creds to prevent unintended side effects
    """
    ssm_client = botocore.session.get_session().create_client(
        "ssm", region_name="us-east-1"
    )
    stubber = Stubber(ssm_client)
    stubber.activate()
    yield ssm_client, stubber
    stubber.deactivate()
