# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Callable, List, Tuple
import boto3
from botocore.exceptions import BotoCoreError, ClientError

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOGGER = logging.getLogger()
LOGGER.setLevel(getattr(logging, LOG_LEVEL.upper(), logging.INFO))
logging.getLogger("botocore").setLevel(logging.ERROR)

GOLDEN_IMAGE = 'goldenImage'
PARAMETER_PREFIX = '/ec2ImageBuilder'
COST_CENTER = 'engineering'
AVAILABLE_STATUS = 'AVAILABLE'


class ImageBuilderNotificationException(Exception):
    """Base exception for failures while handling an Image Builder notification"""


class CardinalityError(ImageBuilderNotificationException):
    """Raised when the SNS event does not hold exactly one record"""

    def __init__(self, count: int):
        self.count = count
        super().__init__(f"Got {count} sets of records for image, expecting 1")


class DeserializationError(ImageBuilderNotificationException):
    """Raised when the SNS message is not a valid Image Builder notification"""


class SessionError(ImageBuilderNotificationException):
    """Raised when the AWS session or service clients cannot be created"""


class MalformedNotificationError(ImageBuilderNotificationException):
    """Raised when the notification is missing its output AMIs or distributions"""


class ImageNotAvailableError(ImageBuilderNotificationException):
    """Raised when the image state is anything other than AVAILABLE"""

    def __init__(self, image_id: str, status: str):
        self.image_id = image_id
        self.status = status
        super().__init__(f"The AMI with id [{image_id}] is not available (status: {status})")


class TaggingError(ImageBuilderNotificationException):
    """Raised when the EC2 CreateTags call fails"""

    def __init__(self, image_id: str, error: Exception):
        self.image_id = image_id
        super().__init__(f"Unable to tag AMI {image_id}: {error}")


class ParameterWriteError(ImageBuilderNotificationException):
    """Raised when the SSM PutParameter call fails"""

    def __init__(self, parameter_path: str, error: Exception):
        self.parameter_path = parameter_path
        super().__init__(f"Unable to write SSM Parameter {parameter_path}: {error}")


def _get_field(data: dict, key: str, expected_type: type, default=None):
    """
    Returns a field from a decoded JSON object, enforcing its JSON type.

    Missing and null fields fall back to the default. Booleans are rejected
    where an integer is expected.

    Args:
        data (dict): Decoded JSON object
        key (str): Field name
        expected_type (type): Python type the JSON value must decode to
        default: Value returned when the field is absent

    Returns:
        The field value or the default
    """
    value = data.get(key)
    if value is None:
        return default

    if (expected_type is int and isinstance(value, bool)) or not isinstance(value, expected_type):
        raise DeserializationError(
            f"Field '{key}' must be of type {expected_type.__name__}, got {type(value).__name__}"
        )

    return value


@dataclass
class AmiDistribution:
    """The amiTags of one distribution entry"""
    role: str = ''
    project: str = ''


@dataclass
class BuildNotification:
    """
    An EC2 Image Builder image state notification.

    Only the fields used to tag the AMI and publish its id are kept.
    """
    date_created: str = ''
    os_version: str = ''
    version: str = ''
    build_version: int = 0
    status: str = ''
    image_ids: List[str] = field(default_factory=list)
    distributions: List[AmiDistribution] = field(default_factory=list)

    @classmethod
    def from_message(cls, message: str) -> 'BuildNotification':
        """
        Decodes the SNS message body published by Image Builder.

        Args:
            message (str): JSON document found in the SNS record

        Returns:
            BuildNotification: The decoded notification

        Raises:
            DeserializationError: The message is not JSON or a field has the wrong type
        """
        try:
            data = json.loads(message)
        except (TypeError, ValueError) as err:
            raise DeserializationError(f"Unable to decode Image Builder notification: {err}") from err

        if not isinstance(data, dict):
            raise DeserializationError(
                f"Image Builder notification must be a JSON object, got {type(data).__name__}"
            )

        state = _get_field(data, 'state', dict, {})
        output_resources = _get_field(data, 'outputResources', dict, {})
        distribution_config = _get_field(data, 'distributionConfiguration', dict, {})

        image_ids = []
        for ami in _get_field(output_resources, 'amis', list, []):
            if not isinstance(ami, dict):
                raise DeserializationError("Entries of 'amis' must be JSON objects")
            image_ids.append(_get_field(ami, 'image', str, ''))

        distributions = []
        for distribution in _get_field(distribution_config, 'distributions', list, []):
            if not isinstance(distribution, dict):
                raise DeserializationError("Entries of 'distributions' must be JSON objects")
            ami_config = _get_field(distribution, 'amiDistributionConfiguration', dict, {})
            ami_tags = _get_field(ami_config, 'amiTags', dict, {})
            distributions.append(AmiDistribution(
                role=_get_field(ami_tags, 'role', str, ''),
                project=_get_field(ami_tags, 'project', str, '')
            ))

        return cls(
            date_created=_get_field(data, 'dateCreated', str, ''),
            os_version=_get_field(data, 'osVersion', str, ''),
            version=_get_field(data, 'version', str, ''),
            build_version=_get_field(data, 'buildVersion', int, 0),
            status=_get_field(state, 'status', str, ''),
            image_ids=image_ids,
            distributions=distributions
        )

    @property
    def image_id(self) -> str:
        """Id of the first output AMI"""
        if not self.image_ids:
            raise MalformedNotificationError("The notification does not list any output AMIs")
        return self.image_ids[0]

    @property
    def distribution(self) -> AmiDistribution:
        """The first distribution entry"""
        if not self.distributions:
            raise MalformedNotificationError("The notification does not list any distributions")
        return self.distributions[0]


@dataclass
class ImageNaming:
    """Names derived from a notification"""
    semantic_version: str
    image_name: str
    parameter_path: str


def get_notification_message(event: dict) -> str:
    """
    Returns the message body of the single record of an SNS event.

    Args:
        event (dict): The SNS event passed to the Lambda function

    Returns:
        str: The SNS message

    Raises:
        CardinalityError: The event does not hold exactly one record
    """
    records = event.get('Records') or []
    if len(records) != 1:
        raise CardinalityError(len(records))

    try:
        return records[0]['Sns']['Message']
    except (KeyError, TypeError) as err:
        raise DeserializationError(f"SNS record does not contain a message: {err}") from err


def derive_image_naming(notification: BuildNotification) -> ImageNaming:
    """
    Builds the AMI Name tag and the SSM Parameter path for a notification.

    Golden images are published under a single path, every other image under
    its project and role.

    Args:
        notification (BuildNotification): The decoded notification

    Returns:
        ImageNaming: semantic version, image name and parameter path
    """
    semantic_version = f"{notification.version}/{notification.build_version}"
    role = notification.distribution.role
    project = notification.distribution.project

    if role.casefold() == GOLDEN_IMAGE.casefold():
        image_name = f"{GOLDEN_IMAGE}-{semantic_version}"
        parameter_path = f"{PARAMETER_PREFIX}/{GOLDEN_IMAGE}"
    else:
        image_name = f"{project}-{role}-{semantic_version}"
        parameter_path = f"{PARAMETER_PREFIX}/{project}/{role}"

    return ImageNaming(
        semantic_version=semantic_version,
        image_name=image_name,
        parameter_path=parameter_path
    )


def build_image_tags(notification: BuildNotification, image_name: str) -> List[dict]:
    """Returns the tags applied to a new AMI"""
    return [
        {'Key': 'OS', 'Value': notification.os_version},
        {'Key': 'Version', 'Value': notification.version},
        {'Key': 'CostCenter', 'Value': COST_CENTER},
        {'Key': 'Date', 'Value': notification.date_created},
        {'Key': 'Name', 'Value': image_name}
    ]


def create_service_clients(region: str) -> Tuple[boto3.client, boto3.client]:
    """
    Creates the EC2 and SSM clients for the given region.

    Args:
        region (str): AWS Region the AMI lives in

    Returns:
        tuple: EC2 client and SSM client

    Raises:
        SessionError: The session or clients could not be created
    """
    try:
        session = boto3.session.Session(region_name=region)
        return session.client('ec2'), session.client('ssm')

    except (BotoCoreError, ClientError) as err:
        LOGGER.warning(f"Error creating aws session: {err}")
        raise SessionError(f"Unable to create AWS session for region {region}: {err}") from err


def tag_image(client: boto3.client, image_id: str, tags: List[dict]) -> None:
    """
    Applies tags to an AMI.

    Args:
        client (boto3.client): EC2 client
        image_id (str): AMI id
        tags (list): Tags as Key/Value dicts

    Raises:
        TaggingError: The CreateTags call failed
    """
    LOGGER.info(f"Tagging AMI {image_id} with {tags}")
    try:
        client.create_tags(
            Resources=[image_id],
            Tags=tags
        )

    except (BotoCoreError, ClientError) as err:
        raise TaggingError(image_id, err) from err


def put_image_parameter(client: boto3.client, parameter_path: str, image_id: str) -> int:
    """
    Stores the AMI id as a SecureString SSM Parameter, overwriting any previous value.

    Args:
        client (boto3.client): SSM client
        parameter_path (str): Name of the parameter
        image_id (str): AMI id

    Returns:
        int: Version of the parameter

    Raises:
        ParameterWriteError: The PutParameter call failed
    """
    LOGGER.info(f"Updating SSM Parameter {parameter_path} with value {image_id}")
    try:
        response = client.put_parameter(
            Name=parameter_path,
            Value=image_id,
            Type='SecureString',
            Overwrite=True
        )

    except (BotoCoreError, ClientError) as err:
        raise ParameterWriteError(parameter_path, err) from err

    return response.get('Version')


def process_notification(event: dict, region: str,
                         client_factory: Callable[[str], Tuple] = create_service_clients) -> dict:
    """
    Tags the AMI announced by an Image Builder notification and publishes its id to SSM.

    The tags are not removed if the parameter write fails afterwards.

    Args:
        event (dict): The SNS event passed to the Lambda function
        region (str): AWS Region used for the EC2 and SSM clients
        client_factory (Callable): Returns the EC2 and SSM clients for a region

    Returns:
        dict: Summary of the published image

    Raises:
        CardinalityError: The event does not hold exactly one record
        DeserializationError: The message is not a valid notification
        SessionError: The EC2 and SSM clients could not be created
        MalformedNotificationError: The notification lists no AMIs or distributions
        ImageNotAvailableError: The image state is not AVAILABLE
        TaggingError: The CreateTags call failed
        ParameterWriteError: The PutParameter call failed
    """
    message = get_notification_message(event)
    notification = BuildNotification.from_message(message)

    ec2_client, ssm_client = client_factory(region)

    naming = derive_image_naming(notification)
    image_id = notification.image_id

    if notification.status != AVAILABLE_STATUS:
        raise ImageNotAvailableError(image_id, notification.status)

    tag_image(
        client=ec2_client,
        image_id=image_id,
        tags=build_image_tags(notification, naming.image_name)
    )
    parameter_version = put_image_parameter(
        client=ssm_client,
        parameter_path=naming.parameter_path,
        image_id=image_id
    )

    return {
        "Service": "ImageBuilderNotification",
        "Status": "Succeeded",
        "ImageId": image_id,
        "ImageName": naming.image_name,
        "ParameterPath": naming.parameter_path,
        "ParameterVersion": parameter_version
    }
