# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

from aws_cdk import aws_ssm as ssm


def get_ssm_value(scope, parameter_name: str) -> str:
    """Retrieves the value of a Systems Manager parameter at synth time.

    Args:
        scope (cdk.Construct): The construct scope.
        parameter_name (str): The name of the SSM parameter.

    Returns:
        str: The value of the SSM parameter.

    Before the first lookup CDK returns a placeholder containing 'dummy-value';
    the placeholder is returned as-is so synthesis can finish and the real value
    is filled in from cdk.context.json on the next run.
    """
    _value = ssm.StringParameter.value_from_lookup(scope, parameter_name)
    if "dummy-value" in _value:
        return "dummy-value"

    return _value


def replace_ssm_in_config(scope, input_config):
    """Replaces SSM references in a configuration dictionary.

    Args:
        scope (cdk.Construct): The construct scope.
        input_config: The configuration dictionary, list, or value.

    Returns:
        The updated configuration with SSM values resolved.

    Strings starting with "SSM:" are replaced by the value of the named
    parameter. Dictionaries and lists are searched recursively.
    """
    if isinstance(input_config, dict):
        return {key: replace_ssm_in_config(scope, value) for key, value in input_config.items()}
    if isinstance(input_config, list):
        return [replace_ssm_in_config(scope, item) for item in input_config]
    if isinstance(input_config, str) and input_config.startswith("SSM:"):
        return get_ssm_value(scope, parameter_name=input_config[4:])
    return input_config
