import boto3
from logzero import logger


def aws_client(service: str, region: str = None):
    """
    Create a boto3 client for an AWS service.

    Credentials are resolved the usual boto3 way (environment, shared
    credentials file, instance profile).

    :param service: The AWS service name, e.g. 'ssm' or 'ec2'
    :type service: str
    :param region: The AWS region. None defers to the boto3 default region.
        Optional. (Default: None)
    :type region: str
    :return: botocore.client.BaseClient
    """
    logger.debug("Creating %s client for region %s", service, region)
    session = boto3.session.Session(region_name=region)
    return session.client(service)


def mask(text: str, *secrets) -> str:
    """
    Replace every occurrence of each non-empty secret in text with '****'.
    """
    for secret in secrets:
        if secret:
            text = text.replace(secret, "****")
    return text
