from collections import namedtuple

from botocore.exceptions import BotoCoreError, ClientError
from logzero import logger

from liac.common import InventoryError

from typing import Dict, List

Instance = namedtuple('Instance', ['instance_id', 'tags', 'private_ip', 'state'])


def instance_from_description(description: Dict) -> Instance:
    """
    Convert one EC2 instance description into an Instance.

    :param description: An element of a reservation's 'Instances' list as
        returned by DescribeInstances.
    :type description: Dict
    :return: Instance
    """
    tags = {}
    for tag in description.get('Tags', []):
        tags[tag['Key']] = tag.get('Value', '')
    state = description.get('State', {}).get('Name')
    return Instance(description.get('InstanceId'), tags,
                    description.get('PrivateIpAddress'), state)


def describe_fleet(ec2_client, filters: List[Dict] = None) -> List[Instance]:
    """
    Return every instance visible to the client's credentials and region.

    Instances are returned in inventory order (reservation by reservation,
    page by page). Nothing is cached; each call is a fresh snapshot.

    :param ec2_client: A boto3 EC2 client
    :param filters: DescribeInstances filters applied provider side.
        Optional. (Default: None)
    :type filters: List[Dict]
    :return: List[Instance]
    """
    kwargs = {}
    if filters:
        kwargs['Filters'] = filters

    instances = []
    try:
        paginator = ec2_client.get_paginator('describe_instances')
        for page in paginator.paginate(**kwargs):
            for reservation in page.get('Reservations', []):
                for description in reservation.get('Instances', []):
                    instances.append(instance_from_description(description))
    except (BotoCoreError, ClientError) as e:
        logger.error("Failed to describe instances: %s", e)
        raise InventoryError("Unable to query instance inventory: {}".format(
            e)) from e

    logger.debug("Described %d instance(s)", len(instances))
    return instances
