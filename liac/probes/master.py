from collections import namedtuple

from logzero import logger

from liac.common import (
    AmbiguousMasterError,
    DEFAULT_LIAC_FLEET_TAG_VALUE,
    DEFAULT_LIAC_MASTER_STATE,
    DEFAULT_LIAC_STATE_TAG,
    FleetConfig,
    MasterNotFoundError,
    MasterNotReadyError,
    ResolutionStatus,
    Target,
)
from liac.probes.inventory import Instance, describe_fleet

from typing import Iterable

MasterResolution = namedtuple('MasterResolution',
                              ['status', 'address', 'instance_ids'])


def resolve_master(instances: Iterable[Instance],
                   state_tag: str = DEFAULT_LIAC_STATE_TAG,
                   fleet_tag: str = None) -> MasterResolution:
    """
    Find the instance playing the role of Locust master.

    Every instance is inspected, so a fleet with more than one master is
    reported as AMBIGUOUS rather than resolved to whichever came first.

    :param instances: An inventory snapshot, see
        liac.probes.inventory.describe_fleet
    :type instances: Iterable[Instance]
    :param state_tag: The tag key holding 'master' or 'worker'.
        Optional. (Default: liac.common.DEFAULT_LIAC_STATE_TAG)
    :type state_tag: str
    :param fleet_tag: When given, only instances whose fleet tag is 'true' are
        considered.
        Optional. (Default: None)
    :type fleet_tag: str
    :return: MasterResolution
    """
    member = None
    if fleet_tag:
        member = Target(fleet_tag, (DEFAULT_LIAC_FLEET_TAG_VALUE,))
    master_role = Target(state_tag, (DEFAULT_LIAC_MASTER_STATE,))

    masters = []
    for instance in instances:
        if member and not member.matches(instance.tags):
            continue
        if master_role.matches(instance.tags):
            masters.append(instance)

    instance_ids = [master.instance_id for master in masters]
    if not masters:
        return MasterResolution(ResolutionStatus.NOT_FOUND, None, instance_ids)
    if len(masters) > 1:
        return MasterResolution(ResolutionStatus.AMBIGUOUS, None, instance_ids)

    master = masters[0]
    if not master.private_ip:
        return MasterResolution(ResolutionStatus.NOT_READY, None, instance_ids)
    return MasterResolution(ResolutionStatus.FOUND, master.private_ip,
                            instance_ids)


def get_master_address(instances: Iterable[Instance],
                       state_tag: str = DEFAULT_LIAC_STATE_TAG,
                       fleet_tag: str = None) -> str:
    """
    Return the private address of the master, raising unless exactly one
    master with an assigned address exists.

    :raises MasterNotFoundError: no instance is tagged as master
    :raises MasterNotReadyError: the master has no private address yet
    :raises AmbiguousMasterError: more than one instance is tagged as master
    :return: str
    """
    resolution = resolve_master(instances, state_tag=state_tag,
                                fleet_tag=fleet_tag)
    if resolution.status is ResolutionStatus.NOT_FOUND:
        raise MasterNotFoundError("No instance is tagged {}={}".format(
            state_tag, DEFAULT_LIAC_MASTER_STATE))
    if resolution.status is ResolutionStatus.AMBIGUOUS:
        raise AmbiguousMasterError(len(resolution.instance_ids),
                                   resolution.instance_ids)
    if resolution.status is ResolutionStatus.NOT_READY:
        raise MasterNotReadyError(resolution.instance_ids[0])
    return resolution.address


def discover_master_address(ec2_client, config: FleetConfig,
                            fleet_only: bool = False) -> str:
    """
    Query the inventory and return the master's private address.

    The whole inventory is scanned unless fleet_only is set, in which case
    instances without the fleet membership tag are ignored.

    :param ec2_client: A boto3 EC2 client
    :param config: Supplies the state and fleet tag keys
    :type config: FleetConfig
    :param fleet_only: Restrict the scan to fleet members?
        Optional. (Default: False)
    :type fleet_only: bool
    :return: str
    """
    logger.info("Describing master instance...")
    instances = describe_fleet(ec2_client)
    fleet_tag = config.fleet_tag if fleet_only else None
    address = get_master_address(instances, state_tag=config.state_tag,
                                 fleet_tag=fleet_tag)
    logger.info("Found master at %s", address)
    return address
