from logzero import logger

from liac.actions.commands import (
    START_WORKERS_SETTINGS,
    build_pull_repo,
    build_repull_repo,
    build_start_master,
    build_start_workers,
    build_stop_master,
    build_stop_workers,
    repository_location,
)
from liac.common import FleetConfig, LiacError, PartialDispatchError, require
from liac.execute.execute import InvocationHandle, RemoteExecutor
from liac.probes.master import discover_master_address

from typing import List


def pull_repo(config: FleetConfig, executor: RemoteExecutor,
              repo_url: str = None) -> InvocationHandle:
    """
    Clone the Locust scripts repository on every fleet member.

    :param config: The fleet configuration
    :type config: FleetConfig
    :param executor: Dispatches the request, see liac.execute.execute
    :type executor: RemoteExecutor
    :param repo_url: Clone this repository instead of the configured one.
        Optional. (Default: None)
    :type repo_url: str
    :return: InvocationHandle
    """
    repository = repo_url or config.git_repository
    logger.info("Pulling git repo: %s",
                repository_location(repository or ""))
    return executor.execute(build_pull_repo(config, repo_url=repo_url))


def repull_repo(config: FleetConfig,
                executor: RemoteExecutor) -> InvocationHandle:
    logger.info("Re-pulling git repo on all fleet members...")
    return executor.execute(build_repull_repo(config))


def start_master(config: FleetConfig,
                 executor: RemoteExecutor) -> InvocationHandle:
    logger.info("Starting Locust master...")
    return executor.execute(build_start_master(config))


def start_workers(config: FleetConfig, executor: RemoteExecutor, ec2_client,
                  fleet_only: bool = False) -> InvocationHandle:
    """
    Start Locust workers pointed at the master's private address.

    The master is resolved from a fresh inventory snapshot before the worker
    command is built. Nothing is dispatched unless exactly one master with an
    assigned address is found.

    :param config: The fleet configuration
    :type config: FleetConfig
    :param executor: Dispatches the request, see liac.execute.execute
    :type executor: RemoteExecutor
    :param ec2_client: A boto3 EC2 client used to describe instances
    :param fleet_only: Only consider fleet members when looking for the
        master.
        Optional. (Default: False)
    :type fleet_only: bool
    :return: InvocationHandle
    """
    logger.info("Running workers...")
    # Fail on configuration before touching the inventory
    require(config, *START_WORKERS_SETTINGS, operation="start worker")
    master_address = discover_master_address(ec2_client, config,
                                             fleet_only=fleet_only)
    return executor.execute(build_start_workers(config, master_address))


def stop_master(config: FleetConfig,
                executor: RemoteExecutor) -> InvocationHandle:
    logger.info("Stopping Locust master...")
    return executor.execute(build_stop_master(config))


def stop_workers(config: FleetConfig,
                 executor: RemoteExecutor) -> InvocationHandle:
    logger.info("Stopping workers...")
    return executor.execute(build_stop_workers(config))


def stop_all(config: FleetConfig,
             executor: RemoteExecutor) -> List[InvocationHandle]:
    """
    Stop the master, then the workers.

    The two requests are independent. If stopping the master fails, the error
    propagates unchanged and the workers are left alone. If stopping the
    workers fails after the master was stopped, PartialDispatchError is raised
    with the master's handle in ``completed``; the master is not restarted.

    :param config: The fleet configuration
    :type config: FleetConfig
    :param executor: Dispatches the requests, see liac.execute.execute
    :type executor: RemoteExecutor
    :return: List[InvocationHandle]
    """
    completed = []
    completed.append(stop_master(config, executor))
    try:
        completed.append(stop_workers(config, executor))
    except LiacError as e:
        logger.error("Master stop was dispatched (%s) but stopping workers "
                     "failed", completed[0].command_id)
        raise PartialDispatchError("stop all", completed, "stop worker",
                                   e) from e
    return completed
