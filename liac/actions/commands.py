"""
Command builders for the Locust fleet lifecycle.

Each builder turns a FleetConfig into a CommandRequest: a fixed comment, an
ordered list of shell command lines and the Target the lines run on. Lines run
in one shell session on each instance, so later lines rely on the working
directory set up by earlier ones.

Every value taken from configuration (or from the inventory, for the master
address) is shell-quoted before it is placed in a command line. Values that
need no quoting are left untouched, so the usual command lines read exactly
as if they had been typed by hand.
"""
from shlex import quote
from urllib.parse import quote as url_quote

from logzero import logger

from liac.common import FleetConfig, ResolutionError, Role, require, target_for
from liac.execute.execute import CommandRequest
from liac.helpers import mask

from typing import List, Tuple

# Enter the first directory below the fleet dir, i.e. the cloned repository
ENTER_CHECKOUT = "cd $(ls -d */|head -n 1)"
STOP_SESSION = "sudo pkill screen"

START_WORKERS_SETTINGS = ('fleet_dir', 'script_path', 'document_name')


def _enter_fleet_dir(config: FleetConfig) -> str:
    return "cd {}".format(quote(config.fleet_dir))


def _detached(command: List[str]) -> str:
    """Run an already quoted command in a detached screen session."""
    return "screen -dm bash -c {}".format(quote(" ".join(command)))


def _locust(config: FleetConfig, *arguments) -> List[str]:
    return ["locust", "-f", quote(config.script_path)] + \
           [quote(argument) for argument in arguments]


def _split_userinfo(repository: str) -> Tuple[str, str]:
    for scheme in ("https://", "http://"):
        if repository.startswith(scheme):
            repository = repository[len(scheme):]
            break
    host, sep, path = repository.partition("/")
    userinfo, _, host = host.rpartition("@")
    return userinfo, host + sep + path


def repository_location(repository: str) -> str:
    """
    Return repository as host/path, without a scheme or any user:password@
    part it may carry.
    """
    return _split_userinfo(repository)[1]


def _clone_url(repository: str, username: str, token: str) -> str:
    return "https://{}:{}@{}".format(url_quote(username, safe=''),
                                     url_quote(token, safe=''),
                                     repository_location(repository))


def _request(config: FleetConfig, comment: str, commands: List[str],
             role: Role) -> CommandRequest:
    request = CommandRequest(config.document_name, comment, tuple(commands),
                             target_for(role, config))
    # The token appears URL-encoded inside clone URLs
    secrets = [config.git_token]
    if config.git_token:
        secrets.append(url_quote(config.git_token, safe=''))
    logger.debug("Built '%s' for %s: %s", comment, request.target,
                 mask(" ; ".join(commands), *secrets))
    return request


def build_pull_repo(config: FleetConfig, repo_url: str = None) -> CommandRequest:
    """
    Clone the Locust scripts repository on every fleet member.

    :param config: Supplies branch, credentials and the default repository
    :type config: FleetConfig
    :param repo_url: Repository to clone instead of config.git_repository,
        with or without an https:// scheme. A user:password@ part is
        dropped; the configured git credentials are always used.
        Optional. (Default: None)
    :type repo_url: str
    :return: CommandRequest
    """
    operation = "script pull"
    if repo_url:
        config = config._replace(git_repository=repo_url)
    require(config, 'fleet_dir', 'git_branch', 'git_username', 'git_token',
            'git_repository', 'document_name', operation=operation)

    if _split_userinfo(config.git_repository)[0]:
        logger.warning("Ignoring credentials embedded in the repository URL, "
                       "using GIT_USERNAME and GIT_TOKEN instead")
    url = _clone_url(config.git_repository, config.git_username,
                     config.git_token)
    commands = [
        _enter_fleet_dir(config),
        "git clone -b {} {}".format(quote(config.git_branch), quote(url)),
    ]
    return _request(config, "Git Pull", commands, Role.FLEET)


def build_repull_repo(config: FleetConfig) -> CommandRequest:
    require(config, 'fleet_dir', 'document_name', operation="script repull")
    commands = [
        _enter_fleet_dir(config),
        ENTER_CHECKOUT,
        "git fetch",
        "git pull",
    ]
    return _request(config, "Re-Pull Git Repo", commands, Role.FLEET)


def build_start_master(config: FleetConfig) -> CommandRequest:
    """
    Update the checkout and launch Locust in master mode on the master.
    """
    require(config, 'fleet_dir', 'script_path', 'web_port', 'document_name',
            operation="start master")
    commands = [
        _enter_fleet_dir(config),
        ENTER_CHECKOUT,
        "git fetch && git pull",
        _detached(_locust(config, "--web-port={}".format(config.web_port),
                          "--master")),
    ]
    return _request(config, "Run Locust Master", commands, Role.MASTER)


def build_start_workers(config: FleetConfig,
                        master_address: str) -> CommandRequest:
    """
    Update the checkout and launch Locust workers pointed at the master.

    :param config: Supplies the fleet dir and Locust script path
    :type config: FleetConfig
    :param master_address: The master's private address, see
        liac.probes.master.get_master_address. There is no fallback; a
        missing address raises ResolutionError.
    :type master_address: str
    :return: CommandRequest
    """
    require(config, *START_WORKERS_SETTINGS, operation="start worker")
    if not master_address:
        raise ResolutionError("Cannot start workers without a resolved "
                              "master address")
    commands = [
        _enter_fleet_dir(config),
        ENTER_CHECKOUT,
        "git fetch && git pull",
        _detached(_locust(config, "--master-host={}".format(master_address),
                          "--worker")),
    ]
    return _request(config, "Run Locust Workers", commands, Role.WORKER)


def build_stop_master(config: FleetConfig) -> CommandRequest:
    require(config, 'document_name', operation="stop master")
    return _request(config, "Stop Locust Master", [STOP_SESSION], Role.MASTER)


def build_stop_workers(config: FleetConfig) -> CommandRequest:
    require(config, 'document_name', operation="stop worker")
    return _request(config, "Stop Locust Worker", [STOP_SESSION], Role.WORKER)
