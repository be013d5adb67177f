import os
from collections import namedtuple
from enum import Enum

from typing import Dict, Mapping, Optional


class Role(Enum):
    """
    All role intents a command can be targeted at.
    """
    # every instance carrying the fleet membership tag
    FLEET = "fleet"
    # the singleton instance running the Locust master
    MASTER = "master"
    # instances running Locust workers
    WORKER = "worker"


class ResolutionStatus(Enum):
    """
    All possible outcomes of scanning the inventory for the master.
    """
    FOUND = 1
    NOT_FOUND = 2
    # Tagged as master, but no private address assigned yet
    NOT_READY = 3
    # More than one instance tagged as master
    AMBIGUOUS = 4


# liac defaults
# Please keep defaults in lexically ascending order by name
DEFAULT_LIAC_DOCUMENT_NAME = "AWS-RunShellScript"
DEFAULT_LIAC_ENV_FILE = ".env"
DEFAULT_LIAC_FLEET_DIR = "/opt/locust"
DEFAULT_LIAC_FLEET_TAG = "Locust"
DEFAULT_LIAC_FLEET_TAG_VALUE = "true"
DEFAULT_LIAC_MASTER_STATE = "master"
DEFAULT_LIAC_STATE_TAG = "LocustState"
DEFAULT_LIAC_WORKER_STATE = "worker"


class LiacError(Exception):
    """Base class for every error raised by liac."""


class ConfigurationError(LiacError):
    """
    One or more required settings are missing or empty.

    Raised before any request leaves the process.
    """

    def __init__(self, missing, operation=None):
        self.missing = list(missing)
        self.operation = operation
        message = "Missing configuration: {}".format(", ".join(self.missing))
        if operation:
            message = "{} (required by '{}')".format(message, operation)
        super().__init__(message)


class InventoryError(LiacError):
    """The instance inventory could not be queried."""


class ResolutionError(LiacError):
    """The master instance could not be resolved to a single address."""


class MasterNotFoundError(ResolutionError):
    pass


class MasterNotReadyError(ResolutionError):
    def __init__(self, instance_id):
        self.instance_id = instance_id
        super().__init__("Master instance {} has no private address "
                         "assigned yet".format(instance_id))


class AmbiguousMasterError(ResolutionError):
    def __init__(self, count, instance_ids=()):
        self.count = count
        self.instance_ids = list(instance_ids)
        super().__init__("Found {} instances tagged as master: {}".format(
            count, ", ".join(self.instance_ids)))


class DispatchError(LiacError):
    """
    The run-command service rejected a request or could not be reached.

    :param operation: The comment of the request that failed.
    :param target: The Target the request was scoped to.
    :param cause: The underlying exception.
    """

    def __init__(self, operation, target, cause):
        self.operation = operation
        self.target = target
        self.cause = cause
        super().__init__("Failed to dispatch '{}' to {}: {}".format(
            operation, target, cause))


class PartialDispatchError(LiacError):
    """
    A composite action stopped part way through.

    ``completed`` holds the InvocationHandles already created; they are not
    rolled back. ``failed_step`` names the step that raised ``cause``.
    """

    def __init__(self, action, completed, failed_step, cause):
        self.action = action
        self.completed = list(completed)
        self.failed_step = failed_step
        self.cause = cause
        super().__init__("'{}' partially applied: {} step(s) dispatched, "
                         "'{}' failed: {}".format(action, len(self.completed),
                                                  failed_step, cause))


class Target(namedtuple('Target', ['key', 'values'])):
    """
    A tag key and the values accepted for it.

    An instance matches when its ``key`` tag holds one of ``values``.
    """
    __slots__ = ()

    def matches(self, tags: Mapping[str, str]) -> bool:
        return tags.get(self.key) in self.values

    def to_request(self) -> Dict:
        return {'Key': "tag:{}".format(self.key), 'Values': list(self.values)}

    def __str__(self):
        return "tag:{}={}".format(self.key, ",".join(self.values))


FleetConfig = namedtuple('FleetConfig', [
    'region',
    'fleet_dir',
    'git_branch',
    'git_username',
    'git_token',
    'git_repository',
    'script_path',
    'web_port',
    'fleet_tag',
    'state_tag',
    'document_name',
])

# Environment variable -> FleetConfig field, with the default used when the
# variable is unset. A default of None means there is no default.
CONFIG_ENVIRONMENT = [
    ('REGION', 'region', None),
    ('LOCUST_FLEET_DIR', 'fleet_dir', DEFAULT_LIAC_FLEET_DIR),
    ('GIT_BRANCH', 'git_branch', None),
    ('GIT_USERNAME', 'git_username', None),
    ('GIT_TOKEN', 'git_token', None),
    ('GIT_REPOSITORY', 'git_repository', None),
    ('SCRIPT_PATH', 'script_path', None),
    ('LOCUST_WEB_PORT', 'web_port', None),
    ('LOCUST_FLEET_TAG', 'fleet_tag', DEFAULT_LIAC_FLEET_TAG),
    ('LOCUST_STATE_TAG', 'state_tag', DEFAULT_LIAC_STATE_TAG),
    ('SSM_DOCUMENT_NAME', 'document_name', DEFAULT_LIAC_DOCUMENT_NAME),
]


def load_config(environ: Optional[Mapping[str, str]] = None,
                **overrides) -> FleetConfig:
    """
    Build a FleetConfig from environment variables.

    Values are read once and never validated here: each command builder checks
    the settings it needs, so a missing git token only fails the operations
    that use it.

    :param environ: Mapping to read variables from.
        Optional. (Default: os.environ)
    :type environ: Mapping[str, str]
    :param overrides: FleetConfig fields that take precedence over the
        environment. None values are ignored.
    :return: FleetConfig
    """
    if environ is None:
        environ = os.environ

    values = {}
    for variable, field, default in CONFIG_ENVIRONMENT:
        value = environ.get(variable)
        if value is not None:
            value = value.strip()
        if not value:
            value = default
        values[field] = value

    for field, value in overrides.items():
        if field not in FleetConfig._fields:
            raise TypeError("Unknown configuration field '{}'".format(field))
        if value is not None:
            values[field] = value

    return FleetConfig(**values)


def require(config: FleetConfig, *fields, operation: str = None) -> None:
    """
    Raise ConfigurationError unless every named field holds a non-empty value.
    """
    missing = [field for field in fields if not getattr(config, field)]
    if missing:
        raise ConfigurationError(missing, operation=operation)


def target_for(role: Role, config: FleetConfig = None) -> Target:
    """
    Map a role intent to the Target selecting it.

    :param role: Which part of the fleet to select.
    :type role: Role
    :param config: Supplies the fleet and state tag keys.
        Optional. (Default: the DEFAULT_LIAC_*_TAG keys)
    :type config: FleetConfig
    :return: Target
    """
    fleet_tag = config.fleet_tag if config else DEFAULT_LIAC_FLEET_TAG
    state_tag = config.state_tag if config else DEFAULT_LIAC_STATE_TAG

    if role is Role.FLEET:
        return Target(fleet_tag, (DEFAULT_LIAC_FLEET_TAG_VALUE,))
    if role is Role.MASTER:
        return Target(state_tag, (DEFAULT_LIAC_MASTER_STATE,))
    if role is Role.WORKER:
        return Target(state_tag, (DEFAULT_LIAC_WORKER_STATE,))
    raise ValueError("Unknown role: {!r}".format(role))
