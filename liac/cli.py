import argparse
import logging
import os
import sys

import logzero
from botocore.exceptions import BotoCoreError
from dotenv import load_dotenv
from logzero import logger

from liac import __version__
from liac.actions.commands import repository_location
from liac.actions.locust import (
    pull_repo,
    repull_repo,
    start_master,
    start_workers,
    stop_all,
    stop_master,
    stop_workers,
)
from liac.common import (
    ConfigurationError,
    DEFAULT_LIAC_ENV_FILE,
    LiacError,
    PartialDispatchError,
    load_config,
)
from liac.execute.execute import SSMExecutor
from liac.helpers import aws_client

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
# 2 is taken by argparse usage errors
EXIT_PARTIAL = 3

LOG_LEVEL_HELP = """Logging level.
                      [LOG-LEVEL]: notset, debug, info, warning, error, critical
                      Default: info"""
levels = {
    'notset': logging.NOTSET,
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warning': logging.WARNING,
    'error': logging.ERROR,
    'critical': logging.CRITICAL
}


def log_level(v):
    if v.lower() in levels.keys():
        return levels[v.lower()]
    else:
        raise argparse.ArgumentTypeError(
            'Expected one of the following: {}.'.format(
                 ', '.join(levels.keys())))


class Clients(object):
    """Create boto3 clients on first use, so actions only pay for what they
    touch."""

    def __init__(self, region=None, ssm=None, ec2=None):
        self.region = region
        self._ssm = ssm
        self._ec2 = ec2

    @property
    def ssm(self):
        if self._ssm is None:
            self._ssm = aws_client('ssm', self.region)
        return self._ssm

    @property
    def ec2(self):
        if self._ec2 is None:
            self._ec2 = aws_client('ec2', self.region)
        return self._ec2


# Subcommand handlers. Each returns the list of InvocationHandles it created
# and the confirmation line to print.
def script_pull(args, config, clients):
    handle = pull_repo(config, SSMExecutor(clients.ssm),
                       repo_url=args.repo_url)
    if args.repo_url:
        return [handle], "Git repository pull command sent successfully " \
                         "with given repository."
    return [handle], "Git repository pull command sent successfully."


def script_repull(args, config, clients):
    handle = repull_repo(config, SSMExecutor(clients.ssm))
    return [handle], "Git repository repull command sent successfully."


def start_master_command(args, config, clients):
    handle = start_master(config, SSMExecutor(clients.ssm))
    return [handle], "Locust master service start command sent successfully."


def start_worker_command(args, config, clients):
    handle = start_workers(config, SSMExecutor(clients.ssm), clients.ec2,
                           fleet_only=args.fleet_only)
    return [handle], "Locust worker services start command sent successfully."


def stop_master_command(args, config, clients):
    handle = stop_master(config, SSMExecutor(clients.ssm))
    return [handle], "Locust master service stop command sent successfully."


def stop_worker_command(args, config, clients):
    handle = stop_workers(config, SSMExecutor(clients.ssm))
    return [handle], "Locust worker services stop command sent successfully."


def stop_all_command(args, config, clients):
    handles = stop_all(config, SSMExecutor(clients.ssm))
    return handles, "Locust services stop commands sent successfully."


def program_args():
    parser = argparse.ArgumentParser(
        prog='liac', description='Locust IaC CLI tool for AWS')

    parser.add_argument('--version', action='version',
                        version='%(prog)s {}'.format(__version__))

    parser.add_argument('-l', '--log-level', type=log_level, nargs='?',
                        const=logging.INFO, default=logging.INFO,
                        help=LOG_LEVEL_HELP)

    parser.add_argument('--log-file', help='Also write log output to this ' \
                        'file. Default: None', default=None)

    parser.add_argument('--env-file', help='A dotenv file holding the fleet ' \
                        'configuration (GIT_BRANCH, GIT_USERNAME, GIT_TOKEN, ' \
                        'GIT_REPOSITORY, SCRIPT_PATH, LOCUST_WEB_PORT, ' \
                        'REGION, ...). Variables already set in the ' \
                        'environment win. Default: .env in the current ' \
                        'directory, if present.', default=None)

    parser.add_argument('--region', help='The AWS region. Overrides REGION. ' \
                        'Default: None', default=None)

    commands = parser.add_subparsers(dest='command', metavar='COMMAND')
    commands.required = True

    script = commands.add_parser(
        'script', help='Pull or repull the Git repository for Locust scripts')
    script_commands = script.add_subparsers(dest='subcommand',
                                            metavar='SUBCOMMAND')
    script_commands.required = True
    pull = script_commands.add_parser(
        'pull', help='Pull the Git repository for Locust scripts')
    pull.add_argument('--repo-url', help='Git repository url. Default: ' \
                      'GIT_REPOSITORY', default=None)
    pull.set_defaults(handler=script_pull)
    repull = script_commands.add_parser(
        'repull', help='Repull the Git repository for Locust scripts')
    repull.set_defaults(handler=script_repull)

    start = commands.add_parser('start',
                                help='Start Locust master/worker services.')
    start_commands = start.add_subparsers(dest='subcommand',
                                          metavar='SUBCOMMAND')
    start_commands.required = True
    start_commands.add_parser(
        'master', help='Start master Locust.').set_defaults(
            handler=start_master_command)
    worker = start_commands.add_parser('worker', help='Start Locust workers.')
    worker.add_argument('--fleet-only', action='store_true', default=False,
                        help='Only look for the master among instances ' \
                        'carrying the fleet membership tag.')
    worker.set_defaults(handler=start_worker_command)

    stop = commands.add_parser('stop',
                               help='Stop Locust master/worker services.')
    stop_commands = stop.add_subparsers(dest='subcommand',
                                        metavar='SUBCOMMAND')
    stop_commands.required = True
    stop_commands.add_parser(
        'master', help='Stop master Locust.').set_defaults(
            handler=stop_master_command)
    stop_commands.add_parser(
        'worker', help='Stop Locust workers.').set_defaults(
            handler=stop_worker_command)
    stop_commands.add_parser(
        'all', help='Stop all Locust services.').set_defaults(
            handler=stop_all_command)

    return parser


def parse_args(argv=None, parser=None):
    if parser is None:
        parser = program_args()
    return parser.parse_args(args=argv)


def init(args):
    logzero.loglevel(args.log_level)
    if args.log_file:
        logzero.logfile(args.log_file, loglevel=args.log_level)
    logger.debug("Initializing...")
    if getattr(args, 'repo_url', None):
        args = argparse.Namespace(**vars(args))
        args.repo_url = repository_location(args.repo_url)
    logger.debug("args: %s", args)


def load_env_file(env_file=None):
    """
    Load a dotenv file into the process environment.

    An explicitly named file must exist. The default .env file is optional.
    """
    if env_file:
        if not os.path.isfile(env_file):
            raise ConfigurationError([env_file], operation="--env-file")
        path = env_file
    else:
        path = os.path.join(os.getcwd(), DEFAULT_LIAC_ENV_FILE)
        if not os.path.isfile(path):
            logger.debug("No %s found, using the process environment only",
                         path)
            return False
    logger.debug("Loading environment from %s", path)
    return load_dotenv(path)


def format_handle(handle):
    return "Command {} '{}' ({}) on {}: {}".format(
        handle.command_id, handle.comment, handle.document_name,
        handle.target, handle.status)


def main(args, clients=None, environ=None):
    try:
        init(args)
    except Exception:
        logger.error('Unable to initialize script')
        raise

    try:
        load_env_file(args.env_file)
        config = load_config(environ, region=args.region)
        if clients is None:
            clients = Clients(region=config.region)
        handles, message = args.handler(args, config, clients)
    except PartialDispatchError as e:
        logger.error("%s", e)
        for handle in e.completed:
            print(format_handle(handle))
        logger.error("Step '%s' was NOT dispatched; the steps above were "
                     "and have not been rolled back.", e.failed_step)
        return EXIT_PARTIAL
    except LiacError as e:
        logger.error("%s", e)
        return EXIT_FAILURE
    except BotoCoreError as e:
        logger.error("AWS configuration error, %s", e)
        return EXIT_FAILURE

    for handle in handles:
        print(format_handle(handle))
    print(message)
    return EXIT_SUCCESS


def cli_main(argv=None):
    sys.exit(main(parse_args(argv)))


if __name__ == '__main__':
    cli_main()
