import itertools
import logging
from contextlib import contextmanager

from botocore.exceptions import ClientError
from logzero import logger

from liac.common import load_config

FULL_ENVIRONMENT = {
    'REGION': 'eu-west-1',
    'GIT_BRANCH': 'main',
    'GIT_USERNAME': 'deploy',
    'GIT_TOKEN': 'ghp_secret',
    'GIT_REPOSITORY': 'github.com/example/locust-scripts.git',
    'SCRIPT_PATH': 'locustfile.py',
    'LOCUST_WEB_PORT': '8089',
}


@contextmanager
def patch(owner, attr, value):
    """Monkey patch context manager.

    with patch(liac.helpers, 'aws_client', fake_client):
        ...
    """
    old = getattr(owner, attr)
    setattr(owner, attr, value)
    try:
        yield getattr(owner, attr)
    finally:
        setattr(owner, attr, old)


@contextmanager
def captured_logs(caplog, level=logging.DEBUG):
    """Send logzero records to caplog. The logzero logger does not propagate."""
    old_level = logger.level
    logger.addHandler(caplog.handler)
    logger.setLevel(level)
    try:
        yield caplog
    finally:
        logger.removeHandler(caplog.handler)
        logger.setLevel(old_level)


def make_config(**overrides):
    environ = dict(FULL_ENVIRONMENT)
    return load_config(environ, **overrides)


def client_error(code='AccessDeniedException', operation='SendCommand'):
    return ClientError({'Error': {'Code': code, 'Message': 'nope'}}, operation)


def describe(instance_id, tags=None, private_ip=None, state='running'):
    """An EC2 instance description as returned by DescribeInstances."""
    description = {
        'InstanceId': instance_id,
        'State': {'Code': 16, 'Name': state},
        'Tags': [{'Key': k, 'Value': v} for k, v in (tags or {}).items()],
    }
    if private_ip:
        description['PrivateIpAddress'] = private_ip
    return description


class FakeSSMClient(object):
    """
    Records send_command calls and answers each with a new command id.

    ``fail_on`` holds the 1-based call numbers that raise ClientError.
    """

    def __init__(self, fail_on=()):
        self.calls = []
        self.fail_on = set(fail_on)
        self._ids = itertools.count(1)

    def send_command(self, **kwargs):
        self.calls.append(kwargs)
        if len(self.calls) in self.fail_on:
            raise client_error()
        return {
            'Command': {
                'CommandId': 'cmd-{:04d}'.format(next(self._ids)),
                'DocumentName': kwargs['DocumentName'],
                'Comment': kwargs['Comment'],
                'Status': 'Pending',
            }
        }


class FakePaginator(object):
    def __init__(self, pages, error=None):
        self.pages = pages
        self.error = error
        self.calls = []

    def paginate(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return iter(self.pages)


class FakeEC2Client(object):
    """
    Serves DescribeInstances pages. Each page is a list of reservations, each
    reservation a list of instance descriptions (see describe).
    """

    def __init__(self, *pages, error=None):
        self.paginator = FakePaginator(
            [{'Reservations': [{'Instances': r} for r in page]}
             for page in pages], error=error)

    def get_paginator(self, operation):
        assert operation == 'describe_instances'
        return self.paginator
