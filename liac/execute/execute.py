import abc

from collections import namedtuple

from botocore.exceptions import BotoCoreError, ClientError
from logzero import logger

from liac.common import DispatchError

CommandRequest = namedtuple('CommandRequest',
                            ['document_name', 'comment', 'commands', 'target'])
InvocationHandle = namedtuple('InvocationHandle',
                              ['command_id', 'document_name', 'comment',
                               'target', 'status'])


class RemoteExecutor(metaclass=abc.ABCMeta):

    def execute(self, request: CommandRequest) -> InvocationHandle:
        if not request.commands:
            raise ValueError("'{}' has no commands to run".format(
                request.comment))
        logger.debug("Dispatching '%s' to %s", request.comment, request.target)
        rtn = self._send(request)
        logger.info("'%s' dispatched as command %s", request.comment,
                    rtn.command_id)
        return rtn

    @abc.abstractmethod
    def _send(self, request: CommandRequest) -> InvocationHandle:
        raise NotImplementedError('users must define _send to use this base class')


class SSMExecutor(RemoteExecutor):
    """
    Submit CommandRequests through the AWS Systems Manager run-command API.

    Every call to execute creates a new, independent command invocation on
    the remote side. Nothing is retried or deduplicated.
    """

    def __init__(self, ssm_client):
        self.client = ssm_client

    @staticmethod
    def _to_send_command_kwargs(request: CommandRequest):
        return {
            'DocumentName': request.document_name,
            'Comment': request.comment,
            'Parameters': {
                'commands': list(request.commands),
            },
            'Targets': [request.target.to_request()],
        }

    @staticmethod
    def _to_handle(request: CommandRequest, response) -> InvocationHandle:
        command = response.get('Command', {})
        return InvocationHandle(command.get('CommandId'),
                                command.get('DocumentName', request.document_name),
                                command.get('Comment', request.comment),
                                request.target,
                                command.get('Status'))

    def _send(self, request: CommandRequest) -> InvocationHandle:
        kwargs = self._to_send_command_kwargs(request)
        try:
            response = self.client.send_command(**kwargs)
        except (BotoCoreError, ClientError) as e:
            logger.error("send_command failed for '%s' on %s: %s",
                         request.comment, request.target, e)
            raise DispatchError(request.comment, request.target, e) from e
        return self._to_handle(request, response)
