# Copyright 2010 United States Government as represented by the
# Administrator of the National Aeronautics and Space Administration.
# All Rights Reserved.
#
#    Licensed under the Apache License, Version 2.0 (the "License"); you may
#    not use this file except in compliance with the License. You may obtain
#    a copy of the License at
#
#         http://www.apache.org/licenses/LICENSE-2.0
#
#    Unless required by applicable law or agreed to in writing, software
#    distributed under the License is distributed on an "AS IS" BASIS, WITHOUT
#    WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the
#    License for the specific language governing permissions and limitations
#    under the License.

"""metaldeploy base exception handling.

Every error raised while building a config drive or driving a node through
its provision states derives from :class:`MetalDeployException`. A
deployment records the first one it hits and stops there.

"""

from http import client as http_client

from oslo_log import log as logging
from oslo_serialization import jsonutils

from metaldeploy.common.i18n import _
from metaldeploy.conf import CONF

LOG = logging.getLogger(__name__)


def _serializable_kwargs(exc_class_name, kwargs):
    """Return kwargs with every value converted to JSON or, failing that, str.

    Values that survive neither conversion are logged and removed from
    kwargs as well, so they never reach the message template.

    :param exc_class_name: name of the exception being built.
    :param kwargs: keyword arguments given to the exception constructor.
    """
    serialized = {}
    dropped = {}
    for key, value in kwargs.items():
        errors = []
        for serializer in (jsonutils.dumps, str):
            try:
                serialized[key] = serializer(value)
                break
            except Exception as e:
                errors.append('%s: %s' % (e.__class__.__name__, e))
        else:
            dropped[key] = '; '.join(errors)
    if dropped:
        LOG.error('Dropped kwargs of %(exc)s that can not be serialized: '
                  '%(dropped)s', {'exc': exc_class_name, 'dropped': dropped})
        for key in dropped:
            del kwargs[key]
    return serialized


class MetalDeployException(Exception):
    """Base metaldeploy Exception

    Subclasses set ``_msg_fmt``, a printf template filled with the keyword
    arguments of the constructor, and ``code``, the closest HTTP status.
    ``str(exc)`` gives the formatted message.

    """
    _msg_fmt = _("An unknown exception occurred.")
    code = http_client.INTERNAL_SERVER_ERROR

    def __init__(self, message=None, **kwargs):
        self.kwargs = _serializable_kwargs(self.__class__.__name__, kwargs)
        self.kwargs.setdefault('code', self.code)

        if not message:
            try:
                message = self._msg_fmt % kwargs
            except Exception:
                LOG.exception('Can not format %(exc)s message with '
                              '%(kwargs)s', {'exc': self.__class__.__name__,
                                             'kwargs': kwargs})
                if CONF.fatal_exception_format_errors:
                    raise
                message = self._msg_fmt

        super(MetalDeployException, self).__init__(message)

    def __str__(self):
        return str(self.args[0])


class Invalid(MetalDeployException):
    _msg_fmt = _("Unacceptable parameters.")
    code = http_client.BAD_REQUEST


class InvalidParameterValue(Invalid):
    _msg_fmt = "%(err)s"


class MissingParameterValue(InvalidParameterValue):
    _msg_fmt = "%(err)s"


class Conflict(MetalDeployException):
    _msg_fmt = _('Conflict.')
    code = http_client.CONFLICT


class TemporaryFailure(MetalDeployException):
    _msg_fmt = _("Resource temporarily unavailable, please retry.")
    code = http_client.SERVICE_UNAVAILABLE


class NoFreeDeployWorker(TemporaryFailure):
    _msg_fmt = _('Requested deployment cannot be started due to lack of '
                 'free deploy workers.')


class TransportError(MetalDeployException):
    _msg_fmt = _("Request %(method)s %(url)s failed: %(reason)s")
    code = http_client.BAD_GATEWAY


class NodeNotFound(TransportError):
    _msg_fmt = _("Node %(node)s could not be found.")
    code = http_client.NOT_FOUND


class InvalidState(Conflict):
    _msg_fmt = _("Invalid resource state.")


class UnexpectedStateError(InvalidState):
    _msg_fmt = _("%(action)s failed, node %(node)s is in provision state "
                 "%(state)s.")


class DeployTimeout(MetalDeployException):
    _msg_fmt = _("Timed out after %(timeout)s seconds waiting for node "
                 "%(node)s to reach provision state %(target)s, last seen "
                 "state was %(state)s.")
    code = http_client.GATEWAY_TIMEOUT


class DeployCancelled(MetalDeployException):
    _msg_fmt = _("Deployment of node %(node)s was cancelled in %(state)s.")


class DeploymentAlreadyStarted(Conflict):
    _msg_fmt = _("Deployment of node %(node)s has already been started, a "
                 "deployment can only be run once.")


class ChannelClosed(Conflict):
    _msg_fmt = _("Progress channel is already closed.")


class BuildError(MetalDeployException):
    _msg_fmt = _("Failed to build config drive: %(reason)s")


class SerializationError(BuildError):
    _msg_fmt = _("Can not serialize %(name)s as JSON: %(reason)s")
