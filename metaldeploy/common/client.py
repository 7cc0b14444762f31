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

import abc
import copy
import json
from urllib import parse as urlparse

from oslo_log import log as logging
import requests

from metaldeploy.common import exception
from metaldeploy.common import utils
from metaldeploy.conf import CONF

LOG = logging.getLogger(__name__)

API_VERSION_HEADER = 'X-OpenStack-Ironic-API-Version'

# Request body keys whose values are never written to the log.
_MASKED_KEYS = ('configdrive', 'user_data')


class NodeClient(object, metaclass=abc.ABCMeta):
    """The three node operations a deployment needs from the service."""

    @abc.abstractmethod
    def get_node(self, node_id):
        """Return the node record as a dict.

        :param node_id: UUID or name of the node.
        :raises: NodeNotFound if the service does not know the node.
        :raises: TransportError if the request failed.
        """

    @abc.abstractmethod
    def set_provision_state(self, node_id, target, configdrive=None):
        """Request a provision state transition.

        :param node_id: UUID or name of the node.
        :param target: one of the provision targets of
            :mod:`metaldeploy.common.states`.
        :param configdrive: base64 encoded config drive, only sent with the
            ``active`` target.
        :raises: TransportError if the request failed.
        """

    @abc.abstractmethod
    def patch_node(self, node_id, patch):
        """Apply a JSON patch to the node.

        :param node_id: UUID or name of the node.
        :param patch: list of JSON patch operations.
        :raises: TransportError if the request failed.
        """


def _masked(body):
    if isinstance(body, dict):
        body = copy.copy(body)
        for key in _MASKED_KEYS:
            if body.get(key):
                body[key] = '***'
    return body


def _error_reason(resp, body):
    """Dig the human readable fault out of an error response."""
    if isinstance(body, dict) and body.get('error_message'):
        message = body['error_message']
        if isinstance(message, str):
            try:
                message = json.loads(message)
            except ValueError:
                return message
        if isinstance(message, dict):
            return message.get('faultstring') or json.dumps(message)
        return str(message)
    return '%s %s' % (resp.status_code, resp.reason)


class IronicClient(NodeClient):
    """Minimal client of the bare metal provisioning REST API.

    Requests are sent once. Retrying is left to whoever runs the
    deployment.
    """

    USER_AGENT = 'metaldeploy'

    def __init__(self, api_url=None, api_version=None, insecure=None,
                 cacert=None, timeout=None, timings=False):
        self.session = requests.Session()
        self.api_url = api_url or CONF.ironic.api_url
        if not self.api_url.endswith('/'):
            self.api_url += '/'
        self.api_version = api_version or CONF.ironic.api_version
        self.timeout = timeout or CONF.ironic.request_timeout
        if insecure is None:
            insecure = CONF.ironic.insecure
        if insecure:
            self.verify_cert = False
        else:
            cacert = cacert or CONF.ironic.cafile
            if cacert:
                self.verify_cert = cacert
            else:
                self.verify_cert = True
        self.timings = timings
        self.times = []

    def http_log_req(self, method, url, kwargs):
        string_parts = ['curl -g -i']

        if not kwargs.get('verify', True):
            string_parts.append(' --insecure')

        string_parts.append(" '%s'" % url)
        string_parts.append(' -X %s' % method)

        for header, value in kwargs['headers'].items():
            string_parts.append(" -H '%s: %s'" % (header, value))

        if 'data' in kwargs:
            data = _masked(json.loads(kwargs['data']))
            string_parts.append(" -d '%s'" % json.dumps(data))

        LOG.debug("REQ: %s", "".join(string_parts))

    def http_log_resp(self, resp, body):
        LOG.debug("RESP: [%(status)s] %(headers)s\nRESP BODY: %(text)s\n",
                  {'status': resp.status_code,
                   'headers': dict(resp.headers),
                   'text': json.dumps(_masked(body))})

    def request(self, method, path, **kwargs):
        url = urlparse.urljoin(self.api_url, path)
        kwargs.setdefault('headers', {})
        kwargs['headers']['User-Agent'] = self.USER_AGENT
        kwargs['headers']['Accept'] = 'application/json'
        kwargs['headers'][API_VERSION_HEADER] = self.api_version
        if 'body' in kwargs:
            kwargs['headers']['Content-Type'] = 'application/json'
            kwargs['data'] = json.dumps(kwargs.pop('body'))
        kwargs['verify'] = self.verify_cert
        kwargs.setdefault('timeout', self.timeout)
        self.http_log_req(method, url, kwargs)

        try:
            with utils.record_time(self.times, self.timings, method, url):
                resp = self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            raise exception.TransportError(method=method, url=url, reason=e)

        if resp.text:
            try:
                body = json.loads(resp.text)
            except ValueError:
                body = None
        else:
            body = None

        self.http_log_resp(resp, body)

        if resp.status_code >= 400:
            reason = _error_reason(resp, body)
            if resp.status_code == 404 and path.startswith('nodes/'):
                raise exception.NodeNotFound(
                    node=urlparse.unquote(path.split('/')[1]))
            raise exception.TransportError(method=method, url=url,
                                           reason=reason)

        return resp, body

    def get(self, path, **kwargs):
        return self.request('GET', path, **kwargs)

    def put(self, path, **kwargs):
        return self.request('PUT', path, **kwargs)

    def patch(self, path, **kwargs):
        return self.request('PATCH', path, **kwargs)

    @staticmethod
    def _node_path(node_id, *parts):
        return '/'.join(('nodes', urlparse.quote(node_id, safe='')) + parts)

    def get_node(self, node_id):
        _resp, body = self.get(self._node_path(node_id))
        return body or {}

    def set_provision_state(self, node_id, target, configdrive=None):
        body = {'target': target}
        if configdrive is not None:
            body['configdrive'] = configdrive
        self.put(self._node_path(node_id, 'states', 'provision'), body=body)

    def patch_node(self, node_id, patch):
        _resp, body = self.patch(self._node_path(node_id), body=list(patch))
        return body
