# coding=utf-8

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

"""Drive one bare metal node from enrolled to active.

The provisioning service is asynchronous: requesting a provision target
only starts a workflow on its side. A :class:`Deployment` therefore
requests a target, then reads the node back every ``poll_interval``
seconds until it reaches the awaited state, stays in a known in-progress
state, or shows anything else, which fails the deployment.

The deploy states and the transitions between them form a fixed table
(:attr:`Deployment.TRANSITIONS`) walked by a single driver loop. The first
error of any kind is recorded on the deployment, the loop jumps to ERROR,
and :meth:`Deployment.run` raises that error.
"""

import collections.abc
import threading

from oslo_log import log as logging
from oslo_utils import timeutils

from metaldeploy.common import exception
from metaldeploy.common.i18n import _
from metaldeploy.common import states
from metaldeploy.conf import CONF
from metaldeploy.configdrive import builder as configdrive_builder

LOG = logging.getLogger(__name__)

PATCH_OPS = ('add', 'replace', 'remove')


def build_patch(instance_info=None, properties=None):
    """Build the JSON patch setting instance info and properties.

    :param instance_info: dict stored as the node's instance_info, usually
        image_source, image_checksum and root_gb.
    :param properties: dict stored as the node's properties, e.g. the
        root_device hints.
    :returns: list of ``add`` operations, empty when both are empty.
    """
    patch = []
    if instance_info:
        patch.append({'op': 'add', 'path': '/instance_info',
                      'value': instance_info})
    if properties:
        patch.append({'op': 'add', 'path': '/properties',
                      'value': properties})
    return patch


def _validate_patch(patch):
    for operation in patch:
        if not isinstance(operation, collections.abc.Mapping):
            raise exception.InvalidParameterValue(
                err=_("Patch operation %s is not a mapping.") % operation)
        if operation.get('op') not in PATCH_OPS:
            raise exception.InvalidParameterValue(
                err=_("Patch operation %(op)s is not one of %(ops)s.") %
                {'op': operation.get('op'), 'ops': ', '.join(PATCH_OPS)})
        path = operation.get('path')
        if not isinstance(path, str) or not path.startswith('/'):
            raise exception.InvalidParameterValue(
                err=_("Patch path %s must start with '/'.") % path)
        if operation['op'] != 'remove' and 'value' not in operation:
            raise exception.MissingParameterValue(
                err=_("Patch operation on %s has no value.") % path)


class Deployment(object):
    """One attempt at deploying one node.

    A deployment runs once. Its state, progress and error belong to it for
    the whole run; callers only read them.
    """

    # deploy state -> (action run on entry, next deploy state on success)
    TRANSITIONS = {
        states.DEPLOY_BEGIN: ('_begin', states.DEPLOY_CONFIGURE),
        states.DEPLOY_CONFIGURE: ('_configure', states.DEPLOY_MANAGE),
        states.DEPLOY_MANAGE: ('_manage', states.DEPLOY_WAIT_MANAGE),
        states.DEPLOY_WAIT_MANAGE: ('_wait_manage', states.DEPLOY_PROVIDE),
        states.DEPLOY_PROVIDE: ('_provide', states.DEPLOY_WAIT_PROVIDE),
        states.DEPLOY_WAIT_PROVIDE: ('_wait_provide', states.DEPLOY_DEPLOY),
        states.DEPLOY_DEPLOY: ('_deploy', states.DEPLOY_WAIT_DEPLOY),
        states.DEPLOY_WAIT_DEPLOY: ('_wait_deploy', states.DEPLOY_DONE),
    }

    def __init__(self, client, node_id, patch=None, config_drive=None,
                 builder=None, poll_interval=None, manage_timeout=None,
                 provide_timeout=None, deploy_timeout=None):
        """Prepare a deployment.

        :param client: a :class:`metaldeploy.common.client.NodeClient`.
        :param node_id: UUID or name of the node.
        :param patch: JSON patch operations applied in CONFIGURE, see
            :func:`build_patch`.
        :param config_drive: :class:`metaldeploy.configdrive.ConfigDrive`
            attached to the ``active`` request. None deploys without one.
        :param builder: config drive builder, a default one if None.
        :param poll_interval: seconds between two node reads, defaults to
            ``[deploy]poll_interval``.
        :param manage_timeout: defaults to ``[deploy]manage_timeout``.
        :param provide_timeout: defaults to ``[deploy]provide_timeout``.
        :param deploy_timeout: defaults to ``[deploy]deploy_timeout``.
        :raises: InvalidParameterValue on a malformed patch.
        :raises: MissingParameterValue without a node.
        """
        if not node_id:
            raise exception.MissingParameterValue(
                err=_("A node is required to run a deployment."))
        patch = list(patch or [])
        _validate_patch(patch)

        self.client = client
        self.node_id = node_id
        self.patch = patch
        self.config_drive = config_drive
        self.builder = builder or configdrive_builder.ConfigDriveBuilder()
        self.poll_interval = (CONF.deploy.poll_interval
                              if poll_interval is None else poll_interval)
        self.timeouts = {
            states.MANAGEABLE: (CONF.deploy.manage_timeout
                                if manage_timeout is None
                                else manage_timeout),
            states.AVAILABLE: (CONF.deploy.provide_timeout
                               if provide_timeout is None
                               else provide_timeout),
            states.ACTIVE: (CONF.deploy.deploy_timeout
                            if deploy_timeout is None else deploy_timeout),
        }
        self.progress_step = CONF.deploy.progress_step
        self.progress_ceiling = CONF.deploy.progress_ceiling

        self._state = None
        self._progress = 0
        self._error = None
        self._status = None
        self._cancel_event = threading.Event()
        self._started = False
        self._start_lock = threading.Lock()

    @property
    def state(self):
        return self._state

    @property
    def progress(self):
        return self._progress

    @property
    def error(self):
        return self._error

    @property
    def cancelled(self):
        return self._cancel_event.is_set()

    def cancel(self):
        """Stop the run before its next step or poll, which ends in ERROR.

        A deployment cancelled before it runs makes no remote call.
        """
        LOG.info('Cancelling deployment of node %s', self.node_id)
        self._cancel_event.set()

    def run(self, status=None):
        """Deploy the node, blocking until DONE or ERROR.

        Meant to be run on its own thread when several nodes are deployed
        at once, see :class:`metaldeploy.conductor.manager.DeployManager`.

        :param status: optional
            :class:`metaldeploy.conductor.progress.ProgressChannel`, closed
            when the run ends.
        :raises: DeploymentAlreadyStarted if the deployment already ran.
        :raises: the error recorded on the deployment when it failed.
        """
        with self._start_lock:
            if self._started:
                raise exception.DeploymentAlreadyStarted(node=self.node_id)
            self._started = True

        self._status = status
        try:
            self._drive()
        finally:
            if status is not None:
                status.close()

        if self._error is not None:
            raise self._error

    def _drive(self):
        state = states.DEPLOY_BEGIN
        while state not in states.TERMINAL_STATES:
            self._enter(state)
            action, next_state = self.TRANSITIONS[state]
            try:
                if self._cancel_event.is_set():
                    raise exception.DeployCancelled(node=self.node_id,
                                                    state=state)
                getattr(self, action)()
            except Exception as e:
                self._fail(e)
                state = states.DEPLOY_ERROR
            else:
                state = next_state
        self._enter(state)

    def _enter(self, state):
        self._state = state
        if state != states.DEPLOY_ERROR:
            self._progress = states.PROGRESS[state]
        LOG.info('Node %(node)s deployment entered %(state)s (%(pct)d%%)',
                 {'node': self.node_id, 'state': state,
                  'pct': self._progress})
        self._report()

    def _report(self):
        if self._status is not None:
            self._status.send(self._state, self._progress)

    def _fail(self, error):
        if self._error is not None:
            return
        self._error = error
        if isinstance(error, exception.MetalDeployException):
            LOG.error('Deployment of node %(node)s failed in %(state)s: '
                      '%(err)s', {'node': self.node_id, 'state': self._state,
                                  'err': error})
        else:
            LOG.exception('Unexpected error deploying node %(node)s in '
                          '%(state)s', {'node': self.node_id,
                                        'state': self._state})

    def _advance(self):
        self._progress = min(self._progress + self.progress_step,
                             self.progress_ceiling)
        self._report()

    def _wait_for(self, target, waiting, action, on_wait=None):
        """Poll the node until it reaches target.

        :param target: the provision state to wait for.
        :param waiting: provision states meaning the service is still
            working towards target.
        :param action: name of the step, used in error messages.
        :param on_wait: called after every poll that found the node in one
            of the waiting states.
        :raises: UnexpectedStateError on any other provision state.
        :raises: DeployTimeout when the deadline for target passed.
        :raises: DeployCancelled when the deployment was cancelled.
        :raises: TransportError when reading the node failed.
        """
        timeout = self.timeouts[target]
        watch = timeutils.StopWatch(duration=timeout or None).start()
        while True:
            if self._cancel_event.is_set():
                raise exception.DeployCancelled(node=self.node_id,
                                                state=self._state)
            node = self.client.get_node(self.node_id)
            state = node.get('provision_state')
            if state == target:
                LOG.info('Node %(node)s reached provision state %(state)s '
                         'after %(time).2f seconds',
                         {'node': self.node_id, 'state': state,
                          'time': watch.elapsed()})
                return
            if state not in waiting:
                if node.get('last_error'):
                    LOG.error('Node %(node)s reports: %(err)s',
                              {'node': self.node_id,
                               'err': node['last_error']})
                raise exception.UnexpectedStateError(
                    action=action, node=self.node_id, state=state)

            LOG.debug('Node %(node)s is %(state)s, waiting for %(target)s',
                      {'node': self.node_id, 'state': state,
                       'target': target})
            if on_wait is not None:
                on_wait()
            if watch.expired():
                raise exception.DeployTimeout(timeout=timeout,
                                              node=self.node_id,
                                              target=target, state=state)
            delay = self.poll_interval
            if timeout:
                delay = min(delay, watch.leftover())
            if self._cancel_event.wait(delay):
                raise exception.DeployCancelled(node=self.node_id,
                                                state=self._state)

    def _begin(self):
        LOG.info('Starting deployment of node %s', self.node_id)

    def _configure(self):
        if not self.patch:
            LOG.debug('No patch for node %s, skipping configuration',
                      self.node_id)
            return
        self.client.patch_node(self.node_id, self.patch)

    def _manage(self):
        self.client.set_provision_state(self.node_id, states.TARGET_MANAGE)

    def _wait_manage(self):
        self._wait_for(states.MANAGEABLE, (states.VERIFYING,), 'Manage')

    def _provide(self):
        self.client.set_provision_state(self.node_id, states.TARGET_PROVIDE)

    def _wait_provide(self):
        self._wait_for(states.AVAILABLE, (states.CLEANING, states.CLEANWAIT),
                       'Provide')

    def _deploy(self):
        configdrive = None
        if self.config_drive is not None:
            configdrive = self.builder.build(self.config_drive)
        self.client.set_provision_state(self.node_id, states.TARGET_ACTIVE,
                                        configdrive=configdrive)

    def _wait_deploy(self):
        self._wait_for(states.ACTIVE, (states.DEPLOYING, states.DEPLOYWAIT),
                       'Deploy', on_wait=self._advance)
