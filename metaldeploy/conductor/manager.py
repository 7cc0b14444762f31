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
"""Run several deployments at once on a pool of worker threads.

"""

import futurist
from futurist import rejection
from futurist import waiters
from oslo_log import log as logging

from metaldeploy.common import exception
from metaldeploy.common.i18n import _
from metaldeploy.common import states
from metaldeploy.common import utils
from metaldeploy.conf import CONF

LOG = logging.getLogger(__name__)


class DeployManager(object):
    """Deploy a batch of nodes in parallel, one worker per node."""

    def __init__(self, workers_pool_size=None, max_backlog=None):
        self.workers_pool_size = (workers_pool_size or
                                  CONF.deploy.workers_pool_size)
        if max_backlog is None:
            max_backlog = CONF.deploy.max_backlog
        rejection_func = None
        if max_backlog:
            rejection_func = rejection.reject_when_reached(max_backlog)
        self._executor = futurist.ThreadPoolExecutor(
            max_workers=self.workers_pool_size,
            check_and_reject=rejection_func)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.shutdown()

    def shutdown(self, wait=True):
        self._executor.shutdown(wait=wait)

    def _spawn_worker(self, func, *args, **kwargs):
        """Create a thread to run func(*args, **kwargs).

        Execution control returns immediately to the caller.

        :returns: Future object.
        :raises: NoFreeDeployWorker if the backlog of the pool is full.

        """
        try:
            return self._executor.submit(func, *args, **kwargs)
        except futurist.RejectedSubmission:
            raise exception.NoFreeDeployWorker()

    @staticmethod
    def _close(channel):
        if channel is not None and not channel.closed:
            channel.close()

    def _cancel_all(self, futures, statuses):
        """Cancel submitted deployments.

        Every deployment is flagged first, so one that a freed worker picks
        up meanwhile stops before its first remote call. Deployments still
        queued are then dropped without running and their channels are
        closed with no record in them.
        """
        for future in futures:
            future.deployment.cancel()
        for future in futures:
            if future.cancel():
                LOG.info('Deployment of node %s dropped before it started',
                         future.deployment.node_id)
                self._close(statuses.get(future.deployment.node_id))

    def deploy(self, deployments, timeout=None, statuses=None):
        """Run deployments in parallel and wait for all of them.

        :param deployments: list of
            :class:`metaldeploy.conductor.deployment.Deployment`, at most one
            per node.
        :param timeout: seconds to wait for the whole batch, defaults to
            ``[deploy]timeout``. 0 waits forever.
        :param statuses: optional dict mapping a node to the
            :class:`metaldeploy.conductor.progress.ProgressChannel` its
            deployment reports to.
        :returns: a dict mapping each node to ``ok`` or the error message.
        :raises: InvalidParameterValue if a node appears twice.
        :raises: NoFreeDeployWorker if the pool can not take the batch.
        """
        statuses = statuses or {}
        if timeout is None:
            timeout = CONF.deploy.timeout
        dups = utils.get_duplicate_list([d.node_id for d in deployments])
        if dups:
            raise exception.InvalidParameterValue(
                err=_("Nodes %s appear more than once in the batch.") %
                ', '.join(sorted(dups)))

        LOG.info('Deploying nodes %(nodes)s with %(workers)d workers',
                 {'nodes': ', '.join(d.node_id for d in deployments),
                  'workers': self.workers_pool_size})
        futures = []
        try:
            for deployment in deployments:
                future = self._spawn_worker(deployment.run,
                                            statuses.get(deployment.node_id))
                setattr(future, 'deployment', deployment)
                futures.append(future)
        except exception.NoFreeDeployWorker:
            self._cancel_all(futures, statuses)
            # the rejected deployment and those after it never run
            for deployment in deployments[len(futures):]:
                self._close(statuses.get(deployment.node_id))
            raise

        done, not_done = waiters.wait_for_all(futures, timeout or None)
        result = dict()
        for r in done:
            deployment = getattr(r, 'deployment')
            if r.exception():
                result[deployment.node_id] = str(r.exception())
            else:
                result[deployment.node_id] = states.SUCCESS

        msg = "Timeout after waiting %(timeout)s seconds" % {
            "timeout": timeout}
        for r in not_done:
            deployment = getattr(r, 'deployment')
            LOG.warning('Deployment of node %(node)s did not finish within '
                        '%(timeout)s seconds, cancelling it',
                        {'node': deployment.node_id, 'timeout': timeout})
            result[deployment.node_id] = msg
        self._cancel_all(not_done, statuses)
        return result
