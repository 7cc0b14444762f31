# Copyright 2016 Intel Corporation
# Copyright 2013 Hewlett-Packard Development Company, L.P.
# Copyright 2013 International Business Machines Corporation
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

from oslo_config import cfg

from metaldeploy.common.i18n import _

opts = [
    cfg.FloatOpt('poll_interval',
                 default=5,
                 min=0,
                 help=_('Seconds to sleep between two reads of the node '
                        'provision state while waiting for the provisioning '
                        'service to converge.')),
    cfg.IntOpt('manage_timeout',
               default=1800,
               min=0,
               help=_('Maximum time (in seconds) to wait for a node to '
                      'become manageable. 0 means wait forever.')),
    cfg.IntOpt('provide_timeout',
               default=3600,
               min=0,
               help=_('Maximum time (in seconds) to wait for a node to '
                      'become available, cleaning included. 0 means wait '
                      'forever.')),
    cfg.IntOpt('deploy_timeout',
               default=3600,
               min=0,
               help=_('Maximum time (in seconds) to wait for a node to '
                      'become active. 0 means wait forever.')),
    cfg.IntOpt('progress_step',
               default=1,
               min=0,
               help=_('Percentage added to the reported progress on each '
                      'poll while the node is deploying.')),
    cfg.IntOpt('progress_ceiling',
               default=99,
               min=40, max=99,
               help=_('Highest progress percentage reported before the '
                      'node is actually active.')),
    cfg.IntOpt('workers_pool_size',
               default=16,
               min=1,
               help=_('The number of nodes deployed in parallel.')),
    cfg.IntOpt('max_backlog',
               default=0,
               min=0,
               help=_('Number of deployments allowed to queue for a free '
                      'worker before new ones are rejected. 0 means no '
                      'limit.')),
    cfg.IntOpt('timeout',
               default=7200,
               min=0,
               help=_('Maximum time (in seconds) to wait for a batch of '
                      'parallel deployments. 0 means wait forever.')),
]


def register_opts(conf):
    conf.register_opts(opts, group='deploy')
