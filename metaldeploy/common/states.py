# Copyright (c) 2012 NTT DOCOMO, INC.
# Copyright 2010 OpenStack Foundation
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

"""
Mapping of bare metal node states.

Two families of states live here. The provision states are owned by the
remote provisioning service: a node moves between them on its own once a
provision target has been requested, and this project only observes them
by reading the node back. The deploy states are owned by a
:class:`metaldeploy.conductor.deployment.Deployment`, which walks through
them in order and reports a progress percentage for each one.
"""

################
# Request states
################

SUCCESS = 'ok'

###################
# Provision targets
###################

TARGET_MANAGE = 'manage'
""" Ask the service to verify management access to an enrolled node. """

TARGET_PROVIDE = 'provide'
""" Ask the service to clean a manageable node and make it available. """

TARGET_ACTIVE = 'active'
""" Ask the service to deploy an available node. """

##################
# Provision states
##################

ENROLL = 'enroll'
""" Node is registered but its management access is not verified. """

VERIFYING = 'verifying'
""" Management access of the node is being verified. """

MANAGEABLE = 'manageable'
""" Node is verified and may be cleaned or inspected. """

CLEANING = 'cleaning'
""" Node is being cleaned. """

CLEANWAIT = 'clean wait'
""" Node is waiting for a clean step to finish. """

AVAILABLE = 'available'
""" Node is clean and may be deployed. """

DEPLOYING = 'deploying'
""" Node is being deployed. """

DEPLOYWAIT = 'wait call-back'
""" Node is waiting for the deploy ramdisk to call back. """

ACTIVE = 'active'
""" Node is deployed. """

DEPLOYFAIL = 'deploy failed'
CLEANFAIL = 'clean failed'
ERROR = 'error'

###############
# Deploy states
###############

DEPLOY_BEGIN = 'BEGIN'
DEPLOY_CONFIGURE = 'CONFIGURE'
DEPLOY_MANAGE = 'MANAGE'
DEPLOY_WAIT_MANAGE = 'WAIT_MANAGE'
DEPLOY_PROVIDE = 'PROVIDE'
DEPLOY_WAIT_PROVIDE = 'WAIT_PROVIDE'
DEPLOY_DEPLOY = 'DEPLOY'
DEPLOY_WAIT_DEPLOY = 'WAIT_DEPLOY'
DEPLOY_DONE = 'DONE'
DEPLOY_ERROR = 'ERROR'

DEPLOY_STATES = (DEPLOY_BEGIN, DEPLOY_CONFIGURE, DEPLOY_MANAGE,
                 DEPLOY_WAIT_MANAGE, DEPLOY_PROVIDE, DEPLOY_WAIT_PROVIDE,
                 DEPLOY_DEPLOY, DEPLOY_WAIT_DEPLOY, DEPLOY_DONE)
""" Deploy states of a successful run, in order. """

TERMINAL_STATES = frozenset([DEPLOY_DONE, DEPLOY_ERROR])

PROGRESS = {
    DEPLOY_BEGIN: 0,
    DEPLOY_CONFIGURE: 10,
    DEPLOY_MANAGE: 15,
    DEPLOY_WAIT_MANAGE: 20,
    DEPLOY_PROVIDE: 25,
    DEPLOY_WAIT_PROVIDE: 30,
    DEPLOY_DEPLOY: 35,
    DEPLOY_WAIT_DEPLOY: 40,
    DEPLOY_DONE: 100,
}
""" Progress percentage reported when a deploy state is entered. """
