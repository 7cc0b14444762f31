# Copyright 2016 OpenStack Foundation
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

from metaldeploy.conf import configdrive
from metaldeploy.conf import default
from metaldeploy.conf import deploy
from metaldeploy.conf import ironic


CONF = cfg.CONF

configdrive.register_opts(CONF)
default.register_opts(CONF)
deploy.register_opts(CONF)
ironic.register_opts(CONF)
