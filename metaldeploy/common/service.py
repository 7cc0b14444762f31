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

from oslo_log import log

from metaldeploy.conf import CONF


def prepare_service(argv=None):
    """Parse configuration files and the command line, then set up logging.

    :param argv: full command line, program name included.
    """
    argv = [] if argv is None else argv
    log.register_options(CONF)
    log.set_defaults(default_log_levels=log.get_default_log_levels() +
                     ['urllib3.connectionpool=WARN'])
    CONF(argv[1:], project='metaldeploy')
    log.setup(CONF, 'metaldeploy')
