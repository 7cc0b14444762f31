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
    cfg.StrOpt('api_url',
               default='http://localhost:6385/v1/',
               regex=r'^http(s?)://.+',
               help=_('URL of the bare metal provisioning API, including '
                      'the version prefix. The value must start with either '
                      'http:// or https://.')),
    cfg.StrOpt('api_version',
               default='1.46',
               help=_('API microversion sent with every request.')),
    cfg.IntOpt('request_timeout',
               default=60,
               min=1,
               help=_('Timeout (in seconds) of a single API request.')),
    cfg.BoolOpt('insecure',
                default=False,
                help=_('Do not verify the TLS certificate of the API.')),
    cfg.StrOpt('cafile',
               help=_('PEM encoded CA bundle used to verify the TLS '
                      'certificate of the API.')),
]


def register_opts(conf):
    conf.register_opts(opts, group='ironic')
