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
    cfg.StrOpt('iso_tool',
               help=_('ISO mastering command used to pack config drives. '
                      'When unset, the first of genisoimage, mkisofs and '
                      'xorrisofs found on PATH is used.')),
    cfg.StrOpt('volume_label',
               default='config-2',
               help=_('Volume label of the config drive image. First-boot '
                      'tooling looks the drive up by this label.')),
    cfg.StrOpt('publisher',
               default='metaldeploy',
               help=_('Publisher string written into the image header.')),
]


def register_opts(conf):
    conf.register_opts(opts, group='configdrive')
