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

"""Build config drive images.

A config drive is an ISO-9660 image (Rock Ridge and Joliet extensions,
volume label ``config-2``) laid out the way first-boot tooling such as
cloud-init and ignition expects::

    openstack/latest/user_data
    openstack/latest/meta_data.json
    openstack/latest/network_data.json

The provisioning service takes it gzip compressed and base64 encoded.
"""

import base64
import collections.abc
import gzip
import json
import os
import shutil

from oslo_concurrency import processutils
from oslo_log import log as logging
from oslo_utils import fileutils

from metaldeploy.common import exception
from metaldeploy.common.i18n import _
from metaldeploy.common import utils
from metaldeploy.conf import CONF
from metaldeploy.configdrive import userdata

LOG = logging.getLogger(__name__)

LAYOUT_ROOT = 'openstack'
LAYOUT_VERSION = 'latest'
USER_DATA_FILE = 'user_data'
META_DATA_FILE = 'meta_data.json'
NETWORK_DATA_FILE = 'network_data.json'

ISO_TOOLS = ('genisoimage', 'mkisofs', 'xorrisofs')


def dump_json(name, data):
    """Serialize metadata or network data as compact JSON bytes."""
    try:
        return json.dumps(data, separators=(',', ':'),
                          allow_nan=False).encode('utf-8')
    except (TypeError, ValueError) as e:
        raise exception.SerializationError(name=name, reason=e)


def encode(image):
    """Gzip and base64 encode an image for transport."""
    # mtime is pinned so the same image always encodes to the same string.
    compressed = gzip.compress(image, mtime=0)
    return base64.b64encode(compressed).decode('ascii')


def decode(configdrive):
    """Return the raw image bytes of an encoded config drive."""
    return gzip.decompress(base64.b64decode(configdrive))


def _ensure_mapping(name, value):
    if value is not None and not isinstance(value, collections.abc.Mapping):
        raise exception.InvalidParameterValue(
            err=_("%(name)s must be a mapping, got %(type)s.") %
            {'name': name, 'type': type(value).__name__})
    return value


class ConfigDrive(object):
    """The payloads of one config drive, any of which may be absent."""

    def __init__(self, user_data=None, meta_data=None, network_data=None):
        if user_data is not None:
            user_data = userdata.UserData.coerce(user_data)
        self.user_data = user_data
        self.meta_data = _ensure_mapping('meta_data', meta_data)
        self.network_data = _ensure_mapping('network_data', network_data)

    @property
    def is_empty(self):
        return (self.user_data is None and self.meta_data is None and
                self.network_data is None)

    def to_config_drive(self, builder=None):
        """Build this drive, see :meth:`ConfigDriveBuilder.build`."""
        return (builder or ConfigDriveBuilder()).build(self)


class ConfigDriveBuilder(object):
    """Turns a :class:`ConfigDrive` into the string the service accepts.

    A builder keeps no state between builds and may be shared by
    concurrent deployments; each build stages its files in a private
    directory.
    """

    def __init__(self, iso_tool=None, volume_label=None, publisher=None):
        self.iso_tool = iso_tool
        self.volume_label = volume_label
        self.publisher = publisher

    def _find_iso_tool(self):
        tool = self.iso_tool or CONF.configdrive.iso_tool
        candidates = (tool,) if tool else ISO_TOOLS
        for candidate in candidates:
            path = shutil.which(candidate)
            if path:
                return path
        raise exception.BuildError(
            reason=_("none of %s was found on PATH") % ', '.join(candidates))

    def stage(self, config_drive, directory):
        """Write the drive payloads below directory.

        :param config_drive: a :class:`ConfigDrive`.
        :param directory: root of the tree that becomes the image.
        :returns: the list of files written.
        :raises: SerializationError if a payload can not be serialized.
        """
        path = os.path.join(directory, LAYOUT_ROOT, LAYOUT_VERSION)
        fileutils.ensure_tree(path)

        files = []
        if config_drive.user_data is not None:
            files.append((USER_DATA_FILE, config_drive.user_data.serialize()))
        if config_drive.meta_data is not None:
            files.append((META_DATA_FILE,
                          dump_json('meta_data', config_drive.meta_data)))
        if config_drive.network_data is not None:
            files.append((NETWORK_DATA_FILE,
                          dump_json('network_data',
                                    config_drive.network_data)))

        written = []
        for name, contents in files:
            file_path = os.path.join(path, name)
            utils.write_to_file(file_path, contents)
            written.append(file_path)
        return written

    def pack(self, directory, output):
        """Master an ISO-9660 image of directory into output."""
        tool = self._find_iso_tool()
        utils.execute(tool,
                      '-o', output,
                      '-ldots', '-allow-lowercase', '-allow-multidot', '-l',
                      '-publisher',
                      self.publisher or CONF.configdrive.publisher,
                      '-quiet', '-J', '-r',
                      '-V', self.volume_label or CONF.configdrive.volume_label,
                      directory,
                      use_standard_locale=True)

    def build(self, config_drive):
        """Build a config drive.

        :param config_drive: a :class:`ConfigDrive`.
        :returns: base64 (standard alphabet, unwrapped) of the gzipped
            image, as an ASCII str.
        :raises: SerializationError if a payload can not be serialized.
        :raises: BuildError if staging, mastering or reading the image
            failed.
        """
        if config_drive.is_empty:
            LOG.warning('Building a config drive without any payload.')
        try:
            with utils.tempdir(prefix='configdrive-') as tmpdir:
                staging = os.path.join(tmpdir, 'drive')
                image_path = os.path.join(tmpdir, 'configdrive.iso')
                written = self.stage(config_drive, staging)
                LOG.debug('Staged config drive files %s', written)
                self.pack(staging, image_path)
                with open(image_path, 'rb') as f:
                    image = f.read()
        except (OSError, processutils.ProcessExecutionError) as e:
            raise exception.BuildError(reason=e)

        result = encode(image)
        LOG.debug('Built config drive of %(image)d bytes, %(encoded)d '
                  'bytes encoded', {'image': len(image),
                                    'encoded': len(result)})
        return result
