# Copyright 2010 United States Government as represented by the
# Administrator of the National Aeronautics and Space Administration.
# Copyright 2011 Justin Santa Barbara
# Copyright (c) 2012 NTT DOCOMO, INC.
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

"""Helpers shared by the config drive builder and the REST client."""

import collections
import contextlib
import os
import shutil
import tempfile
import time

from oslo_concurrency import processutils
from oslo_log import log as logging

from metaldeploy.conf import CONF

LOG = logging.getLogger(__name__)


def execute(*cmd, **kwargs):
    """Run an external tool through processutils.

    :param cmd: the command line, passed to processutils.execute.
    :param use_standard_locale: run the tool with LC_ALL=C so that its
        messages can be matched, False by default.
    :returns: (stdout, stderr) of the tool.
    :raises: ProcessExecutionError when the tool exits non-zero.
    """
    if kwargs.pop('use_standard_locale', False):
        env = kwargs.pop('env_variables', os.environ.copy())
        env['LC_ALL'] = 'C'
        kwargs['env_variables'] = env
    stdout, stderr = processutils.execute(*cmd, **kwargs)
    LOG.debug('Ran "%(cmd)s", stdout: "%(out)s", stderr: "%(err)s"',
              {'cmd': ' '.join(str(c) for c in cmd), 'out': stdout,
               'err': stderr})
    return stdout, stderr


@contextlib.contextmanager
def tempdir(**kwargs):
    """Create a private scratch directory and remove it on exit.

    The directory is created below ``[DEFAULT]tempdir`` unless ``dir`` is
    given. Every call gets its own directory, so concurrent callers never
    share paths.
    """
    kwargs.setdefault('dir', CONF.tempdir)
    path = tempfile.mkdtemp(**kwargs)
    try:
        yield path
    finally:
        try:
            shutil.rmtree(path)
        except OSError as e:
            LOG.error('Could not remove scratch directory %(path)s: %(err)s',
                      {'path': path, 'err': e})


def write_to_file(path, contents):
    """Write contents to path, bytes untouched and text as UTF-8."""
    if isinstance(contents, str):
        contents = contents.encode('utf-8')
    with open(path, 'wb') as f:
        f.write(contents)


def get_duplicate_list(elements):
    """Return the elements found more than once, in first-seen order."""
    counts = collections.Counter(elements)
    return [item for item, count in counts.items() if count > 1]


@contextlib.contextmanager
def record_time(times, enabled, *args):
    """Append (label, start, end) to times around the wrapped block.

    :param times: list collecting the timings.
    :param enabled: nothing is recorded when False.
    :param args: joined with spaces into the label.
    """
    if not enabled:
        yield
        return
    start = time.time()
    yield
    times.append((' '.join(args), start, time.time()))
