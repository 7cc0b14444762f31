# -*- encoding: utf-8 -*-
"""
Deploy bare metal nodes described in a request file
"""

import os
import sys
import threading

from oslo_config import cfg
from oslo_log import log
from oslo_serialization import jsonutils

from metaldeploy.common import client
from metaldeploy.common import exception
from metaldeploy.common.i18n import _
from metaldeploy.common import service
from metaldeploy.common import states
from metaldeploy.conductor import deployment
from metaldeploy.conductor import manager
from metaldeploy.conductor import progress
from metaldeploy.conf import CONF
from metaldeploy import configdrive

LOG = log.getLogger(__name__)


def load_request(path):
    """Read the deployments listed in a request file.

    :returns: list of request entries, each a dict with at least ``node``.
    :raises: InvalidParameterValue if the file is not a valid request.
    """
    try:
        with open(path, 'rb') as f:
            data = jsonutils.loads(f.read())
    except (OSError, ValueError) as e:
        raise exception.InvalidParameterValue(
            err=_("Can not read request file %(path)s: %(err)s") %
            {'path': path, 'err': e})
    entries = data.get('deployments') if isinstance(data, dict) else None
    if not isinstance(entries, list) or not entries:
        raise exception.InvalidParameterValue(
            err=_("Request file %s has no deployments list.") % path)
    for entry in entries:
        if not isinstance(entry, dict) or not entry.get('node'):
            raise exception.MissingParameterValue(
                err=_("Every deployment in %s needs a node.") % path)
    return entries


def build_config_drive(entry, base_dir='.'):
    """Return the ConfigDrive of a request entry, None if it has no payload.

    ``user_data_file`` is read as bytes, relative to base_dir.
    """
    user_data = entry.get('user_data')
    user_data_file = entry.get('user_data_file')
    if user_data is not None and user_data_file:
        raise exception.InvalidParameterValue(
            err=_("Node %s sets both user_data and user_data_file.") %
            entry['node'])
    if user_data_file:
        path = os.path.join(base_dir, user_data_file)
        try:
            with open(path, 'rb') as f:
                user_data = f.read()
        except OSError as e:
            raise exception.InvalidParameterValue(
                err=_("Can not read user data of node %(node)s: %(err)s") %
                {'node': entry['node'], 'err': e})

    meta_data = entry.get('meta_data')
    network_data = entry.get('network_data')
    if user_data is None and meta_data is None and network_data is None:
        return None
    return configdrive.ConfigDrive(user_data=user_data, meta_data=meta_data,
                                   network_data=network_data)


def build_deployment(node_client, entry, base_dir='.', builder=None):
    patch = deployment.build_patch(entry.get('instance_info'),
                                   entry.get('properties'))
    return deployment.Deployment(node_client, entry['node'], patch=patch,
                                 config_drive=build_config_drive(entry,
                                                                 base_dir),
                                 builder=builder)


def _log_progress(node, channel):
    for update in channel:
        LOG.info('Node %(node)s: %(state)s %(pct)d%%',
                 {'node': node, 'state': update.state,
                  'pct': update.percentage})


class DeployCommand(object):

    def deploy(self):
        path = CONF.command.request
        entries = load_request(path)
        base_dir = os.path.dirname(os.path.abspath(path))
        node_client = client.IronicClient()
        builder = configdrive.ConfigDriveBuilder()
        deployments = [build_deployment(node_client, entry, base_dir, builder)
                       for entry in entries]

        statuses = {}
        readers = []
        for d in deployments:
            channel = progress.ProgressChannel()
            statuses[d.node_id] = channel
            reader = threading.Thread(target=_log_progress,
                                      args=(d.node_id, channel))
            reader.daemon = True
            reader.start()
            readers.append((d, reader))

        with manager.DeployManager() as mgr:
            result = mgr.deploy(deployments, statuses=statuses)

        for d, reader in readers:
            if d.state in states.TERMINAL_STATES:
                reader.join()

        print(jsonutils.dumps(result, indent=2, sort_keys=True))
        failed = sorted(node for node, status in result.items()
                        if status != states.SUCCESS)
        if failed:
            LOG.error('Deployment failed for nodes %s', ', '.join(failed))
            return 1
        return 0

    def configdrive(self):
        path = CONF.command.request
        entries = load_request(path)
        node = CONF.command.node
        if node:
            entries = [e for e in entries if e['node'] == node]
            if not entries:
                raise exception.InvalidParameterValue(
                    err=_("Node %(node)s is not in %(path)s.") %
                    {'node': node, 'path': path})
        elif len(entries) > 1:
            raise exception.MissingParameterValue(
                err=_("%s lists several deployments, pick one with "
                      "--node.") % path)

        base_dir = os.path.dirname(os.path.abspath(path))
        drive = (build_config_drive(entries[0], base_dir) or
                 configdrive.ConfigDrive())
        print(drive.to_config_drive())
        return 0


def add_command_parsers(subparsers):
    command_object = DeployCommand()

    parser = subparsers.add_parser(
        'deploy',
        help=_("Deploy every node listed in a request file in parallel."))
    parser.set_defaults(func=command_object.deploy)
    parser.add_argument('request', help=_("Path of the request file"))

    parser = subparsers.add_parser(
        'configdrive',
        help=_("Print the encoded config drive of one request entry."))
    parser.set_defaults(func=command_object.configdrive)
    parser.add_argument('-n', '--node', nargs='?',
                        help=_("Node whose config drive is built"))
    parser.add_argument('request', help=_("Path of the request file"))


command_opt = cfg.SubCommandOpt('command',
                                title='Command',
                                help=_('Available commands'),
                                handler=add_command_parsers)

CONF.register_cli_opt(command_opt)


def main(argv=None):
    argv = sys.argv if argv is None else argv
    service.prepare_service(argv)
    try:
        return CONF.command.func()
    except exception.MetalDeployException as e:
        LOG.error('%s', e)
        return 1


if __name__ == '__main__':
    sys.exit(main())
