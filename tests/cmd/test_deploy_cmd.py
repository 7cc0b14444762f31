"""Tests for the metaldeploy-deploy command."""

import json

from oslo_log import log
import pytest

from metaldeploy.cmd import deploy as deploy_cmd
from metaldeploy.common import exception
from metaldeploy.conf import CONF
from metaldeploy.configdrive import builder
from metaldeploy.configdrive import userdata


@pytest.fixture(autouse=True)
def _logs_to_stderr():
    """Keep stdout for the command output."""
    log.register_options(CONF)
    CONF.set_override('use_stderr', True)


@pytest.fixture
def request_file(tmp_path):
    def write(deployments):
        path = tmp_path / 'request.json'
        path.write_text(json.dumps({'deployments': deployments}))
        return str(path)
    return write


@pytest.fixture
def iso_tool(monkeypatch):
    """Pack the staged user_data file alone as the image."""
    def pack(*cmd, **kwargs):
        output = cmd[cmd.index('-o') + 1]
        with open('%s/openstack/latest/user_data' % cmd[-1], 'rb') as src:
            with open(output, 'wb') as dst:
                dst.write(src.read())
        return '', ''

    monkeypatch.setattr(builder.utils, 'execute', pack)
    monkeypatch.setattr(builder.shutil, 'which', lambda name: name)


class TestLoadRequest:
    def test_entries(self, request_file):
        path = request_file([{'node': 'n1'}, {'node': 'n2'}])
        assert [e['node'] for e in deploy_cmd.load_request(path)] == [
            'n1', 'n2']

    def test_missing_file(self, tmp_path):
        with pytest.raises(exception.InvalidParameterValue):
            deploy_cmd.load_request(str(tmp_path / 'nope.json'))

    def test_not_json(self, tmp_path):
        path = tmp_path / 'request.json'
        path.write_text('deployments: []')
        with pytest.raises(exception.InvalidParameterValue):
            deploy_cmd.load_request(str(path))

    def test_empty(self, request_file):
        with pytest.raises(exception.InvalidParameterValue):
            deploy_cmd.load_request(request_file([]))

    def test_entry_without_node(self, request_file):
        with pytest.raises(exception.MissingParameterValue):
            deploy_cmd.load_request(request_file([{'user_data': 'x'}]))


class TestBuildConfigDrive:
    def test_no_payload(self):
        assert deploy_cmd.build_config_drive({'node': 'n1'}) is None

    def test_mapping_user_data(self):
        drive = deploy_cmd.build_config_drive(
            {'node': 'n1', 'user_data': {'ignition': {'version': '3.3.0'}},
             'meta_data': {'uuid': 'x'}})
        assert drive.user_data.kind == userdata.MAPPING
        assert drive.meta_data == {'uuid': 'x'}
        assert drive.network_data is None

    def test_user_data_file_read_as_bytes(self, tmp_path):
        (tmp_path / 'init.sh').write_bytes(b'#!/bin/sh\r\necho hi\n')
        drive = deploy_cmd.build_config_drive(
            {'node': 'n1', 'user_data_file': 'init.sh'}, str(tmp_path))
        assert drive.user_data.serialize() == b'#!/bin/sh\r\necho hi\n'

    def test_user_data_and_file_conflict(self):
        with pytest.raises(exception.InvalidParameterValue):
            deploy_cmd.build_config_drive(
                {'node': 'n1', 'user_data': 'x', 'user_data_file': 'y'})

    def test_unreadable_user_data_file(self, tmp_path):
        with pytest.raises(exception.InvalidParameterValue):
            deploy_cmd.build_config_drive(
                {'node': 'n1', 'user_data_file': 'missing'}, str(tmp_path))


def test_build_deployment_patch(fake_client):
    d = deploy_cmd.build_deployment(
        fake_client(), {'node': 'n1', 'instance_info': {'root_gb': 10}})
    assert d.node_id == 'n1'
    assert d.patch == [{'op': 'add', 'path': '/instance_info',
                        'value': {'root_gb': 10}}]
    assert d.config_drive is None


class TestMain:
    def test_configdrive(self, request_file, iso_tool, capsys):
        path = request_file([{'node': 'n1', 'user_data': 'one'},
                             {'node': 'n2', 'user_data': 'two'}])
        assert deploy_cmd.main(['metaldeploy-deploy', 'configdrive',
                                '--node', 'n2', path]) == 0
        encoded = capsys.readouterr().out.strip()
        assert builder.decode(encoded) == b'two'

    def test_configdrive_needs_node_for_several_entries(self, request_file,
                                                         iso_tool):
        path = request_file([{'node': 'n1'}, {'node': 'n2'}])
        assert deploy_cmd.main(['metaldeploy-deploy', 'configdrive',
                                path]) == 1

    def test_deploy(self, request_file, fake_client, monkeypatch, capsys):
        node_client = fake_client({
            'n1': ['manageable', 'available', 'active'],
            'n2': ['manageable', 'deploy failed'],
        })
        monkeypatch.setattr(deploy_cmd.client, 'IronicClient',
                            lambda: node_client)
        path = request_file([{'node': 'n1'}, {'node': 'n2'}])

        assert deploy_cmd.main(['metaldeploy-deploy', 'deploy', path]) == 1
        result = json.loads(capsys.readouterr().out)
        assert result['n1'] == 'ok'
        assert 'deploy failed' in result['n2']

    def test_deploy_success(self, request_file, fake_client, monkeypatch,
                            capsys):
        node_client = fake_client({
            'n1': ['verifying', 'manageable', 'available', 'active']})
        monkeypatch.setattr(deploy_cmd.client, 'IronicClient',
                            lambda: node_client)
        path = request_file([{'node': 'n1',
                              'properties': {'cpu_arch': 'x86_64'}}])

        assert deploy_cmd.main(['metaldeploy-deploy', 'deploy', path]) == 0
        assert json.loads(capsys.readouterr().out) == {'n1': 'ok'}
        assert node_client.calls_for('n1', 'patch_node') == [
            ('patch_node', ([{'op': 'add', 'path': '/properties',
                              'value': {'cpu_arch': 'x86_64'}}],))]
