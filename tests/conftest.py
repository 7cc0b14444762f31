"""Shared pytest fixtures for metaldeploy tests."""

import threading

import pytest

from metaldeploy.common import client
from metaldeploy.common import exception
from metaldeploy.conf import CONF


@pytest.fixture(autouse=True)
def _reset_conf(tmp_path):
    """Start every test from default options, staging under tmp_path."""
    CONF.set_override('tempdir', str(tmp_path))
    CONF.set_override('poll_interval', 0, group='deploy')
    yield
    CONF.reset()


class FakeClient(client.NodeClient):
    """Node client replaying scripted provision states.

    ``script`` maps a node to the list of provision states returned by its
    successive ``get_node`` calls; the last one repeats forever. An entry
    that is an exception instance is raised instead. Every call is
    recorded in ``calls`` as ``(method, node, args)``.
    """

    def __init__(self, script=None, missing=()):
        self.script = {node: list(seq) for node, seq in
                       (script or {}).items()}
        self.missing = set(missing)
        self.calls = []
        self._lock = threading.Lock()

    def _record(self, method, node_id, *args):
        with self._lock:
            self.calls.append((method, node_id, args))

    def calls_for(self, node_id, method=None):
        with self._lock:
            return [(m, args) for m, n, args in self.calls
                    if n == node_id and (method is None or m == method)]

    def get_node(self, node_id):
        self._record('get_node', node_id)
        if node_id in self.missing:
            raise exception.NodeNotFound(node=node_id)
        with self._lock:
            seq = self.script[node_id]
            state = seq.pop(0) if len(seq) > 1 else seq[0]
        if isinstance(state, Exception):
            raise state
        return {'uuid': node_id, 'provision_state': state,
                'last_error': None}

    def set_provision_state(self, node_id, target, configdrive=None):
        self._record('set_provision_state', node_id, target, configdrive)

    def patch_node(self, node_id, patch):
        self._record('patch_node', node_id, patch)
        return {'uuid': node_id}


class FakeBuilder(object):
    """Config drive builder returning a fixed string."""

    def __init__(self, result='ZHJpdmU=', error=None):
        self.result = result
        self.error = error
        self.built = []

    def build(self, config_drive):
        self.built.append(config_drive)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def fake_client():
    return FakeClient


@pytest.fixture
def fake_builder():
    return FakeBuilder
