"""Tests for metaldeploy.configdrive.userdata."""

import json

import pytest

from metaldeploy.common import exception
from metaldeploy.configdrive import userdata
from metaldeploy.configdrive.userdata import UserData


class TestTextUserData:
    def test_str_is_utf8_encoded(self):
        data = UserData.from_text('#cloud-config\nhostname: nøde\n')
        assert data.kind == userdata.TEXT
        assert data.serialize() == '#cloud-config\nhostname: nøde\n'.encode(
            'utf-8')

    def test_bytes_pass_through_untouched(self):
        blob = b'\x00\x01#!/bin/sh\r\n'
        assert UserData.from_text(blob).serialize() == blob

    def test_rejects_non_text(self):
        with pytest.raises(exception.InvalidParameterValue):
            UserData.from_text(42)


class TestMappingUserData:
    def test_serializes_sorted_indented_json(self):
        data = UserData.from_mapping({'b': [1, 2], 'a': 1})
        raw = data.serialize()
        assert json.loads(raw.decode('utf-8')) == {'a': 1, 'b': [1, 2]}
        assert raw.decode('utf-8').index('"a"') < raw.decode(
            'utf-8').index('"b"')
        assert b'\n    "a": 1' in raw

    def test_ignition_config(self):
        config = {'ignition': {'version': '3.3.0'},
                  'passwd': {'users': [{'name': 'core'}]}}
        raw = UserData.from_mapping(config).serialize()
        assert json.loads(raw) == config

    def test_value_is_read_only_copy(self):
        source = {'a': 1}
        data = UserData.from_mapping(source)
        source['a'] = 2
        assert data.value['a'] == 1
        with pytest.raises(TypeError):
            data.value['a'] = 3

    def test_nested_values_are_copied(self):
        source = {'users': [{'name': 'core'}], 'env': {'a': '1'}}
        data = UserData.from_mapping(source)
        before = data.serialize()
        source['users'].append({'name': 'root'})
        source['users'][0]['name'] = 'admin'
        source['env']['b'] = '2'
        assert data.serialize() == before
        assert data.value['users'] == [{'name': 'core'}]

    @pytest.mark.parametrize('value', [float('nan'), float('inf'), object()])
    def test_unserializable_value(self, value):
        data = UserData.from_mapping({'a': value})
        with pytest.raises(exception.SerializationError):
            data.serialize()

    def test_serialization_error_is_build_error(self):
        data = UserData.from_mapping({'a': {1, 2}})
        with pytest.raises(exception.BuildError):
            data.serialize()

    def test_rejects_non_mapping(self):
        with pytest.raises(exception.InvalidParameterValue):
            UserData.from_mapping(['a'])


class TestCoerce:
    def test_text(self):
        assert UserData.coerce('x') == UserData.from_text('x')

    def test_mapping(self):
        assert UserData.coerce({'a': 1}).kind == userdata.MAPPING

    def test_passes_user_data_through(self):
        data = UserData.from_text(b'x')
        assert UserData.coerce(data) is data

    def test_rejects_other_types(self):
        with pytest.raises(exception.InvalidParameterValue):
            UserData.coerce(['not', 'allowed'])


def test_unknown_kind():
    with pytest.raises(exception.InvalidParameterValue):
        UserData('yaml', 'a: 1')


def test_equality():
    assert UserData.from_mapping({'a': 1}) == UserData.from_mapping({'a': 1})
    assert UserData.from_mapping({'a': 1}) != UserData.from_text('{"a": 1}')
    assert UserData.from_text('a') != UserData.from_text('b')
