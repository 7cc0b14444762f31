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

"""User data slot of a config drive.

User data is either literal text (a cloud-init script or cloud-config
document, or any blob first-boot tooling understands) or a structured
mapping such as an ignition config, which is written out as JSON.
"""

import collections.abc
import copy
import json
import types

from metaldeploy.common import exception
from metaldeploy.common.i18n import _

TEXT = 'text'
MAPPING = 'mapping'

JSON_INDENT = 4


def _serialize_text(value):
    if isinstance(value, bytes):
        return value
    return value.encode('utf-8')


def _serialize_mapping(value):
    try:
        data = json.dumps(dict(value), indent=JSON_INDENT, sort_keys=True,
                          allow_nan=False)
    except (TypeError, ValueError) as e:
        raise exception.SerializationError(name='user data', reason=e)
    return data.encode('utf-8')


_SERIALIZERS = {
    TEXT: _serialize_text,
    MAPPING: _serialize_mapping,
}


class UserData(object):
    """User data value, tagged with its kind.

    A mapping is deep copied on construction, so later changes to the
    caller's object do not reach the drive. :attr:`value` is a read-only
    view of its top level only.

    Build one with :meth:`from_text`, :meth:`from_mapping` or
    :meth:`coerce` rather than calling the constructor directly.
    """

    __slots__ = ('_kind', '_value')

    def __init__(self, kind, value):
        if kind == TEXT:
            if not isinstance(value, (str, bytes)):
                raise exception.InvalidParameterValue(
                    err=_("Text user data must be str or bytes, got "
                          "%s.") % type(value).__name__)
        elif kind == MAPPING:
            if not isinstance(value, collections.abc.Mapping):
                raise exception.InvalidParameterValue(
                    err=_("Mapping user data must be a mapping, got "
                          "%s.") % type(value).__name__)
            value = types.MappingProxyType(copy.deepcopy(dict(value)))
        else:
            raise exception.InvalidParameterValue(
                err=_("Unknown user data kind %s.") % kind)
        self._kind = kind
        self._value = value

    @classmethod
    def from_text(cls, text):
        return cls(TEXT, text)

    @classmethod
    def from_mapping(cls, mapping):
        return cls(MAPPING, mapping)

    @classmethod
    def coerce(cls, value):
        """Wrap a raw str, bytes or mapping, pass UserData through.

        :param value: user data in any accepted shape.
        :returns: a :class:`UserData`.
        :raises: InvalidParameterValue for any other type.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, (str, bytes)):
            return cls.from_text(value)
        if isinstance(value, collections.abc.Mapping):
            return cls.from_mapping(value)
        raise exception.InvalidParameterValue(
            err=_("User data must be text or a mapping, got %s.") %
            type(value).__name__)

    @property
    def kind(self):
        return self._kind

    @property
    def value(self):
        return self._value

    def serialize(self):
        """Return the bytes written to the ``user_data`` file.

        Text comes back byte for byte. A mapping comes back as indented
        JSON with sorted keys.

        :raises: SerializationError if a mapping holds values JSON can not
            represent.
        """
        return _SERIALIZERS[self._kind](self._value)

    def __eq__(self, other):
        if not isinstance(other, UserData):
            return NotImplemented
        if self._kind != other._kind:
            return False
        if self._kind == MAPPING:
            return dict(self._value) == dict(other._value)
        return self._value == other._value

    __hash__ = None

    def __repr__(self):
        return '<UserData kind=%s>' % self._kind
