#
# (C) Copyright 2011 Jacek Konieczny <jajcus@jajcus.net>
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU Lesser General Public License Version
# 2.1 as published by the Free Software Foundation.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Lesser General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public
# License along with this program; if not, write to the Free Software
# Foundation, Inc., 675 Mass Ave, Cambridge, MA 02139, USA.
#
# pylint: disable-msg=W0201

"""General settings container.

The behaviour of the connection may be controlled by a number of parameters,
like the server port, reply timeouts, the socket factory or the diagnostic
tap. Those need to be passed from one component to other and passing it
directly via function parameters would only mess up the API.

Instead an `XMPPSettings` object will be used to pass all the optional
parameters. It will also provide the defaults.

This is also a mechanism for dependency injection, allowing different
components share the same objects, like the DNS resolver implementation or
the process-wide registry of connection-established listeners.
"""

__docformat__ = "restructuredtext en"

from collections.abc import MutableMapping

class _SettingDefinition(object):
    """Definition of a setting: its type, default and documentation."""
    # pylint: disable=R0903,R0913
    def __init__(self, name, type = str, default = None, factory = None,
                        cache = False, default_d = None, doc = None,
                        validator = None, basic = False):
        # pylint: disable=W0622
        self.name = name
        self.type = type
        self.default = default
        self.factory = factory
        self.cache = cache
        self.default_d = default_d
        self.doc = doc
        self.basic = basic
        self.validator = validator

class XMPPSettings(MutableMapping):
    """Container for various parameters used all over xmppwire.

    It can be used like a regular dictionary, but will provide reasonable
    defaults for parameters which are not explicitely set.

    :CVariables:
        - `_defs`: registered setting definitions.
    :Ivariables:
        - `_settings`: current values of the parameters explicitely set.
    """
    _defs = {}
    def __init__(self, data = None):
        """Create settings, optionally initialized with `data`.

        :Parameters:
            - `data`: initial data
        :Types:
            - `data`: any mapping, including `XMPPSettings`
        """
        if data is None:
            self._settings = {}
        else:
            self._settings = dict(data)
    def __len__(self):
        """Number of parameters set."""
        return len(self._settings)
    def __iter__(self):
        """Iterate over the parameter names."""
        return iter(list(self._settings))
    def __contains__(self, key):
        """Check if a parameter is set.

        :Parameters:
            - `key`: the parameter name
        :Types:
            - `key`: `str`
        """
        return key in self._settings
    def __getitem__(self, key):
        """Get a parameter value. Return the default if no value is set
        and the default is provided by xmppwire.

        :Parameters:
            - `key`: the parameter name
        :Types:
            - `key`: `str`
        """
        return self.get(key, required = True)
    def __setitem__(self, key, value):
        """Set a parameter value.

        The value is checked with the setting validator, if one is
        registered.

        :Parameters:
            - `key`: the parameter name
            - `value`: the new value
        :Types:
            - `key`: `str`
        """
        setting_def = self._defs.get(key)
        if setting_def is not None and setting_def.validator is not None:
            value = setting_def.validator(value)
        self._settings[str(key)] = value
    def __delitem__(self, key):
        """Unset a parameter value.

        :Parameters:
            - `key`: the parameter name
        :Types:
            - `key`: `str`
        """
        del self._settings[key]
    def get(self, key, local_default = None, required = False):
        """Get a parameter value.

        If parameter is not set, return `local_default` if it is not `None`
        or the xmppwire global default otherwise.

        :Raise `KeyError`: if parameter has no value and no global default

        :Return: parameter value
        """
        # pylint: disable-msg=W0221
        if key in self._settings:
            return self._settings[key]
        if local_default is not None:
            return local_default
        if key in self._defs:
            setting_def = self._defs[key]
            if setting_def.default is not None:
                return setting_def.default
            factory = setting_def.factory
            if factory is None:
                return None
            value = factory(self)
            if setting_def.cache is True:
                setting_def.default = value
            return value
        if required:
            raise KeyError(key)
        return local_default
    def keys(self):
        """Return names of parameters set.

        :Returntype: - `list` of `str`
        """
        return list(self._settings.keys())
    def items(self):
        """Return names and values of parameters set.

        :Returntype: - `list` of tuples
        """
        return list(self._settings.items())

    @classmethod
    def add_setting(cls, name, **kwargs):
        """Register a new setting.

        The same setting may be registered more than once (e.g. when a module
        is reloaded), but only with the same type, default and factory.

        :Parameters:
            - `name`: setting name
            - `kwargs`: `_SettingDefinition` arguments
        """
        setting_def = _SettingDefinition(name, **kwargs)
        if name not in cls._defs:
            cls._defs[name] = setting_def
            return
        duplicate = cls._defs[name]
        if duplicate.type != setting_def.type:
            raise ValueError("Setting duplicate, with a different type")
        if duplicate.default != setting_def.default:
            raise ValueError("Setting duplicate, with a different default")
        if duplicate.factory != setting_def.factory:
            raise ValueError("Setting duplicate, with a different factory")

    @staticmethod
    def validate_positive_int(value):
        """Check if `value` is a positive integer."""
        value = int(value)
        if value <= 0:
            raise ValueError("Positive number required")
        return value

    @staticmethod
    def validate_positive_float(value):
        """Check if `value` is a positive number."""
        value = float(value)
        if value <= 0:
            raise ValueError("Positive number required")
        return value

    @staticmethod
    def get_int_range_validator(start, stop):
        """Return a validator checking if the value is an integer in the
        <`start`, `stop`) range."""
        def validate_int_range(value):
            """Integer range validator."""
            value = int(value)
            if value >= start and value < stop:
                return value
            raise ValueError("Not in <{0},{1}) range".format(start, stop))
        return validate_int_range

XMPPSettings.add_setting("c2s_port", default = 5222, basic = True,
    type = int, validator = XMPPSettings.get_int_range_validator(1, 65536),
    doc = """Port number for client to server connections."""
    )

XMPPSettings.add_setting("packet_reply_timeout", type = float, default = 5.0,
    validator = XMPPSettings.validate_positive_float, basic = True,
    doc = """Time in seconds to wait for a reply to a request sent
(authentication rounds, the initial roster)."""
    )

def _stream_init_timeout_factory(settings):
    """Default `stream_init_timeout`: the same as `packet_reply_timeout`."""
    return settings["packet_reply_timeout"]

XMPPSettings.add_setting("stream_init_timeout", type = float,
    factory = _stream_init_timeout_factory,
    validator = XMPPSettings.validate_positive_float,
    doc = """Time in seconds to wait for the server stream head."""
    )

XMPPSettings.add_setting("shutdown_timeout", type = float, default = 1.0,
    validator = XMPPSettings.validate_positive_float,
    doc = """Maximum time in seconds to wait for the reader and writer
threads to exit when a connection is closed."""
    )

XMPPSettings.add_setting("default_resource", type = str, default = "xmppwire",
    doc = """Resource used by `Connection.login` when none is given."""
    )

XMPPSettings.add_setting("collector_queue_size", type = int, default = 65536,
    validator = XMPPSettings.validate_positive_int,
    doc = """Maximum number of stanzas buffered by a single packet collector.
When the limit is reached the oldest stanza is dropped."""
    )

XMPPSettings.add_setting("extra_ns_prefixes", type = dict, default = {},
    doc = """Extra namespace prefix declarations to use at the stream root
element."""
    )

# vi: sts=4 et sw=4
