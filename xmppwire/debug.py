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

"""Diagnostic taps for connection traffic.

A `StreamDebugger` sees the raw bytes read from and written to the
connection socket (through the wrapped reader and writer), the stanzas
received and sent (through its listeners) and is told about the user
logged in. It must be transparent: the data passes through unchanged.

Debuggers are chosen by name from the `DEBUGGERS` registry with the
`debugger` setting (by default: the ``XMPPWIRE_DEBUGGER`` environment
variable) or created by a `debugger_factory` callable.
"""

__docformat__ = "restructuredtext en"

import os
import logging

from abc import ABCMeta, abstractmethod

from .settings import XMPPSettings

logger = logging.getLogger("xmppwire.debug")

class StreamDebugger(metaclass = ABCMeta):
    """Base class for diagnostic taps.

    :Ivariables:
        - `connection`: the connection being observed
    """
    def __init__(self, connection):
        self.connection = connection

    @abstractmethod
    def wrap_reader(self, reader):
        """Return a reader reporting the data read from `reader`.

        :Parameters:
            - `reader`: object with `read(size)` and `close()` methods
        """
        return reader

    @abstractmethod
    def wrap_writer(self, writer):
        """Return a writer reporting the data written to `writer`.

        :Parameters:
            - `writer`: object with `write(data)`, `flush()` and `close()`
              methods
        """
        return writer

    @property
    def reader_listener(self):
        """Listener to register for the received stanzas or `None`."""
        return None

    @property
    def writer_listener(self):
        """Listener to register for the sent stanzas or `None`."""
        return None

    def user_has_logged(self, user):
        """Called after a successful login.

        :Parameters:
            - `user`: the full address of the user logged in
        :Types:
            - `user`: `str`
        """
        pass

class _LoggingReader(object):
    """Reader wrapper logging the data read."""
    def __init__(self, reader, debug_logger):
        self._reader = reader
        self._logger = debug_logger

    def read(self, size):
        data = self._reader.read(size)
        self._logger.debug("RCV: %r", data)
        return data

    def close(self):
        self._reader.close()

class _LoggingWriter(object):
    """Writer wrapper logging the data written."""
    def __init__(self, writer, debug_logger):
        self._writer = writer
        self._logger = debug_logger

    def write(self, data):
        self._logger.debug("SENT: %r", data)
        self._writer.write(data)

    def flush(self):
        self._writer.flush()

    def close(self):
        self._writer.close()

class LoggingDebugger(StreamDebugger):
    """Debugger reporting all the traffic to the ``xmppwire.debug``
    logger."""
    def __init__(self, connection):
        StreamDebugger.__init__(self, connection)
        self._logger = logging.getLogger("xmppwire.debug.{0}".format(
                                                        connection.host))
        self._reader_listener = self._log_received
        self._writer_listener = self._log_sent

    def wrap_reader(self, reader):
        return _LoggingReader(reader, self._logger)

    def wrap_writer(self, writer):
        return _LoggingWriter(writer, self._logger)

    @property
    def reader_listener(self):
        return self._reader_listener

    @property
    def writer_listener(self):
        return self._writer_listener

    def _log_received(self, stanza):
        self._logger.debug("RCV PKT: %r", stanza)

    def _log_sent(self, stanza):
        self._logger.debug("SENT PKT: %r", stanza)

    def user_has_logged(self, user):
        self._logger.info("User logged in: {0} (connection id: {1})".format(
                                    user, self.connection.connection_id))

DEBUGGERS = {
        "logging": LoggingDebugger,
        }

def register_debugger(name, klass):
    """Make a debugger class selectable with the `debugger` setting.

    :Parameters:
        - `name`: the debugger name
        - `klass`: the debugger class: a `StreamDebugger` subclass
    """
    DEBUGGERS[name] = klass

def create_debugger(connection, settings):
    """Create the debugger configured for a connection.

    A debugger which cannot be created is disabled, not fatal for the
    connection.

    :Parameters:
        - `connection`: the connection
        - `settings`: the settings
    :Types:
        - `connection`: `xmppwire.connection.Connection`
        - `settings`: `XMPPSettings`

    :return: the debugger or `None`
    :returntype: `StreamDebugger`"""
    factory = settings["debugger_factory"]
    if factory is None:
        name = settings["debugger"]
        if not name:
            return None
        factory = DEBUGGERS.get(name)
        if factory is None:
            logger.warning("Unknown debugger: {0!r}, debugging disabled"
                                                                .format(name))
            return None
    try:
        return factory(connection)
    except Exception: # pylint: disable=W0703
        logger.exception("Could not create the debugger, debugging disabled:")
        return None

def _debugger_factory(settings):
    """Default `debugger`: from the XMPPWIRE_DEBUGGER environment
    variable."""
    # pylint: disable=W0613
    return os.environ.get("XMPPWIRE_DEBUGGER") or None

XMPPSettings.add_setting("debugger", type = str, factory = _debugger_factory,
    doc = """Name of the debugger (diagnostic tap) attached to new
connections. `None` disables debugging."""
    )
XMPPSettings.add_setting("debugger_factory", type = "callable",
    doc = """Callable creating a debugger for a connection
(``factory(connection)``). Overrides the `debugger` setting."""
    )

# vi: sts=4 et sw=4
