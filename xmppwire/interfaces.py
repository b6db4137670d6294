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

"""Abstract base classes for the objects plugged into a connection.

Wherever a listener or a callback is expected a plain callable is accepted
as well: `PacketListener.__call__` just delegates to `process_packet`.
"""

__docformat__ = "restructuredtext en"

import logging

from abc import ABCMeta, abstractmethod

logger = logging.getLogger("xmppwire.interfaces")

class PacketListener(metaclass = ABCMeta):
    """Receiver of stanzas sent or received over a connection.

    Called from the connection reader (inbound) or writer (outbound) thread,
    so it should not block."""
    # pylint: disable-msg=R0903
    @abstractmethod
    def process_packet(self, stanza):
        """Process a stanza.

        :Parameters:
            - `stanza`: the stanza
        :Types:
            - `stanza`: `xmppwire.stanza.Stanza`
        """
        raise NotImplementedError

    def __call__(self, stanza):
        self.process_packet(stanza)

class ConnectionListener(metaclass = ABCMeta):
    """Observer of a connection end."""
    @abstractmethod
    def connection_closed(self):
        """Called when the connection was closed by `Connection.close`."""
        raise NotImplementedError

    @abstractmethod
    def connection_closed_on_error(self, exc):
        """Called when the connection broke.

        :Parameters:
            - `exc`: the failure
        :Types:
            - `exc`: `Exception`
        """
        raise NotImplementedError

class ConnectionEstablishedListener(metaclass = ABCMeta):
    """Observer of every new connection in the process."""
    # pylint: disable-msg=R0903
    @abstractmethod
    def connection_established(self, connection):
        """Called when a new connection has its stream started.

        :Parameters:
            - `connection`: the new connection
        :Types:
            - `connection`: `xmppwire.connection.Connection`
        """
        raise NotImplementedError

    def __call__(self, connection):
        self.connection_established(connection)

class ParsingErrorCallback(metaclass = ABCMeta):
    """Handler of received elements which could not be decoded as
    stanzas.

    Raising an exception from the handler makes the failure fatal for the
    connection."""
    # pylint: disable-msg=R0903
    @abstractmethod
    def stanza_parsing_error(self, exc, element):
        """Handle the parse failure.

        :Parameters:
            - `exc`: the error
            - `element`: the element which could not be decoded
        :Types:
            - `exc`: `xmppwire.exceptions.StreamParseError`
            - `element`: :etree:`ElementTree.Element`
        """
        raise NotImplementedError

    def __call__(self, exc, element):
        self.stanza_parsing_error(exc, element)

class LoggingParsingErrorCallback(ParsingErrorCallback):
    """Default `ParsingErrorCallback`: log the failure and go on."""
    # pylint: disable-msg=R0903
    def stanza_parsing_error(self, exc, element):
        logger.warning("Could not decode a received element: {0}".format(exc))
        exc.log_ignored()

# vi: sts=4 et sw=4
