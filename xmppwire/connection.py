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

"""XMPP client connection.

Normative reference:
  - `RFC 3920 <http://www.ietf.org/rfc/rfc3920.txt>`__
  - `XEP-0078 <http://xmpp.org/extensions/xep-0078.html>`__

A `Connection` is connected when created: the socket is open and the XML
stream started, or an exception is raised and nothing is left allocated::

    with Connection("example.org") as connection:
        connection.login("user", "secret")
        roster = connection.get_roster()
"""

__docformat__ = "restructuredtext en"

import socket
import threading
import logging

from .settings import XMPPSettings
from .dispatcher import Dispatcher
from .transport import TCPTransport, SocketReader, SocketWriter
from .auth import AuthNegotiator
from .roster import Roster
from .presence import Presence
from .interfaces import LoggingParsingErrorCallback
from .debug import create_debugger
from .exceptions import IllegalStateError, InvalidArgumentError
from .exceptions import Error, TransportIOError, StreamInitError

# register the resolver settings
from . import resolver # pylint: disable=W0611

logger = logging.getLogger("xmppwire.connection")

IDLE = "idle"
SOCKET_OPEN = "socket-open"
STREAM_READY = "stream-ready"
AUTHENTICATED = "authenticated"
CLOSED = "closed"
ERRORED = "errored"

class Connection(object):
    """Client connection to an XMPP server.

    :Ivariables:
        - `host`: the server host name
        - `port`: the server port
        - `settings`: the settings
        - `socket_factory`: callable creating the socket
        - `dispatcher`: the listener and collector registries
        - `transport`: the stream transport, while connected
        - `debugger`: the diagnostic tap, if any
        - `lock`: the lock protecting the connection state
        - `_auth_lock`: serializes the authentication
        - `_state`: the lifecycle state
    :Types:
        - `host`: `str`
        - `port`: `int`
        - `settings`: `XMPPSettings`
        - `dispatcher`: `xmppwire.dispatcher.Dispatcher`
        - `transport`: `xmppwire.transport.TCPTransport`
        - `debugger`: `xmppwire.debug.StreamDebugger`
        - `lock`: :std:`threading.RLock`
        - `_auth_lock`: :std:`threading.Lock`
        - `_state`: `str`
    """
    # pylint: disable=R0902
    def __init__(self, host, port = None, settings = None,
                                                    socket_factory = None):
        """Connect to an XMPP server.

        :Parameters:
            - `host`: the server host name (also the XMPP domain)
            - `port`: the server port, `c2s_port` setting by default
            - `settings`: the settings
            - `socket_factory`: callable creating a connected socket:
              ``socket_factory(host, port, settings)``, the `socket_factory`
              setting by default
        :Types:
            - `host`: `str`
            - `port`: `int`
            - `settings`: `XMPPSettings`

        :raise HostUnresolvableError: when the host name cannot be resolved
        :raise TransportIOError: when the connection cannot be made
        :raise StreamInitError: when the XML stream could not be started"""
        if not host:
            raise InvalidArgumentError("Server host name required")
        self.settings = settings if settings else XMPPSettings()
        self.host = host
        self.port = port if port is not None else self.settings["c2s_port"]
        if socket_factory is None:
            socket_factory = self.settings["socket_factory"]
        self.socket_factory = socket_factory
        self.lock = threading.RLock()
        self._auth_lock = threading.Lock()
        self.dispatcher = Dispatcher(self.settings["collector_queue_size"])
        self.transport = None
        self.debugger = None
        self._socket = None
        self._reader = None
        self._writer = None
        self._connection_id = None
        self._user = None
        self._anonymous = False
        self._roster = None
        self._parsing_error_callback = self.settings["parsing_error_callback"]
        self._state = IDLE
        self._connect()

    def __repr__(self):
        return "<Connection {0}:{1} {2}>".format(self.host, self.port,
                                                                self._state)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    @property
    def state(self):
        """The lifecycle state: "idle", "socket-open", "stream-ready",
        "authenticated", "closed" or "errored"."""
        with self.lock:
            return self._state

    @property
    def connection_id(self):
        """The stream id assigned by the server, `None` when not
        connected."""
        with self.lock:
            return self._connection_id

    @property
    def user(self):
        """The full address of the user logged in or `None`."""
        with self.lock:
            return self._user

    @property
    def connected(self):
        """`True` while the stream is up."""
        with self.lock:
            return self._state in (STREAM_READY, AUTHENTICATED)

    @property
    def authenticated(self):
        """`True` after a successful login, until the connection ends."""
        with self.lock:
            return self._state == AUTHENTICATED

    @property
    def anonymous(self):
        """`True` when logged in anonymously."""
        with self.lock:
            return self._state == AUTHENTICATED and self._anonymous

    @property
    def is_secure(self):
        """Always `False`: the stream is not encrypted."""
        # pylint: disable=R0201
        return False

    def _connect(self):
        """Open the socket and start the stream.

        Everything allocated is released when this fails."""
        try:
            sock = self.socket_factory(self.host, self.port, self.settings)
        except Error:
            self._state = ERRORED
            raise
        except socket.error as err:
            self._state = ERRORED
            raise TransportIOError("Could not connect to {0}:{1}: {2}"
                                            .format(self.host, self.port, err))
        except Exception:
            self._state = ERRORED
            raise
        with self.lock:
            self._socket = sock
            self._state = SOCKET_OPEN
        try:
            self._init_stream()
        except Exception:
            logger.debug("Stream initialization failed, releasing resources")
            with self.lock:
                self._state = ERRORED
            self._release()
            raise
        logger.debug("Connected to {0}:{1}, stream id: {2!r}".format(
                                self.host, self.port, self._connection_id))
        self.settings["connection_established_listeners"].broadcast(self)

    def _init_stream(self):
        """Wrap the socket, attach the debugger and start the transport."""
        reader = SocketReader(self._socket)
        writer = SocketWriter(self._socket)
        self._reader, self._writer = reader, writer
        debugger = create_debugger(self, self.settings)
        if debugger is not None:
            try:
                reader = debugger.wrap_reader(reader)
                writer = debugger.wrap_writer(writer)
            except Exception: # pylint: disable=W0703
                logger.exception("Debugger failed, debugging disabled:")
                reader, writer = self._reader, self._writer
            else:
                self.debugger = debugger
                if debugger.reader_listener is not None:
                    self.dispatcher.add_listener(debugger.reader_listener)
                if debugger.writer_listener is not None:
                    self.dispatcher.add_writer_listener(
                                                    debugger.writer_listener)
        self.transport = TCPTransport(reader, writer, self.dispatcher,
                        self.settings, failure_handler = self._handle_failure,
                        parsing_error_callback = self._parsing_error)
        stream_id = self.transport.startup(self.host)
        with self.lock:
            if not self.transport.running:
                raise StreamInitError("Stream closed during initialization")
            self._connection_id = stream_id
            self._state = STREAM_READY

    def _release(self):
        """Release every resource of the connection.

        Each step is independent: a failure is logged and the next step
        is done anyway."""
        with self.lock:
            transport, self.transport = self.transport, None
            reader, self._reader = self._reader, None
            writer, self._writer = self._writer, None
            sock, self._socket = self._socket, None
            self._user = None
            self._roster = None
        if transport is not None:
            try:
                transport.shutdown()
            except Exception: # pylint: disable=W0703
                logger.debug("Transport shutdown failed:", exc_info = True)
        for stream in (reader, writer):
            if stream is None:
                continue
            try:
                stream.close()
            except Exception: # pylint: disable=W0703
                logger.debug("Stream close failed:", exc_info = True)
        if sock is not None:
            try:
                sock.close()
            except Exception: # pylint: disable=W0703
                logger.debug("Socket close failed:", exc_info = True)
        self.dispatcher.close_collectors()

    def _handle_failure(self, exc):
        """Handle a transport failure (called from a transport thread)."""
        with self.lock:
            if self._state not in (STREAM_READY, AUTHENTICATED):
                return
            self._state = ERRORED
        logger.warning("Connection to {0} failed: {1}".format(self.host, exc))
        self._release()
        self.dispatcher.notify_closed_on_error(exc)

    def _parsing_error(self, exc, element):
        """Pass a stanza parse failure to the current callback."""
        with self.lock:
            callback = self._parsing_error_callback
        if callback is not None:
            callback(exc, element)
        else:
            exc.log_ignored()

    def set_parsing_error_callback(self, callback):
        """Set the handler of received elements which could not be decoded.

        :Parameters:
            - `callback`: the handler or `None` to just ignore such
              elements. An exception raised by the handler breaks the
              connection.
        :Types:
            - `callback`: `xmppwire.interfaces.ParsingErrorCallback` or a
              callable accepting the error and the element
        """
        with self.lock:
            self._parsing_error_callback = callback

    def login(self, username, password, resource = None,
                                                    send_presence = True):
        """Log in to the server using the legacy (non-SASL) authentication.

        The user name is stripped and lower-cased. The password digest is
        used when the server supports it.

        :Parameters:
            - `username`: the user name
            - `password`: the password
            - `resource`: the resource, the `default_resource` setting
              by default
            - `send_presence`: if `True` the initial available presence is
              sent after the login
        :Types:
            - `username`: `str`
            - `password`: `str`
            - `resource`: `str`
            - `send_presence`: `bool`

        :return: the full address of the user
        :returntype: `str`
        :raise IllegalStateError: if not connected or already logged in
        :raise NoResponseError: when the server does not respond
        :raise AuthenticationFailedError: when the server does not answer
            the authentication request
        :raise ProtocolError: when the server rejects the request
        :raise UnsupportedMechanismError: when neither the digest nor the
            plain text password authentication is available"""
        if username is None or password is None:
            raise InvalidArgumentError("User name and password required")
        with self._auth_lock:
            self._check_can_login()
            username = username.lower().strip()
            if resource is None:
                resource = self.settings["default_resource"]
            user = AuthNegotiator(self).login(username, password, resource)
            roster = Roster(self)
            try:
                roster.reload()
                if send_presence:
                    self.send(Presence())
                self._set_authenticated(user, roster, False)
            except Exception:
                roster.detach()
                raise
        return user

    def login_anonymously(self):
        """Log in to the server anonymously.

        The initial available presence is always sent and there is no
        roster.

        :return: the address assigned by the server
        :returntype: `str`
        :raise IllegalStateError: if not connected or already logged in
        :raise NoResponseError: when the server does not respond
        :raise ProtocolError: when the server rejects the request"""
        with self._auth_lock:
            self._check_can_login()
            user = AuthNegotiator(self).login_anonymously()
            self.send(Presence())
            self._set_authenticated(user, None, True)
        return user

    def _check_can_login(self):
        """Raise `IllegalStateError` unless the stream is ready for
        authentication."""
        with self.lock:
            if self._state == AUTHENTICATED:
                raise IllegalStateError("Already logged in to server.")
            if self._state != STREAM_READY:
                raise IllegalStateError("Not connected to server.")

    def _set_authenticated(self, user, roster, anonymous):
        """Switch to the authenticated state after a successful login."""
        with self.lock:
            if self._state != STREAM_READY:
                raise IllegalStateError("Connection closed during login.")
            self._user = user
            self._roster = roster
            self._anonymous = anonymous
            self._state = AUTHENTICATED
            debugger = self.debugger
        logger.debug("Logged in as {0}".format(user))
        if debugger is not None:
            try:
                debugger.user_has_logged(user)
            except Exception: # pylint: disable=W0703
                logger.exception("Debugger failed:")

    def get_roster(self):
        """Return the roster.

        Waits, up to `packet_reply_timeout` seconds, until the roster is
        received from the server.

        :return: the roster or `None` when not logged in or logged in
            anonymously
        :returntype: `xmppwire.roster.Roster`"""
        with self.lock:
            roster = self._roster
        if roster is None:
            return None
        if not roster.wait_initialized(self.settings["packet_reply_timeout"]):
            logger.debug("Roster not received in time")
        return roster

    def send(self, stanza):
        """Send a stanza.

        :Parameters:
            - `stanza`: the stanza
        :Types:
            - `stanza`: `xmppwire.stanza.Stanza`

        :raise InvalidArgumentError: if `stanza` is `None`
        :raise IllegalStateError: if not connected"""
        if stanza is None:
            raise InvalidArgumentError("Stanza is None.")
        with self.lock:
            if self._state not in (STREAM_READY, AUTHENTICATED):
                raise IllegalStateError("Not connected to server.")
            transport = self.transport
        transport.send(stanza)

    send_packet = send

    def create_packet_collector(self, stanza_filter):
        """Create a collector of the received stanzas matching a filter.

        :Parameters:
            - `stanza_filter`: the filter
        :Types:
            - `stanza_filter`: `xmppwire.filters.PacketFilter` or a callable

        :returntype: `xmppwire.collector.PacketCollector`"""
        return self.dispatcher.create_collector(stanza_filter)

    def add_packet_listener(self, listener, stanza_filter = None):
        """Register a listener for the received stanzas.

        :Parameters:
            - `listener`: the listener
            - `stanza_filter`: the filter, `None` for all stanzas
        :Types:
            - `listener`: `xmppwire.interfaces.PacketListener` or a callable
            - `stanza_filter`: `xmppwire.filters.PacketFilter` or a callable
        """
        self.dispatcher.add_listener(listener, stanza_filter)

    def remove_packet_listener(self, listener):
        """Unregister a listener for the received stanzas."""
        self.dispatcher.remove_listener(listener)

    def add_packet_writer_listener(self, listener, stanza_filter = None):
        """Register a listener for the stanzas sent. It is called after
        the stanza is written."""
        self.dispatcher.add_writer_listener(listener, stanza_filter)

    def remove_packet_writer_listener(self, listener):
        """Unregister a listener for the stanzas sent."""
        self.dispatcher.remove_writer_listener(listener)

    def add_connection_listener(self, listener):
        """Register a `xmppwire.interfaces.ConnectionListener`."""
        self.dispatcher.add_connection_listener(listener)

    def remove_connection_listener(self, listener):
        """Unregister a `xmppwire.interfaces.ConnectionListener`."""
        self.dispatcher.remove_connection_listener(listener)

    @staticmethod
    def add_connection_established_listener(listener, settings = None):
        """Register a listener told about every new connection.

        :Parameters:
            - `listener`: the listener
            - `settings`: settings providing the registry, the process-wide
              one is used by default
        :Types:
            - `listener`: `xmppwire.interfaces.ConnectionEstablishedListener`
              or a callable accepting the connection
            - `settings`: `XMPPSettings`
        """
        if settings is None:
            settings = XMPPSettings()
        settings["connection_established_listeners"].add(listener)

    @staticmethod
    def remove_connection_established_listener(listener, settings = None):
        """Unregister a listener registered with
        `add_connection_established_listener`."""
        if settings is None:
            settings = XMPPSettings()
        settings["connection_established_listeners"].remove(listener)

    def close(self):
        """Close the connection.

        An unavailable presence is sent, the stream is closed and all
        resources released. Threads waiting on packet collectors are woken
        up. A closed connection cannot be reused.

        Never raises an exception."""
        with self.lock:
            state = self._state
            if state in (CLOSED, ERRORED):
                return
            self._state = CLOSED
            self._anonymous = False
            transport = self.transport
        logger.debug("Closing connection to {0}".format(self.host))
        if transport is not None and state in (STREAM_READY, AUTHENTICATED):
            try:
                transport.send(Presence(stanza_type = "unavailable"))
            except Exception: # pylint: disable=W0703
                logger.debug("Could not send unavailable presence:",
                                                            exc_info = True)
        self._release()
        self.dispatcher.notify_closed()

def _parsing_error_callback_factory(settings):
    """Create the default parsing error callback."""
    # pylint: disable=W0613
    return LoggingParsingErrorCallback()

XMPPSettings.add_setting("parsing_error_callback", type = "callable",
    factory = _parsing_error_callback_factory,
    doc = """Default handler of the received elements which cannot be
decoded as stanzas."""
    )

# vi: sts=4 et sw=4
