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

"""Fan-out of stanzas and connection events to registered listeners.

Every registry is protected by a lock and notified from a snapshot, so a
listener may add or remove listeners (itself included) while being
called. A listener raising an exception is logged and skipped.
"""

__docformat__ = "restructuredtext en"

import threading
import logging

from .collector import PacketCollector
from .filters import filter_matches
from .exceptions import InvalidArgumentError
from .settings import XMPPSettings

logger = logging.getLogger("xmppwire.dispatcher")

class Dispatcher(object):
    """Listener and collector registries of a single connection.

    :Ivariables:
        - `lock`: the lock protecting the registries
        - `_inbound`: (listener, filter) pairs for received stanzas
        - `_outbound`: (listener, filter) pairs for sent stanzas
        - `_collectors`: active packet collectors
        - `_connection_listeners`: connection state observers
        - `_closed`: `True` after `close_collectors`
    :Types:
        - `lock`: :std:`threading.RLock`
        - `_inbound`: `list` of `tuple`
        - `_outbound`: `list` of `tuple`
        - `_collectors`: `list` of `PacketCollector`
        - `_connection_listeners`: `list` of
          `xmppwire.interfaces.ConnectionListener`
    """
    def __init__(self, collector_queue_size = 65536):
        self.lock = threading.RLock()
        self.collector_queue_size = collector_queue_size
        self._inbound = []
        self._outbound = []
        self._collectors = []
        self._connection_listeners = []
        self._closed = False

    @staticmethod
    def _add(registry, listener, stanza_filter):
        """Add or replace a listener in a registry."""
        if listener is None:
            raise InvalidArgumentError("Listener must not be None")
        for i, (existing, _) in enumerate(registry):
            if existing == listener:
                registry[i] = (listener, stanza_filter)
                return
        registry.append((listener, stanza_filter))

    @staticmethod
    def _remove(registry, listener):
        """Remove a listener from a registry, if present."""
        registry[:] = [(lsnr, flt) for (lsnr, flt) in registry
                                                        if lsnr != listener]

    def add_listener(self, listener, stanza_filter = None):
        """Register a listener for received stanzas.

        :Parameters:
            - `listener`: the listener. Registering it again replaces the
              filter.
            - `stanza_filter`: the filter. `None` means: all stanzas.
        :Types:
            - `listener`: `xmppwire.interfaces.PacketListener` or a callable
            - `stanza_filter`: `xmppwire.filters.PacketFilter` or a callable
        """
        with self.lock:
            self._add(self._inbound, listener, stanza_filter)

    def remove_listener(self, listener):
        """Unregister a listener for received stanzas."""
        with self.lock:
            self._remove(self._inbound, listener)

    def add_writer_listener(self, listener, stanza_filter = None):
        """Register a listener for sent stanzas.

        Works like `add_listener`, but the listener is called from the
        writer thread after each stanza is written."""
        with self.lock:
            self._add(self._outbound, listener, stanza_filter)

    def remove_writer_listener(self, listener):
        """Unregister a listener for sent stanzas."""
        with self.lock:
            self._remove(self._outbound, listener)

    def create_collector(self, stanza_filter, max_size = None):
        """Create and register a new `PacketCollector`.

        A collector created after `close_collectors` is already cancelled.

        :Parameters:
            - `stanza_filter`: the filter
            - `max_size`: maximum number of buffered stanzas
        :Types:
            - `stanza_filter`: `xmppwire.filters.PacketFilter` or a callable
            - `max_size`: `int`

        :returntype: `PacketCollector`"""
        if max_size is None:
            max_size = self.collector_queue_size
        collector = PacketCollector(self, stanza_filter, max_size)
        with self.lock:
            if self._closed:
                # pylint: disable=W0212
                collector._close()
            else:
                self._collectors.append(collector)
        return collector

    def remove_collector(self, collector):
        """Unregister a collector. Use `PacketCollector.cancel` instead."""
        with self.lock:
            try:
                self._collectors.remove(collector)
            except ValueError:
                pass

    def close_collectors(self):
        """Cancel all the registered collectors and refuse new ones."""
        with self.lock:
            collectors = self._collectors
            self._collectors = []
            self._closed = True
        for collector in collectors:
            # pylint: disable=W0212
            collector._close()

    def dispatch_inbound(self, stanza):
        """Pass a received stanza to the collectors and then to the
        listeners."""
        with self.lock:
            collectors = list(self._collectors)
            listeners = list(self._inbound)
        for collector in collectors:
            collector.process_packet(stanza)
        self._notify(listeners, stanza)

    def dispatch_outbound(self, stanza):
        """Pass a sent stanza to the outbound listeners."""
        with self.lock:
            listeners = list(self._outbound)
        self._notify(listeners, stanza)

    @staticmethod
    def _notify(listeners, stanza):
        """Call every listener whose filter matches the stanza."""
        for listener, stanza_filter in listeners:
            try:
                if filter_matches(stanza_filter, stanza):
                    listener(stanza)
            except Exception: # pylint: disable=W0703
                logger.exception("Packet listener {0!r} failed:"
                                                        .format(listener))

    def add_connection_listener(self, listener):
        """Register a `xmppwire.interfaces.ConnectionListener`."""
        with self.lock:
            if listener not in self._connection_listeners:
                self._connection_listeners.append(listener)

    def remove_connection_listener(self, listener):
        """Unregister a `xmppwire.interfaces.ConnectionListener`."""
        with self.lock:
            if listener in self._connection_listeners:
                self._connection_listeners.remove(listener)

    def notify_closed(self):
        """Tell the connection listeners the connection was closed."""
        with self.lock:
            listeners = list(self._connection_listeners)
        for listener in listeners:
            try:
                listener.connection_closed()
            except Exception: # pylint: disable=W0703
                logger.exception("Connection listener {0!r} failed:"
                                                        .format(listener))

    def notify_closed_on_error(self, exc):
        """Tell the connection listeners the connection broke."""
        with self.lock:
            listeners = list(self._connection_listeners)
        for listener in listeners:
            try:
                listener.connection_closed_on_error(exc)
            except Exception: # pylint: disable=W0703
                logger.exception("Connection listener {0!r} failed:"
                                                        .format(listener))

class ConnectionEstablishedRegistry(object):
    """Process-wide set of listeners told about every new connection.

    The registry used by default is created once, by the
    `connection_established_listeners` setting factory, and lives for the
    whole process. Listeners are only added and removed explicitly."""
    def __init__(self):
        self._lock = threading.Lock()
        self._listeners = []

    def add(self, listener):
        """Add a listener.

        :Parameters:
            - `listener`: the listener
        :Types:
            - `listener`: `xmppwire.interfaces.ConnectionEstablishedListener`
              or a callable accepting the connection
        """
        if listener is None:
            raise InvalidArgumentError("Listener must not be None")
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove(self, listener):
        """Remove a listener, if registered."""
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def __len__(self):
        with self._lock:
            return len(self._listeners)

    def broadcast(self, connection):
        """Call every listener registered with the new connection."""
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(connection)
            except Exception: # pylint: disable=W0703
                logger.exception("Connection established listener {0!r}"
                                                " failed:".format(listener))

def _connection_established_listeners_factory(settings):
    """Create the process-wide `ConnectionEstablishedRegistry`."""
    # pylint: disable=W0613
    return ConnectionEstablishedRegistry()

XMPPSettings.add_setting("connection_established_listeners",
    type = ConnectionEstablishedRegistry,
    factory = _connection_established_listeners_factory, cache = True,
    doc = """The registry of listeners told about every new connection."""
    )

# vi: sts=4 et sw=4
