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

"""Packet collectors: synchronous rendezvous with stanzas received
asynchronously by a connection.

A collector is created for a filter, buffers every received stanza the
filter accepts and lets a caller thread wait for the next one::

    collector = connection.create_packet_collector(StanzaIDFilter(req_id))
    try:
        connection.send(request)
        response = collector.next_result(timeout)
    finally:
        collector.cancel()
"""

__docformat__ = "restructuredtext en"

import threading
import logging
import time

from collections import deque

from .filters import filter_matches
from .interfaces import PacketListener

logger = logging.getLogger("xmppwire.collector")

class PacketCollector(PacketListener):
    """Filter-scoped buffer of received stanzas.

    :Ivariables:
        - `dispatcher`: the dispatcher the collector is registered with
        - `filter`: the stanza filter
        - `_queue`: stanzas received and not taken yet, the oldest dropped
          when the queue is full
        - `_cond`: condition variable signalled on new stanza or
          cancellation
        - `_cancelled`: `True` after `cancel` or the connection teardown
    :Types:
        - `dispatcher`: `xmppwire.dispatcher.Dispatcher`
        - `filter`: `xmppwire.filters.PacketFilter` or a callable
        - `_queue`: `collections.deque`
        - `_cond`: :std:`threading.Condition`
        - `_cancelled`: `bool`
    """
    def __init__(self, dispatcher, stanza_filter, max_size = 65536):
        self.dispatcher = dispatcher
        self.filter = stanza_filter
        self._queue = deque(maxlen = max_size)
        self._cond = threading.Condition(threading.Lock())
        self._cancelled = False

    @property
    def cancelled(self):
        """`True` when the collector no longer collects stanzas."""
        with self._cond:
            return self._cancelled

    def process_packet(self, stanza):
        """Store the stanza if it matches the filter.

        :Parameters:
            - `stanza`: received stanza
        :Types:
            - `stanza`: `xmppwire.stanza.Stanza`

        :return: `True` if the stanza was stored
        :returntype: `bool`"""
        if not filter_matches(self.filter, stanza):
            return False
        with self._cond:
            if self._cancelled:
                return False
            if len(self._queue) == self._queue.maxlen:
                logger.debug("Collector queue full, dropping the oldest"
                                                                " stanza")
            self._queue.append(stanza)
            self._cond.notify()
        return True

    def poll_result(self):
        """Return the next stanza collected, without waiting.

        :return: the stanza or `None` when nothing is available
        :returntype: `xmppwire.stanza.Stanza`"""
        with self._cond:
            if self._queue:
                return self._queue.popleft()
            return None

    def next_result(self, timeout = None):
        """Wait for the next stanza collected.

        :Parameters:
            - `timeout`: maximum time to wait, in seconds. `None` means:
              until a stanza arrives or the collector is cancelled.
        :Types:
            - `timeout`: `float`

        :return: the stanza, or `None` on timeout or after the collector
            was cancelled
        :returntype: `xmppwire.stanza.Stanza`"""
        if timeout is not None:
            deadline = time.monotonic() + timeout
        with self._cond:
            while not self._queue and not self._cancelled:
                if timeout is None:
                    self._cond.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return None
                self._cond.wait(remaining)
            if self._queue:
                return self._queue.popleft()
            return None

    def cancel(self):
        """Stop collecting. Drop the stanzas collected and wake up
        every thread waiting in `next_result`.

        Calling it more than once is harmless."""
        if self._close():
            self.dispatcher.remove_collector(self)

    def _close(self):
        """Do everything `cancel` does except unregistering from the
        dispatcher.

        :return: `True` if the collector was active
        :returntype: `bool`"""
        with self._cond:
            if self._cancelled:
                return False
            self._cancelled = True
            self._queue.clear()
            self._cond.notify_all()
        return True

    def __repr__(self):
        return "<PacketCollector filter={0!r}>".format(self.filter)

# vi: sts=4 et sw=4
