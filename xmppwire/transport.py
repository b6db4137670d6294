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

"""XMPP stream transport over a TCP socket.

`TCPTransport` runs two threads per connection: the writer sends the
queued stanzas in submission order, the reader decodes the incoming stream
and passes the stanzas to the dispatcher.
"""

__docformat__ = "restructuredtext en"

import socket
import threading
import logging
import queue

from .codec import StreamCodec, StreamHead, StreamEnd
from .stanza import Stanza
from .settings import XMPPSettings
from .exceptions import TransportIOError, StreamInitError
from .exceptions import IllegalStateError, FatalStreamError, StreamParseError

logger = logging.getLogger("xmppwire.transport")

READ_SIZE = 4096

class SocketReader(object):
    """Reading half of a connected socket."""
    def __init__(self, sock):
        self._socket = sock

    def read(self, size):
        """Read up to `size` bytes. Return empty string on end of input."""
        return self._socket.recv(size)

    def close(self):
        """Stop reading. Wakes up a thread blocked in `read`."""
        self._socket.shutdown(socket.SHUT_RD)

class SocketWriter(object):
    """Writing half of a connected socket."""
    def __init__(self, sock):
        self._socket = sock

    def write(self, data):
        """Write all the `data`."""
        self._socket.sendall(data)

    def flush(self):
        """Nothing is buffered."""
        pass

    def close(self):
        """Stop writing (send TCP FIN)."""
        self._socket.shutdown(socket.SHUT_WR)

_STOP = object()
_TAIL = object()

class TCPTransport(object):
    """XMPP stream over a pair of reader and writer objects.

    :Ivariables:
        - `reader`: source of the incoming data
        - `writer`: sink of the outgoing data
        - `dispatcher`: receives the decoded stanzas and is told about the
          stanzas sent
        - `settings`: the settings
        - `codec`: stream encoder and decoder
        - `failure_handler`: called with the exception when the established
          stream breaks
        - `parsing_error_callback`: called when a received element cannot be
          decoded
        - `lock`: the lock protecting the transport state
        - `_queue`: the outgoing stanza queue
        - `_head`: the stream head received
        - `_failure`: the error which stopped the transport
    :Types:
        - `dispatcher`: `xmppwire.dispatcher.Dispatcher`
        - `settings`: `XMPPSettings`
        - `codec`: `StreamCodec`
        - `lock`: :std:`threading.RLock`
        - `_queue`: :std:`queue.Queue`
        - `_head`: `StreamHead`
        - `_failure`: `Exception`
    """
    # pylint: disable=R0902,R0913
    def __init__(self, reader, writer, dispatcher, settings = None,
                        codec = None, failure_handler = None,
                        parsing_error_callback = None):
        self.reader = reader
        self.writer = writer
        self.dispatcher = dispatcher
        self.settings = settings if settings else XMPPSettings()
        self.codec = codec if codec else StreamCodec(self.settings)
        self.failure_handler = failure_handler
        self.parsing_error_callback = parsing_error_callback
        self.lock = threading.RLock()
        self._cond = threading.Condition(self.lock)
        self._queue = queue.Queue()
        self._reader_thread = None
        self._writer_thread = None
        self._head = None
        self._failure = None
        self._started = False
        self._established = False
        self._running = False
        self._stopping = False

    @property
    def stream_id(self):
        """The stream id assigned by the server or `None`."""
        with self.lock:
            if self._head is None:
                return None
            return self._head.stream_id

    @property
    def running(self):
        """`True` while stanzas can be sent."""
        with self.lock:
            return self._running

    def startup(self, stream_to):
        """Start the stream: send the stream head, start the reader and
        writer threads and wait for the server stream head.

        On failure the transport is fully stopped before the exception is
        raised.

        :Parameters:
            - `stream_to`: the server domain
        :Types:
            - `stream_to`: `str`

        :return: the stream id
        :raise TransportIOError: on I/O error
        :raise StreamInitError: when the stream could not be started"""
        with self.lock:
            if self._started:
                raise IllegalStateError("Transport already started")
            self._started = True
        try:
            self._write(self.codec.encode_head(stream_to))
            self._reader_thread = threading.Thread(target = self._reader_run,
                                        name = "xmppwire reader")
            self._reader_thread.daemon = True
            self._writer_thread = threading.Thread(target = self._writer_run,
                                        name = "xmppwire writer")
            self._writer_thread.daemon = True
            self._reader_thread.start()
            self._writer_thread.start()
            stream_id = self._wait_for_head()
        except Exception:
            self.shutdown()
            raise
        return stream_id

    def _wait_for_head(self):
        """Wait for the server stream head.

        :return: the stream id"""
        timeout = self.settings["stream_init_timeout"]
        with self._cond:
            self._cond.wait_for(lambda: self._head is not None
                                    or self._failure is not None, timeout)
            if self._failure is not None:
                failure = self._failure
                if isinstance(failure, TransportIOError):
                    raise failure
                raise StreamInitError("Stream start failed: {0}"
                                                        .format(failure))
            if self._head is None:
                raise StreamInitError("No stream head received in {0} s"
                                                        .format(timeout))
            self._established = True
            self._running = True
            return self._head.stream_id

    def send(self, stanza):
        """Queue a stanza for sending.

        :Parameters:
            - `stanza`: the stanza
        :Types:
            - `stanza`: `Stanza`

        :raise IllegalStateError: when the transport is not running"""
        with self.lock:
            if not self._running:
                raise IllegalStateError("Transport not running")
            self._queue.put(stanza)

    def shutdown(self):
        """Stop the transport.

        The stream end tag is sent after any stanza already queued (unless
        the stream is broken), then reading is stopped and both threads
        are joined, waiting at most `shutdown_timeout` seconds for each.

        Safe to call more than once and from the transport threads."""
        with self._cond:
            if self._stopping:
                return
            self._stopping = True
            self._running = False
            failed = self._failure is not None
            self._cond.notify_all()
        timeout = self.settings["shutdown_timeout"]
        current = threading.current_thread()
        if self._writer_thread is not None:
            if not failed:
                self._queue.put(_TAIL)
            self._queue.put(_STOP)
            if self._writer_thread is not current:
                self._writer_thread.join(timeout)
                if self._writer_thread.is_alive():
                    logger.debug("Writer thread did not stop in time")
        try:
            self.reader.close()
        except (OSError, socket.error) as err:
            logger.debug("Closing the reader failed: {0}".format(err))
        if self._reader_thread is not None:
            if self._reader_thread is not current:
                self._reader_thread.join(timeout)
                if self._reader_thread.is_alive():
                    logger.debug("Reader thread did not stop in time")

    def _write(self, data):
        """Write raw data to the writer.

        :Parameters:
            - `data`: data to send
        :Types:
            - `data`: `bytes`
        """
        logging.getLogger("xmppwire.tcp.out").debug("OUT: %r", data)
        try:
            self.writer.write(data)
            self.writer.flush()
        except (IOError, OSError, socket.error) as err:
            raise TransportIOError("IO Error: {0}".format(err))

    def _fail(self, exc):
        """Stop the transport on an error and report it."""
        with self._cond:
            if self._stopping or self._failure is not None:
                logger.debug("Ignoring error after transport stop: {0}"
                                                                .format(exc))
                return
            self._failure = exc
            self._running = False
            established = self._established
            self._cond.notify_all()
        logger.debug("Transport failure: {0!r}".format(exc))
        if established and self.failure_handler is not None:
            self.failure_handler(exc)

    def _writer_run(self):
        """The writer thread function."""
        logger.debug("Writer thread started")
        while True:
            item = self._queue.get()
            if item is _STOP:
                break
            if item is _TAIL:
                try:
                    self._write(self.codec.encode_tail())
                except TransportIOError as err:
                    logger.debug("Sending stream closing tag failed: {0}"
                                                                .format(err))
                continue
            try:
                data = self.codec.encode(item)
                self._write(data)
            except Exception as err: # pylint: disable=W0703
                self._fail(err)
                break
            self.dispatcher.dispatch_outbound(item)
        logger.debug("Writer thread exits")

    def _reader_run(self):
        """The reader thread function."""
        logger.debug("Reader thread started")
        try:
            while True:
                try:
                    data = self.reader.read(READ_SIZE)
                except (IOError, OSError, socket.error) as err:
                    if self._stopping:
                        break
                    raise TransportIOError("IO Error: {0}".format(err))
                logging.getLogger("xmppwire.tcp.in").debug("IN: %r", data)
                if not self._process_items(self.codec.feed(data)):
                    break
                if not data:
                    break
        except Exception as err: # pylint: disable=W0703
            self._fail(err)
        logger.debug("Reader thread exits")

    def _process_items(self, items):
        """Handle the items decoded from the incoming stream.

        :return: `False` when the stream ended"""
        for item in items:
            if isinstance(item, Stanza):
                self.dispatcher.dispatch_inbound(item)
            elif isinstance(item, StreamParseError):
                self._parse_error(item)
            elif isinstance(item, StreamHead):
                logger.debug("Stream head received: {0!r}".format(item))
                with self._cond:
                    self._head = item
                    self._cond.notify_all()
            elif isinstance(item, StreamEnd):
                if not self._stopping:
                    self._fail(FatalStreamError("Stream closed by peer"))
                return False
            elif isinstance(item, FatalStreamError):
                self._fail(item)
                return False
        return True

    def _parse_error(self, error):
        """Report an element which could not be decoded.

        An exception raised by the callback makes the failure fatal."""
        if self.parsing_error_callback is None:
            error.log_ignored()
            return
        try:
            self.parsing_error_callback(error, error.element)
        except Exception as err:
            raise FatalStreamError("Stanza parse error: {0}".format(err))

# vi: sts=4 et sw=4
