#!/usr/bin/python
# -*- coding: UTF-8 -*-
# pylint: disable=C0111

import unittest
import socket
import threading
import logging

from xmppwire.connection import Connection
from xmppwire.iq import Iq
from xmppwire.presence import Presence
from xmppwire.filters import StanzaIDFilter, AcceptAllFilter
from xmppwire.interfaces import ConnectionListener, ParsingErrorCallback
from xmppwire.debug import StreamDebugger, LoggingDebugger
from xmppwire.exceptions import IllegalStateError, InvalidArgumentError
from xmppwire.exceptions import TransportIOError, StreamInitError
from xmppwire.exceptions import HostUnresolvableError

from xmppwire.test._util import NetworkTestCase, STREAM_ID, wait_until

class RecordingConnectionListener(ConnectionListener):
    def __init__(self):
        self.closed = 0
        self.errors = []
    def connection_closed(self):
        self.closed += 1
    def connection_closed_on_error(self, exc):
        self.errors.append(exc)

class RecordingParsingErrorCallback(ParsingErrorCallback):
    def __init__(self):
        self.elements = []
    def stanza_parsing_error(self, exc, element):
        self.elements.append(element)

class FailingCloseSocket(object):
    """Socket wrapper failing on `close`."""
    def __init__(self, sock):
        self.sock = sock
    def recv(self, size):
        return self.sock.recv(size)
    def sendall(self, data):
        return self.sock.sendall(data)
    def shutdown(self, how):
        return self.sock.shutdown(how)
    def close(self):
        raise OSError("close failed")

class RecordingDebugger(StreamDebugger):
    def __init__(self, connection):
        StreamDebugger.__init__(self, connection)
        self.read = b""
        self.written = b""
        self.received = []
        self.sent = []
        self.users = []

    def wrap_reader(self, reader):
        debugger = self
        class Reader(object):
            def read(self, size):
                data = reader.read(size)
                debugger.read += data
                return data
            def close(self):
                reader.close()
        return Reader()

    def wrap_writer(self, writer):
        debugger = self
        class Writer(object):
            def write(self, data):
                debugger.written += data
                writer.write(data)
            def flush(self):
                writer.flush()
            def close(self):
                writer.close()
        return Writer()

    @property
    def reader_listener(self):
        return self.received.append

    @property
    def writer_listener(self):
        return self.sent.append

    def user_has_logged(self, user):
        self.users.append(user)

class BrokenDebugger(RecordingDebugger):
    def wrap_reader(self, reader):
        raise RuntimeError("Cannot wrap")

def echo_responder(element):
    if element.tag == "{jabber:client}iq" and element.get("type") == "get":
        return '<iq type="result" id="{0}"/>'.format(element.get("id"))
    return None

def quiet(logger_name):
    """Silence a logger for the duration of a test."""
    logger = logging.getLogger(logger_name)
    level = logger.level
    logger.setLevel(logging.CRITICAL)
    return lambda: logger.setLevel(level)

class TestConnection(NetworkTestCase):
    def connect(self, responder = None, **kwargs):
        port = self.start_server(responder, **kwargs)
        self.connection = Connection("127.0.0.1", port, self.settings)
        return self.connection

    def test_connect(self):
        established = []
        Connection.add_connection_established_listener(established.append,
                                                            self.settings)
        connection = self.connect()
        self.assertEqual(connection.state, "stream-ready")
        self.assertEqual(connection.connection_id, STREAM_ID)
        self.assertTrue(connection.connected)
        self.assertFalse(connection.authenticated)
        self.assertFalse(connection.anonymous)
        self.assertFalse(connection.is_secure)
        self.assertIsNone(connection.user)
        self.assertIsNone(connection.get_roster())
        self.assertEqual(established, [connection])
        Connection.remove_connection_established_listener(established.append,
                                                            self.settings)
        self.assertEqual(len(self.settings["connection_established_listeners"]),
                                                                            0)

    def test_close(self):
        listener = RecordingConnectionListener()
        sent = []
        connection = self.connect()
        connection.add_connection_listener(listener)
        connection.add_packet_writer_listener(sent.append)
        connection.close()
        self.assertEqual(connection.state, "closed")
        self.assertFalse(connection.connected)
        self.assertIsNone(connection.transport)
        self.assertEqual(listener.closed, 1)
        self.assertEqual(listener.errors, [])
        self.assertEqual(len(sent), 1)
        self.assertIsInstance(sent[0], Presence)
        self.assertEqual(sent[0].stanza_type, "unavailable")
        self.assertTrue(self.server.wait_for(lambda: self.server.stream_ended))
        presences = [e for e in self.server.received
                                    if e.tag == "{jabber:client}presence"]
        self.assertEqual(len(presences), 1)
        self.assertEqual(presences[0].get("type"), "unavailable")
        self.assertTrue(self.server.wait_for(lambda: self.server.eof))
        with self.assertRaises(IllegalStateError):
            connection.send(Presence())
        connection.close()
        self.assertEqual(listener.closed, 1)

    def test_close_delivers_pending_stanzas(self):
        for i in range(20):
            sent = []
            connection = self.connect()
            connection.add_packet_writer_listener(sent.append)
            connection.send(Presence(stanza_id = "last-{0}".format(i)))
            connection.close()
            self.assertEqual(len(sent), 2)
            self.assertEqual(sent[0].stanza_id, "last-{0}".format(i))
            self.assertEqual(sent[1].stanza_type, "unavailable")
            self.assertTrue(self.server.wait_for(
                                        lambda: self.server.stream_ended))
            presences = [e for e in self.server.received
                                    if e.tag == "{jabber:client}presence"]
            self.assertEqual(presences[0].get("id"), "last-{0}".format(i))
            self.assertEqual([p.get("type") for p in presences],
                                                        [None, "unavailable"])
            self.server.close()
            self.server = None

    def test_context_manager(self):
        port = self.start_server()
        with Connection("127.0.0.1", port, self.settings) as connection:
            self.assertTrue(connection.connected)
        self.assertEqual(connection.state, "closed")

    def test_close_wakes_collector(self):
        connection = self.connect()
        collector = connection.create_packet_collector(AcceptAllFilter())
        result = []
        def waiter():
            result.append(collector.next_result())
        thread = threading.Thread(target = waiter)
        thread.start()
        connection.close()
        thread.join(5)
        self.assertFalse(thread.is_alive())
        self.assertEqual(result, [None])
        self.assertTrue(connection.create_packet_collector(
                                            AcceptAllFilter()).cancelled)

    def test_request_response(self):
        connection = self.connect(echo_responder)
        request = Iq(to_jid = "127.0.0.1", stanza_type = "get")
        collector = connection.create_packet_collector(
                                            StanzaIDFilter(request.stanza_id))
        received = []
        connection.add_packet_listener(received.append)
        try:
            connection.send_packet(request)
            response = collector.next_result(5)
        finally:
            collector.cancel()
        self.assertIsInstance(response, Iq)
        self.assertEqual(response.stanza_type, "result")
        self.assertEqual(response.stanza_id, request.stanza_id)
        self.assertTrue(wait_until(lambda: received))
        self.assertIs(received[0], response)
        connection.remove_packet_listener(received.append)

    def test_send_none(self):
        connection = self.connect()
        with self.assertRaises(InvalidArgumentError):
            connection.send(None)

    def test_stream_init_timeout(self):
        self.settings["stream_init_timeout"] = 0.5
        port = self.start_server(send_head = False)
        with self.assertRaises(StreamInitError):
            Connection("127.0.0.1", port, self.settings)
        self.assertTrue(self.server.wait_for(lambda: self.server.eof))

    def test_connection_refused(self):
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
        sock.close()
        with self.assertRaises(TransportIOError):
            Connection("127.0.0.1", port, self.settings)

    def test_socket_factory_errors(self):
        def refusing(host, port, settings):
            raise socket.error("refused")
        with self.assertRaises(TransportIOError):
            Connection("127.0.0.1", 5222, self.settings,
                                                socket_factory = refusing)
        def unresolvable(host, port, settings):
            raise HostUnresolvableError("no such host")
        with self.assertRaises(HostUnresolvableError):
            Connection("nosuchhost.example.com", 5222, self.settings,
                                                socket_factory = unresolvable)

    def test_no_host(self):
        with self.assertRaises(InvalidArgumentError):
            Connection("", 5222, self.settings)

    def test_failing_socket_close(self):
        sockets = []
        def factory(host, port, settings):
            sock = socket.create_connection((host, port))
            sockets.append(sock)
            return FailingCloseSocket(sock)
        listener = RecordingConnectionListener()
        port = self.start_server()
        restore = quiet("xmppwire.connection")
        try:
            connection = Connection("127.0.0.1", port, self.settings,
                                                    socket_factory = factory)
            connection.add_connection_listener(listener)
            connection.close()
        finally:
            restore()
            for sock in sockets:
                sock.close()
        self.assertEqual(connection.state, "closed")
        self.assertEqual(listener.closed, 1)
        self.assertTrue(self.server.wait_for(lambda: self.server.stream_ended))

    def test_peer_disconnect(self):
        listener = RecordingConnectionListener()
        restore = quiet("xmppwire.connection")
        try:
            connection = self.connect()
            connection.add_connection_listener(listener)
            collector = connection.create_packet_collector(AcceptAllFilter())
            self.server.disconnect()
            self.assertIsNone(collector.next_result(5))
            self.assertTrue(wait_until(lambda: listener.errors))
        finally:
            restore()
        self.assertEqual(connection.state, "errored")
        self.assertFalse(connection.connected)
        self.assertTrue(collector.cancelled)
        with self.assertRaises(IllegalStateError):
            connection.send(Presence())
        connection.close()
        self.assertEqual(connection.state, "errored")
        self.assertEqual(listener.closed, 0)
        self.assertEqual(len(listener.errors), 1)

    def test_peer_closes_stream(self):
        listener = RecordingConnectionListener()
        restore = quiet("xmppwire.connection")
        try:
            connection = self.connect()
            connection.add_connection_listener(listener)
            self.server.write(b"</stream:stream>")
            self.assertTrue(wait_until(lambda: listener.errors))
        finally:
            restore()
        self.assertEqual(connection.state, "errored")

    def test_parsing_error_callback(self):
        callback = RecordingParsingErrorCallback()
        received = []
        connection = self.connect()
        connection.set_parsing_error_callback(callback)
        connection.add_packet_listener(received.append)
        self.server.write('<bogus id="1"/><presence id="2"/>')
        self.assertTrue(wait_until(lambda: received))
        self.assertEqual(len(callback.elements), 1)
        self.assertEqual(callback.elements[0].tag, "{jabber:client}bogus")
        self.assertTrue(connection.connected)

    def test_failing_parsing_error_callback(self):
        def callback(exc, element):
            raise ValueError("Unacceptable element")
        listener = RecordingConnectionListener()
        restore = quiet("xmppwire.connection")
        try:
            connection = self.connect()
            connection.add_connection_listener(listener)
            connection.set_parsing_error_callback(callback)
            self.server.write('<bogus/>')
            self.assertTrue(wait_until(lambda: listener.errors))
        finally:
            restore()
        self.assertEqual(connection.state, "errored")

    def test_debugger(self):
        self.settings["debugger_factory"] = RecordingDebugger
        connection = self.connect(echo_responder)
        debugger = connection.debugger
        self.assertIsInstance(debugger, RecordingDebugger)
        request = Iq(stanza_type = "get")
        collector = connection.create_packet_collector(
                                            StanzaIDFilter(request.stanza_id))
        connection.send(request)
        response = collector.next_result(5)
        collector.cancel()
        self.assertTrue(wait_until(lambda: debugger.received))
        self.assertIs(debugger.received[0], response)
        self.assertIs(debugger.sent[0], request)
        self.assertIn(b"<stream:stream", debugger.written)
        self.assertIn(STREAM_ID.encode("utf-8"), debugger.read)
        self.assertIn(request.stanza_id.encode("utf-8"), debugger.read)

    def test_broken_debugger(self):
        self.settings["debugger_factory"] = BrokenDebugger
        restore = quiet("xmppwire.connection")
        try:
            connection = self.connect()
        finally:
            restore()
        self.assertIsNone(connection.debugger)
        self.assertTrue(connection.connected)

    def test_failing_debugger_factory(self):
        def factory(connection):
            raise RuntimeError("No debugging today")
        self.settings["debugger_factory"] = factory
        restore = quiet("xmppwire.debug")
        try:
            connection = self.connect()
        finally:
            restore()
        self.assertIsNone(connection.debugger)
        self.assertTrue(connection.connected)

    def test_named_debugger(self):
        self.settings["debugger"] = "logging"
        connection = self.connect()
        self.assertIsInstance(connection.debugger, LoggingDebugger)

    def test_unknown_debugger(self):
        self.settings["debugger"] = "no-such-debugger"
        restore = quiet("xmppwire.debug")
        try:
            connection = self.connect()
        finally:
            restore()
        self.assertIsNone(connection.debugger)

# pylint: disable=W0611
from xmppwire.test._support import load_tests, setup_logging

def setUpModule():
    setup_logging()

if __name__ == "__main__":
    unittest.main()
