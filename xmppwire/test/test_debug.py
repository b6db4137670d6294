#!/usr/bin/python
# -*- coding: UTF-8 -*-
# pylint: disable=C0111

import unittest
import logging
import os

from unittest import mock

from xmppwire.debug import LoggingDebugger, StreamDebugger, DEBUGGERS
from xmppwire.debug import create_debugger, register_debugger
from xmppwire.settings import XMPPSettings

class FakeConnection(object):
    # pylint: disable=R0903
    host = "example.com"
    connection_id = "abc"

class FakeStream(object):
    def __init__(self, data = b""):
        self.data = data
        self.written = []
        self.closed = False
    def read(self, size):
        data, self.data = self.data[:size], self.data[size:]
        return data
    def write(self, data):
        self.written.append(data)
    def flush(self):
        pass
    def close(self):
        self.closed = True

class NullDebugger(StreamDebugger):
    def wrap_reader(self, reader):
        return reader
    def wrap_writer(self, writer):
        return writer

class TestDebuggerSelection(unittest.TestCase):
    def tearDown(self):
        DEBUGGERS.pop("null", None)

    def test_disabled_by_default(self):
        with mock.patch.dict(os.environ, clear = True):
            settings = XMPPSettings()
            self.assertIsNone(settings["debugger"])
            self.assertIsNone(create_debugger(FakeConnection(), settings))

    def test_environment(self):
        with mock.patch.dict(os.environ, {"XMPPWIRE_DEBUGGER": "logging"}):
            debugger = create_debugger(FakeConnection(), XMPPSettings())
        self.assertIsInstance(debugger, LoggingDebugger)

    def test_registered(self):
        register_debugger("null", NullDebugger)
        settings = XMPPSettings({"debugger": "null"})
        connection = FakeConnection()
        debugger = create_debugger(connection, settings)
        self.assertIsInstance(debugger, NullDebugger)
        self.assertIs(debugger.connection, connection)
        self.assertIsNone(debugger.reader_listener)
        self.assertIsNone(debugger.writer_listener)

    def test_factory_overrides_name(self):
        settings = XMPPSettings({"debugger": "logging",
                                        "debugger_factory": NullDebugger})
        self.assertIsInstance(create_debugger(FakeConnection(), settings),
                                                                NullDebugger)

class TestLoggingDebugger(unittest.TestCase):
    def test_transparent(self):
        debugger = LoggingDebugger(FakeConnection())
        logger = logging.getLogger("xmppwire.debug.example.com")
        with mock.patch.object(logger, "debug") as debug:
            reader = debugger.wrap_reader(FakeStream(b"abcdef"))
            self.assertEqual(reader.read(4), b"abcd")
            self.assertEqual(reader.read(4), b"ef")
            stream = FakeStream()
            writer = debugger.wrap_writer(stream)
            writer.write(b"xyz")
            writer.flush()
            writer.close()
            debugger.reader_listener("stanza1")
            debugger.writer_listener("stanza2")
        self.assertEqual(stream.written, [b"xyz"])
        self.assertTrue(stream.closed)
        self.assertEqual(debug.call_count, 5)

    def test_user_has_logged(self):
        debugger = LoggingDebugger(FakeConnection())
        logger = logging.getLogger("xmppwire.debug.example.com")
        with mock.patch.object(logger, "info") as info:
            debugger.user_has_logged("user@example.com/res")
        message = info.call_args[0][0]
        self.assertIn("user@example.com/res", message)
        self.assertIn("abc", message)

# pylint: disable=W0611
from xmppwire.test._support import load_tests, setup_logging

def setUpModule():
    setup_logging()

if __name__ == "__main__":
    unittest.main()
