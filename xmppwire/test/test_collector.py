#!/usr/bin/python
# -*- coding: UTF-8 -*-
# pylint: disable=C0111

import unittest
import threading
import time

from xmppwire.iq import Iq
from xmppwire.presence import Presence
from xmppwire.dispatcher import Dispatcher
from xmppwire.filters import StanzaIDFilter, AcceptAllFilter
from xmppwire.filters import StanzaClassFilter

class TestPacketCollector(unittest.TestCase):
    def setUp(self):
        self.dispatcher = Dispatcher()

    def test_matching_reply(self):
        collector = self.dispatcher.create_collector(StanzaIDFilter("id1"))
        self.dispatcher.dispatch_inbound(Iq(stanza_type = "result",
                                                    stanza_id = "other"))
        reply = Iq(stanza_type = "result", stanza_id = "id1")
        self.dispatcher.dispatch_inbound(reply)
        self.assertIs(collector.next_result(1), reply)
        self.assertIsNone(collector.poll_result())
        collector.cancel()

    def test_timeout(self):
        collector = self.dispatcher.create_collector(StanzaIDFilter("id1"))
        start = time.monotonic()
        self.assertIsNone(collector.next_result(0.2))
        self.assertGreaterEqual(time.monotonic() - start, 0.15)
        collector.cancel()

    def test_late_call_sees_buffered(self):
        collector = self.dispatcher.create_collector(AcceptAllFilter())
        first = Presence()
        second = Presence(stanza_type = "unavailable")
        self.dispatcher.dispatch_inbound(first)
        self.dispatcher.dispatch_inbound(second)
        self.assertIs(collector.next_result(0), first)
        self.assertIs(collector.next_result(0), second)
        self.assertIsNone(collector.next_result(0))

    def test_overlapping_collectors(self):
        collector1 = self.dispatcher.create_collector(StanzaIDFilter("x"))
        collector2 = self.dispatcher.create_collector(StanzaClassFilter(Iq))
        stanza = Iq(stanza_type = "result", stanza_id = "x")
        self.dispatcher.dispatch_inbound(stanza)
        self.assertIs(collector1.next_result(0), stanza)
        self.assertIs(collector2.next_result(0), stanza)

    def test_waiting_thread_wakes_up(self):
        collector = self.dispatcher.create_collector(StanzaIDFilter("id2"))
        result = []
        def waiter():
            result.append(collector.next_result(5))
        thread = threading.Thread(target = waiter)
        thread.start()
        time.sleep(0.1)
        reply = Iq(stanza_type = "result", stanza_id = "id2")
        self.dispatcher.dispatch_inbound(reply)
        thread.join(5)
        self.assertEqual(result, [reply])

    def test_cancel(self):
        collector = self.dispatcher.create_collector(AcceptAllFilter())
        self.dispatcher.dispatch_inbound(Presence())
        collector.cancel()
        collector.cancel()
        self.assertTrue(collector.cancelled)
        self.assertIsNone(collector.poll_result())
        self.dispatcher.dispatch_inbound(Presence())
        self.assertIsNone(collector.next_result(0))

    def test_cancel_wakes_waiter(self):
        collector = self.dispatcher.create_collector(AcceptAllFilter())
        result = []
        def waiter():
            result.append(collector.next_result())
        thread = threading.Thread(target = waiter)
        thread.start()
        time.sleep(0.1)
        collector.cancel()
        thread.join(5)
        self.assertFalse(thread.is_alive())
        self.assertEqual(result, [None])

    def test_close_collectors(self):
        collector = self.dispatcher.create_collector(AcceptAllFilter())
        result = []
        def waiter():
            result.append(collector.next_result())
        thread = threading.Thread(target = waiter)
        thread.start()
        time.sleep(0.1)
        self.dispatcher.close_collectors()
        thread.join(5)
        self.assertEqual(result, [None])
        late = self.dispatcher.create_collector(AcceptAllFilter())
        self.assertTrue(late.cancelled)
        self.assertIsNone(late.next_result())

    def test_queue_limit(self):
        collector = self.dispatcher.create_collector(AcceptAllFilter(),
                                                                max_size = 2)
        stanzas = [Presence() for i in range(3)]
        for stanza in stanzas:
            self.dispatcher.dispatch_inbound(stanza)
        self.assertIs(collector.poll_result(), stanzas[1])
        self.assertIs(collector.poll_result(), stanzas[2])

    def test_plain_callable_filter(self):
        collector = self.dispatcher.create_collector(
                                lambda stanza: stanza.stanza_type == "set")
        self.dispatcher.dispatch_inbound(Iq(stanza_type = "get"))
        stanza = Iq(stanza_type = "set")
        self.dispatcher.dispatch_inbound(stanza)
        self.assertIs(collector.poll_result(), stanza)

# pylint: disable=W0611
from xmppwire.test._support import load_tests, setup_logging

def setUpModule():
    setup_logging()

if __name__ == "__main__":
    unittest.main()
