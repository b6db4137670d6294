#!/usr/bin/python
# -*- coding: UTF-8 -*-
# pylint: disable=C0111

import unittest

from xmppwire.etree import ElementTree

from xmppwire.stanza import Stanza, gen_id
from xmppwire.iq import Iq
from xmppwire.presence import Presence
from xmppwire.message import Message
from xmppwire.stanzapayload import XMLPayload
from xmppwire.error import StanzaErrorElement

TEST_NS = "http://xmppwire.example.net/xmlns/test"

IQ1 = """
<iq xmlns="jabber:client" from='source@example.com/res'
                                to='dest@example.com' type='get' id='1'>
<payload xmlns="http://xmppwire.example.net/xmlns/test"><abc/></payload>
</iq>"""

IQ2 = """
<iq xmlns="jabber:client" to='source@example.com/res'
                                from='dest@example.com' type='error' id='1'>
<payload xmlns="http://xmppwire.example.net/xmlns/test"><abc/></payload>
<error type="modify"><bad-request xmlns='urn:ietf:params:xml:ns:xmpp-stanzas'/></error>
</iq>"""

IQ3 = """
<iq xmlns="jabber:client" type='error' id='2'>
<error code="401">Unauthorized</error>
</iq>"""

PRESENCE1 = """
<presence xmlns="jabber:client" from='source@example.com/res'
                                            to='dest@example.com' id='3'>
<show>away</show>
<status>The Status</status>
<priority>10</priority>
<payload xmlns="http://xmppwire.example.net/xmlns/test"><abc/></payload>
</presence>"""

MESSAGE1 = """
<message xmlns="jabber:client" from='source@example.com/res'
                                to='dest@example.com' type='chat' id='4'>
<subject>Subject</subject>
<body>The body</body>
<thread>thread-id</thread>
<payload xmlns="http://xmppwire.example.net/xmlns/test"><abc/></payload>
</message>"""

def make_payload():
    payload = ElementTree.Element("{{{0}}}payload".format(TEST_NS))
    ElementTree.SubElement(payload, "{{{0}}}abc".format(TEST_NS))
    return XMLPayload(payload)

class TestStanza(unittest.TestCase):
    def test_gen_id(self):
        ids = set(gen_id() for i in range(100))
        self.assertEqual(len(ids), 100)

    def test_new_stanza_gets_id(self):
        stanza1 = Iq(stanza_type = "get")
        stanza2 = Iq(stanza_type = "get")
        self.assertTrue(stanza1.stanza_id)
        self.assertNotEqual(stanza1.stanza_id, stanza2.stanza_id)

    def test_generic_stanza_payload(self):
        stanza = Stanza(ElementTree.XML(PRESENCE1))
        self.assertEqual(stanza.element_name, "presence")
        # generic stanza keeps the stanza-namespaced children as payload
        self.assertEqual(len(stanza.get_all_payload()), 4)

    def test_serialize(self):
        iq = Iq(to_jid = "dest@example.com", stanza_type = "get",
                                                        stanza_id = "s1")
        iq.add_payload(make_payload())
        xml = ElementTree.XML(iq.serialize())
        self.assertEqual(xml.get("id"), "s1")
        self.assertEqual(xml.get("to"), "dest@example.com")
        self.assertEqual(xml[0].tag, "{{{0}}}payload".format(TEST_NS))

    def test_set_payload(self):
        iq = Iq(stanza_type = "set")
        iq.add_payload(make_payload())
        iq.add_payload(make_payload())
        self.assertEqual(len(iq.get_all_payload()), 2)
        iq.set_payload(ElementTree.Element("{urn:other}query"))
        payload = iq.get_all_payload()
        self.assertEqual(len(payload), 1)
        self.assertEqual(payload[0].xml_element_name, "{urn:other}query")
        with self.assertRaises(TypeError):
            iq.set_payload("bad")

class TestIq(unittest.TestCase):
    def check_iq1(self, iq):
        self.assertEqual(iq.from_jid, "source@example.com/res")
        self.assertEqual(iq.to_jid, "dest@example.com")
        self.assertEqual(iq.stanza_type, "get")
        self.assertEqual(iq.stanza_id, "1")
        payload = iq.get_all_payload()
        self.assertEqual(len(payload), 1)
        self.assertEqual(payload[0].xml_element_name,
                                        "{{{0}}}payload".format(TEST_NS))
        self.assertEqual(payload[0].element[0].tag,
                                            "{{{0}}}abc".format(TEST_NS))
        self.assertIsNone(iq.error)

    def check_iq2(self, iq):
        self.assertEqual(iq.to_jid, "source@example.com/res")
        self.assertEqual(iq.from_jid, "dest@example.com")
        self.assertEqual(iq.stanza_type, "error")
        self.assertEqual(iq.stanza_id, "1")
        payload = iq.get_all_payload()
        self.assertEqual(len(payload), 1)
        self.assertEqual(payload[0].xml_element_name,
                                        "{{{0}}}payload".format(TEST_NS))
        error = iq.error
        self.assertIsInstance(error, StanzaErrorElement)
        self.assertEqual(error.condition_name, "bad-request")

    def test_iq_get_from_xml(self):
        self.check_iq1(Iq(ElementTree.XML(IQ1)))

    def test_iq_error_from_xml(self):
        self.check_iq2(Iq(ElementTree.XML(IQ2)))

    def test_iq_get(self):
        iq = Iq(from_jid = "source@example.com/res",
                to_jid = "dest@example.com",
                stanza_type = "get",
                stanza_id = 1)
        iq.add_payload(make_payload())
        self.check_iq1(iq)
        self.check_iq1(Iq(iq.as_xml()))

    def test_iq_bad_type(self):
        with self.assertRaises(ValueError):
            Iq(stanza_type = "bad")
        with self.assertRaises(ValueError):
            Iq()

    def test_make_error_response(self):
        iq = Iq(ElementTree.XML(IQ1))
        response = iq.make_error_response("bad-request")
        self.check_iq2(response)
        self.check_iq2(Iq(response.as_xml()))

    def test_make_result_response(self):
        iq = Iq(ElementTree.XML(IQ1))
        response = iq.make_result_response()
        self.assertEqual(response.stanza_type, "result")
        self.assertEqual(response.stanza_id, "1")
        self.assertEqual(response.to_jid, "source@example.com/res")
        self.assertEqual(response.from_jid, "dest@example.com")
        self.assertEqual(response.get_all_payload(), [])
        with self.assertRaises(ValueError):
            response.make_result_response()

    def test_get_query(self):
        iq = Iq(ElementTree.XML(IQ1))
        self.assertEqual(iq.get_query().tag, "{{{0}}}payload".format(TEST_NS))
        self.assertEqual(iq.get_query_ns(), TEST_NS)
        empty = Iq(stanza_type = "result")
        self.assertIsNone(empty.get_query())
        self.assertIsNone(empty.get_query_ns())

    def test_legacy_error(self):
        iq = Iq(ElementTree.XML(IQ3))
        self.assertEqual(iq.error.condition_name, "not-authorized")
        self.assertEqual(iq.error.code, 401)
        self.assertEqual(iq.error.text, "Unauthorized")

class TestPresence(unittest.TestCase):
    def check_presence1(self, presence):
        self.assertEqual(presence.from_jid, "source@example.com/res")
        self.assertEqual(presence.to_jid, "dest@example.com")
        self.assertIsNone(presence.stanza_type)
        self.assertEqual(presence.stanza_id, "3")
        self.assertEqual(presence.show, "away")
        self.assertEqual(presence.status, "The Status")
        self.assertEqual(presence.priority, 10)
        payload = presence.get_all_payload()
        self.assertEqual(len(payload), 1)
        self.assertEqual(payload[0].xml_element_name,
                                        "{{{0}}}payload".format(TEST_NS))

    def test_presence_from_xml(self):
        self.check_presence1(Presence(ElementTree.XML(PRESENCE1)))

    def test_presence(self):
        presence = Presence(from_jid = "source@example.com/res",
                            to_jid = "dest@example.com",
                            stanza_id = "3",
                            stanza_type = "available",
                            show = "away",
                            status = "The Status",
                            priority = 10)
        presence.add_payload(make_payload())
        self.check_presence1(presence)
        self.check_presence1(Presence(presence.as_xml()))

    def test_presence_unavailable(self):
        presence = Presence(stanza_type = "unavailable")
        xml = presence.as_xml()
        self.assertEqual(xml.get("type"), "unavailable")
        self.assertEqual(len(xml), 0)

    def test_presence_bad_type(self):
        with self.assertRaises(ValueError):
            Presence(stanza_type = "bad")

class TestMessage(unittest.TestCase):
    def check_message1(self, message):
        self.assertEqual(message.from_jid, "source@example.com/res")
        self.assertEqual(message.to_jid, "dest@example.com")
        self.assertEqual(message.stanza_type, "chat")
        self.assertEqual(message.stanza_id, "4")
        self.assertEqual(message.subject, "Subject")
        self.assertEqual(message.body, "The body")
        self.assertEqual(message.thread, "thread-id")
        payload = message.get_all_payload()
        self.assertEqual(len(payload), 1)

    def test_message_from_xml(self):
        self.check_message1(Message(ElementTree.XML(MESSAGE1)))

    def test_message(self):
        message = Message(from_jid = "source@example.com/res",
                            to_jid = "dest@example.com",
                            stanza_type = "chat",
                            stanza_id = "4",
                            subject = "Subject",
                            body = "The body",
                            thread = "thread-id")
        message.add_payload(make_payload())
        self.check_message1(message)
        self.check_message1(Message(message.as_xml()))

    def test_message_bad_type(self):
        with self.assertRaises(ValueError):
            Message(stanza_type = "bad")

# pylint: disable=W0611
from xmppwire.test._support import load_tests, setup_logging

def setUpModule():
    setup_logging()

if __name__ == "__main__":
    unittest.main()
