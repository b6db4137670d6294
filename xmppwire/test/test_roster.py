#!/usr/bin/python
# -*- coding: UTF-8 -*-
# pylint: disable=C0111

import unittest

from xmppwire.etree import ElementTree

from xmppwire.connection import Connection
from xmppwire.iq import Iq
from xmppwire.roster import RosterItem, RosterPayload

from xmppwire.test._util import NetworkTestCase, LegacyAuthResponder
from xmppwire.test._util import ROSTER_QUERY, wait_until

ROSTER1 = """
<iq xmlns="jabber:client" type="result" id="r1">
<query xmlns="jabber:iq:roster">
<item jid="friend@example.com" name="Friend" subscription="both">
<group>Friends</group><group>Work</group>
</item>
<item jid="boss@example.com" subscription="none" ask="subscribe">
<group>Work</group>
</item>
<item jid="loner@example.com"/>
<item jid="friend@example.com" name="Duplicate"/>
<item name="No jid"/>
</query>
</iq>"""

PUSH = ('<iq type="set" id="{0}"{1}><query xmlns="jabber:iq:roster">'
                                            '{2}</query></iq>')

class TestRosterPayload(unittest.TestCase):
    def test_from_xml(self):
        iq = Iq(ElementTree.XML(ROSTER1))
        payload = iq.get_payload(RosterPayload)
        self.assertIsInstance(payload, RosterPayload)
        self.assertEqual([item.jid for item in payload.items], [
                                                    "friend@example.com",
                                                    "boss@example.com",
                                                    "loner@example.com"])
        friend, boss, loner = payload.items
        self.assertEqual(friend.name, "Friend")
        self.assertEqual(friend.subscription, "both")
        self.assertEqual(friend.groups, set(["Friends", "Work"]))
        self.assertIsNone(boss.name)
        self.assertIsNone(boss.subscription)
        self.assertEqual(boss.ask, "subscribe")
        self.assertEqual(loner.groups, set())

    def test_as_xml(self):
        item = RosterItem("friend@example.com", "Friend", ["b", "a"], "to")
        element = RosterPayload([item]).as_xml()
        self.assertEqual(element.tag, ROSTER_QUERY)
        self.assertEqual(len(element), 1)
        item_element = element[0]
        self.assertEqual(item_element.get("jid"), "friend@example.com")
        self.assertEqual(item_element.get("name"), "Friend")
        self.assertEqual(item_element.get("subscription"), "to")
        self.assertIsNone(item_element.get("ask"))
        self.assertEqual([group.text for group in item_element], ["a", "b"])
        self.assertEqual(len(RosterPayload().as_xml()), 0)

    def test_bad_item(self):
        with self.assertRaises(ValueError):
            RosterItem.from_xml(ElementTree.Element(
                                        "{jabber:iq:roster}item"))

class ErrorRosterResponder(LegacyAuthResponder):
    def __call__(self, element):
        if element.find(ROSTER_QUERY) is not None:
            return ('<iq type="error" id="{0}"><error type="cancel">'
                        '<service-unavailable'
                        ' xmlns="urn:ietf:params:xml:ns:xmpp-stanzas"/>'
                        '</error></iq>'.format(element.get("id")))
        return LegacyAuthResponder.__call__(self, element)

class TestRoster(NetworkTestCase):
    def login(self, responder = None):
        if responder is None:
            responder = LegacyAuthResponder()
        port = self.start_server(responder)
        self.connection = Connection("127.0.0.1", port, self.settings)
        self.connection.login("user", "secret", "res")
        return self.connection

    def replies(self, stanza_id):
        return [element for element in self.server.received
                                if element.get("id") == stanza_id
                                and element.tag == "{jabber:client}iq"]

    def wait_for_reply(self, stanza_id):
        self.assertTrue(self.server.wait_for(
                                        lambda: self.replies(stanza_id)))
        return self.replies(stanza_id)[0]

    def test_initial_roster(self):
        connection = self.login()
        roster = connection.get_roster()
        self.assertTrue(roster.initialized)
        self.assertEqual(sorted(roster), ["boss@example.com",
                                                "friend@example.com"])
        self.assertEqual(len(roster), 2)
        self.assertEqual(roster["friend@example.com"].name, "Friend")
        self.assertEqual(roster.groups, set(["Friends"]))
        self.assertEqual([item.jid for item in roster.get_items_by_group(
                                        "Friends")], ["friend@example.com"])
        self.assertEqual([item.jid for item in roster.get_items_by_group(
                                        None)], ["boss@example.com"])
        self.assertIn("friend@example.com", roster)
        with self.assertRaises(KeyError):
            roster["nobody@example.com"]

    def test_roster_request_failed(self):
        connection = self.login(ErrorRosterResponder())
        roster = connection.get_roster()
        self.assertTrue(roster.initialized)
        self.assertEqual(len(roster), 0)

    def test_roster_not_received(self):
        self.settings["packet_reply_timeout"] = 0.5
        connection = self.login(LegacyAuthResponder(roster = None))
        roster = connection.get_roster()
        self.assertIsNotNone(roster)
        self.assertFalse(roster.initialized)

    def test_push(self):
        connection = self.login()
        roster = connection.get_roster()
        self.server.write(PUSH.format("push1", "",
                            '<item jid="new@example.com" name="New"'
                            ' subscription="from"><group>Work</group></item>'))
        reply = self.wait_for_reply("push1")
        self.assertEqual(reply.get("type"), "result")
        self.assertTrue(wait_until(lambda: "new@example.com" in roster))
        self.assertEqual(roster["new@example.com"].subscription, "from")
        self.assertEqual(roster.groups, set(["Friends", "Work"]))

    def test_push_update_and_remove(self):
        connection = self.login()
        roster = connection.get_roster()
        self.server.write(PUSH.format("push1", ' from="user@127.0.0.1"',
                            '<item jid="friend@example.com" name="Pal"'
                            ' subscription="both"/>'))
        self.wait_for_reply("push1")
        self.assertEqual(roster["friend@example.com"].name, "Pal")
        self.server.write(PUSH.format("push2", ' from="127.0.0.1"',
                            '<item jid="boss@example.com"'
                            ' subscription="remove"/>'))
        self.assertEqual(self.wait_for_reply("push2").get("type"), "result")
        self.assertNotIn("boss@example.com", roster)
        self.assertEqual(len(roster), 1)

    def test_push_from_invalid_source(self):
        connection = self.login()
        roster = connection.get_roster()
        self.server.write(PUSH.format("push1", ' from="evil@example.com"',
                            '<item jid="spam@example.com"/>'))
        reply = self.wait_for_reply("push1")
        self.assertEqual(reply.get("type"), "error")
        condition = reply.find("{jabber:client}error/"
                    "{urn:ietf:params:xml:ns:xmpp-stanzas}service-unavailable")
        self.assertIsNotNone(condition)
        self.assertNotIn("spam@example.com", roster)

# pylint: disable=W0611
from xmppwire.test._support import load_tests, setup_logging

def setUpModule():
    setup_logging()

if __name__ == "__main__":
    unittest.main()
