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

"""XMPP-IM roster handling.

Only what a connection needs right after login: the roster is requested,
the result and the later roster pushes keep the local copy up to date.

Normative reference:
  - :RFC:`6121`
"""

__docformat__ = "restructuredtext en"

import threading
import logging

from collections.abc import Mapping

from .etree import ElementTree
from .constants import ROSTER_NS
from .iq import Iq
from .stanzapayload import StanzaPayload, payload_element_name

logger = logging.getLogger("xmppwire.roster")

ROSTER_QNP = "{{{0}}}".format(ROSTER_NS)
QUERY_TAG = ROSTER_QNP + "query"
ITEM_TAG = ROSTER_QNP + "item"
GROUP_TAG = ROSTER_QNP + "group"

class RosterItem(object):
    """
    Roster item.

    :Ivariables:
        - `jid`: the address of the contact
        - `name`: visible name
        - `groups`: roster groups the item belongs to
        - `subscription`: subscription type (None, "to", "from", "both",
                                                                or "remove")
        - `ask`: "subscribe" if there was unreplied subsription request sent
    :Types:
        - `jid`: `str`
        - `name`: `str`
        - `groups`: `set` of `str`
        - `subscription`: `str`
        - `ask`: `str`
    """
    def __init__(self, jid, name = None, groups = None,
                                        subscription = None, ask = None):
        # pylint: disable=R0913
        self.jid = jid
        self.name = name
        if groups is not None:
            self.groups = set(groups)
        else:
            self.groups = set()
        if subscription == "none":
            subscription = None
        self.subscription = subscription
        self.ask = ask

    @classmethod
    def from_xml(cls, element):
        """Make a RosterItem from an XML element.

        :Parameters:
            - `element`: the XML element
        :Types:
            - `element`: :etree:`ElementTree.Element`

        :return: a freshly created roster item
        :returntype: `cls`
        """
        if element.tag != ITEM_TAG:
            raise ValueError("{0!r} is not a roster item".format(element))
        jid = element.get("jid")
        if not jid:
            raise ValueError("Roster item without a jid")
        groups = set()
        for child in element:
            if child.tag != GROUP_TAG:
                continue
            groups.add(child.text or "")
        return cls(jid, element.get("name"), groups,
                                element.get("subscription"), element.get("ask"))

    def as_xml(self, parent = None):
        """Make an XML element from self.

        :Parameters:
            - `parent`: Parent element
        :Types:
            - `parent`: :etree:`ElementTree.Element`
        """
        if parent is not None:
            element = ElementTree.SubElement(parent, ITEM_TAG)
        else:
            element = ElementTree.Element(ITEM_TAG)
        element.set("jid", self.jid)
        if self.name is not None:
            element.set("name", self.name)
        if self.subscription:
            element.set("subscription", self.subscription)
        if self.ask:
            element.set("ask", self.ask)
        for group in sorted(self.groups):
            ElementTree.SubElement(element, GROUP_TAG).text = group
        return element

    def __repr__(self):
        return "<RosterItem {0!r}>".format(self.jid)

@payload_element_name(QUERY_TAG)
class RosterPayload(StanzaPayload):
    """<query/> element carried via a roster Iq stanza.

    :Ivariables:
        - `items`: the roster items
    :Types:
        - `items`: `list` of `RosterItem`
    """
    # pylint: disable=W0231
    def __init__(self, items = None):
        self.items = list(items) if items else []

    @classmethod
    def from_xml(cls, element):
        if element.tag != QUERY_TAG:
            raise ValueError("{0!r} is not a roster query".format(element))
        items = []
        jids = set()
        for child in element:
            if child.tag != ITEM_TAG:
                logger.debug("Unknown element in roster: {0!r}".format(child))
                continue
            try:
                item = RosterItem.from_xml(child)
            except ValueError as err:
                logger.warning("Bad roster item: {0}".format(err))
                continue
            if item.jid in jids:
                logger.warning("Duplicate jid in roster: {0!r}".format(
                                                                    item.jid))
                continue
            jids.add(item.jid)
            items.append(item)
        return cls(items)

    def as_xml(self):
        element = ElementTree.Element(QUERY_TAG)
        for item in self.items:
            item.as_xml(element)
        return element

class Roster(Mapping):
    """The roster (contact list) of a connection, a mapping from
    addresses to `RosterItem` objects.

    :Ivariables:
        - `connection`: the connection
        - `_items`: jid -> roster item dictionary
        - `_initialized`: `True` when the roster was received
        - `_request_id`: id of the pending roster request
    """
    def __init__(self, connection):
        self.connection = connection
        self._lock = threading.RLock()
        self._cond = threading.Condition(self._lock)
        self._items = {}
        self._initialized = False
        self._request_id = None
        connection.add_packet_listener(self._process_packet,
                                                        self._is_roster_iq)

    def _is_roster_iq(self, stanza):
        """Filter for the roster results and pushes."""
        if not isinstance(stanza, Iq):
            return False
        with self._lock:
            if stanza.stanza_id and stanza.stanza_id == self._request_id:
                return True
        return (stanza.stanza_type == "set"
                                    and stanza.get_query_ns() == ROSTER_NS)

    @property
    def initialized(self):
        """`True` when the roster was received from the server."""
        with self._lock:
            return self._initialized

    def reload(self):
        """Request the roster from the server.

        The reply is handled asynchronously, use `wait_initialized` to wait
        for it."""
        request = Iq(stanza_type = "get")
        request.set_payload(RosterPayload())
        with self._lock:
            self._request_id = request.stanza_id
        self.connection.send(request)

    def detach(self):
        """Stop handling the roster stanzas of the connection."""
        self.connection.remove_packet_listener(self._process_packet)

    def wait_initialized(self, timeout = None):
        """Wait until the roster is received.

        :Parameters:
            - `timeout`: maximum time to wait, in seconds
        :Types:
            - `timeout`: `float`

        :return: `True` if the roster was received
        :returntype: `bool`"""
        with self._cond:
            return self._cond.wait_for(lambda: self._initialized, timeout)

    def _process_packet(self, stanza):
        """Handle a roster result or push."""
        if stanza.stanza_type == "set":
            self._handle_push(stanza)
            return
        with self._cond:
            self._request_id = None
            if stanza.stanza_type == "result":
                payload = stanza.get_payload(RosterPayload)
                items = payload.items if payload is not None else []
                self._items = dict((item.jid, item) for item in items
                                            if item.subscription != "remove")
                logger.debug("Roster received: {0} items".format(
                                                            len(self._items)))
            else:
                logger.warning("Roster request failed: {0}".format(
                                                                stanza.error))
            self._initialized = True
            self._cond.notify_all()

    def _handle_push(self, stanza):
        """Handle a roster push: update the items and acknowledge."""
        if stanza.from_jid and self.connection.user:
            bare = self.connection.user.split("/", 1)[0].lower()
            if stanza.from_jid.lower() not in (bare,
                                                bare.split("@", 1)[-1]):
                logger.debug("Roster push from invalid source: {0}".format(
                                                            stanza.from_jid))
                response = stanza.make_error_response("service-unavailable")
                self.connection.send(response)
                return
        payload = stanza.get_payload(RosterPayload)
        if payload is None:
            self.connection.send(stanza.make_error_response("bad-request"))
            return
        with self._lock:
            for item in payload.items:
                if item.subscription == "remove":
                    self._items.pop(item.jid, None)
                else:
                    self._items[item.jid] = item
        self.connection.send(stanza.make_result_response())

    @property
    def groups(self):
        """Set of groups defined in the roster.

        :returntype: `set` of `str`
        """
        groups = set()
        with self._lock:
            for item in self._items.values():
                groups |= item.groups
        return groups

    def get_items_by_group(self, group):
        """Return a list of items within a given group.

        :returntype: `list` of `RosterItem`"""
        with self._lock:
            if not group:
                return [item for item in self._items.values()
                                                        if not item.groups]
            return [item for item in self._items.values()
                                                    if group in item.groups]

    def __iter__(self):
        with self._lock:
            return iter(list(self._items))

    def __len__(self):
        with self._lock:
            return len(self._items)

    def __getitem__(self, jid):
        with self._lock:
            return self._items[jid]

    def __repr__(self):
        return "<Roster {0} items>".format(len(self))

# vi: sts=4 et sw=4
