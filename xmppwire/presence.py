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

"""Presence XMPP stanza handling

Normative reference:
  - `RFC 3920 <http://www.ietf.org/rfc/rfc3920.txt>`__
"""

__docformat__ = "restructuredtext en"

from .etree import ElementTree, ElementClass
from .stanza import Stanza

PRESENCE_TYPES = ("available", "unavailable", "probe",
                    "subscribe", "unsubscribe", "subscribed", "unsubscribed",
                    "invisible", "error")

SHOW_VALUES = ("away", "xa", "dnd", "chat")

class Presence(Stanza):
    """<presence /> stanza.

    :Ivariables:
        - `show`: "show" field of the presence: `None`, "away", "xa", "dnd"
          or "chat"
        - `status`: presence status description
        - `priority`: presence priority
    """
    # pylint: disable-msg=R0902,R0904
    element_name = "presence"
    def __init__(self, element = None, from_jid = None, to_jid = None,
                            stanza_type = None, stanza_id = None,
                            error = None, error_cond = None,
                            show = None, status = None, priority = 0):
        """Initialize a `Presence` object.

        :Parameters:
            - `element`: XML element
            - `from_jid`: sender address.
            - `to_jid`: recipient address.
            - `stanza_type`: staza type: one of: None, "available",
              "unavailable", "subscribe", "subscribed", "unsubscribe",
              "unsubscribed" or "error". "available" is automaticaly changed to
              None.
            - `stanza_id`: stanza id -- value of stanza's "id" attribute
            - `show`: "show" field of presence stanza. One of: None, "away",
              "xa", "dnd", "chat".
            - `status`: descriptive text for the presence stanza.
            - `priority`: presence priority.
            - `error_cond`: error condition name. Ignored if `stanza_type` is
              not "error"
        :Types:
            - `element`: :etree:`ElementTree.Element`
            - `from_jid`: `str`
            - `to_jid`: `str`
            - `stanza_type`: `str`
            - `stanza_id`: `str`
            - `show`: `str`
            - `status`: `str`
            - `priority`: `int`
            - `error_cond`: `str`
        """
        # pylint: disable-msg=R0913
        self._show = None
        self._status = None
        self._priority = 0
        if element is None:
            element = "presence"
        elif not isinstance(element, ElementClass):
            raise TypeError("Couldn't make Presence from " + repr(element))

        if stanza_type is not None and stanza_type not in PRESENCE_TYPES:
            raise ValueError("Bad presence type: {0!r}".format(stanza_type))
        elif stanza_type == 'available':
            stanza_type = None

        Stanza.__init__(self, element, from_jid = from_jid, to_jid = to_jid,
                        stanza_type = stanza_type, stanza_id = stanza_id,
                        error = error, error_cond = error_cond)

        if self._element is not None:
            self._decode_subelements()

        if show is not None:
            self._show = show
        if status is not None:
            self._status = status
        if priority:
            self._priority = int(priority)

    def _decode_subelements(self):
        """Decode the stanza subelements."""
        for child in self._element:
            if child.tag == self._ns_prefix + "show":
                self._show = child.text
            elif child.tag == self._ns_prefix + "status":
                self._status = child.text
            elif child.tag == self._ns_prefix + "priority":
                try:
                    self._priority = int(child.text.strip())
                except (ValueError, AttributeError):
                    self._priority = 0

    def as_xml(self):
        """Return the XML stanza representation.

        Always return an independent copy of the stanza XML representation,
        which can be freely modified without affecting the stanza.

        :returntype: :etree:`ElementTree.Element`"""
        result = Stanza.as_xml(self)
        if self._show:
            child = ElementTree.SubElement(result, self._ns_prefix + "show")
            child.text = self._show
        if self._status:
            child = ElementTree.SubElement(result, self._ns_prefix + "status")
            child.text = self._status
        if self._priority:
            child = ElementTree.SubElement(result,
                                            self._ns_prefix + "priority")
            child.text = str(self._priority)
        return result

    @property
    def show(self): # pylint: disable-msg=E0202
        """Presence status type."""
        return self._show

    @property
    def status(self): # pylint: disable-msg=E0202
        """Presence status message."""
        return self._status

    @property
    def priority(self): # pylint: disable-msg=E0202
        """Presence priority."""
        return self._priority

# vi: sts=4 et sw=4
