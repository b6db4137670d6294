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

"""Iq XMPP stanza handling

Normative reference:
  - `RFC 3920 <http://www.ietf.org/rfc/rfc3920.txt>`__
"""

__docformat__ = "restructuredtext en"

from .etree import ElementClass
from .stanza import Stanza
from .stanzapayload import XMLPayload

IQ_TYPES = ("get", "set", "result", "error")

class Iq(Stanza):
    """<iq /> stanza class object."""
    # pylint: disable-msg=R0904
    element_name = "iq"
    def __init__(self, element = None, from_jid = None, to_jid = None,
                            stanza_type = None, stanza_id = None,
                            error = None, error_cond = None):
        """Initialize an `Iq` object.

        :Parameters:
            - `element`: XML element of this stanza.
            - `from_jid`: sender address.
            - `to_jid`: recipient address.
            - `stanza_type`: staza type: one of: "get", "set", "result"
              or "error".
            - `stanza_id`: stanza id -- value of stanza's "id" attribute. If
              not given, then unique for the session value is generated.
            - `error`: error object. Ignored if `stanza_type` is not "error".
            - `error_cond`: error condition name. Ignored if `stanza_type` is
              not "error" or `error` is not None.
        :Types:
            - `element`: :etree:`ElementTree.Element`
            - `from_jid`: `str`
            - `to_jid`: `str`
            - `stanza_type`: `str`
            - `stanza_id`: `str`
            - `error`: `xmppwire.error.StanzaErrorElement`
            - `error_cond`: `str`"""
        # pylint: disable-msg=R0913
        if element is None:
            element = "iq"
            if stanza_type not in IQ_TYPES:
                raise ValueError("Invalid iq type: {0!r}".format(stanza_type))
        elif not isinstance(element, ElementClass):
            raise TypeError("Couldn't make Iq from " + repr(element))
        Stanza.__init__(self, element, from_jid = from_jid, to_jid = to_jid,
                        stanza_type = stanza_type, stanza_id = stanza_id,
                        error = error, error_cond = error_cond)

    def make_error_response(self, cond):
        """Create error response for the a "get" or "set" iq stanza.

        :Parameters:
            - `cond`: error condition name, as defined in XMPP specification.

        :return: new `Iq` object with the same "id" as self, "from" and "to"
            attributes swapped, type="error" and containing <error /> element
            plus payload of `self`.
        :returntype: `Iq`"""

        if self.stanza_type not in ("set", "get"):
            raise ValueError("Errors may only be generated for"
                                                " 'set' or 'get' iq")

        stanza = Iq(stanza_type = "error", from_jid = self.to_jid,
                        to_jid = self.from_jid, stanza_id = self.stanza_id,
                        error_cond = cond)
        for payload in self.get_all_payload():
            stanza.add_payload(payload.copy())
        return stanza

    def make_result_response(self):
        """Create result response for the a "get" or "set" iq stanza.

        :return: new `Iq` object with the same "id" as self, "from" and "to"
            attributes replaced and type="result".
        :returntype: `Iq`"""

        if self.stanza_type not in ("set", "get"):
            raise ValueError("Results may only be generated for"
                                                        " 'set' or 'get' iq")
        stanza = Iq(stanza_type = "result", from_jid = self.to_jid,
                        to_jid = self.from_jid, stanza_id = self.stanza_id)
        return stanza

    def get_query(self):
        """Get the first payload element of the stanza, or `None`.

        :returntype: :etree:`ElementTree.Element`"""
        payload = self.get_payload(None)
        if payload is None:
            return None
        if isinstance(payload, XMLPayload):
            return payload.element
        return payload.as_xml()

    def get_query_ns(self):
        """Get the namespace of the stanza payload, or `None`.

        :returntype: `str`"""
        query = self.get_query()
        if query is None or not query.tag.startswith("{"):
            return None
        return query.tag[1:].split("}", 1)[0]

# vi: sts=4 et sw=4
