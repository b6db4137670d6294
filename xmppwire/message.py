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

"""Message XMPP stanza handling

Normative reference:
  - `RFC 3920 <http://www.ietf.org/rfc/rfc3920.txt>`__
"""

__docformat__ = "restructuredtext en"

from .etree import ElementTree, ElementClass
from .stanza import Stanza

MESSAGE_TYPES = ("normal", "chat", "headline", "error", "groupchat")

class Message(Stanza):
    """<message /> stanza class."""
    # pylint: disable-msg=R0902,R0904
    element_name = "message"
    def __init__(self, element = None, from_jid = None, to_jid = None,
                            stanza_type = None, stanza_id = None,
                            error = None, error_cond = None,
                            subject = None, body = None, thread = None):
        """Initialize a `Message` object.

        :Parameters:
            - `element`: XML element of this stanza.
            - `from_jid`: sender address.
            - `to_jid`: recipient address.
            - `stanza_type`: staza type: one of: "normal", "chat",
              "headline", "error", "groupchat"
            - `stanza_id`: stanza id -- value of stanza's "id" attribute. If
              not given, then unique for the session value is generated.
            - `subject`: message subject,
            - `body`: message body.
            - `thread`: message thread id.
            - `error_cond`: error condition name. Ignored if `stanza_type`
              is not "error".
        """
        # pylint: disable-msg=R0913
        self._subject = None
        self._body = None
        self._thread = None
        if element is None:
            element = "message"
        elif not isinstance(element, ElementClass):
            raise TypeError("Couldn't make Message from " + repr(element))

        if stanza_type is not None and stanza_type not in MESSAGE_TYPES:
            raise ValueError("Bad message type: {0!r}".format(stanza_type))

        Stanza.__init__(self, element, from_jid = from_jid, to_jid = to_jid,
                        stanza_type = stanza_type, stanza_id = stanza_id,
                        error = error, error_cond = error_cond)

        if self._element is not None:
            for child in self._element:
                if child.tag == self._ns_prefix + "subject":
                    self._subject = child.text
                elif child.tag == self._ns_prefix + "body":
                    self._body = child.text
                elif child.tag == self._ns_prefix + "thread":
                    self._thread = child.text
        if subject is not None:
            self._subject = subject
        if body is not None:
            self._body = body
        if thread is not None:
            self._thread = thread

    def as_xml(self):
        """Return the XML stanza representation.

        :returntype: :etree:`ElementTree.Element`"""
        result = Stanza.as_xml(self)
        for name in ("subject", "body", "thread"):
            value = getattr(self, "_" + name)
            if value:
                child = ElementTree.SubElement(result, self._ns_prefix + name)
                child.text = value
        return result

    @property
    def subject(self): # pylint: disable-msg=E0202
        """Message subject."""
        return self._subject

    @property
    def body(self): # pylint: disable-msg=E0202
        """Message body."""
        return self._body

    @property
    def thread(self): # pylint: disable-msg=E0202
        """Message thread id."""
        return self._thread

# vi: sts=4 et sw=4
