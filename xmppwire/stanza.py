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

"""General XMPP Stanza handling.

Normative reference:
  - `RFC 3920 <http://www.ietf.org/rfc/rfc3920.txt>`__
"""

__docformat__ = "restructuredtext en"

import random
import itertools

from .etree import ElementTree, ElementClass
from .constants import STANZA_CLIENT_NS, STANZA_NAMESPACES
from .stanzapayload import StanzaPayload, XMLPayload, payload_factory
from .stanzapayload import payload_class_for_element_name
from .xmppserializer import serialize

_ERROR_QNAMES = frozenset("{{{0}}}error".format(namespace)
                                    for namespace in STANZA_NAMESPACES)

_ID_COUNTER = itertools.count(random.randrange(1000000))

def gen_id():
    """Generate stanza id unique for the session.

    :return: the new id."""
    return "xw{0}".format(next(_ID_COUNTER))

class Stanza(object):
    """Base class for all XMPP stanzas.

    A stanza is not modified after it was passed to a connection for
    sending or decoded from the stream.

    :Properties:
        - `from_jid`: source address of the stanza
        - `to_jid`: destination address of the stanza
        - `stanza_type`: staza type: one of: "get", "set", "result" or "error".
        - `stanza_id`: stanza id
        - `error`: error element of an "error" stanza
    :Ivariables:
        - `_payload`: the stanza payload
        - `_error`: error associated a stanza of type "error"
        - `_namespace`: namespace of this stanza element
    :Types:
        - `from_jid`: `str`
        - `to_jid`: `str`
        - `stanza_type`: `str`
        - `stanza_id`: `str`
        - `_payload`: `list` of `StanzaPayload`
        - `_error`: `xmppwire.error.StanzaErrorElement`"""
    # pylint: disable-msg=R0902
    element_name = "Unknown"
    def __init__(self, element, from_jid = None, to_jid = None,
                            stanza_type = None, stanza_id = None,
                            error = None, error_cond = None):
        """Initialize a Stanza object.

        :Parameters:
            - `element`: XML element of this stanza, or element name for a new
              stanza. If element is given it must not be modified later.
            - `from_jid`: sender address.
            - `to_jid`: recipient address.
            - `stanza_type`: staza type: one of: "get", "set", "result"
                                                                or "error".
            - `stanza_id`: stanza id -- value of stanza's "id" attribute. If
              not given for a new stanza, then unique for the session value
              is generated.
            - `error`: error object. Ignored if `stanza_type` is not "error".
            - `error_cond`: error condition name. Ignored if `stanza_type` is
              not "error" or `error` is not None.
        :Types:
            - `element`: `str` or :etree:`ElementTree.Element`
            - `from_jid`: `str`
            - `to_jid`: `str`
            - `stanza_type`: `str`
            - `stanza_id`: `str`
            - `error`: `xmppwire.error.StanzaErrorElement`
            - `error_cond`: `str`"""
        # pylint: disable-msg=R0913
        self._error = None
        self._from_jid = None
        self._to_jid = None
        self._stanza_type = None
        self._stanza_id = None
        if isinstance(element, ElementClass):
            self._element = element
            self._dirty = False
            self._decode_attributes()
            if element.tag.startswith("{"):
                self._namespace, self.element_name = element.tag[1:].split("}")
            else:
                self._namespace = STANZA_CLIENT_NS
                self.element_name = element.tag
            self._payload = None
        else:
            self._element = None
            self._dirty = True
            self.element_name = str(element)
            self._namespace = STANZA_CLIENT_NS
            self._payload = []
            if stanza_id is None:
                stanza_id = gen_id()

        self._ns_prefix = "{{{0}}}".format(self._namespace)
        self._element_qname = self._ns_prefix + self.element_name

        if from_jid is not None:
            self._from_jid = str(from_jid)

        if to_jid is not None:
            self._to_jid = str(to_jid)

        if stanza_type:
            self._stanza_type = str(stanza_type)

        if stanza_id:
            self._stanza_id = str(stanza_id)

        if self._stanza_type == "error":
            from .error import StanzaErrorElement
            if error:
                self._error = error
            elif error_cond:
                self._error = StanzaErrorElement(error_cond)

    def _decode_attributes(self):
        """Decode attributes of the stanza XML element
        and put them into the stanza properties."""
        self._from_jid = self._element.get('from')
        self._to_jid = self._element.get('to')
        self._stanza_type = self._element.get('type')
        self._stanza_id = self._element.get('id')
        if self._stanza_type == "error":
            self._decode_error()

    def _decode_error(self):
        """Decode the <error/> child of an "error" stanza."""
        from .error import StanzaErrorElement
        for child in self._element:
            if child.tag in _ERROR_QNAMES:
                self._error = StanzaErrorElement(child)
                break

    def serialize(self):
        """Serialize the stanza into an XML string.

        :return: serialized stanza.
        :returntype: `str`"""
        return serialize(self.get_xml())

    def as_xml(self):
        """Return the XML stanza representation.

        Always return an independent copy of the stanza XML representation,
        which can be freely modified without affecting the stanza.

        :returntype: :etree:`ElementTree.Element`"""
        attrs = {}
        if self._from_jid:
            attrs['from'] = self._from_jid
        if self._to_jid:
            attrs['to'] = self._to_jid
        if self._stanza_type:
            attrs['type'] = self._stanza_type
        if self._stanza_id:
            attrs['id'] = self._stanza_id
        element = ElementTree.Element(self._element_qname, attrs)
        if self._payload is None:
            self.decode_payload()
        for payload in self._payload:
            element.append(payload.as_xml())
        if self._error:
            element.append(self._error.as_xml(
                                        stanza_namespace = self._namespace))
        return element

    def get_xml(self):
        """Return the XML stanza representation.

        This returns the original or cached XML representation, which
        may be much more efficient than `as_xml`.

        Result of this function should never be modified.

        :returntype: :etree:`ElementTree.Element`"""
        if not self._dirty:
            return self._element
        element = self.as_xml()
        self._element = element
        self._dirty = False
        return element

    def decode_payload(self, specialize = False):
        """Decode payload from the element passed to the stanza constructor.

        Iterates over stanza children and creates StanzaPayload objects for
        them. Called automatically by `get_payload()` and other methods that
        access the payload.

        For the `Stanza` class stanza namespace child elements will also be
        included as the payload. For subclasses these are not considered
        payload."""
        if self._payload is not None:
            # already decoded
            return
        if self._element is None:
            raise ValueError("This stanza has no element to decode")
        payload = []
        if specialize:
            factory = payload_factory
        else:
            factory = XMLPayload
        for child in self._element:
            if self.__class__ is not Stanza:
                if child.tag.startswith(self._ns_prefix):
                    continue
            payload.append(factory(child))
        self._payload = payload

    @property
    def from_jid(self): # pylint: disable-msg=E0202
        """Source address of the stanza.

        :return: the 'from' address of the stanza or `None`
        :returntype: `str`"""
        return self._from_jid

    @property
    def to_jid(self): # pylint: disable-msg=E0202
        """Destination address of the stanza.

        :return: the 'to' address of the stanza or `None`
        :returntype: `str`"""
        return self._to_jid

    @property
    def stanza_type(self): # pylint: disable-msg=E0202
        """Stanza type.

        :return: value of stanza 'type' attribute or `None`
        :returntype: `str`"""
        return self._stanza_type

    @property
    def stanza_id(self): # pylint: disable-msg=E0202
        """Stanza id.

        :return: value of stanza 'id' attribute or `None`
        :returntype: `str`"""
        return self._stanza_id

    @property
    def error(self): # pylint: disable-msg=E0202
        """Stanza error element.

        :return: the error element or `None`
        :returntype: `xmppwire.error.StanzaErrorElement`"""
        return self._error

    def set_payload(self, payload):
        """Set stanza payload to a single item.

        All current stanza content of will be dropped.

        :Parameters:
            - `payload`: XML element or stanza payload object to use
        :Types:
            - `payload`: :etree:`ElementTree.Element` or `StanzaPayload`
        """
        if isinstance(payload, ElementClass):
            self._payload = [ XMLPayload(payload) ]
        elif isinstance(payload, StanzaPayload):
            self._payload = [ payload ]
        else:
            raise TypeError("Bad payload type")
        self._dirty = True

    def add_payload(self, payload):
        """Add new the stanza payload.

        :Parameters:
            - `payload`: XML element or stanza payload object to add
        :Types:
            - `payload`: :etree:`ElementTree.Element` or `StanzaPayload`
        """
        if self._payload is None:
            self.decode_payload()
        if isinstance(payload, ElementClass):
            self._payload.append(XMLPayload(payload))
        elif isinstance(payload, StanzaPayload):
            self._payload.append(payload)
        else:
            raise TypeError("Bad payload type")
        self._dirty = True

    def get_all_payload(self, specialize = False):
        """Return list of stanza payload objects.

        :Parameters:
            - `specialize`: If `True`, then return objects of specialized
              `StanzaPayload` classes whenever possible, otherwise the
              representation already available will be used (often
              `XMLPayload`)

        :Returntype: `list` of `StanzaPayload`
        """
        if self._payload is None:
            self.decode_payload(specialize)
        elif specialize:
            for i, payload in enumerate(self._payload):
                if isinstance(payload, XMLPayload):
                    klass = payload_class_for_element_name(
                                                        payload.element.tag)
                    if klass is not XMLPayload:
                        payload = klass.from_xml(payload.element)
                        self._payload[i] = payload
        return list(self._payload)

    def get_payload(self, payload_class, payload_key = None,
                                                        specialize = False):
        """Get the first payload item matching the given class
        and optional key.

        Payloads may be addressed using a specific payload class or
        via the generic `XMLPayload` element, though the `XMLPayload`
        representation is available only as long as the element is not
        requested by a more specific type.

        :Parameters:
            - `payload_class`: requested payload class, a subclass of
              `StanzaPayload`. If `None` get the first payload in whatever
              class is available.
            - `payload_key`: optional key for additional match. When used
              with `payload_class` = `XMLPayload` this selects the element to
              match
            - `specialize`: If `True`, and `payload_class` is `None` then
              return object of a specialized `StanzaPayload` subclass whenever
              possible
        :Types:
            - `payload_class`: `StanzaPayload`
            - `specialize`: `bool`

        :Return: payload element found or `None`
        :Returntype: `StanzaPayload`
        """
        if self._payload is None:
            self.decode_payload()
        if payload_class is None:
            if self._payload:
                payload = self._payload[0]
                if specialize and isinstance(payload, XMLPayload):
                    klass = payload_class_for_element_name(
                                                        payload.element.tag)
                    if klass is not XMLPayload:
                        payload = klass.from_xml(payload.element)
                        self._payload[0] = payload
                return payload
            else:
                return None
        for i, payload in enumerate(self._payload):
            if isinstance(payload, payload_class):
                if payload_key is not None:
                    if payload.handler_key != payload_key:
                        continue
                return payload
            if isinstance(payload, XMLPayload) and payload_class is not XMLPayload:
                klass = payload_class_for_element_name(payload.element.tag)
                if klass is not payload_class:
                    continue
                payload = payload_class.from_xml(payload.element)
                self._payload[i] = payload
                if payload_key is not None:
                    if payload.handler_key != payload_key:
                        continue
                return payload
        return None

    def __repr__(self):
        return "<{0} {1!r}>".format(self.__class__.__name__, self.serialize())

# vi: sts=4 et sw=4
