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

"""XMPP stream encoding and decoding.

`StreamCodec` joins the `StreamSerializer` and the `StreamReader` into the
two operations a transport needs: turning stanzas into bytes and turning
received bytes into a sequence of decoded items.
"""

__docformat__ = "restructuredtext en"

import logging

from .etree import ElementTree
from .constants import STANZA_CLIENT_NS, STANZA_NAMESPACES, XML_LANG_QNAME
from .constants import STREAM_QNP # pylint: disable=E0611
from .xmppserializer import StreamSerializer
from .xmppparser import StreamReader, XMLStreamHandler
from .error import StreamErrorElement
from .exceptions import StreamParseError, FatalStreamError
from .exceptions import StreamErrorException
from .iq import Iq
from .message import Message
from .presence import Presence
from .settings import XMPPSettings

logger = logging.getLogger("xmppwire.codec")

STANZA_CLASSES = {
        "iq": Iq,
        "message": Message,
        "presence": Presence,
        }

class StreamHead(object):
    """The stream root element received from the peer.

    :Ivariables:
        - `stream_id`: the stream 'id'
        - `from_jid`: the stream 'from' address
        - `version`: the stream version, `None` for a legacy stream
        - `language`: xml:lang of the stream
        - `element`: the (empty) root element
    """
    # pylint: disable-msg=R0903
    def __init__(self, element):
        self.element = element
        self.stream_id = element.get("id")
        self.from_jid = element.get("from")
        self.version = element.get("version")
        self.language = element.get(XML_LANG_QNAME)

    def __repr__(self):
        return "<StreamHead id={0!r} from={1!r} version={2!r}>".format(
                                self.stream_id, self.from_jid, self.version)

class StreamEnd(object):
    """End of the received stream.

    :Ivariables:
        - `clean`: `True` if the stream root element was properly closed,
          `False` when the input just ended
    """
    # pylint: disable-msg=R0903
    def __init__(self, clean = True):
        self.clean = clean

    def __repr__(self):
        return "<StreamEnd clean={0!r}>".format(self.clean)

def default_stanza_factory(element):
    """Build a stanza object for a received element.

    :Parameters:
        - `element`: the second-level element from the stream
    :Types:
        - `element`: :etree:`ElementTree.Element`

    :return: the stanza
    :returntype: `Stanza`
    :raise ValueError: if the element is not a stanza"""
    if not element.tag.startswith("{"):
        raise ValueError("Element {0!r} has no namespace".format(element.tag))
    namespace, name = element.tag[1:].split("}", 1)
    if namespace not in STANZA_NAMESPACES:
        raise ValueError("Unexpected element {0!r}".format(element.tag))
    klass = STANZA_CLASSES.get(name)
    if klass is None:
        raise ValueError("Unknown stanza: {0!r}".format(name))
    return klass(element)

class _DecodingHandler(XMLStreamHandler):
    """Collects the events of a `StreamReader` into a list of items."""
    def __init__(self, stanza_factory):
        self.stanza_factory = stanza_factory
        self.items = []

    def stream_start(self, element):
        if element.tag != STREAM_QNP + "stream":
            raise FatalStreamError("Bad stream root element: {0!r}"
                                                        .format(element.tag))
        self.items.append(StreamHead(element))

    def stream_end(self):
        self.items.append(StreamEnd())

    def stream_eof(self):
        self.items.append(StreamEnd(clean = False))

    def stream_element(self, element):
        if element.tag == STREAM_QNP + "error":
            raise StreamErrorException(StreamErrorElement(element))
        if element.tag.startswith(STREAM_QNP):
            logger.debug("Ignoring stream-level element: {0!r}"
                                                        .format(element.tag))
            return
        try:
            stanza = self.stanza_factory(element)
        except (ValueError, TypeError, KeyError) as err:
            self.items.append(StreamParseError(str(err), element))
            return
        self.items.append(stanza)

    def stream_parse_error(self, descr):
        raise FatalStreamError(descr)

class StreamCodec(object):
    """Encoder and decoder of a single XMPP client stream.

    An instance is used for one stream only. The encoding and decoding
    halves are independent and may be used from different threads.

    :Ivariables:
        - `settings`: the settings
        - `stanza_namespace`: the stanza namespace used
        - `_serializer`: the serializer of the outgoing stream
        - `_tail_encoded`: `True` when the stream closing tag was encoded
        - `_reader`: the parser of the incoming stream
        - `_handler`: collects parsed items
        - `_failure`: the fatal error which broke the incoming stream
    """
    def __init__(self, settings = None, stanza_factory = None,
                                        stanza_namespace = STANZA_CLIENT_NS):
        self.settings = settings if settings else XMPPSettings()
        self.stanza_namespace = stanza_namespace
        if stanza_factory is None:
            stanza_factory = default_stanza_factory
        self._serializer = None
        self._tail_encoded = False
        self._handler = _DecodingHandler(stanza_factory)
        self._reader = StreamReader(self._handler)
        self._failure = None

    def encode_head(self, stream_to, stream_from = None, version = None,
                                                            language = None):
        """Encode the opening tag of the outgoing stream.

        No 'version' attribute is sent by default, as the legacy
        authentication is used on the stream.

        :Parameters:
            - `stream_to`: the server domain
            - `stream_from`: the 'from' attribute
            - `version`: the stream version
            - `language`: the default stream language
        :Types:
            - `stream_to`: `str`
            - `stream_from`: `str`
            - `version`: `str`
            - `language`: `str`

        :returntype: `bytes`"""
        self._serializer = StreamSerializer(self.stanza_namespace,
                                    self.settings["extra_ns_prefixes"])
        self._tail_encoded = False
        head = self._serializer.head(stream_to, stream_from,
                                    version = version, language = language)
        return head.encode("utf-8")

    def encode(self, stanza):
        """Encode a stanza for the outgoing stream.

        :Parameters:
            - `stanza`: the stanza to encode
        :Types:
            - `stanza`: `Stanza`

        :returntype: `bytes`"""
        if self._serializer is None:
            raise FatalStreamError("Stream head not encoded yet")
        if self._tail_encoded:
            raise FatalStreamError("Stream already closed")
        return self._serializer.stanza(stanza.get_xml()).encode("utf-8")

    def encode_tail(self):
        """Encode the closing tag of the outgoing stream.

        :return: the closing tag, empty when the stream was not started or
            the tag was already encoded
        :returntype: `bytes`"""
        if self._serializer is None or self._tail_encoded:
            return b""
        self._tail_encoded = True
        return self._serializer.tail().encode("utf-8")

    def feed(self, data):
        """Decode a chunk of the incoming stream.

        :Parameters:
            - `data`: received data, empty on end of input
        :Types:
            - `data`: `bytes`

        :return: decoded items, in stream order: `StreamHead`, `Stanza`,
            `StreamParseError` or `StreamEnd` objects; if the chunk broke
            the stream the last item is the `FatalStreamError`.
        :returntype: `list`
        :raise FatalStreamError: when the stream is already broken"""
        if self._failure is not None:
            raise self._failure
        try:
            self._reader.feed(data)
        except ElementTree.ParseError as err:
            self._failure = FatalStreamError("Malformed XML: {0}".format(err))
        except FatalStreamError as err:
            self._failure = err
        items, self._handler.items = self._handler.items, []
        if not data and not any(isinstance(item, StreamEnd)
                                                        for item in items):
            items.append(StreamEnd(clean = False))
        if self._failure is not None:
            items.append(self._failure)
        return items

# vi: sts=4 et sw=4
