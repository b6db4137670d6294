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


"""Serialization of the outgoing XMPP stream.

Stanzas are written without repeating the namespace declarations made on
the stream root element: the stanza namespace is the default one, the
stream namespace is bound to the 'stream' prefix and any extra prefixes
configured for the stream are declared once, in the stream head. Other
namespaces are declared on the first element which uses them."""

__docformat__ = "restructuredtext en"

import re
from xml.sax.saxutils import escape, quoteattr

from .constants import STANZA_CLIENT_NS, STANZA_NAMESPACES, STREAM_NS, XML_NS

ROOT_PREFIXES = {
        STREAM_NS: "stream",
        XML_NS: "xml",
    }

CONTROL_CHARACTERS_RE = re.compile(r"[\000-\010\013\014\016-\037]")

def replace_control_characters(data):
    """Replace characters not allowed in XML 1.0 with U+FFFD."""
    return CONTROL_CHARACTERS_RE.sub("\ufffd", data)

class StreamSerializer(object):
    """Serializer of a single outgoing stream.

    `head` must be called before any stanza is serialized. The prefixes
    declared there stay valid for the whole stream, so an instance must
    not be reused for another stream.

    :Ivariables:
        - `stanza_namespace`: the default namespace of the stream
        - `_root_scope`: namespace to prefix mapping declared by the stream
          head, the default namespace maps to ``""``
        - `_prefix_counter`: number used for the next generated prefix
    :Types:
        - `stanza_namespace`: `str`
        - `_root_scope`: `dict`
        - `_prefix_counter`: `int`
    """
    def __init__(self, stanza_namespace = STANZA_CLIENT_NS,
                                                    extra_prefixes = None):
        """
        :Parameters:
            - `stanza_namespace`: the stanza namespace of the stream
            - `extra_prefixes`: namespace to prefix mapping to declare on
              the stream root element
        :Types:
            - `stanza_namespace`: `str`
            - `extra_prefixes`: `dict`
        """
        self.stanza_namespace = stanza_namespace
        self._extra_prefixes = {}
        if extra_prefixes:
            for namespace, prefix in extra_prefixes.items():
                if (not prefix or prefix in ("stream", "xml")
                        or namespace in ROOT_PREFIXES
                        or namespace in STANZA_NAMESPACES):
                    continue
                self._extra_prefixes[namespace] = prefix
        self._root_scope = None
        self._prefix_counter = 1

    @property
    def head_written(self):
        """`True` when the stream head has been serialized."""
        return self._root_scope is not None

    def head(self, stream_to, stream_from = None, version = None,
                                                            language = None):
        """Serialize the opening tag of the stream root element.

        The 'version' attribute is left out unless given, which starts
        a pre-XMPP 1.0 stream.

        :Parameters:
            - `stream_to`: the 'to' attribute, may be `None`
            - `stream_from`: the 'from' attribute, may be `None`
            - `version`: the stream version, may be `None`
            - `language`: the 'xml:lang' attribute, may be `None`

        :returntype: `str`"""
        scope = dict(ROOT_PREFIXES)
        scope.update(self._extra_prefixes)
        scope[self.stanza_namespace] = ""
        attributes = [("version", version), ("from", stream_from),
                        ("to", stream_to), ("xml:lang", language)]
        parts = ["<stream:stream"]
        for name, value in attributes:
            if value:
                parts.append(" {0}={1}".format(name, quoteattr(value)))
        for namespace, prefix in sorted(scope.items(),
                                                key = lambda x: x[1]):
            if prefix == "xml":
                continue
            if prefix:
                parts.append(" xmlns:{0}={1}".format(prefix,
                                                        quoteattr(namespace)))
            else:
                parts.append(" xmlns={0}".format(quoteattr(namespace)))
        parts.append(">")
        self._root_scope = scope
        return "".join(parts)

    def tail(self):
        """Serialize the closing tag of the stream root element.

        :returntype: `str`"""
        return "</stream:stream>"

    def stanza(self, element):
        """Serialize a stanza (a child of the stream root element).

        :Parameters:
            - `element`: the stanza element
        :Types:
            - `element`: :etree:`ElementTree.Element`

        :returntype: `str`
        :raise RuntimeError: when the stream head was not serialized yet"""
        if self._root_scope is None:
            raise RuntimeError("Stream head must be serialized first")
        parts = []
        self._write_element(element, dict(self._root_scope), parts, True)
        return replace_control_characters("".join(parts))

    def _split(self, name):
        """Split a '{namespace}local' name.

        Any of the stanza namespaces is replaced with the namespace of this
        stream.

        :return: namespace (`None` for no namespace) and the local name"""
        if not name.startswith("{"):
            return None, name
        namespace, local = name[1:].split("}", 1)
        if namespace in STANZA_NAMESPACES:
            namespace = self.stanza_namespace
        return namespace, local

    def _new_prefix(self, scope):
        """Generate a prefix not bound in `scope`."""
        used = set(scope.values())
        while True:
            prefix = "ns{0}".format(self._prefix_counter)
            self._prefix_counter += 1
            if prefix not in used:
                return prefix

    def _write_element(self, element, scope, parts, top):
        """Append serialized `element` to `parts`.

        `scope` is the namespace to prefix mapping valid for the element
        and is modified with the declarations made on it."""
        namespace, local = self._split(element.tag)
        if namespace is None:
            raise ValueError("Element with no namespace: {0!r}"
                                                        .format(element.tag))
        declarations = []
        prefix = scope.get(namespace)
        if prefix is None:
            for old_namespace, old_prefix in list(scope.items()):
                if old_prefix == "":
                    del scope[old_namespace]
            scope[namespace] = prefix = ""
            declarations.append(" xmlns={0}".format(quoteattr(namespace)))
        tag = prefix + ":" + local if prefix else local

        attributes = []
        for name, value in element.items():
            attr_ns, attr_local = self._split(name)
            if attr_ns is not None:
                attr_prefix = scope.get(attr_ns)
                if not attr_prefix:
                    attr_prefix = self._new_prefix(scope)
                    scope[attr_ns] = attr_prefix
                    declarations.append(" xmlns:{0}={1}".format(attr_prefix,
                                                        quoteattr(attr_ns)))
                attr_local = attr_prefix + ":" + attr_local
            attributes.append(" {0}={1}".format(attr_local, quoteattr(value)))

        parts.append("<" + tag)
        parts.extend(attributes)
        parts.extend(declarations)
        children = list(element)
        if not children and not element.text:
            parts.append("/>")
        else:
            parts.append(">")
            if element.text:
                parts.append(escape(element.text))
            for child in children:
                self._write_element(child, dict(scope), parts, False)
            parts.append("</{0}>".format(tag))
        if not top and element.tail:
            parts.append(escape(element.tail))

def serialize(element):
    """Serialize a stanza or payload element, as it would appear on
    a 'jabber:client' stream.

    For debugging and logging.

    :Parameters:
        - `element`: the element to serialize
    :Types:
        - `element`: :etree:`ElementTree.Element`

    :returntype: `str`"""
    serializer = StreamSerializer()
    serializer.head(None)
    return serializer.stanza(element)

# vi: sts=4 et sw=4
