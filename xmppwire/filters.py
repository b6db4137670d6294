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

"""Stanza filters.

A filter is a pure predicate over stanzas: any object with a `match`
method (a `PacketFilter`) or a plain callable returning a boolean.
"""

__docformat__ = "restructuredtext en"

from abc import ABCMeta, abstractmethod

from .exceptions import InvalidArgumentError

class PacketFilter(metaclass = ABCMeta):
    """Base class for stanza filters."""
    @abstractmethod
    def match(self, stanza):
        """Check if the stanza is accepted by the filter.

        :Parameters:
            - `stanza`: the stanza to check
        :Types:
            - `stanza`: `xmppwire.stanza.Stanza`

        :returntype: `bool`"""
        raise NotImplementedError

    def __call__(self, stanza):
        return self.match(stanza)

    def __and__(self, other):
        return AndFilter(self, other)

    def __or__(self, other):
        return OrFilter(self, other)

    def __invert__(self):
        return NotFilter(self)

def filter_matches(stanza_filter, stanza):
    """Apply a filter, which may be `None` (accept all) or any callable.

    :returntype: `bool`"""
    if stanza_filter is None:
        return True
    return bool(stanza_filter(stanza))

class AcceptAllFilter(PacketFilter):
    """Filter accepting every stanza."""
    def match(self, stanza):
        return True

    def __repr__(self):
        return "AcceptAllFilter()"

class StanzaIDFilter(PacketFilter):
    """Filter accepting stanzas with the given id."""
    def __init__(self, stanza_id):
        if stanza_id is None:
            raise InvalidArgumentError("Stanza id must not be None")
        self.stanza_id = stanza_id

    def match(self, stanza):
        return stanza.stanza_id == self.stanza_id

    def __repr__(self):
        return "StanzaIDFilter({0!r})".format(self.stanza_id)

class StanzaClassFilter(PacketFilter):
    """Filter accepting instances of the given stanza class (or classes)."""
    def __init__(self, stanza_class):
        self.stanza_class = stanza_class

    def match(self, stanza):
        return isinstance(stanza, self.stanza_class)

    def __repr__(self):
        return "StanzaClassFilter({0!r})".format(self.stanza_class)

class FromMatchesFilter(PacketFilter):
    """Filter accepting stanzas sent from the given address.

    If the address has no resource, any resource of the bare address
    matches. Comparison is case-insensitive."""
    def __init__(self, address):
        self.address = address.lower()
        self.bare = "/" not in address

    def match(self, stanza):
        from_jid = stanza.from_jid
        if from_jid is None:
            return False
        from_jid = from_jid.lower()
        if self.bare:
            from_jid = from_jid.split("/", 1)[0]
        return from_jid == self.address

    def __repr__(self):
        return "FromMatchesFilter({0!r})".format(self.address)

class AndFilter(PacketFilter):
    """Filter accepting stanzas accepted by all the filters given."""
    def __init__(self, *filters):
        self.filters = list(filters)

    def match(self, stanza):
        return all(filter_matches(flt, stanza) for flt in self.filters)

    def __repr__(self):
        return "AndFilter({0})".format(", ".join(repr(f)
                                                        for f in self.filters))

class OrFilter(PacketFilter):
    """Filter accepting stanzas accepted by any of the filters given."""
    def __init__(self, *filters):
        self.filters = list(filters)

    def match(self, stanza):
        return any(filter_matches(flt, stanza) for flt in self.filters)

    def __repr__(self):
        return "OrFilter({0})".format(", ".join(repr(f)
                                                        for f in self.filters))

class NotFilter(PacketFilter):
    """Filter negating another one."""
    def __init__(self, stanza_filter):
        self.filter = stanza_filter

    def match(self, stanza):
        return not filter_matches(self.filter, stanza)

    def __repr__(self):
        return "NotFilter({0!r})".format(self.filter)

# vi: sts=4 et sw=4
