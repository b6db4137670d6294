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

"""
xmppwire - threaded XMPP client connection
==========================================

Project Information
-------------------

xmppwire is a Python implementation of the client side of the XMPP
protocol (`RFC 3920`_) core: a persistent connection to the server,
legacy (`XEP-0078`_) authentication and a live stream of stanzas, with
the asynchronous responses available to synchronous-looking calls.

Basic components
----------------

XMPP Data
---------

The stanzas are represented by the `message.Message`, `iq.Iq` and
`presence.Presence` classes (all derived from `stanza.Stanza`). Their XML
payload is bound via the `stanzapayload.StanzaPayload` interface.

The stream
----------

The XML stream is encoded and decoded by `codec.StreamCodec`, which uses
`xmppserializer.StreamSerializer` for output and `xmppparser.StreamReader`
for input.

Connections
-----------

`connection.Connection` opens the socket (`resolver.default_socket_factory`
by default), starts the `transport.TCPTransport` with its reader and writer
threads and provides the session operations: `connection.Connection.login`,
`connection.Connection.send`, the roster and the listeners.

Received stanzas are passed by the `dispatcher.Dispatcher` to the packet
listeners and to the `collector.PacketCollector` objects, which let
a thread wait for a response::

    collector = connection.create_packet_collector(
                                        filters.StanzaIDFilter(request.stanza_id))
    try:
        connection.send(request)
        response = collector.next_result(5)
    finally:
        collector.cancel()

Component configuration
-----------------------

Timeouts, the socket factory, the DNS resolver, the diagnostic tap
(`debug.StreamDebugger`) and other parameters are held by
a `settings.XMPPSettings` object, also used as a simple form of dependency
injection.

.. _RFC 3920: http://www.ietf.org/rfc/rfc3920.txt
.. _XEP-0078: http://xmpp.org/extensions/xep-0078.html
"""

__docformat__ = "restructuredtext en"

# vi: sts=4 et sw=4
