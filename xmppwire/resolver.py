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

"""Server address resolution and socket creation.

Normative reference:
  - `RFC 1035 <http://www.ietf.org/rfc/rfc1035.txt>`__
"""

__docformat__ = "restructuredtext en"

import re
import socket
import logging

from socket import AF_INET, AF_INET6

import dns.resolver
import dns.exception

from .settings import XMPPSettings
from .exceptions import HostUnresolvableError, TransportIOError

logger = logging.getLogger("xmppwire.resolver")

# should match all valid IP addresses, but can pass some false-positives,
# which are not valid domain names
IPV4_RE = re.compile(r"^\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}$")
IPV6_RE = re.compile(r"^[0-9a-f]{0,4}:[0-9a-f:]{0,29}:([0-9a-f]{0,4}"
                                            r"|\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3})$")

def is_ipv6_available():
    """Check if IPv6 is available.

    :Return: `True` when an IPv6 socket can be created.
    """
    try:
        socket.socket(socket.AF_INET6).close()
    except (socket.error, AttributeError):
        return False
    return True

class BlockingResolver(object):
    """Blocking resolver using the DNSPython package.

    :Ivariables:
        - `settings`: the settings
    :Types:
        - `settings`: `XMPPSettings`
    """
    def __init__(self, settings = None):
        if settings:
            self.settings = settings
        else:
            self.settings = XMPPSettings()

    def resolve_address(self, hostname):
        """Find the addresses of a host.

        Literal IPv4 and IPv6 addresses are returned as they are.

        :Parameters:
            - `hostname`: the host name or address
        :Types:
            - `hostname`: `str`

        :return: list of (family, address) pairs
        :returntype: `list` of (`int`, `str`)
        :raise HostUnresolvableError: when no address was found"""
        if IPV4_RE.match(hostname):
            return [(AF_INET, hostname)]
        if IPV6_RE.match(hostname.lower()):
            return [(AF_INET6, hostname)]
        if self.settings["ipv6"] and self.settings["ipv4"]:
            rtypes = [("AAAA", AF_INET6), ("A", AF_INET)]
            if not self.settings["prefer_ipv6"]:
                rtypes.reverse()
        elif self.settings["ipv6"]:
            rtypes = [("AAAA", AF_INET6)]
        elif self.settings["ipv4"]:
            rtypes = [("A", AF_INET)]
        else:
            raise HostUnresolvableError("Both IPv4 and IPv6 disabled")
        if not hostname.endswith("."):
            name = hostname + "."
        else:
            name = hostname
        result = []
        exception = None
        for rtype, family in rtypes:
            try:
                answer = dns.resolver.resolve(name, rtype)
            except dns.exception.DNSException as err:
                logger.debug("{0} lookup for {1!r} failed: {2}"
                                                .format(rtype, name, err))
                exception = err
                continue
            for record in answer:
                result.append((family, record.to_text()))
        if not result:
            if exception:
                raise HostUnresolvableError("Could not resolve {0!r}: {1}"
                                                .format(hostname, exception))
            raise HostUnresolvableError("Could not resolve {0!r}"
                                                            .format(hostname))
        logger.debug("Addresses of {0!r}: {1!r}".format(hostname, result))
        return result

def default_socket_factory(host, port, settings):
    """Create a socket connected to the given host and port.

    The host is resolved with the `dns_resolver` from the settings and
    every address found is tried in turn.

    :Parameters:
        - `host`: the server host name or address
        - `port`: the server port
        - `settings`: the settings
    :Types:
        - `host`: `str`
        - `port`: `int`
        - `settings`: `XMPPSettings`

    :return: the connected socket
    :returntype: :std:`socket.socket`
    :raise HostUnresolvableError: when the name cannot be resolved
    :raise TransportIOError: when no address accepts the connection"""
    resolver = settings["dns_resolver"]
    addresses = resolver.resolve_address(host)
    last_error = None
    for family, address in addresses:
        logger.debug("Connecting to {0!r}, port {1}".format(address, port))
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            sock.connect((address, port))
        except socket.error as err:
            logger.debug("Connect to {0!r} failed: {1}".format(address, err))
            sock.close()
            last_error = err
            continue
        return sock
    raise TransportIOError("Could not connect to {0}:{1}: {2}"
                                            .format(host, port, last_error))

def _dns_resolver_factory(settings):
    """Create the default DNS resolver object."""
    return BlockingResolver(settings)

XMPPSettings.add_setting("dns_resolver", factory = _dns_resolver_factory,
    type = 'object with "resolve_address" method',
    doc = """The DNS resolver implementation used to find the addresses
of the server host."""
    )
XMPPSettings.add_setting("socket_factory", default = default_socket_factory,
    type = "callable",
    doc = """Callable creating a connected socket:
``socket_factory(host, port, settings)``. Replace it to use a proxy."""
    )
XMPPSettings.add_setting("ipv4", type = bool, default = True,
    doc = """Use IPv4 addresses."""
    )
def _ipv6_factory(settings):
    """Enable IPv6 when it is available."""
    # pylint: disable=W0613
    return is_ipv6_available()

XMPPSettings.add_setting("ipv6", type = bool, factory = _ipv6_factory,
    cache = True,
    doc = """Use IPv6 addresses. By default enabled when IPv6 sockets can be
created."""
    )
XMPPSettings.add_setting("prefer_ipv6", type = bool, default = True,
    doc = """When `True` IPv6 addresses are tried before the IPv4 ones."""
    )

# vi: sts=4 et sw=4
