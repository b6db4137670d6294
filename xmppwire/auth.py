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

"""Legacy (non-SASL) authentication.

Normative reference:
  - `XEP-0078 <http://xmpp.org/extensions/xep-0078.html>`__
"""

__docformat__ = "restructuredtext en"

import hashlib
import logging

from .etree import ElementTree
from .constants import IQ_AUTH_NS
from .iq import Iq
from .stanzapayload import StanzaPayload, payload_element_name
from .filters import StanzaIDFilter
from .exceptions import NoResponseError, AuthenticationFailedError
from .exceptions import ProtocolError, UnsupportedMechanismError

logger = logging.getLogger("xmppwire.auth")

IQ_AUTH_QNP = "{{{0}}}".format(IQ_AUTH_NS)
QUERY_TAG = IQ_AUTH_QNP + "query"

AUTH_FIELDS = ("username", "password", "digest", "resource")

@payload_element_name(QUERY_TAG)
class AuthPayload(StanzaPayload):
    """The ``jabber:iq:auth`` query.

    A field which is `None` is not included in the element; an empty
    string is included as an empty element (this is how the server offers
    the fields in the discovery response).

    :Ivariables:
        - `username`: the user name
        - `password`: the plain text password
        - `digest`: the password digest
        - `resource`: the resource
    :Types:
        - `username`: `str`
        - `password`: `str`
        - `digest`: `str`
        - `resource`: `str`
    """
    # pylint: disable=W0231
    def __init__(self, username = None, password = None, digest = None,
                                                        resource = None):
        self.username = username
        self.password = password
        self.digest = digest
        self.resource = resource

    @classmethod
    def from_xml(cls, element):
        if element.tag != QUERY_TAG:
            raise ValueError("{0!r} is not a jabber:iq:auth query"
                                                        .format(element))
        result = cls()
        for child in element:
            if not child.tag.startswith(IQ_AUTH_QNP):
                continue
            name = child.tag[len(IQ_AUTH_QNP):]
            if name in AUTH_FIELDS:
                value = child.text.strip() if child.text else ""
                setattr(result, name, value)
        return result

    def as_xml(self):
        element = ElementTree.Element(QUERY_TAG)
        for name in AUTH_FIELDS:
            value = getattr(self, name)
            if value is None:
                continue
            child = ElementTree.SubElement(element, IQ_AUTH_QNP + name)
            if value:
                child.text = value
        return element

    def __repr__(self):
        fields = ["{0}={1!r}".format(name, getattr(self, name))
                    for name in AUTH_FIELDS
                        if name != "password" and getattr(self, name)
                                                                is not None]
        return "<AuthPayload {0}>".format(" ".join(fields))

def make_digest(stream_id, password):
    """Compute the legacy authentication digest.

    :Parameters:
        - `stream_id`: the stream id assigned by the server
        - `password`: the password
    :Types:
        - `stream_id`: `str`
        - `password`: `str`

    :return: hex-encoded SHA-1 of the stream id and the password
    :returntype: `str`"""
    data = (stream_id or "") + password
    return hashlib.sha1(data.encode("utf-8")).hexdigest()

class AuthNegotiator(object):
    """Performs the legacy authentication exchange over a connection.

    The negotiator does not change the connection state, that is done
    by the `xmppwire.connection.Connection` using the result.

    :Ivariables:
        - `connection`: the connection to authenticate
    :Types:
        - `connection`: `xmppwire.connection.Connection`
    """
    def __init__(self, connection):
        self.connection = connection

    def _request(self, request, no_response_error):
        """Send an iq request and wait for the response.

        The collector is cancelled whatever the outcome.

        :return: the result response
        :raise ProtocolError: on an error response"""
        timeout = self.connection.settings["packet_reply_timeout"]
        collector = self.connection.create_packet_collector(
                                        StanzaIDFilter(request.stanza_id))
        try:
            self.connection.send(request)
            response = collector.next_result(timeout)
        finally:
            collector.cancel()
        if response is None:
            raise no_response_error
        if response.stanza_type == "error":
            raise ProtocolError(response.error, response)
        return response

    def discover(self, username):
        """Ask the server for the authentication fields it accepts.

        :return: the offered fields
        :returntype: `AuthPayload`"""
        request = Iq(stanza_type = "get")
        request.add_payload(AuthPayload(username = username))
        response = self._request(request, NoResponseError(
                                        "No response from the server."))
        offer = response.get_payload(AuthPayload)
        if offer is None:
            return AuthPayload()
        return offer

    def login(self, username, password, resource):
        """Authenticate with the user name and password.

        The password digest is used when the server offers it, the plain
        text password otherwise.

        :Parameters:
            - `username`: the user name (already normalized)
            - `password`: the password
            - `resource`: the resource to bind
        :Types:
            - `username`: `str`
            - `password`: `str`
            - `resource`: `str`

        :return: the full address of the user
        :returntype: `str`
        :raise NoResponseError: no discovery response
        :raise AuthenticationFailedError: no authentication response
        :raise ProtocolError: error response from the server
        :raise UnsupportedMechanismError: neither the digest nor the password
            offered"""
        offer = self.discover(username)
        proof = AuthPayload(username = username, resource = resource)
        if offer.digest is not None:
            logger.debug("Using digest authentication")
            proof.digest = make_digest(self.connection.connection_id,
                                                                    password)
        elif offer.password is not None:
            logger.debug("Using plain text password authentication")
            proof.password = password
        else:
            raise UnsupportedMechanismError("Server does not support"
                                            " compatible authentication"
                                                                " mechanism.")
        request = Iq(stanza_type = "set")
        request.add_payload(proof)
        response = self._request(request, AuthenticationFailedError(
                                                    "Authentication failed."))
        if response.to_jid:
            return response.to_jid
        user = "{0}@{1}".format(username, self.connection.host)
        if resource:
            user += "/" + resource
        return user

    def login_anonymously(self):
        """Authenticate anonymously.

        :return: the address assigned by the server
        :returntype: `str`"""
        request = Iq(stanza_type = "set")
        request.add_payload(AuthPayload())
        response = self._request(request, NoResponseError(
                                            "No response from the server."))
        if response.to_jid:
            return response.to_jid
        payload = response.get_payload(AuthPayload)
        resource = payload.resource if payload is not None else None
        user = self.connection.host
        if resource:
            user += "/" + resource
        return user

# vi: sts=4 et sw=4
