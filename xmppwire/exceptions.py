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

"""Exceptions raised by the xmppwire package.

Failures while a connection is being set up (`HostUnresolvableError`,
`TransportIOError`, `StreamInitError`) are fatal for that connection attempt.
`NoResponseError`, `ProtocolError` and `UnsupportedMechanismError` are raised
by the synchronous request/response operations, `IllegalStateError` when an
operation is requested in the wrong connection state.
"""

__docformat__ = "restructuredtext en"

import logging

class Error(Exception):
    """Base class for all xmppwire exceptions.

    :Ivariables:
        - `code`: legacy (pre-RFC 3920) numeric error code, when one applies
    :Types:
        - `code`: `int`
    """
    code = None

class DNSError(Error):
    """Exception raised when no IP address could be found for a domain
    name."""
    code = 504

class HostUnresolvableError(DNSError):
    """Raised when the server host name cannot be resolved."""

class TransportIOError(Error, IOError):
    """Exception raised on I/O (socket or stream) error."""
    code = 502

class StreamInitError(Error):
    """Raised when the XML stream could not be started."""

class IllegalStateError(Error):
    """Raised when an operation is requested in a connection state which
    does not allow it (e.g. sending over a closed connection)."""

class InvalidArgumentError(Error, ValueError):
    """Raised on invalid arguments passed to a public API call."""

class NoResponseError(Error):
    """Raised when no response was received for a request in the time
    allowed."""

class AuthenticationFailedError(NoResponseError):
    """Raised when the server did not answer the authentication request."""

class UnsupportedMechanismError(Error):
    """Raised when the server offers no authentication mechanism we can
    use."""

class ProtocolError(Error):
    """Raised when the server responded with an error stanza.

    :Ivariables:
        - `error`: the error element received
        - `stanza`: the stanza carrying the error
    :Types:
        - `error`: `xmppwire.error.StanzaErrorElement`
        - `stanza`: `xmppwire.stanza.Stanza`
    """
    def __init__(self, error, stanza = None):
        self.error = error
        self.stanza = stanza
        if error is not None:
            message = error.get_message() or error.condition_name
            if error.text:
                message = "{0}: {1}".format(message, error.text)
        else:
            message = "Error response with no error element"
        Error.__init__(self, message)

    @property
    def condition(self):
        """Error condition name."""
        if self.error is None:
            return None
        return self.error.condition_name

    @property
    def code(self):
        """Legacy error code of the server error."""
        if self.error is None:
            return None
        return self.error.code

class StreamParseError(Error):
    """Raised (or reported to the parsing error callback) when a received
    element cannot be turned into a stanza. The stream itself is still
    usable.

    :Ivariables:
        - `element`: the element which could not be parsed
    """
    def __init__(self, message, element = None):
        Error.__init__(self, message)
        self.element = element

    def log_ignored(self):
        """Mark the error as ignored."""
        logging.getLogger("xmppwire.exceptions").debug(
                            "Unparseable element ignored: {0}".format(self))

class FatalStreamError(Error):
    """Raised on an unrecoverable stream-level error: malformed XML, stream
    closed or a stream error received."""

class StreamErrorException(FatalStreamError):
    """Raised when the peer sent a ``<stream:error/>``.

    :Ivariables:
        - `error`: the stream error received
    :Types:
        - `error`: `xmppwire.error.StreamErrorElement`
    """
    def __init__(self, error):
        self.error = error
        message = error.get_message() or error.condition_name
        if error.text:
            message = "{0}: {1}".format(message, error.text)
        FatalStreamError.__init__(self, message)

# vi: sts=4 et sw=4
