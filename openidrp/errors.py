"""Exceptions raised by the relying party.

Every error carries a numeric C{code}, so callers can branch on the
kind of failure without inspecting the exception class.
"""

__all__ = [
    'OpenIDError',
    'InvalidValue',
    'MissingData',
    'HTTPSRequired',
    'InvalidDefinition',
    'HTTPError',
    'DiscoveryError',
    'AlreadySigned',
    'VerificationError',
    'LoadError',
    'ProviderError',
    'NoClaimedID',
]

INVALID_VALUE = 201
MISSING_DATA = 202
HTTPS_REQUIRED = 203
INVALID_DEFINITION = 204
HTTP_ERROR = 205
DISCOVERY_ERROR = 206
ALREADY_SIGNED = 207
VERIFICATION_ERROR = 208
LOAD_ERROR = 209
OPENID_ERROR = 210


class OpenIDError(Exception):
    """Base class of all relying party errors.

    @cvar code: The error code of this kind of failure.
    @type code: int
    """
    code = OPENID_ERROR

    def __init__(self, message, code=None):
        Exception.__init__(self, message)
        if code is not None:
            self.code = code

    def __repr__(self):
        return '<%s %s: %s>' % (self.__class__.__name__, self.code, self)


class InvalidValue(OpenIDError):
    """A field has a malformed or disallowed value."""
    code = INVALID_VALUE


class MissingData(OpenIDError):
    """A required field is absent."""
    code = MISSING_DATA


class HTTPSRequired(OpenIDError):
    """An unencrypted session was requested over a non-TLS endpoint."""
    code = HTTPS_REQUIRED


class InvalidDefinition(OpenIDError):
    """A pluggable class doesn't implement its required interface."""
    code = INVALID_DEFINITION


class HTTPError(OpenIDError):
    """A HTTP request failed."""
    code = HTTP_ERROR


class DiscoveryError(OpenIDError):
    """No usable endpoint was found or the OP isn't authorized."""
    code = DISCOVERY_ERROR


class AlreadySigned(OpenIDError):
    code = ALREADY_SIGNED


class VerificationError(OpenIDError):
    """Association handle or endpoint doesn't match the message."""
    code = VERIFICATION_ERROR


class LoadError(OpenIDError):
    """A stored item couldn't be loaded."""
    code = LOAD_ERROR


class ProviderError(OpenIDError):
    """The OpenID provider responded with C{openid.mode=error}."""
    code = OPENID_ERROR


class NoClaimedID(MissingData):
    """A positive 2.0 assertion doesn't contain C{openid.claimed_id}."""
