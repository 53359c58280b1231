"""Establishing associations with OpenID providers.

The relying party sends an C{associate} request with its preferred
association and session types. A provider which doesn't support them
answers with an C{unsupported-type} error naming the types it prefers,
the request is then repeated once with those.
"""
import logging
import re

from openidrp.association import Association
from openidrp.constants import (ASSOC_HMAC_SHA1, ASSOC_HMAC_SHA256, MODE_ASSOCIATE, MODE_ERROR, NS_2_0,
                                SESSION_DH_SHA1, SESSION_DH_SHA256, SESSION_NO_ENCRYPTION, VERSION_MAP)
from openidrp.dh import DiffieHellman
from openidrp.errors import HTTPSRequired, InvalidValue, MissingData, OpenIDError
from openidrp.message import Message
from openidrp.oidutil import fromBase64

__all__ = ['AssociationRequest', 'MAX_ATTEMPTS']

_LOGGER = logging.getLogger(__name__)

# Number of association requests sent before giving up
MAX_ATTEMPTS = 2

_HTTPS_RE = re.compile(r'\Ahttps://', re.IGNORECASE)


class AssociationRequest(object):
    """Association handshake with a single OP endpoint.

    @ivar op_url: The OP endpoint URL
    @type op_url: str
    @ivar version: Service type of the endpoint
    @type version: str
    @ivar message: The association request message
    @type message: L{openidrp.message.Message}
    @ivar response: The last association response
    @type response: Optional[L{openidrp.message.Message}]
    """

    def __init__(self, op_url, version, context, dh=None):
        """
        @param op_url: The OP endpoint URL
        @param version: Service type of the endpoint, which determines
            the protocol version
        @param context: Context providing the HTTP fetcher
        @type context: L{openidrp.context.Context}
        @param dh: Diffie-Hellman session, a default one is created if not provided
        @type dh: Optional[L{openidrp.dh.DiffieHellman}]

        @raises InvalidValue: On unknown version.
        """
        if version not in VERSION_MAP:
            raise InvalidValue('Invalid version: %s' % version)

        self.op_url = op_url
        self.version = version
        self.context = context
        self.dh = dh
        self.request_options = {}
        self.response = None

        self.message = Message()
        self.message.set('openid.mode', MODE_ASSOCIATE)
        if VERSION_MAP[version] == NS_2_0:
            self.message.set('openid.ns', NS_2_0)
            self.message.set('openid.assoc_type', ASSOC_HMAC_SHA256)
            self.message.set('openid.session_type', SESSION_DH_SHA256)
        else:
            self.message.set('openid.assoc_type', ASSOC_HMAC_SHA1)
            self.message.set('openid.session_type', SESSION_DH_SHA1)

    def setRequestOptions(self, options):
        self.request_options = options
        return self

    def getAssociationType(self):
        return self.message.get('openid.assoc_type')

    def setAssociationType(self, assoc_type):
        """
        @raises InvalidValue: On unsupported association type.
        """
        if assoc_type not in (ASSOC_HMAC_SHA1, ASSOC_HMAC_SHA256):
            raise InvalidValue('Invalid assoc_type: %s' % assoc_type)
        self.message.set('openid.assoc_type', assoc_type)

    def getSessionType(self):
        return self.message.get('openid.session_type')

    def setSessionType(self, session_type):
        """
        @raises HTTPSRequired: If an unencrypted session is requested
            with an endpoint not using HTTPS.
        @raises InvalidValue: On unsupported session type.
        """
        if session_type == SESSION_NO_ENCRYPTION:
            if not _HTTPS_RE.match(self.op_url):
                raise HTTPSRequired('Un-encrypted sessions require HTTPS')
        elif session_type not in (SESSION_DH_SHA1, SESSION_DH_SHA256):
            raise InvalidValue('Invalid session_type: %s' % session_type)
        self.message.set('openid.session_type', session_type)

    def associate(self):
        """Negotiate an association with the provider.

        @return: The association or C{None} if the provider refused to
            associate.
        @rtype: Optional[L{openidrp.association.Association}]

        @raises HTTPError: If the request fails.
        @raises MissingData: If the provider's response lacks required fields.
        """
        for attempt in range(MAX_ATTEMPTS):
            response = self.sendAssociationRequest()
            self.response = response
            if response.get('assoc_handle') is not None:
                return self.buildAssociation(response)

            if response.get('error_code') != 'unsupported-type' or (
                    response.get('mode') != MODE_ERROR and response.get('error') is None):
                _LOGGER.warning('Server error when requesting an association from %s: %s', self.op_url,
                                response.get('error'))
                return None

            _LOGGER.info('Unsupported association type %s/%s: %s', self.getAssociationType(),
                         self.getSessionType(), response.get('error'))
            try:
                if response.get('assoc_type') is not None:
                    self.setAssociationType(response.get('assoc_type'))
                if response.get('session_type') is not None:
                    self.setSessionType(response.get('session_type'))
            except OpenIDError as error:
                _LOGGER.warning('Server sent unsupported session/association type: %s', error)
                return None

        _LOGGER.warning('Giving up association with %s after %d attempts', self.op_url, MAX_ATTEMPTS)
        return None

    def sendAssociationRequest(self):
        """Send the association request.

        @rtype: L{openidrp.message.Message}
        """
        if self.getSessionType() == SESSION_NO_ENCRYPTION:
            self.message.delete('openid.dh_consumer_public')
            self.message.delete('openid.dh_modulus')
            self.message.delete('openid.dh_gen')
        else:
            self.getDH().init(self.message)

        response = self.context.directRequest(self.op_url, self.message, self.request_options)
        self.context.record('AssociationRequest.sendAssociationRequest', repr(response))
        return response

    def buildAssociation(self, response):
        """Create the association from a successful response.

        @type response: L{openidrp.message.Message}
        @rtype: L{openidrp.association.Association}

        @raises MissingData: If the MAC key is missing.
        @raises InvalidValue: If the MAC key or the provider's public key
            can't be decoded.
        """
        if self.getSessionType() == SESSION_NO_ENCRYPTION:
            mac_key = response.get('mac_key')
            if mac_key is None:
                raise MissingData('Missing mac_key in association response')
            try:
                secret = fromBase64(mac_key)
            except ValueError as error:
                raise InvalidValue('Invalid mac_key in association response: %s' % error)
        else:
            algorithm = self.getAssociationType().replace('HMAC-', '')
            secret = self.getDH().getSharedSecret(response, algorithm)

        expires_in = response.get('expires_in')
        if expires_in is None:
            raise MissingData('Missing expires_in in association response')
        try:
            expires_in = int(expires_in)
        except ValueError:
            raise InvalidValue('Invalid expires_in in association response: %s' % expires_in)

        association = Association.fromExpiresIn(self.op_url, response.get('assoc_handle'), secret, expires_in,
                                                self.getAssociationType())
        _LOGGER.debug('Created association %s with %s', association, self.op_url)
        return association

    def getDH(self):
        if self.dh is None:
            self.dh = DiffieHellman()
        return self.dh
