"""Authentication requests sent to the OpenID provider through the
user's browser."""
import logging

from openidrp import oidutil
from openidrp.constants import (MODE_CHECKID_IMMEDIATE, MODE_CHECKID_SETUP, NS_1_1, NS_2_0, NS_2_0_ID_SELECT,
                                SERVICE_2_0_SERVER, VERSION_MAP)
from openidrp.errors import InvalidValue
from openidrp.message import Message
from openidrp.nonce import RETURN_TO_NONCE, Nonce

__all__ = ['AuthRequest']

_LOGGER = logging.getLogger(__name__)


class AuthRequest(object):
    """Builder of the C{checkid_setup} or C{checkid_immediate} request
    for the first discovered endpoint.

    @ivar message: The request message
    @type message: L{openidrp.message.Message}
    @ivar endpoint: The endpoint the request is sent to
    @type endpoint: L{openidrp.consumer.discover.ServiceEndpoint}
    """

    def __init__(self, discover, return_to, realm, assoc_handle=None, context=None, clock_skew=None):
        """
        @param discover: Successful discovery of the identifier
        @type discover: L{openidrp.consumer.discover.Discover}
        @param return_to: URL the provider sends the user back to
        @type return_to: str
        @param realm: URL pattern the user is asked to trust
        @type realm: str
        @param assoc_handle: Handle of the association to sign the response with
        @type assoc_handle: Optional[str]
        @type context: Optional[L{openidrp.context.Context}]
        @param clock_skew: Clock skew of the OpenID 1.1 nonce
        """
        self.discover = discover
        self.identifier = discover.identifier
        self.endpoint = discover.services[0]
        self.context = context if context is not None else discover.context
        self.clock_skew = clock_skew
        self.version = VERSION_MAP[self.endpoint.version]

        self.message = Message()
        # Only OpenID 2.0 messages have a namespace
        if self.version == NS_2_0:
            self.message.set('openid.ns', NS_2_0)
        self.message.set('openid.return_to', return_to)
        self.message.set('openid.realm', realm)
        if self.version == NS_1_1:
            self.message.set('openid.trust_root', realm)
        if assoc_handle:
            self.message.set('openid.assoc_handle', assoc_handle)
        self.setMode(MODE_CHECKID_SETUP)

    def setMode(self, mode):
        """
        @raises InvalidValue: If the mode is neither C{checkid_setup}
            nor C{checkid_immediate}.
        """
        if mode not in (MODE_CHECKID_SETUP, MODE_CHECKID_IMMEDIATE):
            raise InvalidValue('Invalid openid.mode: %s' % mode)
        self.message.set('openid.mode', mode)

    def getMode(self):
        return self.message.get('openid.mode')

    def addExtension(self, extension):
        """Add the extension fields to the request.

        @type extension: L{openidrp.extension.Extension}
        """
        self.message.addExtension(extension)

    def getDiscover(self):
        return self.discover

    def setIdentityFields(self):
        local_id = self.endpoint.local_id
        if self.endpoint.version == SERVICE_2_0_SERVER and not local_id:
            # The provider lets the user select the identifier
            self.message.set('openid.claimed_id', NS_2_0_ID_SELECT)
            self.message.set('openid.identity', NS_2_0_ID_SELECT)
            return

        if self.version == NS_2_0:
            self.message.set('openid.claimed_id', self.identifier)
        self.message.set('openid.identity', local_id or self.identifier)

    def addNonce(self):
        """Add a nonce to the return URL of an OpenID 1.1 request, 1.1
        providers don't send one in the response."""
        op_url = self.endpoint.uris[0]
        nonce = Nonce(op_url, self.context, self.clock_skew).createNonceAndStore()
        return_to = oidutil.setQueryArg(self.message.get('openid.return_to'), RETURN_TO_NONCE, nonce)
        self.message.set('openid.return_to', return_to)
        self.context.record('AuthRequest.addNonce', 'Nonce: %s, new return_to: %s, OP URIs: %s' % (
            nonce, return_to, self.endpoint.uris))

    def getAuthorizeURL(self):
        """Return the URL to redirect the user to.

        @rtype: str
        """
        self.setIdentityFields()
        if self.version == NS_1_1 and RETURN_TO_NONCE not in oidutil.getQueryArgs(
                self.message.get('openid.return_to')):
            self.addNonce()

        op_url = self.endpoint.uris[0]
        separator = '&' if '?' in op_url else '?'
        url = op_url + separator + self.message.toURLEncoded()
        _LOGGER.debug('Authorize URL for %s: %s', self.identifier, url)
        return url
