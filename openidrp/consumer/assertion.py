"""Verification of the assertions sent back by the OpenID provider.

An C{L{Assertion}} checks everything which doesn't depend on the way
the signature is verified: the return URL, the provider's authority
over the claimed identifier and the nonce. The signature is then
verified either with an association or by asking the provider with a
C{check_authentication} request.
"""
import logging
from urllib.parse import urlsplit

from openidrp import oidutil
from openidrp.constants import (MODE_ASSOCIATE, MODE_CANCEL, MODE_CHECK_AUTHENTICATION, MODE_CHECKID_IMMEDIATE,
                                MODE_CHECKID_SETUP, MODE_ID_RES, MODE_SETUP_NEEDED, NS_2_0_ID_SELECT)
from openidrp.consumer.discover import getDiscover
from openidrp.errors import DiscoveryError, InvalidValue, MissingData, NoClaimedID
from openidrp.nonce import RETURN_TO_NONCE, Nonce

__all__ = ['Assertion', 'AssertionResult']

_LOGGER = logging.getLogger(__name__)


class Assertion(object):
    """A positive assertion which passed the basic validation.

    @ivar message: The assertion message
    @type message: L{openidrp.message.Message}
    @ivar discover: Discovery of the asserted identifier
    @type discover: Optional[L{openidrp.consumer.discover.Discover}]
    """

    def __init__(self, message, requested_url, context, clock_skew=None, options=None):
        """Validate the assertion.

        @param message: The assertion message
        @type message: L{openidrp.message.Message}
        @param requested_url: The URL the user agent requested,
            including the query
        @type requested_url: str
        @type context: L{openidrp.context.Context}
        @param clock_skew: Allowed clock skew of the response nonce
        @param options: Request options for discovery and the direct requests

        @raises InvalidValue: If the return URL doesn't match the
            requested URL or the nonce is invalid.
        @raises MissingData: If the OpenID 1.1 return URL nonce is missing.
        @raises NoClaimedID: If an OpenID 2.0 assertion has no claimed identifier.
        @raises DiscoveryError: If the provider isn't authorized to make
            assertions about the claimed identifier.
        """
        self.message = message
        self.requested_url = requested_url
        self.context = context
        self.clock_skew = clock_skew
        self.options = options or {}
        self.discover = None

        # Negative 1.1 checkid_immediate responses have no return URL
        if message.get('openid.ns') is not None or message.get('openid.user_setup_url') is None:
            self.validateReturnTo()

        if message.get('openid.ns') is not None:
            self.validateDiscover()
            self.validateNonce()
        else:
            self.validateReturnToNonce()

    def validateReturnTo(self):
        return_to = self.message.get('openid.return_to')
        self.context.record('Assertion.validateReturnTo', 'openid.return_to: %r' % (return_to,))

        if not oidutil.isValidURL(return_to):
            raise InvalidValue('openid.return_to parameter is invalid or missing')

        return_parts = urlsplit(return_to)
        requested_parts = urlsplit(self.requested_url)
        if (return_parts.scheme.lower(), return_parts.netloc.lower(), return_parts.path) != (
                requested_parts.scheme.lower(), requested_parts.netloc.lower(), requested_parts.path):
            raise InvalidValue('openid.return_to does not match the requested URL')

        requested_args = oidutil.getQueryArgs(self.requested_url)
        for key, value in oidutil.getQueryArgs(return_to).items():
            if requested_args.get(key) != value:
                raise InvalidValue('openid.return_to parameters do not match requested url')

    def validateDiscover(self):
        claimed_id = self.message.get('openid.claimed_id')
        if claimed_id is None:
            raise NoClaimedID('No claimed_id in message')

        if claimed_id == NS_2_0_ID_SELECT:
            raise InvalidValue('Claimed identifier cannot be an OP identifier')

        # The fragment is not part of the identifier
        self.discover = self.getDiscover(oidutil.stripFragment(claimed_id))
        if self.discover is None:
            raise DiscoveryError('Unable to discover claimed_id')

        op_url = self.discover.services[0].uris[0]
        if op_url != self.message.get('openid.op_endpoint'):
            raise DiscoveryError('This OP is not authorized to issue assertions for this claimed id')

    def validateNonce(self):
        op_url = self.message.get('openid.op_endpoint')
        response_nonce = self.message.get('openid.response_nonce')

        nonce = Nonce(op_url, self.context, self.clock_skew)
        if not nonce.verifyResponseNonce(response_nonce):
            raise InvalidValue('Invalid or already existing response_nonce')

    def validateReturnToNonce(self):
        return_to = self.message.get('openid.return_to')
        identity = self.message.get('openid.identity')
        if return_to is None:
            # Must be a checkid_immediate negative assertion
            setup_args = oidutil.getQueryArgs(self.message.get('openid.user_setup_url'))
            return_to = setup_args.get('openid.return_to', '')
            identity = setup_args.get('openid.identity')

        nonce = oidutil.getQueryArgs(return_to).get(RETURN_TO_NONCE)
        if nonce is None:
            raise MissingData('Missing OpenID 1.1 return_to nonce')
        if identity is None:
            raise MissingData('Missing openid.identity')

        self.discover = self.getDiscover(identity)
        if self.discover is None:
            raise DiscoveryError('Unable to discover identity')
        endpoint = self.discover.services[0]
        op_url = endpoint.uris[0]
        from_store = self.context.store.getNonce(nonce, op_url)

        self.context.record('Assertion.validateReturnToNonce', 'return_to: %s, OP URIs: %s, nonce in store: %s' % (
            return_to, endpoint.uris, from_store))

        if not from_store:
            raise InvalidValue('Invalid OpenID 1.1 return_to nonce in response')
        self.context.store.deleteNonce(nonce, op_url)

    def getDiscover(self, identifier):
        return getDiscover(identifier, self.context, self.options)

    def verifySignature(self, association):
        """Verify the signature of the assertion with the association.

        @type association: L{openidrp.association.Association}
        @rtype: bool
        @raises VerificationError: If the association doesn't match the message.
        """
        return association.checkMessageSignature(self.message)

    def checkAuthentication(self, options=None):
        """Ask the provider to verify the signature of the assertion.

        @param options: Request options, the assertion's options by default
        @return: The provider's response
        @rtype: L{openidrp.message.Message}
        @raises HTTPError: If the request fails.
        """
        if options is None:
            options = self.options
        request = self.message.copy()
        request.set('openid.mode', MODE_CHECK_AUTHENTICATION)

        op_url = self.message.get('openid.op_endpoint')
        if op_url is None:
            # OpenID 1.1 assertions don't name the endpoint
            op_url = self.discover.services[0].uris[0]

        response = self.context.directRequest(op_url, request, options)
        _LOGGER.debug('check_authentication response from %s: %r', op_url, response)
        return response


class AssertionResult(object):
    """Outcome of the verification of the provider's response.

    @ivar check_auth_response: Response to the C{check_authentication}
        request, if one was made
    @type check_auth_response: Optional[L{openidrp.message.Message}]
    @ivar user_setup_url: URL where the user may complete the
        authentication, from a negative OpenID 1.1 immediate response
    @type user_setup_url: Optional[str]
    @ivar discover: Discovery of the identifier
    @type discover: Optional[L{openidrp.consumer.discover.Discover}]
    """

    assertion_methods = (
        MODE_ID_RES,
        MODE_ASSOCIATE,
        MODE_CHECKID_SETUP,
        MODE_CHECKID_IMMEDIATE,
        MODE_CHECK_AUTHENTICATION,
        MODE_CANCEL,
        MODE_SETUP_NEEDED,
    )

    def __init__(self):
        self.check_auth_response = None
        self.user_setup_url = None
        self.discover = None
        self.assertion = False
        self._assertion_method = None

    @property
    def assertion_method(self):
        """How the response was handled, one of C{assertion_methods}."""
        return self._assertion_method

    @assertion_method.setter
    def assertion_method(self, method):
        if method not in self.assertion_methods:
            raise InvalidValue('Invalid assertion method: %s' % method)
        self._assertion_method = method

    def setAssertionResult(self, value):
        self.assertion = bool(value)

    def success(self):
        """Return whether the user was authenticated.

        @rtype: bool
        """
        return self.assertion

    def __repr__(self):
        return '<%s %s success=%s>' % (self.__class__.__name__, self._assertion_method, self.assertion)
