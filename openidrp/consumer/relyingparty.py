"""The relying party, entry point of the OpenID authentication flow."""
import logging

from openidrp import oidutil
from openidrp.association import Association
from openidrp.consumer.assertion import Assertion, AssertionResult
from openidrp.consumer.associate import AssociationRequest
from openidrp.consumer.authrequest import AuthRequest
from openidrp.consumer.discover import getDiscover
from openidrp.constants import (DEFAULT_REQUEST_OPTIONS, MODE_ASSOCIATE, MODE_CANCEL, MODE_CHECK_AUTHENTICATION,
                                MODE_ERROR, MODE_ID_RES, MODE_SETUP_NEEDED)
from openidrp.context import Context
from openidrp.errors import DiscoveryError, InvalidValue, MissingData, OpenIDError, ProviderError

__all__ = ['RelyingParty']

_LOGGER = logging.getLogger(__name__)


class RelyingParty(object):
    """Prepares authentication requests and verifies the responses.

    @ivar identifier: The normalized identifier, C{None} for
        unsolicited assertions
    @type identifier: Optional[str]
    @ivar use_associations: Whether associations are used to verify
        the assertions
    @type use_associations: bool
    """

    def __init__(self, return_to, realm, identifier=None, context=None):
        """
        @param return_to: URL the provider sends the user back to
        @type return_to: str
        @param realm: URL pattern the user is asked to trust
        @type realm: str
        @param identifier: Identifier supplied by the user
        @type identifier: Optional[str]
        @type context: Optional[L{openidrp.context.Context}]

        @raises InvalidValue: If the identifier can't be normalized.
        """
        self.return_to = return_to
        self.realm = realm
        self.identifier = None
        if identifier is not None:
            self.identifier = oidutil.normalizeIdentifier(identifier)
        if context is None:
            context = Context()
        self.context = context
        self.use_associations = True
        self.clock_skew = None
        self.request_options = dict(DEFAULT_REQUEST_OPTIONS)

    def enableAssociations(self):
        self.use_associations = True
        return self

    def disableAssociations(self):
        self.use_associations = False
        return self

    def setClockSkew(self, skew):
        self.clock_skew = int(skew)
        return self

    def setRequestOptions(self, options):
        self.request_options = options
        return self

    def getRequestOptions(self):
        return self.request_options

    def prepare(self):
        """Discover the provider and create the authentication request.

        @rtype: L{openidrp.consumer.authrequest.AuthRequest}

        @raises MissingData: If there is no identifier.
        @raises DiscoveryError: If no provider is found.
        """
        if self.identifier is None:
            raise MissingData('No identifier provided')

        discover = self._getDiscover(self.identifier)
        endpoint = discover.services[0]

        assoc_handle = None
        if self.use_associations:
            association = self._getAssociation(endpoint.uris[0], endpoint.version)
            if association is not None:
                assoc_handle = association.handle

        return AuthRequest(discover, self.return_to, self.realm, assoc_handle, self.context, self.clock_skew)

    def verify(self, requested_url, message):
        """Verify the provider's response.

        @param requested_url: The URL the user agent requested,
            including the query
        @type requested_url: str
        @param message: The response arguments
        @type message: L{openidrp.message.Message}

        @rtype: L{openidrp.consumer.assertion.AssertionResult}

        @raises ProviderError: If the provider responded with an error.
        @raises InvalidValue: On unknown mode or an invalid assertion.
        @raises OpenIDError: If the assertion fails the validation.
        """
        mode = message.get('openid.mode')
        result = AssertionResult()

        self.context.record('RelyingParty.verify', repr(message))

        if mode == MODE_ID_RES:
            if message.get('openid.ns') is None and message.get('openid.user_setup_url') is not None:
                # Negative 1.1 checkid_immediate response
                result.assertion_method = mode
                result.user_setup_url = message.get('openid.user_setup_url')
                return result
        elif mode in (MODE_CANCEL, MODE_SETUP_NEEDED):
            result.assertion_method = mode
            return result
        elif mode == MODE_ERROR:
            raise ProviderError(message.get('openid.error') or 'Unknown error')
        else:
            raise InvalidValue('Unknown mode: %s' % mode)

        identifier = self.identifier
        unsolicited = identifier is None
        if unsolicited:
            claimed_id = message.get('openid.claimed_id')
            if claimed_id is None:
                raise MissingData('No claimed_id in unsolicited assertion')
            identifier = oidutil.normalizeIdentifier(claimed_id)

        discover = self._getDiscover(identifier)
        op_url = discover.services[0].uris[0]
        assertion = Assertion(message, requested_url, self.context, self.clock_skew, self.request_options)

        result.discover = discover

        if self.use_associations:
            invalidate_handle = message.get('openid.invalidate_handle')
            if invalidate_handle is None:
                result.assertion_method = MODE_ASSOCIATE
                association = self.context.store.getAssociation(op_url, message.get('openid.assoc_handle'))
                self.context.record('RelyingParty.verify', repr(association))

                if isinstance(association, Association) and assertion.verifySignature(association):
                    result.setAssertionResult(True)

                # Unsolicited assertions are verified by the provider as well
                if not unsolicited:
                    return result
            else:
                _LOGGER.info('Provider %s invalidated association %s', op_url, invalidate_handle)
                self.context.store.deleteAssociation(op_url, invalidate_handle)

        result.assertion_method = MODE_CHECK_AUTHENTICATION
        result.check_auth_response = assertion.checkAuthentication(self.request_options)
        # The provider's answer overrides the association check
        result.setAssertionResult(result.check_auth_response.get('is_valid') == 'true')
        return result

    def _getDiscover(self, identifier):
        discover = getDiscover(identifier, self.context, self.request_options)
        if discover is None:
            raise DiscoveryError('Unable to discover OP Endpoint URL')
        return discover

    def _getAssociation(self, op_url, version):
        """Return the stored association with the endpoint or negotiate
        a new one.

        @rtype: Optional[L{openidrp.association.Association}]
        """
        association = self.context.store.getAssociation(op_url)
        if isinstance(association, Association):
            return association

        request = AssociationRequest(op_url, version, self.context)
        request.setRequestOptions(self.request_options)
        try:
            association = request.associate()
        except OpenIDError as error:
            _LOGGER.warning('Association with %s failed, continuing in stateless mode: %s', op_url, error)
            return None

        if association is None:
            return None
        self.context.store.setAssociation(association)
        return association
