"""Yadis protocol, locating and fetching the XRDS document of an identifier."""
import logging
from urllib.parse import urljoin

from openidrp.errors import HTTP_ERROR, OpenIDError
from openidrp.yadis.constants import YADIS_ACCEPT_HEADER, YADIS_CONTENT_TYPE, YADIS_HEADER_NAME
from openidrp.yadis.parsehtml import MetaNotFound, findHTMLMeta

__all__ = ['DiscoveryFailure', 'DiscoveryResult', 'discover']

_LOGGER = logging.getLogger(__name__)


class DiscoveryFailure(OpenIDError):
    """Raised when a discovery driver does not succeed.

    @ivar http_response: The HTTP response which caused the failure, if any.
    @type http_response: Optional[L{openidrp.fetchers.HTTPResponse}]
    """

    def __init__(self, message, http_response=None, code=None):
        OpenIDError.__init__(self, message, code)
        self.http_response = http_response


class DiscoveryResult(object):
    """Contains the result of performing Yadis discovery on a URI

    @ivar request_uri: The URI that was requested
    @ivar normalized_uri: The URI after redirects of the initial request
    @ivar xrds_uri: The URI of the XRDS document, if one was found
    @ivar content_type: Content type of the final response
    @ivar response_text: Body of the final response
    @type response_text: bytes
    @ivar http_response: The final response
    @type http_response: L{openidrp.fetchers.HTTPResponse}
    """

    def __init__(self, request_uri):
        """Initialize the state of the object

        sets all attributes to None except the request_uri
        """
        self.request_uri = request_uri
        self.normalized_uri = None
        self.xrds_uri = None
        self.content_type = None
        self.response_text = None
        self.http_response = None

    def usedYadisLocation(self):
        """Was the Yadis protocol's indirection used?"""
        return self.xrds_uri is not None and self.normalized_uri != self.xrds_uri

    def isXRDS(self):
        """Is the response text supposed to be an XRDS document?"""
        return self.usedYadisLocation() or isXRDSContentType(self.content_type)


def isXRDSContentType(content_type):
    if content_type is None:
        return False
    return content_type.split(';', 1)[0].strip().lower() == YADIS_CONTENT_TYPE


def _checkResponse(uri, resp):
    if resp.status not in (200, 206):
        raise DiscoveryFailure('HTTP Response status from identity URL host is not 200. Got status %r for %s' % (
            resp.status, uri), resp, HTTP_ERROR)


def discover(uri, context, options=None):
    """Discover services for a given URI.

    @param uri: The identity URI as a well-formed http or https
        URI. The well-formedness and the protocol are not checked, but
        the results of this function will be undefined if those
        properties do not hold.
    @param context: Context providing the HTTP fetcher
    @type context: L{openidrp.context.Context}
    @param options: Request options

    @return: DiscoveryResult object

    @raises DiscoveryFailure: When the HTTP response does not have a 200
        code, or the request fails.
    """
    result = DiscoveryResult(uri)
    headers = {'Accept': YADIS_ACCEPT_HEADER}
    try:
        resp = context.fetch(uri, headers=headers, options=options)
    except OpenIDError as error:
        raise DiscoveryFailure(str(error), code=HTTP_ERROR)
    _checkResponse(uri, resp)

    # Note the URL after following redirects
    result.normalized_uri = resp.final_url or uri

    # Attempt to find out where to go to discover the document
    # or if we already have it
    result.content_type = resp.getHeader('content-type')

    result.xrds_uri = whereIsYadis(resp)

    if result.xrds_uri and result.usedYadisLocation():
        result.xrds_uri = urljoin(result.normalized_uri, result.xrds_uri)
        _LOGGER.debug('Fetching XRDS document of %s from %s', uri, result.xrds_uri)
        try:
            resp = context.fetch(result.xrds_uri, options=options)
        except OpenIDError as error:
            raise DiscoveryFailure(str(error), code=HTTP_ERROR)
        _checkResponse(result.xrds_uri, resp)
        result.content_type = resp.getHeader('content-type')

    result.response_text = resp.body
    result.http_response = resp
    return result


def whereIsYadis(resp):
    """Given a HTTPResponse, return the location of the Yadis document.

    May be the URL just retrieved, another URL, or None if no suitable URL can
    be found.

    [non-blocking]

    @returns: str or None
    """
    # Attempt to find out where to go to discover the document
    # or if we already have it
    if isXRDSContentType(resp.getHeader('content-type')):
        return resp.final_url

    # According to the Yadis specification, the content-type header must be an exact
    # match, or else we have to look for an indirection.
    location = resp.getHeader(YADIS_HEADER_NAME)
    if location:
        return location.strip()

    # Try to find the meta tag in HTML pages
    if resp.body:
        try:
            return findHTMLMeta(resp.body)
        except MetaNotFound:
            pass
    return None
