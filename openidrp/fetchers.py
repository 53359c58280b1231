"""This module contains the HTTP fetcher interface and its implementation
on top of C{requests}."""
import sys

import requests

import openidrp

__all__ = ['HTTPResponse', 'HTTPFetcher', 'RequestsFetcher', 'ExceptionWrappingFetcher', 'HTTPFetchingError',
           'createHTTPFetcher']

USER_AGENT = "python-openidrp/%s (%s)" % (openidrp.__version__, sys.platform)
MAX_RESPONSE_KB = 1024


def createHTTPFetcher(wrap_exceptions=True):
    """Create a default HTTP fetcher instance.

    @param wrap_exceptions: Whether to wrap exceptions thrown by the
        fetcher with HTTPFetchingError so that they may be caught
        easier. By default, exceptions will be wrapped. In general,
        unwrapped fetchers are useful for debugging of fetching errors.
    @type wrap_exceptions: bool

    @rtype: HTTPFetcher
    """
    fetcher = RequestsFetcher()
    if wrap_exceptions:
        fetcher = ExceptionWrappingFetcher(fetcher)
    return fetcher


class HTTPResponse(object):
    """Result of a HTTP request.

    @ivar final_url: The URL of the response after redirects
    @type final_url: str
    @ivar status: HTTP status code
    @type status: int
    @ivar headers: Response headers, case insensitive if provided by the fetcher
    @type headers: Mapping[str, str]
    @type body: bytes
    """
    headers = None
    status = None
    body = None
    final_url = None

    def __init__(self, final_url=None, status=None, headers=None, body=None):
        self.final_url = final_url
        self.status = status
        self.headers = headers
        self.body = body

    def getHeader(self, name):
        """Return the value of the header or C{None}. Header names are
        matched case-insensitively."""
        if not self.headers:
            return None
        name = name.lower()
        for key, value in self.headers.items():
            if key.lower() == name:
                return value
        return None

    def __repr__(self):
        return "<%s status %s for %s>" % (self.__class__.__name__,
                                          self.status,
                                          self.final_url)


class HTTPFetcher(object):
    """
    This class is the interface for HTTP fetchers. This interface is
    only important if you need to write a new fetcher for some reason.
    """

    def fetch(self, url, body=None, headers=None, options=None):
        """
        This performs an HTTP POST or GET. If a body is specified,
        then the request will be a POST. Otherwise, it will be a GET.

        @type body: Optional[bytes]

        @param headers: HTTP headers to include with the request
        @type headers: Dict[str, str]

        @param options: Request options, C{follow_redirects},
            C{timeout} and C{connect_timeout} are recognized.
        @type options: Dict[str, Any]

        @return: An object representing the server's HTTP response. If
            there are network or protocol errors, an exception will be
            raised. HTTP error responses, like 404 or 500, do not
            cause exceptions.

        @rtype: L{HTTPResponse}

        @raise Exception: Different implementations will raise
            different errors based on the underlying HTTP library.
        """
        raise NotImplementedError


def _allowedURL(url):
    return url.startswith('http://') or url.startswith('https://')


class HTTPFetchingError(Exception):
    """Exception that is wrapped around all exceptions that are raised
    by the underlying fetcher when using the ExceptionWrappingFetcher

    @ivar why: The exception that caused this exception
    """

    def __init__(self, why=None):
        Exception.__init__(self, why)
        self.why = why


class ExceptionWrappingFetcher(HTTPFetcher):
    """Fetcher wrapper which wraps all exceptions to `HTTPFetchingError`."""

    def __init__(self, fetcher):
        self.fetcher = fetcher

    def fetch(self, *args, **kwargs):
        try:
            return self.fetcher.fetch(*args, **kwargs)
        except Exception as error:
            raise HTTPFetchingError(why=error) from error


class RequestsFetcher(HTTPFetcher):
    """A fetcher that uses C{requests} for performing HTTP requests."""

    def fetch(self, url, body=None, headers=None, options=None):
        """Perform an HTTP request

        @raises Exception: Any exception that can be raised by 'requests'

        @see: C{L{HTTPFetcher.fetch}}
        """
        assert body is None or isinstance(body, bytes)

        if not _allowedURL(url):
            raise ValueError('Bad URL scheme: %r' % (url,))

        if options is None:
            options = {}
        headers = dict(headers or {})
        headers.setdefault('User-Agent', "%s python-requests" % USER_AGENT)

        if body:
            method = 'POST'
            headers.setdefault('Content-Type', 'application/x-www-form-urlencoded')
        else:
            method = 'GET'

        timeout = options.get('timeout')
        connect_timeout = options.get('connect_timeout', timeout)
        if timeout is not None or connect_timeout is not None:
            timeout = (connect_timeout, timeout)

        response = requests.request(method, url, data=body, headers=headers, timeout=timeout,
                                    allow_redirects=options.get('follow_redirects', True))
        content = response.content[:MAX_RESPONSE_KB * 1024]
        return HTTPResponse(response.url, response.status_code, response.headers, content)
