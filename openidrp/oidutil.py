"""This module contains general utility code that is used throughout
the library.
"""
import binascii
import re
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from openidrp.constants import XRI_GLOBAL_SYMBOLS
from openidrp.errors import InvalidValue

__all__ = ['appendArgs', 'toBase64', 'fromBase64', 'isValidURL', 'normalizeIdentifier', 'getQueryArgs',
           'setQueryArg', 'stripQuery', 'stripFragment']

_HOSTNAME_RE = re.compile(r'\A[a-z0-9]([a-z0-9-]*[a-z0-9])?(\.[a-z0-9]([a-z0-9-]*[a-z0-9])?)*\.?\Z', re.IGNORECASE)
_XRI_SCHEME_RE = re.compile(r'\Axri://', re.IGNORECASE)
_HTTP_SCHEME_RE = re.compile(r'\Ahttps?://', re.IGNORECASE)


def appendArgs(url, args):
    """Append query arguments to a HTTP(s) URL. If the URL already has
    query arguments, these arguments will be added, and the existing
    arguments will be preserved. Duplicate arguments will not be
    detected or collapsed (both will appear in the output).

    @param url: The url to which the arguments will be appended
    @type url: str

    @param args: The query arguments to add to the URL. If a
        dictionary is passed, the items will be sorted before
        appending them to the URL. If a sequence of pairs is passed,
        the order of the sequence will be preserved.
    @type args: Union[Dict[str, str], List[Tuple[str, str]]]

    @returns: The URL with the parameters added
    @rtype: str
    """
    if hasattr(args, 'items'):
        args = sorted(args.items())
    else:
        args = list(args)

    if not args:
        return url

    if '?' in url:
        sep = '&'
    else:
        sep = '?'

    return '%s%s%s' % (url, sep, urlencode(args))


def toBase64(s):
    """Return string s as base64, omitting newlines.

    @type s: bytes
    @rtype str
    """
    return binascii.b2a_base64(s)[:-1].decode('utf-8')


def fromBase64(s):
    """Return binary data from base64 encoded string.

    @type s: str
    @rtype bytes
    """
    try:
        return binascii.a2b_base64(s)
    except binascii.Error as why:
        # Convert to a common exception type
        raise ValueError(str(why))


def isValidURL(url):
    """Return whether the value is an absolute URL with a valid host.

    @type url: str
    @rtype: bool
    """
    if not isinstance(url, str) or not url or any(c.isspace() for c in url):
        return False

    try:
        parsed = urlsplit(url)
        # Accessing port validates it
        parsed.port
    except ValueError:
        return False

    if not parsed.scheme or not parsed.netloc:
        return False

    host = parsed.hostname
    if not host:
        return False
    if ':' in host:
        # IPv6 literal, validated by urlsplit
        return True
    return _HOSTNAME_RE.match(host) is not None


def normalizeIdentifier(identifier):
    """Normalize a user supplied identifier.

    XRIs are returned without the C{xri://} prefix, URLs gain the
    C{http://} scheme and a trailing slash if they have no path.

    @type identifier: str
    @rtype: str
    @raises InvalidValue: If the identifier is not a valid URL.
    """
    if not identifier:
        raise InvalidValue('Invalid URI Identifier')

    if _XRI_SCHEME_RE.match(identifier):
        return _XRI_SCHEME_RE.sub('', identifier)

    if identifier[0] in XRI_GLOBAL_SYMBOLS:
        return identifier

    if not _HTTP_SCHEME_RE.match(identifier):
        identifier = 'http://' + identifier

    if len(identifier) < 8 or identifier.find('/', 8) == -1:
        identifier += '/'

    if not isValidURL(identifier):
        raise InvalidValue('Invalid URI Identifier')
    return identifier


def getQueryArgs(url):
    """Return the query arguments of the URL as a dictionary.

    The last value wins for a repeated argument.

    @rtype: Dict[str, str]
    """
    return dict(parse_qsl(urlsplit(url).query, keep_blank_values=True))


def setQueryArg(url, key, value):
    """Return the URL with the query argument set to the value.

    @rtype: str
    """
    parts = urlsplit(url)
    args = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != key]
    args.append((key, value))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(args), parts.fragment))


def stripQuery(url):
    """Return the URL without its query and fragment."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, '', ''))


def stripFragment(url):
    """Return the URL without its fragment."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, parts.query, ''))
