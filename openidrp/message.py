"""Representation of OpenID protocol messages.

A message is a flat mapping of C{openid.*} keys to text values. It is
serialized as key-value form for direct communication with the
provider, and as an URL-encoded query string for indirect
communication through the user agent.
"""
import copy
import logging
from urllib.parse import quote_plus, unquote_plus

from openidrp import kvform
from openidrp.constants import NS_2_0
from openidrp.errors import InvalidValue

__all__ = ['Message', 'FORMAT_KV', 'FORMAT_HTTP', 'FORMAT_ARRAY']

_LOGGER = logging.getLogger(__name__)

FORMAT_KV = 'kv'
FORMAT_HTTP = 'http'
FORMAT_ARRAY = 'array'

VALID_FORMATS = (FORMAT_KV, FORMAT_HTTP, FORMAT_ARRAY)


class Message(object):
    """
    An OpenID protocol message.

    The key order is preserved, so serializations list the keys in the
    order they were first set.

    @ivar _data: The message fields
    @type _data: Dict[str, str]
    """

    def __init__(self, message=None, format=FORMAT_ARRAY):
        """Create a message, optionally parsing the initial content.

        @param message: Content of the message in the given format
        @type message: Union[str, bytes, Dict[str, str]]

        @param format: One of C{FORMAT_KV}, C{FORMAT_HTTP} or C{FORMAT_ARRAY}
        @type format: str
        """
        self._data = {}
        if message is not None:
            self.setMessage(message, format)

    @classmethod
    def fromKVForm(cls, kvform_string):
        """Create a message from a key-value form response body."""
        return cls(kvform_string, FORMAT_KV)

    @classmethod
    def fromURLEncoded(cls, query):
        """Create a message from an URL-encoded query string."""
        return cls(query, FORMAT_HTTP)

    @classmethod
    def fromPostArgs(cls, args):
        """Create a message from a dictionary of query or POST arguments.

        Arguments which are not part of the OpenID protocol are ignored.

        @type args: Dict[str, str]
        """
        return cls(dict((k, v) for k, v in args.items() if k.startswith('openid.')), FORMAT_ARRAY)

    def get(self, key):
        """Return the value of the field or C{None} if not present.

        @type key: str
        @rtype: Optional[str]
        """
        return self._data.get(key)

    def set(self, key, value):
        """Set the field to the value.

        @type key: str
        @type value: str

        @raises InvalidValue: If the key is C{openid.ns} and the value is
            not the OpenID 2.0 namespace.
        """
        if key == 'openid.ns' and value != NS_2_0:
            raise InvalidValue('Invalid openid.ns value: %s' % value)
        self._data[key] = value

    def delete(self, key):
        """Remove the field from the message, if present."""
        self._data.pop(key, None)

    def hasKey(self, key):
        return key in self._data

    def keys(self):
        return list(self._data.keys())

    def copy(self):
        return copy.deepcopy(self)

    def getMessage(self, format=FORMAT_ARRAY):
        """Return the message serialized in the format.

        @raises InvalidValue: On unknown format.
        """
        if format == FORMAT_KV:
            return self.toKVForm()
        elif format == FORMAT_HTTP:
            return self.toURLEncoded()
        elif format == FORMAT_ARRAY:
            return self.toPostArgs()
        raise InvalidValue('Invalid format: %s' % format)

    def setMessage(self, message, format=FORMAT_ARRAY):
        """Add the fields of a serialized message to this message.

        @raises InvalidValue: On unknown format or an invalid C{openid.ns} value.
        """
        if format not in VALID_FORMATS:
            raise InvalidValue('Invalid format: %s' % format)

        if format == FORMAT_KV:
            pairs = kvform.kvToSeq(message)
        elif format == FORMAT_HTTP:
            pairs = self._parseURLEncoded(message)
        else:
            pairs = message.items()

        for key, value in pairs:
            self.set(key, value)

    def toKVForm(self):
        """Return the message in key-value form.

        @rtype: str
        @raises kvform.KVFormError: If a value contains a newline.
        """
        return kvform.seqToKV(list(self._data.items()))

    def toURLEncoded(self):
        """Return the message as an URL-encoded query string.

        @rtype: str
        """
        return '&'.join('%s=%s' % (quote_plus(k), quote_plus(v)) for k, v in self._data.items())

    def toPostArgs(self):
        """Return the message as a dictionary.

        @rtype: Dict[str, str]
        """
        return dict(self._data)

    def addExtension(self, extension):
        """Add the fields of an extension to this message.

        @type extension: L{openidrp.extension.Extension}
        """
        extension.toMessage(self)

    @staticmethod
    def _parseURLEncoded(query):
        if isinstance(query, bytes):
            query = query.decode('utf-8')
        pairs = []
        for chunk in query.split('&'):
            if '=' not in chunk:
                _LOGGER.debug('Skipping query argument without a value: %r', chunk)
                continue
            key, value = chunk.split('=', 1)
            pairs.append((unquote_plus(key), unquote_plus(value)))
        return pairs

    def __contains__(self, key):
        return key in self._data

    def __len__(self):
        return len(self._data)

    def __eq__(self, other):
        return type(self) == type(other) and self._data == other._data

    def __ne__(self, other):
        return not (self == other)

    def __repr__(self):
        return '<%s.%s %r>' % (self.__class__.__module__, self.__class__.__name__, self._data)
