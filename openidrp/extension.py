"""Base class of the OpenID message extensions."""
import re

from openidrp.errors import InvalidValue

__all__ = ['Extension', 'REQUEST', 'RESPONSE']

REQUEST = 'request'
RESPONSE = 'response'

# Message keys which can't be used as an extension alias
RESERVED_ALIASES = frozenset([
    'assoc_handle',
    'assoc_type',
    'claimed_id',
    'contact',
    'delegate',
    'dh_consumer_public',
    'dh_gen',
    'dh_modulus',
    'error',
    'identity',
    'invalidate_handle',
    'mode',
    'ns',
    'op_endpoint',
    'openid',
    'realm',
    'reference',
    'response_nonce',
    'return_to',
    'server',
    'session_type',
    'sig',
    'signed',
    'trust_root',
])

_NS_ALIAS_RE = re.compile(r'\Aopenid\.ns\.([^.]+)\Z')


class Extension(object):
    """An interface for OpenID extensions.

    Subclasses define the namespace, the alias and the allowed keys::

        sreg = SREG10(REQUEST)
        sreg.set('required', 'email')
        auth_request.addExtension(sreg)

    @cvar namespace: The namespace URI of the extension
    @cvar alias: The alias the extension fields are added under,
        C{openid.<alias>.<key>}
    @cvar use_namespace_alias: Whether the C{openid.ns.<alias>} field
        is added to the messages
    @cvar request_keys: Keys allowed in requests, any key if empty
    @cvar response_keys: Keys allowed in responses, any key if empty

    @ivar type: C{REQUEST} or C{RESPONSE}
    @ivar values: The extension fields
    @type values: Dict[str, str]
    """
    namespace = None
    alias = None
    use_namespace_alias = True
    request_keys = ()
    response_keys = ()

    def __init__(self, type=REQUEST, message=None):
        """
        @param type: C{REQUEST} or C{RESPONSE}
        @param message: Message to read the extension fields from
        @type message: Optional[L{openidrp.message.Message}]

        @raises InvalidValue: On invalid type.
        """
        if type not in (REQUEST, RESPONSE):
            raise InvalidValue('Invalid message type: %s' % type)
        self.type = type
        self.values = {}
        if message is not None:
            self.values = self.fromMessageResponse(message)

    def getKeys(self):
        if self.type == REQUEST:
            return self.request_keys
        return self.response_keys

    def set(self, key, value):
        """Set the value of the extension field.

        @raises InvalidValue: If the key is not allowed.
        """
        keys = self.getKeys()
        if keys and key not in keys:
            raise InvalidValue('Invalid key: %s' % key)
        self.values[key] = value
        return self

    def get(self, key):
        return self.values.get(key)

    def getNamespace(self):
        return self.namespace

    def toMessage(self, message):
        """Add the extension fields to the message.

        @type message: L{openidrp.message.Message}
        @raises InvalidValue: If the alias is reserved or already used
            in the message.
        """
        if not self.alias or self.alias in RESERVED_ALIASES:
            raise InvalidValue('Invalid extension alias: %s' % self.alias)

        ns_key = 'openid.ns.' + self.alias
        if message.get(ns_key) is not None:
            raise InvalidValue('Extension alias %s is already set' % self.alias)

        # SREG 1.0 predates namespace aliases
        if self.use_namespace_alias:
            message.set(ns_key, self.namespace)

        for key, value in self.values.items():
            message.set('openid.%s.%s' % (self.alias, key), value)

    def getMessageAlias(self, message):
        """Return the alias of the extension namespace in the message, or C{None}."""
        if not self.use_namespace_alias:
            return self.alias

        for key in message.keys():
            match = _NS_ALIAS_RE.match(key)
            if match is not None and message.get(key) == self.namespace:
                return match.group(1)
        return None

    def fromMessageResponse(self, message):
        """Read the extension fields from the message.

        @type message: L{openidrp.message.Message}
        @rtype: Dict[str, str]
        """
        values = {}
        alias = self.getMessageAlias(message)
        if alias is None:
            return values

        prefix = 'openid.%s.' % alias
        if self.response_keys:
            for key in self.response_keys:
                value = message.get(prefix + key)
                if value is not None:
                    values[key] = value
        else:
            for key in message.keys():
                if key.startswith(prefix):
                    values[key[len(prefix):]] = message.get(key)
        return values
