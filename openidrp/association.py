"""
This module contains code for dealing with associations between the
relying party and OpenID providers. Associations contain a shared
secret that is used to sign C{openid.mode=id_res} messages.

Users of the library should not usually need to interact directly with
associations. The L{relying party<openidrp.consumer.relyingparty>}
creates them through an
L{association request<openidrp.consumer.associate>} and keeps them in
the L{store<openidrp.store>}.
"""
import logging
import time

from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.constant_time import bytes_eq
from cryptography.hazmat.primitives.hmac import HMAC

from openidrp import kvform, oidutil
from openidrp.constants import ASSOC_HMAC_SHA1, ASSOC_HMAC_SHA256
from openidrp.errors import AlreadySigned, InvalidValue, MissingData, VerificationError

__all__ = ['Association', 'all_association_types']

_LOGGER = logging.getLogger(__name__)

all_association_types = [
    ASSOC_HMAC_SHA256,
    ASSOC_HMAC_SHA1,
]


class Association(object):
    """
    This class represents an association between the relying party and
    an OpenID provider.

    If you implement a custom C{L{OpenIDStore
    <openidrp.store.interface.OpenIDStore>}}, it will need to store
    the values of the C{L{uri}}, C{L{handle}}, C{L{secret}},
    C{L{created}}, C{L{expires_in}}, and C{L{assoc_type}} instance
    variables, or use C{L{serialize}}.

    @ivar uri: The OP endpoint URL this association is with.
    @type uri: str

    @ivar handle: This is the handle the server gave this association.
    @type handle: str

    @ivar secret: This is the shared secret the server generated for
        this association.
    @type secret: bytes

    @ivar created: This is the time this association was created, in
        seconds since 00:00 GMT, January 1, 1970.  (ie, a unix
        timestamp)
    @type created: int

    @ivar expires_in: This is the amount of time this association is
        good for, measured in seconds since the association was
        created.
    @type expires_in: int

    @ivar assoc_type: This is the type of association this instance
        represents, C{'HMAC-SHA1'} or C{'HMAC-SHA256'}.
    @type assoc_type: str

    @cvar hmac_algorithms: Mapping of association type to hash algorithm.
    @type hmac_algorithms: Dict[str, hashes.HashAlgorithm]
    """

    # The ordering and name of keys as stored by serialize
    assoc_keys = [
        'version',
        'uri',
        'handle',
        'secret',
        'created',
        'expires_in',
        'assoc_type',
    ]

    hmac_algorithms = {
        ASSOC_HMAC_SHA1: hashes.SHA1,
        ASSOC_HMAC_SHA256: hashes.SHA256,
    }

    def __init__(self, uri, handle, secret, created, expires_in, assoc_type):
        """
        This is the standard constructor for creating an association.

        @raises MissingData: If any of the values is missing.
        @raises InvalidValue: If the URI is not a valid URL or the
            association type is not supported.
        """
        params = {'uri': uri, 'handle': handle, 'secret': secret, 'created': created, 'expires_in': expires_in,
                  'assoc_type': assoc_type}
        for name, value in params.items():
            if value is None:
                raise MissingData('Missing parameter: %s' % name)

        if not oidutil.isValidURL(uri):
            raise InvalidValue('Invalid uri: %s' % uri)

        if assoc_type.upper() not in all_association_types:
            raise InvalidValue('Invalid association type: %s' % assoc_type)

        self.uri = uri
        self.handle = handle
        self.secret = secret
        self.created = int(created)
        self.expires_in = int(expires_in)
        self.assoc_type = assoc_type.upper()

    @classmethod
    def fromExpiresIn(cls, uri, handle, secret, expires_in, assoc_type):
        """Create an association created right now."""
        return cls(uri, handle, secret, int(time.time()), expires_in, assoc_type)

    def getExpiresIn(self, now=None):
        """
        This returns the number of seconds this association is still
        valid for, or C{0} if the association is no longer valid.

        @rtype: int
        """
        if now is None:
            now = int(time.time())

        return max(0, self.created + self.expires_in - now)

    def getAlgorithm(self):
        """Return the name of the hash algorithm, e.g. C{SHA256}.

        @rtype: str
        """
        return self.assoc_type.replace('HMAC-', '')

    def __eq__(self, other):
        return type(self) == type(other) and self.__dict__ == other.__dict__

    def __ne__(self, other):
        return not (self == other)

    def serialize(self):
        """
        Convert an association to KV form.

        @return: String in KV form suitable for deserialization by
            deserialize.

        @rtype: str
        """
        data = {
            'version': '2',
            'uri': self.uri,
            'handle': self.handle,
            'secret': oidutil.toBase64(self.secret),
            'created': str(self.created),
            'expires_in': str(self.expires_in),
            'assoc_type': self.assoc_type
        }
        return kvform.seqToKV([(field_name, data[field_name]) for field_name in self.assoc_keys], strict=True)

    @classmethod
    def deserialize(cls, assoc_s):
        """
        Parse an association as stored by serialize().

        @param assoc_s: Association as serialized by serialize()
        @type assoc_s: str

        @return: instance of this class
        """
        pairs = kvform.kvToSeq(assoc_s, strict=True)
        keys = [k for k, _ in pairs]
        if keys != cls.assoc_keys:
            raise ValueError('Unexpected key values: %r' % (keys,))

        version, uri, handle, secret, created, expires_in, assoc_type = [v for _, v in pairs]
        if version != '2':
            raise ValueError('Unknown version: %r' % version)
        return cls(uri, handle, oidutil.fromBase64(secret), int(created), int(expires_in), assoc_type)

    def sign(self, kv):
        """
        Generate a signature of a key-value form string.

        @type kv: str

        @return: The binary signature
        @rtype: bytes
        """
        hmac = HMAC(self.secret, self.hmac_algorithms[self.assoc_type](), backend=default_backend())
        hmac.update(kv.encode('utf-8'))
        return hmac.finalize()

    def getMessageForSigning(self, message):
        """Return the key-value form of the signed fields of the message.

        The fields are listed in the order of C{openid.signed}. A field
        listed more than once is repeated.

        @type message: L{openidrp.message.Message}
        @rtype: str
        """
        pairs = []
        for key in message.get('openid.signed').split(','):
            value = message.get('openid.' + key)
            pairs.append((key, value if value is not None else ''))
        return kvform.seqToKV(pairs)

    def checkMessageSignature(self, message):
        """Given a message with a signature, calculate a new signature
        and return whether it matches the signature in the message.

        @type message: L{openidrp.message.Message}
        @rtype: bool

        @raises VerificationError: If the message was signed with a
            different association or comes from a different endpoint.
        """
        if self.handle != message.get('openid.assoc_handle'):
            raise VerificationError('Association handles do not match')

        # OpenID 1.1 messages don't name the endpoint
        op_endpoint = message.get('openid.op_endpoint')
        if op_endpoint is not None and self.uri != op_endpoint:
            raise VerificationError('Endpoint URLs do not match')

        if not message.get('openid.signed'):
            _LOGGER.info('openid.signed is empty')
            return False

        message_sig = message.get('openid.sig')
        if not message_sig:
            _LOGGER.info('openid.sig is empty')
            return False

        calculated_sig = oidutil.toBase64(self.sign(self.getMessageForSigning(message)))
        _LOGGER.debug('Signature of %s computed with %s: %s', message, self.handle, calculated_sig)
        return bytes_eq(calculated_sig.encode('utf-8'), message_sig.encode('utf-8'))

    def signMessage(self, message):
        """Add a signature (and a signed list) to a message.

        All the C{openid.*} fields of the message are signed.

        @type message: L{openidrp.message.Message}

        @raises AlreadySigned: If the message has a signature or a signed list.
        @raises VerificationError: If the message has a different
            association handle.
        """
        if message.get('openid.sig') is not None or message.get('openid.signed') is not None:
            raise AlreadySigned('This message appears to be already signed')

        if self.handle != message.get('openid.assoc_handle'):
            raise VerificationError('Association handles do not match')

        signed_list = [k[7:] for k in message.keys() if k.startswith('openid.')]
        signed_list.append('signed')
        signed_list.sort()
        message.set('openid.signed', ','.join(signed_list))
        message.set('openid.sig', oidutil.toBase64(self.sign(self.getMessageForSigning(message))))

    def __repr__(self):
        return "<%s.%s %s %s>" % (
            self.__class__.__module__,
            self.__class__.__name__,
            self.assoc_type,
            self.handle)
