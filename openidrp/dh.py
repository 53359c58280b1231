"""Diffie-Hellman key exchange of association sessions."""
import logging

from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric.dh import DHParameterNumbers, DHPrivateNumbers, DHPublicNumbers

from openidrp import cryptutil
from openidrp.constants import DEFAULT_DH_GENERATOR, DEFAULT_DH_MODULUS
from openidrp.errors import InvalidValue, MissingData
from openidrp.oidutil import fromBase64

__all__ = ['DiffieHellman', 'strxor']

_LOGGER = logging.getLogger(__name__)

hash_algorithms = {
    'SHA1': hashes.SHA1,
    'SHA256': hashes.SHA256,
}


def strxor(x, y):
    if len(x) != len(y):
        raise ValueError('Inputs to strxor must have the same length')
    return bytes((a ^ b) for a, b in zip(x, y))


class DiffieHellman(object):
    """Diffie-Hellman session of an association request.

    The public key, modulus and generator are sent to the provider in
    the association request, the provider's public key is used to
    unwrap the MAC key of its response.
    """

    def __init__(self, modulus=DEFAULT_DH_MODULUS, generator=DEFAULT_DH_GENERATOR, private_key=None):
        """Create a new instance.

        @param modulus: Base64 encoded prime modulus
        @type modulus: str
        @param generator: Base64 encoded generator
        @type generator: str
        @param private_key: Base64 encoded private key, a new one is generated if not provided
        @type private_key: Optional[str]
        """
        self.parameter_numbers = DHParameterNumbers(cryptutil.base64ToLong(modulus),
                                                    cryptutil.base64ToLong(generator))
        if private_key is None:
            parameters = self.parameter_numbers.parameters(default_backend())
            self.private_key = parameters.generate_private_key()
        else:
            x = cryptutil.base64ToLong(private_key)
            y = pow(self.parameter_numbers.g, x, self.parameter_numbers.p)
            public_numbers = DHPublicNumbers(y, self.parameter_numbers)
            self.private_key = DHPrivateNumbers(x, public_numbers).private_key(default_backend())

    @property
    def parameters(self):
        """Return base64 encoded modulus and generator.

        @return: Tuple with modulus and generator
        @rtype: Tuple[str, str]
        """
        modulus = self.parameter_numbers.p
        generator = self.parameter_numbers.g
        return cryptutil.longToBase64(modulus), cryptutil.longToBase64(generator)

    @property
    def public_key(self):
        """Return base64 encoded public key.

        @rtype: str
        """
        return cryptutil.longToBase64(self.private_key.public_key().public_numbers().y)

    def usingDefaultValues(self):
        return self.parameters == (DEFAULT_DH_MODULUS, DEFAULT_DH_GENERATOR)

    def init(self, message):
        """Add the public key, modulus and generator to the association request.

        @type message: L{openidrp.message.Message}
        """
        modulus, generator = self.parameters
        message.set('openid.dh_consumer_public', self.public_key)
        message.set('openid.dh_modulus', modulus)
        message.set('openid.dh_gen', generator)

    def get_shared_secret(self, public_key):
        """Return a shared secret in its `btwoc` form.

        @param public_key: Base64 encoded public key of the other party.
        @type public_key: str
        @rtype: bytes

        @raises InvalidValue: If the public key is malformed or not valid
            for the group.
        """
        try:
            public_numbers = DHPublicNumbers(cryptutil.base64ToLong(public_key), self.parameter_numbers)
            shared = self.private_key.exchange(public_numbers.public_key(default_backend()))
        except ValueError as error:
            raise InvalidValue('Invalid dh_server_public: %s' % error)
        # The exchange pads the secret to the modulus length, `btwoc` is the shortest form.
        # See http://openid.net/specs/openid-authentication-2_0.html#rfc.section.8.2.3 for details.
        return cryptutil.int_to_bytes(cryptutil.bytes_to_int(shared))

    def xor_secret(self, public_key, secret, algorithm):
        """Return the XOR of a secret key and hash of a DH exchanged secret.

        @param public_key: Base64 encoded public key of the other party.
        @type public_key: str
        @param secret: Base64 encoded secret
        @type secret: str
        @param algorithm: Name of the hash algorithm, C{SHA1} or C{SHA256}
        @type algorithm: str
        @rtype: bytes

        @raises InvalidValue: On unknown algorithm or a secret which
            doesn't match the hash length.
        """
        try:
            hash_algorithm = hash_algorithms[algorithm]()
        except KeyError:
            raise InvalidValue('Unsupported hash algorithm: %s' % algorithm)

        dh_shared = self.get_shared_secret(public_key)
        digest = hashes.Hash(hash_algorithm, backend=default_backend())
        digest.update(dh_shared)
        hashed_dh_shared = digest.finalize()
        try:
            return strxor(fromBase64(secret), hashed_dh_shared)
        except ValueError as error:
            raise InvalidValue('Invalid enc_mac_key: %s' % error)

    def getSharedSecret(self, response, algorithm):
        """Unwrap the MAC key from the provider's association response.

        @type response: L{openidrp.message.Message}
        @param algorithm: Name of the hash algorithm, C{SHA1} or C{SHA256}
        @type algorithm: str
        @return: The MAC key
        @rtype: bytes

        @raises MissingData: If the response lacks the server public key
            or the encrypted MAC key.
        """
        server_public = response.get('dh_server_public')
        if server_public is None:
            raise MissingData('Missing dh_server_public in association response')
        enc_mac_key = response.get('enc_mac_key')
        if enc_mac_key is None:
            raise MissingData('Missing enc_mac_key in association response')
        _LOGGER.debug('Unwrapping MAC key with %s', algorithm)
        return self.xor_secret(server_public, enc_mac_key, algorithm)
