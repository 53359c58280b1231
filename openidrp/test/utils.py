"""Test utilities."""
import os.path
from urllib.parse import parse_qsl

from openidrp import kvform
from openidrp.constants import DEFAULT_DH_GENERATOR, DEFAULT_DH_MODULUS
from openidrp.context import Context
from openidrp.dh import DiffieHellman
from openidrp.oidutil import toBase64
from openidrp.store.memstore import MemoryStore

DATA_DIR = os.path.join(os.path.dirname(__file__), 'data')


def read_data(name):
    """Return the content of the test data file."""
    with open(os.path.join(DATA_DIR, name), 'rb') as data_file:
        return data_file.read()


def make_context(**kwargs):
    """Return a context with an empty in-memory store."""
    kwargs.setdefault('store', MemoryStore())
    return Context(**kwargs)


class OpenIDTestMixin(object):
    """Mixin providing custom asserts."""

    def assertOpenIDValueEqual(self, msg, key, expected):
        """Check OpenID message contains key with expected value."""
        actual = msg.get(key)
        error_message = 'Wrong value for %s: expected=%s, actual=%s' % (key, expected, actual)
        self.assertEqual(actual, expected, error_message)

    def assertOpenIDKeyMissing(self, msg, key):
        error_message = '%s unexpectedly present' % key
        self.assertFalse(msg.hasKey(key), error_message)


class AssociatingProvider(object):
    """Callback for `responses` answering association requests as an
    OpenID provider would.

    @ivar secret: The MAC key of the created associations
    @ivar requests: The parsed requests received
    """

    def __init__(self, handle='{HMAC-SHA256}{1234}', secret=b'\x01' * 32, expires_in=3600):
        self.handle = handle
        self.secret = secret
        self.expires_in = expires_in
        self.requests = []

    def __call__(self, request):
        body = request.body
        if isinstance(body, bytes):
            body = body.decode('utf-8')
        args = dict(parse_qsl(body))
        self.requests.append(args)

        session_type = args['openid.session_type']
        response = [
            ('assoc_handle', self.handle),
            ('assoc_type', args['openid.assoc_type']),
            ('session_type', session_type),
            ('expires_in', str(self.expires_in)),
        ]
        if args.get('openid.ns'):
            response.insert(0, ('ns', args['openid.ns']))
        if session_type == 'no-encryption':
            response.append(('mac_key', toBase64(self.secret)))
        else:
            server_dh = DiffieHellman(args.get('openid.dh_modulus', DEFAULT_DH_MODULUS),
                                      args.get('openid.dh_gen', DEFAULT_DH_GENERATOR))
            algorithm = session_type.replace('DH-', '')
            enc_mac_key = server_dh.xor_secret(args['openid.dh_consumer_public'], toBase64(self.secret), algorithm)
            response.append(('dh_server_public', server_dh.public_key))
            response.append(('enc_mac_key', toBase64(enc_mac_key)))
        return (200, {'Content-Type': 'text/plain'}, kvform.seqToKV(response))
