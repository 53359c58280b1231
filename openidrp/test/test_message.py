"""Test `openidrp.message` module."""
import unittest

from openidrp.constants import NS_2_0
from openidrp.errors import InvalidValue
from openidrp.kvform import KVFormError
from openidrp.message import FORMAT_ARRAY, FORMAT_HTTP, FORMAT_KV, Message
from openidrp.test.utils import OpenIDTestMixin


class DummyExtension(object):
    def toMessage(self, message):
        message.set('openid.ns.dummy', 'http://an.extension/')
        message.set('openid.dummy.key', 'value')


class MessageTest(unittest.TestCase, OpenIDTestMixin):
    def test_empty(self):
        msg = Message()
        self.assertEqual(len(msg), 0)
        self.assertEqual(msg.toKVForm(), '')
        self.assertEqual(msg.toURLEncoded(), '')
        self.assertEqual(msg.toPostArgs(), {})
        self.assertIsNone(msg.get('openid.mode'))

    def test_set_get_delete(self):
        msg = Message()
        msg.set('openid.mode', 'checkid_setup')
        self.assertOpenIDValueEqual(msg, 'openid.mode', 'checkid_setup')
        self.assertIn('openid.mode', msg)
        msg.delete('openid.mode')
        self.assertOpenIDKeyMissing(msg, 'openid.mode')
        # Deleting a missing key is fine
        msg.delete('openid.mode')

    def test_namespace(self):
        msg = Message()
        msg.set('openid.ns', NS_2_0)
        self.assertEqual(msg.get('openid.ns'), NS_2_0)
        with self.assertRaises(InvalidValue):
            msg.set('openid.ns', 'http://openid.net/signon/1.1')
        self.assertEqual(msg.get('openid.ns'), NS_2_0)

    def test_namespace_parsed(self):
        with self.assertRaises(InvalidValue):
            Message.fromKVForm('openid.ns:bogus\n')

    def test_order(self):
        msg = Message()
        msg.set('openid.mode', 'checkid_setup')
        msg.set('openid.return_to', 'http://rp.example.com/')
        msg.set('openid.identity', 'http://user.example.com/')
        self.assertEqual(msg.keys(), ['openid.mode', 'openid.return_to', 'openid.identity'])
        self.assertEqual(msg.toKVForm(), 'openid.mode:checkid_setup\nopenid.return_to:http://rp.example.com/\n'
                                         'openid.identity:http://user.example.com/\n')

    def test_toURLEncoded(self):
        msg = Message({'openid.mode': 'checkid_setup', 'openid.return_to': 'http://rp.example.com/?a=b c'})
        self.assertEqual(msg.toURLEncoded(),
                         'openid.mode=checkid_setup&openid.return_to=http%3A%2F%2Frp.example.com%2F%3Fa%3Db+c')

    def test_fromURLEncoded(self):
        msg = Message.fromURLEncoded('openid.mode=id_res&junk&openid.return_to=http%3A%2F%2Frp.example.com%2F'
                                     '&openid.sig=a%2Bb%3D&openid.empty=')
        self.assertEqual(msg.toPostArgs(), {
            'openid.mode': 'id_res',
            'openid.return_to': 'http://rp.example.com/',
            'openid.sig': 'a+b=',
            'openid.empty': '',
        })

    def test_fromKVForm(self):
        msg = Message.fromKVForm(b'mode:error\nbogus line\n\nerror:url: http://example.com/\n')
        self.assertEqual(msg.toPostArgs(), {'mode': 'error', 'error': 'url: http://example.com/'})

    def test_fromPostArgs(self):
        msg = Message.fromPostArgs({'openid.mode': 'cancel', 'next': '/home'})
        self.assertEqual(msg.toPostArgs(), {'openid.mode': 'cancel'})

    def test_roundtrip(self):
        msg = Message({'openid.ns': NS_2_0, 'openid.mode': 'id_res', 'openid.sig': 'a+/b=',
                       'openid.return_to': 'http://rp.example.com/?x=1&y=2'})
        self.assertEqual(Message.fromKVForm(msg.toKVForm()), msg)
        self.assertEqual(Message.fromURLEncoded(msg.toURLEncoded()), msg)
        self.assertEqual(Message(msg.toPostArgs()), msg)

    def test_roundtrip_kv_whitespace(self):
        msg = Message({'openid.a': ' padded ', 'openid.b': '', 'openid.c': 'x:\ty '})
        self.assertEqual(Message.fromKVForm(msg.toKVForm()).toPostArgs(),
                         {'openid.a': ' padded ', 'openid.b': '', 'openid.c': 'x:\ty '})

    def test_formats(self):
        msg = Message({'openid.mode': 'cancel'})
        self.assertEqual(msg.getMessage(FORMAT_KV), 'openid.mode:cancel\n')
        self.assertEqual(msg.getMessage(FORMAT_HTTP), 'openid.mode=cancel')
        self.assertEqual(msg.getMessage(FORMAT_ARRAY), {'openid.mode': 'cancel'})
        self.assertEqual(Message('openid.mode:cancel\n', FORMAT_KV), msg)
        self.assertEqual(Message('openid.mode=cancel', FORMAT_HTTP), msg)

    def test_invalid_format(self):
        msg = Message()
        self.assertRaises(InvalidValue, msg.getMessage, 'xml')
        self.assertRaises(InvalidValue, Message, 'openid.mode=cancel', 'xml')

    def test_newline_in_value(self):
        msg = Message({'openid.error': 'multi\nline'})
        self.assertRaises(KVFormError, msg.toKVForm)

    def test_copy(self):
        msg = Message({'openid.mode': 'id_res'})
        copied = msg.copy()
        copied.set('openid.mode', 'check_authentication')
        self.assertEqual(msg.get('openid.mode'), 'id_res')

    def test_addExtension(self):
        msg = Message({'openid.mode': 'checkid_setup'})
        msg.addExtension(DummyExtension())
        self.assertEqual(msg.get('openid.ns.dummy'), 'http://an.extension/')
        self.assertEqual(msg.get('openid.dummy.key'), 'value')
