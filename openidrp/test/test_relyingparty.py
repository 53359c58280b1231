"""Test `openidrp.consumer.relyingparty` module."""
import logging
import unittest
from urllib.parse import parse_qsl, urlencode, urlsplit

import responses
from testfixtures import LogCapture

from openidrp import oidutil
from openidrp.association import Association
from openidrp.constants import DEFAULT_REQUEST_OPTIONS, NS_2_0, NS_2_0_ID_SELECT, SERVICE_2_0_SIGNON
from openidrp.consumer.discover import Discover, ServiceEndpoint, ServiceEndpoints
from openidrp.consumer.relyingparty import RelyingParty
from openidrp.errors import DiscoveryError, InvalidValue, MissingData, ProviderError
from openidrp.message import Message
from openidrp.nonce import Nonce
from openidrp.test.utils import AssociatingProvider, make_context, read_data

USER_URL = 'http://user.example.com/'
OP_URL = 'https://op.example.com/server'
OP_IDENTIFIER = 'https://op.example.com/'
RETURN_TO = 'http://rp.example.com/return'
REALM = 'http://rp.example.com/'

OP_XRDS = ('<?xml version="1.0" encoding="UTF-8"?>\n'
           '<xrds:XRDS xmlns:xrds="xri://$xrds" xmlns="xri://$xrd*($v*2.0)"><XRD><Service>'
           '<Type>http://specs.openid.net/auth/2.0/server</Type><URI>https://op.example.com/server</URI>'
           '</Service></XRD></xrds:XRDS>')


def parse_url(url):
    parts = urlsplit(url)
    return '%s://%s%s' % (parts.scheme, parts.netloc, parts.path), dict(parse_qsl(parts.query))


class RelyingPartyOptionsTest(unittest.TestCase):
    def test_defaults(self):
        rp = RelyingParty(RETURN_TO, REALM, 'user.example.com', make_context())
        self.assertEqual(rp.identifier, USER_URL)
        self.assertTrue(rp.use_associations)
        self.assertIsNone(rp.clock_skew)
        self.assertEqual(rp.getRequestOptions(), DEFAULT_REQUEST_OPTIONS)
        self.assertIsNot(rp.getRequestOptions(), DEFAULT_REQUEST_OPTIONS)
        self.assertIsNotNone(RelyingParty(RETURN_TO, REALM).context)

    def test_setters(self):
        rp = RelyingParty(RETURN_TO, REALM, USER_URL, make_context())
        self.assertIs(rp.disableAssociations(), rp)
        self.assertFalse(rp.use_associations)
        rp.enableAssociations()
        self.assertTrue(rp.use_associations)
        rp.setClockSkew('60')
        self.assertEqual(rp.clock_skew, 60)
        rp.setRequestOptions({'timeout': 10})
        self.assertEqual(rp.getRequestOptions(), {'timeout': 10})

    def test_invalid_identifier(self):
        self.assertRaises(InvalidValue, RelyingParty, RETURN_TO, REALM, 'http://exa mple.com/')


class PrepareTest(unittest.TestCase):
    def setUp(self):
        self.context = make_context()

    def test_no_identifier(self):
        self.assertRaises(MissingData, RelyingParty(RETURN_TO, REALM, context=self.context).prepare)

    @responses.activate
    def test_discovery_failed(self):
        responses.add(responses.GET, USER_URL, status=404)
        self.assertRaises(DiscoveryError, RelyingParty(RETURN_TO, REALM, USER_URL, self.context).prepare)

    @responses.activate
    def test_associate(self):
        responses.add(responses.GET, USER_URL, body=read_data('yadis_2_0.xrds'), content_type='application/xrds+xml')
        provider = AssociatingProvider()
        responses.add_callback(responses.POST, 'https://www.myopenid.com/server', callback=provider)

        rp = RelyingParty(RETURN_TO, REALM, USER_URL, self.context)
        base, args = parse_url(rp.prepare().getAuthorizeURL())

        self.assertEqual(base, 'https://www.myopenid.com/server')
        self.assertEqual(args, {
            'openid.ns': NS_2_0,
            'openid.return_to': RETURN_TO,
            'openid.realm': REALM,
            'openid.assoc_handle': '{HMAC-SHA256}{1234}',
            'openid.mode': 'checkid_setup',
            'openid.claimed_id': USER_URL,
            'openid.identity': 'http://smoker.myopenid.com/',
        })
        association = self.context.store.getAssociation('https://www.myopenid.com/server')
        self.assertEqual(association.secret, provider.secret)

        # Both discovery and association are reused
        rp.prepare()
        self.assertEqual(len(provider.requests), 1)
        self.assertEqual(len(responses.calls), 2)

    @responses.activate
    def test_id_select(self):
        responses.add(responses.GET, OP_IDENTIFIER, body=OP_XRDS, content_type='application/xrds+xml')
        responses.add_callback(responses.POST, OP_URL, callback=AssociatingProvider())

        rp = RelyingParty(RETURN_TO, REALM, OP_IDENTIFIER, self.context)
        base, args = parse_url(rp.prepare().getAuthorizeURL())

        self.assertEqual(base, OP_URL)
        self.assertEqual(args['openid.claimed_id'], NS_2_0_ID_SELECT)
        self.assertEqual(args['openid.identity'], NS_2_0_ID_SELECT)

    @responses.activate
    def test_stateless(self):
        responses.add(responses.GET, USER_URL, body=read_data('html_2_0.html'), content_type='text/html')

        rp = RelyingParty(RETURN_TO, REALM, USER_URL, self.context).disableAssociations()
        base, args = parse_url(rp.prepare().getAuthorizeURL())

        self.assertEqual(base, 'http://op.example.com/server')
        self.assertNotIn('openid.assoc_handle', args)
        self.assertFalse([call for call in responses.calls if call.request.method == 'POST'])

    @responses.activate
    def test_association_failed(self):
        responses.add(responses.GET, USER_URL, body=read_data('html_2_0.html'), content_type='text/html')
        responses.add(responses.POST, 'http://op.example.com/server', status=500)

        rp = RelyingParty(RETURN_TO, REALM, USER_URL, self.context)
        with LogCapture('openidrp.consumer.relyingparty', level=logging.WARNING) as logger:
            auth_request = rp.prepare()

        self.assertIsNone(auth_request.message.get('openid.assoc_handle'))
        self.assertEqual(len(logger.records), 1)
        self.assertIn('continuing in stateless mode', logger.records[0].getMessage())

    @responses.activate
    def test_association_invalid_dh_server_public(self):
        responses.add(responses.GET, USER_URL, body=read_data('html_2_0.html'), content_type='text/html')
        body = ('ns:%s\nassoc_handle:{handle}\nassoc_type:HMAC-SHA256\nsession_type:DH-SHA256\nexpires_in:3600\n'
                'dh_server_public:AQ==\nenc_mac_key:AAAA\n' % NS_2_0)
        responses.add(responses.POST, 'http://op.example.com/server', body=body)

        rp = RelyingParty(RETURN_TO, REALM, USER_URL, self.context)
        with LogCapture('openidrp.consumer.relyingparty', level=logging.WARNING) as logger:
            auth_request = rp.prepare()

        self.assertIsNone(auth_request.message.get('openid.assoc_handle'))
        self.assertIsNone(self.context.store.getAssociation('http://op.example.com/server'))
        self.assertIn('continuing in stateless mode', logger.records[0].getMessage())

    @responses.activate
    def test_association_refused(self):
        responses.add(responses.GET, USER_URL, body=read_data('html_2_0.html'), content_type='text/html')
        responses.add(responses.POST, 'http://op.example.com/server', body='mode:error\nerror:No\n', status=400)

        auth_request = RelyingParty(RETURN_TO, REALM, USER_URL, self.context).prepare()

        self.assertIsNone(auth_request.message.get('openid.assoc_handle'))
        self.assertIsNone(self.context.store.getAssociation('http://op.example.com/server'))


class VerifyTest(unittest.TestCase):
    def setUp(self):
        self.events = []
        self.context = make_context(event_sink=lambda event, message: self.events.append(event))
        discover = Discover(USER_URL, self.context)
        discover.services = ServiceEndpoints(USER_URL, ServiceEndpoint(SERVICE_2_0_SIGNON, [SERVICE_2_0_SIGNON],
                                                                       [OP_URL]))
        self.context.store.setDiscover(discover)
        self.association = Association.fromExpiresIn(OP_URL, '{handle}', b'\x01' * 32, 3600, 'HMAC-SHA256')
        self.context.store.setAssociation(self.association)
        self.rp = RelyingParty(RETURN_TO, REALM, USER_URL, self.context)
        self.message = Message({
            'openid.ns': NS_2_0,
            'openid.mode': 'id_res',
            'openid.op_endpoint': OP_URL,
            'openid.claimed_id': USER_URL,
            'openid.identity': USER_URL,
            'openid.return_to': RETURN_TO,
            'openid.response_nonce': Nonce(OP_URL, self.context).createNonce(),
            'openid.assoc_handle': '{handle}',
        })

    def requested_url(self):
        return oidutil.appendArgs(RETURN_TO, self.message.toPostArgs())

    def test_cancel(self):
        result = self.rp.verify(RETURN_TO, Message({'openid.ns': NS_2_0, 'openid.mode': 'cancel'}))
        self.assertFalse(result.success())
        self.assertEqual(result.assertion_method, 'cancel')

    def test_setup_needed(self):
        result = self.rp.verify(RETURN_TO, Message({'openid.ns': NS_2_0, 'openid.mode': 'setup_needed'}))
        self.assertFalse(result.success())
        self.assertEqual(result.assertion_method, 'setup_needed')

    def test_error(self):
        with self.assertRaisesRegex(ProviderError, 'Something went wrong'):
            self.rp.verify(RETURN_TO, Message({'openid.mode': 'error', 'openid.error': 'Something went wrong'}))

    def test_unknown_mode(self):
        self.assertRaises(InvalidValue, self.rp.verify, RETURN_TO, Message({'openid.mode': 'checkid_setup'}))
        self.assertRaises(InvalidValue, self.rp.verify, RETURN_TO, Message())

    def test_user_setup_url(self):
        setup_url = 'https://op.example.com/setup?' + urlencode({'openid.identity': USER_URL})
        result = self.rp.verify(RETURN_TO, Message({'openid.mode': 'id_res', 'openid.user_setup_url': setup_url}))
        self.assertFalse(result.success())
        self.assertEqual(result.user_setup_url, setup_url)

    def test_association(self):
        self.association.signMessage(self.message)

        result = self.rp.verify(self.requested_url(), self.message)

        self.assertTrue(result.success())
        self.assertEqual(result.assertion_method, 'associate')
        self.assertIsNone(result.check_auth_response)
        self.assertEqual(result.discover.identifier, USER_URL)
        self.assertIn('RelyingParty.verify', self.events)

    def test_association_bad_signature(self):
        self.association.signMessage(self.message)
        self.message.set('openid.identity', 'http://evil.example.com/')

        result = self.rp.verify(self.requested_url(), self.message)

        self.assertFalse(result.success())
        self.assertEqual(result.assertion_method, 'associate')

    def test_association_unknown_handle(self):
        self.message.set('openid.assoc_handle', '{unknown}')
        self.message.set('openid.signed', 'mode')
        self.message.set('openid.sig', 'c2ln')

        result = self.rp.verify(self.requested_url(), self.message)

        self.assertFalse(result.success())

    @responses.activate
    def test_check_authentication(self):
        responses.add(responses.POST, OP_URL, body='ns:%s\nis_valid:true\n' % NS_2_0)

        result = self.rp.disableAssociations().verify(self.requested_url(), self.message)

        self.assertTrue(result.success())
        self.assertEqual(result.assertion_method, 'check_authentication')
        self.assertEqual(result.check_auth_response.get('is_valid'), 'true')

    @responses.activate
    def test_check_authentication_invalid(self):
        responses.add(responses.POST, OP_URL, body='ns:%s\nis_valid:false\n' % NS_2_0)

        result = self.rp.disableAssociations().verify(self.requested_url(), self.message)

        self.assertFalse(result.success())

    @responses.activate
    def test_invalidate_handle(self):
        responses.add(responses.POST, OP_URL, body='ns:%s\nis_valid:true\ninvalidate_handle:{handle}\n' % NS_2_0)
        self.message.set('openid.invalidate_handle', '{handle}')
        self.message.set('openid.assoc_handle', '{stateless}')

        with LogCapture('openidrp.consumer.relyingparty', level=logging.INFO) as logger:
            result = self.rp.verify(self.requested_url(), self.message)

        self.assertTrue(result.success())
        self.assertEqual(result.assertion_method, 'check_authentication')
        self.assertIsNone(self.context.store.getAssociation(OP_URL))
        self.assertIsNone(self.context.store.getAssociation(OP_URL, '{handle}'))
        logger.check(('openidrp.consumer.relyingparty', 'INFO',
                      'Provider https://op.example.com/server invalidated association {handle}'))

    @responses.activate
    def test_unsolicited(self):
        responses.add(responses.POST, OP_URL, body='ns:%s\nis_valid:true\n' % NS_2_0)
        self.association.signMessage(self.message)

        rp = RelyingParty(RETURN_TO, REALM, context=self.context)
        result = rp.verify(self.requested_url(), self.message)

        self.assertTrue(result.success())
        self.assertEqual(result.assertion_method, 'check_authentication')
        self.assertEqual(len(responses.calls), 1)

    @responses.activate
    def test_unsolicited_rejected_by_provider(self):
        # Valid association signature, but the provider doesn't confirm it
        responses.add(responses.POST, OP_URL, body='ns:%s\nis_valid:false\n' % NS_2_0)
        self.association.signMessage(self.message)

        rp = RelyingParty(RETURN_TO, REALM, context=self.context)
        result = rp.verify(self.requested_url(), self.message)

        self.assertFalse(result.success())
        self.assertEqual(result.assertion_method, 'check_authentication')
        self.assertEqual(len(responses.calls), 1)

    def test_unsolicited_no_claimed_id(self):
        self.message.delete('openid.claimed_id')
        rp = RelyingParty(RETURN_TO, REALM, context=self.context)
        self.assertRaises(MissingData, rp.verify, self.requested_url(), self.message)

    def test_invalid_return_to(self):
        self.association.signMessage(self.message)
        self.assertRaises(InvalidValue, self.rp.verify, 'http://evil.example.com/return', self.message)
