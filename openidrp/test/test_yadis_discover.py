"""Test `openidrp.yadis.discover` module."""
import unittest

import responses
from requests.exceptions import ConnectionError

from openidrp.errors import HTTP_ERROR
from openidrp.test.utils import make_context, read_data
from openidrp.yadis.constants import YADIS_ACCEPT_HEADER
from openidrp.yadis.discover import DiscoveryFailure, DiscoveryResult, discover, isXRDSContentType

USER_URL = 'http://user.example.com/'
XRDS_URL = 'http://user.example.com/xrds'


class IsXRDSContentTypeTest(unittest.TestCase):
    def test(self):
        self.assertTrue(isXRDSContentType('application/xrds+xml'))
        self.assertTrue(isXRDSContentType('Application/XRDS+XML; charset=UTF-8'))
        self.assertFalse(isXRDSContentType('text/html'))
        self.assertFalse(isXRDSContentType(None))


class DiscoveryResultTest(unittest.TestCase):
    def test_initial(self):
        result = DiscoveryResult(USER_URL)
        self.assertFalse(result.usedYadisLocation())
        self.assertFalse(result.isXRDS())

    def test_usedYadisLocation(self):
        result = DiscoveryResult(USER_URL)
        result.normalized_uri = USER_URL
        result.xrds_uri = XRDS_URL
        self.assertTrue(result.usedYadisLocation())
        self.assertTrue(result.isXRDS())
        result.xrds_uri = USER_URL
        self.assertFalse(result.usedYadisLocation())


class DiscoverTest(unittest.TestCase):
    def setUp(self):
        self.context = make_context()

    @responses.activate
    def test_xrds(self):
        responses.add(responses.GET, USER_URL, body=read_data('yadis_2_0.xrds'), content_type='application/xrds+xml')

        result = discover(USER_URL, self.context)

        self.assertEqual(result.request_uri, USER_URL)
        self.assertEqual(result.normalized_uri, USER_URL)
        self.assertEqual(result.xrds_uri, USER_URL)
        self.assertFalse(result.usedYadisLocation())
        self.assertTrue(result.isXRDS())
        self.assertEqual(result.response_text, read_data('yadis_2_0.xrds'))
        self.assertEqual(responses.calls[0].request.headers['Accept'], YADIS_ACCEPT_HEADER)

    @responses.activate
    def test_header(self):
        responses.add(responses.GET, USER_URL, body='<html></html>', content_type='text/html',
                      headers={'X-XRDS-Location': XRDS_URL})
        responses.add(responses.GET, XRDS_URL, body=read_data('yadis_2_0.xrds'), content_type='application/xrds+xml')

        result = discover(USER_URL, self.context)

        self.assertEqual(result.xrds_uri, XRDS_URL)
        self.assertTrue(result.usedYadisLocation())
        self.assertEqual(result.content_type, 'application/xrds+xml')
        self.assertEqual(result.response_text, read_data('yadis_2_0.xrds'))

    @responses.activate
    def test_relative_header(self):
        responses.add(responses.GET, USER_URL, body='', content_type='text/html', headers={'X-XRDS-Location': 'xrds'})
        responses.add(responses.GET, XRDS_URL, body=read_data('yadis_2_0.xrds'), content_type='application/xrds+xml')

        result = discover(USER_URL, self.context)

        self.assertEqual(result.xrds_uri, XRDS_URL)

    @responses.activate
    def test_meta(self):
        responses.add(responses.GET, USER_URL, body=read_data('html_yadis_meta.html'), content_type='text/html')
        responses.add(responses.GET, XRDS_URL, body=read_data('yadis_2_0.xrds'), content_type='application/xrds+xml')

        result = discover(USER_URL, self.context)

        self.assertEqual(result.xrds_uri, XRDS_URL)
        self.assertTrue(result.isXRDS())

    @responses.activate
    def test_html(self):
        responses.add(responses.GET, USER_URL, body=read_data('html_2_0.html'), content_type='text/html')

        result = discover(USER_URL, self.context)

        self.assertIsNone(result.xrds_uri)
        self.assertFalse(result.isXRDS())
        self.assertEqual(result.response_text, read_data('html_2_0.html'))
        self.assertEqual(result.http_response.status, 200)

    @responses.activate
    def test_redirect(self):
        responses.add(responses.GET, 'http://example.com/', status=302, headers={'Location': USER_URL})
        responses.add(responses.GET, USER_URL, body=read_data('yadis_2_0.xrds'), content_type='application/xrds+xml')

        result = discover('http://example.com/', self.context)

        self.assertEqual(result.request_uri, 'http://example.com/')
        self.assertEqual(result.normalized_uri, USER_URL)
        self.assertTrue(result.isXRDS())

    @responses.activate
    def test_not_found(self):
        responses.add(responses.GET, USER_URL, status=404)
        with self.assertRaises(DiscoveryFailure) as catcher:
            discover(USER_URL, self.context)
        self.assertEqual(catcher.exception.code, HTTP_ERROR)
        self.assertEqual(catcher.exception.http_response.status, 404)

    @responses.activate
    def test_xrds_not_found(self):
        responses.add(responses.GET, USER_URL, body='', headers={'X-XRDS-Location': XRDS_URL})
        responses.add(responses.GET, XRDS_URL, status=500)
        self.assertRaises(DiscoveryFailure, discover, USER_URL, self.context)

    @responses.activate
    def test_connection_error(self):
        responses.add(responses.GET, USER_URL, body=ConnectionError('Name or service not known'))
        with self.assertRaises(DiscoveryFailure) as catcher:
            discover(USER_URL, self.context)
        self.assertEqual(catcher.exception.code, HTTP_ERROR)
        self.assertIsNone(catcher.exception.http_response)
