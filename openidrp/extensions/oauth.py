"""OpenID OAuth hybrid extension, the provider returns an OAuth
request token approved by the user along with the assertion."""
from openidrp.extension import REQUEST, RESPONSE, Extension

__all__ = ['OAuth', 'REQUEST', 'RESPONSE']


class OAuth(Extension):
    namespace = 'http://specs.openid.net/extensions/oauth/1.0'
    alias = 'oauth'
    request_keys = ('consumer', 'scope')
    response_keys = ('request_token', 'scope')
