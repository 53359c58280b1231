"""Simple registration request and response parsing and object representation

This module contains objects representing simple registration requests
and responses that can be used with the OpenID relying party.

The simple registration extension provides a way to exchange simple
profile information, see
U{http://openid.net/specs/openid-simple-registration-extension-1_0.html}.

Usage::

    sreg = SREG10(REQUEST)
    sreg.set('required', 'email')
    sreg.set('optional', 'nickname,gender,dob')
    auth_request.addExtension(sreg)

    ...

    profile = SREG10(RESPONSE, message)
    email = profile.get('email')

@var data_fields: The names of the data fields that are listed in the
    sreg spec
"""
from openidrp.extension import REQUEST, RESPONSE, Extension

__all__ = ['SREG10', 'REQUEST', 'RESPONSE', 'data_fields', 'ns_uri_1_0']

# The data fields that are listed in the sreg spec
data_fields = (
    'nickname',
    'email',
    'fullname',
    'dob',
    'gender',
    'postcode',
    'country',
    'language',
    'timezone',
)

# URI used in the wild for Yadis documents advertising simple
# registration support
ns_uri_1_0 = 'http://openid.net/sreg/1.0'


class SREG10(Extension):
    """Simple registration 1.0, which has no namespace alias."""
    namespace = ns_uri_1_0
    alias = 'sreg'
    use_namespace_alias = False
    request_keys = ('required', 'optional', 'policy_url')
    response_keys = data_fields
