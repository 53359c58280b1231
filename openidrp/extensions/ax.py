"""Attribute exchange, U{http://openid.net/specs/openid-attribute-exchange-1_0.html}."""
from openidrp.errors import InvalidValue
from openidrp.extension import REQUEST, RESPONSE, Extension
from openidrp.oidutil import isValidURL

__all__ = ['AX', 'REQUEST', 'RESPONSE']


class AX(Extension):
    """Attribute exchange extension.

    Any keys are allowed, but C{mode} must be one of the AX modes and
    the attribute types C{type.<alias>} must be URIs.
    """
    namespace = 'http://openid.net/srv/ax/1.0'
    alias = 'ax'

    valid_modes = (
        'fetch_request',
        'fetch_response',
        'store_request',
        'store_response_success',
        'store_response_failure',
    )

    def set(self, key, value):
        """
        @raises InvalidValue: On invalid mode or attribute type.
        """
        if key.startswith('mode') and value not in self.valid_modes:
            raise InvalidValue('Invalid AX mode: %s' % value)

        if key.startswith('type.') and not isValidURL(value):
            raise InvalidValue('%s is not a valid URI' % key)

        return Extension.set(self, key, value)
