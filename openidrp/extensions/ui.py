"""User interface extension."""
from openidrp.errors import InvalidValue
from openidrp.extension import REQUEST, RESPONSE, Extension

__all__ = ['UI', 'REQUEST', 'RESPONSE']


class UI(Extension):
    namespace = 'http://specs.openid.net/extensions/ui/1.0'
    alias = 'ui'

    valid_modes = ('popup',)

    def set(self, key, value):
        if key.startswith('mode') and value not in self.valid_modes:
            raise InvalidValue('Invalid UI mode: %s' % value)
        return Extension.set(self, key, value)
