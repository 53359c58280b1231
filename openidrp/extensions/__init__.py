"""OpenID extension modules."""

__all__ = ['ax', 'oauth', 'sreg', 'ui']
