"""
This package is an implementation of the relying party side of the
OpenID 1.1 and 2.0 authentication protocols in Python.

The usual entry point is the C{L{RelyingParty
<openidrp.consumer.relyingparty.RelyingParty>}} class, which discovers
the identifier's provider, builds the authentication request and
verifies the provider's assertion.
"""

__version__ = '1.0.0'

version_info = tuple(int(part) for part in __version__.split('.'))
