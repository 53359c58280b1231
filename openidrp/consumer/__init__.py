"""
This package contains the relying party side of the OpenID protocol.

The entry point is the C{L{RelyingParty
<openidrp.consumer.relyingparty.RelyingParty>}} class. Its
C{prepare} method discovers the user's provider and returns an
C{L{AuthRequest <openidrp.consumer.authrequest.AuthRequest>}}, whose
authorize URL the user is redirected to. When the user comes back, the
C{verify} method checks the provider's response and returns an
C{L{AssertionResult <openidrp.consumer.assertion.AssertionResult>}}.

Usage looks like::

    rp = RelyingParty('http://rp.example.com/return', 'http://rp.example.com/', identifier)
    auth_request = rp.prepare()
    redirect(auth_request.getAuthorizeURL())

    ...

    result = RelyingParty('http://rp.example.com/return', 'http://rp.example.com/').verify(
        request_url, Message.fromPostArgs(query))
    if result.success():
        login(result.discover.identifier)

The store and HTTP fetcher are taken from a C{L{Context
<openidrp.context.Context>}}, by default an in-memory store is used,
which is only suitable for a single process.
"""
