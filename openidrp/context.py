"""Runtime collaborators shared by the relying party components.

A C{L{Context}} is passed explicitly to the components instead of
process-wide state, so independent relying parties may use different
stores and fetchers in the same process.
"""
import logging

from openidrp import fetchers
from openidrp.errors import HTTPError
from openidrp.message import Message
from openidrp.store.memstore import MemoryStore

__all__ = ['Context']

_LOGGER = logging.getLogger(__name__)


class Context(object):
    """Holds the store, the HTTP fetcher and the event sink.

    @ivar store: The store for associations, discovery results and nonces
    @type store: L{openidrp.store.interface.OpenIDStore}

    @ivar fetcher: The HTTP fetcher
    @type fetcher: L{openidrp.fetchers.HTTPFetcher}

    @ivar event_sink: Callable receiving C{(event, message)} for every
        recorded event, or C{None}.
    """

    def __init__(self, store=None, fetcher=None, event_sink=None):
        if store is None:
            store = MemoryStore()
        if fetcher is None:
            fetcher = fetchers.createHTTPFetcher()
        self.store = store
        self.fetcher = fetcher
        self.event_sink = event_sink

    def record(self, event, message):
        """Record an event of the authentication flow.

        @param event: Name of the event, usually the qualified name of
            the method recording it.
        @type event: str
        @type message: str
        """
        _LOGGER.debug('%s: %s', event, message)
        if self.event_sink is not None:
            self.event_sink(event, message)

    def fetch(self, url, body=None, headers=None, options=None):
        """Fetch the URL, see L{openidrp.fetchers.HTTPFetcher.fetch}.

        @raises HTTPError: If the request fails.
        """
        try:
            return self.fetcher.fetch(url, body=body, headers=headers, options=options)
        except fetchers.HTTPFetchingError as error:
            raise HTTPError('Request to %s failed: %s' % (url, error.why)) from error

    def directRequest(self, url, message, options=None):
        """Make a direct request to an OpenID provider and return the
        response as a message.

        Error responses with status 400 carry a key-value form body
        and are returned as well.

        @type url: str
        @type message: L{openidrp.message.Message}
        @type options: Optional[Dict[str, Any]]
        @rtype: L{openidrp.message.Message}

        @raises HTTPError: If the request fails or the response status
            is neither 200 nor 400.
        """
        response = self.fetch(url, body=message.toURLEncoded().encode('utf-8'), options=options)
        if response.status not in (200, 400):
            _LOGGER.warning('Bad status code from server %s: %s', url, response.status)
            raise HTTPError('Bad status code from server %s: %s' % (url, response.status))

        response_message = Message.fromKVForm(response.body)
        if response.status == 400:
            _LOGGER.warning('Server error response from %s: %s', url, response_message.get('error'))
        return response_message
