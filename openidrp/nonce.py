"""Nonces protecting the relying party against replayed assertions.

A nonce is a UTC timestamp followed by a random suffix, for example
C{2024-01-31T12:00:00ZUniQue}.
"""
import calendar
import logging
import re
import time

from openidrp.constants import DEFAULT_CLOCK_SKEW
from openidrp.cryptutil import randomString

__all__ = ['Nonce', 'RETURN_TO_NONCE']

_LOGGER = logging.getLogger(__name__)

# Name of the return_to query argument holding the nonce in OpenID 1.1
RETURN_TO_NONCE = 'openid.1_1_nonce'

NONCE_MAX_LENGTH = 255
TIME_FMT = '%Y-%m-%dT%H:%M:%SZ'
NONCE_RE = re.compile(r'(\d{4})-(\d\d)-(\d\d)T(\d\d):(\d\d):(\d\d)Z(.*)', re.DOTALL)


def parseTimestamp(nonce):
    """Return the timestamp of the nonce.

    @rtype: int
    @raises ValueError: If the nonce doesn't start with a valid timestamp.
    """
    match = NONCE_RE.match(nonce)
    if match is None:
        raise ValueError('Invalid nonce format: %r' % nonce)
    timestamp = time.strptime(nonce[:20], TIME_FMT)
    return calendar.timegm(timestamp)


class Nonce(object):
    """Nonces bound to a single OP endpoint.

    @ivar op_url: The OP endpoint URL
    @ivar clock_skew: Allowed difference of the nonce timestamp from the
        current time, in seconds
    @ivar context: L{openidrp.context.Context} holding the store
    """

    def __init__(self, op_url, context, clock_skew=None):
        self.op_url = op_url
        self.context = context
        if clock_skew is None:
            clock_skew = DEFAULT_CLOCK_SKEW
        self.clock_skew = clock_skew

    def validate(self, nonce, now=None):
        """Check the nonce is well formed and its timestamp is within
        the allowed clock skew.

        @type nonce: str
        @rtype: bool
        """
        if len(nonce) > NONCE_MAX_LENGTH:
            return False

        try:
            stamp = parseTimestamp(nonce)
        except ValueError:
            return False

        if now is None:
            now = int(time.time())
        return now - self.clock_skew <= stamp <= now + self.clock_skew

    def verifyResponseNonce(self, nonce):
        """Check the nonce received from the provider wasn't used before
        and is valid. The nonce is stored, so any later verification of
        the same nonce fails.

        @type nonce: Optional[str]
        @rtype: bool
        """
        if nonce is None:
            return False

        # Keep it long enough to outlive its validity window
        if not self.context.store.useNonce(nonce, self.op_url, 2 * self.clock_skew):
            _LOGGER.info('Nonce %s was already used for %s', nonce, self.op_url)
            return False
        return self.validate(nonce)

    def createNonce(self, length=6, when=None):
        """Create a new nonce.

        @param length: Length of the random suffix
        @type length: int

        @param when: Timestamp of the nonce, current time by default
        @type when: Optional[int]

        @rtype: str
        """
        if when is None:
            when = int(time.time())
        nonce = time.strftime(TIME_FMT, time.gmtime(when))
        if length < 1:
            return nonce
        return nonce + randomString(length)

    def createNonceAndStore(self, length=6, when=None):
        """Create a new nonce and store it for the endpoint."""
        nonce = self.createNonce(length, when)
        self.context.store.setNonce(nonce, self.op_url, 2 * self.clock_skew)
        return nonce
