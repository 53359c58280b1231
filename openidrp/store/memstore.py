"""A simple store using only in-process memory."""
import threading
import time

from openidrp.store.interface import (DEFAULT_LIFETIME, TYPE_ASSOCIATION, TYPE_DISCOVER, TYPE_NONCE,
                                      OpenIDStore)

__all__ = ['MemoryStore']


class MemoryStore(OpenIDStore):
    """In-process memory store.

    Use for single long-running processes. No persistence supplied. All
    operations are guarded by a lock, so a single instance may be
    shared between threads.
    """

    def __init__(self, lifetime=DEFAULT_LIFETIME):
        self.lifetime = lifetime
        self._items = {}
        self._lock = threading.Lock()

    def _get(self, type, key, now=None):
        if now is None:
            now = time.time()
        try:
            value, expires = self._items[(type, key)]
        except KeyError:
            return None
        if expires <= now:
            del self._items[(type, key)]
            return None
        return value

    def _set(self, type, key, value, expire=None):
        if expire is None:
            expire = self.lifetime
        self._items[(type, key)] = (value, time.time() + expire)

    def _delete(self, type, key):
        self._items.pop((type, key), None)

    def getAssociation(self, uri, handle=None):
        with self._lock:
            return self._get(TYPE_ASSOCIATION, self.getAssociationKey(uri, handle))

    def setAssociation(self, association):
        expire = association.getExpiresIn()
        with self._lock:
            self._set(TYPE_ASSOCIATION, self.getAssociationKey(association.uri), association, expire)
            self._set(TYPE_ASSOCIATION, self.getAssociationKey(association.uri, association.handle), association,
                      expire)

    def deleteAssociation(self, uri, handle=None):
        with self._lock:
            self._delete(TYPE_ASSOCIATION, self.getAssociationKey(uri))
            if handle is not None:
                self._delete(TYPE_ASSOCIATION, self.getAssociationKey(uri, handle))

    def getDiscover(self, identifier):
        with self._lock:
            return self._get(TYPE_DISCOVER, self.getDiscoverKey(identifier))

    def setDiscover(self, discover, expire=None):
        with self._lock:
            self._set(TYPE_DISCOVER, self.getDiscoverKey(discover.identifier), discover, expire)

    def deleteDiscover(self, identifier):
        with self._lock:
            self._delete(TYPE_DISCOVER, self.getDiscoverKey(identifier))

    def getNonce(self, nonce, op_url):
        with self._lock:
            return self._get(TYPE_NONCE, self.getNonceKey(nonce, op_url)) is not None

    def setNonce(self, nonce, op_url, expire=None):
        with self._lock:
            self._set(TYPE_NONCE, self.getNonceKey(nonce, op_url), nonce, expire)

    def deleteNonce(self, nonce, op_url):
        with self._lock:
            self._delete(TYPE_NONCE, self.getNonceKey(nonce, op_url))

    def useNonce(self, nonce, op_url, expire=None):
        key = self.getNonceKey(nonce, op_url)
        with self._lock:
            if self._get(TYPE_NONCE, key) is not None:
                return False
            self._set(TYPE_NONCE, key, nonce, expire)
            return True

    def cleanup(self):
        """Remove expired items.

        @return: Number of removed items
        @rtype: int
        """
        now = time.time()
        with self._lock:
            expired = [k for k, (_, expires) in self._items.items() if expires <= now]
            for k in expired:
                del self._items[k]
        return len(expired)
