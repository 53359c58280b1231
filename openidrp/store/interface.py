"""
This module contains the definition of the C{L{OpenIDStore}}
interface.
"""
import hashlib

__all__ = ['OpenIDStore', 'DEFAULT_LIFETIME']

# Default lifetime of the stored items, in seconds
DEFAULT_LIFETIME = 3600

TYPE_ASSOCIATION = 'association'
TYPE_DISCOVER = 'discover'
TYPE_NONCE = 'nonce'


class OpenIDStore(object):
    """
    This is the interface for the store objects the relying party
    uses.  It is a single class that provides all of the persistence
    mechanisms that the library needs: associations, cached discovery
    results and nonces.

    All items are stored with a time to live. Expired items must never
    be returned.

    Keys are derived from the stored data by C{L{getKey}}, so
    implementations don't need to care about the character set of the
    URLs.

    @sort: getAssociation, setAssociation, deleteAssociation,
        getDiscover, setDiscover, deleteDiscover,
        getNonce, setNonce, deleteNonce, useNonce
    """

    @staticmethod
    def getKey(*parts):
        """Return the storage key for the given parts.

        The parts are joined with a newline, which URLs and handles
        never contain.

        @rtype: str
        """
        return hashlib.md5('\n'.join(parts).encode('utf-8')).hexdigest()

    def getAssociationKey(self, uri, handle=None):
        if handle is None:
            return self.getKey(uri)
        return self.getKey(uri, handle)

    def getDiscoverKey(self, identifier):
        return self.getKey(identifier)

    def getNonceKey(self, nonce, op_url):
        return self.getKey('OpenID.Nonce.', op_url, nonce)

    def getAssociation(self, uri, handle=None):
        """
        This method returns an C{L{Association
        <openidrp.association.Association>}} object from storage that
        matches the OP endpoint URL and, if specified, handle. It
        returns C{None} if no such association is found or if the
        matching association is expired.

        If no handle is specified, the store returns the association
        most recently stored for the endpoint.


        @param uri: The URL of the OP endpoint to get the association
            for.
        @type uri: str


        @param handle: This optional parameter is the handle of the
            specific association to get.
        @type handle: Optional[str]


        @return: The C{L{Association
            <openidrp.association.Association>}} for the given
            endpoint and handle.
        @rtype: Optional[L{Association <openidrp.association.Association>}]
        """
        raise NotImplementedError

    def setAssociation(self, association):
        """
        This method puts an C{L{Association
        <openidrp.association.Association>}} object into storage,
        retrievable by the endpoint URL alone and by the endpoint URL
        and handle. It expires when the association does.

        @type association: L{Association <openidrp.association.Association>}
        """
        raise NotImplementedError

    def deleteAssociation(self, uri, handle=None):
        """
        This method removes the association for the endpoint URL from
        storage. If the handle is given, the association stored under
        the handle is removed as well.

        @type uri: str
        @type handle: Optional[str]
        """
        raise NotImplementedError

    def getDiscover(self, identifier):
        """
        Return the cached C{L{Discover
        <openidrp.consumer.discover.Discover>}} object for the
        normalized identifier or C{None}.

        @type identifier: str
        @rtype: Optional[L{Discover <openidrp.consumer.discover.Discover>}]
        """
        raise NotImplementedError

    def setDiscover(self, discover, expire=None):
        """
        Cache the discovery result under its identifier.

        @type discover: L{Discover <openidrp.consumer.discover.Discover>}

        @param expire: Time to live in seconds, the store's default
            lifetime is used if not set.
        @type expire: Optional[int]
        """
        raise NotImplementedError

    def deleteDiscover(self, identifier):
        """Remove the cached discovery result for the identifier."""
        raise NotImplementedError

    def getNonce(self, nonce, op_url):
        """
        Return whether the nonce has been stored for the OP endpoint.

        @type nonce: str
        @type op_url: str
        @rtype: bool
        """
        raise NotImplementedError

    def setNonce(self, nonce, op_url, expire=None):
        """
        Store the nonce for the OP endpoint.

        @type nonce: str
        @type op_url: str
        @type expire: Optional[int]
        """
        raise NotImplementedError

    def deleteNonce(self, nonce, op_url):
        """Remove the nonce stored for the OP endpoint."""
        raise NotImplementedError

    def useNonce(self, nonce, op_url, expire=None):
        """
        Store the nonce for the OP endpoint unless it is already
        stored. The check and the store must be atomic, so concurrent
        callers can't both use the same nonce.

        @type nonce: str
        @type op_url: str
        @type expire: Optional[int]

        @return: C{True} if the nonce was not stored before the call,
            C{False} otherwise.
        @rtype: bool
        """
        raise NotImplementedError
