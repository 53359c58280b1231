"""
This module contains an C{L{OpenIDStore}} implementation backed by
flat files.
"""
import logging
import os
import os.path
import tempfile
import time
from errno import EEXIST, ENOENT

from openidrp.association import Association
from openidrp.consumer.discover import Discover
from openidrp.errors import LoadError, OpenIDError
from openidrp.store.interface import (DEFAULT_LIFETIME, TYPE_ASSOCIATION, TYPE_DISCOVER, TYPE_NONCE,
                                      OpenIDStore)

__all__ = ['FileStore']

_LOGGER = logging.getLogger(__name__)


def _removeIfPresent(filename):
    """Attempt to remove a file, returning whether the file existed at
    the time of the call.

    @rtype: bool
    """
    try:
        os.unlink(filename)
    except OSError as why:
        if why.errno == ENOENT:
            # Someone beat us to it, but it's gone, so that's OK
            return False
        else:
            raise
    else:
        return True


def _ensureDir(dir_name):
    """Create dir_name as a directory if it does not exist. If it
    exists, make sure that it is, in fact, a directory.
    """
    try:
        os.makedirs(dir_name)
    except OSError as why:
        if why.errno != EEXIST or not os.path.isdir(dir_name):
            raise


class FileStore(OpenIDStore):
    """
    This is a filesystem-based store for associations, cached
    discovery results and nonces.

    Every item is a single file whose first line is the expiration
    timestamp. Items are written to a temporary file first and renamed
    into place, nonces are created exclusively, so the store is safe to
    share between processes.

    Methods of this object can raise OSError if unexpected filesystem
    conditions, such as bad permissions or missing directories, occur.
    """

    def __init__(self, directory, lifetime=DEFAULT_LIFETIME):
        """
        Initializes a new FileStore.  This initializes the
        nonce, association and discovery directories, which are all
        subdirectories of the directory passed in.

        @param directory: This is the directory to put the store
            directories in.
        @type directory: str

        @param lifetime: Default time to live of the stored items.
        @type lifetime: int
        """
        self.lifetime = lifetime
        self.directories = {
            TYPE_ASSOCIATION: os.path.join(directory, 'associations'),
            TYPE_DISCOVER: os.path.join(directory, 'discover'),
            TYPE_NONCE: os.path.join(directory, 'nonces'),
        }
        # Temp dir must be on the same filesystem as the other directories.
        self.temp_dir = os.path.join(directory, 'temp')

        for dir_name in self.directories.values():
            _ensureDir(dir_name)
        _ensureDir(self.temp_dir)

    def _getFilename(self, type, key):
        return os.path.join(self.directories[type], key)

    def _read(self, type, key):
        filename = self._getFilename(type, key)
        try:
            with open(filename, 'r', encoding='utf-8') as item_file:
                content = item_file.read()
        except IOError as why:
            if why.errno == ENOENT:
                return None
            raise

        expires, _, data = content.partition('\n')
        try:
            expires = float(expires)
        except ValueError:
            _LOGGER.warning('Removing corrupted store item %s', filename)
            _removeIfPresent(filename)
            return None

        if expires <= time.time():
            _removeIfPresent(filename)
            return None
        return data

    def _write(self, type, key, data, expire=None, exclusive=False):
        """Write the item into place.

        @param exclusive: Fail if the item exists instead of replacing it.

        @return: Whether the item was written
        @rtype: bool
        """
        if expire is None:
            expire = self.lifetime
        filename = self._getFilename(type, key)
        fd, tmp = tempfile.mkstemp(dir=self.temp_dir)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as tmp_file:
                tmp_file.write('%f\n%s' % (time.time() + expire, data))
                tmp_file.flush()
                os.fsync(tmp_file.fileno())

            if not exclusive:
                os.replace(tmp, filename)
                return True

            # Hard link creation fails atomically if the target exists.
            try:
                os.link(tmp, filename)
            except OSError as why:
                if why.errno == EEXIST:
                    return False
                raise
            finally:
                _removeIfPresent(tmp)
            return True
        except Exception:
            # If there was an error, don't leave the temporary file around.
            _removeIfPresent(tmp)
            raise

    def _load(self, type, key, loader):
        """Read the item and create the object from it.

        @raises LoadError: If the stored data are invalid, the item is
            removed.
        """
        data = self._read(type, key)
        if data is None:
            return None
        try:
            return loader(data)
        except (ValueError, OpenIDError) as error:
            _removeIfPresent(self._getFilename(type, key))
            raise LoadError('Unable to load stored %s %s: %s' % (type, key, error))

    def getAssociation(self, uri, handle=None):
        return self._load(TYPE_ASSOCIATION, self.getAssociationKey(uri, handle), Association.deserialize)

    def setAssociation(self, association):
        data = association.serialize()
        expire = association.getExpiresIn()
        self._write(TYPE_ASSOCIATION, self.getAssociationKey(association.uri), data, expire)
        self._write(TYPE_ASSOCIATION, self.getAssociationKey(association.uri, association.handle), data, expire)

    def deleteAssociation(self, uri, handle=None):
        _removeIfPresent(self._getFilename(TYPE_ASSOCIATION, self.getAssociationKey(uri)))
        if handle is not None:
            _removeIfPresent(self._getFilename(TYPE_ASSOCIATION, self.getAssociationKey(uri, handle)))

    def getDiscover(self, identifier):
        return self._load(TYPE_DISCOVER, self.getDiscoverKey(identifier), Discover.deserialize)

    def setDiscover(self, discover, expire=None):
        self._write(TYPE_DISCOVER, self.getDiscoverKey(discover.identifier), discover.serialize(), expire)

    def deleteDiscover(self, identifier):
        _removeIfPresent(self._getFilename(TYPE_DISCOVER, self.getDiscoverKey(identifier)))

    def getNonce(self, nonce, op_url):
        return self._read(TYPE_NONCE, self.getNonceKey(nonce, op_url)) is not None

    def setNonce(self, nonce, op_url, expire=None):
        self._write(TYPE_NONCE, self.getNonceKey(nonce, op_url), nonce, expire)

    def deleteNonce(self, nonce, op_url):
        _removeIfPresent(self._getFilename(TYPE_NONCE, self.getNonceKey(nonce, op_url)))

    def useNonce(self, nonce, op_url, expire=None):
        key = self.getNonceKey(nonce, op_url)
        # Drops the nonce file if it has expired
        self._read(TYPE_NONCE, key)
        return self._write(TYPE_NONCE, key, nonce, expire, exclusive=True)

    def cleanup(self):
        """Remove expired items.

        @return: Number of removed items
        @rtype: int
        """
        removed = 0
        for type, dir_name in self.directories.items():
            for key in os.listdir(dir_name):
                if self._read(type, key) is None:
                    removed += 1
        return removed
