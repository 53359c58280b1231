"""Discovery of the OpenID provider of an identifier.

Discovery is driver based. The drivers listed in
C{L{Discover.DISCOVERY_ORDER}} are tried in ascending priority order
and the first one which finds an endpoint wins. Yadis discovery is
tried first, HTML discovery is the fallback.
"""
import abc
import datetime
import email.utils
import json
import logging

from openidrp import oidutil
from openidrp.constants import (SERVICE_1_1_SIGNON, SERVICE_2_0_SERVER, SERVICE_2_0_SIGNON, VERSION_MAP)
from openidrp.errors import DISCOVERY_ERROR, HTTP_ERROR, MISSING_DATA, InvalidDefinition, OpenIDError
from openidrp.yadis import etxrd
from openidrp.yadis.discover import DiscoveryFailure
from openidrp.yadis.discover import discover as yadisDiscover
from openidrp.yadis.parsehtml import HTMLParseError, findLinksRel

__all__ = ['ServiceEndpoint', 'ServiceEndpoints', 'DiscoveryDriver', 'DiscoveryFailure', 'YadisDiscovery',
           'HTMLDiscovery', 'Discover', 'getDiscover']

_LOGGER = logging.getLogger(__name__)


class ServiceEndpoint(object):
    """A single OP endpoint found by discovery.

    @ivar version: Service type which determines the protocol version,
        e.g. C{http://specs.openid.net/auth/2.0/signon}
    @type version: Optional[str]
    @ivar types: All the service types declared for the endpoint
    @type types: List[str]
    @ivar uris: The endpoint URLs, the first one is preferred
    @type uris: List[str]
    @ivar local_id: The OP-local identifier
    @type local_id: Optional[str]
    @ivar source: Name of the discovery driver which found the endpoint
    @type source: Optional[str]
    """

    def __init__(self, version=None, types=None, uris=None, local_id=None, source=None):
        self.version = version
        self.types = list(types or [])
        self.uris = []
        if uris:
            self.setURIs(uris)
        self.local_id = local_id
        self.source = source

    def setURIs(self, uris):
        """Set the endpoint URLs, invalid URLs are dropped."""
        valid = []
        for uri in uris:
            if oidutil.isValidURL(uri):
                valid.append(uri)
            else:
                _LOGGER.debug('Dropping invalid endpoint URL %r', uri)
        self.uris = valid

    def isValid(self):
        """An endpoint is usable only if it has an URL."""
        return bool(self.uris)

    def toDict(self):
        return {
            'version': self.version,
            'types': self.types,
            'uris': self.uris,
            'local_id': self.local_id,
            'source': self.source,
        }

    @classmethod
    def fromDict(cls, data):
        return cls(data.get('version'), data.get('types'), data.get('uris'), data.get('local_id'),
                   data.get('source'))

    def __eq__(self, other):
        return type(self) == type(other) and self.toDict() == other.toDict()

    def __ne__(self, other):
        return not (self == other)

    def __repr__(self):
        return '<%s %s %s>' % (self.__class__.__name__, self.version, self.uris)


class ServiceEndpoints(object):
    """Ordered endpoints of one identifier, the first is authoritative.

    @ivar identifier: The identifier the endpoints were discovered for
    @type identifier: str
    @ivar expires: Value of the C{Expires} header of the discovery response
    @type expires: Optional[str]
    """

    def __init__(self, identifier, endpoint=None):
        self.identifier = identifier
        self.expires = None
        self._services = []
        if endpoint is not None:
            self.addService(endpoint)

    def addService(self, endpoint):
        """Append the endpoint, unless it is not valid.

        @type endpoint: L{ServiceEndpoint}
        """
        if not endpoint.isValid():
            return
        self._services.append(endpoint)

    def __iter__(self):
        return iter(self._services)

    def __len__(self):
        return len(self._services)

    def __getitem__(self, index):
        return self._services[index]

    def __setitem__(self, index, endpoint):
        if not isinstance(endpoint, ServiceEndpoint):
            raise TypeError('Expected ServiceEndpoint, got %r' % (endpoint,))
        self._services[index] = endpoint

    def __delitem__(self, index):
        del self._services[index]

    def __repr__(self):
        return '<%s %s %r>' % (self.__class__.__name__, self.identifier, self._services)


class DiscoveryDriver(abc.ABC):
    """Interface of the discovery drivers.

    @cvar name: Name of the driver, recorded as the source of the
        discovered endpoints
    """
    name = None

    def __init__(self, identifier, context):
        """
        @param identifier: Normalized identifier
        @type identifier: str
        @type context: L{openidrp.context.Context}
        """
        self.identifier = identifier
        self.context = context
        self.options = {}

    def setOptions(self, options):
        self.options = options
        return self

    @abc.abstractmethod
    def discover(self):
        """Perform the discovery.

        @return: The discovered endpoints or C{None}
        @rtype: Optional[L{ServiceEndpoints}]
        @raises DiscoveryFailure: If the discovery fails.
        """


class YadisDiscovery(DiscoveryDriver):
    """Discovery from the XRDS document of the identifier."""
    name = 'yadis'

    def discover(self):
        result = yadisDiscover(self.identifier, self.context, self.options)
        if not result.isXRDS():
            _LOGGER.debug('No XRDS document found for %s', self.identifier)
            return None

        try:
            tree = etxrd.parseXRDS(result.response_text)
            service_elements = etxrd.iterServices(tree)
        except etxrd.XRDSError as error:
            raise DiscoveryFailure(str(error), result.http_response, DISCOVERY_ERROR)

        services = ServiceEndpoints(self.identifier)
        for service_element in service_elements:
            types = etxrd.getTypeURIs(service_element)
            if not types or types[0] not in VERSION_MAP:
                continue

            version = types[0]
            # Prefer OpenID 2.0 if the service declares it
            if len(types) > 1:
                for type_uri in types:
                    if type_uri in (SERVICE_2_0_SERVER, SERVICE_2_0_SIGNON):
                        version = type_uri
                        break

            services.addService(ServiceEndpoint(version, types, etxrd.getURIs(service_element),
                                                etxrd.getLocalID(service_element), self.name))

        services.expires = result.http_response.getHeader('Expires')
        return services


class HTMLDiscovery(DiscoveryDriver):
    """Discovery from the C{<link>} elements of the identifier's page."""
    name = 'html'

    rels = ('openid2.provider', 'openid2.local_id', 'openid.server', 'openid.delegate')

    def discover(self):
        try:
            response = self.context.fetch(self.identifier, options=self.options)
        except OpenIDError as error:
            raise DiscoveryFailure(str(error), code=HTTP_ERROR)
        if response.status != 200:
            raise DiscoveryFailure('Unable to connect to OpenID Provider.', response, HTTP_ERROR)

        try:
            links = findLinksRel(response.body or b'', self.rels)
        except HTMLParseError as error:
            raise DiscoveryFailure(str(error), response, DISCOVERY_ERROR)

        services = ServiceEndpoints(self.identifier, self.buildServiceEndpoint(links, response))
        services.expires = response.getHeader('Expires')
        return services

    def buildServiceEndpoint(self, links, response=None):
        """Create the endpoint from the links found in the page.

        @type links: Dict[str, List[str]]
        @rtype: L{ServiceEndpoint}
        @raises DiscoveryFailure: If there is no provider link.
        """
        if links['openid2.provider']:
            version = SERVICE_2_0_SIGNON
            uris = links['openid2.provider']
            local_ids = links['openid2.local_id']
        elif links['openid.server']:
            version = SERVICE_1_1_SIGNON
            uris = links['openid.server']
            local_ids = links['openid.delegate']
        else:
            raise DiscoveryFailure('No OpenID links found in the document', response, MISSING_DATA)

        local_id = local_ids[0] if local_ids else None
        return ServiceEndpoint(version, [version], uris, local_id, self.name)


class Discover(object):
    """Discovery of an identifier.

    Example::

        discover = Discover('http://user.example.com/', context)
        if discover.discover():
            op_url = discover.services[0].uris[0]

    @cvar DISCOVERY_ORDER: Priority to discovery driver class
    @type DISCOVERY_ORDER: Dict[int, type]

    @ivar identifier: The normalized identifier
    @type identifier: str
    @ivar services: The discovered endpoints
    @type services: Optional[L{ServiceEndpoints}]
    """

    DISCOVERY_ORDER = {
        0: YadisDiscovery,
        10: HTMLDiscovery,
    }

    def __init__(self, identifier, context=None, options=None):
        """
        @raises InvalidValue: If the identifier can't be normalized.
        """
        self.identifier = oidutil.normalizeIdentifier(identifier)
        self.context = context
        self.options = options or {}
        self.services = None

    def setRequestOptions(self, options):
        self.options = options
        return self

    def discover(self):
        """Run the discovery drivers until one finds an endpoint.

        @return: Whether an endpoint was found
        @rtype: bool

        @raises InvalidDefinition: If a driver doesn't implement the
            L{DiscoveryDriver} interface.
        """
        for priority in sorted(self.DISCOVERY_ORDER):
            driver = self._factory(self.DISCOVERY_ORDER[priority])
            try:
                result = driver.discover()
            except DiscoveryFailure as failure:
                _LOGGER.debug('%s discovery of %s failed: %s', driver.name, self.identifier, failure)
                continue

            if result is not None and len(result):
                _LOGGER.debug('Discovered %r with %s', result, driver.name)
                self.services = result
                return True
        return False

    def _factory(self, driver_class):
        if not (isinstance(driver_class, type) and issubclass(driver_class, DiscoveryDriver)):
            raise InvalidDefinition('Requested driver does not conform to Discover interface')
        return driver_class(self.identifier, self.context).setOptions(self.options)

    def extensionSupported(self, namespace):
        """Return whether any discovered endpoint declares the
        extension namespace.

        @type namespace: str
        @rtype: bool
        """
        if not self.services:
            return False
        return any(namespace in service.types for service in self.services)

    def serialize(self):
        """Serialize the discovered endpoints to JSON.

        @rtype: str
        """
        data = {
            'identifier': self.identifier,
            'expires': None,
            'services': [],
        }
        if self.services is not None:
            data['expires'] = self.services.expires
            data['services'] = [service.toDict() for service in self.services]
        return json.dumps(data, sort_keys=True)

    @classmethod
    def deserialize(cls, data, context=None):
        """Create discovery with the endpoints serialized by L{serialize}.

        @type data: str
        @raises ValueError: If the data is not a serialized discovery.
        """
        try:
            data = json.loads(data)
            discover = cls(data['identifier'], context)
            services = ServiceEndpoints(discover.identifier)
            for service in data['services']:
                services.addService(ServiceEndpoint.fromDict(service))
        except (KeyError, TypeError, AttributeError, OpenIDError) as error:
            raise ValueError('Invalid serialized discovery: %s' % error)
        services.expires = data.get('expires')
        discover.services = services
        return discover

    def __repr__(self):
        return '<%s %s %r>' % (self.__class__.__name__, self.identifier, self.services)


def getExpireTime(expires, now=None):
    """Return the seconds until the date from an C{Expires} header.

    @type expires: Optional[str]
    @rtype: Optional[int]
    """
    if not expires:
        return None
    try:
        expires_at = email.utils.parsedate_to_datetime(expires)
    except (TypeError, ValueError):
        _LOGGER.debug('Ignoring invalid Expires header %r', expires)
        return None
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=datetime.timezone.utc)
    if now is None:
        now = datetime.datetime.now(datetime.timezone.utc)
    return int((expires_at - now).total_seconds())


def getDiscover(identifier, context, options=None):
    """Return the discovery of the identifier from the store, or
    discover it and store the result.

    @type identifier: str
    @type context: L{openidrp.context.Context}
    @param options: Request options

    @return: Discovery of the identifier or C{None} if no endpoint was found.
    @rtype: Optional[L{Discover}]
    @raises InvalidValue: If the identifier can't be normalized.
    """
    identifier = oidutil.normalizeIdentifier(identifier)
    cached = context.store.getDiscover(identifier)
    if isinstance(cached, Discover):
        _LOGGER.debug('Using stored discovery of %s', identifier)
        cached.context = context
        return cached

    discover = Discover(identifier, context, options)
    if not discover.discover():
        _LOGGER.info('No OpenID endpoint found for %s', identifier)
        return None

    expire = getExpireTime(discover.services.expires)
    if expire is not None and expire <= 0:
        _LOGGER.debug('Discovery of %s already expired, not storing', identifier)
        return discover
    context.store.setDiscover(discover, expire)
    return discover
