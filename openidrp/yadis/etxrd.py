"""ElementTree interface to an XRD document."""
import random

from lxml import etree

from openidrp.constants import OPENID_1_0_XMLNS

__all__ = [
    'XRDSError',
    'parseXRDS',
    'getYadisXRD',
    'iterServices',
    'getTypeURIs',
    'getURIs',
    'getLocalID',
]

XRDS_NS = 'xri://$xrds'
XRD_NS_2_0 = 'xri://$xrd*($v*2.0)'


class XRDSError(Exception):
    """An error with the XRDS document."""

    # The exception that triggered this exception
    reason = None


def nsTag(ns, t):
    return '{%s}%s' % (ns, t)


def mkXRDTag(t):
    """Basestring -> basestring

    Create a tag name in the XRD 2.0 XML namespace suitable for using
    with ElementTree
    """
    return nsTag(XRD_NS_2_0, t)


def mkXRDSTag(t):
    """Basestring -> basestring

    Create a tag name in the XRDS XML namespace suitable for using
    with ElementTree
    """
    return nsTag(XRDS_NS, t)


# Tags that are used in Yadis documents
root_tag = mkXRDSTag('XRDS')
service_tag = mkXRDTag('Service')
xrd_tag = mkXRDTag('XRD')
type_tag = mkXRDTag('Type')
uri_tag = mkXRDTag('URI')
local_id_tag = mkXRDTag('LocalID')
delegate_tag = nsTag(OPENID_1_0_XMLNS, 'Delegate')


def parseXRDS(text):
    """Parse the given text as an XRDS document.

    External entities are never resolved.

    @type text: Union[str, bytes]
    @return: ElementTree containing an XRDS document
    @raises XRDSError: When there is a parse error or the document does
        not contain an XRDS.
    """
    if isinstance(text, str):
        text = text.encode('utf-8')

    parser = etree.XMLParser(resolve_entities=False, no_network=True, remove_comments=True, remove_pis=True)
    try:
        element = etree.XML(text, parser)
    except (ValueError, etree.XMLSyntaxError) as why:
        exc = XRDSError('Error parsing document as XML')
        exc.reason = why
        raise exc
    if element is None:
        raise XRDSError('Error parsing document as XML')

    tree = etree.ElementTree(element)
    if tree.getroot().tag != root_tag:
        raise XRDSError('Not an XRDS document')
    return tree


def getYadisXRD(xrd_tree):
    """Return the XRD element that should contain the Yadis services"""
    xrd = None

    # for the side-effect of assigning the last one in the list to the
    # xrd variable
    for xrd in xrd_tree.findall(xrd_tag):
        pass

    # There were no elements found, or else xrd would be set to the
    # last one
    if xrd is None:
        raise XRDSError('No XRD present in tree')

    return xrd


def getPriority(element):
    """Get the priority of this element.

    Returns None if no priority is specified or the priority value is
    invalid.
    """
    try:
        return int(element.get('priority'))
    except (TypeError, ValueError):
        return None


def _prioKey(element):
    """Sort key of elements, elements without a priority come last."""
    priority = getPriority(element)
    if priority is None:
        return (1, 0)
    return (0, priority)


def prioSort(elements):
    """Sort a list of elements that have priority attributes.

    Elements with the same priority are shuffled, as XRD demands.
    """
    # Randomize the services before sorting so that equal priority
    # elements are load-balanced.
    elements = list(elements)
    random.shuffle(elements)
    elements.sort(key=_prioKey)
    return elements


def iterServices(xrd_tree):
    """Return an iterable over the Service elements in the Yadis XRD

    sorted by priority"""
    xrd = getYadisXRD(xrd_tree)
    return prioSort(xrd.findall(service_tag))


def getTypeURIs(service_element):
    """Given a Service element, return a list of the contents of all
    Type tags, in document order."""
    return [(type_element.text or '').strip() for type_element in service_element.findall(type_tag)]


def getURIs(service_element):
    """Given a Service element, return the contents of its URI tags
    sorted by priority."""
    return [(uri_element.text or '').strip() for uri_element in prioSort(service_element.findall(uri_tag))]


def getLocalID(service_element):
    """Return the local identifier of the service, the first
    xrd:LocalID, or openid:Delegate when there is no LocalID.

    @rtype: Optional[str]
    """
    for tag in (local_id_tag, delegate_tag):
        for element in service_element.findall(tag):
            if element.text and element.text.strip():
                return element.text.strip()
    return None
