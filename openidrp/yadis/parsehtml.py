"""Utilities to parse YADIS header and OpenID links from HTML."""
from io import BytesIO

from lxml import etree

from openidrp.yadis.constants import YADIS_HEADER_NAME

__all__ = ['findHTMLMeta', 'findLinksRel', 'MetaNotFound', 'HTMLParseError']


class HTMLParseError(Exception):
    """The document couldn't be parsed as HTML."""


class MetaNotFound(Exception):
    """Yadis meta tag not found in the HTML page."""


def xpath_lower_case(context, values):
    """Return lower cased values in XPath."""
    return [v.lower() for v in values]


def _parseHTML(html):
    """Parse the HTML page and return an XPath evaluator over it.

    @type html: Union[str, bytes]
    @raises HTMLParseError: If the page couldn't be parsed.
    """
    if isinstance(html, str):
        html = html.encode('utf-8')

    parser = etree.HTMLParser()
    try:
        tree = etree.parse(BytesIO(html), parser)
    except (ValueError, etree.XMLSyntaxError):
        raise HTMLParseError("Couldn't parse HTML page.")

    # Invalid input may return element with no content
    if tree.getroot() is None:
        raise HTMLParseError("Couldn't parse HTML page.")

    # Create a XPath evaluator with a local function to lowercase values.
    return etree.XPathEvaluator(tree, extensions={(None, 'lower-case'): xpath_lower_case})


def findHTMLMeta(html):
    """Look for a meta http-equiv tag with the YADIS header name.

    @param html: Source of the html text
    @type html: Union[str, bytes]

    @return: The URI from which to fetch the XRDS document
    @rtype: str

    @raises MetaNotFound: raised with the content that was
        searched as the first parameter.
    """
    try:
        xpath_evaluator = _parseHTML(html)
    except HTMLParseError as error:
        raise MetaNotFound(str(error))

    # Find YADIS meta tag, case insensitive to the header name.
    yadis_headers = xpath_evaluator('/html/head/meta[lower-case(@http-equiv)="{}"]'.format(YADIS_HEADER_NAME.lower()))
    if not yadis_headers:
        raise MetaNotFound('Yadis meta tag not found.')

    yadis_header = yadis_headers[0]
    yadis_url = yadis_header.get('content')
    if yadis_url is None:
        raise MetaNotFound('Attribute "content" missing in yadis meta tag.')
    return yadis_url


def findLinksRel(html, rels):
    """Find the targets of link elements in the head of the page with
    the given relations.

    The C{rel} attribute may list several space separated relations,
    the link is found under each of them.

    @param html: Source of the html text
    @type html: Union[str, bytes]

    @param rels: The relations to look for
    @type rels: Iterable[str]

    @return: Mapping of relation to the list of C{href} values, in
        document order
    @rtype: Dict[str, List[str]]

    @raises HTMLParseError: If the page couldn't be parsed.
    """
    results = dict((rel, []) for rel in rels)

    xpath_evaluator = _parseHTML(html)
    for link in xpath_evaluator("/html/head/link[contains(@rel, 'openid')]"):
        href = link.get('href')
        if href is None:
            continue
        for rel in link.get('rel').split():
            if rel in results:
                results[rel].append(href.strip())
    return results
