"""Utilities for key-value format conversions.

Key-value form is the encoding of direct responses from the OpenID
provider and the byte sequence over which signatures are computed::

    mode:id_res
    assoc_handle:{HMAC-SHA256}{4a1e...}

Parsing splits every line on its first colon and keeps both sides
as they are, so any sequence without newlines in its values survives
C{kvToSeq(seqToKV(seq))} unchanged.
"""
import logging

__all__ = ['seqToKV', 'kvToSeq', 'dictToKV', 'kvToDict', 'KVFormError']


_LOGGER = logging.getLogger(__name__)


class KVFormError(ValueError):
    pass


class _Reporter(object):
    """Raise on suspicious input in strict mode, log it otherwise."""

    def __init__(self, operation, data, strict):
        self.operation = operation
        self.data = data
        self.strict = strict

    def __call__(self, msg):
        formatted = '%s warning: %s: %r' % (self.operation, msg, self.data)
        if self.strict:
            raise KVFormError(formatted)
        _LOGGER.debug(formatted)


def _formatPair(key, value, report):
    if not isinstance(key, str):
        report('Converting key to text: %r' % key)
        key = str(key)
    if not isinstance(value, str):
        report('Converting value to text: %r' % value)
        value = str(value)

    if '\n' in key:
        raise KVFormError('Invalid input for seqToKV: key contains newline: %r' % (key,))
    if ':' in key:
        raise KVFormError('Invalid input for seqToKV: key contains colon: %r' % (key,))
    if '\n' in value:
        raise KVFormError('Invalid input for seqToKV: value contains newline: %r' % (value,))

    if key.strip() != key:
        report('Key has whitespace at beginning or end: %r' % (key,))
    return '%s:%s\n' % (key, value)


def seqToKV(seq, strict=False):
    """Represent a sequence of pairs of strings as newline-terminated
    key:value pairs. The pairs are generated in the order given.

    @param seq: The pairs
    @type seq: List[Tuple[str, str]]

    @param strict: Whether to raise on suspicious, but not fatal, input.
    @type strict: bool

    @return: A string representation of the sequence
    @rtype: str

    @raises KVFormError: If a key contains a newline or a colon, or a
        value contains a newline.
    """
    report = _Reporter('seqToKV', seq, strict)
    return ''.join(_formatPair(key, value, report) for key, value in seq)


def kvToSeq(data, strict=False):
    """
    Parse newline-terminated key:value pair string into a sequence.

    Each line is split on its first colon. Blank lines and lines
    without a colon are skipped, duplicate keys are kept.

    @type data: str or bytes

    @rtype: List[Tuple[str, str]]
    """
    if isinstance(data, bytes):
        data = data.decode('utf-8')
    report = _Reporter('kvToSeq', data, strict)

    lines = data.split('\n')
    if lines[-1]:
        report('Does not end in a newline')
    else:
        lines.pop()

    pairs = []
    for line_num, line in enumerate(lines, 1):
        if not line.strip():
            continue
        key, colon, value = line.partition(':')
        if not colon:
            report('Line %d does not contain a colon' % line_num)
            continue
        if not key:
            report('In line %d, got empty key' % line_num)
        elif key.strip() != key:
            report('In line %d, whitespace at beginning or end of key %r' % (line_num, key))
        pairs.append((key, value))
    return pairs


def dictToKV(d):
    return seqToKV(sorted(d.items()))


def kvToDict(s):
    return dict(kvToSeq(s))
