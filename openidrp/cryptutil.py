"""Conversions between integers and their binary representation used by
the Diffie-Hellman exchange, and a cryptographic-quality source of
random strings.
"""
import codecs
import secrets
import string

from openidrp.oidutil import fromBase64, toBase64

__all__ = [
    'base64ToLong',
    'longToBase64',
    'int_to_bytes',
    'bytes_to_int',
    'fix_btwoc',
    'randomString',
]

ALPHANUMERIC = string.ascii_letters + string.digits


def bytes_to_int(value):
    """
    Convert byte string to integer.

    @type value: bytes
    @rtype: int
    """
    if not value:
        return 0
    return int(codecs.encode(value, 'hex'), 16)


def fix_btwoc(value):
    """
    Utility function to ensure the output conforms the `btwoc` function output.

    See http://openid.net/specs/openid-authentication-2_0.html#btwoc for details.

    @type value: bytes or bytearray
    @rtype: bytes
    """
    array = bytearray(value)
    # First bit must be zero. If it isn't, the bytes must be prepended by zero byte.
    if array[0] > 127:
        array = bytearray([0]) + array
    return bytes(array)


def int_to_bytes(value):
    """
    Convert integer to its shortest `btwoc` byte string.

    @type value: int
    @rtype: bytes
    """
    hex_value = '{:x}'.format(value)
    if len(hex_value) % 2:
        hex_value = '0' + hex_value
    array = bytearray.fromhex(hex_value)
    return fix_btwoc(array)


def longToBase64(value):
    return toBase64(int_to_bytes(value))


def base64ToLong(s):
    return bytes_to_int(fromBase64(s))


def randomString(length, chars=ALPHANUMERIC):
    """Produce a string of random characters from the alphabet.

    @type length: int
    @type chars: str
    @rtype: str
    """
    return ''.join(secrets.choice(chars) for _ in range(length))
