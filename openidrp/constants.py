"""Basic constants for the openidrp library."""

# Default Diffie-Hellman modulus and generator.
# Defined in OpenID specification http://openid.net/specs/openid-authentication-2_0.html#pvalue
DEFAULT_DH_MODULUS = ('ANz5OguIOXLsDhmYmsWizjEOHTdxfo2Vcbt2I3MYZuYe91ouJ4mLBX+YkcLiemOcPym2CBRYHNOyyjmG0mg3BVd9RcLn5S3I'
                      'HHoXGHblzqdLFEi/368Ygo79JRnxTkXjgmY0rxlJ5bU1zIKaSDuKdiI+XUkKJX8Fvf8W8vsixYOr')
DEFAULT_DH_GENERATOR = 'Ag=='

# Protocol namespaces
NS_2_0 = 'http://specs.openid.net/auth/2.0'
NS_2_0_ID_SELECT = 'http://specs.openid.net/auth/2.0/identifier_select'
NS_1_1 = 'http://openid.net/signon/1.1'
NS_1_0 = 'http://openid.net/signon/1.0'

# Namespace of the openid:Delegate element in XRDS documents
OPENID_1_0_XMLNS = 'http://openid.net/xmlns/1.0'

# Service types, as found in discovery documents
SERVICE_2_0_SERVER = 'http://specs.openid.net/auth/2.0/server'
SERVICE_2_0_SIGNON = 'http://specs.openid.net/auth/2.0/signon'
SERVICE_1_1_SIGNON = 'http://openid.net/signon/1.1'
SERVICE_1_0_SIGNON = 'http://openid.net/signon/1.0'

# Service type to protocol version
VERSION_MAP = {
    SERVICE_2_0_SERVER: NS_2_0,
    SERVICE_2_0_SIGNON: NS_2_0,
    SERVICE_1_1_SIGNON: NS_1_1,
    SERVICE_1_0_SIGNON: NS_1_1,
}

# Modes
MODE_ASSOCIATE = 'associate'
MODE_CHECKID_SETUP = 'checkid_setup'
MODE_CHECKID_IMMEDIATE = 'checkid_immediate'
MODE_CHECK_AUTHENTICATION = 'check_authentication'
MODE_ID_RES = 'id_res'
MODE_CANCEL = 'cancel'
MODE_SETUP_NEEDED = 'setup_needed'
MODE_ERROR = 'error'

# Association session types
SESSION_NO_ENCRYPTION = 'no-encryption'
SESSION_DH_SHA1 = 'DH-SHA1'
SESSION_DH_SHA256 = 'DH-SHA256'

# Association types
ASSOC_HMAC_SHA1 = 'HMAC-SHA1'
ASSOC_HMAC_SHA256 = 'HMAC-SHA256'

# XRI global context symbols
XRI_GLOBAL_SYMBOLS = ('=', '@', '+', '$', '!')

# Default HTTP request options
DEFAULT_REQUEST_OPTIONS = {
    'follow_redirects': True,
    'timeout': 3,
    'connect_timeout': 3,
}

# Allowed clock skew for nonce timestamps, in seconds
DEFAULT_CLOCK_SKEW = 18000
