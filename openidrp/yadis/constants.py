"""Constants of the Yadis protocol."""

YADIS_HEADER_NAME = 'X-XRDS-Location'
YADIS_CONTENT_TYPE = 'application/xrds+xml'

# A value suitable for using as an accept header when performing YADIS
# discovery, unless the application has special requirements
YADIS_ACCEPT_HEADER = 'text/html; q=0.3, application/xhtml+xml; q=0.5, application/xrds+xml'
