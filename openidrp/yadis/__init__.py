"""Yadis service discovery: locating and parsing XRDS documents."""
