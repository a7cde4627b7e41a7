"""Parsing and metrics for Arris cable modems that serve their status page at /cgi-bin/status_cgi.

Only tested against the TM/TG series (the ones with DCID/UCID tables) but anything with the same table layout
should parse. The SB series uses a completely different page and is not handled here.
"""
