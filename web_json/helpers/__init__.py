"""Helper utilities for exchanging JSON over HTTP.

This package contains:
- request_parser.py: Decode JSON request bodies into dataclasses, dicts or lists
- response_formatter.py: Write dataclasses and mappings as JSON responses
- json_codec.py: The JSON conversion rules both sides share
"""
