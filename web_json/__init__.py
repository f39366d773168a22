"""Helpers for decoding JSON requests and writing JSON responses with Flask."""

from web_json.errors import (
    ContentTypeError,
    ErrorKind,
    InvalidJSONError,
    JSONHelperError,
    NotMapError,
    NotStructError,
    PointerError,
)
from web_json.helpers.request_parser import parse_json_map, parse_json_request
from web_json.helpers.response_formatter import (
    error_response,
    json_response,
    success_response,
    write_map_json,
    write_struct_json,
)

__all__ = [
    "ContentTypeError",
    "ErrorKind",
    "InvalidJSONError",
    "JSONHelperError",
    "NotMapError",
    "NotStructError",
    "PointerError",
    "parse_json_map",
    "parse_json_request",
    "error_response",
    "json_response",
    "success_response",
    "write_map_json",
    "write_struct_json",
]
