from collections.abc import Mapping
import logging

from flask import Response

from web_json.errors import NotMapError, NotStructError
from web_json.helpers import json_codec

logger = logging.getLogger('web_json')

JSON_CONTENT_TYPE = 'application/json'


def write_struct_json(status_code, data, response):
    """Write a dataclass instance or named tuple as the JSON body of ``response``.

    Fields are emitted in declaration order. Raises NotStructError, without
    touching ``response``, when ``data`` is not a record instance.
    """
    if not json_codec.is_struct(data):
        logger.debug(f"write_struct_json called with {type(data).__name__}")
        raise NotStructError()
    _write_json(status_code, data, response)


def write_map_json(status_code, data, response):
    """Write a string-keyed mapping as the JSON body of ``response``.

    Keys are emitted in sorted order, including those of nested mappings.
    """
    if not isinstance(data, Mapping) or not all(isinstance(k, str) for k in data):
        logger.debug(f"write_map_json called with {type(data).__name__}")
        raise NotMapError()
    _write_json(status_code, data, response)


def _write_json(status_code, data, response):
    body = json_codec.dumps(data)
    response.headers['Content-Type'] = JSON_CONTENT_TYPE
    response.status_code = status_code
    response.stream.write(body)


def json_response(status_code, data):
    """Build a new Flask response holding ``data`` as JSON."""
    response = Response()
    if isinstance(data, Mapping):
        write_map_json(status_code, data, response)
    else:
        write_struct_json(status_code, data, response)
    return response


def success_response(message=None, data=None, status_code=200):
    """Format a standardized success response."""
    payload = {'status': 'success'}

    if message:
        payload['message'] = message

    if data:
        payload.update(data)

    return json_response(status_code, payload)


def error_response(message, status_code=400, error_details=None):
    """Format a standardized error response."""
    payload = {
        'status': 'error',
        'message': message
    }

    if error_details:
        payload['details'] = error_details

    return json_response(status_code, payload)
