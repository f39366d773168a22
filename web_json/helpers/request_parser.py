import logging

from web_json.errors import ContentTypeError, InvalidJSONError, PointerError
from web_json.helpers import json_codec

logger = logging.getLogger('web_json')

JSON_CONTENT_TYPE = 'application/json'


def _check_content_type(req):
    content_type = req.headers.get('Content-Type') or ''
    if content_type.lower() != JSON_CONTENT_TYPE:
        logger.debug(f"Rejected request body with content type {content_type!r}")
        raise ContentTypeError()


def _read_body(req):
    """Read the whole body stream once and close it, whatever happens."""
    stream = req.stream
    try:
        return stream.read()
    finally:
        stream.close()


def parse_json_request(req, destination):
    """Parse the JSON body of ``req`` into ``destination`` in place.

    ``destination`` must be a mutable instance: a dataclass instance, a dict
    (or other mutable mapping) or a list. The request must declare exactly
    ``Content-Type: application/json``. The body stream is consumed and
    closed; it cannot be read again afterwards.

    Raises ContentTypeError, PointerError or InvalidJSONError. Errors raised
    while reading the body propagate unchanged.
    """
    _check_content_type(req)

    if not json_codec.is_mutable_target(destination):
        logger.debug(f"Refusing to decode into immutable {type(destination).__name__}")
        raise PointerError()

    body = _read_body(req)

    try:
        payload = json_codec.loads(body)
        json_codec.populate(destination, payload)
    except (ValueError, RecursionError) as e:
        logger.debug(f"Invalid JSON payload: {str(e)}")
        raise InvalidJSONError() from None


def parse_json_map(req):
    """Parse the JSON object in the body of ``req`` into a new dict."""
    result = {}
    parse_json_request(req, result)
    return result
