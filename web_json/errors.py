"""Error kinds raised by the JSON request/response helpers."""

from enum import Enum


class ErrorKind(Enum):
    CONTENT_TYPE = "content_type"
    POINTER = "pointer"
    INVALID_JSON = "invalid_json"
    NOT_STRUCT = "not_struct"
    NOT_MAP = "not_map"


class JSONHelperError(Exception):
    """Base class for every failure the helpers report themselves.

    I/O errors from the request body or the response stream are not wrapped
    in this hierarchy; they reach the caller unchanged.
    """

    kind: ErrorKind
    default_message = ""

    def __init__(self, message=None):
        super().__init__(message or self.default_message)


class ContentTypeError(JSONHelperError):
    kind = ErrorKind.CONTENT_TYPE
    default_message = "content-type header is not set to application/json"


class PointerError(JSONHelperError):
    kind = ErrorKind.POINTER
    default_message = (
        "encountered non pointer value, destination passed to "
        "parse_json_request should be a mutable instance"
    )


class InvalidJSONError(JSONHelperError):
    kind = ErrorKind.INVALID_JSON
    default_message = "payload is not valid json"


class NotStructError(JSONHelperError):
    kind = ErrorKind.NOT_STRUCT
    default_message = "data is not a struct"


class NotMapError(JSONHelperError):
    kind = ErrorKind.NOT_MAP
    default_message = "data is not a map"
