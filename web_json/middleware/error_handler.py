import logging
from functools import wraps

from web_json.errors import ErrorKind, JSONHelperError
from web_json.helpers.response_formatter import error_response
from web_json.utils.config import DEFAULT_CONFIG

logger = logging.getLogger("web_json")


def _status_for(error, config):
    codes = config.get("errors", {}).get("status_codes", {})
    defaults = DEFAULT_CONFIG["errors"]["status_codes"]
    if error.kind is ErrorKind.CONTENT_TYPE:
        return codes.get("content_type", defaults["content_type"])
    if error.kind is ErrorKind.INVALID_JSON:
        return codes.get("invalid_json", defaults["invalid_json"])
    # Pointer, struct and map errors are programming mistakes in the view
    return 500


def _expose_details(config):
    if config.get("errors", {}).get("expose_details"):
        return True
    return logger.getEffectiveLevel() <= logging.DEBUG


def _helper_error_response(error, config):
    status_code = _status_for(error, config)
    if status_code < 500 or _expose_details(config):
        return error_response(str(error), status_code, {"kind": error.kind.value})
    return error_response("Internal server error", status_code)


def _internal_error_response(error, config):
    if _expose_details(config):
        # In debug mode, include the full error message
        return error_response(f"Internal server error: {str(error)}", 500)
    return error_response("Internal server error", 500)


def handle_errors(f=None, *, config=None):
    """Middleware for consistent JSON error responses from a view.

    Usable bare (``@handle_errors``) or with a loaded configuration
    (``@handle_errors(config=cfg)``).
    """
    config = config or DEFAULT_CONFIG

    def decorator(view):
        @wraps(view)
        def decorated_function(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except JSONHelperError as e:
                logger.warning(f"{view.__name__} rejected request: {str(e)}")
                return _helper_error_response(e, config)
            except Exception as e:
                logger.error(f"Error in {view.__name__}: {str(e)}")
                return _internal_error_response(e, config)

        return decorated_function

    if f is not None:
        return decorator(f)
    return decorator


def register_error_handlers(app, config=None):
    """Register global JSON error handlers for the Flask app."""
    config = config or DEFAULT_CONFIG

    @app.errorhandler(JSONHelperError)
    def helper_error(e):
        logger.warning(f"Unhandled helper error: {str(e)}")
        return _helper_error_response(e, config)

    @app.errorhandler(404)
    def not_found(e):
        return error_response("Endpoint not found", 404)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return error_response("Method not allowed", 405)

    @app.errorhandler(500)
    def server_error(e):
        original = getattr(e, "original_exception", None) or e
        logger.error(f"Internal server error: {str(original)}")
        return _internal_error_response(original, config)
