import os
import sys
from dataclasses import dataclass

import pytest
from flask import Flask, request
from werkzeug.test import EnvironBuilder
from werkzeug.wrappers import Request

# Add the project root to the path for proper imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from web_json.helpers.request_parser import parse_json_map, parse_json_request
from web_json.helpers.response_formatter import json_response, success_response, write_struct_json
from web_json.middleware.error_handler import handle_errors, register_error_handlers
from web_json.utils.config import DEFAULT_CONFIG
from web_json.utils.logger import reset_logger, setup_logger


@dataclass
class Contact:
    name: str
    description: str


@pytest.fixture(autouse=True)
def _fresh_logger():
    reset_logger()
    yield
    reset_logger()


@pytest.fixture
def logger():
    return setup_logger("DEBUG", enable_colors=False)


@pytest.fixture
def make_request():
    """Build a werkzeug Request carrying ``body`` with the given content type."""

    def _make(body, content_type="application/json"):
        builder = EnvironBuilder(method="POST", path="/", data=body, content_type=content_type)
        return Request(builder.get_environ())

    return _make


@pytest.fixture
def app():
    app = Flask(__name__)
    register_error_handlers(app, DEFAULT_CONFIG)

    @app.route("/contacts", methods=["POST"])
    @handle_errors
    def create_contact():
        contact = Contact(name="", description="")
        parse_json_request(request, contact)
        return json_response(201, contact)

    @app.route("/echo", methods=["POST"])
    @handle_errors
    def echo():
        data = parse_json_map(request)
        return success_response(data={"echo": data})

    @app.route("/broken", methods=["GET"])
    @handle_errors
    def broken():
        response = app.response_class()
        write_struct_json(200, {"not": "a struct"}, response)
        return response

    @app.route("/unhandled", methods=["POST"])
    def unhandled():
        return json_response(200, parse_json_map(request))

    return app


@pytest.fixture
def client(app):
    return app.test_client()
