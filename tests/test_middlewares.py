import logging

from werkzeug.test import EnvironBuilder
from werkzeug.wrappers import Response

from metrix.middlewares import logging_middleware


def _handler(request, params):
    return Response("test response", status=201)


def _request():
    return EnvironBuilder(method="GET", path="/test/uri", query_string="a=1").get_request()


def test_middleware_passes_response_through():
    response = logging_middleware(_handler)(_request(), {})
    assert response.status_code == 201
    assert response.get_data(as_text=True) == "test response"


def test_middleware_logs_request_and_response(caplog):
    caplog.set_level(logging.INFO, logger="metrix")
    logging_middleware(_handler)(_request(), {})
    by_message = {record.getMessage(): record for record in caplog.records}
    request_fields = by_message["Request"].fields
    response_fields = by_message["Response"].fields
    assert request_fields["method"] == "GET"
    assert request_fields["uri"] == "/test/uri?a=1"
    assert request_fields["duration"] >= 0
    assert response_fields == {"status": 201, "response_size": 13}