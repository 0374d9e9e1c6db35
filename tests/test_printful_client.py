"""
Unit tests for the Printful REST client.

The requests.Session is replaced with a MagicMock; no network is used.
"""

from unittest.mock import MagicMock, call

import pytest
from requests.exceptions import ConnectionError as RequestsConnectionError
from requests.exceptions import Timeout

from core.exceptions import ProviderError
from core.printful_client import DEFAULT_WEBHOOK_TYPES, PrintfulClient


def make_response(status=200, body=None, text=""):
    """Fake requests.Response."""
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 300
    if body is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
        response.text = text
    else:
        response.json.return_value = body
    return response


# Fixtures

@pytest.fixture
def session():
    session = MagicMock()
    session.headers = {}
    return session


@pytest.fixture
def sleep():
    return MagicMock()


@pytest.fixture
def client(session, sleep):
    return PrintfulClient(
        api_token="secret-token",
        session=session,
        sleep=sleep,
        max_retries=3,
        backoff_seconds=0.5,
    )


class TestClientSetup:
    """Credential handling."""

    def test_bearer_token_header(self, client, session):
        assert session.headers["Authorization"] == "Bearer secret-token"
        assert session.headers["Content-Type"] == "application/json"

    def test_empty_token_rejected(self, session):
        with pytest.raises(ValueError):
            PrintfulClient(api_token="", session=session)

    def test_base_url_trailing_slash_stripped(self, session):
        client = PrintfulClient(api_token="t", base_url="https://example.test/", session=session)
        assert client.base_url == "https://example.test"


class TestResponseHandling:
    """Envelope unwrapping and error normalization."""

    def test_result_envelope_unwrapped(self, client, session):
        session.request.return_value = make_response(200, {"code": 200, "result": {"id": 1}})

        assert client.get_order(1) == {"id": 1}
        session.request.assert_called_once_with(
            "GET",
            "https://api.printful.com/orders/1",
            json=None,
            timeout=30.0,
        )

    def test_body_without_envelope_returned_whole(self, client, session):
        session.request.return_value = make_response(200, {"id": 7})
        assert client.get_store_info() == {"id": 7}

    def test_error_message_from_error_object(self, client, session):
        body = {"code": 400, "error": {"reason": "BadRequest", "message": "Invalid recipient"}}
        session.request.return_value = make_response(400, body)

        with pytest.raises(ProviderError) as exc_info:
            client.create_order({"items": []}, confirm=True)

        error = exc_info.value
        assert error.status == 400
        assert error.message == "Invalid recipient"
        assert error.raw_body == body

    def test_error_message_from_result_string(self, client, session):
        session.request.return_value = make_response(404, {"code": 404, "result": "Not found"})

        with pytest.raises(ProviderError) as exc_info:
            client.get_order("@1042")

        assert exc_info.value.status == 404
        assert exc_info.value.message == "Not found"

    def test_non_json_error_body(self, client, session):
        session.request.return_value = make_response(502, text="Bad gateway")

        with pytest.raises(ProviderError) as exc_info:
            client.post("/orders", {})

        assert exc_info.value.status == 502
        assert exc_info.value.message == "Printful API request failed"
        assert exc_info.value.raw_body == "Bad gateway"

    def test_redirect_is_an_error(self, client, session):
        response = make_response(302, {"result": "Moved"})
        response.ok = True  # requests treats every status below 400 as ok
        session.request.return_value = response

        with pytest.raises(ProviderError) as exc_info:
            client.create_order({}, confirm=True)

        assert exc_info.value.status == 302
        assert exc_info.value.message == "Moved"

    def test_connection_failure_is_status_zero(self, client, session):
        session.request.side_effect = RequestsConnectionError("connection refused")

        with pytest.raises(ProviderError) as exc_info:
            client.create_order({}, confirm=True)

        assert exc_info.value.status == 0
        assert exc_info.value.message == "network error"
        assert exc_info.value.is_network_error

    def test_timeout_is_status_zero(self, client, session):
        session.request.side_effect = Timeout("read timed out")

        with pytest.raises(ProviderError) as exc_info:
            client.estimate_costs({})

        assert exc_info.value.status == 0
        assert exc_info.value.message == "network error"


class TestRetries:
    """Only reads are retried."""

    def test_get_retried_with_backoff(self, client, session, sleep):
        session.request.side_effect = [
            make_response(503, {"code": 503, "result": "Unavailable"}),
            make_response(503, {"code": 503, "result": "Unavailable"}),
            make_response(200, {"code": 200, "result": {"name": "Shop"}}),
        ]

        assert client.get_store_info() == {"name": "Shop"}
        assert session.request.call_count == 3
        assert sleep.call_args_list == [call(0.5), call(1.0)]

    def test_get_gives_up_after_max_retries(self, session, sleep):
        client = PrintfulClient(api_token="t", session=session, sleep=sleep, max_retries=2)
        session.request.return_value = make_response(500, {"code": 500, "result": "boom"})

        with pytest.raises(ProviderError) as exc_info:
            client.get_webhooks()

        assert exc_info.value.status == 500
        assert session.request.call_count == 3
        assert sleep.call_count == 2

    def test_get_retries_network_errors(self, client, session, sleep):
        session.request.side_effect = [
            Timeout("slow"),
            make_response(200, {"result": {"id": 1}}),
        ]

        assert client.get_order(1) == {"id": 1}
        assert sleep.call_count == 1

    def test_client_error_not_retried(self, client, session, sleep):
        session.request.return_value = make_response(404, {"result": "Not found"})

        with pytest.raises(ProviderError):
            client.get_order(5)

        assert session.request.call_count == 1
        sleep.assert_not_called()

    def test_post_never_retried(self, client, session, sleep):
        session.request.return_value = make_response(503, {"result": "Unavailable"})

        with pytest.raises(ProviderError):
            client.create_order({"external_id": "1042"}, confirm=True)

        assert session.request.call_count == 1
        sleep.assert_not_called()


class TestPrintfulOperations:
    """Endpoint routing for the named operations."""

    def test_estimate_and_confirm_endpoints(self, client, session):
        session.request.return_value = make_response(200, {"result": {}})
        payload = {"external_id": "1042", "items": []}

        client.create_order(payload, confirm=False)
        client.create_order(payload, confirm=True)

        first, second = session.request.call_args_list
        assert first[0] == ("POST", "https://api.printful.com/orders/estimate-costs")
        assert second[0] == ("POST", "https://api.printful.com/orders")
        assert first[1]["json"] == payload
        assert second[1]["json"] == payload

    def test_cancel_order_uses_delete(self, client, session):
        session.request.return_value = make_response(200, {"result": {"status": "canceled"}})

        assert client.cancel_order("@1042") == {"status": "canceled"}
        assert session.request.call_args[0] == ("DELETE", "https://api.printful.com/orders/@1042")

    def test_delete_webhook(self, client, session):
        session.request.return_value = make_response(200, {"code": 200, "result": {}})

        assert client.delete_webhook() == {}
        assert session.request.call_args[0] == ("DELETE", "https://api.printful.com/webhooks")

    def test_setup_webhook_default_types(self, client, session):
        session.request.return_value = make_response(200, {"result": {"url": "https://shop.test/hook"}})

        client.setup_webhook("https://shop.test/hook")

        body = session.request.call_args[1]["json"]
        assert body == {"url": "https://shop.test/hook", "types": DEFAULT_WEBHOOK_TYPES}


class TestConnectionCheck:
    """test_connection() reports instead of raising."""

    def test_success(self, client, session):
        session.request.return_value = make_response(200, {"result": {"id": 3, "name": "Shop"}})

        status = client.test_connection()

        assert status.success is True
        assert status.store_info == {"id": 3, "name": "Shop"}
        assert status.to_dict()["error"] is None

    def test_bad_token(self, client, session):
        session.request.return_value = make_response(
            401, {"code": 401, "error": {"message": "Invalid token"}}
        )

        status = client.test_connection()

        assert status.success is False
        assert status.error.status == 401
        assert status.to_dict()["error"]["message"] == "Invalid token"

    def test_unreachable(self, session, sleep):
        client = PrintfulClient(api_token="t", session=session, sleep=sleep, max_retries=0)
        session.request.side_effect = RequestsConnectionError("dns failure")

        status = client.test_connection()

        assert status.success is False
        assert status.error.status == 0
