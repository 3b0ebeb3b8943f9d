import json
from unittest.mock import Mock

import pytest
import requests

from flowcatalog.flowise_client import FlowiseAPIError, FlowiseClient, FlowiseNotConfiguredError


def _response(status_code=200, payload=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.content = json.dumps(payload).encode() if payload is not None else b""
    response.text = text or (json.dumps(payload) if payload is not None else "")
    response.json = Mock(return_value=payload)
    return response


def _capture(monkeypatch, response):
    calls = []

    def fake_request(method, url, **kwargs):
        calls.append({"method": method, "url": url, **kwargs})
        return response

    monkeypatch.setattr(requests, "request", fake_request)
    return calls


def test_list_chatflows_sends_bearer_key(monkeypatch):
    calls = _capture(
        monkeypatch,
        _response(payload=[{"id": "cf1", "name": "Support bot", "deployed": True, "flowData": "{}", "createdDate": "2024-01-01"}]),
    )
    client = FlowiseClient("http://localhost:3000/", api_key="secret")

    chatflows = client.list_chatflows()

    assert chatflows == [
        {"id": "cf1", "name": "Support bot", "deployed": True, "createdDate": "2024-01-01", "updatedDate": None}
    ]
    assert calls[0]["method"] == "GET"
    assert calls[0]["url"] == "http://localhost:3000/api/v1/chatflows"
    assert calls[0]["headers"]["Authorization"] == "Bearer secret"


def test_create_chatflow_serializes_flow_data(monkeypatch):
    calls = _capture(monkeypatch, _response(payload={"id": "cf2", "name": "New flow"}))
    client = FlowiseClient("http://flowise")

    result = client.create_chatflow("New flow", [{"id": "n1"}], [], deployed=True)

    body = calls[0]["json"]
    assert json.loads(body["flowData"]) == {"nodes": [{"id": "n1"}], "edges": []}
    assert body["deployed"] is True
    assert "Authorization" not in calls[0]["headers"]
    assert result["success"] is True
    assert result["url"] == "http://flowise/chatflows/cf2"


def test_update_only_sends_given_fields(monkeypatch):
    calls = _capture(monkeypatch, _response(payload={"id": "cf1", "name": "Renamed"}))
    FlowiseClient("http://flowise").update_chatflow("cf1", name="Renamed")
    assert calls[0]["method"] == "PUT"
    assert calls[0]["json"] == {"name": "Renamed"}


def test_delete_with_empty_body(monkeypatch):
    calls = _capture(monkeypatch, _response())
    result = FlowiseClient("http://flowise").delete_chatflow("cf1")
    assert calls[0]["url"] == "http://flowise/api/v1/chatflows/cf1"
    assert result["success"] is True


def test_error_status_raises(monkeypatch):
    _capture(monkeypatch, _response(status_code=404, text="Chatflow not found"))
    with pytest.raises(FlowiseAPIError) as excinfo:
        FlowiseClient("http://flowise").get_chatflow("missing")
    assert excinfo.value.status_code == 404
    assert "Chatflow not found" in str(excinfo.value)


def test_test_connection_reports_failures(monkeypatch):
    def refuse(*args, **kwargs):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(requests, "request", refuse)
    status = FlowiseClient("http://flowise").test_connection()
    assert status["connected"] is False
    assert "connection refused" in status["error"]


def test_test_connection_counts_chatflows(monkeypatch):
    _capture(monkeypatch, _response(payload=[{"id": "a"}, {"id": "b"}]))
    status = FlowiseClient("http://flowise").test_connection()
    assert status == {"connected": True, "url": "http://flowise", "chatflows_count": 2}


def test_unconfigured_client():
    client = FlowiseClient("")
    assert not client.configured
    assert client.test_connection()["connected"] is False
    with pytest.raises(FlowiseNotConfiguredError):
        client.get_chatflow("x")


def test_non_json_body_is_an_api_error(monkeypatch):
    response = _response(text="<html>Bad gateway</html>")
    response.content = b"<html>Bad gateway</html>"
    response.json = Mock(side_effect=requests.exceptions.JSONDecodeError("Expecting value", "<html>", 0))
    _capture(monkeypatch, response)

    with pytest.raises(FlowiseAPIError) as excinfo:
        FlowiseClient("http://flowise").list_chatflows()
    assert "non-JSON" in str(excinfo.value)
