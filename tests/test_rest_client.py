"""Tests for the blocking REST client."""

from unittest.mock import MagicMock

import pytest
import requests

from skillmatch.config import BackendConfig
from skillmatch.rest.client import RestClient
from skillmatch.rest.errors import (
    ApiError,
    ErrorKind,
    MalformedResponseError,
    TransportError,
)
from skillmatch.rest.query import Query
from skillmatch.session import SessionContext


def _response(status=200, body=None, headers=None, text=None):
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 300
    response.headers = headers or {}
    if body is None and text is None:
        response.content = b""
        response.json.side_effect = ValueError("no body")
        response.text = ""
    elif body is not None:
        response.content = b"x"
        response.json.return_value = body
        response.text = str(body)
    else:
        response.content = text.encode()
        response.json.side_effect = ValueError("not json")
        response.text = text
    return response


@pytest.fixture
def http():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(http, monkeypatch):
    monkeypatch.delenv("SKILLMATCH_URL", raising=False)
    monkeypatch.delenv("SKILLMATCH_ANON_KEY", raising=False)
    cfg = BackendConfig(url="https://db.example.co/", anon_key="anon")
    return RestClient(cfg, http=http)


class TestHeaders:
    def test_anonymous(self, client):
        headers = client.headers()
        assert headers["apikey"] == "anon"
        assert headers["Authorization"] == "Bearer anon"
        assert headers["Prefer"] == "return=representation"

    def test_signed_in(self, http):
        session = SessionContext()
        session.login("user-token", {"id": "u1"})
        client = RestClient(BackendConfig(anon_key="anon"), session=session, http=http)
        assert client.headers()["Authorization"] == "Bearer user-token"

    def test_multipart_has_no_json_content_type(self, client):
        assert "Content-Type" not in client.headers(json_body=False)


class TestSelect:
    def test_renders_query(self, client, http):
        http.request.return_value = _response(body=[{"id": "j1"}])
        rows = client.select(Query("jobs").eq("id", "j1"))

        assert rows == [{"id": "j1"}]
        method, url = http.request.call_args.args
        assert method == "GET"
        assert url == "https://db.example.co/rest/v1/jobs"
        assert http.request.call_args.kwargs["params"] == [("select", "*"), ("id", "eq.j1")]

    def test_non_list_is_malformed(self, client, http):
        http.request.return_value = _response(body={"id": "j1"})
        with pytest.raises(MalformedResponseError):
            client.select(Query("jobs"))

    def test_invalid_json(self, client, http):
        http.request.return_value = _response(text="<html>")
        with pytest.raises(MalformedResponseError):
            client.select(Query("jobs"))

    def test_network_error(self, client, http):
        http.request.side_effect = requests.ConnectionError("refused")
        with pytest.raises(TransportError) as exc_info:
            client.select(Query("jobs"))
        assert exc_info.value.kind == ErrorKind.NETWORK


class TestErrors:
    def test_unique_violation(self, client, http):
        http.request.return_value = _response(409, body={
            "code": "23505",
            "message": 'duplicate key value violates unique constraint "applications_pkey"',
        })
        with pytest.raises(ApiError) as exc_info:
            client.insert("applications", {"job_id": "j1"})
        err = exc_info.value
        assert err.is_unique_violation
        assert err.kind == ErrorKind.DUPLICATE
        assert "[23505]" in str(err)

    def test_foreign_key_is_constraint(self, client, http):
        http.request.return_value = _response(409, body={"code": "23503", "message": "violates foreign key"})
        with pytest.raises(ApiError) as exc_info:
            client.insert("messages", {"application_id": "nope"})
        assert exc_info.value.kind == ErrorKind.CONSTRAINT

    def test_not_found(self, client, http):
        http.request.return_value = _response(404, text="Not Found")
        with pytest.raises(ApiError) as exc_info:
            client.select(Query("nope"))
        assert exc_info.value.kind == ErrorKind.NOT_FOUND
        assert exc_info.value.message == "Not Found"

    def test_server_error_is_network(self, client, http):
        http.request.return_value = _response(503, text="")
        with pytest.raises(ApiError) as exc_info:
            client.select(Query("jobs"))
        assert exc_info.value.kind == ErrorKind.NETWORK
        assert exc_info.value.message == "HTTP 503"

    def test_auth_error_body(self, client, http):
        http.request.return_value = _response(400, body={"error": "invalid_grant", "error_description": "Bad creds"})
        with pytest.raises(ApiError) as exc_info:
            client.request("POST", "/auth/v1/token")
        assert exc_info.value.message == "Bad creds"


class TestWrites:
    def test_upsert(self, client, http):
        http.request.return_value = _response(201, body=[{"user_id": "u1", "job_id": "j1"}])
        client.insert("recently_viewed", {"user_id": "u1", "job_id": "j1"}, on_conflict=("user_id", "job_id"))
        kwargs = http.request.call_args.kwargs
        assert kwargs["params"] == [("on_conflict", "user_id,job_id")]
        assert kwargs["headers"]["Prefer"].startswith("resolution=merge-duplicates")

    def test_update_sends_only_filters(self, client, http):
        http.request.return_value = _response(body=[{"id": "a1", "status": "shortlisted"}])
        client.update(Query("applications").eq("id", "a1"), {"status": "shortlisted"})
        method, _ = http.request.call_args.args
        assert method == "PATCH"
        assert http.request.call_args.kwargs["params"] == [("id", "eq.a1")]
        assert http.request.call_args.kwargs["json"] == {"status": "shortlisted"}

    def test_delete(self, client, http):
        http.request.return_value = _response(204)
        client.delete(Query("saved_jobs").eq("job_id", "j1").eq("user_id", "u1"))
        method, _ = http.request.call_args.args
        assert method == "DELETE"


class TestCount:
    def test_reads_content_range(self, client, http):
        http.request.return_value = _response(200, headers={"Content-Range": "0-0/3"})
        assert client.count(Query("saved_jobs").eq("user_id", "u1")) == 3
        kwargs = http.request.call_args.kwargs
        assert kwargs["headers"]["Prefer"] == "count=exact"

    def test_empty_range(self, client, http):
        http.request.return_value = _response(200, headers={"Content-Range": "*/0"})
        assert client.count(Query("saved_jobs")) == 0

    def test_missing_header(self, client, http):
        http.request.return_value = _response(200)
        with pytest.raises(MalformedResponseError):
            client.count(Query("saved_jobs"))
