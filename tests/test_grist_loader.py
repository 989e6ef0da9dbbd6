import json
from unittest import mock

import pytest
import requests

from gristsync.errors import ConfigurationError, TransportError
from gristsync.loaders.grist_loader import GristClient
from gristsync.models.record import ColumnType, DestinationColumn


def _response(status, payload=None, text=None):
    response = requests.Response()
    response.status_code = status
    if payload is not None:
        response._content = json.dumps(payload).encode()
    else:
        response._content = (text or "").encode()
    return response


@pytest.fixture
def session():
    session = requests.Session()
    with mock.patch.object(session, "request") as request:
        request.return_value = _response(200, {"records": []})
        yield session


def _client(session, token="secret"):
    return GristClient("doc1", "Table1", api_url="http://grist.local/", api_token=token, session=session)


def test_headers(session):
    _client(session)
    assert session.headers["Authorization"] == "Bearer secret"
    assert session.headers["Content-Type"] == "application/json"


def test_public_document_sends_no_token(session):
    _client(session, token=None)
    assert "Authorization" not in session.headers


def test_fetch_records(session):
    session.request.return_value = _response(200, {"records": [{"id": 3, "fields": {"k": "a"}}]})

    result = _client(session).fetch_records(limit=5)

    assert result.success
    assert [(r.id, r.fields) for r in result.data] == [(3, {"k": "a"})]
    method, url = session.request.call_args[0]
    assert method == "GET"
    assert url == "http://grist.local/api/docs/doc1/tables/Table1/records"
    assert session.request.call_args[1]["params"] == {"limit": 5}


def test_fetch_columns(session):
    session.request.return_value = _response(
        200, {"columns": [{"id": "Age", "fields": {"label": "Age", "type": "Int"}},
                          {"id": "Ref", "fields": {"type": "Ref:Other"}}]}
    )
    result = _client(session).fetch_columns()
    assert [(c.id, c.type) for c in result.data] == [("Age", ColumnType.INT), ("Ref", ColumnType.TEXT)]


def test_add_records_body(session):
    session.request.return_value = _response(200, {"records": [{"id": 10}, {"id": 11}]})

    result = _client(session).add_records([{"k": "a"}, {"k": "b"}])

    assert result.data == [10, 11]
    method, url = session.request.call_args[0]
    assert method == "POST"
    assert session.request.call_args[1]["json"] == {"records": [{"fields": {"k": "a"}}, {"fields": {"k": "b"}}]}


def test_add_columns_body(session):
    session.request.return_value = _response(200, {"columns": [{"id": "Score"}]})

    _client(session).add_columns([DestinationColumn(id="Score", type=ColumnType.NUMERIC, label="Score")])

    assert session.request.call_args[0][1].endswith("/columns")
    assert session.request.call_args[1]["json"] == {
        "columns": [{"id": "Score", "fields": {"colId": "Score", "label": "Score", "type": "Numeric"}}]
    }


def test_update_records_body(session):
    session.request.return_value = _response(200, text="")

    result = _client(session).update_records([{"id": 1, "fields": {"v": 2}}])

    assert result.success
    assert session.request.call_args[0][0] == "PATCH"
    assert session.request.call_args[1]["json"] == {"records": [{"id": 1, "fields": {"v": 2}}]}


@pytest.mark.parametrize("call", ["add_records", "update_records", "add_columns"])
def test_empty_batches_are_rejected(session, call):
    with pytest.raises(ConfigurationError):
        getattr(_client(session), call)([])
    session.request.assert_not_called()


def test_http_error_becomes_result(session):
    session.request.return_value = _response(403, text="no access")

    result = _client(session).fetch_records()

    assert not result.success
    assert isinstance(result.error, TransportError)
    assert result.error.status_code == 403
    assert result.error.message == "HTTP 403: no access"


def test_network_error_becomes_result(session):
    session.request.side_effect = requests.exceptions.ConnectionError("refused")

    result = _client(session).add_records([{"k": "a"}])

    assert not result.success
    assert result.error.status_code is None
    assert isinstance(result.error.cause, requests.exceptions.ConnectionError)


def test_invalid_json_becomes_result(session):
    session.request.return_value = _response(200, text="<html>")
    result = _client(session).fetch_records()
    assert not result.success
    assert "Invalid JSON" in result.error.message


@pytest.mark.parametrize(
    "status,valid,needs_auth",
    [(200, True, False), (401, False, True), (403, False, True), (500, False, False)],
)
def test_check_access(session, status, valid, needs_auth):
    session.request.return_value = _response(status, {"records": []})
    access = _client(session, token=None).check_access()
    assert (access.valid, access.needs_auth) == (valid, needs_auth)
    if status == 500:
        assert access.message == "HTTP 500"


def test_check_access_network_failure(session):
    session.request.side_effect = requests.exceptions.ConnectionError("down")
    access = _client(session).check_access()
    assert not access.valid
    assert not access.needs_auth


def test_test_connection(session):
    assert _client(session).test_connection()
    assert session.request.call_args[1]["params"] == {"limit": 1}


def test_from_url(session):
    client = GristClient.from_url("https://grist.example.com/o/team/doc/abc?table=People", session=session)
    assert (client.doc_id, client.table_id, client.api_url) == ("abc", "People", "https://grist.example.com")


def test_from_url_errors():
    with pytest.raises(ConfigurationError):
        GristClient.from_url("not a url")
    with pytest.raises(ConfigurationError):
        GristClient.from_url("https://docs.getgrist.com/doc/abc")


@pytest.mark.parametrize("operation", ["fetch_records", "fetch_columns"])
def test_non_object_body_is_a_failed_call(session, operation):
    session.request.return_value = _response(200, [{"id": 1}])

    result = getattr(_client(session), operation)()

    assert not result.success
    assert isinstance(result.error, TransportError)
    assert "expected a JSON object" in result.error.message


def test_add_records_with_list_body_fails_without_raising(session):
    session.request.return_value = _response(200, [10, 11])
    result = _client(session).add_records([{"k": "a"}])
    assert not result.success


def test_null_body_is_an_empty_object(session):
    session.request.return_value = _response(200, text="null")
    result = _client(session).update_records([{"id": 1, "fields": {"k": "b"}}])
    assert result.success
