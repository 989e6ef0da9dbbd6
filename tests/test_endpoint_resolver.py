import pytest

from gristsync.services.endpoint_resolver import is_valid_destination_url, parse_destination_url


@pytest.mark.parametrize(
    "url,doc_id,table_id,base_url",
    [
        ("https://docs.getgrist.com/doc/abc123xyz", "abc123xyz", None, "https://docs.getgrist.com"),
        ("https://docs.getgrist.com/d/abc123", "abc123", None, "https://docs.getgrist.com"),
        ("https://docs.getgrist.com/o/myorg/doc/myDocId", "myDocId", None, "https://docs.getgrist.com"),
        ("https://docs.getgrist.com/doc/abc123/p/5", "abc123", "5", "https://docs.getgrist.com"),
        ("http://localhost:8484/doc/testDoc", "testDoc", None, "http://localhost:8484"),
        ("https://docs.getgrist.com/doc/abc123?param=value", "abc123", None, "https://docs.getgrist.com"),
        ("https://docs.getgrist.com/doc/abc123#section", "abc123", None, "https://docs.getgrist.com"),
        ("http://grist.local/api/docs/abc/tables/People/records", "abc", "People", "http://grist.local"),
        ("https://docs.getgrist.com/o/docs/doc/abc123", "abc123", None, "https://docs.getgrist.com"),
        ("https://docs.getgrist.com/o/d/d/abc123/p/2", "abc123", "2", "https://docs.getgrist.com"),
    ],
)
def test_document_urls(url, doc_id, table_id, base_url):
    endpoint = parse_destination_url(url)
    assert endpoint is not None
    assert (endpoint.doc_id, endpoint.table_id, endpoint.base_url) == (doc_id, table_id, base_url)


def test_query_table_wins_over_path():
    endpoint = parse_destination_url("https://docs.getgrist.com/doc/abc/p/5?tableId=Contacts")
    assert endpoint.table_id == "Contacts"
    assert parse_destination_url("https://docs.getgrist.com/doc/abc?table=People").table_id == "People"


def test_page_segment_without_table():
    endpoint = parse_destination_url("https://docs.getgrist.com/doc/abc/p/")
    assert endpoint.doc_id == "abc"
    assert endpoint.table_id is None


def test_short_form():
    endpoint = parse_destination_url("http://localhost:8484/tdBmr4kcvczT/Untitled-document/p/8")
    assert (endpoint.doc_id, endpoint.doc_name, endpoint.table_id) == ("tdBmr4kcvczT", "Untitled-document", "8")

    endpoint = parse_destination_url("http://localhost:8484/xyz789/p/3")
    assert (endpoint.doc_id, endpoint.doc_name, endpoint.table_id) == ("xyz789", None, "3")


@pytest.mark.parametrize(
    "url",
    [
        None,
        "",
        "not-a-valid-url",
        "ftp://docs.getgrist.com/doc/abc",
        "https://docs.getgrist.com",
        "https://docs.getgrist.com/",
        "http://localhost:8484/docId/Document/p/",
        "http://localhost:8484/docId/Document/8",
    ],
)
def test_invalid_urls_yield_none(url):
    assert parse_destination_url(url) is None
    assert not is_valid_destination_url(url)


def test_short_form_document_name_that_looks_like_a_marker():
    endpoint = parse_destination_url("http://localhost:8484/tdBmr4kcvczT/d/p/8")
    assert (endpoint.doc_id, endpoint.doc_name, endpoint.table_id) == ("tdBmr4kcvczT", "d", "8")

    endpoint = parse_destination_url("http://localhost:8484/o/team/tdBmr4kcvczT/docs/p/3")
    assert (endpoint.doc_id, endpoint.doc_name, endpoint.table_id) == ("tdBmr4kcvczT", "docs", "3")
