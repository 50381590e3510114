import json
from datetime import datetime, timezone

import pytest

from universal_sdk.encoding import encode_request, serialize_query, to_json, to_plain_string
from universal_sdk.errors import ConfigurationError
from universal_sdk.models import (
    FileBody,
    JsonBody,
    NamedFile,
    RequestDescriptor,
    TextBody,
    UrlEncodedFormBody,
    parse_body,
)

from .conftest import HOST


def _encode(path, method="post", **descriptor):
    return encode_request(HOST, path, method, RequestDescriptor.from_value(descriptor))


def test_path_params_are_uri_encoded():
    encoded = _encode("/widgets/:id/parts/:part", "get", params={"id": "a b/c", "part": 7})
    assert encoded.url == f"{HOST}/widgets/a%20b%2Fc/parts/7"
    assert encoded.method == "GET"


def test_only_first_occurrence_of_a_param_is_replaced():
    encoded = _encode("/a/:id/b/:id", "get", params={"id": "x"})
    assert encoded.url == f"{HOST}/a/x/b/:id"


def test_query_is_appended_only_when_non_empty():
    assert "?" not in _encode("/widgets", "get", query={}).url
    encoded = _encode("/widgets", "get", query={"limit": 10, "active": True, "name": "a b"})
    assert encoded.url == f"{HOST}/widgets?limit=10&active=true&name=%22a+b%22"


def test_path_param_strings_are_plain():
    assert to_plain_string("text") == "text"
    assert to_plain_string(None) == "null"
    assert to_plain_string({"a": [1, 2]}) == '{"a":[1,2]}'
    assert to_plain_string(datetime(2024, 1, 1, tzinfo=timezone.utc)) == "2024-01-01T00:00:00+00:00"


def test_query_values_keep_their_json_type():
    assert to_json("123") == '"123"'
    assert to_json(123) == "123"
    assert to_json("") == '""'
    assert to_json('say "hi"') == '"say \\"hi\\""'
    assert to_json(datetime(2024, 1, 1, tzinfo=timezone.utc)) == '"2024-01-01T00:00:00+00:00"'
    assert serialize_query({"q": "abc", "n": 123}) == "q=%22abc%22&n=123"
    assert serialize_query({"tags": ["x", "y"]}) == "tags=%5B%22x%22%2C%22y%22%5D"


def test_bare_object_is_sent_as_json():
    encoded = _encode("/widgets", body={"key": "value"}, headers={"Authorization": "Bearer token"})
    assert encoded.headers == {"Content-Type": "application/json", "Authorization": "Bearer token"}
    assert json.loads(encoded.content) == {"key": "value"}


@pytest.mark.parametrize("key", ["json", "schema"])
def test_json_and_schema_bodies(key):
    encoded = _encode("/widgets", body={key: {"name": "a"}})
    assert encoded.headers["Content-Type"] == "application/json"
    assert json.loads(encoded.content) == {"name": "a"}


def test_text_body_is_sent_verbatim():
    encoded = _encode("/notes", body={"text": "hello"})
    assert encoded.headers["Content-Type"] == "text/plain"
    assert encoded.content == "hello"


def test_file_body_keeps_binary_content():
    payload = b"\x89PNG\x00\xff"
    encoded = _encode("/upload", body={"file": NamedFile(name="a.png", content=payload)})
    assert encoded.headers["Content-Type"] == "application/octet-stream"
    assert encoded.content == payload


def test_raw_bytes_are_an_implicit_file_body():
    assert parse_body(b"abc") == FileBody(file=b"abc")


def test_multipart_form_omits_content_type_header():
    encoded = _encode(
        "/upload",
        body={
            "multipartForm": {
                "title": "report",
                "count": 2,
                "tags": ["a", "b"],
                "attachment": NamedFile(name="r.csv", content=b"a,b", content_type="text/csv"),
            }
        },
        headers={"Content-Type": "application/json", "X-Trace": "1"},
    )
    assert encoded.headers == {"X-Trace": "1"}
    assert encoded.content is None
    assert encoded.files == [
        ("title", (None, '"report"')),
        ("count", (None, "2")),
        ("tags", (None, '"a"')),
        ("tags", (None, '"b"')),
        ("attachment", ("r.csv", b"a,b", "text/csv")),
    ]


def test_url_encoded_form():
    encoded = _encode("/login", body={"urlEncodedForm": {"user": "a b", "remember": True}})
    assert encoded.headers["Content-Type"] == "application/x-www-form-urlencoded"
    assert encoded.content == "user=%22a+b%22&remember=true"


def test_explicit_body_content_type_replaces_default():
    encoded = _encode("/widgets", body={"json": {"a": 1}, "contentType": "application/merge-patch+json"})
    assert encoded.headers["Content-Type"] == "application/merge-patch+json"


def test_caller_content_type_header_wins():
    encoded = _encode("/notes", body=TextBody(text="x"), headers={"content-type": "text/markdown"})
    assert encoded.headers == {"content-type": "text/markdown"}


def test_body_with_two_discriminants_is_rejected():
    with pytest.raises(ConfigurationError):
        parse_body({"json": {"a": 1}, "text": "b"})


def test_body_variants_parse_from_dicts():
    assert parse_body({"json": {"a": 1}}) == JsonBody(json={"a": 1})
    assert parse_body({"url_encoded_form": {"a": 1}}) == UrlEncodedFormBody(url_encoded_form={"a": 1})
    assert parse_body(None) is None


def test_whole_url_is_percent_encoded_once():
    encoded = _encode("/search/:term", "get", params={"term": "é"}, query={"q": "ü"})
    assert encoded.url == f"{HOST}/search/%C3%A9?q=%22%C3%BC%22"
