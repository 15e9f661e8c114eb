"""Тесты модели запроса."""

import json

import pytest

from spotify_http.core.request import ApiRequest, Body, HttpVerb

URL = "https://api.spotify.com/v1/me/player/play"


def test_verb_flags():
    assert HttpVerb.GET.cacheable is True
    assert HttpVerb.POST.cacheable is False
    assert HttpVerb.POST.idempotent is False
    assert HttpVerb.PUT.idempotent is True
    assert HttpVerb.DELETE.idempotent is True


def test_body_json():
    body = Body.json({"uris": ["spotify:track:4iV5W9uYEdYUVa79Axb7Rh"]})
    assert body.content_type == "application/json"
    assert json.loads(body.content) == {"uris": ["spotify:track:4iV5W9uYEdYUVa79Axb7Rh"]}


def test_body_form():
    body = Body.form({"grant_type": "client_credentials"})
    assert body.content == b"grant_type=client_credentials"
    assert body.content_type == "application/x-www-form-urlencoded"
    assert len(body) == len(b"grant_type=client_credentials")


def test_verb_normalized_from_string():
    request = ApiRequest("put", URL)
    assert request.verb is HttpVerb.PUT
    assert request.method == "PUT"


def test_unknown_verb_rejected():
    with pytest.raises(ValueError):
        ApiRequest("PATCH", URL)


@pytest.mark.parametrize("uri", ["", None])
def test_empty_uri_rejected(uri):
    with pytest.raises(ValueError):
        ApiRequest(HttpVerb.GET, uri)


def test_get_with_body_rejected():
    with pytest.raises(ValueError):
        ApiRequest(HttpVerb.GET, URL, body=Body.text("x"))


def test_is_idempotent():
    assert ApiRequest(HttpVerb.PUT, URL).is_idempotent is True
    assert ApiRequest(HttpVerb.POST, URL).is_idempotent is False
    assert ApiRequest(HttpVerb.POST, URL, idempotent=True).is_idempotent is True


def test_request_ids_are_unique():
    assert ApiRequest(HttpVerb.GET, URL).request_id != ApiRequest(HttpVerb.GET, URL).request_id


def test_request_headers_add_content_type():
    request = ApiRequest(HttpVerb.PUT, URL, headers={"Authorization": "Bearer t"}, body=Body.json({}))
    assert request.request_headers() == {
        "Authorization": "Bearer t",
        "Content-Type": "application/json",
    }


def test_explicit_content_type_wins():
    request = ApiRequest(
        HttpVerb.PUT,
        URL,
        headers={"content-type": "image/jpeg"},
        body=Body(b"\xff\xd8", "text/plain"),
    )
    assert request.request_headers() == {"content-type": "image/jpeg"}
