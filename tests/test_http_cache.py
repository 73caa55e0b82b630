"""
Brief: Tests for rdapfetch.http_cache.CachingSession and TTL helpers.

Inputs:
  - None

Outputs:
  - None
"""

from unittest.mock import Mock

import pytest

from conftest import make_response
from rdapfetch.cache_plugins.in_memory_ttl import InMemoryTTLCache
from rdapfetch.cache_plugins.none import NullCache
from rdapfetch.http_cache import CachingSession, response_ttl, wants_revalidation
from rdapfetch.query import QueryType
from rdapfetch.transport import BootstrapFetcher

URL = "https://data.iana.org/rdap/dns.json"
HEADERS = {"Accept": "application/json"}


def _session(*responses):
    session = Mock()
    session.get.side_effect = list(responses)
    return session


def test_second_get_is_served_from_cache():
    """
    Brief: A repeated GET is answered from cache and tagged X-From-Cache: 1.

    Inputs:
      - one 200 response from the backing session

    Outputs:
      - None: Asserts single network call, identical body and cache marker
    """
    session = _session(make_response(200, {"version": "1.0"}, url=URL))
    client = CachingSession(session, InMemoryTTLCache())

    first = client.get(URL, headers=HEADERS, timeout=1)
    second = client.get(URL, headers=HEADERS, timeout=1)

    assert session.get.call_count == 1
    assert "X-From-Cache" not in first.headers
    assert second.headers["X-From-Cache"] == "1"
    assert second.content == first.content
    assert second.status_code == 200
    assert second.json() == {"version": "1.0"}


def test_max_age_zero_request_refreshes_entry():
    """
    Brief: Cache-Control: max-age=0 bypasses the cache and stores the new copy.

    Inputs:
      - two distinct upstream bodies

    Outputs:
      - None: Asserts refreshed body is served on the next cached read
    """
    session = _session(
        make_response(200, {"n": 1}, url=URL),
        make_response(200, {"n": 2}, url=URL),
    )
    client = CachingSession(session, InMemoryTTLCache())

    client.get(URL, headers=HEADERS)
    reloaded = client.get(URL, headers=dict(HEADERS, **{"Cache-Control": "max-age=0"}))
    cached = client.get(URL, headers=HEADERS)

    assert session.get.call_count == 2
    assert reloaded.json() == {"n": 2}
    assert "X-From-Cache" not in reloaded.headers
    assert cached.json() == {"n": 2}


def test_non_200_and_no_store_are_not_cached():
    """
    Brief: Error responses and no-store responses always go upstream.

    Inputs:
      - 500 response, then no-store 200, then 200

    Outputs:
      - None
    """
    session = _session(
        make_response(500, {}, url=URL),
        make_response(200, {}, url=URL, headers={"Cache-Control": "no-store"}),
        make_response(200, {}, url=URL),
    )
    client = CachingSession(session, InMemoryTTLCache())
    client.get(URL, headers=HEADERS)
    client.get(URL, headers=HEADERS)
    third = client.get(URL, headers=HEADERS)
    assert session.get.call_count == 3
    assert "X-From-Cache" not in third.headers


def test_cache_key_includes_accept_header():
    """
    Brief: Responses are cached per (URL, Accept).

    Inputs:
      - same URL requested with two Accept values

    Outputs:
      - None
    """
    session = _session(make_response(200, {}, url=URL), make_response(200, {}, url=URL))
    client = CachingSession(session, InMemoryTTLCache())
    client.get(URL, headers={"Accept": "application/json"})
    client.get(URL, headers={"Accept": "application/rdap+json"})
    assert session.get.call_count == 2


def test_null_cache_never_marks_responses():
    """
    Brief: With NullCache every request reaches the session.

    Inputs:
      - two requests

    Outputs:
      - None
    """
    session = _session(make_response(200, {}, url=URL), make_response(200, {}, url=URL))
    client = CachingSession(session, NullCache())
    client.get(URL, headers=HEADERS)
    second = client.get(URL, headers=HEADERS)
    assert session.get.call_count == 2
    assert "X-From-Cache" not in second.headers


@pytest.mark.parametrize(
    "headers,expected",
    [
        ({"Cache-Control": "max-age=0"}, True),
        ({"cache-control": "No-Cache"}, True),
        ({"Cache-Control": "max-age=60"}, False),
        ({}, False),
        (None, False),
    ],
)
def test_wants_revalidation(headers, expected):
    """
    Brief: Only max-age=0 and no-cache request directives force revalidation.

    Inputs:
      - headers: request headers

    Outputs:
      - None
    """
    assert wants_revalidation(headers) is expected


def test_response_ttl_rules():
    """
    Brief: max-age wins, no-store/private disable caching, else the default.

    Inputs:
      - responses with assorted Cache-Control headers

    Outputs:
      - None
    """
    assert response_ttl(make_response(headers={"Cache-Control": "public, max-age=120"}), 10) == 120
    assert response_ttl(make_response(headers={"Cache-Control": "private"}), 10) == 0
    assert response_ttl(make_response(headers={"Cache-Control": "no-store"}), 10) == 0
    assert response_ttl(make_response(), 10) == 10


def test_stale_registry_recovery_through_caching_session():
    """
    Brief: BootstrapFetcher detects a cached registry from CachingSession and reloads it.

    Inputs:
      - first registry lacks 'zz', upstream later publishes it

    Outputs:
      - None: Asserts the reload bypasses the cache and the query is delegated
    """
    old = {"version": "1.0", "services": [[["br"], ["https://rdap.registro.br/"]]]}
    new = {
        "version": "1.0",
        "services": [[["br"], ["https://rdap.registro.br/"]], [["zz"], ["https://rdap.nic.zz/"]]],
    }
    session = _session(
        make_response(200, old, content_type="application/json", url=URL),
        make_response(200, new, content_type="application/json", url=URL),
    )
    client = CachingSession(session, InMemoryTTLCache())
    inner = Mock()
    fetcher = BootstrapFetcher(inner, client, ns_lookup=Mock(return_value=["ns.nic.zz."]))

    # Warm the cache with the old registry.
    client.get(URL, headers={"Accept": "application/json"})

    fetcher.fetch([], QueryType.DOMAIN, "example.zz")

    assert session.get.call_count == 2
    _, kwargs = session.get.call_args
    assert kwargs["headers"]["Cache-Control"] == "max-age=0"
    inner.fetch.assert_called_once_with(["https://rdap.nic.zz/"], QueryType.DOMAIN, "example.zz")


def test_cached_reply_carries_age_and_purge_keeps_fresh_entries():
    """
    Brief: Cache hits report their Age; purge() leaves unexpired entries alone.

    Inputs:
      - one 200 response with max-age=600

    Outputs:
      - None
    """
    session = _session(
        make_response(200, {}, url=URL, headers={"Cache-Control": "max-age=600"})
    )
    client = CachingSession(session, InMemoryTTLCache())

    first = client.get(URL, headers=HEADERS)
    second = client.get(URL, headers=HEADERS)

    assert "Age" not in first.headers
    assert 0 <= int(second.headers["Age"]) <= 600
    assert client.purge() == 0
    assert client.get(URL, headers=HEADERS).headers["X-From-Cache"] == "1"
