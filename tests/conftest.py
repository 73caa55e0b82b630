"""
Brief: Global pytest configuration enforcing per-test 10s timeout.

Inputs:
  - None

Outputs:
  - None
"""

import json
import os
import signal
import sys

import pytest
import requests
from requests.structures import CaseInsensitiveDict

# Ensure 'src' is on sys.path so 'rdapfetch' package is importable in tests
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_DIR = os.path.join(ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)


def _alarm_handler(signum, frame):
    """
    Brief: Signal handler that raises TimeoutError when alarm triggers.

    Inputs:
      - signum: signal number (int)
      - frame: current frame (ignored)

    Outputs:
      - None: Raises TimeoutError to fail the test
    """
    raise TimeoutError("Test exceeded 10 seconds")


# Install handler if supported on this platform
if hasattr(signal, "SIGALRM"):
    signal.signal(signal.SIGALRM, _alarm_handler)


def make_response(
    status=200,
    body=None,
    content_type="application/rdap+json",
    url="https://rdap.example/",
    headers=None,
):
    """
    Brief: Build a real requests.Response without touching the network.

    Inputs:
      - status: HTTP status code
      - body: dict/list (JSON encoded), str or bytes payload
      - content_type: Content-Type header value (None to omit)
      - url: Response URL
      - headers: Extra headers

    Outputs:
      - requests.Response
    """
    resp = requests.Response()
    resp.status_code = status
    resp.url = url
    resp.headers = CaseInsensitiveDict(headers or {})
    if content_type is not None:
        resp.headers["Content-Type"] = content_type
    if body is None:
        payload = b""
    elif isinstance(body, bytes):
        payload = body
    elif isinstance(body, str):
        payload = body.encode("utf-8")
    else:
        payload = json.dumps(body).encode("utf-8")
    resp._content = payload
    resp.encoding = "utf-8"
    return resp


class FakeHTTPClient:
    """
    Brief: Scripted stand-in for requests.Session.get.

    Inputs:
      - routes: mapping of URL -> Response, Exception, or list of those
        (consumed in order, the last one repeating)

    Outputs:
      - FakeHTTPClient; .calls records (url, headers, timeout) tuples
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def get(self, url, headers=None, timeout=None, **kwargs):
        self.calls.append((url, dict(headers or {}), timeout))
        if url not in self.routes:
            raise requests.ConnectionError(f"no route to {url}")
        answer = self.routes[url]
        if isinstance(answer, list):
            answer = answer.pop(0) if len(answer) > 1 else answer[0]
        if isinstance(answer, BaseException):
            raise answer
        return answer

    def urls(self):
        return [c[0] for c in self.calls]


@pytest.fixture
def fake_http():
    """
    Brief: Factory fixture returning FakeHTTPClient instances.

    Inputs:
      - None

    Outputs:
      - callable(routes) -> FakeHTTPClient
    """
    return FakeHTTPClient


@pytest.fixture(autouse=True)
def enforce_test_timeout():
    """
    Brief: Enforce a hard 10-second timeout for each test.

    Inputs:
      - None

    Outputs:
      - None: Cancels alarm after test
    """
    if hasattr(signal, "SIGALRM"):
        signal.alarm(10)
        try:
            yield
        finally:
            signal.alarm(0)
    else:
        # Fallback: no-op on platforms without SIGALRM
        yield
