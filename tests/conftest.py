import json

import pytest
import requests

from wp_api import Credentials, ExtractionContext

DOMAIN = "example.com"
BASE = f"https://{DOMAIN}/wp-json/wp/v2"


def make_response(status=200, payload=None, headers=None, url=BASE):
    r = requests.Response()
    r.status_code = status
    r._content = json.dumps(payload if payload is not None else []).encode("utf-8")
    r.encoding = "utf-8"
    r.headers.update(headers or {})
    r.url = url
    return r


def paged(*batches, total_header=True):
    """Route handler serving one batch per ?page=N with WP pagination headers."""
    def handler(params):
        page = int(params.get("page", 1))
        headers = {}
        if total_header:
            headers = {
                "X-WP-TotalPages": str(len(batches)),
                "X-WP-Total": str(sum(len(b) for b in batches)),
            }
        return make_response(200, batches[page - 1], headers)
    return handler


def status(code):
    return lambda params: make_response(code, {"code": "error"})


def fail(exc):
    def handler(params):
        raise exc
    return handler


class FakeSession:
    """Stand-in for requests.Session routing GETs by endpoint path."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []
        self.headers = {}

    def get(self, url, params=None):
        assert url.startswith(BASE), url
        endpoint = url[len(BASE):]
        self.calls.append((endpoint, dict(params or {})))
        route = self.routes.get(endpoint)
        if route is None:
            return make_response(404, {"code": "rest_no_route"}, url=url)
        return route(params or {})

    def endpoints(self):
        return [c[0] for c in self.calls]


@pytest.fixture
def credentials():
    return Credentials(DOMAIN, "editor", "abcd efgh ijkl")


@pytest.fixture
def make_ctx(credentials):
    def factory(routes=None):
        return ExtractionContext(credentials, session=FakeSession(routes))
    return factory
