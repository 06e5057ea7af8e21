import asyncio

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from yt_subfeed import http_client
from yt_subfeed.errors import (
    ErrorKind,
    UpstreamAuthError,
    UpstreamError,
    UpstreamQuotaError,
    UpstreamTransientError,
    classify_http_error,
)
from yt_subfeed.http_client import http_get_json


def _body(reason, message="boom"):
    return {"error": {"code": 0, "message": message, "errors": [{"reason": reason}]}}


@pytest.mark.parametrize(
    "status, payload, expected",
    [
        (401, _body("authError"), UpstreamAuthError),
        (401, None, UpstreamAuthError),
        (403, _body("quotaExceeded"), UpstreamQuotaError),
        (403, _body("dailyLimitExceeded"), UpstreamQuotaError),
        (403, _body("rateLimitExceeded"), UpstreamTransientError),
        (429, None, UpstreamTransientError),
        (500, _body("backendError"), UpstreamTransientError),
        (503, None, UpstreamTransientError),
        (403, _body("subscriptionForbidden"), UpstreamError),
        (404, _body("channelNotFound"), UpstreamError),
    ],
)
def test_classify_http_error(status, payload, expected):
    err = classify_http_error("activities", status, payload)

    assert type(err) is expected
    assert err.status == status
    assert err.endpoint == "activities"


def test_classification_ignores_message_wording():
    err = classify_http_error("videos", 400, _body("badRequest", message="quota unauthorized"))

    assert err.kind is ErrorKind.UPSTREAM
    assert err.reason == "badRequest"


def _serve(responses, **kwargs):
    """Serve as respostas em sequência e chama http_get_json uma vez."""
    hits = []

    async def handler(request):
        hits.append(dict(request.query))
        return responses[min(len(hits), len(responses)) - 1]()

    async def _main():
        app = web.Application()
        app.router.add_get("/thing", handler)
        async with TestServer(app) as server, aiohttp.ClientSession() as session:
            return await http_get_json(
                session, str(server.make_url("/thing")), {"a": "1"}, endpoint="thing", **kwargs
            )

    return hits, _main


@pytest.fixture(autouse=True)
def _no_backoff(monkeypatch):
    monkeypatch.setattr(http_client, "_backoff_delay", lambda attempt: 0)


def test_success_returns_json_object():
    hits, main = _serve([lambda: web.json_response({"items": [1]})])

    assert asyncio.run(main()) == {"items": [1]}
    assert hits == [{"a": "1"}]


def test_transient_error_is_retried_when_allowed():
    hits, main = _serve([
        lambda: web.json_response(_body("backendError"), status=503),
        lambda: web.json_response({"ok": True}),
    ], max_attempts=2)

    assert asyncio.run(main()) == {"ok": True}
    assert len(hits) == 2


def test_single_attempt_by_default():
    hits, main = _serve([lambda: web.json_response(_body("backendError"), status=503)])

    with pytest.raises(UpstreamTransientError):
        asyncio.run(main())
    assert len(hits) == 1


def test_quota_error_is_not_retried():
    hits, main = _serve([lambda: web.json_response(_body("quotaExceeded"), status=403)], max_attempts=3)

    with pytest.raises(UpstreamQuotaError) as excinfo:
        asyncio.run(main())
    assert excinfo.value.reason == "quotaExceeded"
    assert len(hits) == 1


@pytest.mark.parametrize(
    "make_response",
    [
        lambda: web.Response(text="<html>oops</html>", content_type="text/html"),
        lambda: web.json_response([1, 2, 3]),
    ],
)
def test_malformed_body_is_transient(make_response):
    _, main = _serve([make_response])

    with pytest.raises(UpstreamTransientError):
        asyncio.run(main())
