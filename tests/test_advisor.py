import httpx
import pytest

from assistant.advisor import REVIEW_FALLBACK, ContactAdvisor
from assistant.upstream import UpstreamChatClient


def make_advisor(http, settings):
    return ContactAdvisor(UpstreamChatClient(http, settings), settings)


@pytest.mark.asyncio
async def test_subject_from_model_is_cleaned(backend, http, settings):
    backend.completion = '"Partnership on Shimmer Bay"\n'
    subject = await make_advisor(http, settings).generate_subject("Ana", "hi")
    assert subject == "Partnership on Shimmer Bay"
    body = backend.completion_bodies()[0]
    assert body["max_completion_tokens"] == settings.subject_max_tokens
    assert "From: Ana" in body["messages"][1]["content"]


@pytest.mark.asyncio
async def test_review_from_model(backend, http, settings):
    backend.completion = "Consider adding your budget."
    feedback = await make_advisor(http, settings).review_message("Ana", "ana@example.com", "hi")
    assert feedback == "Consider adding your budget."
    assert backend.completion_bodies()[0]["max_completion_tokens"] == settings.review_max_tokens


@pytest.mark.asyncio
async def test_upstream_failure_falls_back(backend, http, settings):
    backend.completion_status = 500
    advisor = make_advisor(http, settings)
    assert await advisor.generate_subject("Ana", "hi") == "New inquiry from Ana"
    assert await advisor.review_message("Ana", "ana@example.com", "hi") == "Your message looks good to go!"


@pytest.mark.asyncio
async def test_network_error_falls_back(settings):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    advisor = make_advisor(http, settings)
    assert await advisor.generate_subject("Ana", "hi") == "New inquiry from Ana"
    assert await advisor.review_message("Ana", "a@b.c", "hi") == REVIEW_FALLBACK


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"choices": []},
        {"choices": [{"message": {}}]},
        {"choices": [{"message": {"content": None}}]},
        {"unexpected": True},
    ],
)
async def test_malformed_or_empty_body_falls_back(settings, payload):
    http = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200, json=payload)))
    advisor = make_advisor(http, settings)
    assert await advisor.generate_subject("Ana", "hi") == "New inquiry from Ana"
    assert await advisor.review_message("Ana", "a@b.c", "hi") == REVIEW_FALLBACK


@pytest.mark.asyncio
async def test_quotes_only_subject_falls_back(backend, http, settings):
    backend.completion = '""'
    assert await make_advisor(http, settings).generate_subject("Ana", "hi") == "New inquiry from Ana"
