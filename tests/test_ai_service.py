"""
Unit tests for ai_service.py.

The Gemini endpoint is replaced by httpx.MockTransport; no network access.

Tests cover:
  - request shape (model URL, key, JSON mode, web search tool)
  - summary parsing, caching (bounded) and in-flight de-duplication
  - a cancelled caller leaves the shared call running for the others
  - fallback on transport / HTTP / parse failures and when disabled
  - conversational answers with grounding sources
  - state snapshot content
"""
import asyncio
import json

import httpx
import pytest

from conftest import make_kpi, make_manager, make_pillar
from utils.config import AIConfig
from utils.manager_performance.ai_service import (
    AIService,
    GeminiClient,
    build_state_snapshot,
)
from utils.manager_performance.constants import AI_FALLBACK_MESSAGE, TimePeriod
from utils.manager_performance.errors import ValidationError
from utils.manager_performance.models import AppState

MONTHLY = TimePeriod.MONTHLY


def gemini_body(text, chunks=None):
    candidate = {"content": {"parts": [{"text": text}]}}
    if chunks is not None:
        candidate["groundingMetadata"] = {"groundingChunks": chunks}
    return {"candidates": [candidate]}


class RecordingHandler:
    """MockTransport handler that records requests and replays one response."""

    def __init__(self, status=200, body=None):
        self.status = status
        self.body = body if body is not None else gemini_body(json.dumps({"summary": "- Solid month"}))
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        return httpx.Response(self.status, json=self.body)

    def payload(self, index=0):
        return json.loads(self.requests[index].content)


def make_service(handler, api_key="test-key", enabled=True, cache_size=128):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = GeminiClient(AIConfig(api_key=api_key, model="gemini-test"), http_client=http_client)
    return AIService(client=client, enabled=enabled, cache_size=cache_size)


@pytest.fixture
def manager():
    return make_manager(pillars=[
        make_pillar("operations", weight=60, kpis=[make_kpi("otp", history={"2024-05": 90})]),
        make_pillar("safety", weight=40, kpis=[make_kpi("audits", history={"2024-05": 70})]),
    ])


class TestSummary:
    def test_successful_summary(self, manager):
        handler = RecordingHandler()
        result = asyncio.run(make_service(handler).generate_summary(manager, MONTHLY))

        assert result.summary == "- Solid month"
        assert result.is_fallback is False

        request = handler.requests[0]
        assert request.url.path.endswith("/models/gemini-test:generateContent")
        assert request.url.params["key"] == "test-key"
        payload = handler.payload()
        assert payload["generationConfig"] == {"responseMimeType": "application/json"}
        assert "tools" not in payload
        assert "Overall score: 82%" in payload["contents"][0]["parts"][0]["text"]

    def test_repeat_request_is_cached(self, manager):
        handler = RecordingHandler()
        service = make_service(handler)

        async def twice():
            first = await service.generate_summary(manager, MONTHLY)
            second = await service.generate_summary(manager, MONTHLY)
            return first, second

        first, second = asyncio.run(twice())
        assert first == second
        assert len(handler.requests) == 1

    def test_concurrent_requests_share_one_call(self, manager):
        handler = RecordingHandler()
        service = make_service(handler)

        async def together():
            return await asyncio.gather(
                service.generate_summary(manager, MONTHLY),
                service.generate_summary(manager, MONTHLY),
            )

        results = asyncio.run(together())
        assert results[0] == results[1]
        assert len(handler.requests) == 1

    def test_cancelled_caller_does_not_cancel_shared_call(self, manager):
        requests = []

        async def scenario():
            gate = asyncio.Event()

            async def slow_handler(request):
                requests.append(request)
                await gate.wait()
                return httpx.Response(200, json=gemini_body(json.dumps({"summary": "- Solid month"})))

            service = make_service(slow_handler)
            first = asyncio.ensure_future(service.generate_summary(manager, MONTHLY))
            second = asyncio.ensure_future(service.generate_summary(manager, MONTHLY))
            await asyncio.sleep(0.01)
            first.cancel()
            gate.set()
            results = await asyncio.gather(first, second, return_exceptions=True)
            again = await service.generate_summary(manager, MONTHLY)
            return results, again

        (first, second), again = asyncio.run(scenario())
        assert isinstance(first, asyncio.CancelledError)
        assert second.summary == "- Solid month"
        assert second.is_fallback is False
        assert again == second
        assert len(requests) == 1

    def test_cache_is_bounded(self, manager):
        handler = RecordingHandler()
        service = make_service(handler, cache_size=1)
        other = make_manager("m2", pillars=[make_pillar(kpis=[make_kpi(history={"2024-05": 75})])])

        async def sequence():
            await service.generate_summary(manager, MONTHLY)
            await service.generate_summary(other, MONTHLY)
            await service.generate_summary(other, MONTHLY)
            await service.generate_summary(manager, MONTHLY)

        asyncio.run(sequence())
        assert len(service._cache) == 1
        assert len(handler.requests) == 3

    @pytest.mark.parametrize("handler", [
        RecordingHandler(status=500, body={"error": "boom"}),
        RecordingHandler(body=gemini_body("not json")),
        RecordingHandler(body={"candidates": []}),
        RecordingHandler(body=gemini_body(json.dumps({"other": 1}))),
    ])
    def test_failures_fall_back(self, manager, handler):
        result = asyncio.run(make_service(handler).generate_summary(manager, MONTHLY))
        assert result.is_fallback is True
        assert result.summary == AI_FALLBACK_MESSAGE

    def test_failures_are_not_cached(self, manager):
        handler = RecordingHandler(status=503, body={})
        service = make_service(handler)

        async def twice():
            await service.generate_summary(manager, MONTHLY)
            await service.generate_summary(manager, MONTHLY)

        asyncio.run(twice())
        assert len(handler.requests) == 2

    def test_missing_api_key_falls_back(self, manager):
        handler = RecordingHandler()
        result = asyncio.run(make_service(handler, api_key=None).generate_summary(manager, MONTHLY))
        assert result.is_fallback is True
        assert handler.requests == []

    def test_disabled_service_never_calls_out(self, manager):
        handler = RecordingHandler()
        result = asyncio.run(make_service(handler, enabled=False).generate_summary(manager, MONTHLY))
        assert result.is_fallback is True
        assert handler.requests == []

    def test_manager_without_data(self):
        handler = RecordingHandler()
        empty = make_manager(name="Nadia", pillars=[make_pillar(kpis=[make_kpi()])])
        result = asyncio.run(make_service(handler).generate_summary(empty, MONTHLY))
        assert result.is_fallback is True
        assert "Nadia" in result.summary
        assert handler.requests == []


class TestConversation:
    def test_answer_with_web_sources(self):
        handler = RecordingHandler(body=gemini_body("Benchmarks suggest 95%.", chunks=[
            {"web": {"uri": "https://example.org/otp", "title": "OTP report"}},
            {"web": {"uri": "https://example.org/raw"}},
            {"retrievedContext": {}},
        ]))
        service = make_service(handler)
        answer = asyncio.run(service.ask_conversational("What is a good OTP?", {"managers": []}, True))

        assert answer.text == "Benchmarks suggest 95%."
        assert [(s.uri, s.title) for s in answer.sources] == [
            ("https://example.org/otp", "OTP report"),
            ("https://example.org/raw", "https://example.org/raw"),
        ]
        payload = handler.payload()
        assert payload["tools"] == [{"google_search": {}}]
        assert "generationConfig" not in payload

    def test_transport_error_falls_back(self):
        def broken(request):
            raise httpx.ConnectError("unreachable", request=request)

        service = make_service(broken)
        answer = asyncio.run(service.ask_conversational("Status?", {}))
        assert answer.is_fallback is True
        assert answer.sources == []

    def test_blank_question_rejected(self):
        service = make_service(RecordingHandler())
        with pytest.raises(ValidationError):
            asyncio.run(service.ask_conversational("   ", {}))


class TestSnapshot:
    def test_snapshot_is_json_ready(self, manager):
        state = AppState(managers=[manager], selected_manager_id=manager.id)
        snapshot = build_state_snapshot(state)

        assert snapshot["time_period"] == "monthly"
        assert snapshot["organisation"]["overall_score"] == 82
        assert snapshot["managers"][0]["pillars"][1] == {"name": "Safety", "weight": 40, "score": 70}
        json.dumps(snapshot)
