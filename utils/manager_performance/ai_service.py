# utils/manager_performance/ai_service.py
"""
AI summary collaborator (Gemini REST API)

External, read-only oracle used by the dashboard:
- AIService.generate_summary(manager, period) -> SummaryResult
- AIService.ask_conversational(question, snapshot, use_web_search) -> ConversationalAnswer

The service only reads plain snapshots of manager/alert data and never touches
the store. Transport, HTTP and parse failures are logged and degrade to a
static fallback message; task cancellation propagates to the caller.

Results are cached per key in-process, and concurrent identical requests share
a single in-flight call.
"""

import asyncio
import json
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import httpx

from ..config import AIConfig, config
from .constants import AI_FALLBACK_MESSAGE, PERIOD_LABELS, TimePeriod
from .errors import InsufficientDataError, ValidationError
from .models import AppState, Manager
from .rollup import rollup
from .scoring import best_and_worst_pillars, overall_score, require_overall_score, score_of_pillar

logger = logging.getLogger(__name__)

SUMMARY_SYSTEM_PROMPT = (
    "You are an executive assistant preparing concise performance review "
    "summaries. Reply with JSON only: {\"summary\": \"<markdown bullet points>\"}."
)

CONVERSATION_SYSTEM_PROMPT = (
    "You are an assistant specialised in ground-handling performance data. "
    "Answer briefly using the provided dashboard context. Markdown is allowed."
)


class AIServiceError(Exception):
    """Raised by GeminiClient for configuration or response-shape problems."""


@dataclass
class Source:
    uri: str
    title: str


@dataclass
class SummaryResult:
    summary: str
    is_fallback: bool = False


@dataclass
class ConversationalAnswer:
    text: str
    sources: List[Source] = field(default_factory=list)
    is_fallback: bool = False


# =========================================================================
# CLIENT
# =========================================================================

class GeminiClient:
    """
    Minimal async client for models/{model}:generateContent.

    Pass http_client to reuse a connection pool (or a MockTransport in tests);
    otherwise a short-lived httpx.AsyncClient is opened per call.
    """

    def __init__(
        self,
        ai_config: Optional[AIConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.ai_config = ai_config or config.get_ai_config()
        self._http_client = http_client

    def _build_payload(
        self,
        prompt: str,
        system_instruction: Optional[str],
        use_web_search: bool,
        json_response: bool
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        }
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        if use_web_search:
            payload["tools"] = [{"google_search": {}}]
        if json_response:
            payload["generationConfig"] = {"responseMimeType": "application/json"}
        return payload

    @staticmethod
    def _parse_response(data: Dict[str, Any]) -> Tuple[str, List[Source]]:
        candidates = data.get("candidates") or []
        if not candidates:
            raise AIServiceError("Response contained no candidates")

        candidate = candidates[0]
        parts = candidate.get("content", {}).get("parts", [])
        text = "".join(part.get("text", "") for part in parts).strip()
        if not text:
            raise AIServiceError("Response contained no text")

        sources = []
        chunks = candidate.get("groundingMetadata", {}).get("groundingChunks", [])
        for chunk in chunks:
            web = chunk.get("web") or {}
            if web.get("uri"):
                sources.append(Source(uri=web["uri"], title=web.get("title") or web["uri"]))
        return text, sources

    async def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        use_web_search: bool = False,
        json_response: bool = False
    ) -> Tuple[str, List[Source]]:
        if not self.ai_config.is_configured():
            raise AIServiceError("GEMINI_API_KEY is not configured")

        url = f"{self.ai_config.base_url}/models/{self.ai_config.model}:generateContent"
        payload = self._build_payload(prompt, system_instruction, use_web_search, json_response)
        params = {"key": self.ai_config.api_key}

        if self._http_client is not None:
            response = await self._http_client.post(
                url, params=params, json=payload, timeout=self.ai_config.timeout_seconds
            )
        else:
            async with httpx.AsyncClient(timeout=self.ai_config.timeout_seconds) as client:
                response = await client.post(url, params=params, json=payload)

        response.raise_for_status()
        return self._parse_response(response.json())


# =========================================================================
# SNAPSHOT
# =========================================================================

def build_state_snapshot(state: AppState) -> Dict[str, Any]:
    """JSON-ready, read-only view of the dashboard for conversational context."""
    period = state.current_period
    summary = rollup(state.managers, period, state.alerts)

    return {
        "time_period": period.value,
        "view": state.current_view.value,
        "organisation": {
            "overall_score": summary.org_wide,
            "per_department": summary.per_department,
        },
        "managers": [
            {
                "id": m.id,
                "name": m.name,
                "department": m.department,
                "role": m.role.value,
                "overall_score": overall_score(m, period),
                "pillars": [
                    {"name": p.name, "weight": p.weight, "score": score_of_pillar(p, period)}
                    for p in m.pillars
                ],
                "open_action_plans": len(m.open_plans),
            }
            for m in state.managers
        ],
        "alerts": [
            {
                "manager": a.manager_name,
                "kind": a.kind.value,
                "severity": a.severity.value,
                "message": a.message,
                "is_read": a.is_read,
            }
            for a in state.alerts
        ],
    }


# =========================================================================
# SERVICE
# =========================================================================

class AIService:
    """Fallible AI oracle with caching; never raises transport errors."""

    _handled_errors = (httpx.HTTPError, AIServiceError, KeyError, IndexError, TypeError, ValueError)

    def __init__(
        self,
        client: Optional[GeminiClient] = None,
        enabled: Optional[bool] = None,
        cache_size: int = 128,
    ):
        self.client = client or GeminiClient()
        self.enabled = config.is_feature_enabled("AI_SUMMARY") if enabled is None else enabled
        self.cache_size = max(1, cache_size)
        self._cache: "OrderedDict[str, Any]" = OrderedDict()
        self._inflight: Dict[str, asyncio.Task] = {}

    def clear_cache(self) -> None:
        self._cache.clear()

    def _remember(self, key: str, value: Any) -> None:
        self._cache[key] = value
        self._cache.move_to_end(key)
        while len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)

    def _settle(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled() and task.exception() is None:
            self._remember(key, task.result())

    async def _cached(self, key: str, call: Callable[[], Awaitable[Any]]) -> Any:
        if key in self._cache:
            self._cache.move_to_end(key)
            return self._cache[key]

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(call())
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._settle(key, done))

        # A cancelled caller must not cancel the call other callers share
        return await asyncio.shield(task)

    # ==================== SUMMARY ====================

    @staticmethod
    def _summary_prompt(manager: Manager, period: TimePeriod, score: int) -> str:
        best, worst = best_and_worst_pillars(manager, period)
        lines = [
            f"Prepare a performance review summary for manager {manager.name} "
            f"({manager.department}).",
            f"- Period: {PERIOD_LABELS[period]}",
            f"- Overall score: {score}%",
        ]
        if best:
            lines.append(f"- Strongest pillar: {best[0].name} ({best[1]}%)")
        if worst:
            lines.append(f"- Weakest pillar: {worst[0].name} ({worst[1]}%)")
        lines.append(f"- Open action plans: {len(manager.open_plans)}")
        lines.append(
            "Write 3-4 bullet points: overall assessment, main strength, "
            "main improvement area, and a prompt to discuss open action plans."
        )
        return "\n".join(lines)

    async def generate_summary(self, manager: Manager, period: TimePeriod) -> SummaryResult:
        period = TimePeriod(period)
        if not self.enabled:
            return SummaryResult(summary=AI_FALLBACK_MESSAGE, is_fallback=True)

        try:
            score = require_overall_score(manager, period)
        except InsufficientDataError:
            return SummaryResult(
                summary=f"No performance data recorded for {manager.name} in this period.",
                is_fallback=True,
            )

        prompt = self._summary_prompt(manager, period, score)

        async def call() -> SummaryResult:
            text, _ = await self.client.generate(
                prompt, system_instruction=SUMMARY_SYSTEM_PROMPT, json_response=True
            )
            return SummaryResult(summary=str(json.loads(text)["summary"]))

        try:
            return await self._cached(f"summary:{manager.id}:{period.value}:{score}", call)
        except self._handled_errors as e:
            logger.error(f"AI summary failed for {manager.id}: {e}", exc_info=True)
            return SummaryResult(summary=AI_FALLBACK_MESSAGE, is_fallback=True)

    # ==================== CONVERSATION ====================

    async def ask_conversational(
        self,
        question: str,
        snapshot: Dict[str, Any],
        use_web_search: bool = False
    ) -> ConversationalAnswer:
        if not question or not question.strip():
            raise ValidationError("Question is required")
        if not self.enabled:
            return ConversationalAnswer(text=AI_FALLBACK_MESSAGE, is_fallback=True)

        context = json.dumps(snapshot, ensure_ascii=False, indent=2, default=str)
        prompt = (
            f"Current dashboard context (JSON):\n{context}\n\n"
            f"User question: \"{question.strip()}\""
        )

        try:
            text, sources = await self.client.generate(
                prompt,
                system_instruction=CONVERSATION_SYSTEM_PROMPT,
                use_web_search=use_web_search,
            )
        except self._handled_errors as e:
            logger.error(f"AI conversation failed: {e}", exc_info=True)
            return ConversationalAnswer(text=AI_FALLBACK_MESSAGE, is_fallback=True)

        return ConversationalAnswer(text=text, sources=sources)
