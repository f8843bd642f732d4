"""AI analyzer: ask a chat-completion model for policy violations and a compliant rewrite of one product."""

import asyncio
import json
import logging
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Protocol

import httpx

from app.schemas.compliance import AI_FAILURE_MESSAGE, AiAnalysis, AiRewrite, ComplianceViolation
from app.services.normalize import normalize_violation
from app.services.policy_rules import get_market_law_reference

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a compliance analyst for Shopify merchants. Compare product data to Google Ads "
    "policies and the specified market's ecommerce laws. Return structured JSON only."
)

MAX_DESCRIPTION_CHARS = 3500
MAX_HINTS = 6

_RESPONSE_SHAPE = (
    '{"violations":[{"issue":"...","policy":"...","law":"...","severity":"High|Medium|Low",'
    '"riskScore":0-1,"suggestion":"...","whyMatters":"...","ruleRef":"...","sourceUrl":"...",'
    '"policyUrl":"..."}],"rewrite":{"title":"...","description":"..."}}'
)


class CompletionError(Exception):
    """Raised when a chat completion cannot be obtained (unreachable, timeout, bad status, or malformed envelope)."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class CompletionClient(Protocol):
    async def complete(self, messages: list[dict[str, str]]) -> str:
        """Return the assistant message content for messages (may be empty)."""
        ...


class OpenAICompletionClient:
    """Chat completions over httpx against an OpenAI-compatible endpoint, JSON-object response format."""

    def __init__(self, settings: "Settings") -> None:
        if settings.OPENAI_API_KEY is None:
            raise ValueError("OPENAI_API_KEY is not configured")
        self._url = f"{settings.OPENAI_BASE_URL}/chat/completions"
        self._api_key = settings.OPENAI_API_KEY
        self._model = settings.OPENAI_MODEL
        self._temperature = settings.OPENAI_TEMPERATURE
        self._timeout = httpx.Timeout(settings.OPENAI_REQUEST_TIMEOUT_SEC)

    async def complete(self, messages: list[dict[str, str]]) -> str:
        payload = {
            "model": self._model,
            "temperature": self._temperature,
            "response_format": {"type": "json_object"},
            "messages": messages,
        }
        headers = {"Authorization": f"Bearer {self._api_key.get_secret_value()}"}
        start = time.perf_counter()

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self._url, json=payload, headers=headers)
            elapsed = time.perf_counter() - start
        except httpx.TimeoutException as e:
            self._log_failure(time.perf_counter() - start)
            raise CompletionError("OpenAI request timed out.", cause=e) from e
        except httpx.HTTPError as e:
            self._log_failure(time.perf_counter() - start)
            raise CompletionError("OpenAI request failed.", cause=e) from e

        if response.status_code != 200:
            self._log_failure(elapsed, status_code=response.status_code)
            raise CompletionError(f"OpenAI returned status {response.status_code}.")

        try:
            body = response.json()
        except json.JSONDecodeError as e:
            raise CompletionError("OpenAI response body is not valid JSON.", cause=e) from e

        log_extra: dict[str, float | int | str | None] = {
            "llm_latency_seconds": elapsed,
            "model": self._model,
        }
        usage = body.get("usage") if isinstance(body, dict) else None
        if isinstance(usage, dict) and usage.get("total_tokens") is not None:
            log_extra["total_tokens"] = usage["total_tokens"]
        logger.info("LLM completion request completed", extra=log_extra)

        try:
            content = body["choices"][0]["message"].get("content")
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise CompletionError("OpenAI response missing choices[0].message.", cause=e) from e
        return content if isinstance(content, str) else ""

    def _log_failure(self, elapsed: float, status_code: int | None = None) -> None:
        logger.info(
            "LLM completion request failed",
            extra={
                "llm_latency_seconds": elapsed,
                "model": self._model,
                "status": "error",
                "status_code": status_code,
            },
        )


def build_completion_client(settings: "Settings") -> CompletionClient | None:
    """OpenAI client when an API key is configured, else None (scans run heuristics-only)."""
    if settings.OPENAI_API_KEY is None:
        return None
    return OpenAICompletionClient(settings)


def build_messages(
    market: str,
    product_title: str,
    description: str,
    url: str | None,
    hints: list[str],
) -> list[dict[str, str]]:
    """System message plus the user prompt for one product."""
    law_reference = get_market_law_reference(market)
    hint_text = "\n".join(hints[:MAX_HINTS]) if hints else "None"
    user_prompt = "\n".join(
        [
            f"Market: {(market or '').upper()}",
            f"Local law focus: {law_reference.law}",
            f"Product title: {product_title}",
            f"Product description: {(description or '')[:MAX_DESCRIPTION_CHARS]}",
            f"Product URL: {url or 'N/A'}",
            f"Known heuristic flags: {hint_text}",
            "",
            "Return JSON with this shape:",
            _RESPONSE_SHAPE,
        ]
    )
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]


def _parse_analysis(content: str, market: str) -> AiAnalysis:
    """Model content -> AiAnalysis. Anything that is not a JSON object yields no violations."""
    if not content or not content.strip():
        return AiAnalysis()
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError:
        logger.warning("Model output is not valid JSON; ignoring", extra={"market": market})
        return AiAnalysis()
    if not isinstance(parsed, dict):
        logger.warning("Model output is not a JSON object; ignoring", extra={"market": market})
        return AiAnalysis()

    raw_violations = parsed.get("violations")
    violations: list[ComplianceViolation] = []
    if isinstance(raw_violations, list):
        for raw in raw_violations:
            if not isinstance(raw, dict):
                continue
            issue = raw.get("issue")
            if not isinstance(issue, str) or not issue.strip():
                continue
            violations.append(normalize_violation(raw, market))

    raw_rewrite = parsed.get("rewrite")
    rewrite = None
    if isinstance(raw_rewrite, dict):
        rewrite = AiRewrite(
            title=raw_rewrite.get("title") if isinstance(raw_rewrite.get("title"), str) else None,
            description=(
                raw_rewrite.get("description") if isinstance(raw_rewrite.get("description"), str) else None
            ),
        )
    return AiAnalysis(violations=violations, rewrite=rewrite)


async def analyze_product(
    client: CompletionClient | None,
    market: str,
    product_title: str,
    description: str,
    url: str | None,
    hints: list[str],
    *,
    max_attempts: int = 3,
    backoff_base_seconds: float = 0.5,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> AiAnalysis:
    """
    Run the AI stage for one product with retry and exponential backoff.

    No client means AI is not configured: no violations and no error. Failed
    attempts wait backoff_base_seconds * 2**attempt before retrying; once all
    attempts fail the result carries AI_FAILURE_MESSAGE instead of raising.
    """
    if client is None:
        return AiAnalysis()

    messages = build_messages(market, product_title, description, url, hints)
    attempts = max(1, max_attempts)
    for attempt in range(attempts):
        try:
            content = await client.complete(messages)
        except Exception as e:
            reason = e.message if isinstance(e, CompletionError) else str(e)
            logger.warning(
                "AI analysis attempt failed",
                extra={
                    "attempt": attempt + 1,
                    "max_attempts": attempts,
                    "market": market,
                    "reason": reason[:200],
                },
            )
            if attempt < attempts - 1:
                await sleep(backoff_base_seconds * (2 ** attempt))
            continue
        return _parse_analysis(content, market)

    logger.error(
        "AI analysis failed after retries",
        extra={"max_attempts": attempts, "market": market, "product_title": product_title[:200]},
    )
    return AiAnalysis(error_message=AI_FAILURE_MESSAGE)


async def check_connection(client: CompletionClient | None) -> bool:
    """One tiny completion; False when unconfigured or on any failure."""
    if client is None:
        return False
    try:
        await client.complete(
            [
                {"role": "system", "content": "Reply with a JSON object."},
                {"role": "user", "content": '{"ping": true}'},
            ]
        )
    except Exception as e:
        logger.info("AI connection check failed", extra={"reason": str(e)[:200]})
        return False
    return True
