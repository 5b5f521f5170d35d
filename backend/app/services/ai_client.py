import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any

import httpx

from ..config import AI_API_KEY, AI_BASE_URL, AI_LOG_PAYLOADS, AI_MAX_RETRIES, AI_TIMEOUT_S


logger = logging.getLogger(__name__)

# Transient gateway failures worth another attempt. 429/402 are surfaced to the caller.
_RETRY_STATUSES = {502, 503, 504}


class AIClientError(RuntimeError):
    pass


class AIClientTimeout(AIClientError):
    pass


class AIClientHTTPError(AIClientError):
    def __init__(self, *, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


class AIClientResponseError(AIClientError):
    """The gateway answered 2xx but without a usable function call."""


@dataclass(frozen=True)
class CompletionMeta:
    model: str
    latency_ms: int
    status_code: int | None
    retries: int


def _safe_truncate(s: str, n: int = 800) -> str:
    s = s or ""
    if len(s) <= n:
        return s
    return s[:n] + "…"


def build_function_tool(*, name: str, description: str, parameters: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": parameters,
        },
    }


def extract_function_arguments(data: dict[str, Any], *, function_name: str) -> dict[str, Any]:
    """
    Pull the forced function call out of a chat-completions response.

    Shape: { choices: [ { message: { tool_calls: [ { function: { name, arguments } } ] } } ] }
    Free-text `content` is never accepted in place of the call.
    """
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        raise AIClientResponseError("No function call in AI response")
    message = choices[0].get("message")
    tool_calls = message.get("tool_calls") if isinstance(message, dict) else None
    if not isinstance(tool_calls, list) or not tool_calls:
        raise AIClientResponseError("No function call in AI response")

    call = tool_calls[0]
    function = call.get("function") if isinstance(call, dict) else None
    if not isinstance(function, dict):
        raise AIClientResponseError("Malformed function call in AI response")
    name = function.get("name")
    if name and name != function_name:
        raise AIClientResponseError(f"Unexpected function call: {name}")

    raw_args = function.get("arguments")
    if isinstance(raw_args, dict):
        return raw_args
    try:
        args = json.loads(raw_args or "")
    except (TypeError, json.JSONDecodeError) as e:
        raise AIClientResponseError("Function call arguments are not valid JSON") from e
    if not isinstance(args, dict):
        raise AIClientResponseError("Function call arguments are not a JSON object")
    return args


class CompletionClient:
    """
    Chat-completions client for an OpenAI-compatible gateway, restricted to
    forced function calls.

    One instance is created per process and handed to request handlers through
    `get_completion_client`; tests swap it for a fake or pass an
    `httpx.MockTransport`.
    """

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str,
        timeout_s: float = 20.0,
        max_retries: int = 1,
        log_payloads: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.base_url = (base_url or "").rstrip("/")
        self.timeout_s = timeout_s
        self.max_retries = max(int(max_retries), 0)
        self.log_payloads = log_payloads
        self._http = httpx.AsyncClient(timeout=timeout_s, transport=transport)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def call_function(
        self,
        *,
        model: str,
        system_text: str,
        user_text: str,
        function_name: str,
        description: str,
        parameters: dict[str, Any],
    ) -> tuple[dict[str, Any], CompletionMeta]:
        """
        POST {base_url}/chat/completions with a single tool and a forced tool_choice.

        Returns the decoded function-call arguments.
        """
        if not self.api_key:
            raise AIClientError("AI_API_KEY not configured")
        if not model:
            raise AIClientError("Missing AI model")

        url = f"{self.base_url}/chat/completions"
        body = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_text},
                {"role": "user", "content": user_text},
            ],
            "tools": [build_function_tool(name=function_name, description=description, parameters=parameters)],
            "tool_choice": {"type": "function", "function": {"name": function_name}},
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        start = time.perf_counter()
        for attempt in range(self.max_retries + 1):
            try:
                if self.log_payloads:
                    logger.info(
                        "AI request model=%s fn=%s body=%s",
                        model,
                        function_name,
                        _safe_truncate(json.dumps(body, ensure_ascii=False)),
                    )
                r = await self._http.post(url, json=body, headers=headers)
            except httpx.TimeoutException:
                if attempt < self.max_retries:
                    backoff = 0.5 * (2**attempt)
                    logger.warning("AI timeout; retrying in %.1fs", backoff)
                    await asyncio.sleep(backoff)
                    continue
                raise AIClientTimeout("AI request timed out") from None
            except httpx.RequestError as e:
                if attempt < self.max_retries:
                    backoff = 0.5 * (2**attempt)
                    logger.warning("AI network error (%s); retrying in %.1fs", type(e).__name__, backoff)
                    await asyncio.sleep(backoff)
                    continue
                raise AIClientError(f"AI request failed: {type(e).__name__}") from e

            if r.status_code >= 400:
                if r.status_code in _RETRY_STATUSES and attempt < self.max_retries:
                    backoff = 0.5 * (2**attempt)
                    logger.warning("AI HTTP %s; retrying in %.1fs", r.status_code, backoff)
                    await asyncio.sleep(backoff)
                    continue
                logger.error("AI error: %s %s", r.status_code, _safe_truncate(r.text, 500))
                raise AIClientHTTPError(status_code=r.status_code, message=_safe_truncate(r.text, 1000))

            try:
                data = r.json()
            except ValueError as e:
                raise AIClientResponseError("AI response is not JSON") from e
            if not isinstance(data, dict):
                raise AIClientResponseError("AI response is not a JSON object")

            args = extract_function_arguments(data, function_name=function_name)
            meta = CompletionMeta(
                model=model,
                latency_ms=int((time.perf_counter() - start) * 1000),
                status_code=r.status_code,
                retries=attempt,
            )
            logger.info(
                "AI ok model=%s fn=%s status=%s latency_ms=%s retries=%s",
                meta.model,
                function_name,
                meta.status_code,
                meta.latency_ms,
                meta.retries,
            )
            return args, meta

        # Unreachable: the last attempt either returns or raises.
        raise AIClientError("AI request retries exhausted")


_CLIENT: CompletionClient | None = None


def get_completion_client() -> CompletionClient:
    """FastAPI dependency returning the process-wide client."""
    global _CLIENT
    if _CLIENT is None:
        _CLIENT = CompletionClient(
            api_key=AI_API_KEY,
            base_url=AI_BASE_URL,
            timeout_s=AI_TIMEOUT_S,
            max_retries=AI_MAX_RETRIES,
            log_payloads=AI_LOG_PAYLOADS,
        )
    return _CLIENT


async def close_completion_client() -> None:
    global _CLIENT
    if _CLIENT is not None:
        await _CLIENT.aclose()
        _CLIENT = None
