"""AI insight gateway over an OpenAI-compatible chat-completion endpoint.

The gateway never dead-ends the caller: without a credential, or when the
single completion attempt fails for any reason, the result carries the
prompt so the user can paste it into any assistant.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Literal, Optional, Sequence, Union

import requests
from pydantic import BaseModel, Field

from .config import AIConfig
from .errors import CompletionError, JobValidationError
from .models import AnalysisType, JobApplication, JobSnapshot
from .prompts import POSTING_SYSTEM_PROMPT, SYSTEM_PROMPT, build_posting_prompt, build_prompt

logger = logging.getLogger(__name__)

COPY_SUGGESTIONS = [
    "Copy the prompt to ChatGPT (chat.openai.com)",
    "Try Claude (claude.ai)",
    "Use Google Gemini (gemini.google.com)",
    "Or any other AI assistant",
]


class InsightState(str, Enum):
    no_key = "NO_KEY"
    success = "KEY_PRESENT_SUCCESS"
    failure = "KEY_PRESENT_FAILURE"


class Completion(BaseModel):
    text: str
    tokens_used: int = 0


class InsightResult(BaseModel):
    """Outcome of one insight request: generated text or a copyable prompt."""

    mode: Literal["ai", "prompt"]
    state: InsightState
    prompt: str
    text: Optional[str] = None
    tokens_used: int = 0
    message: Optional[str] = None
    error: Optional[str] = None
    suggestions: list[str] = Field(default_factory=list)

    def to_response(self) -> dict[str, Any]:
        """The JSON envelope returned by the insight routes."""
        body: dict[str, Any] = {"success": True, "mode": self.mode, "copyablePrompt": self.prompt}
        if self.mode == "ai":
            body["analysis"] = self.text
            body["tokensUsed"] = self.tokens_used
        if self.message:
            body["message"] = self.message
        if self.error:
            body["error"] = self.error
        if self.suggestions:
            body["suggestions"] = list(self.suggestions)
        return body


def _provider_error_code(resp: requests.Response) -> Optional[str]:
    try:
        data = resp.json()
    except ValueError:
        return None
    err = data.get("error") if isinstance(data, dict) else None
    if isinstance(err, dict):
        return err.get("code") or err.get("type")
    return None


def chat_completion(
    prompt: str,
    config: AIConfig,
    api_key: str,
    *,
    system_prompt: str = SYSTEM_PROMPT,
    max_tokens: Optional[int] = None,
) -> Completion:
    """Single chat-completion call. Raises on transport, HTTP or body errors."""
    logger.info("Completion request starting (model=%s, max_tokens=%d)", config.model, max_tokens or config.max_tokens)
    resp = requests.post(
        config.url,
        headers={"Authorization": f"Bearer {api_key}"},
        json={
            "model": config.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": max_tokens or config.max_tokens,
            "temperature": config.temperature,
        },
        timeout=config.timeout,
    )
    if resp.status_code >= 400:
        body = resp.text[:300].replace("\n", " ")
        raise CompletionError(
            f"{resp.status_code} from {config.url}; body={body}",
            code=_provider_error_code(resp) or str(resp.status_code),
        )

    try:
        data = resp.json()
        content = data["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        raise CompletionError(f"Malformed completion response: {exc!r}", code="malformed_response") from exc
    if not isinstance(content, str) or not content.strip():
        raise CompletionError("Completion contained no text", code="empty_response")

    usage = data.get("usage") or {}
    tokens = usage.get("total_tokens") if isinstance(usage, dict) else None
    logger.info("Completion finished (%d chars, %s tokens)", len(content), tokens or "?")
    return Completion(text=content.strip(), tokens_used=int(tokens or 0))


def _failure_reason(exc: Exception) -> str:
    code = getattr(exc, "code", None) or type(exc).__name__
    return f"AI provider unavailable ({code}). Use the prompt below with any AI service."


def _run(
    prompt: str,
    config: AIConfig,
    api_key: Optional[str],
    *,
    system_prompt: str,
    max_tokens: int,
) -> InsightResult:
    key = config.api_key() if api_key is None else api_key.strip()
    if not key:
        logger.info("No %s set, returning prompt for manual use", config.api_key_env)
        return InsightResult(
            mode="prompt",
            state=InsightState.no_key,
            prompt=prompt,
            message=f"No API key configured ({config.api_key_env}). Use the prompt below with any AI service.",
        )

    try:
        completion = chat_completion(
            prompt, config, key, system_prompt=system_prompt, max_tokens=max_tokens
        )
    except Exception as exc:
        logger.warning("Completion failed, falling back to copyable prompt: %s", exc)
        return InsightResult(
            mode="prompt",
            state=InsightState.failure,
            prompt=prompt,
            error=_failure_reason(exc),
            suggestions=list(COPY_SUGGESTIONS),
        )

    return InsightResult(
        mode="ai",
        state=InsightState.success,
        prompt=prompt,
        text=completion.text,
        tokens_used=completion.tokens_used,
    )


def generate_insights(
    jobs: Sequence[Union[JobSnapshot, JobApplication]],
    analysis_type: Union[AnalysisType, str, None],
    config: AIConfig,
    api_key: Optional[str] = None,
) -> InsightResult:
    """Career advice over a set of applications.

    ``api_key`` defaults to the variable named by ``config.api_key_env``.
    """
    if not jobs:
        raise JobValidationError("No jobs data provided")
    kind = AnalysisType.resolve(analysis_type)
    logger.info("Generating %s insights for %d job(s)", kind.value, len(jobs))
    prompt = build_prompt(jobs, kind)
    return _run(prompt, config, api_key, system_prompt=SYSTEM_PROMPT, max_tokens=config.max_tokens)


def analyze_posting(
    job_title: str,
    company: str,
    job_description: str,
    analysis_type: Union[AnalysisType, str, None],
    config: AIConfig,
    api_key: Optional[str] = None,
) -> InsightResult:
    """Advice for a single posting, with the same fallback behavior."""
    if not (job_title or "").strip() or not (company or "").strip():
        raise JobValidationError("Missing required fields: jobTitle, company")
    prompt = build_posting_prompt(job_title.strip(), company.strip(), (job_description or "").strip(), analysis_type)
    return _run(
        prompt, config, api_key,
        system_prompt=POSTING_SYSTEM_PROMPT,
        max_tokens=config.posting_max_tokens,
    )
