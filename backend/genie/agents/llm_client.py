from typing import Any, Dict, List, Optional
import asyncio
import json
import logging
import random
import re

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from langchain_anthropic import ChatAnthropic
from langchain_ollama import ChatOllama

from genie.core.config import settings
from genie.core.exceptions import LLMResponseError, LLMServiceError
from genie.core.structured_logging import log_llm_retry

logger = logging.getLogger(__name__)

TRANSIENT_STATUS_CODES = {429, 500, 503}
TRANSIENT_MARKERS = ("429", "quota", "rate limit", "overloaded", "fetch failed", "connection", "timed out")

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


def _status_code(error: BaseException) -> Optional[int]:
    for attr in ("status_code", "status", "code"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(error, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


def is_transient_error(error: BaseException) -> bool:
    """Rate limits, server hiccups and dropped connections are worth retrying"""
    if isinstance(error, (ConnectionError, TimeoutError, asyncio.TimeoutError)):
        return True
    if _status_code(error) in TRANSIENT_STATUS_CODES:
        return True
    message = str(error).lower()
    return any(marker in message for marker in TRANSIENT_MARKERS)


def parse_json_object(text: str) -> Dict[str, Any]:
    """Parse a model reply as one JSON object, tolerating a fenced code block"""
    candidate = (text or "").strip()
    match = _FENCE_RE.search(candidate)
    if match:
        candidate = match.group(1).strip()
    elif not candidate.startswith("{"):
        start, end = candidate.find("{"), candidate.rfind("}")
        if start != -1 and end > start:
            candidate = candidate[start:end + 1]
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise LLMResponseError(f"Model reply is not valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise LLMResponseError("Model reply is not a JSON object")
    return parsed


class LLMClient:
    """Unified LLM client that supports OpenAI, Anthropic, and Ollama"""

    def __init__(self, client: Any = None, max_retries: Optional[int] = None,
                 base_delay: Optional[float] = None):
        self.provider = settings.LLM_PROVIDER.lower()
        self.model = settings.MODEL_NAME
        self.max_retries = max(1, max_retries if max_retries is not None else settings.LLM_MAX_RETRIES)
        self.base_delay = base_delay if base_delay is not None else settings.LLM_RETRY_BASE_DELAY
        self.client = client if client is not None else self._build_client()

    def _build_client(self):
        if self.provider == "openai":
            if not settings.OPENAI_API_KEY:
                raise ValueError("OPENAI_API_KEY not set in environment")
            kwargs = {
                "model": self.model or "gpt-4o-mini",
                "temperature": 0.2,
                "api_key": settings.OPENAI_API_KEY,
                "max_tokens": 8192,  # Prevent truncation
            }
            if settings.OPENAI_BASE_URL:
                kwargs["base_url"] = settings.OPENAI_BASE_URL
            return ChatOpenAI(**kwargs)
        elif self.provider == "anthropic":
            if not settings.ANTHROPIC_API_KEY:
                raise ValueError("ANTHROPIC_API_KEY not set in environment")
            return ChatAnthropic(
                model=self.model or "claude-3-5-sonnet-latest",
                temperature=0.3,
                max_tokens=4096,
                anthropic_api_key=settings.ANTHROPIC_API_KEY
            )
        elif self.provider == "ollama":
            # Ollama with optional authentication (e.g. Ollama Cloud / proxy)
            kwargs = {
                "base_url": settings.OLLAMA_BASE_URL,
                "model": self.model or "llama3.1",
                "temperature": 0.3,
                "num_predict": 4096,  # Ollama uses num_predict instead of max_tokens
            }
            if settings.OLLAMA_API_KEY:
                kwargs["client_kwargs"] = {"headers": {"Authorization": f"Bearer {settings.OLLAMA_API_KEY}"}}
            return ChatOllama(**kwargs)
        else:
            raise ValueError(f"Unsupported LLM provider: {self.provider}")

    @staticmethod
    def build_messages(prompt: str, system_prompt: Optional[str] = None,
                       history: Optional[List[BaseMessage]] = None) -> List[BaseMessage]:
        messages: List[BaseMessage] = []
        if system_prompt:
            messages.append(SystemMessage(content=system_prompt))
        messages.extend(history or [])
        messages.append(HumanMessage(content=prompt))
        return messages

    def retry_delay(self, attempt: int) -> float:
        """base * 2^attempt plus up to one base of jitter"""
        return self.base_delay * (2 ** attempt) + random.uniform(0, self.base_delay)

    async def invoke_with_retry(self, messages: List[BaseMessage]) -> str:
        """
        Send messages, retrying transient failures with exponential backoff.

        Raises:
            LLMServiceError: Every attempt failed with a transient error
            Exception: Non-transient errors propagate unchanged
        """
        last_error: Optional[BaseException] = None
        for attempt in range(self.max_retries):
            try:
                response = await self.client.ainvoke(messages)
                content = getattr(response, "content", response)
                if isinstance(content, list):
                    # Anthropic returns content blocks
                    content = "".join(
                        block.get("text", "") if isinstance(block, dict) else str(block) for block in content
                    )
                return content
            except Exception as e:
                if not is_transient_error(e):
                    logger.error(f"LLM call failed: {e}")
                    raise
                last_error = e
                if attempt < self.max_retries - 1:
                    delay = self.retry_delay(attempt + 1)
                    log_llm_retry(attempt + 1, self.max_retries, delay, str(e), provider=self.provider)
                    logger.warning(f"Transient LLM error (attempt {attempt + 1}/{self.max_retries}): {e}. "
                                   f"Retrying in {delay:.1f}s")
                    await asyncio.sleep(delay)

        raise LLMServiceError(f"LLM service unavailable: max retries ({self.max_retries}) exceeded: {last_error}")

    async def invoke(self, prompt: str, system_prompt: Optional[str] = None,
                     history: Optional[List[BaseMessage]] = None) -> str:
        """Invoke the LLM with a prompt"""
        return await self.invoke_with_retry(self.build_messages(prompt, system_prompt, history))

    async def invoke_json(self, prompt: str, system_prompt: Optional[str] = None) -> Dict[str, Any]:
        """Invoke the LLM and parse its reply as a JSON object"""
        text = await self.invoke(prompt, system_prompt)
        return parse_json_object(text)


# Global LLM client instance
_llm_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Get or create LLM client singleton"""
    global _llm_client
    if _llm_client is None:
        try:
            _llm_client = LLMClient()
        except ValueError as e:
            raise LLMServiceError(str(e)) from e
    return _llm_client
