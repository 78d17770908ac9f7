import logging
from typing import Any, Dict, Optional

import requests

from app.core.cancellation import CancelToken
from app.core.config import LLMProfile
from app.core.errors import (
    EmptyCompletion,
    EmptyInput,
    TransportFailure,
    UpstreamPayloadInvalid,
    UpstreamReportedError,
    UpstreamStatus,
)


logger = logging.getLogger(__name__)


def _parse_json_object(response: requests.Response) -> Dict[str, Any]:
    try:
        payload = response.json()
    except ValueError as exc:
        raise UpstreamPayloadInvalid(f"failed to unmarshal response: {exc}") from exc
    if not isinstance(payload, dict):
        raise UpstreamPayloadInvalid("failed to unmarshal response: expected a JSON object")
    return payload


def _post(url: str, payload: Dict[str, Any], timeout: float, headers: Optional[Dict[str, str]] = None):
    try:
        response = requests.post(url, json=payload, headers=headers, timeout=timeout)
    except requests.RequestException as exc:
        logger.error("LLM request to %s failed: %s", url, exc)
        raise TransportFailure(f"failed to send request to LLM: {exc}") from exc

    if response.status_code != 200:
        logger.error("LLM request to %s returned %s: %s", url, response.status_code, response.text)
        raise UpstreamStatus(response.status_code, response.text)
    return response


class LLMClient:
    """One-shot client for an Ollama-style ``/api/generate`` endpoint.

    Stateless apart from the endpoint, model and default sampling parameters;
    every ``generate`` call makes exactly one request, without retries.
    """

    def __init__(
        self,
        base_url: str,
        model: str,
        timeout: float = 60,
        temperature: float = 0.7,
        max_tokens: int = 2048,
        stream: bool = False,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.stream = stream

    @classmethod
    def from_profile(cls, profile: LLMProfile) -> "LLMClient":
        return cls(
            base_url=profile.base_url,
            model=profile.model,
            timeout=profile.timeout,
            temperature=profile.temperature,
            max_tokens=profile.max_tokens,
            stream=profile.stream,
        )

    def generate(
        self,
        user_prompt: str,
        system_prompt: str = "",
        *,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        stream: Optional[bool] = None,
        cancel: Optional[CancelToken] = None,
    ) -> str:
        """Send one completion request and return the raw ``response`` text."""
        if not user_prompt or not user_prompt.strip():
            raise EmptyInput()

        timeout = self.timeout
        if cancel is not None:
            cancel.raise_if_cancelled()
            timeout = cancel.remaining(self.timeout)

        payload: Dict[str, Any] = {
            "model": model or self.model,
            "prompt": user_prompt,
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": self.max_tokens if max_tokens is None else max_tokens,
            "stream": self.stream if stream is None else stream,
        }
        if system_prompt:
            payload["system"] = system_prompt

        response = _post(self.base_url + "/api/generate", payload, timeout)
        result = _parse_json_object(response)

        error = result.get("error")
        if error:
            logger.error("LLM reported an error: %s", error)
            raise UpstreamReportedError(str(error))

        text = result.get("response")
        if not isinstance(text, str):
            raise UpstreamPayloadInvalid("failed to unmarshal response: 'response' is not a string")
        if not text:
            raise EmptyCompletion()
        return text


class ChatCompletionsClient:
    """Chat-completions variant (Hugging Face router) with the same ``generate`` contract."""

    def __init__(self, url: str, api_key: str, model: str, timeout: float = 60):
        self.url = url
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    def generate(
        self,
        user_prompt: str,
        system_prompt: str = "",
        *,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        stream: Optional[bool] = None,
        cancel: Optional[CancelToken] = None,
    ) -> str:
        if not user_prompt or not user_prompt.strip():
            raise EmptyInput()

        timeout = self.timeout
        if cancel is not None:
            cancel.raise_if_cancelled()
            timeout = cancel.remaining(self.timeout)

        # the endpoint takes a single user turn, so the system prompt rides along
        content = user_prompt
        if system_prompt:
            content = system_prompt + "\n\nЗапрос пользователя: " + user_prompt

        payload = {
            "model": model or self.model,
            "messages": [{"role": "user", "content": content}],
            "stream": False,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        response = _post(self.url, payload, timeout, headers=headers)
        result = _parse_json_object(response)

        choices = result.get("choices") or []
        if not choices:
            raise EmptyCompletion("received empty choices from chat completions API")
        try:
            text = choices[0]["message"]["content"]
        except (KeyError, TypeError, IndexError) as exc:
            raise UpstreamPayloadInvalid(f"failed to unmarshal response: {exc}") from exc
        if not text:
            raise EmptyCompletion()
        return text
