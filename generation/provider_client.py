"""
Provider clients for the generation pipeline.

Every provider takes a rendered prompt and returns raw model text, or raises
TransportError. The orchestrator treats them as interchangeable.

  openai       → AsyncOpenAI chat completions  (GPT_MODEL, default gpt-4o-mini)
  huggingface  → Inference API over httpx      (HF_MODEL, default google/flan-t5-xl)
  remote       → generic remote-function transport, invoke(name, body)
"""

import json
import logging
from typing import Any, Dict, List, Optional

import httpx
from openai import AsyncOpenAI, OpenAIError

from generation.errors import TransportError
from generation.prompt_composer import SYSTEM_PROMPT
from generation.settings import GenerationSettings

log = logging.getLogger("generation.pipeline")

HF_INFERENCE_URL = "https://api-inference.huggingface.co/models/{model}"


class ProviderClient:
    """Base class: one generative text backend."""

    name = "provider"

    async def complete(self, prompt: str) -> str:
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


# ─── OpenAI ────────────────────────────────────────────────────────────────────

class OpenAIProvider(ProviderClient):
    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        max_tokens: int = 900,
        client: Optional[AsyncOpenAI] = None,
    ):
        if client is None and not api_key:
            raise RuntimeError("OPENAI_API_KEY is not set. Add it to your .env file.")
        self._client = client or AsyncOpenAI(api_key=api_key)
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def complete(self, prompt: str) -> str:
        """
        Call OpenAI Chat Completions and return the assistant message text.

        Raises:
            TransportError: API error, rate limit, timeout, or empty reply
        """
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except OpenAIError as e:
            raise TransportError(self.name, str(e), getattr(e, "status_code", None)) from e
        content = response.choices[0].message.content or ""
        if not content.strip():
            raise TransportError(self.name, "empty completion")
        return content

    async def aclose(self) -> None:
        await self._client.close()


# ─── Hugging Face Inference API ────────────────────────────────────────────────

class HuggingFaceProvider(ProviderClient):
    name = "huggingface"

    def __init__(
        self,
        api_key: str,
        model: str = "google/flan-t5-xl",
        http: Optional[httpx.AsyncClient] = None,
    ):
        self.url = HF_INFERENCE_URL.format(model=model)
        self._http = http or httpx.AsyncClient()
        self._headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}

    async def complete(self, prompt: str) -> str:
        try:
            resp = await self._http.post(self.url, headers=self._headers, json={"inputs": prompt})
        except httpx.HTTPError as e:
            raise TransportError(self.name, f"request failed: {e}") from e
        if resp.status_code >= 300:
            raise TransportError(self.name, f"HTTP {resp.status_code}: {resp.text[:200]}", resp.status_code)

        try:
            result = resp.json()
        except ValueError as e:
            raise TransportError(self.name, "response body is not JSON") from e

        if isinstance(result, list):
            result = result[0] if result else {}
        text = (result or {}).get("generated_text", "") if isinstance(result, dict) else ""
        if not text:
            raise TransportError(self.name, "no generated_text in response")
        return text

    async def aclose(self) -> None:
        await self._http.aclose()


# ─── Remote-function transport ─────────────────────────────────────────────────

async def invoke_function(
    http: httpx.AsyncClient,
    base_url: str,
    name: str,
    body: Dict[str, Any],
    api_key: Optional[str] = None,
) -> Dict[str, Any]:
    """
    POST {base_url}/{name} with a JSON body.

    Returns {"data": <json>} on success or {"error": <message>} on any
    failure; never raises.
    """
    headers = {"Content-Type": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    try:
        resp = await http.post(f"{base_url.rstrip('/')}/{name}", headers=headers, json=body)
    except httpx.HTTPError as e:
        return {"error": f"request failed: {e}"}
    if resp.status_code >= 300:
        return {"error": f"HTTP {resp.status_code}: {resp.text[:200]}", "status_code": resp.status_code}
    try:
        return {"data": resp.json()}
    except ValueError:
        return {"data": resp.text}


class RemoteFunctionProvider(ProviderClient):
    name = "remote"

    def __init__(
        self,
        base_url: str,
        function_name: str = "ai-generate-text",
        api_key: Optional[str] = None,
        http: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url
        self.function_name = function_name
        self._api_key = api_key
        self._http = http or httpx.AsyncClient()

    async def complete(self, prompt: str) -> str:
        result = await invoke_function(
            self._http, self.base_url, self.function_name, {"prompt": prompt}, self._api_key
        )
        if result.get("error"):
            raise TransportError(self.name, str(result["error"]), result.get("status_code"))

        data = result.get("data")
        if isinstance(data, str):
            return data
        if isinstance(data, dict):
            for key in ("generated_text", "text", "content"):
                if isinstance(data.get(key), str) and data[key].strip():
                    return data[key]
            # Function answered with the question object itself
            return json.dumps(data.get("question", data))
        raise TransportError(self.name, "empty function response")

    async def aclose(self) -> None:
        await self._http.aclose()


# ─── Factory ───────────────────────────────────────────────────────────────────

def build_providers(settings: GenerationSettings) -> List[ProviderClient]:
    """Instantiate configured providers in order, skipping unconfigured ones."""
    timeout = httpx.Timeout(settings.provider_timeout_seconds)
    providers: List[ProviderClient] = []

    for name in settings.providers:
        if name == "openai":
            if not settings.openai_api_key:
                log.warning("[PROVIDERS] openai skipped: OPENAI_API_KEY not set")
                continue
            providers.append(OpenAIProvider(
                api_key=settings.openai_api_key,
                model=settings.gpt_model,
                temperature=settings.temperature,
                max_tokens=settings.max_tokens,
            ))
        elif name == "huggingface":
            if not settings.hf_api_key:
                log.warning("[PROVIDERS] huggingface skipped: HUGGING_FACE_API_KEY not set")
                continue
            providers.append(HuggingFaceProvider(
                api_key=settings.hf_api_key,
                model=settings.hf_model,
                http=httpx.AsyncClient(timeout=timeout),
            ))
        elif name == "remote":
            if not settings.functions_base_url:
                log.warning("[PROVIDERS] remote skipped: FUNCTIONS_BASE_URL not set")
                continue
            providers.append(RemoteFunctionProvider(
                base_url=settings.functions_base_url,
                function_name=settings.functions_generate_name,
                api_key=settings.functions_api_key,
                http=httpx.AsyncClient(timeout=timeout),
            ))
        else:
            log.warning(f"[PROVIDERS] Unknown provider '{name}' ignored")

    log.info(f"[PROVIDERS] Active: {[p.name for p in providers] or 'none (fallback only)'}")
    return providers
