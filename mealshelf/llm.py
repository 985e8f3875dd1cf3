from __future__ import annotations
import asyncio
from typing import Any, Dict, List, Optional
import httpx
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from .config import settings

# Semáforo global para limitar concurrencia
_llm_semaphore = asyncio.Semaphore(settings.llm_max_concurrency)

class LLMError(RuntimeError):
    pass

@retry(
    reraise=True,
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
    retry=retry_if_exception_type((httpx.TimeoutException, httpx.TransportError, LLMError)),
)
async def _openai_chat(messages: List[Dict[str, str]], model: str, temperature: float, max_tokens: int, seed: Optional[int]) -> str:
    """Invoca el endpoint chat/completions de OpenAI y devuelve el texto del primer choice."""
    url = settings.openai_base_url.rstrip("/") + "/chat/completions"
    payload: Dict[str, Any] = {
        "model": model,
        "messages": messages,
        "temperature": temperature,
        "max_tokens": max_tokens,
    }
    if seed is not None:
        payload["seed"] = seed
    headers = {"Authorization": f"Bearer {settings.openai_api_key}"}
    async with httpx.AsyncClient(timeout=settings.llm_timeout_s) as client:
        r = await client.post(url, json=payload, headers=headers)
        if r.status_code >= 500:
            raise LLMError(f"OpenAI 5xx: {r.status_code}")
        r.raise_for_status()
        try:
            data = r.json()
        except ValueError as e:
            raise LLMError("Respuesta de OpenAI no es JSON") from e
        choices = data.get("choices") if isinstance(data, dict) else None
        if choices and isinstance(choices, list) and isinstance(choices[0], dict):
            message = choices[0].get("message")
            content = message.get("content") if isinstance(message, dict) else None
            if isinstance(content, str) and content.strip():
                return content.strip()
        raise LLMError("Respuesta inválida de OpenAI")

async def chat_completion(
    prompt: str,
    system: Optional[str] = None,
    model: Optional[str] = None,
    temperature: float = 0.0,
    max_tokens: int = 256,
    seed: Optional[int] = None,
) -> str:
    """Completa un prompt de usuario (con system opcional) respetando el límite de concurrencia."""
    messages: List[Dict[str, str]] = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})
    mdl = model or settings.openai_model
    async with _llm_semaphore:
        return await _openai_chat(messages, model=mdl, temperature=temperature, max_tokens=max_tokens, seed=seed)
