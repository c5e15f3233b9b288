from typing import Any

from openai import AsyncOpenAI

from lumindoc.config import (
    GEMINI_API_KEY,
    GEMINI_BASE_URL,
    MAX_SUMMARY_TOKENS,
    OLLAMA_BASE_URL,
    OLLAMA_MODEL,
    OPENROUTER_API_KEY,
    OPENROUTER_BASE_URL,
    OPENROUTER_MODEL,
    SUMMARIZATION_MODEL,
    TEMPERATURE,
    setup_logger,
)
from lumindoc.core.protocols import ModelClient, ModelResponse


logger = setup_logger("model-client")


class OpenAICompatibleClient(ModelClient):
    def __init__(self, base_url: str, api_key: str, model: str) -> None:
        self._client = AsyncOpenAI(base_url=base_url, api_key=api_key)
        self._model = model

    @property
    def model(self) -> str:
        return self._model

    async def complete(
        self,
        messages: list[dict[str, Any]],
        max_tokens: int | None = None,
    ) -> ModelResponse:
        response = await self._client.chat.completions.create(
            model=self._model,
            messages=messages,
            max_tokens=max_tokens or MAX_SUMMARY_TOKENS,
            temperature=TEMPERATURE,
        )
        choice = response.choices[0]

        return ModelResponse(
            content=choice.message.content,
            finish_reason=choice.finish_reason,
            model=self._model,
        )


class GeminiClient(OpenAICompatibleClient):
    def __init__(self, api_key: str, model: str = SUMMARIZATION_MODEL) -> None:
        super().__init__(base_url=GEMINI_BASE_URL, api_key=api_key, model=model)


class OpenRouterClient(OpenAICompatibleClient):
    def __init__(self, api_key: str, model: str) -> None:
        super().__init__(
            base_url=OPENROUTER_BASE_URL,
            api_key=api_key,
            model=model,
        )


class OllamaClient(OpenAICompatibleClient):
    def __init__(
        self, model: str, host: str = "http://localhost:11434"
    ) -> None:
        super().__init__(base_url=f"{host.rstrip('/')}/v1", api_key="ollama", model=model)


def build_model_chain() -> list[ModelClient]:
    """Primary Gemini client first, then every fallback that has credentials."""
    chain: list[ModelClient] = []

    if GEMINI_API_KEY:
        chain.append(GeminiClient(api_key=GEMINI_API_KEY))
    if OPENROUTER_API_KEY:
        chain.append(OpenRouterClient(api_key=OPENROUTER_API_KEY, model=OPENROUTER_MODEL))
    if OLLAMA_BASE_URL:
        chain.append(OllamaClient(model=OLLAMA_MODEL, host=OLLAMA_BASE_URL))

    logger.debug(f"Model chain: {[client.model for client in chain]}")
    return chain
