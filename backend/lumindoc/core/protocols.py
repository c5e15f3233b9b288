from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass
class ModelResponse:
    content: str | None
    finish_reason: str | None
    model: str


class ModelClient(ABC):
    @property
    @abstractmethod
    def model(self) -> str:
        pass

    @abstractmethod
    async def complete(
        self,
        messages: list[dict[str, Any]],
        max_tokens: int | None = None,
    ) -> ModelResponse:
        pass
