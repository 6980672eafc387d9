"""Generation gateway: conversation + tool declarations in, parts out."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from edu_assist.errors import UpstreamError
from edu_assist.gateways.gemini import GeminiClient
from edu_assist.types import Part, Turn


class CandidateContent(BaseModel):
    model_config = ConfigDict(extra="allow")

    role: str | None = None
    parts: list[Part] = Field(default_factory=list)


class Candidate(BaseModel):
    model_config = ConfigDict(extra="allow")

    content: CandidateContent | None = None


class GenerationResponse(BaseModel):
    """Model output; only the first candidate is ever consulted."""

    model_config = ConfigDict(extra="allow")

    candidates: list[Candidate] = Field(default_factory=list)

    def first_parts(self) -> list[Part]:
        if not self.candidates or self.candidates[0].content is None:
            return []
        return list(self.candidates[0].content.parts)

    @property
    def text(self) -> str:
        return "".join(part.text for part in self.first_parts() if part.text)


class GenerationGateway(ABC):
    """Wraps the external text-generation model."""

    @abstractmethod
    async def generate(
        self,
        contents: list[Turn],
        *,
        system_instruction: str | None = None,
        tools: list[dict[str, Any]] | None = None,
    ) -> GenerationResponse:
        """Run one model turn over `contents`."""

    async def generate_text(self, prompt: str) -> str:
        """Plain prompt-to-text generation without tools."""
        response = await self.generate([Turn(role="user", parts=[Part(text=prompt)])])
        return response.text


class GeminiGenerationGateway(GenerationGateway):
    """Calls the Gemini `generateContent` endpoint."""

    def __init__(self, client: GeminiClient, *, model: str = "gemini-2.5-flash") -> None:
        self.client = client
        self.model = model

    async def generate(
        self,
        contents: list[Turn],
        *,
        system_instruction: str | None = None,
        tools: list[dict[str, Any]] | None = None,
    ) -> GenerationResponse:
        body: dict[str, Any] = {"contents": [turn.to_wire() for turn in contents]}
        if system_instruction:
            body["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        if tools:
            body["tools"] = [{"functionDeclarations": tools}]

        data = await self.client.post(self.model, "generateContent", body)
        try:
            return GenerationResponse.model_validate(data)
        except ValidationError as exc:
            raise UpstreamError(f"Unexpected generateContent payload: {exc}") from exc
