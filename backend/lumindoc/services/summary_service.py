import json
import re

from openai import OpenAIError, RateLimitError
from pydantic import ValidationError

from lumindoc.config import MAX_QUICK_SUMMARY_TOKENS, MAX_SUMMARY_TOKENS, setup_logger
from lumindoc.core.exceptions import (
    AppException,
    DocumentProcessingError,
    ModelError,
    SummaryParseError,
)
from lumindoc.core.protocols import ModelClient
from lumindoc.schemas.documents import DetailedSummary, Document
from lumindoc.services.document_service import DocumentService, document_service
from lumindoc.services.extraction import ExtractedContent, detect_file_type, extract_content
from lumindoc.services.model_client import build_model_chain
from lumindoc.services.prompts import (
    build_detailed_summary_prompt,
    build_messages,
    build_quick_summary_prompt,
)


logger = setup_logger("summary-service")

_FENCED_JSON = re.compile(r"```(?:json)?\s*\n(.*?)\n?```", re.DOTALL)
_BRACED_JSON = re.compile(r"\{.*\}", re.DOTALL)


def parse_summary_response(text: str | None) -> DetailedSummary:
    """Pull the JSON object out of a model reply and validate it."""
    if not text:
        raise SummaryParseError("empty response")

    match = _FENCED_JSON.search(text) or _BRACED_JSON.search(text)
    if not match:
        raise SummaryParseError("no JSON object found")

    raw = match.group(1) if match.groups() else match.group(0)
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        raise SummaryParseError(f"malformed JSON ({e.msg})") from e

    if not isinstance(payload, dict):
        raise SummaryParseError("expected a JSON object")

    try:
        return DetailedSummary.model_validate(payload)
    except ValidationError as e:
        raise SummaryParseError(f"{e.error_count()} invalid field(s)") from e


class SummaryService:
    """Generate document summaries through the configured model chain."""

    def __init__(
        self,
        documents: DocumentService = document_service,
        clients: list[ModelClient] | None = None,
    ) -> None:
        self._documents = documents
        self._clients = clients

    def _get_clients(self) -> list[ModelClient]:
        if self._clients is None:
            self._clients = build_model_chain()
        return self._clients

    async def _complete(self, prompt: str, max_tokens: int) -> str:
        """Try each model in turn, falling through on rate limits and API errors."""
        clients = self._get_clients()
        if not clients:
            raise ModelError("none", "no model credentials are configured")

        messages = build_messages(prompt)
        last_error = "no response"

        for client in clients:
            try:
                logger.info(f"Attempting summary generation with: {client.model}")
                response = await client.complete(messages, max_tokens=max_tokens)
                if response.content:
                    return response.content
                last_error = f"{client.model} returned an empty response"
                logger.warning(last_error)
            except RateLimitError:
                last_error = f"rate limit hit for {client.model}"
                logger.warning(f"Rate limit hit for {client.model}, trying next model")
            except OpenAIError as e:
                last_error = str(e)
                logger.warning(f"Error with {client.model}: {str(e)}, trying next model")

        raise ModelError(clients[-1].model, f"all models failed ({last_error})")

    async def generate_detailed_summary(self, content: str, file_name: str) -> DetailedSummary:
        prompt = build_detailed_summary_prompt(content, file_name)
        text = await self._complete(prompt, MAX_SUMMARY_TOKENS)
        summary = parse_summary_response(text)
        logger.info(f"Generated detailed summary for {file_name}")
        return summary

    async def generate_quick_summary(self, content: str) -> str:
        prompt = build_quick_summary_prompt(content)
        text = await self._complete(prompt, MAX_QUICK_SUMMARY_TOKENS)
        return text.strip()

    async def summarize_upload(
        self,
        data: bytes,
        filename: str,
        content_type: str | None,
    ) -> tuple[DetailedSummary, ExtractedContent]:
        file_type = detect_file_type(content_type, filename)
        logger.info(f"Processing file: {filename}, type: {file_type}, size: {len(data)}")

        extracted = extract_content(data, filename, file_type)
        logger.info(f"Extracted content length: {len(extracted.content)} characters")

        summary = await self.generate_detailed_summary(extracted.content, filename)
        return summary, extracted

    async def summarize_document(self, document_id: str, user_id: str) -> Document | None:
        """Run the full summary flow for a stored document.

        The status ends as completed or error; failures are re-raised after the
        error status is recorded.
        """
        document = await self._documents.get_document(document_id, user_id)
        if not document:
            logger.warning(f"Document {document_id} not found, skipping summary")
            return None

        await self._documents.set_status(document_id, user_id, "processing")

        try:
            data = await self._documents.download_document(document)
            extracted = extract_content(data, document.original_name, document.type, document.size)
            summary = await self.generate_detailed_summary(extracted.content, document.original_name)
            updated = await self._documents.update_document_summary(
                document_id,
                user_id,
                summary,
                status="completed",
                content=extracted.content,
            )
        except AppException as e:
            logger.error(f"Summary for document {document_id} failed: {e.detail}")
            await self._documents.set_status(document_id, user_id, "error")
            raise
        except Exception as e:
            logger.error(f"Summary for document {document_id} failed unexpectedly: {e!r}")
            await self._documents.set_status(document_id, user_id, "error")
            raise DocumentProcessingError(document_id, str(e) or type(e).__name__) from e

        logger.info(f"Document {document_id} summary completed", "GREEN")
        return updated


summary_service = SummaryService()
