import asyncio
import json

import httpx
import pytest
from openai import APIConnectionError

from lumindoc.core.exceptions import DocumentProcessingError, ModelError, SummaryParseError
from lumindoc.schemas.documents import DocumentCreate
from lumindoc.services.document_service import DocumentService
from lumindoc.services.prompts import (
    TRUNCATION_MARKER,
    build_detailed_summary_prompt,
    build_quick_summary_prompt,
    truncate_content,
)
from lumindoc.services.storage_service import StorageService
from lumindoc.services.summary_service import SummaryService, parse_summary_response


def connection_error() -> APIConnectionError:
    return APIConnectionError(request=httpx.Request("POST", "https://llm.test/v1/chat/completions"))


class TestParseSummaryResponse:
    def test_fenced_json(self, sample_summary):
        text = f"Here you go:\n```json\n{json.dumps(sample_summary)}\n```\nThanks"
        summary = parse_summary_response(text)

        assert summary.overview == sample_summary["overview"]
        assert summary.key_points == sample_summary["keyPoints"]
        assert summary.sections[1].importance == "medium"
        assert summary.sections[1].page is None
        assert summary.page_count == 2

    def test_bare_object(self, sample_summary):
        summary = parse_summary_response(f"Summary: {json.dumps(sample_summary)}")
        assert summary.difficulty == "beginner"
        assert summary.word_count == 1234

    def test_round_trips_with_camel_case_keys(self, sample_summary):
        payload = json.loads(parse_summary_response(json.dumps(sample_summary)).to_json())
        assert payload["keyPoints"] == sample_summary["keyPoints"]
        assert payload["pageCount"] == 2
        assert "key_points" not in payload

    @pytest.mark.parametrize(
        "text",
        [None, "", "no json here", "{not: valid json}", '{"keyPoints": []}', '{"overview": "x", "difficulty": "expert"}'],
    )
    def test_invalid_replies(self, text):
        with pytest.raises(SummaryParseError) as exc:
            parse_summary_response(text)
        assert exc.value.status_code == 502


class TestPrompts:
    def test_detailed_prompt_mentions_file_and_schema(self):
        prompt = build_detailed_summary_prompt("Body text", "guide.pdf", language="Japanese")

        assert '"guide.pdf"' in prompt
        assert '"keyPoints"' in prompt
        assert "Body text" in prompt
        assert "Answer in Japanese" in prompt

    def test_quick_prompt(self):
        prompt = build_quick_summary_prompt("Body text", language="English")
        assert "3 to 5 lines" in prompt
        assert prompt.endswith("Body text")

    def test_truncation(self):
        assert truncate_content("abc", limit=5) == "abc"
        assert truncate_content("abcdefgh", limit=5) == "abcde" + TRUNCATION_MARKER


class TestModelChain:
    def test_falls_back_to_next_model(self, model_client_factory, sample_summary):
        broken = model_client_factory([connection_error()], model="primary")
        backup = model_client_factory(model="backup")
        service = SummaryService(clients=[broken, backup])

        summary = asyncio.run(service.generate_detailed_summary("content", "a.txt"))

        assert summary.overview == sample_summary["overview"]
        assert len(broken.calls) == 1
        assert len(backup.calls) == 1

    def test_empty_reply_moves_on(self, model_client_factory):
        first = model_client_factory([""], model="first")
        second = model_client_factory(["Line one\nLine two  "], model="second")
        service = SummaryService(clients=[first, second])

        assert asyncio.run(service.generate_quick_summary("content")) == "Line one\nLine two"

    def test_all_models_failing(self, model_client_factory):
        service = SummaryService(
            clients=[model_client_factory([connection_error()], model="only")]
        )
        with pytest.raises(ModelError) as exc:
            asyncio.run(service.generate_quick_summary("content"))
        assert exc.value.status_code == 503

    def test_no_models_configured(self):
        service = SummaryService(clients=[])
        with pytest.raises(ModelError):
            asyncio.run(service.generate_quick_summary("content"))


class TestSummarizeDocument:
    @pytest.fixture
    def services(self, fake_supabase):
        storage = StorageService()
        storage._supabase = fake_supabase
        documents = DocumentService(storage=storage)
        documents._supabase = fake_supabase
        return storage, documents

    async def _store(self, storage, documents, data: bytes, name: str):
        stored = await storage.upload_file(data, name, "text/plain", "alice")
        return await documents.save_document(
            DocumentCreate(
                user_id="alice",
                name=name,
                original_name=name,
                size=len(data),
                type="txt",
                summary_status="pending",
                url=stored.url,
                public_url=stored.url,
                file_path=stored.path,
            )
        )

    def test_success_stores_summary_and_content(self, services, model_client_factory, sample_summary):
        storage, documents = services
        model = model_client_factory()
        service = SummaryService(documents=documents, clients=[model])

        async def scenario():
            document = await self._store(storage, documents, b"Brew coffee slowly.", "coffee.txt")
            return await service.summarize_document(document.id, "alice")

        updated = asyncio.run(scenario())

        assert updated.summary_status == "completed"
        assert "Brew coffee slowly." in updated.content
        assert updated.parsed_summary().topics == sample_summary["topics"]
        assert '"coffee.txt"' in model.calls[0][1]["content"]

    def test_failure_marks_error(self, services, model_client_factory, fake_supabase):
        storage, documents = services
        service = SummaryService(
            documents=documents,
            clients=[model_client_factory(["I cannot help with that."])],
        )

        async def scenario():
            document = await self._store(storage, documents, b"Some text", "notes.txt")
            with pytest.raises(SummaryParseError):
                await service.summarize_document(document.id, "alice")
            return await documents.get_document(document.id, "alice")

        document = asyncio.run(scenario())
        assert document.summary_status == "error"
        assert document.summary is None

    def test_unexpected_failure_marks_error(self, services, model_client_factory):
        storage, documents = services
        service = SummaryService(
            documents=documents,
            clients=[model_client_factory([IndexError("list index out of range")])],
        )

        async def scenario():
            document = await self._store(storage, documents, b"Some text", "notes.txt")
            with pytest.raises(DocumentProcessingError) as exc:
                await service.summarize_document(document.id, "alice")
            return exc.value, await documents.get_document(document.id, "alice")

        error, document = asyncio.run(scenario())
        assert error.status_code == 500
        assert "list index out of range" in error.detail
        assert document.summary_status == "error"

    def test_missing_document(self, services, model_client_factory):
        _, documents = services
        service = SummaryService(documents=documents, clients=[model_client_factory()])
        assert asyncio.run(service.summarize_document("nope", "alice")) is None
