import json
import uuid
from types import SimpleNamespace
from typing import Any

import pytest
from fastapi.testclient import TestClient
from storage3.utils import StorageException

from lumindoc.core.config import settings
from lumindoc.core.protocols import ModelClient, ModelResponse
from lumindoc.main import create_app
from lumindoc.services.document_service import document_service
from lumindoc.services.storage_service import storage_service
from lumindoc.services.summary_service import summary_service


SAMPLE_SUMMARY = {
    "overview": "A short guide to brewing coffee at home.",
    "keyPoints": ["Use fresh beans", "Grind just before brewing", "Mind the water temperature"],
    "sections": [
        {"title": "Beans", "content": "Buy whole beans and store them airtight.", "importance": "high", "page": 1},
        {"title": "Brewing", "content": "Water between 90 and 96 degrees.", "importance": "Medium"},
    ],
    "wordCount": 1234,
    "pageCount": 2,
    "topics": ["coffee", "brewing"],
    "difficulty": "beginner",
}


class FakeQuery:
    """Just enough of the postgrest request builder for the services."""

    def __init__(self, table: "FakeTable") -> None:
        self._table = table
        self._action = "select"
        self._columns = "*"
        self._count = None
        self._payload: Any = None
        self._filters: list = []
        self._order: tuple[str, bool] | None = None
        self._range: tuple[int, int] | None = None
        self._limit: int | None = None

    def select(self, columns: str = "*", count: str | None = None):
        self._columns = columns
        self._count = count
        return self

    def insert(self, payload):
        self._action = "insert"
        self._payload = payload
        return self

    def update(self, payload):
        self._action = "update"
        self._payload = payload
        return self

    def delete(self):
        self._action = "delete"
        return self

    def eq(self, column: str, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def or_(self, expression: str):
        clauses = []
        for clause in expression.split(","):
            column, _, pattern = clause.split(".", 2)
            clauses.append((column, pattern.strip("%").replace("\\_", "_").lower()))
        self._filters.append(
            lambda row: any(term in (row.get(column) or "").lower() for column, term in clauses)
        )
        return self

    def order(self, column: str, desc: bool = False):
        self._order = (column, desc)
        return self

    def range(self, start: int, end: int):
        self._range = (start, end)
        return self

    def limit(self, count: int):
        self._limit = count
        return self

    def _matches(self, row: dict) -> bool:
        return all(check(row) for check in self._filters)

    def _project(self, row: dict) -> dict:
        if self._columns == "*":
            return dict(row)
        columns = [column.strip() for column in self._columns.split(",")]
        return {column: row.get(column) for column in columns}

    async def execute(self):
        rows = self._table.rows

        if self._action == "insert":
            records = self._payload if isinstance(self._payload, list) else [self._payload]
            inserted = []
            for record in records:
                row = {"id": str(uuid.uuid4()), **record}
                rows.append(row)
                inserted.append(dict(row))
            return SimpleNamespace(data=inserted, count=None)

        matched = [row for row in rows if self._matches(row)]

        if self._action == "update":
            for row in matched:
                row.update(self._payload)
            return SimpleNamespace(data=[dict(row) for row in matched], count=None)

        if self._action == "delete":
            self._table.rows = [row for row in rows if row not in matched]
            return SimpleNamespace(data=[dict(row) for row in matched], count=None)

        if self._order:
            column, desc = self._order
            matched = sorted(matched, key=lambda row: row.get(column), reverse=desc)
        total = len(matched)
        if self._range:
            matched = matched[self._range[0]:self._range[1] + 1]
        if self._limit is not None:
            matched = matched[:self._limit]

        return SimpleNamespace(
            data=[self._project(row) for row in matched],
            count=total if self._count else None,
        )


class FakeTable:
    def __init__(self) -> None:
        self.rows: list[dict] = []


class FakeBucket:
    def __init__(self, objects: dict[str, bytes], name: str) -> None:
        self._objects = objects
        self._name = name
        self.removed: list[str] = []

    async def upload(self, path: str, data: bytes, options: dict | None = None):
        self._objects[path] = data
        return SimpleNamespace(path=path, full_path=f"{self._name}/{path}")

    async def get_public_url(self, path: str) -> str:
        return f"https://storage.test/{self._name}/{path}"

    async def download(self, path: str) -> bytes:
        if path not in self._objects:
            raise StorageException({"message": "Object not found", "statusCode": 404})
        return self._objects[path]

    async def remove(self, paths: list[str]):
        for path in paths:
            self._objects.pop(path, None)
            self.removed.append(path)
        return [{"name": path} for path in paths]


class FakeStorage:
    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.buckets: dict[str, FakeBucket] = {}

    def from_(self, name: str) -> FakeBucket:
        if name not in self.buckets:
            self.buckets[name] = FakeBucket(self.objects, name)
        return self.buckets[name]


class FakeSupabase:
    def __init__(self) -> None:
        self.tables: dict[str, FakeTable] = {}
        self.storage = FakeStorage()

    def table(self, name: str) -> FakeQuery:
        if name not in self.tables:
            self.tables[name] = FakeTable()
        return FakeQuery(self.tables[name])

    def rows(self, name: str = "documents") -> list[dict]:
        return self.tables.setdefault(name, FakeTable()).rows


class FakeModelClient(ModelClient):
    """Replays scripted replies; an Exception in the script is raised instead."""

    def __init__(self, replies: list | None = None, model: str = "fake-model") -> None:
        self.replies = list(replies or [])
        self.calls: list[list[dict]] = []
        self._model = model

    @property
    def model(self) -> str:
        return self._model

    async def complete(self, messages, max_tokens=None) -> ModelResponse:
        self.calls.append(messages)
        reply = self.replies.pop(0) if self.replies else f"```json\n{json.dumps(SAMPLE_SUMMARY)}\n```"
        if isinstance(reply, Exception):
            raise reply
        return ModelResponse(content=reply, finish_reason="stop", model=self._model)


@pytest.fixture
def fake_supabase(monkeypatch):
    supabase = FakeSupabase()
    monkeypatch.setattr(document_service, "_supabase", supabase)
    monkeypatch.setattr(storage_service, "_supabase", supabase)
    return supabase


@pytest.fixture
def fake_model(monkeypatch):
    client = FakeModelClient()
    monkeypatch.setattr(summary_service, "_clients", [client])
    return client


@pytest.fixture
def inline_summaries(monkeypatch):
    monkeypatch.setattr(settings, "async_summaries", False)


@pytest.fixture
def app():
    """Create FastAPI test application."""
    return create_app()


@pytest.fixture
def client(app, fake_supabase, fake_model, inline_summaries):
    """Test client backed by in-memory Supabase and model fakes."""
    return TestClient(app)


@pytest.fixture
def sample_summary():
    return dict(SAMPLE_SUMMARY)


def make_pdf(text: str) -> bytes:
    """Build a one-page PDF whose text layer contains ``text``."""
    stream = f"BT /F1 18 Tf 72 720 Td ({text}) Tj ET".encode("latin-1")
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Resources << /Font << /F1 5 0 R >> >> /Contents 4 0 R >>",
        b"<< /Length " + str(len(stream)).encode() + b" >>\nstream\n" + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]

    output = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, 1):
        offsets.append(len(output))
        output += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"

    xref_offset = len(output)
    output += f"xref\n0 {len(objects) + 1}\n".encode()
    output += b"0000000000 65535 f \n"
    for offset in offsets:
        output += f"{offset:010d} 00000 n \n".encode()
    output += (
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
        f"startxref\n{xref_offset}\n%%EOF\n"
    ).encode()
    return bytes(output)


@pytest.fixture
def pdf_factory():
    return make_pdf


@pytest.fixture
def model_client_factory():
    return FakeModelClient
