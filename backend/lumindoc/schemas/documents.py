from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from lumindoc.core.exceptions import SummaryParseError


FileType = Literal["pdf", "txt"]
SummaryStatus = Literal["pending", "processing", "completed", "error"]
Importance = Literal["high", "medium", "low"]
Difficulty = Literal["beginner", "intermediate", "advanced"]
FilterOption = Literal["all", "pdf", "txt", "pending", "processing", "completed", "error"]
SortOption = Literal["date", "name", "size", "type"]

SUMMARY_STATUSES: tuple[str, ...] = ("pending", "processing", "completed", "error")
FILE_TYPES: tuple[str, ...] = ("pdf", "txt")


class SummarySection(BaseModel):
    title: str
    content: str
    importance: Importance = "medium"
    page: int | None = None

    @field_validator("importance", mode="before")
    @classmethod
    def normalize_importance(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class DetailedSummary(BaseModel):
    """Structured summary returned by the model; serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    overview: str
    key_points: list[str] = Field(default_factory=list)
    sections: list[SummarySection] = Field(default_factory=list)
    word_count: int = 0
    page_count: int | None = None
    topics: list[str] = Field(default_factory=list)
    difficulty: Difficulty = "intermediate"

    @field_validator("difficulty", mode="before")
    @classmethod
    def normalize_difficulty(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class DocumentCreate(BaseModel):
    user_id: str
    name: str
    original_name: str
    size: int
    type: FileType
    summary_status: SummaryStatus = "pending"
    url: str | None = None
    public_url: str | None = None
    file_path: str | None = None


class Document(BaseModel):
    id: str
    user_id: str | None = None
    name: str
    original_name: str
    size: int
    type: FileType
    uploaded_at: datetime | None = None
    content: str | None = None
    summary: str | None = None
    summary_status: SummaryStatus = "pending"
    url: str | None = None
    public_url: str | None = None
    file_path: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def parsed_summary(self) -> DetailedSummary | None:
        if not self.summary:
            return None
        try:
            return DetailedSummary.model_validate_json(self.summary)
        except ValidationError as e:
            raise SummaryParseError(f"stored summary for document {self.id} is malformed") from e


class DocumentListItem(BaseModel):
    id: str
    name: str
    original_name: str
    size: int
    type: FileType
    uploaded_at: datetime | None = None
    summary_status: SummaryStatus
    public_url: str | None = None


class DocumentDetail(Document):
    preview: str | None = None
    total_length: int = 0


class DocumentList(BaseModel):
    documents: list[DocumentListItem]
    pagination: dict


class DocumentStats(BaseModel):
    total: int
    total_size: int
    by_type: dict[str, int]
    by_status: dict[str, int]


class UploadResult(BaseModel):
    filename: str
    success: bool
    document: Document | None = None
    job_id: str | None = None
    error: str | None = None


class UploadResponse(BaseModel):
    message: str
    results: list[UploadResult]


class SummarizeRequestResponse(BaseModel):
    document_id: str
    summary_status: SummaryStatus
    job_id: str | None = None


class SummarizeResponse(BaseModel):
    success: bool = True
    summary: DetailedSummary
    original_content: str


class QuickSummaryRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=200_000)


class QuickSummaryResponse(BaseModel):
    summary: str


class JobStatus(BaseModel):
    job_id: str
    status: Literal["queued", "running", "completed", "failed"]
    result: str | None = None
    error: str | None = None


class DeleteResponse(BaseModel):
    success: bool
    message: str
