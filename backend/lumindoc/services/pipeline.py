from dataclasses import dataclass

from redis.exceptions import RedisError

from lumindoc.config import setup_logger
from lumindoc.core.config import settings
from lumindoc.core.exceptions import AppException, StorageError
from lumindoc.mq.activities import summarize_document_job
from lumindoc.mq.queue import enqueue_task
from lumindoc.schemas.documents import Document, DocumentCreate
from lumindoc.services.document_service import DocumentService, document_service
from lumindoc.services.storage_service import StorageService, storage_service
from lumindoc.services.summary_service import SummaryService, summary_service


logger = setup_logger("pipeline")


@dataclass
class SummaryRequest:
    document: Document
    job_id: str | None = None
    error: str | None = None


class DocumentPipeline:
    """Upload -> store -> record -> summarize, one file at a time."""

    def __init__(
        self,
        documents: DocumentService = document_service,
        storage: StorageService = storage_service,
        summaries: SummaryService = summary_service,
    ) -> None:
        self._documents = documents
        self._storage = storage
        self._summaries = summaries

    async def upload_document(
        self,
        data: bytes,
        filename: str,
        content_type: str | None,
        user_id: str,
    ) -> SummaryRequest:
        file_type = self._documents.validate_file(filename, content_type, len(data))
        media_type = "application/pdf" if file_type == "pdf" else "text/plain"

        stored = await self._storage.upload_file(data, filename, media_type, user_id)
        try:
            document = await self._documents.save_document(
                DocumentCreate(
                    user_id=user_id,
                    name=filename,
                    original_name=filename,
                    size=len(data),
                    type=file_type,
                    summary_status="processing",
                    url=stored.url,
                    public_url=stored.url,
                    file_path=stored.path,
                )
            )
        except Exception:
            await self._discard(stored.path)
            raise

        return await self.schedule_summary(document, user_id)

    async def _discard(self, path: str) -> None:
        try:
            await self._storage.remove_file(path)
        except StorageError as e:
            logger.warning(f"Failed to remove orphaned {path} from storage: {e.reason}")

    async def request_summary(self, document: Document, user_id: str) -> SummaryRequest:
        document = await self._documents.set_status(document.id, user_id, "processing") or document
        return await self.schedule_summary(document, user_id)

    async def schedule_summary(self, document: Document, user_id: str) -> SummaryRequest:
        if settings.async_summaries:
            try:
                job_id = await enqueue_task(
                    summarize_document_job, args=[document.id, user_id]
                )
                return SummaryRequest(document=document, job_id=job_id)
            except RedisError as e:
                logger.warning(f"Queue unavailable ({e}), summarizing {document.id} inline")

        try:
            updated = await self._summaries.summarize_document(document.id, user_id)
        except AppException as e:
            error = e.detail
        except Exception as e:
            logger.error(f"Summary for document {document.id} failed unexpectedly: {e!r}")
            error = "Unexpected error while generating the summary"
        else:
            return SummaryRequest(document=updated or document)

        current = await self._documents.get_document(document.id, user_id)
        return SummaryRequest(document=current or document, error=error)


document_pipeline = DocumentPipeline()
