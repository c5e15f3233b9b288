import json
from datetime import datetime, timezone
from typing import Any

from postgrest.exceptions import APIError

from lumindoc.config import (
    DOCUMENTS_TABLE,
    MAX_FILE_SIZE_BYTES,
    MAX_FILE_SIZE_MB,
    MAX_PAGE_SIZE,
    PREVIEW_LENGTH,
    get_supabase_client,
    setup_logger,
)
from lumindoc.core.exceptions import DatabaseError, StorageError
from lumindoc.schemas.documents import (
    FILE_TYPES,
    SUMMARY_STATUSES,
    Document,
    DocumentCreate,
    DocumentDetail,
    DocumentStats,
)
from lumindoc.services.extraction import detect_file_type
from lumindoc.services.storage_service import StorageService, storage_service


logger = setup_logger("document-service")

LIST_COLUMNS = "id, name, original_name, size, type, uploaded_at, summary_status, public_url"

SORT_ORDERS = {
    "date": ("uploaded_at", True),
    "name": ("original_name", False),
    "size": ("size", True),
    "type": ("type", False),
}

_SEARCH_UNSAFE = str.maketrans("", "", ",()%*\\")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class DocumentService:
    def __init__(self, storage: StorageService = storage_service) -> None:
        self._supabase = None
        self._storage = storage

    async def _get_supabase(self):
        if not self._supabase:
            self._supabase = await get_supabase_client()
        return self._supabase

    def _table(self, supabase):
        return supabase.table(DOCUMENTS_TABLE)

    def validate_file(self, filename: str, content_type: str | None, size: int) -> str:
        file_type = detect_file_type(content_type, filename)
        if size <= 0:
            raise ValueError(f"{filename} is empty")
        if size > MAX_FILE_SIZE_BYTES:
            raise ValueError(
                f"File size exceeds maximum limit of {MAX_FILE_SIZE_MB} MB"
            )
        return file_type

    async def save_document(self, document: DocumentCreate) -> Document:
        record = document.model_dump()
        now = _now()
        record["uploaded_at"] = now
        record["created_at"] = now
        record["updated_at"] = now

        try:
            supabase = await self._get_supabase()
            response = await self._table(supabase).insert(record).execute()
        except APIError as e:
            raise DatabaseError("insertion", DOCUMENTS_TABLE, e.message) from e

        saved = Document.model_validate(response.data[0])
        logger.info(f"Saved document {saved.id} ({saved.original_name})")
        return saved

    async def get_documents(
        self,
        user_id: str,
        search: str | None = None,
        filter_by: str = "all",
        sort_by: str = "date",
        offset: int = 0,
        limit: int = MAX_PAGE_SIZE,
    ) -> dict[str, Any]:
        try:
            supabase = await self._get_supabase()
            query = (
                self._table(supabase)
                .select(LIST_COLUMNS, count="exact")
                .eq("user_id", user_id)
            )

            if search:
                # `_` is an ilike wildcard
                term = search.translate(_SEARCH_UNSAFE).strip().replace("_", r"\_")
                if term:
                    query = query.or_(
                        f"name.ilike.%{term}%,original_name.ilike.%{term}%"
                    )

            if filter_by in FILE_TYPES:
                query = query.eq("type", filter_by)
            elif filter_by in SUMMARY_STATUSES:
                query = query.eq("summary_status", filter_by)

            column, desc = SORT_ORDERS.get(sort_by, SORT_ORDERS["date"])
            result = await (
                query.order(column, desc=desc)
                .range(offset, offset + limit - 1)
                .execute()
            )
        except APIError as e:
            raise DatabaseError("select", DOCUMENTS_TABLE, e.message) from e

        return {
            "documents": result.data or [],
            "total": result.count or 0,
            "offset": offset,
            "limit": limit,
        }

    async def get_document(self, document_id: str, user_id: str) -> Document | None:
        try:
            supabase = await self._get_supabase()
            result = await (
                self._table(supabase)
                .select("*")
                .eq("id", document_id)
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )
        except APIError as e:
            raise DatabaseError("select", DOCUMENTS_TABLE, e.message) from e

        if not result.data:
            return None
        return Document.model_validate(result.data[0])

    async def get_document_detail(
        self, document_id: str, user_id: str
    ) -> DocumentDetail | None:
        document = await self.get_document(document_id, user_id)
        if not document:
            return None

        content = document.content or ""
        preview = content[:PREVIEW_LENGTH]
        if len(content) > PREVIEW_LENGTH:
            preview += "..."

        return DocumentDetail(
            **document.model_dump(),
            preview=preview or None,
            total_length=len(content),
        )

    async def update_document(
        self,
        document_id: str,
        user_id: str,
        updates: dict[str, Any],
    ) -> Document | None:
        updates = {**updates, "updated_at": _now()}
        try:
            supabase = await self._get_supabase()
            result = await (
                self._table(supabase)
                .update(updates)
                .eq("id", document_id)
                .eq("user_id", user_id)
                .execute()
            )
        except APIError as e:
            raise DatabaseError("update", DOCUMENTS_TABLE, e.message) from e

        if not result.data:
            return None
        return Document.model_validate(result.data[0])

    async def update_document_summary(
        self,
        document_id: str,
        user_id: str,
        summary: Any,
        status: str | None = None,
        content: str | None = None,
    ) -> Document | None:
        """Store a summary and move the status along.

        An explicit status wins; a summary without one marks the document completed.
        """
        updates: dict[str, Any] = {}

        if summary is not None:
            if isinstance(summary, str):
                updates["summary"] = summary
            elif hasattr(summary, "to_json"):
                updates["summary"] = summary.to_json()
            else:
                updates["summary"] = json.dumps(summary, ensure_ascii=False)

        if status:
            if status not in SUMMARY_STATUSES:
                raise ValueError(f"Invalid summary status: {status}")
            updates["summary_status"] = status
        elif summary is not None:
            updates["summary_status"] = "completed"

        if content is not None:
            updates["content"] = content

        return await self.update_document(document_id, user_id, updates)

    async def set_status(self, document_id: str, user_id: str, status: str) -> Document | None:
        return await self.update_document_summary(document_id, user_id, None, status)

    async def delete_document(self, document_id: str, user_id: str) -> bool:
        document = await self.get_document(document_id, user_id)
        if not document:
            return False

        if document.file_path:
            try:
                await self._storage.remove_file(document.file_path)
            except StorageError as e:
                logger.warning(f"Failed to remove {document.file_path} from storage: {e.reason}")

        try:
            supabase = await self._get_supabase()
            await (
                self._table(supabase)
                .delete()
                .eq("id", document_id)
                .eq("user_id", user_id)
                .execute()
            )
        except APIError as e:
            raise DatabaseError("delete", DOCUMENTS_TABLE, e.message) from e

        logger.info(f"Deleted document {document_id}")
        return True

    async def get_stats(self, user_id: str) -> DocumentStats:
        try:
            supabase = await self._get_supabase()
            result = await (
                self._table(supabase)
                .select("type, summary_status, size")
                .eq("user_id", user_id)
                .execute()
            )
        except APIError as e:
            raise DatabaseError("select", DOCUMENTS_TABLE, e.message) from e

        rows = result.data or []
        by_type = dict.fromkeys(FILE_TYPES, 0)
        by_status = dict.fromkeys(SUMMARY_STATUSES, 0)
        for row in rows:
            by_type[row["type"]] = by_type.get(row["type"], 0) + 1
            by_status[row["summary_status"]] = by_status.get(row["summary_status"], 0) + 1

        return DocumentStats(
            total=len(rows),
            total_size=sum(row.get("size") or 0 for row in rows),
            by_type=by_type,
            by_status=by_status,
        )

    async def download_document(self, document: Document) -> bytes:
        if not document.file_path:
            raise StorageError("download", document.id, "document has no stored file")
        return await self._storage.download_file(document.file_path)


document_service = DocumentService()
