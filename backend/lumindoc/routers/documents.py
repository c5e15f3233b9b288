from urllib.parse import quote

from fastapi import (
    APIRouter,
    Depends,
    File,
    HTTPException,
    Query,
    Response,
    UploadFile,
)

from lumindoc.config import FILE_MEDIA_TYPES, setup_logger
from lumindoc.core.exceptions import AppException, handle_exceptions
from lumindoc.mq.queue import get_job_status
from lumindoc.schemas.documents import (
    DeleteResponse,
    DetailedSummary,
    DocumentDetail,
    DocumentList,
    DocumentStats,
    FilterOption,
    JobStatus,
    SortOption,
    SummarizeRequestResponse,
    UploadResponse,
    UploadResult,
)
from lumindoc.services.document_service import document_service
from lumindoc.services.export_service import export_filename, format_summary_as_text
from lumindoc.services.pipeline import document_pipeline
from lumindoc.utils.auth import resolve_user_id


logger = setup_logger("documents-router")
router = APIRouter()
_files = File(...)


async def _get_or_404(document_id: str, user_id: str):
    document = await document_service.get_document(document_id, user_id)
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    return document


@router.post("/upload", response_model=UploadResponse)
@handle_exceptions
async def upload_documents(
    files: list[UploadFile] = _files,
    user_id: str = Depends(resolve_user_id),
):
    results: list[UploadResult] = []

    for file in files:
        filename = file.filename or "untitled"
        try:
            data = await file.read()
            request = await document_pipeline.upload_document(
                data, filename, file.content_type, user_id
            )
            results.append(
                UploadResult(
                    filename=filename,
                    success=True,
                    document=request.document,
                    job_id=request.job_id,
                    error=request.error,
                )
            )
        except (AppException, ValueError) as e:
            detail = e.detail if isinstance(e, AppException) else str(e)
            logger.warning(f"Upload of {filename} failed: {detail}")
            results.append(UploadResult(filename=filename, success=False, error=detail))
        except Exception as e:
            logger.error(f"Upload of {filename} failed unexpectedly: {e!r}")
            results.append(
                UploadResult(
                    filename=filename,
                    success=False,
                    error="Unexpected error while processing the file",
                )
            )

    succeeded = sum(1 for result in results if result.success)
    return UploadResponse(
        message=f"{succeeded} of {len(results)} file(s) uploaded",
        results=results,
    )


@router.get("/", response_model=DocumentList)
@handle_exceptions
async def list_documents(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    search: str | None = Query(None, description="Matches document names"),
    filter_by: FilterOption = Query("all", alias="filter"),
    sort: SortOption = Query("date"),
    user_id: str = Depends(resolve_user_id),
):
    offset = (page - 1) * limit
    result = await document_service.get_documents(
        user_id,
        search=search.strip() if search else None,
        filter_by=filter_by,
        sort_by=sort,
        offset=offset,
        limit=limit,
    )

    return DocumentList(
        documents=result["documents"],
        pagination={
            "total": result["total"],
            "page": page,
            "limit": limit,
            "pages": (result["total"] + limit - 1) // limit,
        },
    )


@router.get("/stats", response_model=DocumentStats)
@handle_exceptions
async def document_stats(user_id: str = Depends(resolve_user_id)):
    return await document_service.get_stats(user_id)


@router.get("/jobs/{job_id}", response_model=JobStatus)
@handle_exceptions
async def job_status(job_id: str):
    status = await get_job_status(job_id)
    if not status:
        raise HTTPException(status_code=404, detail="Job not found")
    return status


@router.get("/{document_id}", response_model=DocumentDetail)
@handle_exceptions
async def fetch_document(
    document_id: str,
    user_id: str = Depends(resolve_user_id),
):
    document = await document_service.get_document_detail(document_id, user_id)
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    return document


@router.get("/{document_id}/summary", response_model=DetailedSummary)
@handle_exceptions
async def fetch_summary(
    document_id: str,
    user_id: str = Depends(resolve_user_id),
):
    document = await _get_or_404(document_id, user_id)
    if document.summary_status != "completed" or not document.summary:
        raise HTTPException(
            status_code=409,
            detail=f"Summary is not available (status: {document.summary_status})",
        )
    return document.parsed_summary()


@router.get("/{document_id}/summary/export")
@handle_exceptions
async def export_summary(
    document_id: str,
    user_id: str = Depends(resolve_user_id),
):
    document = await _get_or_404(document_id, user_id)
    if document.summary_status != "completed" or not document.summary:
        raise HTTPException(
            status_code=409,
            detail=f"Summary is not available (status: {document.summary_status})",
        )

    summary = document.parsed_summary()
    text = format_summary_as_text(summary, document.original_name)
    filename = export_filename(document.original_name)
    return Response(
        content=text,
        media_type="text/plain; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )


@router.get("/{document_id}/download")
@handle_exceptions
async def download_document(
    document_id: str,
    user_id: str = Depends(resolve_user_id),
):
    document = await _get_or_404(document_id, user_id)
    data = await document_service.download_document(document)
    return Response(
        content=data,
        media_type=FILE_MEDIA_TYPES[document.type],
        headers={"Content-Disposition": f"inline; filename*=UTF-8''{quote(document.original_name)}"},
    )


@router.post("/{document_id}/summarize", response_model=SummarizeRequestResponse)
@handle_exceptions
async def summarize_document(
    document_id: str,
    user_id: str = Depends(resolve_user_id),
):
    document = await _get_or_404(document_id, user_id)
    if document.summary_status == "processing":
        raise HTTPException(status_code=409, detail="Summary is already being generated")

    request = await document_pipeline.request_summary(document, user_id)
    if request.error:
        raise HTTPException(status_code=502, detail=request.error)

    return SummarizeRequestResponse(
        document_id=document_id,
        summary_status=request.document.summary_status,
        job_id=request.job_id,
    )


@router.delete("/{document_id}", response_model=DeleteResponse)
@handle_exceptions
async def delete_document(
    document_id: str,
    user_id: str = Depends(resolve_user_id),
):
    success = await document_service.delete_document(document_id, user_id)
    if not success:
        raise HTTPException(status_code=404, detail="Document not found")

    logger.info(f"Document {document_id} deleted by user {user_id}")
    return DeleteResponse(success=True, message="Document deleted successfully")
