from fastapi import APIRouter, File, HTTPException, UploadFile

from lumindoc.config import MAX_FILE_SIZE_BYTES, MAX_FILE_SIZE_MB, llm_configured, setup_logger
from lumindoc.core.exceptions import handle_exceptions
from lumindoc.schemas.documents import (
    QuickSummaryRequest,
    QuickSummaryResponse,
    SummarizeResponse,
)
from lumindoc.services.summary_service import summary_service


logger = setup_logger("summary-router")
router = APIRouter()
_file = File(None)


@router.get("/")
async def summarize_status():
    return {"message": "Summarization API is running"}


@router.post("/", response_model=SummarizeResponse)
@handle_exceptions
async def summarize_file(file: UploadFile | None = _file):
    """Summarize an uploaded file without storing it."""
    if not llm_configured():
        logger.error("No summarization model is configured")
        raise HTTPException(
            status_code=500,
            detail="Summarization model is not configured. Please check your environment variables.",
        )

    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")

    data = await file.read()
    if len(data) > MAX_FILE_SIZE_BYTES:
        raise HTTPException(
            status_code=400,
            detail=f"File is too large (maximum {MAX_FILE_SIZE_MB} MB)",
        )

    summary, extracted = await summary_service.summarize_upload(
        data, file.filename or "untitled", file.content_type
    )

    return SummarizeResponse(
        success=True,
        summary=summary,
        original_content=extracted.content,
    )


@router.post("/quick", response_model=QuickSummaryResponse)
@handle_exceptions
async def quick_summary(request: QuickSummaryRequest):
    if not request.content.strip():
        raise HTTPException(status_code=400, detail="Content cannot be empty")

    summary = await summary_service.generate_quick_summary(request.content)
    return QuickSummaryResponse(summary=summary)
