import asyncio

from lumindoc.config import setup_logger
from lumindoc.services.summary_service import summary_service


logger = setup_logger("activities")


def summarize_document_job(document_id: str, user_id: str) -> str:
    """rq entry point: summarize a stored document and return its final status."""
    logger.info(f"Summarizing document {document_id} for {user_id}")
    document = asyncio.run(summary_service.summarize_document(document_id, user_id))
    if document is None:
        return "missing"
    return document.summary_status
