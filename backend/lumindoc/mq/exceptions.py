from datetime import timedelta

from rq.job import Job

from lumindoc.config import REDIS_MAX_RETRY, REDIS_RETRY_INTERVALS, setup_logger
from lumindoc.core.exceptions import AppException
from lumindoc.mq.queue import DEFAULT_QUEUE, get_queue


logger = setup_logger("mq-exceptions")


def retry_delay(retry_count: int) -> int:
    if retry_count < len(REDIS_RETRY_INTERVALS):
        return REDIS_RETRY_INTERVALS[retry_count]
    base_interval = REDIS_RETRY_INTERVALS[-1] if REDIS_RETRY_INTERVALS else 10
    return min(base_interval * (2**retry_count), 300)


def is_retryable(exc_type: type, exc_value: BaseException) -> bool:
    """Only server-side failures are retried; bad input will fail the same way again."""
    if not issubclass(exc_type, AppException):
        return False
    return exc_value.status_code >= 500


def generic_exception_handler(job: Job, exc_type, exc_value, traceback):
    retry_count = job.meta.get("retry_count", 0)
    allow_retry = job.meta.get("allow_retry", True)

    if not allow_retry or not is_retryable(exc_type, exc_value):
        return True

    if retry_count >= REDIS_MAX_RETRY:
        logger.error(f"Job {job.id} exhausted all {REDIS_MAX_RETRY} retry attempts")
        return False

    delay = retry_delay(retry_count)
    logger.info(
        f"Retrying job {job.id} in {delay} seconds (attempt {retry_count + 1}/{REDIS_MAX_RETRY})",
        "YELLOW",
    )

    queue_name = job.meta.get("queue_name", DEFAULT_QUEUE)
    queue = get_queue(queue_name)

    another_job = queue.enqueue_in(
        timedelta(seconds=delay),
        job.func,
        args=job.args,
        kwargs=job.kwargs,
        job_timeout=job.timeout,
        meta={
            "retry_count": retry_count + 1,
            "queue_name": queue_name,
            "allow_retry": allow_retry,
        },
    )

    logger.info(f"Re-enqueued job as {another_job.id}", "BLUE")
    return True
