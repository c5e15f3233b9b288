from typing import Any, Callable

from rq import Queue
from rq.exceptions import NoSuchJobError
from rq.job import Job

from lumindoc.config import (
    REDIS_QUEUE,
    REDIS_TIMEOUT,
    get_redis_client,
    setup_logger,
)


logger = setup_logger("redis-queue")

DEFAULT_QUEUE = REDIS_QUEUE[0]

_queues: dict[str, Queue] = {}


def get_queue(queue_name: str = DEFAULT_QUEUE) -> Queue:
    if queue_name not in _queues:
        redis_client = get_redis_client()
        _queues[queue_name] = Queue(queue_name, connection=redis_client)
    return _queues[queue_name]


async def enqueue_task(
    func: Callable[..., Any],
    args: list[Any] | None = None,
    queue_name: str = DEFAULT_QUEUE,
    task_timeout: int | None = None,
    allow_retry: bool = True,
    **kwargs,
) -> str:
    queue = get_queue(queue_name)
    if not task_timeout or not isinstance(task_timeout, int):
        task_timeout = REDIS_TIMEOUT

    # Cap the task timeout to 30 minutes
    task_timeout = min(task_timeout, 1800)

    meta = {
        "retry_count": 0,
        "queue_name": queue_name,
        "allow_retry": allow_retry,
    }

    job = queue.enqueue(
        func, args=(args or []), job_timeout=task_timeout, meta=meta, **kwargs
    )

    logger.info(f"Enqueued job {job.id} to queue {queue_name}", "BLUE")
    return job.id


async def get_job_status(job_id: str) -> dict[str, Any] | None:
    redis_client = get_redis_client()

    try:
        job = Job.fetch(job_id, connection=redis_client)
    except NoSuchJobError:
        return None

    if job.is_finished:
        result = job.return_value()
        return {
            "job_id": job_id,
            "status": "completed",
            "result": None if result is None else str(result),
        }
    if job.is_failed:
        return {
            "job_id": job_id,
            "status": "failed",
            "error": job.latest_result().exc_string if job.latest_result() else None,
        }
    if job.is_queued or job.is_scheduled or job.is_deferred:
        return {"job_id": job_id, "status": "queued", "result": None}
    return {"job_id": job_id, "status": "running", "result": None}
