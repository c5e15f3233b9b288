import logging
from typing import Callable

from rq import Worker

from lumindoc.config import (
    REDIS_DEFAULT_TTL,
    get_redis_client,
    setup_logger,
)


logger = setup_logger("worker")


class LumindocWorker(Worker):
    def __init__(
        self,
        queues: list[str],
        suffix: str | int,
        exception_handlers: list[Callable] | None = None,
    ):
        super().__init__(
            queues,
            name=f"lumindoc:worker:{suffix}",
            default_result_ttl=REDIS_DEFAULT_TTL,
            connection=get_redis_client(),
            exception_handlers=exception_handlers,
            log_job_description=False,
        )

        rq_logger = logging.getLogger("rq.worker")
        rq_logger.setLevel(logging.WARNING)
