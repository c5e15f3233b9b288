import argparse
import itertools
import signal
import sys
import time
from multiprocessing import Process

from lumindoc.config import (
    REDIS_MAX_WORKERS,
    REDIS_QUEUE,
    setup_logger,
)
from lumindoc.mq.exceptions import generic_exception_handler
from lumindoc.mq.worker import LumindocWorker


logger = setup_logger("worker-manager")


def run_worker(worker_id: int) -> None:
    worker = LumindocWorker(REDIS_QUEUE, worker_id, [generic_exception_handler])
    logger.info(f"Worker {worker_id} started", "BLUE")
    worker.work(with_scheduler=True)


class WorkerManager:
    """Keep a fixed pool of rq workers alive, restarting dead ones with back-off."""

    def __init__(self, worker_count: int = 2):
        self.worker_count = worker_count
        self.workers: dict[int, Process] = {}
        self.running = True
        self.restart_counts: dict[int, int] = {}
        self.pending_restarts: dict[int, float] = {}
        self.max_restart_attempts = 5
        self.base_restart_delay = 5
        # Worker names are registered in Redis, so a restarted worker gets a fresh id.
        self._ids = itertools.count(1)

        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

        logger.info(f"WorkerManager initialized with {self.worker_count} workers", "BLUE")

    def _signal_handler(self, signum, frame):
        logger.info(f"Received signal {signum}, stopping workers...", "BLUE")
        self.running = False
        self.stop_workers()
        sys.exit(0)

    def start_worker_process(self) -> int:
        worker_id = next(self._ids)
        process = Process(target=run_worker, args=(worker_id,))
        process.start()
        self.workers[worker_id] = process
        return worker_id

    def start_workers(self):
        for _ in range(self.worker_count):
            self.start_worker_process()
        logger.info(f"All {self.worker_count} summarization workers started", "BLUE")

    def stop_workers(self):
        logger.info(f"Stopping {len(self.workers)} workers...", "BLUE")

        for process in self.workers.values():
            if process.is_alive():
                process.terminate()
                process.join(timeout=5)
                if process.is_alive():
                    process.kill()

        logger.info("All workers stopped", "BLUE")

    def _reap_dead_workers(self):
        for worker_id, process in list(self.workers.items()):
            if process.is_alive():
                continue

            del self.workers[worker_id]
            attempts = self.restart_counts.get(worker_id, 0)
            if attempts >= self.max_restart_attempts:
                logger.error(f"Worker {worker_id} retired after {attempts} restart attempts", "RED")
                continue

            delay = self.base_restart_delay * (2**attempts)
            self.pending_restarts[worker_id] = time.time() + delay
            logger.warning(
                f"Worker {worker_id} died, restarting in {delay}s "
                f"(attempt {attempts + 1}/{self.max_restart_attempts})",
            )

    def _restart_due_workers(self):
        for worker_id, restart_at in list(self.pending_restarts.items()):
            if time.time() < restart_at:
                continue

            del self.pending_restarts[worker_id]
            new_id = self.start_worker_process()
            self.restart_counts[new_id] = self.restart_counts.get(worker_id, 0) + 1
            logger.info(f"Restarted worker {worker_id} as {new_id}", "GREEN")

    def run(self):
        try:
            self.start_workers()
            while self.running:
                self._reap_dead_workers()
                self._restart_due_workers()
                time.sleep(1)
        except KeyboardInterrupt:
            logger.info("Received interrupt signal", "BLUE")
        finally:
            self.stop_workers()


def main():
    parser = argparse.ArgumentParser(
        description="Launch summarization workers for Lumindoc"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=REDIS_MAX_WORKERS,
        help="Number of workers to start",
    )
    args = parser.parse_args()

    manager = WorkerManager(worker_count=args.workers)
    manager.run()


if __name__ == "__main__":
    main()
