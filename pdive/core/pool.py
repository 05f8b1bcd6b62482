import logging
from concurrent.futures import ThreadPoolExecutor, as_completed


def clamp_workers(concurrency, ceiling=None):
    """At least one worker, never more than ``ceiling`` when a phase has one."""
    try:
        workers = int(concurrency)
    except (TypeError, ValueError):
        workers = 1
    workers = max(1, workers)
    if ceiling is not None:
        workers = min(workers, max(1, int(ceiling)))
    return workers


class WorkerPool:
    """
    Bounded-concurrency runner shared by every scanning phase.

    Items go into the executor's single work queue and idle threads pull the
    next one, so a slow host never leaves other workers waiting on a fixed
    slice. ``run`` returns once each item has been handled exactly once.
    An exception raised by one item is logged and does not stop the rest.
    """

    def __init__(self, name="pool"):
        self.name = name
        self.logger = logging.getLogger(f"pdive.pool.{name}")

    def run(self, items, concurrency, work, ceiling=None):
        """Returns the number of items whose work raised."""
        items = list(items)
        if not items:
            return 0

        workers = min(clamp_workers(concurrency, ceiling), len(items))
        self.logger.debug(f"{self.name}: {len(items)} items on {workers} workers")

        failures = 0
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"pdive-{self.name}") as executor:
            futures = [executor.submit(self._run_item, work, item) for item in items]
            for future in as_completed(futures):
                if not future.result():
                    failures += 1
        return failures

    def _run_item(self, work, item):
        try:
            work(item)
            return True
        except Exception as e:
            self.logger.error(f"{self.name}: work item {item!r} crashed: {e}", exc_info=True)
            return False
