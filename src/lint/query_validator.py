"""
Query Validator Rule - dry-run validation of task queries against a warehouse.

Tasks of the configured type are processed by a fixed pool of worker threads
fed through a bounded queue. Each worker extracts the statements of a task and
validates all of them at once, one thread per statement. The pool size bounds
the number of tasks in flight, not the number of concurrent warehouse calls:
a task with many statements fans out fully. Throughput is preferred over a
strict limit on warehouse connections.
"""

import logging
import queue
import threading
from typing import List, Optional, Protocol, Union

from ..exceptions import LintError, QueryExtractionError
from ..pipeline.models import Pipeline, Task
from ..query.extractor import ExplainableQuery
from .issue import Issue

TASK_QUEUE_SIZE = 256

_STOP = object()


class QueryValidator(Protocol):
    """Warehouse dry-run capability."""

    def is_valid(self, query: str) -> bool:
        """Return True when the query compiles, raise with the warehouse diagnostic otherwise."""
        ...


class QueryExtractor(Protocol):
    """Extracts the explainable queries of an executable file."""

    def extract_queries_from_file(self, file_path: str) -> List[ExplainableQuery]:
        ...


class _WorkerFailure:
    def __init__(self, task: Task, error: BaseException):
        self.task = task
        self.error = error


class QueryValidatorRule:
    """
    Validates every query of every task of a given type.

    A worker count of 0 disables the rule, which is how a run without warehouse
    credentials skips query validation.
    """

    def __init__(
        self,
        identifier: str,
        task_type: str,
        validator: QueryValidator,
        extractor: QueryExtractor,
        worker_count: int,
        logger: Optional[logging.Logger] = None
    ):
        self.identifier = identifier
        self.task_type = task_type
        self.validator = validator
        self.extractor = extractor
        self.worker_count = worker_count
        self.logger = logger or logging.getLogger(__name__)

    @property
    def name(self) -> str:
        return self.identifier

    def _validate_query(self, task: Task, index: int, found_query: ExplainableQuery,
                        issues: List[Issue], lock: threading.Lock) -> None:
        self.logger.debug("Checking if a query is valid")
        explain_query = found_query.to_explain_query()

        issue = None
        try:
            if not self.validator.is_valid(explain_query):
                issue = Issue(
                    task=task,
                    description=f"Query '{found_query.query}' is invalid",
                    context=[f"Query: {explain_query}"],
                )
        except Exception as e:
            issue = Issue(
                task=task,
                description=f"Invalid query found at index {index}: {e}",
                context=[f"Query: {explain_query}"],
            )

        if issue is not None:
            with lock:
                issues.append(issue)

        self.logger.debug("Finished with query checking")

    def validate_task(self, task: Task) -> List[Issue]:
        """Validate all the queries of a single task."""
        path = task.executable_file.path
        try:
            queries = self.extractor.extract_queries_from_file(path)
        except (QueryExtractionError, OSError, UnicodeDecodeError) as e:
            return [Issue(task=task, description=f"Cannot read executable file '{path}': {e}")]

        self.logger.debug(f"Found {len(queries)} queries in file '{path}'")
        if not queries:
            return [Issue(task=task, description=f"No queries found in executable file '{path}'")]

        issues: List[Issue] = []
        lock = threading.Lock()
        threads = [
            threading.Thread(
                target=self._validate_query,
                args=(task, index, found_query, issues, lock),
                daemon=True,
            )
            for index, found_query in enumerate(queries)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        return issues

    def _worker(self, tasks: "queue.Queue", results: "queue.Queue") -> None:
        while True:
            task = tasks.get()
            if task is _STOP:
                return

            try:
                results.put(self.validate_task(task))
            except Exception as e:
                results.put(_WorkerFailure(task, e))

    def validate(self, pipeline: Pipeline) -> List[Issue]:
        """
        Validate the queries of every matching task in the pipeline.

        Returns:
            Issues of all tasks, concatenated in completion order

        Raises:
            LintError: If a worker failed outside of per-query validation
        """
        issues: List[Issue] = []
        if self.worker_count == 0:
            return issues

        self.logger.debug(f"Starting validation with {self.worker_count} workers for task type '{self.task_type}'")

        tasks: "queue.Queue" = queue.Queue(maxsize=TASK_QUEUE_SIZE)
        results: "queue.Queue[Union[List[Issue], _WorkerFailure]]" = queue.Queue()

        workers = [
            threading.Thread(target=self._worker, args=(tasks, results), daemon=True)
            for _ in range(self.worker_count)
        ]
        for worker in workers:
            worker.start()

        processed_task_count = 0
        for task in pipeline.tasks:
            if task.type != self.task_type:
                self.logger.debug(f"Skipping task '{task.name}', task type not matched")
                continue

            processed_task_count += 1
            tasks.put(task)

        self.logger.info(
            f"Processed {processed_task_count} tasks at path '{pipeline.definition_file.path}', closing queue"
        )
        for _ in workers:
            tasks.put(_STOP)

        failure = None
        for i in range(processed_task_count):
            result = results.get()
            self.logger.debug(f"Received issues: {i + 1}/{processed_task_count}")
            if isinstance(result, _WorkerFailure):
                failure = failure or result
                continue
            issues.extend(result)

        if failure is not None:
            raise LintError(
                f"Query validation failed for task '{failure.task.name}': {failure.error}"
            ) from failure.error

        return issues
