# ABOUTME: Execution engine: binds parameters and steps cached statements under the connection lock.
# ABOUTME: Retries busy conditions with backoff and turns store errors into failed results.

import logging
import sqlite3
import time
from collections.abc import Callable, Sequence
from contextlib import AbstractContextManager, nullcontext
from dataclasses import dataclass
from typing import Any

from bookarchive.db.errors import (
    ArchiveError,
    BindError,
    CompileError,
    ConstraintViolation,
    ContentionExhausted,
    is_busy_error,
)
from bookarchive.db.mapping import BookRecord, row_to_record
from bookarchive.db.rwlock import ReadWriteLock
from bookarchive.db.statements import CompiledStatement, StatementCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Busy-retry budget: `max_retries` sleeps, doubling from `base_delay` seconds."""

    max_retries: int = 5
    base_delay: float = 0.010

    def delay(self, retry: int) -> float:
        """Seconds to wait before the given 0-based retry."""
        return self.base_delay * (2**retry)


class ExecutionEngine:
    """Runs parameterized SQL through the statement cache.

    Writes hold the connection lock exclusively for their whole retry loop.
    Reads take it in shared mode around each individual step and release it
    in between, so a long scan never blocks other readers.

    Args:
        cache: Statement cache bound to the shared connection.
        lock: Reader/writer lock guarding statement stepping on the connection.
        retry_policy: Busy-retry budget. Defaults to 5 retries from 10 ms.
        sleep: Blocking sleep used between retries; injectable for tests.
    """

    def __init__(
        self,
        cache: StatementCache,
        *,
        lock: ReadWriteLock | None = None,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._cache = cache
        self._lock = lock or ReadWriteLock()
        self._policy = retry_policy or RetryPolicy()
        self._sleep = sleep

    @property
    def connection_lock(self) -> ReadWriteLock:
        return self._lock

    def execute_write(self, sql: str, params: Sequence[Any] = ()) -> bool:
        """Execute a data-modifying statement to completion.

        Returns:
            True if the statement ran to completion, False otherwise. Failures
            (compile, bind, constraint, exhausted retries) are logged.
        """
        logger.debug("Executing SQL: %s with %d parameters", sql, len(params))
        try:
            statement = self._cache.get_or_compile(sql)
        except CompileError as exc:
            logger.error("%s", exc)
            return False

        with statement.lock:
            try:
                self._prepare(statement, params)
                with self._lock.write_lock():
                    row = self._step(statement, nullcontext)
            except BindError as exc:
                logger.error("%s", exc)
                return False
            except (ArchiveError, sqlite3.Error) as exc:
                logger.error("Failed to execute SQL: %s", exc)
                return False
            finally:
                statement.reset()

        if row is not None:
            logger.error("Failed to execute SQL: statement returned rows instead of completing")
            return False
        return True

    def execute_read(self, sql: str, params: Sequence[Any] = ()) -> list[BookRecord]:
        """Run a query and collect every row as a BookRecord.

        Returns:
            All rows up to the end of the result set. If the scan fails part
            way, the rows already collected are returned and the error is
            logged. Compile and bind failures return an empty list.
        """
        logger.debug("Executing query: %s", sql)
        results: list[BookRecord] = []
        try:
            statement = self._cache.get_or_compile(sql)
        except CompileError as exc:
            logger.error("%s", exc)
            return results

        with statement.lock:
            try:
                self._prepare(statement, params)
            except BindError as exc:
                logger.error("%s", exc)
                return results

            try:
                while True:
                    try:
                        row = self._step(statement, self._lock.read_lock)
                    except (ArchiveError, sqlite3.Error) as exc:
                        logger.error("Failed to execute query: %s", exc)
                        break
                    if row is None:
                        break
                    results.append(row_to_record(row))
            finally:
                statement.reset()

        if results:
            logger.debug("Query returned %d results", len(results))
        else:
            logger.debug("Query returned no results")
        return results

    def _prepare(self, statement: CompiledStatement, params: Sequence[Any]) -> None:
        """Reset the statement, clear stale bindings, and bind `params` as text."""
        statement.reset()
        statement.clear_bindings()
        if len(params) != statement.param_count:
            raise BindError(
                min(len(params), statement.param_count) + 1,
                f"statement takes {statement.param_count} parameters, {len(params)} supplied",
            )
        for index, value in enumerate(params, start=1):
            statement.bind(index, str(value))

    def _step(
        self,
        statement: CompiledStatement,
        guard: Callable[[], AbstractContextManager[Any]],
    ) -> Any:
        """Step once, retrying while the store reports contention.

        `guard` is entered around each step call only; retry sleeps happen
        outside it.

        A busy error part way through a scan is not retried: the cursor has
        already discarded the result set.

        Raises:
            ContentionExhausted: If the store is still busy after every retry,
                or contention interrupts a scan in progress.
            ConstraintViolation: If a constraint rejects the statement.
            sqlite3.Error: For any other engine failure.
        """
        retries = 0
        while True:
            resuming = statement.active
            try:
                with guard():
                    return statement.step()
            except sqlite3.IntegrityError as exc:
                raise ConstraintViolation(str(exc)) from exc
            except sqlite3.OperationalError as exc:
                if not is_busy_error(exc):
                    raise
                if resuming:
                    # Rows already returned cannot be replayed; the scan ends here.
                    raise ContentionExhausted(
                        f"database busy during scan, result set abandoned: {exc}"
                    ) from exc
                if retries >= self._policy.max_retries:
                    raise ContentionExhausted(
                        f"database still busy after {retries} retries: {exc}"
                    ) from exc
                delay = self._policy.delay(retries)
                retries += 1
                logger.debug(
                    "Database busy, retrying... (%d/%d)", retries, self._policy.max_retries
                )
                self._sleep(delay)
