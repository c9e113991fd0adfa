"""Asynchronous preparation of component batches on a bounded worker pool.

Each identifier in a batch goes through recipe materialization and then
artifact acquisition, strictly in request order. The first failure aborts the
batch; a stop request is honored between identifiers. Nothing prepared before
a failure or a stop is rolled back.
"""

from __future__ import annotations

from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from threading import Event, Lock
from types import TracebackType

from packages.fleet_core.components.artifacts import ArtifactPreparer
from packages.fleet_core.components.errors import packaging_error_detail
from packages.fleet_core.components.identifiers import ComponentIdentifier
from packages.fleet_core.components.materializer import RecipeMaterializer
from packages.fleet_shared.ids import generate_ulid_str
from packages.fleet_shared.logging import fields, get_logger, log_context

_LOGGER = get_logger(__name__)


class PreparationHandle:
    """Caller-side view of one in-flight preparation batch."""

    def __init__(
        self,
        *,
        batch_id: str,
        identifiers: tuple[ComponentIdentifier, ...],
        stop: Event,
    ) -> None:
        self._batch_id = batch_id
        self._identifiers = identifiers
        self._stop = stop
        self._prepared: list[ComponentIdentifier] = []
        self._lock = Lock()
        self._future: Future[tuple[ComponentIdentifier, ...]] | None = None

    @property
    def batch_id(self) -> str:
        """Return the identifier used to correlate this batch in logs."""
        return self._batch_id

    @property
    def identifiers(self) -> tuple[ComponentIdentifier, ...]:
        """Return the requested identifiers in processing order."""
        return self._identifiers

    @property
    def prepared(self) -> tuple[ComponentIdentifier, ...]:
        """Return identifiers fully prepared so far."""
        with self._lock:
            return tuple(self._prepared)

    @property
    def stop_requested(self) -> bool:
        """Return True once ``cancel`` has been called."""
        return self._stop.is_set()

    @property
    def cancelled_early(self) -> bool:
        """Return True when a stop request left identifiers unprocessed."""
        return self._stop.is_set() and len(self.prepared) < len(self._identifiers)

    def cancel(self) -> bool:
        """Request a cooperative stop; return True if the batch never started."""
        self._stop.set()
        return self._future is not None and self._future.cancel()

    def done(self) -> bool:
        """Return True when the batch has finished, failed, or been cancelled."""
        return self._future is not None and self._future.done()

    def result(self, timeout: float | None = None) -> tuple[ComponentIdentifier, ...]:
        """Block until the batch ends and return prepared identifiers.

        Re-raises the failure that aborted the batch. A batch cancelled before
        it started raises ``concurrent.futures.CancelledError``.
        """
        if self._future is None:
            raise RuntimeError("preparation batch was never submitted")
        return self._future.result(timeout=timeout)

    def _attach(self, future: Future[tuple[ComponentIdentifier, ...]]) -> None:
        self._future = future

    def _record(self, identifier: ComponentIdentifier) -> None:
        with self._lock:
            self._prepared.append(identifier)


class PreparationOrchestrator:
    """Run preparation batches on a bounded pool of worker threads."""

    def __init__(
        self,
        *,
        materializer: RecipeMaterializer,
        artifacts: ArtifactPreparer,
        worker_count: int = 1,
    ) -> None:
        if worker_count <= 0:
            raise ValueError("worker_count must be > 0")
        self._materializer = materializer
        self._artifacts = artifacts
        self._executor = ThreadPoolExecutor(
            max_workers=worker_count, thread_name_prefix="fleet-prepare"
        )

    def prepare(self, identifiers: Iterable[ComponentIdentifier]) -> PreparationHandle:
        """Submit one batch and return immediately with its handle."""
        handle = PreparationHandle(
            batch_id=generate_ulid_str(),
            identifiers=tuple(identifiers),
            stop=Event(),
        )
        handle._attach(self._executor.submit(self._run_batch, handle))
        return handle

    def prepare_one(self, identifier: ComponentIdentifier) -> None:
        """Materialize the recipe and artifacts of one identifier synchronously."""
        recipe = self._materializer.ensure_recipe(identifier)
        self._artifacts.ensure_artifacts(identifier, recipe.artifacts)

    def shutdown(self, *, wait: bool = True) -> None:
        """Stop accepting batches and release the worker pool."""
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> PreparationOrchestrator:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.shutdown()

    def _run_batch(self, handle: PreparationHandle) -> tuple[ComponentIdentifier, ...]:
        with log_context({fields.BATCH_ID: handle.batch_id}):
            for identifier in handle.identifiers:
                if handle.stop_requested:
                    with log_context({fields.EVENT: fields.PREPARE_BATCH_STOPPED_EVENT}):
                        _LOGGER.info(
                            "Preparation stopped before %s; %d of %d prepared",
                            identifier,
                            len(handle.prepared),
                            len(handle.identifiers),
                        )
                    break
                self._prepare_logged(identifier)
                handle._record(identifier)
            return handle.prepared

    def _prepare_logged(self, identifier: ComponentIdentifier) -> None:
        with log_context({fields.COMPONENT: identifier}):
            with log_context({fields.EVENT: fields.PREPARE_COMPONENT_START_EVENT}):
                _LOGGER.info("Preparing component")
            try:
                self.prepare_one(identifier)
            except Exception as exc:
                detail = packaging_error_detail(exc)
                with log_context(
                    {
                        fields.EVENT: fields.PREPARE_COMPONENT_FAILED_EVENT,
                        fields.ERROR_CATEGORY: detail.category.value,
                        fields.ERROR_CODE: detail.code,
                        fields.RETRYABLE: detail.retryable,
                    }
                ):
                    _LOGGER.error("Failed to prepare component", exc_info=exc)
                raise
            with log_context({fields.EVENT: fields.PREPARE_COMPONENT_FINISHED_EVENT}):
                _LOGGER.info("Prepared component")
