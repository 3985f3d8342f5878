"""pagehand Dispatch Guard — At-most-once execution per action identity.

Assistant messages can be re-rendered and re-observed many times; each
action attached to a message must still run only once.  The guard tracks
every Action Identity through ``unseen -> executing -> completed`` and
skips any identity it has already started.  Failures are terminal: a failed
action is marked completed and never retried automatically.

The guard is a hygiene layer, not a serializer.  Distinct identities may run
concurrently; callers that need ordering (all actions from one assistant turn)
should use :meth:`DispatchGuard.dispatch_message`, which awaits each action
before issuing the next.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
import time
from typing import Sequence

from pagehand.engine.actions import ActionOutcome, ActionRequest
from pagehand.engine.protocols import ActionExecutor

logger = logging.getLogger("pagehand.engine.dispatch_guard")

UNSEEN = "unseen"
EXECUTING = "executing"
COMPLETED = "completed"


def action_identity(message_id: str, index: int) -> str:
    """Deduplication key for the *index*-th action in an assistant message."""
    return f"{message_id}:{index}"


@dataclasses.dataclass
class DispatchResult:
    identity: str
    status: str  # executed, failed, skipped
    outcome: ActionOutcome | None = None

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"


class DispatchGuard:
    """Wraps an executor so each identity runs at most once per conversation render."""

    def __init__(self, executor: ActionExecutor) -> None:
        self._executor = executor
        self._lock = threading.Lock()
        self._executing: set[str] = set()
        self._completed: set[str] = set()
        self._generation = 0

    def state(self, identity: str) -> str:
        with self._lock:
            if identity in self._executing:
                return EXECUTING
            if identity in self._completed:
                return COMPLETED
            return UNSEEN

    def dispatch(self, identity: str, request: ActionRequest) -> DispatchResult:
        """Run *request* unless *identity* is already executing or completed.

        Never raises for action failures; they are logged and reported in the
        result.
        """
        with self._lock:
            if identity in self._executing or identity in self._completed:
                logger.debug("Skipping %s (%s already seen)", request.action.value, identity)
                return DispatchResult(identity=identity, status="skipped")
            self._executing.add(identity)
            generation = self._generation

        start = time.monotonic()
        error: str | None = None
        try:
            self._executor.execute(request)
        except Exception as exc:
            error = f"{type(exc).__name__}: {exc}"
            logger.warning("Action %s (%s) failed: %s", request.action.value, identity, error)
        finally:
            with self._lock:
                # A reset during execution started a new render; leave its state alone.
                if generation == self._generation:
                    self._executing.discard(identity)
                    self._completed.add(identity)

        outcome = ActionOutcome(
            success=error is None,
            action=request.action.value,
            selector=request.selector,
            error=error,
            duration_ms=round((time.monotonic() - start) * 1000, 1),
        )
        return DispatchResult(identity=identity, status="executed" if error is None else "failed", outcome=outcome)

    def dispatch_message(self, message_id: str, requests: Sequence[ActionRequest]) -> list[DispatchResult]:
        """Run a message's actions strictly in order, one settling before the next starts.

        A failed action does not stop the remaining ones.
        """
        return [self.dispatch(action_identity(message_id, i), req) for i, req in enumerate(requests)]

    def reset(self) -> None:
        """Forget all identities (a new conversation render)."""
        with self._lock:
            if self._executing:
                logger.warning("Resetting guard with %d actions still executing", len(self._executing))
            self._executing.clear()
            self._completed.clear()
            self._generation += 1
