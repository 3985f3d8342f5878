"""Collaborator protocols.

These protocols define the contract between pagehand's core and the
collaborators it is handed at construction time: the executor the dispatch
guard drives, and the sink that receives post-hoc tool-use logs.  Consumers
inject their own implementations; nothing here is a process-wide singleton.
"""

from __future__ import annotations

import dataclasses
from typing import Any, Protocol, runtime_checkable

from pagehand.engine.actions import ActionRequest


@dataclasses.dataclass
class ToolUseRecord:
    """One tool invocation, as reported to the tool-use sink."""

    tool_name: str
    input: dict[str, Any]
    output: dict[str, Any]
    duration_ms: float
    status: str  # success, error
    conversation_id: str = ""
    message_id: str = ""


@runtime_checkable
class ActionExecutor(Protocol):
    """Runs one action against the page, raising on failure.

    The Actor is the production implementation; tests use fakes.
    """

    def execute(self, request: ActionRequest) -> None: ...


@runtime_checkable
class ToolUseSink(Protocol):
    """Receives tool-use logs (analytics store, file, ...).

    Lifecycle is explicit: ``connect()`` once at startup, ``close()`` at
    shutdown.  ``log_tool_use`` is only called while ``is_ready()``.
    """

    def connect(self) -> None: ...

    def is_ready(self) -> bool: ...

    def close(self) -> None: ...

    def log_tool_use(self, record: ToolUseRecord) -> None: ...
