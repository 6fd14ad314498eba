"""
TASKCHAT - Operation Types

The generator's payload is untrusted: every field is read one at a time
with an explicit fallback, and an entry that cannot be understood is
dropped rather than failing the whole payload.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from taskchat.constants import OPERATION_MAP
from taskchat.lists.enums import OperationKind

logger = logging.getLogger(__name__)


@dataclass
class TaskPayload:
    """One task entry as the generator sent it. `data` keeps only the keys it supplied."""

    title: str
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, raw: Any) -> Optional["TaskPayload"]:
        if isinstance(raw, str):
            return cls(title=raw, data={"title": raw})
        if not isinstance(raw, dict):
            return None
        title = raw.get("title")
        if not isinstance(title, str):
            return None
        return cls(title=title, data=dict(raw))


@dataclass
class ListOperation:
    """One instruction for a single list."""

    title: str
    kind: OperationKind = OperationKind.ADD
    is_add_to_existing: bool = False
    category: Optional[str] = None
    list_id: Optional[str] = None
    new_title: Optional[str] = None
    tasks: List[TaskPayload] = field(default_factory=list)
    titles_to_delete: List[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, raw: Any) -> Optional["ListOperation"]:
        if not isinstance(raw, dict):
            logger.debug(f"Skipping non-object list operation: {raw!r}")
            return None

        title = _as_text(raw.get("title"))
        list_id = _as_text(raw.get("id"))
        if not title and not list_id:
            logger.debug("Skipping list operation without title or id")
            return None

        kind = parse_operation_kind(raw.get("operation"))
        tasks = [p for p in (TaskPayload.from_payload(t) for t in _as_list(raw.get("tasks"))) if p]

        titles_to_delete: List[str] = []
        if kind == OperationKind.DELETE:
            titles_to_delete = [p.title for p in tasks]
            titles_to_delete.extend(t for t in _as_list(raw.get("tasksToDelete")) if isinstance(t, str))
            tasks = []

        return cls(
            title=title or "",
            kind=kind,
            is_add_to_existing=_as_bool(raw.get("isAddToExisting")),
            category=_as_text(raw.get("category")),
            list_id=list_id,
            new_title=_as_text(raw.get("newTitle")),
            tasks=tasks,
            titles_to_delete=titles_to_delete,
        )


@dataclass
class Extraction:
    """What the extractor recovered from one assistant reply."""

    reply: str
    operations: List[ListOperation] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
    confirmation_message: Optional[str] = None
    has_payload: bool = False


def parse_operation_kind(value: Any) -> OperationKind:
    """Unknown or missing kinds fall back to add."""
    if isinstance(value, str):
        mapped = OPERATION_MAP.get(value.strip().lower())
        if mapped:
            return OperationKind(mapped)
        if value.strip():
            logger.warning(f"Unknown operation '{value}', treating as add")
    return OperationKind.ADD


def operations_from_payload(payload: Dict[str, Any]) -> List[ListOperation]:
    operations = []
    for raw in _as_list(payload.get("taskLists")):
        operation = ListOperation.from_payload(raw)
        if operation is not None:
            operations.append(operation)
    return operations


def suggestions_from_payload(payload: Dict[str, Any]) -> List[str]:
    return [s.strip() for s in _as_list(payload.get("suggestions")) if isinstance(s, str) and s.strip()]


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, (str, int)) and not isinstance(value, bool):
        text = str(value).strip()
        return text or None
    return None


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return value is True
