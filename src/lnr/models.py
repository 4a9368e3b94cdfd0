"""
Typed records for Linear reference data, user selections and tickets.

Records arrive as loosely-typed JSON (from the API or the disk cache) and are
decoded here. Nothing past this module handles raw dicts.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from .errors import LnrError


class DecodeError(LnrError):
    """Raised when a record is missing a required field or has the wrong shape."""

    def __init__(self, message: str):
        super().__init__("decode_error", message)


def _require_str(record: Any, key: str, kind: str) -> str:
    if not isinstance(record, dict):
        raise DecodeError(f"{kind} record must be an object, got {type(record).__name__}")
    if key not in record:
        raise DecodeError(f"{kind} record is missing '{key}'")
    value = record[key]
    if not isinstance(value, str):
        raise DecodeError(f"{kind} field '{key}' must be a string, got {type(value).__name__}")
    return value


def _optional_str(record: dict[str, Any], key: str, kind: str) -> str:
    value = record.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DecodeError(f"{kind} field '{key}' must be a string, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class Team:
    id: str
    name: str

    @classmethod
    def from_record(cls, record: Any) -> Team:
        return cls(id=_require_str(record, "id", "team"), name=_require_str(record, "name", "team"))


@dataclass(frozen=True)
class Label:
    id: str
    name: str

    @classmethod
    def from_record(cls, record: Any) -> Label:
        return cls(id=_require_str(record, "id", "label"), name=_require_str(record, "name", "label"))


@dataclass(frozen=True)
class User:
    id: str
    name: str
    email: str

    @classmethod
    def from_record(cls, record: Any) -> User:
        return cls(
            id=_require_str(record, "id", "user"),
            name=_require_str(record, "name", "user"),
            email=_require_str(record, "email", "user"),
        )


@dataclass(frozen=True)
class WorkflowState:
    id: str
    name: str
    type: str = ""  # backlog, unstarted, started, completed, canceled, triage

    @classmethod
    def from_record(cls, record: Any) -> WorkflowState:
        return cls(
            id=_require_str(record, "id", "workflow state"),
            name=_require_str(record, "name", "workflow state"),
            type=_optional_str(record, "type", "workflow state"),
        )


def decode_list(payload: Any, record_type: type, kind: str) -> list[Any]:
    """
    Decode a JSON array into a list of records.

    Args:
        payload: Value read from the cache or an API response.
        record_type: Team, Label, User or WorkflowState.
        kind: Name used in error messages.

    Raises:
        DecodeError: If the payload is not a list or any record is malformed.
    """
    if not isinstance(payload, list):
        raise DecodeError(f"cached {kind} must be a list, got {type(payload).__name__}")
    return [record_type.from_record(item) for item in payload]


def encode_list(records: list[Any]) -> list[dict[str, Any]]:
    return [asdict(record) for record in records]


@dataclass
class UserSelections:
    """Last-used form answers, persisted under the "user-selections" key."""

    team_id: str = ""
    assignee_id: str = ""
    labels: list[str] = field(default_factory=list)
    estimate: str = ""
    status_id: str = ""

    @classmethod
    def from_record(cls, record: Any) -> UserSelections:
        if not isinstance(record, dict):
            raise DecodeError(f"user selections must be an object, got {type(record).__name__}")
        labels = record.get("labels") or []
        if not isinstance(labels, list) or not all(isinstance(x, str) for x in labels):
            raise DecodeError("user selections field 'labels' must be a list of strings")
        return cls(
            team_id=_optional_str(record, "teamId", "user selections"),
            assignee_id=_optional_str(record, "assigneeId", "user selections"),
            labels=list(labels),
            estimate=_optional_str(record, "estimate", "user selections"),
            status_id=_optional_str(record, "statusId", "user selections"),
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "teamId": self.team_id,
            "assigneeId": self.assignee_id,
            "labels": list(self.labels),
            "estimate": self.estimate,
            "statusId": self.status_id,
        }


@dataclass
class Ticket:
    """Form state for the issue being written."""

    team_id: str
    title: str = ""
    description: str = ""
    estimate: str = ""
    labels: list[str] = field(default_factory=list)
    assignee_id: str = ""
    status_id: str = ""

    def to_selections(self) -> UserSelections:
        return UserSelections(
            team_id=self.team_id,
            assignee_id=self.assignee_id,
            labels=list(self.labels),
            estimate=self.estimate,
            status_id=self.status_id,
        )


@dataclass(frozen=True)
class CreatedIssue:
    id: str
    identifier: str
    title: str = ""
    url: str = ""

    @classmethod
    def from_record(cls, record: Any) -> CreatedIssue:
        return cls(
            id=_require_str(record, "id", "issue"),
            identifier=_require_str(record, "identifier", "issue"),
            title=_optional_str(record, "title", "issue"),
            url=_optional_str(record, "url", "issue"),
        )


@dataclass(frozen=True)
class Option:
    """One entry in a select list; lists of options keep display order."""

    label: str
    value: str
