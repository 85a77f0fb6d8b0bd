"""Data models for error payloads and overlay reports."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from rekindle.models.frame import Frame


@dataclass(frozen=True)
class ErrorPayload:
    """An error as received from the transport."""

    name: str
    message: str
    stack: str

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ErrorPayload":
        """Build from a decoded request body.

        Raises:
            ValueError: If ``stack`` is missing or not a string
        """
        stack = data.get("stack")
        if not isinstance(stack, str):
            raise ValueError("Error payload has no 'stack' string")
        return cls(
            name=str(data.get("name") or "Error"),
            message=str(data.get("message") or ""),
            stack=stack,
        )


@dataclass(frozen=True)
class MetaItem:
    """Version and documentation link for one component of the stack."""

    version: str
    docs: str

    def to_dict(self) -> dict[str, str]:
        return {"version": self.version, "docs": self.docs}


@dataclass(frozen=True)
class TraceReport:
    """Everything the overlay needs to render one error."""

    meta: dict[str, MetaItem] = field(default_factory=dict)
    trace: tuple[Frame, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        return {
            "meta": {name: item.to_dict() for name, item in self.meta.items()},
            "trace": [frame.to_dict() for frame in self.trace],
        }
