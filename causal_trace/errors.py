"""
errors.py

Error taxonomy for causal trace analysis.

Operations in this package never raise these errors as control flow.
They are returned inside a Result so the caller decides whether to
inspect, log, or re-raise them (see Result.unwrap()).

Error codes:
- R001  event not found
- R002  missing parent/dependency reference
- R003  cycle in the relationship graph
- R004  unknown match strategy
"""

from typing import List, Optional, Sequence, Tuple


class TraceError(Exception):
    """Base class for all trace analysis errors."""

    def __init__(
        self,
        message: str,
        *,
        error_code: str = "R000",
        suggestions: Optional[List[str]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.suggestions = suggestions or []
        super().__init__(self.format())

    def format(self) -> str:
        """Format as single-line error message."""
        return f"[{self.error_code}] {self.message}"

    def format_full(self) -> str:
        """Format as multi-line message including suggestions."""
        lines = [f"Error {self.error_code}", "", f"  {self.message}"]

        if self.suggestions:
            lines.append("")
            if len(self.suggestions) == 1:
                lines.append(f"  Suggestion: {self.suggestions[0]}")
            else:
                lines.append("  Suggestions:")
                for suggestion in self.suggestions:
                    lines.append(f"    - {suggestion}")

        return "\n".join(lines)


class EventNotFoundError(TraceError):
    """Raised when a queried event id does not exist in the chain."""

    def __init__(self, event_id: str, chain_id: Optional[str] = None):
        chain_info = f" in chain '{chain_id}'" if chain_id else ""
        super().__init__(
            message=f"Event '{event_id}' not found{chain_info}",
            error_code="R001",
        )
        self.event_id = event_id
        self.chain_id = chain_id


class MissingReferenceError(TraceError):
    """Raised when parent_id or depends_on points at a nonexistent event."""

    FIELDS = ("parent", "depends_on")

    def __init__(self, field: str, reference_id: str, event_id: Optional[str] = None):
        owner = f" on event '{event_id}'" if event_id else ""
        super().__init__(
            message=f"Missing {field} reference '{reference_id}'{owner}",
            error_code="R002",
            suggestions=[
                f"Add an event with id '{reference_id}' to the chain",
                f"Clear the {field} reference",
            ],
        )
        self.field = field
        self.reference_id = reference_id
        self.event_id = event_id


class CycleDetectedError(TraceError):
    """Raised when parent/dependency edges form a circular reference."""

    def __init__(self, cycle: Sequence[str]):
        self.cycle: Tuple[str, ...] = tuple(cycle)
        path = " -> ".join(self.cycle + self.cycle[:1])
        super().__init__(
            message=f"Circular reference detected: {path}",
            error_code="R003",
            suggestions=["Remove one parent_id or depends_on edge on the cycle"],
        )

    @property
    def node(self) -> str:
        """One event id on the offending cycle."""
        return self.cycle[0]


class InvalidMatchStrategyError(TraceError):
    """Raised when an unrecognized match_by value is supplied."""

    def __init__(self, value: object, valid_values: Sequence[str]):
        super().__init__(
            message=f"Invalid match strategy {value!r}",
            error_code="R004",
            suggestions=[f"Use one of: {', '.join(valid_values)}"],
        )
        self.value = value
        self.valid_values = tuple(valid_values)
