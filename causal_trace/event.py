"""
event.py

Causal trace Event: one decision recorded while an LLM generates code.

An Event captures WHAT was decided, WHY, which alternatives were
weighed and HOW confident the model was. Relationships to other events
(parent_id, depends_on) are plain ids looked up through the owning
Chain; they imply no ownership.

Design Invariants:
- Immutable once created (frozen, metadata deep-frozen)
- Hashable; metadata takes part in equality but not in the hash
- Type, confidence and text fields validated on construction
- Relationship fields are NOT validated here (see integrity.validate)
"""

import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Optional, Tuple


# =============================================================================
# Event Errors
# =============================================================================

class EventValidationError(Exception):
    """
    Raised when an Event cannot be constructed due to validation failure.
    """

    def __init__(
        self,
        message: str,
        *,
        field_name: Optional[str] = None,
        error_code: str = "V000",
    ):
        self.message = message
        self.field_name = field_name
        self.error_code = error_code
        super().__init__(self.format())

    def format(self) -> str:
        """Format as human-readable error message."""
        if self.field_name:
            return f"[{self.error_code}] Event validation failed for '{self.field_name}': {self.message}"
        return f"[{self.error_code}] Event validation failed: {self.message}"


class InvalidEventTypeError(EventValidationError):
    """Raised when the event type is not a known EventType."""

    def __init__(self, value: Any):
        super().__init__(
            message=f"Invalid event type: {value!r}",
            field_name="type",
            error_code="V001",
        )
        self.value = value


class InvalidConfidenceError(EventValidationError):
    """Raised when confidence is not a number in [0.0, 1.0]."""

    def __init__(self, value: Any):
        super().__init__(
            message=f"Confidence must be between 0.0 and 1.0, got: {value!r}",
            field_name="confidence",
            error_code="V002",
        )
        self.value = value


class MissingRequiredFieldError(EventValidationError):
    """Raised when decision or reasoning is missing or blank."""

    def __init__(self, field_name: str):
        super().__init__(
            message=f"Required field '{field_name}' must be a non-empty string",
            field_name=field_name,
            error_code="V003",
        )


# =============================================================================
# EventType
# =============================================================================

class EventType(str, Enum):
    """Closed set of event kinds."""

    # Reasoning
    HYPOTHESIS_FORMED = "hypothesis_formed"
    ALTERNATIVE_REJECTED = "alternative_rejected"
    CONSTRAINT_EVALUATED = "constraint_evaluated"
    PATTERN_APPLIED = "pattern_applied"
    AMBIGUITY_FLAGGED = "ambiguity_flagged"
    CONFIDENCE_UPDATED = "confidence_updated"

    # Training lifecycle
    TRAINING_STARTED = "training_started"
    TRAINING_COMPLETED = "training_completed"
    EPOCH_STARTED = "epoch_started"
    EPOCH_COMPLETED = "epoch_completed"
    BATCH_PROCESSED = "batch_processed"

    # Metrics
    LOSS_COMPUTED = "loss_computed"
    METRIC_RECORDED = "metric_recorded"
    GRADIENT_COMPUTED = "gradient_computed"

    # Checkpoints
    CHECKPOINT_SAVED = "checkpoint_saved"
    CHECKPOINT_LOADED = "checkpoint_loaded"
    EARLY_STOPPED = "early_stopped"

    # Deployment
    DEPLOYMENT_STARTED = "deployment_started"
    MODEL_LOADED = "model_loaded"
    INFERENCE_COMPLETED = "inference_completed"
    DEPLOYMENT_COMPLETED = "deployment_completed"

    # RL / feedback
    REWARD_RECEIVED = "reward_received"
    POLICY_UPDATED = "policy_updated"
    EXPERIENCE_SAMPLED = "experience_sampled"

    # Pipeline stages
    STAGE_STARTED = "stage_started"
    STAGE_COMPLETED = "stage_completed"

    @classmethod
    def parse(cls, value: Any) -> "EventType":
        """Coerce an EventType or its string value, else raise InvalidEventTypeError."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidEventTypeError(value) from None


# =============================================================================
# Helpers
# =============================================================================

def generate_id() -> str:
    """Random 32-character hex id."""
    return uuid.uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO 8601 string or datetime; fall back to now for anything else."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return utc_now()
    return utc_now()


def _freeze_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze_value(v) for k, v in value.items()})
    if isinstance(value, list):
        return tuple(_freeze_value(item) for item in value)
    if isinstance(value, set):
        return frozenset(_freeze_value(item) for item in value)
    return value


def _thaw_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _thaw_value(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_thaw_value(item) for item in value]
    return value


def freeze_metadata(metadata: Mapping) -> Mapping:
    """
    Deep-freeze a metadata mapping for immutability.

    Nested dicts become read-only mappings, lists become tuples and sets
    become frozensets. The caller's mapping is copied, never wrapped.
    """
    return _freeze_value(dict(metadata))


def thaw_metadata(metadata: Mapping) -> Dict[str, Any]:
    """Plain, mutable copy of frozen metadata for dict conversion."""
    return _thaw_value(metadata)


def _parse_confidence(value: Any) -> float:
    if isinstance(value, bool):
        return 1.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return 1.0
    return 1.0


# =============================================================================
# Event
# =============================================================================

@dataclass(frozen=True)
class Event:
    """
    Immutable record of one reasoning decision.

    Example:
        parent = Event(EventType.HYPOTHESIS_FORMED, "Use OTP", "Standard pattern")
        child = Event(
            EventType.PATTERN_APPLIED,
            "Use GenServer",
            "State management",
            confidence=0.85,
            parent_id=parent.id,
        )
    """
    type: EventType
    decision: str
    reasoning: str
    id: str = field(default_factory=generate_id)
    timestamp: datetime = field(default_factory=utc_now)
    alternatives: Tuple[str, ...] = ()
    confidence: float = 1.0
    code_section: Optional[str] = None
    spec_reference: Optional[str] = None
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False)
    parent_id: Optional[str] = None
    depends_on: Tuple[str, ...] = ()
    stage_id: Optional[str] = None
    experiment_id: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "type", EventType.parse(self.type))

        for name in ("decision", "reasoning"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise MissingRequiredFieldError(name)

        confidence = self.confidence
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            raise InvalidConfidenceError(confidence)
        if not 0.0 <= confidence <= 1.0:
            raise InvalidConfidenceError(confidence)

        object.__setattr__(self, "confidence", float(confidence))

        # Freeze sequences so equality does not depend on list vs tuple
        object.__setattr__(self, "alternatives", tuple(self.alternatives))
        object.__setattr__(self, "depends_on", tuple(self.depends_on))
        object.__setattr__(self, "metadata", freeze_metadata(self.metadata))

    @property
    def has_relationships(self) -> bool:
        """True if the event references a parent or dependencies."""
        return self.parent_id is not None or bool(self.depends_on)

    def with_changes(self, **changes: Any) -> "Event":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dictionary."""
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "type": self.type.value,
            "decision": self.decision,
            "alternatives": list(self.alternatives),
            "reasoning": self.reasoning,
            "confidence": self.confidence,
            "code_section": self.code_section,
            "spec_reference": self.spec_reference,
            "metadata": thaw_metadata(self.metadata),
            "parent_id": self.parent_id,
            "depends_on": list(self.depends_on),
            "stage_id": self.stage_id,
            "experiment_id": self.experiment_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        """
        Construct from a dictionary.

        Missing id and timestamp are generated; confidence may be given as
        a number or numeric string and defaults to 1.0.

        Raises:
            EventValidationError: If type, decision or reasoning is invalid
        """
        return cls(
            id=data.get("id") or generate_id(),
            timestamp=parse_timestamp(data.get("timestamp")),
            type=data.get("type", EventType.HYPOTHESIS_FORMED),
            decision=data.get("decision"),
            reasoning=data.get("reasoning"),
            alternatives=tuple(data.get("alternatives") or ()),
            confidence=_parse_confidence(data.get("confidence", 1.0)),
            code_section=data.get("code_section"),
            spec_reference=data.get("spec_reference"),
            metadata=dict(data.get("metadata") or {}),
            parent_id=data.get("parent_id"),
            depends_on=tuple(data.get("depends_on") or ()),
            stage_id=data.get("stage_id"),
            experiment_id=data.get("experiment_id"),
        )

    def __str__(self) -> str:
        return f"[{self.type.value}] {self.decision} ({self.confidence:.2f})"
