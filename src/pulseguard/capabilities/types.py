"""Types shared across the action pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

ParameterType = Literal["string", "number", "boolean", "array", "object"]


class Category(str, Enum):
    HEALTH_LOGGING = "health_logging"
    REMINDERS = "reminders"
    CARE_RECORDS = "care_records"
    READ_ONLY = "read_only"


class Sensitivity(str, Enum):
    """Risk tier; decides how much evidence an action needs before it runs."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class CapabilityParameter:
    name: str
    type: ParameterType
    description: str
    required: bool = False
    enum: tuple[str, ...] | None = None
    example: Any = None


@dataclass(frozen=True)
class CapabilityDefinition:
    """An operation the assistant may request.

    Definitions are immutable and built once at startup. ``free_text``
    capabilities carry the user's own words and are parsed by their handler
    before a confirmation prompt can be shown.
    """

    id: str
    name: str
    description: str
    category: Category
    sensitivity: Sensitivity
    requires_confirmation: bool
    parameters: tuple[CapabilityParameter, ...] = ()
    safety_notes: tuple[str, ...] = ()
    free_text: bool = False

    def parameter(self, name: str) -> CapabilityParameter | None:
        for param in self.parameters:
            if param.name == name:
                return param
        return None

    @property
    def parameter_names(self) -> frozenset[str]:
        return frozenset(p.name for p in self.parameters)

    @property
    def required_parameters(self) -> list[CapabilityParameter]:
        return [p for p in self.parameters if p.required]


@dataclass
class ActionRequest:
    """A single requested action, parsed from a reply or rebuilt from a confirmation.

    ``prepared`` holds structured fields a handler derived from free text
    during preview; it is only set on requests rebuilt from a confirmation.
    """

    id: str
    capability_id: str
    parameters: dict[str, Any] = field(default_factory=dict)
    confidence: float = 0.8
    reasoning: str | None = None
    prepared: dict[str, Any] | None = None
    confirmed: bool = False


@dataclass
class ExecutionResult:
    """Outcome of one action request."""

    success: bool
    request_id: str
    capability_id: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    requires_confirmation: bool = False
    confirmation_prompt: str | None = None
    crisis: bool = False

    @classmethod
    def ok(cls, request: ActionRequest, message: str, **data: Any) -> "ExecutionResult":
        return cls(
            success=True,
            request_id=request.id,
            capability_id=request.capability_id,
            message=message,
            data=data,
        )

    @classmethod
    def failed(
        cls, request: ActionRequest, message: str, error: str | None = None
    ) -> "ExecutionResult":
        return cls(
            success=False,
            request_id=request.id,
            capability_id=request.capability_id,
            message=message,
            error=error or message,
        )

    @classmethod
    def pending(
        cls, request: ActionRequest, prompt: str, **data: Any
    ) -> "ExecutionResult":
        return cls(
            success=True,
            request_id=request.id,
            capability_id=request.capability_id,
            message="Waiting for the user to confirm",
            data=data,
            requires_confirmation=True,
            confirmation_prompt=prompt,
        )

    @property
    def status(self) -> Literal["success", "failed", "pending"]:
        if not self.success:
            return "failed"
        return "pending" if self.requires_confirmation else "success"


@dataclass
class Preview:
    """Confirmation text plus the structured fields it describes."""

    prompt: str
    prepared: dict[str, Any]


class ActionError(Exception):
    """A handler refused a request because a domain rule failed.

    The message is safe to show to the user.
    """


class UnknownCapabilityError(KeyError):
    """No capability is registered under this id."""

    def __init__(self, capability_id: str) -> None:
        super().__init__(capability_id)
        self.capability_id = capability_id

    def __str__(self) -> str:
        return f"Unknown capability: {self.capability_id}"


class UnknownConfirmationError(LookupError):
    """No pending confirmation exists for this request id."""

    def __init__(self, request_id: str) -> None:
        super().__init__(request_id)
        self.request_id = request_id

    def __str__(self) -> str:
        return f"Unknown confirmation: {self.request_id}"


class HandlerBindingError(RuntimeError):
    """Registry and handler set do not match one-to-one."""
