"""Schema validation of action requests."""

from dataclasses import dataclass, field
from typing import Any

from pulseguard.capabilities.types import (
    ActionRequest,
    CapabilityDefinition,
    ParameterType,
)


@dataclass
class ValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.valid


def matches_type(value: Any, expected: ParameterType) -> bool:
    """Runtime type check; bool is never accepted as a number."""
    match expected:
        case "string":
            return isinstance(value, str)
        case "number":
            return isinstance(value, int | float) and not isinstance(value, bool)
        case "boolean":
            return isinstance(value, bool)
        case "array":
            return isinstance(value, list | tuple)
        case "object":
            return isinstance(value, dict)
    return False


def validate_parameters(
    parameters: dict[str, Any], definition: CapabilityDefinition
) -> list[str]:
    errors: list[str] = []

    for param in definition.parameters:
        if param.required and parameters.get(param.name) is None:
            errors.append(f"Missing required parameter: {param.name}")

    for name, value in parameters.items():
        param = definition.parameter(name)
        if param is None:
            errors.append(f"Unknown parameter: {name}")
            continue
        if value is None:
            continue
        if not matches_type(value, param.type):
            errors.append(f"Parameter {name} must be of type {param.type}")
            continue
        if param.enum and value not in param.enum:
            errors.append(f"Parameter {name} must be one of: {', '.join(param.enum)}")

    return errors


def validate_request(
    request: ActionRequest, definition: CapabilityDefinition
) -> ValidationResult:
    """Check a request against its capability's parameter schema.

    Only structure is checked here. Medical and business rules belong to the
    guardrails and to each handler.
    """
    errors = validate_parameters(request.parameters, definition)
    if not 0.0 <= request.confidence <= 1.0:
        errors.append("Confidence must be between 0 and 1")
    return ValidationResult(valid=not errors, errors=errors)
