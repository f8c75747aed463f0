"""Capability catalog and the action pipeline around it."""

from pulseguard.capabilities.catalog import DEFAULT_CAPABILITIES
from pulseguard.capabilities.confirmations import ConfirmationManager
from pulseguard.capabilities.dispatch import Dispatcher, bind_handlers
from pulseguard.capabilities.engine import ActionEngine, TurnOutcome, render
from pulseguard.capabilities.guardrails import GuardrailDecision, GuardrailEvaluator
from pulseguard.capabilities.handlers import Handler, HandlerContext, default_handlers
from pulseguard.capabilities.parser import ParsedReply, format_result_for_model, parse_reply
from pulseguard.capabilities.prompt import build_capability_prompt
from pulseguard.capabilities.registry import CapabilityRegistry, build_default_registry
from pulseguard.capabilities.types import (
    ActionError,
    ActionRequest,
    CapabilityDefinition,
    CapabilityParameter,
    Category,
    ExecutionResult,
    HandlerBindingError,
    Preview,
    Sensitivity,
    UnknownCapabilityError,
    UnknownConfirmationError,
)
from pulseguard.capabilities.validator import ValidationResult, validate_request

__all__ = [
    "DEFAULT_CAPABILITIES",
    "ActionEngine",
    "ActionError",
    "ActionRequest",
    "CapabilityDefinition",
    "CapabilityParameter",
    "CapabilityRegistry",
    "Category",
    "ConfirmationManager",
    "Dispatcher",
    "ExecutionResult",
    "GuardrailDecision",
    "GuardrailEvaluator",
    "Handler",
    "HandlerBindingError",
    "HandlerContext",
    "ParsedReply",
    "Preview",
    "Sensitivity",
    "TurnOutcome",
    "UnknownCapabilityError",
    "UnknownConfirmationError",
    "ValidationResult",
    "bind_handlers",
    "build_capability_prompt",
    "build_default_registry",
    "default_handlers",
    "format_result_for_model",
    "parse_reply",
    "render",
    "validate_request",
]
