"""Extract embedded action markers from assistant replies.

Two encodings are accepted and may be mixed in one reply:

    [TOOL_CALL:{"id": "call-1", "tool": "log_medication", "parameters": {...}, "confidence": 0.9}]
    [ACTION:{"type": "log_medication", "data": {...}, "confidence": 0.9}]

The second is the legacy form. Markers are located with a brace-balancing
scan so nested objects in parameters parse correctly.
"""

import json
import logging
import re
import uuid
from dataclasses import dataclass, field
from typing import Any

from pulseguard.capabilities.types import ActionRequest, ExecutionResult

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.8

_MARKER_START = re.compile(r"\[(TOOL_CALL|ACTION)\s*:")
_SPACES = re.compile(r"[ \t]{2,}")
_SPACE_BEFORE_PUNCT = re.compile(r"[ \t]+([.,!?;:])")
_BLANK_LINES = re.compile(r"\n\s*\n\s*\n+")


class MarkerError(ValueError):
    """An embedded marker could not be turned into a request."""


@dataclass
class ParsedReply:
    """Display text plus the requests found in a reply."""

    text: str
    requests: list[ActionRequest] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def _scan_object(reply: str, start: int) -> int | None:
    """Return the index just past the JSON object starting at ``start``."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(reply)):
        char = reply[i]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return i + 1
    return None


def _confidence(payload: dict[str, Any]) -> float:
    value = payload.get("confidence")
    if value is None:
        return DEFAULT_CONFIDENCE
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise MarkerError(f"confidence must be a number, got {value!r}")
    return float(value)


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def _tool_call(payload: dict[str, Any]) -> ActionRequest:
    tool = payload.get("tool")
    parameters = payload.get("parameters")
    if not isinstance(tool, str) or not tool:
        raise MarkerError("TOOL_CALL marker is missing 'tool'")
    if not isinstance(parameters, dict):
        raise MarkerError("TOOL_CALL marker needs a 'parameters' object")
    reasoning = payload.get("reasoning")
    request_id = payload.get("id")
    return ActionRequest(
        id=str(request_id) if request_id else _new_id("call"),
        capability_id=tool,
        parameters=parameters,
        confidence=_confidence(payload),
        reasoning=str(reasoning) if reasoning else None,
    )


def _legacy_action(payload: dict[str, Any]) -> ActionRequest | None:
    action_type = payload.get("type")
    if not isinstance(action_type, str) or not action_type:
        raise MarkerError("ACTION marker is missing 'type'")
    if action_type == "none":
        return None
    data = payload.get("data") or {}
    if not isinstance(data, dict):
        raise MarkerError("ACTION marker 'data' must be an object")
    return ActionRequest(
        id=_new_id("legacy"),
        capability_id=action_type,
        parameters=data,
        confidence=_confidence(payload),
    )


def _to_request(kind: str, body: str) -> ActionRequest | None:
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as e:
        raise MarkerError(f"invalid JSON in {kind} marker: {e.msg}") from e
    if not isinstance(payload, dict):
        raise MarkerError(f"{kind} marker must contain a JSON object")
    if kind == "TOOL_CALL":
        return _tool_call(payload)
    return _legacy_action(payload)


def _clean(text: str) -> str:
    text = _SPACES.sub(" ", text)
    text = _SPACE_BEFORE_PUNCT.sub(r"\1", text)
    text = "\n".join(line.strip() for line in text.splitlines())
    return _BLANK_LINES.sub("\n\n", text).strip()


def parse_reply(reply: str) -> ParsedReply:
    """Split a reply into display text and action requests.

    A malformed marker is logged, recorded in ``errors`` and removed from the
    text; the rest of the reply is still parsed.
    """
    requests: list[ActionRequest] = []
    errors: list[str] = []
    kept: list[str] = []
    pos = 0

    while match := _MARKER_START.search(reply, pos):
        kind = match.group(1)
        kept.append(reply[pos : match.start()])

        body_start = match.end()
        while body_start < len(reply) and reply[body_start].isspace():
            body_start += 1
        body_end = _scan_object(reply, body_start) if reply[body_start : body_start + 1] == "{" else None

        if body_end is None:
            close = reply.find("]", match.end())
            pos = len(reply) if close == -1 else close + 1
            errors.append(f"Unterminated {kind} marker")
            logger.warning("marker_parse_failed", extra={"marker.kind": kind, "error.message": "unterminated"})
            continue

        close = body_end
        while close < len(reply) and reply[close].isspace():
            close += 1
        pos = close + 1 if reply[close : close + 1] == "]" else body_end

        try:
            request = _to_request(kind, reply[body_start:body_end])
        except MarkerError as e:
            errors.append(str(e))
            logger.warning("marker_parse_failed", extra={"marker.kind": kind, "error.message": str(e)})
            continue
        if request is not None:
            requests.append(request)

    kept.append(reply[pos:])
    return ParsedReply(text=_clean("".join(kept)), requests=requests, errors=errors)


def format_result_for_model(result: ExecutionResult) -> str:
    """Render a result the way the model expects to read it back."""
    detail = result.message
    if result.status == "failed":
        detail = result.error or result.message
    elif result.status == "pending" and result.confirmation_prompt:
        detail = result.confirmation_prompt
    return f"[TOOL_RESULT:{result.request_id}:{result.status}] {detail}"
