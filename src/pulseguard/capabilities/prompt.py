"""Tool-calling instructions rendered into the system prompt."""

import json

from pulseguard.capabilities.registry import CapabilityRegistry
from pulseguard.capabilities.types import CapabilityDefinition, Sensitivity


def _describe_parameters(definition: CapabilityDefinition) -> str:
    if not definition.parameters:
        return "none"
    parts = []
    for param in definition.parameters:
        kind = param.type
        if param.enum:
            kind = f"{kind}: {'|'.join(param.enum)}"
        parts.append(f"{param.name}{'*' if param.required else ''} ({kind})")
    return ", ".join(parts)


def _example_call(definition: CapabilityDefinition) -> str:
    params = {
        p.name: p.example if p.example is not None else "value"
        for p in definition.parameters[:2]
    }
    call = {
        "id": "call-123",
        "tool": definition.id,
        "parameters": params,
        "confidence": 0.9,
    }
    return f"[TOOL_CALL:{json.dumps(call)}]"


def describe_capability(definition: CapabilityDefinition) -> str:
    flags = ""
    if definition.requires_confirmation:
        flags += " [REQUIRES CONFIRMATION]"
    if definition.sensitivity == Sensitivity.CRITICAL:
        flags += " [CRITICAL - VERIFY DETAILS]"
    return (
        f"- {definition.name} ({definition.id}){flags}\n"
        f"    {definition.description}\n"
        f"    Parameters: {_describe_parameters(definition)}\n"
        f"    Example: {_example_call(definition)}"
    )


def build_capability_prompt(registry: CapabilityRegistry, min_confidence: float = 0.7) -> str:
    tools = "\n\n".join(describe_capability(d) for d in registry)
    return f"""## Tools

You can request actions. The app runs them; you never write data yourself.

Format:
[TOOL_CALL:{{"id":"unique-id","tool":"tool_id","parameters":{{...}},"confidence":0.9,"reasoning":"optional"}}]

Available tools:
{tools}

Rules:
1. Only call a tool when the user explicitly asks for an action or clearly states the information.
2. Confidence must be at least {min_confidence} or the call is refused.
3. Tools marked [REQUIRES CONFIRMATION] ask the user before running.
4. Tools marked [CRITICAL] need an explicit request such as "log" or "record" from the user.
5. Never guess. When unsure, ask the user instead of calling a tool.
6. You may call several tools in one reply.
7. Results come back as [TOOL_RESULT:<id>:success|failed|pending] <message>.

Medical safety:
- Never diagnose or give medical advice.
- Do not infer medication names; use only what the user said.
- Handle crisis moods and severe symptoms with extra care."""
