"""Capability registry."""

import logging
from collections.abc import Iterable, Iterator

from pulseguard.capabilities.catalog import DEFAULT_CAPABILITIES
from pulseguard.capabilities.types import (
    CapabilityDefinition,
    Category,
    Sensitivity,
    UnknownCapabilityError,
)

logger = logging.getLogger(__name__)


class CapabilityRegistry:
    """Lookup table of capability definitions.

    Populated at startup and read-only afterwards. Adding a capability means
    adding a catalog entry and a handler; nothing else changes.
    """

    def __init__(self, definitions: Iterable[CapabilityDefinition] = ()) -> None:
        self._definitions: dict[str, CapabilityDefinition] = {}
        for definition in definitions:
            self.register(definition)

    def register(self, definition: CapabilityDefinition) -> None:
        if definition.id in self._definitions:
            raise ValueError(f"Capability '{definition.id}' already registered")
        self._definitions[definition.id] = definition
        logger.debug(f"Registered capability: {definition.id}")

    def get(self, capability_id: str) -> CapabilityDefinition:
        if capability_id not in self._definitions:
            raise UnknownCapabilityError(capability_id)
        return self._definitions[capability_id]

    def find(self, capability_id: str) -> CapabilityDefinition | None:
        return self._definitions.get(capability_id)

    def has(self, capability_id: str) -> bool:
        return capability_id in self._definitions

    def by_category(self, category: Category | str) -> list[CapabilityDefinition]:
        category = Category(category)
        return [d for d in self._definitions.values() if d.category == category]

    def by_sensitivity(self, sensitivity: Sensitivity | str) -> list[CapabilityDefinition]:
        sensitivity = Sensitivity(sensitivity)
        return [d for d in self._definitions.values() if d.sensitivity == sensitivity]

    def requiring_confirmation(self) -> list[CapabilityDefinition]:
        return [d for d in self._definitions.values() if d.requires_confirmation]

    @property
    def ids(self) -> list[str]:
        return list(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, capability_id: object) -> bool:
        return capability_id in self._definitions

    def __iter__(self) -> Iterator[CapabilityDefinition]:
        return iter(self._definitions.values())


def build_default_registry() -> CapabilityRegistry:
    return CapabilityRegistry(DEFAULT_CAPABILITIES)
