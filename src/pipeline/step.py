# src/pipeline/step.py
"""Pipeline step: a named stage owning an ordered map of attributes."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterator, Mapping

from reconjob.core.models import Attribute

logger = logging.getLogger(__name__)

StepListener = Callable[["Step", str], None]


class Step:
    """Named stage of the fixed pipeline.

    Attributes are keyed by their ``key`` and keep insertion order for
    display. Value changes go through :meth:`set_value` so listeners (the
    owning Job) are told about every effective mutation.
    """

    def __init__(self, name: str, attributes: list[Attribute] | None = None) -> None:
        self._name = name
        self._attributes: dict[str, Attribute] = {}
        self._listeners: list[StepListener] = []
        for attribute in attributes or []:
            self.add_attribute(attribute)

    def __repr__(self) -> str:
        return f"Step({self._name!r}, keys={list(self._attributes)!r})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def attributes(self) -> Mapping[str, Attribute]:
        return self._attributes

    def __iter__(self) -> Iterator[Attribute]:
        return iter(self._attributes.values())

    def __len__(self) -> int:
        return len(self._attributes)

    def __contains__(self, key: object) -> bool:
        return key in self._attributes

    def add_attribute(self, attribute: Attribute) -> None:
        """Register an attribute; keys are unique within a step."""
        if attribute.key in self._attributes:
            raise ValueError(f"duplicate attribute {attribute.key!r} in step {self._name!r}")
        self._attributes[attribute.key] = attribute

    def get(self, key: str) -> Attribute | None:
        return self._attributes.get(key)

    def value(self, key: str, default: Any = None) -> Any:
        attribute = self._attributes.get(key)
        return attribute.value if attribute is not None else default

    # --- Observation ---

    def subscribe(self, listener: StepListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: StepListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, key: str) -> None:
        for listener in list(self._listeners):
            listener(self, key)

    # --- Mutation ---

    def set_value(self, key: str, value: Any) -> bool:
        """Assign an attribute value; returns True if it changed.

        Raises:
            KeyError: If the step has no such attribute.
            ValueError: If the value does not match the attribute kind.
        """
        attribute = self._attributes[key]
        if not attribute.assign(value):
            return False
        self._notify(key)
        return True

    # --- JSON mapping ---

    def to_dict(self) -> dict[str, Any]:
        """Attribute key -> value map, in attribute order."""
        return {key: attr.value for key, attr in self._attributes.items()}

    def apply_values(self, values: Mapping[str, Any]) -> list[str]:
        """Apply persisted values to known attributes.

        Unknown keys are ignored; values of the wrong type are skipped with
        a warning and the compiled-in default is kept.

        Returns:
            Keys whose value was applied.
        """
        applied: list[str] = []
        for key, value in values.items():
            attribute = self._attributes.get(key)
            if attribute is None:
                logger.debug("Step %s: ignoring unknown attribute %r", self._name, key)
                continue
            if not attribute.accepts(value):
                logger.warning(
                    "Step %s: skipping %r, value %r does not match kind %s",
                    self._name, key, value, attribute.kind.name,
                )
                continue
            self.set_value(key, value)
            applied.append(key)
        return applied
