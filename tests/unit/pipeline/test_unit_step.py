# tests/unit/pipeline/test_unit_step.py
"""Tests for pipeline/step.py: attribute map and change notification."""

from __future__ import annotations

import pytest

from reconjob.core.models import Attribute, AttributeKind
from reconjob.pipeline.step import Step


def _step() -> Step:
    return Step("meshing", [
        Attribute(key="scale", kind=AttributeKind.NUMERIC, value=2),
        Attribute(key="label", kind=AttributeKind.TEXT, value="mesh"),
    ])


class TestStepStructure:
    def test_order_and_lookup(self):
        step = _step()
        assert step.name == "meshing"
        assert [a.key for a in step] == ["scale", "label"]
        assert len(step) == 2
        assert "scale" in step
        assert step.get("missing") is None
        assert step.value("missing", 7) == 7

    def test_duplicate_key_rejected(self):
        step = _step()
        with pytest.raises(ValueError, match="duplicate"):
            step.add_attribute(Attribute(key="scale", kind=AttributeKind.NUMERIC, value=1))

    def test_to_dict(self):
        assert _step().to_dict() == {"scale": 2, "label": "mesh"}


class TestSetValue:
    def test_notifies_on_change(self):
        step = _step()
        seen = []
        step.subscribe(lambda s, key: seen.append((s.name, key)))
        assert step.set_value("scale", 5) is True
        assert seen == [("meshing", "scale")]

    def test_no_notification_when_unchanged(self):
        step = _step()
        seen = []
        step.subscribe(lambda s, key: seen.append(key))
        assert step.set_value("scale", 2) is False
        assert seen == []

    def test_unknown_key(self):
        with pytest.raises(KeyError):
            _step().set_value("nope", 1)

    def test_wrong_type(self):
        with pytest.raises(ValueError):
            _step().set_value("scale", "big")

    def test_unsubscribe(self):
        step = _step()
        seen = []

        def listener(s, key):
            seen.append(key)

        step.subscribe(listener)
        step.subscribe(listener)
        step.unsubscribe(listener)
        step.set_value("scale", 9)
        assert seen == []


class TestApplyValues:
    def test_applies_known_keys(self):
        step = _step()
        applied = step.apply_values({"scale": 4, "label": "x"})
        assert applied == ["scale", "label"]
        assert step.to_dict() == {"scale": 4, "label": "x"}

    def test_unknown_keys_ignored(self):
        step = _step()
        assert step.apply_values({"extra": 1}) == []
        assert "extra" not in step

    def test_wrong_type_keeps_default(self, caplog):
        step = _step()
        with caplog.at_level("WARNING"):
            applied = step.apply_values({"scale": "huge", "label": "ok"})
        assert applied == ["label"]
        assert step.value("scale") == 2
        assert "does not match" in caplog.text
