"""Tests transitions."""
from __future__ import annotations

import dataclasses
import pytest
from unistate import Transition


def test_transition_defaults_to_no_side_effects() -> None:
    subject = Transition(42)

    assert subject.to_state == 42
    assert subject.side_effects == ()


def test_transition_side_effects_keep_order() -> None:
    subject = Transition("state", ["save", "notify"])

    assert subject.side_effects == ("save", "notify")


def test_transition_side_effects_copied() -> None:
    effects = ["save"]
    subject = Transition("state", effects)
    effects.append("notify")

    assert subject.side_effects == ("save",)


def test_transition_is_immutable() -> None:
    subject = Transition(1)

    with pytest.raises(dataclasses.FrozenInstanceError):
        subject.to_state = 2  # type: ignore[misc]


def test_transition_equality() -> None:
    assert Transition(1, ("a",)) == Transition(1, ["a"])
    assert Transition(1) != Transition(1, ("a",))
    assert Transition(1) != Transition(2)
