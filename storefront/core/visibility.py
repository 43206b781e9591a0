from __future__ import annotations

from typing import Any, Iterable


def condition_value(answer: Any) -> str | None:
    """Normalize an answer for showWhen comparison."""
    if answer is None:
        return None
    if isinstance(answer, bool):
        return "true" if answer else "false"
    if isinstance(answer, (int, float, str)):
        return str(answer)
    # lists/objects (repeater rows) never satisfy a condition
    return None


def is_field_visible(field, answers: dict[str, Any], earlier: dict[str, Any]) -> bool:
    """
    `earlier` maps field id -> field for fields that precede `field` in list
    order. A trigger outside of it (unknown or later) is never satisfied.
    Hidden triggers are still compared using their stored answer.
    """
    cond = field.show_when
    if cond is None:
        return True

    trigger = earlier.get(cond.field_id)
    if trigger is None:
        return False

    current = condition_value(answers.get(trigger.label))
    if current is None:
        return False

    if isinstance(cond.value, list):
        return current in cond.value
    return current == cond.value


def visible_fields(fields: Iterable, answers: dict[str, Any]) -> list:
    """Single pass in list order; returns the currently visible fields."""
    earlier: dict[str, Any] = {}
    out = []
    for f in fields:
        if is_field_visible(f, answers, earlier):
            out.append(f)
        earlier[f.id] = f
    return out
