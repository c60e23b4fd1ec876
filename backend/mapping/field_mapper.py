"""
Field mapper: FeatureFrame -> ordered OSC messages.

Pure function over the fixed rule table in mapping.rules.

Guarantees:
- Emission order is rule declaration order
- Only addresses from the rule table (plus `<array>/<i>` for i < cap)
- Output size is bounded by max_emissions(), whatever the input size
- Values are normalized to float (numbers), int 0/1 (flags) or str
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from itertools import islice
from typing import Any, Mapping

from mapping.rules import FEATURE_RULES, MappingRule, ValueKind
from protocol.frame_codec import FeatureFrame


OscValue = float | int | str


@dataclass(frozen=True)
class OutboundMessage:
    """One addressed scalar ready for the outbound adapter."""
    address: str
    value: OscValue


class _Sentinel:
    def __init__(self, name: str) -> None:
        self._name = name

    def __repr__(self) -> str:
        return f"<{self._name}>"


# Leaf key missing from its (present) container
_ABSENT = _Sentinel("absent")
# Optional group missing or not an object
_NO_GROUP = _Sentinel("no-group")


# ------------------------------------------------------------------
# Value normalization
# ------------------------------------------------------------------

def _number(raw: Any, default: float | int | None) -> float | int | None:
    """
    Normalize a numeric site.

    Absent, null, false and NaN fall back to the default, as do
    non-numeric values (strings, objects, lists).
    """
    if isinstance(raw, bool):
        return 1.0 if raw else default

    if isinstance(raw, (int, float)):
        try:
            value = float(raw)
        except OverflowError:
            # Integer literal wider than a double
            value = math.inf if raw > 0 else -math.inf
        if math.isnan(value):
            return default
        return value

    return default


def _truthy(raw: Any) -> bool:
    if raw is None or raw is _ABSENT:
        return False
    if isinstance(raw, float) and math.isnan(raw):
        return False
    if isinstance(raw, (list, dict)):
        # An empty container is still a value
        return True
    return bool(raw)


def _text(raw: Any) -> str | None:
    """
    Normalize an optional text site.

    Non-empty strings pass through; finite non-zero numbers are sent as
    their string form. Anything else (absent, empty, bools, containers)
    skips the site.
    """
    if isinstance(raw, str):
        return raw or None
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return None
    if isinstance(raw, float) and not math.isfinite(raw):
        return None
    return str(raw) if raw else None


def _resolve(fields: Mapping[str, Any], path: tuple[str, ...]) -> Any:
    """
    Walk `path` into the frame.

    Returns _NO_GROUP when an intermediate group is absent (the rule is
    skipped wholesale), _ABSENT when only the leaf is missing.
    """
    node: Any = fields
    for key in path[:-1]:
        node = node.get(key)
        if not isinstance(node, Mapping):
            return _NO_GROUP
    return node.get(path[-1], _ABSENT)


# ------------------------------------------------------------------
# Mapping
# ------------------------------------------------------------------

def _expand_array(rule: MappingRule, raw: Any) -> list[OutboundMessage]:
    if not isinstance(raw, list) or rule.cap is None:
        return []

    out: list[OutboundMessage] = []
    for index, item in enumerate(islice(raw, rule.cap)):
        out.append(OutboundMessage(f"{rule.address}/{index}", _number(item, 0.0)))
    return out


def _map_scalar(rule: MappingRule, raw: Any) -> OutboundMessage | None:
    if rule.kind is ValueKind.FLAG:
        return OutboundMessage(rule.address, 1 if _truthy(raw) else 0)

    if rule.kind is ValueKind.TEXT:
        text = _text(raw)
        return None if text is None else OutboundMessage(rule.address, text)

    value = _number(None if raw is _ABSENT else raw, rule.default)
    if value is None:
        return None
    return OutboundMessage(rule.address, value)


def map_frame(
    frame: FeatureFrame,
    rules: tuple[MappingRule, ...] = FEATURE_RULES,
) -> tuple[OutboundMessage, ...]:
    """
    Flatten one frame into ordered OSC messages.

    Rules whose optional group is absent are skipped. Defaulted scalars are
    always emitted.
    """
    out: list[OutboundMessage] = []

    for rule in rules:
        raw = _resolve(frame.fields, rule.path)
        if raw is _NO_GROUP:
            continue

        if rule.cap is not None:
            out.extend(_expand_array(rule, raw))
            continue

        message = _map_scalar(rule, raw)
        if message is not None:
            out.append(message)

    return tuple(out)
