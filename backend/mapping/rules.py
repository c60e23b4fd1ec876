"""
Feature-frame → OSC address schema.

Rules:
- Declaration order IS emission order.
- The table is fixed at import time and never mutated.
- Addresses are unique; array rules own the `<address>/<index>` subtree.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final

from constants import CHROMA_CAP, MFCC_CAP, OSC_ADDRESS_ROOT


class ValueKind(str, Enum):
    """
    How a source value is normalized before emission.

    NUMBER -> float
    FLAG   -> int 0/1
    TEXT   -> str
    """
    NUMBER = "number"
    FLAG = "flag"
    TEXT = "text"


@dataclass(frozen=True)
class MappingRule:
    """
    One emission site.

    path:
        Keys walked from the frame root. A path of length 2 names a member
        of an optional group; the whole group is skipped when absent.

    default:
        Emitted when the leaf is absent or falsy. None means the site is
        optional and is skipped instead. TEXT sites are always optional
        and take no default.

    cap:
        Set for array-valued sources. One message per present index,
        never more than `cap`.
    """
    path: tuple[str, ...]
    address: str
    kind: ValueKind = ValueKind.NUMBER
    default: float | int | None = 0.0
    cap: int | None = None


def _addr(*parts: str) -> str:
    return "/".join((OSC_ADDRESS_ROOT,) + parts)


def _num(source: str, *address: str) -> MappingRule:
    return MappingRule(path=(source,), address=_addr(*(address or (source,))))


def _flag(source: str) -> MappingRule:
    return MappingRule(path=(source,), address=_addr(source), kind=ValueKind.FLAG, default=0)


def _group(group: str, *members: str) -> tuple[MappingRule, ...]:
    return tuple(
        MappingRule(path=(group, member), address=_addr(group, member))
        for member in members
    )


FEATURE_RULES: Final[tuple[MappingRule, ...]] = (
    # Scalars
    _num("rms"),
    _num("rmsNorm"),
    _num("centroidNorm", "centroid"),
    _num("flux"),
    _num("fluxMean"),
    _num("fluxStd"),
    _num("bpm"),
    _num("bpmConfidence", "bpm", "conf"),
    MappingRule(
        path=("bpmSource",),
        address=_addr("bpm", "source"),
        kind=ValueKind.TEXT,
        default=None,
    ),
    _num("tapBpm"),
    _num("pitchHz"),
    _num("pitchConf"),
    _num("aubioTempoBpm"),
    _num("aubioTempoConf"),
    _flag("beat"),
    _flag("drop"),
    _flag("isBuilding"),
    _num("buildLevel"),

    # Bands
    *_group("bandsEMA", "bass", "mid", "treble"),
    *_group("bandEnv", "sub", "bass", "mid", "treble"),
    *_group("bandNorm", "sub", "bass", "mid", "treble"),

    # Bounded arrays
    MappingRule(path=("mfcc",), address=_addr("mfcc"), cap=MFCC_CAP),
    MappingRule(path=("chroma",), address=_addr("chroma"), cap=CHROMA_CAP),

    # Beat grid
    MappingRule(path=("beatGrid", "bpm"), address=_addr("beatGrid", "bpm")),
    MappingRule(path=("beatGrid", "confidence"), address=_addr("beatGrid", "conf")),
)


def max_emissions(rules: tuple[MappingRule, ...] = FEATURE_RULES) -> int:
    """Upper bound on messages produced for one frame."""
    return sum(rule.cap if rule.cap is not None else 1 for rule in rules)
