# backend/protocol/frame_codec.py
"""
Inbound feature-frame codec.

Envelope (UTF-8 JSON text, one per WebSocket message):

    {"type": "features", "payload": {...feature fields...}}

Decoding is pure: no side effects, no retained state. Every failure is
returned as a `Rejected` value instead of raised, and the caller decides
what to do with it (the gateway drops it silently and counts it).

Usage example:

    result = decode_frame(message_text)
    if isinstance(result, Rejected):
        session.frames_rejected += 1
        return
    messages = map_frame(result)
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from constants import (
    ENVELOPE_KIND_KEY,
    ENVELOPE_PAYLOAD_KEY,
    FRAME_KIND_FEATURES,
)


# -------------------------
# Result types
# -------------------------

class RejectReason(str, Enum):
    """
    Why an inbound payload was not turned into a frame.
    """
    NOT_UTF8 = "not_utf8"
    NOT_JSON = "not_json"
    NOT_OBJECT = "not_object"
    WRONG_KIND = "wrong_kind"
    BAD_PAYLOAD = "bad_payload"


@dataclass(frozen=True)
class Rejected:
    """
    A payload that must be dropped before mapping.
    """
    reason: RejectReason
    detail: str = ""


@dataclass(frozen=True)
class FeatureFrame:
    """
    One decoded snapshot of analyzed audio features.

    `fields` is a read-only view over the decoded payload object. Frames
    are independent of each other and discarded after mapping.
    """
    kind: str
    fields: Mapping[str, Any]


# -------------------------
# Decoding
# -------------------------

def decode_frame(raw: str | bytes) -> FeatureFrame | Rejected:
    """
    Decode one inbound message into a FeatureFrame.

    Never raises.
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            text = bytes(raw).decode("utf-8")
        except UnicodeDecodeError as e:
            return Rejected(RejectReason.NOT_UTF8, str(e))
    else:
        text = raw

    try:
        envelope = json.loads(text)
    except (ValueError, RecursionError) as e:
        return Rejected(RejectReason.NOT_JSON, type(e).__name__)

    if not isinstance(envelope, dict):
        return Rejected(RejectReason.NOT_OBJECT, type(envelope).__name__)

    kind = envelope.get(ENVELOPE_KIND_KEY)
    if kind != FRAME_KIND_FEATURES:
        return Rejected(RejectReason.WRONG_KIND, repr(kind)[:40])

    payload = envelope.get(ENVELOPE_PAYLOAD_KEY)
    if not isinstance(payload, dict):
        return Rejected(RejectReason.BAD_PAYLOAD, type(payload).__name__)

    return FeatureFrame(kind=kind, fields=MappingProxyType(payload))
