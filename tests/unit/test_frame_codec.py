# pylint: disable=missing-module-docstring,missing-function-docstring

import json

import pytest

from protocol.frame_codec import (
    FeatureFrame,
    RejectReason,
    Rejected,
    decode_frame,
)


def envelope(**payload) -> str:
    return json.dumps({"type": "features", "payload": payload})


# ---------------------------------------------------------------------
# Accepted frames
# ---------------------------------------------------------------------

def test_decode_valid_text_frame():
    result = decode_frame(envelope(rms=0.5, beat=True))

    assert isinstance(result, FeatureFrame)
    assert result.kind == "features"
    assert result.fields["rms"] == 0.5
    assert result.fields["beat"] is True


def test_decode_valid_bytes_frame():
    result = decode_frame(envelope(rms=0.25).encode("utf-8"))

    assert isinstance(result, FeatureFrame)
    assert result.fields["rms"] == 0.25


def test_decoded_fields_are_read_only():
    result = decode_frame(envelope(rms=0.5))
    assert isinstance(result, FeatureFrame)

    with pytest.raises(TypeError):
        result.fields["rms"] = 1.0  # type: ignore[index]


def test_empty_payload_is_still_a_frame():
    assert isinstance(decode_frame(envelope()), FeatureFrame)


# ---------------------------------------------------------------------
# Rejections
# ---------------------------------------------------------------------

@pytest.mark.parametrize(
    "raw, reason",
    [
        ("not json", RejectReason.NOT_JSON),
        ("", RejectReason.NOT_JSON),
        ("[1, 2, 3]", RejectReason.NOT_OBJECT),
        ('"features"', RejectReason.NOT_OBJECT),
        ("null", RejectReason.NOT_OBJECT),
        ('{"payload": {}}', RejectReason.WRONG_KIND),
        ('{"type": "hello", "payload": {}}', RejectReason.WRONG_KIND),
        ('{"type": "features"}', RejectReason.BAD_PAYLOAD),
        ('{"type": "features", "payload": null}', RejectReason.BAD_PAYLOAD),
        ('{"type": "features", "payload": [1, 2]}', RejectReason.BAD_PAYLOAD),
        (b"\xff\xfe\x00", RejectReason.NOT_UTF8),
    ],
)
def test_malformed_payloads_are_rejected(raw, reason):
    result = decode_frame(raw)

    assert isinstance(result, Rejected)
    assert result.reason is reason


def test_pathologically_nested_json_is_rejected_not_raised():
    raw = "[" * 100_000 + "]" * 100_000

    result = decode_frame(raw)

    assert isinstance(result, Rejected)
    assert result.reason is RejectReason.NOT_JSON
