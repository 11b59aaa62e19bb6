import pytest

from src.domain.entities.image_payload import ImagePayload
from src.domain.errors import MalformedPayload
from src.domain.services.codec_service import CodecService as CS


def test_encode_decode_inverse():
    raw = bytes(range(256))
    assert CS.decode(CS.encode(raw)) == raw


def test_encode_is_plain_base64():
    assert CS.encode(b"hat") == "aGF0"


@pytest.mark.parametrize("bad", ["not base64!", "aGF", "ünï"])
def test_decode_rejects_invalid_data(bad):
    with pytest.raises(MalformedPayload):
        CS.decode(bad)


def test_transport_payload_layout():
    p = ImagePayload(data="aGF0", media_type="image/png")
    assert CS.to_transport_payload(p) == "data:image/png;base64,aGF0"


def test_transport_round_trip():
    p = ImagePayload.from_bytes(b"\x89PNG\r\n\x1a\n fake", "image/webp")
    assert CS.from_transport_payload(CS.to_transport_payload(p)) == p


def test_transport_round_trip_empty_data():
    p = ImagePayload(data="", media_type="image/jpeg")
    assert CS.from_transport_payload(CS.to_transport_payload(p)) == p


@pytest.mark.parametrize(
    "value",
    [
        "image/png;base64,aGF0",  # no data: prefix
        "data:image/png,aGF0",  # no ;base64, delimiter
        "data:;base64,aGF0",  # no media type
        "data:png;base64,aGF0",  # not type/subtype
        "data:image/png;base64,@@@@",  # invalid data
    ],
)
def test_from_transport_payload_rejects_malformed(value):
    with pytest.raises(MalformedPayload):
        CS.from_transport_payload(value)


def test_supported_media_types():
    assert CS.is_supported_media_type("image/png")
    assert CS.is_supported_media_type("IMAGE/JPEG")
    assert not CS.is_supported_media_type("image/gif")
    assert CS.is_supported_media_type("image/gif", ["image/gif"])


def test_payload_helpers():
    p = ImagePayload.from_bytes(b"abcd", "image/png")
    assert p.raw_bytes() == b"abcd"
    assert p.size == 4
    assert "abcd" not in repr(p)
