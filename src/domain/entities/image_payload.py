from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ImagePayload:
    data: str  # base64 text, no data-URL prefix
    media_type: str

    @classmethod
    def from_bytes(cls, raw: bytes, media_type: str) -> ImagePayload:
        from src.domain.services.codec_service import CodecService

        return cls(data=CodecService.encode(raw), media_type=media_type)

    def raw_bytes(self) -> bytes:
        from src.domain.services.codec_service import CodecService

        return CodecService.decode(self.data)

    @property
    def size(self) -> int:
        return len(self.raw_bytes())

    def __repr__(self) -> str:
        # keep image data out of logs and assertion diffs
        return f"ImagePayload(media_type={self.media_type!r}, data=<{len(self.data)} chars>)"
