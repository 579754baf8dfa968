# services/api/core/asset_ref.py
"""
Asset references bind a desk copy to its canonical library question.

Wire format: "<assetId>:<questionId>", ASCII colon, no escaping.
"""
from __future__ import annotations

import logging
from typing import NamedTuple, Optional

logger = logging.getLogger(__name__)

SEPARATOR = ":"


class InvalidAssetRefError(ValueError):
    """Raised when an id cannot be encoded into an unambiguous reference."""


class AssetRef(NamedTuple):
    asset_id: str
    question_id: str

    def encode(self) -> str:
        return encode_asset_ref(self.asset_id, self.question_id)

    @classmethod
    def parse(cls, ref: Optional[str]) -> Optional["AssetRef"]:
        return parse_asset_ref(ref)


def encode_asset_ref(asset_id: str, question_id: str) -> str:
    """
    Build the reference string for (asset_id, question_id).

    Raises:
        InvalidAssetRefError: if either id contains the separator.
    """
    for name, value in (("asset_id", asset_id), ("question_id", question_id)):
        if SEPARATOR in value:
            raise InvalidAssetRefError(
                f"{name} must not contain '{SEPARATOR}', got {value!r}"
            )
    return f"{asset_id}{SEPARATOR}{question_id}"


def parse_asset_ref(ref: Optional[str]) -> Optional[AssetRef]:
    """
    Decode a reference string.

    Returns None for an empty value or one without a separator. The split
    happens at the first separator; anything after a second separator is
    dropped, so ids containing ':' do not round-trip.
    """
    if not ref or SEPARATOR not in ref:
        return None

    parts = ref.split(SEPARATOR)
    if len(parts) > 2:
        logger.warning(f"Lossy asset reference {ref!r}: dropping {parts[2:]}")

    return AssetRef(parts[0], parts[1])
