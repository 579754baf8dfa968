# services/api/core/ids.py
from __future__ import annotations

import random
import string
import time

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
_SUFFIX_LENGTH = 7


def now_ms() -> int:
    return int(time.time() * 1000)


def generate_id(prefix: str) -> str:
    """
    "<prefix>_<ms timestamp>_<random base36 suffix>".

    The suffix keeps ids distinct for calls made within the same millisecond.
    """
    suffix = "".join(random.choices(_SUFFIX_ALPHABET, k=_SUFFIX_LENGTH))
    return f"{prefix}_{now_ms()}_{suffix}"
