"""Normalization of heterogeneous header representations.

Headers reach the capture path as plain mappings, lists of ``(name, value)``
pairs, or Playwright ``headers_array()`` records (``{"name": ..., "value": ...}``).
All of them are reduced to one ``Dict[str, str]`` where the last value written
for a key wins.
"""

import logging
from typing import Any, Dict, Iterable, Mapping, Optional

logger = logging.getLogger(__name__)


def _iter_pairs(headers: Any) -> Iterable:
    if isinstance(headers, Mapping):
        return headers.items()

    pairs = []
    for item in headers:
        if isinstance(item, Mapping):
            pairs.append((item.get("name"), item.get("value")))
        else:
            name, value = item
            pairs.append((name, value))
    return pairs


def normalize_headers(headers: Optional[Any]) -> Dict[str, str]:
    """Normalize headers to a plain ``str -> str`` mapping.

    Args:
        headers: Mapping, sequence of pairs, sequence of name/value records, or None

    Returns:
        Normalized mapping; an empty dict if the input cannot be read
    """
    if headers is None:
        return {}

    normalized: Dict[str, str] = {}
    try:
        for name, value in _iter_pairs(headers):
            if name is None:
                continue
            normalized[str(name)] = "" if value is None else str(value)
    except Exception as e:
        logger.debug(f"Failed to normalize headers: {e}")
        return {}
    return normalized
