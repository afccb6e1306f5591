"""Target descriptor derivation for DOM interactions.

The in-page listener never hands element references to Python. It sends the
target's id plus up to three ``{tag, className}`` levels walked upward from
the target (stopping before the page body), and the descriptor is derived
here from that plain data.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)

MAX_LEVELS = 3
MAX_CLASSES = 2
BODY_DESCRIPTOR = "body"


@dataclass(frozen=True)
class ElementInfo:
    """Plain description of one element level."""
    tag: str
    class_name: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ElementInfo":
        class_name = data.get("className") or ""
        if not isinstance(class_name, str):
            class_name = ""
        return cls(tag=str(data.get("tag") or ""), class_name=class_name)

    def fragment(self) -> str:
        """Format as ``tag[.class1[.class2]]``."""
        selector = self.tag.lower()
        classes = [c for c in self.class_name.split(" ") if c][:MAX_CLASSES]
        if classes:
            selector += "." + ".".join(classes)
        return selector


def derive_target_descriptor(target_id: Optional[str], chain: Sequence[ElementInfo]) -> str:
    """Derive a CSS-selector-like descriptor for an event target.

    Args:
        target_id: The target element's id attribute, if any
        chain: Element levels from the target upward, excluding the body

    Returns:
        ``#id`` when the target has an id, otherwise up to three fragments
        joined top-to-bottom with `` > ``
    """
    if target_id:
        return f"#{target_id}"

    parts: List[str] = []
    for element in chain[:MAX_LEVELS]:
        parts.insert(0, element.fragment())

    if not parts:
        return BODY_DESCRIPTOR
    return " > ".join(parts)


def descriptor_from_event(payload: Dict[str, Any]) -> str:
    """Derive a descriptor from a raw in-page event payload.

    Malformed payloads degrade to ``unknown`` instead of raising.
    """
    try:
        chain = [ElementInfo.from_dict(level) for level in payload.get("chain") or []]
        return derive_target_descriptor(payload.get("targetId") or None, chain)
    except Exception as e:
        logger.debug(f"Failed to derive target descriptor: {e}")
        return "unknown"
