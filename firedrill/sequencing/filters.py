"""Contact filter evaluation.

Pure predicates: nothing here holds state or touches the scene.
"""

from typing import Optional, Protocol

from .package import TriggerFilter


class ContactCandidate(Protocol):
    """What a filter can inspect on the other party of a contact."""
    tag: str
    layer: int

    def is_child_of(self, root) -> bool: ...


class FilterMatcher:
    """Decides whether a contact candidate satisfies a TriggerFilter."""

    @staticmethod
    def matches(trigger_filter: TriggerFilter, candidate: Optional[ContactCandidate]) -> bool:
        """Accept iff every set clause holds.

        - tag: candidate tag equals required_tag (blank tag means unset)
        - layers: candidate layer is in required_layers
        - root: candidate is required_root or a descendant of it
        """
        if candidate is None:
            return False

        required_tag = trigger_filter.required_tag
        if required_tag is not None and required_tag.strip():
            if candidate.tag != required_tag:
                return False

        if trigger_filter.required_layers is not None:
            if candidate.layer not in trigger_filter.required_layers:
                return False

        if trigger_filter.required_root is not None:
            if not candidate.is_child_of(trigger_filter.required_root):
                return False

        return True

    @staticmethod
    def layers_from_mask(mask: int) -> frozenset[int]:
        """Expand a 32-bit layer bitmask into a set of layer indices."""
        return frozenset(layer for layer in range(32) if mask & (1 << layer))
