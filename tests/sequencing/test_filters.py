"""
Unit tests for contact filters.
"""

import pytest

from firedrill.sequencing.filters import FilterMatcher
from firedrill.sequencing.package import TriggerFilter


class TestFilterMatcher:
    """Test each filter clause and their conjunction."""

    def test_empty_filter_accepts_anything(self, registry):
        assert FilterMatcher.matches(TriggerFilter(), registry.entity("Stranger"))

    def test_missing_candidate_is_rejected(self):
        assert not FilterMatcher.matches(TriggerFilter(), None)

    def test_tag_clause(self, registry):
        hand_filter = TriggerFilter(required_tag="PlayerHand")

        assert FilterMatcher.matches(hand_filter, registry.entity("Left Hand"))
        assert not FilterMatcher.matches(hand_filter, registry.entity("XR Origin"))

    @pytest.mark.parametrize("tag", ["", "   "])
    def test_blank_tag_means_unset(self, registry, tag):
        assert FilterMatcher.matches(TriggerFilter(required_tag=tag), registry.entity("Door Open"))

    def test_layer_clause(self, registry):
        assert FilterMatcher.matches(TriggerFilter(required_layers=frozenset({3})),
                                     registry.entity("Left Hand"))
        assert not FilterMatcher.matches(TriggerFilter(required_layers=frozenset({0, 1})),
                                         registry.entity("Left Hand"))
        assert not FilterMatcher.matches(TriggerFilter(required_layers=frozenset()),
                                         registry.entity("Left Hand"))

    def test_root_clause(self, registry):
        rig_filter = TriggerFilter(required_root=registry.entity("XR Origin"))

        assert FilterMatcher.matches(rig_filter, registry.entity("XR Origin"))
        assert FilterMatcher.matches(rig_filter, registry.entity("Left Hand"))
        assert not FilterMatcher.matches(rig_filter, registry.entity("Stranger"))

    def test_all_clauses_must_hold(self, registry):
        full = TriggerFilter(
            required_tag="PlayerHand",
            required_layers=frozenset({3}),
            required_root=registry.entity("XR Origin"),
        )

        assert FilterMatcher.matches(full, registry.entity("Left Hand"))
        # Same tag and layer, wrong hierarchy
        assert not FilterMatcher.matches(full, registry.entity("Stranger"))

    def test_colliders_are_candidates(self, registry):
        door_filter = TriggerFilter(required_root=registry.entity("Door Frame"))
        assert FilterMatcher.matches(door_filter, registry.collider("Door Blocker"))

    def test_layers_from_mask(self):
        assert FilterMatcher.layers_from_mask(0) == frozenset()
        assert FilterMatcher.layers_from_mask(0b1001) == frozenset({0, 3})
        assert FilterMatcher.layers_from_mask(1 << 31) == frozenset({31})
