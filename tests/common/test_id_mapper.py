"""
Tests for the IDMapper class.

This module covers construction from vertex sets, single and batch lookups,
and the error conditions of conflicting or missing mappings.
"""

import pytest

from bcLeiden.common.id_mapper import IDMapper


class TestIDMapperBasic:
    """Test basic IDMapper functionality."""

    def test_empty_mapper(self):
        """Test empty mapper initialization and properties."""
        mapper = IDMapper()

        assert mapper.size() == 0
        assert len(mapper) == 0
        assert repr(mapper) == "IDMapper(size=0)"

    def test_from_vertices_orders_ascending(self):
        """Test that internal indices follow ascending vertex IDs."""
        mapper = IDMapper.from_vertices([10, 3, 7, 3])

        assert len(mapper) == 3
        assert mapper.get_internal(3) == 0
        assert mapper.get_internal(7) == 1
        assert mapper.get_internal(10) == 2
        assert mapper.get_original(2) == 10

    def test_contains(self):
        """Test membership on original IDs."""
        mapper = IDMapper.from_vertices([1, 2])
        assert 1 in mapper
        assert 5 not in mapper

    def test_batch_lookups(self):
        """Test batch conversions in both directions."""
        mapper = IDMapper.from_vertices([5, 6, 9])

        assert mapper.get_internal_batch([9, 5]) == [2, 0]
        assert mapper.get_original_batch([1, 2]) == [6, 9]


class TestIDMapperErrors:
    """Test error conditions."""

    def setup_method(self):
        """Set up a small mapper."""
        self.mapper = IDMapper()
        self.mapper.add_mapping(1, 0)

    def test_readding_same_mapping_is_allowed(self):
        """Test that re-adding an identical pair is a no-op."""
        self.mapper.add_mapping(1, 0)
        assert len(self.mapper) == 1

    def test_conflicting_original(self):
        """Test mapping one vertex to two indices."""
        with pytest.raises(ValueError, match="already mapped to internal ID 0"):
            self.mapper.add_mapping(1, 1)

    def test_conflicting_internal(self):
        """Test mapping two vertices to one index."""
        with pytest.raises(ValueError, match="already mapped to vertex 1"):
            self.mapper.add_mapping(2, 0)

    def test_missing_original(self):
        """Test lookup of an unknown vertex."""
        with pytest.raises(KeyError, match="not found in mapping"):
            self.mapper.get_internal(99)

    def test_missing_internal(self):
        """Test lookup of an unknown index."""
        with pytest.raises(KeyError, match="not found in mapping"):
            self.mapper.get_original(5)

    def test_internal_id_type(self):
        """Test that internal IDs must be integers."""
        with pytest.raises(TypeError, match="must be integer"):
            self.mapper.get_original("0")
