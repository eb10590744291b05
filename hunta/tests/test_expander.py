"""
Tests for the offline query expander.
"""
from hunta.models.query import EnhancedQuery, QueryFlags
from hunta.pipeline.expander import expand, merge_with_fallback


class TestExpand:
    """Tests for deterministic term expansion."""

    def test_base_variants(self):
        """Test the second-hand variants for a plain term."""
        query = expand("strymon ob1")

        assert query.original == "strymon ob1"
        assert query.search_terms == [
            "strymon ob1",
            "used strymon ob1",
            "strymon ob1 second hand",
            "strymon ob1 pre-owned",
            "strymon ob1 secondhand",
        ]
        assert query.categories == ["general"]
        assert query.forums == ["reddit"]

    def test_pure(self):
        """Test that the same term always gives the same query."""
        assert expand("strymon ob1") == expand("strymon ob1")

    def test_phone_augmentation_capped(self):
        """Test that augmented variants are appended but capped at 6 terms."""
        query = expand("iphone 13")

        assert len(query.search_terms) == 6
        assert query.search_terms[-1] == "iphone 13 unlocked"
        assert "iphone 13 refurbished" not in query.search_terms

    def test_instrument_augmentation(self):
        """Test that music gear picks up the instrument variants."""
        query = expand("guitar pedal")

        assert "guitar pedal vintage" in query.search_terms

    def test_flags(self):
        """Test flag detection from keywords."""
        phone = expand("iPhone 13")
        guitar = expand("vintage guitar")
        plain = expand("strymon ob1")

        assert phone.flags.high_value_item is True
        assert phone.flags.common_scam_target is True
        assert phone.flags.likely_on_forums is False
        assert guitar.flags.likely_on_forums is True
        assert plain.flags == QueryFlags(reseller_friendly=True)

    def test_term_is_trimmed(self):
        """Test that surrounding whitespace is ignored."""
        assert expand("  strymon ob1 ") == expand("strymon ob1")


class TestMergeWithFallback:
    """Tests for filling an enhancement that returned no terms."""

    def test_terms_filled_from_fallback(self):
        """Test that fallback terms are used when the enhancer gave none."""
        enhanced = EnhancedQuery(original="strymon ob1", search_terms=[])

        merged = merge_with_fallback(enhanced, "strymon ob1")

        assert merged.search_terms == expand("strymon ob1").search_terms
        assert merged.categories == ["general"]
        assert merged.forums == ["reddit"]

    def test_enhancer_labels_win(self):
        """Test that the enhancer's categories, forums and reported flags are kept."""
        enhanced = EnhancedQuery(
            original="strymon ob1",
            search_terms=[],
            categories=["guitar pedals"],
            forums=["talkbass"],
            flags={"high_value_item": True, "reseller_friendly": False},
        )

        merged = merge_with_fallback(enhanced, "strymon ob1")

        assert merged.categories == ["guitar pedals"]
        assert merged.forums == ["talkbass"]
        assert merged.flags.high_value_item is True
        assert merged.flags.reseller_friendly is False
        # Not reported by the enhancer, so taken from the fallback
        assert merged.flags.common_scam_target is False

    def test_merged_terms_capped(self):
        """Test the union is capped at 8 terms."""
        enhanced = EnhancedQuery(
            original="strymon ob1",
            search_terms=["ob1 compressor", "strymon compressor", "ob-1", "ob 1"],
        )

        merged = merge_with_fallback(enhanced, "strymon ob1")

        assert len(merged.search_terms) == 8
        assert merged.search_terms[5:] == ["ob1 compressor", "strymon compressor", "ob-1"]
