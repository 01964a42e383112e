"""Unit tests for the tagger."""

from news_aggregation.core.tagger import DEFAULT_VOCABULARIES, Tagger


class TestTagger:
    """Tests for Tagger."""

    def test_default_categories(self):
        tagger = Tagger()

        assert tagger.categories == ["regional", "practice", "policy"]

    def test_case_insensitive_match(self):
        assert Tagger().tag("New PERMACULTURE course") == {"permaculture"}

    def test_portuguese_terms(self):
        tags = Tagger().tag("Investigação sobre agrofloresta nos Açores")

        assert tags == {"research", "agroforestry", "azores"}

    def test_categories_are_unioned(self):
        tags = Tagger().tag("São Miguel climate policy and regeneration")

        assert tags == {"sao-miguel", "climate", "policy", "regeneration"}

    def test_each_tag_once(self):
        tags = Tagger().tag("azores Azores AÇORES açores")

        assert tags == {"azores"}

    def test_substring_matching(self):
        """Test that terms match inside longer words."""
        assert "environment" in Tagger().tag("Environmental monitoring")

    def test_no_match(self):
        assert Tagger().tag("Football results") == set()

    def test_empty_text(self):
        assert Tagger().tag("") == set()
        assert Tagger().tag(None) == set()

    def test_tag_texts_combines_title_and_summary(self):
        tags = Tagger().tag_texts("Ponta Delgada council", "Sustainability report")

        assert tags == {"ponta-delgada", "sustainability"}

    def test_tag_texts_missing_summary(self):
        assert Tagger().tag_texts("Innovation week", None) == {"innovation"}

    def test_custom_vocabulary(self):
        tagger = Tagger({"topic": {"ocean": ("Ocean", "mar")}})

        assert tagger.tag("Deep ocean life") == {"ocean"}
        assert tagger.tag("Azores") == set()

    def test_default_vocabulary_not_mutated(self):
        Tagger({"topic": {"x": ("X",)}})

        assert "topic" not in DEFAULT_VOCABULARIES
