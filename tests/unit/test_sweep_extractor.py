"""Tests for deterministic sweep response classification."""

import pytest

from defaultanswer.services.sweep_extractor import (
    detect_confidence_language,
    detect_refusal_type,
    detect_winner,
    extract_category_label,
    extract_learning_fields,
    extract_sweep_signals,
    has_token,
    is_likely_name,
    parse_list_items,
    strip_to_name,
)

BRANDS = ["acme"]
DOMAINS = ["acme.com", "www.acme.com"]


class TestExtractSweepSignals:
    """Tests for extract_sweep_signals()."""

    def test_ranked_list_with_brand_first(self):
        result = extract_sweep_signals(
            "1. Acme - great pricing\n2. Globex - enterprise focus",
            BRANDS,
            DOMAINS,
            expect_list=True,
        )

        assert result.mentioned is True
        assert result.has_brand_mention is True
        assert result.mention_rank == 1
        assert result.winner == "Acme"
        assert result.alternatives == ["Globex"]
        assert result.confidence == 70
        assert result.parse_failed is False
        assert result.extraction_confidence == "high"

    def test_missing_list_is_parse_failure(self):
        result = extract_sweep_signals(
            "Acme is a reasonable choice for most teams.", BRANDS, DOMAINS, expect_list=True
        )

        assert result.parse_failed is True
        assert result.mentioned is True
        assert result.mention_rank is None
        assert result.winner is None
        assert result.alternatives == []
        assert result.confidence == 20
        assert result.extraction_confidence == "low"

    def test_bullets_when_no_numbers(self):
        result = extract_sweep_signals("- Globex: fast\n- Acme: cheap", BRANDS, DOMAINS)

        assert result.mention_rank == 2
        assert result.winner == "Globex"
        assert result.alternatives == []
        assert result.confidence == 50

    def test_bullet_glyphs(self):
        result = extract_sweep_signals("• Globex\n• Initech\n• Acme", BRANDS, DOMAINS)

        assert result.mention_rank == 3
        assert result.alternatives == ["Initech"]

    def test_numbering_stops_at_first_gap(self):
        result = extract_sweep_signals("1. Globex\n3. Acme", BRANDS, DOMAINS)

        assert result.mention_rank is None
        assert result.mentioned is True
        assert result.confidence == 30

    def test_first_claim_on_a_number_wins(self):
        items = parse_list_items("1. Globex\n1. Acme\n2. Initech")
        assert [(item.index, item.text) for item in items] == [(1, "Globex"), (2, "Initech")]

    def test_prose_winner_names_the_brand(self):
        result = extract_sweep_signals(
            "The best is Acme, then Globex.", BRANDS, DOMAINS, expect_list=False
        )

        assert result.winner == "Acme"
        assert result.mention_rank == 1
        assert result.alternatives == ["Globex"]
        assert result.confidence == 70
        assert result.extraction_confidence == "medium"

    def test_prose_alternatives_skip_sentence_openers(self):
        result = extract_sweep_signals(
            "For most teams, I recommend Globex. Here are others worth a look: "
            "Initech and Hooli. Overall Acme is fine too.",
            BRANDS,
            DOMAINS,
            expect_list=False,
        )

        assert result.winner == "Globex"
        assert result.alternatives == ["Initech", "Hooli"]

    def test_sentence_initial_name_counts_when_repeated(self):
        result = extract_sweep_signals(
            "Initech is solid. Many teams also pick Initech or Hooli.",
            BRANDS,
            DOMAINS,
            expect_list=False,
        )

        assert result.alternatives == ["Initech", "Hooli"]

    def test_bold_winner(self):
        result = extract_sweep_signals(
            "Consider **Globex** for large teams.", BRANDS, DOMAINS, expect_list=False
        )

        assert result.winner == "Globex"
        assert result.mentioned is False
        assert result.mention_rank is None
        assert result.confidence == 10

    def test_domain_mention(self):
        result = extract_sweep_signals(
            "You could try acme.com for this.", ["Zenith"], DOMAINS, expect_list=False
        )

        assert result.has_domain_mention is True
        assert result.has_brand_mention is False
        assert result.mentioned is True

    def test_hedged_prose_is_low_confidence(self):
        result = extract_sweep_signals(
            "It is unclear which tool fits best.", BRANDS, DOMAINS, expect_list=False
        )
        assert result.extraction_confidence == "low"

    @pytest.mark.parametrize("text", [None, "", "   ", "1.", "**", "\n\n\n"])
    def test_degenerate_responses(self, text):
        result = extract_sweep_signals(text, BRANDS, DOMAINS)

        assert result.mentioned is False
        assert result.confidence == 0
        assert result.parse_failed is True


class TestNameHelpers:
    """Tests for token and name helpers."""

    def test_has_token_is_whole_word(self):
        assert has_token("we use acme daily", ["acme"])
        assert not has_token("we use acmecorp daily", ["acme"])

    def test_has_token_flexible_whitespace(self):
        assert has_token("default   answer is new", ["Default Answer"])

    def test_strip_to_name(self):
        assert strip_to_name("**Globex** – enterprise focus") == "Globex"
        assert strip_to_name("Initech (formerly Initrode)") == "Initech"

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("Globex", True),
            ("A", False),
            ("I don't know", False),
            ("It depends.", False),
            ("one two three four five six seven", False),
            (None, False),
        ],
    )
    def test_is_likely_name(self, value, expected):
        assert is_likely_name(value) is expected

    def test_detect_winner_prose(self):
        assert detect_winner("Our top pick is Globex; it scales.") == "Globex"

    def test_detect_winner_none(self):
        assert detect_winner("There is no clear answer here") is None


class TestLearningFields:
    """Tests for extract_learning_fields() and its parts."""

    def test_refusal_types(self):
        assert detect_refusal_type("") == "full"
        assert detect_refusal_type("I can't browse the web.") == "full"
        assert detect_refusal_type("Globex is a good option.") == "none"
        assert (
            detect_refusal_type(
                "I can't browse the web, however in general the leading tools in "
                "this category include Globex and Initech."
            )
            == "partial"
        )

    def test_category_label(self):
        assert extract_category_label("Category: Website analytics") == "Website analytics"
        assert extract_category_label("This is a monitoring tool.") == "monitoring tool"
        assert extract_category_label("No label here") is None

    def test_confidence_language(self):
        assert detect_confidence_language("This might work") == "hedged"
        assert detect_confidence_language("This is definitely great") == "assertive"
        assert detect_confidence_language("It might be the best") == "mixed"

    def test_extract_learning_fields(self):
        fields = extract_learning_fields(
            "What does acme.com offer?",
            "Acme.com offers analytics. Category: Product analytics. Compare with Globex.",
        )

        assert fields.mentioned_domains == ["acme.com"]
        assert fields.category_label == "Product analytics"
        assert fields.refusal_type == "none"
        assert "globex" in fields.mentioned_brands

    def test_empty_response(self):
        fields = extract_learning_fields(None, None)

        assert fields.refusal_type == "full"
        assert fields.winner is None
        assert fields.mentioned_domains == []
