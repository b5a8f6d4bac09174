"""
Unit tests for the fallback response generator.
"""

from larun.core import fallback
from larun.core.fallback import (
    DEFAULT_TIC_ID, FALLBACK_RULES, HELP_RULE, FallbackRule,
    extract_kepler_id, extract_tic_id, generate, match_rule,
)


class TestIdentifierExtraction:

    def test_tic_prefix(self):
        assert extract_tic_id("look at TIC 123456 please") == "123456"

    def test_tic_prefix_without_space_any_case(self):
        assert extract_tic_id("tic42") == "42"

    def test_long_number_without_prefix(self):
        assert extract_tic_id("what about 2519853 ?") == "2519853"

    def test_short_number_is_not_a_target(self):
        assert extract_tic_id("search sector 12") == DEFAULT_TIC_ID

    def test_kepler_id(self):
        assert extract_kepler_id("Tell me about Kepler-90") == "90"
        assert extract_kepler_id("kepler field") == "11"


class TestRuleDispatch:

    def test_target_search(self):
        text = generate("Search TIC 123456 for transits")
        assert "TIC 123456" in text
        assert "BLS Periodogram Results" in text
        assert "TinyML Detection" in text

    def test_default_target_when_no_id(self):
        text = generate("run a transit search")
        assert f"TIC {DEFAULT_TIC_ID}" in text

    def test_habitable_zone(self):
        text = generate("Is this planet in the habitable zone?")
        assert "Habitable Zone Analysis" in text

    def test_hz_abbreviation(self):
        assert match_rule("HZ check").name == "habitable_zone"

    def test_kepler_catalog(self):
        text = generate("Tell me about Kepler-90")
        assert "Kepler-90 System Analysis" in text

    def test_report(self):
        assert "Generating Analysis Report" in generate("generate a PDF")

    def test_help_for_unmatched(self):
        text = generate("hello there")
        assert 'I understand you\'re asking about: "hello there"' in text
        assert match_rule("hello there") is HELP_RULE

    def test_first_matching_rule_wins(self):
        # Mentions both a target search and the habitable zone
        assert match_rule("search the habitable zone of TIC 1").name == "target_search"
        # Kepler plus report: catalog comes first
        assert match_rule("report on Kepler-11").name == "catalog"

    def test_rule_order(self):
        assert [rule.name for rule in FALLBACK_RULES] == [
            "target_search", "habitable_zone", "catalog", "report",
        ]

    def test_custom_rule_table(self):
        rules = [FallbackRule("echo", lambda lowered: "ping" in lowered, lambda m: "pong")]
        assert match_rule("PING", rules).handler("PING") == "pong"
        assert match_rule("other", rules) is HELP_RULE


def test_generation_is_deterministic():
    message = "Search TIC 307210830 for transits"
    assert fallback.generate(message) == fallback.generate(message)
