"""
Tests for removing the interviewer from analysis output.
"""

import copy
import unittest

from core.speaker_filter import (
    filter_excluded_speaker,
    filter_quotes,
    is_excluded_speaker,
    normalize_name,
)

ALIASES = ["Jamie Horton", "Jamie", "Horton"]


def _quote(participant, text="Something insightful"):
    return {"text": text, "participant": participant, "context": "Q3"}


def _theme(*participants, title="Theme"):
    return {
        "title": title,
        "confidence": 0.8,
        "mentions": 3,
        "description": "desc",
        "quotes": [_quote(p) for p in participants],
    }


def _position(supporter, quote_participant=None):
    return {
        "stance": "For",
        "supporter": supporter,
        "reasoning": "because",
        "quote": _quote(quote_participant or supporter),
    }


class TestNameMatching(unittest.TestCase):

    def test_normalize(self):
        self.assertEqual(normalize_name("  Dr.   Horton "), "dr. horton")

    def test_bidirectional_substring(self):
        self.assertTrue(is_excluded_speaker("Jamie Horton", ALIASES))
        self.assertTrue(is_excluded_speaker("Dr. Horton", ALIASES))
        self.assertTrue(is_excluded_speaker("JAMIE", ALIASES))
        # Contained by an alias
        self.assertTrue(is_excluded_speaker("Jami", ["Jamie Horton"]))

    def test_unrelated_names(self):
        self.assertFalse(is_excluded_speaker("Dr. Smith", ALIASES))
        self.assertFalse(is_excluded_speaker("Priya", ALIASES))

    def test_empty_or_missing_name_never_excluded(self):
        self.assertFalse(is_excluded_speaker("", ALIASES))
        self.assertFalse(is_excluded_speaker("   ", ALIASES))
        self.assertFalse(is_excluded_speaker(None, ALIASES))

    def test_blank_aliases_ignored(self):
        self.assertFalse(is_excluded_speaker("Dr. Smith", ["", "  "]))


class TestFilterAnalysis(unittest.TestCase):

    def test_mixed_theme_keeps_other_quote(self):
        analysis = {"keyThemes": [_theme("Jamie Horton", "Dr. Smith")], "disagreements": []}
        result = filter_excluded_speaker(analysis, ALIASES)

        self.assertEqual(len(result["keyThemes"]), 1)
        quotes = result["keyThemes"][0]["quotes"]
        self.assertEqual(len(quotes), 1)
        self.assertEqual(quotes[0]["participant"], "Dr. Smith")

    def test_theme_with_only_interviewer_is_dropped(self):
        analysis = {"keyThemes": [_theme("Jamie"), _theme("Dr. Smith", title="Kept")], "disagreements": []}
        result = filter_excluded_speaker(analysis, ALIASES)

        self.assertEqual([t["title"] for t in result["keyThemes"]], ["Kept"])

    def test_disagreement_positions_and_participants(self):
        disagreement = {
            "title": "Pricing",
            "intensity": "High",
            "participants": ["Dr. Smith", "Jamie Horton", "Priya"],
            "description": "desc",
            "positions": [
                _position("Dr. Smith"),
                _position("Jamie Horton"),
                # Supporter fine, but the quote is the interviewer's
                _position("Priya", quote_participant="Horton"),
            ],
        }
        result = filter_excluded_speaker({"keyThemes": [], "disagreements": [disagreement]}, ALIASES)

        kept = result["disagreements"][0]
        self.assertEqual(kept["participants"], ["Dr. Smith", "Priya"])
        self.assertEqual([p["supporter"] for p in kept["positions"]], ["Dr. Smith"])

    def test_disagreement_emptied_is_dropped(self):
        disagreement = {
            "title": "Scope",
            "intensity": "Low",
            "participants": ["Jamie"],
            "description": "desc",
            "positions": [_position("Jamie")],
        }
        result = filter_excluded_speaker({"keyThemes": [], "disagreements": [disagreement]}, ALIASES)
        self.assertEqual(result["disagreements"], [])

    def test_input_not_mutated(self):
        analysis = {"keyThemes": [_theme("Jamie", "Dr. Smith")], "disagreements": []}
        snapshot = copy.deepcopy(analysis)
        filter_excluded_speaker(analysis, ALIASES)
        self.assertEqual(analysis, snapshot)

    def test_idempotent(self):
        analysis = {
            "keyThemes": [_theme("Jamie", "Dr. Smith"), _theme("Horton"), _theme("Priya")],
            "disagreements": [{
                "title": "T", "intensity": "Medium", "participants": ["Jamie", "Priya"],
                "description": "d", "positions": [_position("Priya"), _position("Jamie")],
            }],
        }
        once = filter_excluded_speaker(analysis, ALIASES)
        twice = filter_excluded_speaker(once, ALIASES)
        self.assertEqual(once, twice)

    def test_no_excluded_names_survive(self):
        analysis = {
            "keyThemes": [_theme("Jamie Horton", "dr. horton", "Dr. Smith"), _theme("JAMIE")],
            "disagreements": [{
                "title": "T", "intensity": "High", "participants": ["Horton"],
                "description": "d", "positions": [_position("Priya", "Jamie"), _position("Sam")],
            }],
        }
        result = filter_excluded_speaker(analysis, ALIASES)

        names = []
        for theme in result["keyThemes"]:
            names += [q["participant"] for q in theme["quotes"]]
        for disagreement in result["disagreements"]:
            names += disagreement["participants"]
            for position in disagreement["positions"]:
                names += [position["supporter"], position["quote"]["participant"]]

        for name in names:
            for alias in ALIASES:
                self.assertNotIn(alias.lower(), name.lower())
                self.assertNotIn(name.lower(), alias.lower())

    def test_list_lengths_never_grow(self):
        analysis = {"keyThemes": [_theme("Jamie"), _theme("Sam")], "disagreements": []}
        result = filter_excluded_speaker(analysis, ALIASES)
        self.assertLessEqual(len(result["keyThemes"]), len(analysis["keyThemes"]))

    def test_malformed_fields_left_alone(self):
        analysis = {
            "keyThemes": ["not a dict", {"title": "No quotes key"}, {"title": "S", "quotes": ["plain string quote"]}],
            "disagreements": "oops",
        }
        result = filter_excluded_speaker(analysis, ALIASES)
        self.assertEqual(result, analysis)

    def test_non_dict_analysis_returned(self):
        self.assertIsNone(filter_excluded_speaker(None, ALIASES))


class TestFilterQuotes(unittest.TestCase):

    def test_filters_by_participant(self):
        quotes = [_quote("Jamie"), _quote("Sam"), {"text": "no attribution"}]
        result = filter_quotes(quotes, ALIASES)
        self.assertEqual(result, [_quote("Sam"), {"text": "no attribution"}])

    def test_non_list_returned(self):
        self.assertEqual(filter_quotes("nope", ALIASES), "nope")

    def test_drops_quote_whose_text_names_the_interviewer(self):
        quotes = [
            _quote("Sam", text="As JAMIE  HORTON said, pricing matters"),
            _quote("Sam", text="Jamie asked a good question"),
        ]
        result = filter_quotes(quotes, ALIASES)
        # Only the full canonical name in the text excludes a quote
        self.assertEqual([q["text"] for q in result], ["Jamie asked a good question"])


if __name__ == "__main__":
    unittest.main()
