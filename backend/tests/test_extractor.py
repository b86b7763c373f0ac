"""
Tests for JSON recovery from model output and the shallow shape check.
"""

import json
import unittest

from core.errors import ParseError, SchemaError
from core.extractor import (
    extract_json,
    parse_brace_span,
    parse_direct,
    parse_fenced,
    validate_analysis_shape,
)

SAMPLE = {
    "keyThemes": [
        {
            "title": "Onboarding friction",
            "confidence": 0.9,
            "mentions": 4,
            "description": "Setup takes too long",
            "quotes": [{"text": "It took a week", "participant": "Dr. Smith"}],
        }
    ],
    "disagreements": [],
}


class TestStrategies(unittest.TestCase):
    """Each tier works on its own"""

    def test_parse_direct(self):
        self.assertEqual(parse_direct(json.dumps(SAMPLE)), SAMPLE)

    def test_parse_direct_rejects_prose(self):
        with self.assertRaises(ValueError):
            parse_direct("Here you go: {}")

    def test_parse_fenced_json_tag(self):
        text = f"Sure!\n```json\n{json.dumps(SAMPLE)}\n```\nHope that helps."
        self.assertEqual(parse_fenced(text), SAMPLE)

    def test_parse_fenced_bare(self):
        text = f"```\n{json.dumps(SAMPLE)}\n```"
        self.assertEqual(parse_fenced(text), SAMPLE)

    def test_parse_fenced_without_fence(self):
        with self.assertRaises(ValueError):
            parse_fenced(json.dumps(SAMPLE))

    def test_parse_brace_span(self):
        text = f"The analysis is {json.dumps(SAMPLE)} as requested."
        self.assertEqual(parse_brace_span(text), SAMPLE)

    def test_parse_brace_span_reversed_braces(self):
        with self.assertRaises(ValueError):
            parse_brace_span("} nothing here {")


class TestExtractJson(unittest.TestCase):

    def test_round_trip_plain(self):
        self.assertEqual(extract_json(json.dumps(SAMPLE)), SAMPLE)

    def test_round_trip_fenced(self):
        self.assertEqual(extract_json(f"```json\n{json.dumps(SAMPLE)}\n```"), SAMPLE)

    def test_prose_wrapped_fence(self):
        text = 'Here is the analysis:\n```json\n{"keyThemes":[],"disagreements":[]}\n```'
        self.assertEqual(extract_json(text), {"keyThemes": [], "disagreements": []})

    def test_prose_prefix_uses_brace_span(self):
        text = 'Note: {"keyThemes": [], "disagreements": []}'
        self.assertEqual(extract_json(text), {"keyThemes": [], "disagreements": []})

    def test_no_braces_raises_parse_error(self):
        with self.assertRaises(ParseError) as cm:
            extract_json("I could not find any themes in these transcripts.")
        self.assertIn("I could not find", cm.exception.raw_prefix)

    def test_non_object_json_raises_parse_error(self):
        with self.assertRaises(ParseError):
            extract_json("[1, 2, 3]")

    def test_empty_and_none(self):
        with self.assertRaises(ParseError):
            extract_json("")
        with self.assertRaises(ParseError):
            extract_json(None)

    def test_unbalanced_braces_raise_parse_error(self):
        with self.assertRaises(ParseError):
            extract_json('{"keyThemes": [ }')

    def test_raw_prefix_truncated(self):
        with self.assertRaises(ParseError) as cm:
            extract_json("x" * 1000)
        self.assertEqual(len(cm.exception.raw_prefix), 200)


class TestValidateShape(unittest.TestCase):

    def test_valid(self):
        self.assertIs(validate_analysis_shape(SAMPLE), SAMPLE)

    def test_missing_disagreements(self):
        with self.assertRaises(SchemaError):
            validate_analysis_shape({"keyThemes": []})

    def test_non_list_field(self):
        with self.assertRaises(SchemaError):
            validate_analysis_shape({"keyThemes": {}, "disagreements": []})

    def test_not_an_object(self):
        with self.assertRaises(SchemaError):
            validate_analysis_shape([])


if __name__ == "__main__":
    unittest.main()
