"""
Tests for summary and recommendation reply parsing.

Recommendation extraction takes the first '{' to the last '}' of the
reply; these tests pin that behaviour, including where it misfires.
"""

import json
import unittest

from llm.errors import MalformedRecommendationResponse
from llm.response_parser import (
    Recommendation,
    parse_summary,
    parse_recommendations,
    extract_json_span,
)


class TestParseSummary(unittest.TestCase):

    def test_trims_only(self):
        self.assertEqual(parse_summary("\n  The hero leaves home.\n"), "The hero leaves home.")

    def test_inner_text_verbatim(self):
        raw = "Line one.\n\nLine two."
        self.assertEqual(parse_summary(raw), raw)


class TestParseRecommendations(unittest.TestCase):

    def test_json_wrapped_in_prose(self):
        raw = ('Sure! {"recommendations":[{"title":"T","author":"A","reason":"R",'
               '"tags":["x"]}]} Hope that helps!')

        result = parse_recommendations(raw)

        self.assertEqual(result, [Recommendation(title="T", author="A", reason="R", tags=("x",))])

    def test_pure_json_multiple_items_keep_order(self):
        raw = json.dumps({"recommendations": [
            {"title": "First", "author": "A1", "reason": "R1", "tags": ["a", "b"]},
            {"title": "Second", "author": "A2", "reason": "R2", "tags": []},
        ]})

        result = parse_recommendations(raw)

        self.assertEqual([r.title for r in result], ["First", "Second"])
        self.assertEqual(result[0].tags, ("a", "b"))
        self.assertEqual(result[1].tags, ())

    def test_tags_optional(self):
        raw = '{"recommendations": [{"title": "T", "author": "A", "reason": "R"}]}'
        self.assertEqual(parse_recommendations(raw)[0].tags, ())

    def test_null_tags_treated_as_empty(self):
        raw = '{"recommendations": [{"title": "T", "author": "A", "reason": "R", "tags": null}]}'
        self.assertEqual(parse_recommendations(raw)[0].tags, ())

    def test_empty_list_is_valid(self):
        self.assertEqual(parse_recommendations('{"recommendations": []}'), [])

    def test_no_brace_fails_with_raw_text(self):
        raw = "I could not think of any books, sorry."
        with self.assertRaises(MalformedRecommendationResponse) as ctx:
            parse_recommendations(raw)
        self.assertEqual(ctx.exception.raw_text, raw)

    def test_inverted_span_fails(self):
        with self.assertRaises(MalformedRecommendationResponse):
            parse_recommendations("} nothing here {")

    def test_invalid_json_fails(self):
        with self.assertRaises(MalformedRecommendationResponse) as ctx:
            parse_recommendations('{"recommendations": [ {"title": "T", } ]}')
        self.assertIn("invalid JSON", ctx.exception.reason)

    def test_missing_array_fails(self):
        with self.assertRaises(MalformedRecommendationResponse):
            parse_recommendations('{"books": []}')

    def test_one_bad_item_fails_whole_parse(self):
        raw = json.dumps({"recommendations": [
            {"title": "Good", "author": "A", "reason": "R"},
            {"title": "No author", "reason": "R"},
        ]})
        with self.assertRaises(MalformedRecommendationResponse) as ctx:
            parse_recommendations(raw)
        self.assertIn("item 1", ctx.exception.reason)
        self.assertIn("author", ctx.exception.reason)

    def test_null_required_field_fails(self):
        raw = '{"recommendations": [{"title": "T", "author": null, "reason": "R"}]}'
        with self.assertRaises(MalformedRecommendationResponse):
            parse_recommendations(raw)

    def test_non_list_tags_fail(self):
        raw = '{"recommendations": [{"title": "T", "author": "A", "reason": "R", "tags": "x"}]}'
        with self.assertRaises(MalformedRecommendationResponse):
            parse_recommendations(raw)

    def test_example_object_in_prose_breaks_the_span(self):
        # Two separate objects: the span runs from the first '{' to the last '}'
        raw = ('Format is like {"title": "..."}. Here you go: '
               '{"recommendations": [{"title": "T", "author": "A", "reason": "R"}]}')
        with self.assertRaises(MalformedRecommendationResponse):
            parse_recommendations(raw)


class TestExtractJsonSpan(unittest.TestCase):

    def test_span_is_inclusive(self):
        self.assertEqual(extract_json_span("abc {x} def"), "{x}")

    def test_first_open_last_close(self):
        self.assertEqual(extract_json_span("a {1} b {2} c"), "{1} b {2}")


class TestRecommendation(unittest.TestCase):

    def test_search_key(self):
        rec = Recommendation(title="Dune", author="Frank Herbert", reason="Classic")
        self.assertEqual(rec.search_key, "Dune Frank Herbert")
        self.assertEqual(rec.to_dict()["search_key"], "Dune Frank Herbert")

    def test_dict_round_trip(self):
        rec = Recommendation(title="T", author="A", reason="R", tags=("x", "y"))
        self.assertEqual(rec.to_dict()["tags"], ["x", "y"])
        self.assertEqual(Recommendation.from_dict(rec.to_dict()), rec)

    def test_numbers_coerced_to_text(self):
        rec = Recommendation.from_dict({"title": 1984, "author": "Orwell", "reason": "R"})
        self.assertEqual(rec.title, "1984")

    def test_immutable(self):
        rec = Recommendation(title="T", author="A", reason="R")
        with self.assertRaises(AttributeError):
            rec.title = "Other"


if __name__ == "__main__":
    unittest.main()
