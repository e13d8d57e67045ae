"""
Tests for chapter text preparation.

Cleaning collapses whitespace and drops control characters; truncation
prefers the last sentence terminator inside the window.
"""

import unittest

from core.text_prep import clean_text, truncate_at_sentence, prepare, ELLIPSIS


class TestCleanText(unittest.TestCase):
    """Whitespace and control-character normalization."""

    def test_whitespace_runs_collapse_to_one_space(self):
        self.assertEqual(clean_text("a \n\n\t b   c"), "a b c")

    def test_control_characters_removed(self):
        self.assertEqual(clean_text("a\x00b\x07c\x7fd"), "abcd")

    def test_control_character_between_spaces_leaves_both_spaces(self):
        self.assertEqual(clean_text("a \x01 b"), "a  b")
        self.assertEqual(prepare("a \x01 b", 100), "a  b")

    def test_trimmed(self):
        self.assertEqual(clean_text("\n  hello world \r\n"), "hello world")

    def test_empty_input(self):
        self.assertEqual(clean_text(""), "")
        self.assertEqual(clean_text(" \t\n "), "")

    def test_cjk_text_untouched(self):
        self.assertEqual(clean_text("第一章\n\n  他走了。"), "第一章 他走了。")


class TestTruncateAtSentence(unittest.TestCase):
    """Boundary-safe truncation."""

    def test_under_limit_is_identity(self):
        text = "Short text."
        self.assertEqual(truncate_at_sentence(text, 100), text)

    def test_exactly_at_limit_is_identity(self):
        text = "abcde"
        self.assertEqual(truncate_at_sentence(text, 5), text)

    def test_cuts_after_last_terminator_in_window(self):
        text = "Hello world. Second sentence here."
        self.assertEqual(truncate_at_sentence(text, 20), "Hello world.")

    def test_uses_the_last_of_mixed_terminators(self):
        text = "One! Two? Three. Four and more words"
        # Window "One! Two? Three. Fou" -> last terminator is '.'
        self.assertEqual(truncate_at_sentence(text, 20), "One! Two? Three.")

    def test_cjk_terminators(self):
        text = "第一句。第二句很长很长很长"
        self.assertEqual(truncate_at_sentence(text, 6), "第一句。")

    def test_no_terminator_appends_ellipsis(self):
        self.assertEqual(truncate_at_sentence("abcdefghij", 5), "abcde" + ELLIPSIS)

    def test_terminator_only_at_position_zero_is_ignored(self):
        self.assertEqual(truncate_at_sentence(".abcdef", 4), ".abc" + ELLIPSIS)

    def test_zero_limit(self):
        self.assertEqual(truncate_at_sentence("abc", 0), ELLIPSIS)

    def test_negative_limit_rejected(self):
        with self.assertRaises(ValueError):
            truncate_at_sentence("abc", -1)

    def test_output_length_bound(self):
        text = "word " * 200
        for limit in (1, 7, 50, 333):
            result = truncate_at_sentence(text, limit)
            self.assertLessEqual(len(result), limit + len(ELLIPSIS))


class TestPrepare(unittest.TestCase):
    """Clean then truncate."""

    def test_cleans_before_measuring(self):
        raw = "A.\n\n\n\n\n\n\n\n\n\nB."
        # 14 raw characters, 5 after cleaning
        self.assertEqual(prepare(raw, 5), "A. B.")

    def test_truncated_output_ends_with_terminator(self):
        raw = "First sentence.   Second sentence!  Third sentence goes on and on"
        result = prepare(raw, 40)
        self.assertEqual(result, "First sentence. Second sentence!")
        self.assertTrue(result.endswith("!"))

    def test_negative_limit_rejected(self):
        with self.assertRaises(ValueError):
            prepare("text", -5)


if __name__ == "__main__":
    unittest.main()
