"""Tests for whitespace tokenization.

RULES:
- Words keep their punctuation
- Any Unicode whitespace run separates words
- Tokenizing is idempotent over its own space-joined output
"""

import pytest

from rsvp_reader.core.tokenizer import normalize_words, tokenize, word_count


class TestTokenize:
    def test_collapses_whitespace_runs(self):
        assert tokenize("  a  b\nc ") == ("a", "b", "c")

    def test_empty_text(self):
        assert tokenize("") == ()

    def test_whitespace_only(self):
        assert tokenize(" \t\n\r ") == ()

    def test_punctuation_stays_attached(self):
        assert tokenize("Hello, world! (really)") == ("Hello,", "world!", "(really)")

    def test_unicode_whitespace(self):
        text = "alpha\u00a0beta\u2028gamma\u3000delta"
        assert tokenize(text) == ("alpha", "beta", "gamma", "delta")

    def test_non_ascii_words(self):
        assert tokenize("naïve café über") == ("naïve", "café", "über")

    def test_idempotent(self):
        words = tokenize("The  quick\tbrown\n\nfox, jumps.")
        assert tokenize(" ".join(words)) == words

    def test_returns_tuple(self):
        assert isinstance(tokenize("a b"), tuple)

    def test_none_raises_type_error(self):
        with pytest.raises(TypeError):
            tokenize(None)


class TestNormalizeWords:
    def test_drops_blank_entries(self):
        assert normalize_words(["a", "", "  ", "b"]) == ("a", "b")

    def test_splits_multi_word_entries(self):
        assert normalize_words(["a b", "c"]) == ("a", "b", "c")

    def test_strips_surrounding_whitespace(self):
        assert normalize_words([" word\n"]) == ("word",)

    def test_none_raises_type_error(self):
        with pytest.raises(TypeError):
            normalize_words(None)


def test_word_count():
    assert word_count("one two  three\n") == 3
    assert word_count("") == 0
