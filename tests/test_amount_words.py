"""Tests for amount_to_words and money formatting."""

import pytest

from quotebuilder.forms.amount_words import (
    amount_to_words, integer_to_words, format_money, MAX_AMOUNT,
)


# ═══════════════════════════════════════════════════════════════════════
# Whole amounts
# ═══════════════════════════════════════════════════════════════════════

class TestWholeAmounts:
    def test_zero_is_bare(self):
        assert amount_to_words(0) == "Zero"

    def test_none_reads_as_zero(self):
        assert amount_to_words(None) == "Zero"

    def test_one(self):
        assert amount_to_words(1) == "One Dollars"

    def test_teens(self):
        assert amount_to_words(13) == "Thirteen Dollars"
        assert amount_to_words(19) == "Nineteen Dollars"

    def test_tens_joined_with_ones(self):
        assert amount_to_words(42) == "Forty Two Dollars"

    def test_one_hundred_has_no_zero(self):
        words = amount_to_words(100)
        assert words == "One Hundred Dollars"
        assert "Zero" not in words

    def test_thousand_five_hundred(self):
        assert "One Thousand Five Hundred" in amount_to_words(1500)

    def test_zero_groups_skipped(self):
        assert amount_to_words(1_000_005) == "One Million Five Dollars"

    def test_all_scales(self):
        words = amount_to_words(2_003_004_005)
        assert words == "Two Billion Three Million Four Thousand Five Dollars"

    def test_template_total(self):
        # 90,090 + 24,000 from the starting template
        assert amount_to_words(114090) == "One Hundred Fourteen Thousand Ninety Dollars"

    def test_deterministic(self):
        assert amount_to_words(987654) == amount_to_words(987654)


# ═══════════════════════════════════════════════════════════════════════
# Cents
# ═══════════════════════════════════════════════════════════════════════

class TestCents:
    def test_cents_appended(self):
        assert amount_to_words(12.05) == "Twelve Dollars and Five Cents"

    def test_fraction_only(self):
        assert amount_to_words(0.5) == "Zero Dollars and Fifty Cents"

    def test_cents_round_up_into_whole(self):
        assert amount_to_words(4.999) == "Five Dollars"

    def test_no_cents_phrase_for_whole_float(self):
        assert amount_to_words(250.0) == "Two Hundred Fifty Dollars"


# ═══════════════════════════════════════════════════════════════════════
# Invalid input
# ═══════════════════════════════════════════════════════════════════════

class TestInvalid:
    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            amount_to_words(-1)

    def test_too_large_rejected(self):
        with pytest.raises(ValueError):
            amount_to_words(MAX_AMOUNT)


class TestHelpers:
    def test_integer_to_words_zero(self):
        assert integer_to_words(0) == "Zero"

    def test_integer_to_words_eleven_thousand(self):
        assert integer_to_words(11000) == "Eleven Thousand"

    def test_format_money(self):
        assert format_money(1234.5) == "$1,234.50"

    def test_format_money_whole(self):
        assert format_money(114090, 0) == "$114,090"
