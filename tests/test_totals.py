"""Tests for quotation totals."""

import random

from quotebuilder.forms.document import QuotationItem
from quotebuilder.forms.totals import compute_totals, line_total, round_whole, totals_for_document


class TestSubtotal:
    def test_sum_of_lines(self):
        items = [QuotationItem("a", quantity=2, unit_cost=10),
                 QuotationItem("b", quantity=3, unit_cost=5)]
        assert compute_totals(items)["subtotal"] == 35

    def test_order_does_not_matter(self):
        items = [QuotationItem(f"r{i}", quantity=i + 1, unit_cost=(i * 7) % 13 + 1)
                 for i in range(25)]
        shuffled = list(items)
        random.Random(4).shuffle(shuffled)
        assert compute_totals(items)["subtotal"] == compute_totals(shuffled)["subtotal"]

    def test_accepts_dicts(self):
        rows = [{"quantity": 2, "unitCost": 50}, {"qty": 1, "unit_cost": 25}]
        assert compute_totals(rows)["subtotal"] == 125

    def test_empty(self):
        t = compute_totals([])
        assert t["subtotal"] == 0
        assert t["grand_total"] == 0
        assert t["grand_total_words"] == "Zero"

    def test_line_total(self):
        assert line_total(QuotationItem("x", quantity=4, unit_cost=2.5)) == 10


class TestRates:
    def test_zero_rates_have_no_tax(self):
        t = compute_totals([QuotationItem("a", quantity=1, unit_cost=100)], 0, 0)
        assert t["has_tax"] is False
        assert t["vat_amount"] == 0
        assert t["tax_amount"] == 0

    def test_none_rates_treated_as_zero(self):
        t = compute_totals([QuotationItem("a", quantity=1, unit_cost=100)], None, None)
        assert t["has_tax"] is False
        assert t["grand_total"] == 100

    def test_vat_and_tax(self):
        t = compute_totals([QuotationItem("a", quantity=1, unit_cost=1000)], 15, 5)
        assert t["vat_amount"] == 150
        assert t["tax_amount"] == 50
        assert t["grand_total"] == 1200
        assert t["has_tax"] is True

    def test_grand_total_rounded_half_up(self):
        t = compute_totals([QuotationItem("a", quantity=1, unit_cost=0.5)])
        assert t["grand_total"] == 1
        assert t["grand_total_words"] == "One Dollars"

    def test_words_match_rounded_total(self):
        t = compute_totals([QuotationItem("a", quantity=3, unit_cost=33.4)], 10)
        # 100.2 + 10.02 = 110.22 → 110
        assert t["grand_total"] == 110
        assert t["grand_total_words"] == "One Hundred Ten Dollars"


class TestHelpers:
    def test_round_whole(self):
        assert round_whole(2.5) == 3
        assert round_whole(3.5) == 4
        assert round_whole(2.49) == 2

    def test_totals_for_document(self, sample_doc):
        t = totals_for_document(sample_doc)
        # 10×4500 + 200×35.5 = 52,100; +15% VAT = 59,915
        assert t["subtotal"] == 52100
        assert t["grand_total"] == 59915
