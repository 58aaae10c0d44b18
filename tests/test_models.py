"""Tests for formatting helpers, sale math and the record model."""

from __future__ import annotations

from datetime import datetime

import pytest
from pydantic import ValidationError

from struk.core.errors import MalformedTransactionError
from struk.core.models import LineItem, PaperSize, StoreProfile, TransactionRecord
from struk.core.payment import (
    PaymentState,
    apply_fees,
    complete_transaction,
    payment_status,
    subtotal_after_discount,
)
from struk.core.store import profile_from_settings
from struk.utils.formatting import format_currency, format_receipt_date, round_half_up


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


class TestFormatting:
    @pytest.mark.parametrize("amount, expected", [
        (0, "0"),
        (999, "999"),
        (22000, "22.000"),
        (1234567, "1.234.567"),
        (2999.5, "3.000"),
        (-1500, "-1.500"),
    ])
    def test_currency(self, amount, expected: str) -> None:
        assert format_currency(amount) == expected

    def test_half_up(self) -> None:
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(-2.5) == -2
        assert round_half_up(2.49) == 2

    def test_receipt_date(self) -> None:
        assert format_receipt_date(datetime(2024, 3, 7, 14, 5, 9)) == "7/3/2024, 14.05.09"
        assert format_receipt_date("2024-12-25T08:00:00") == "25/12/2024, 08.00.00"
        assert format_receipt_date(None) == ""

    def test_utc_string_converted_to_local(self) -> None:
        expected = datetime.fromisoformat("2024-03-07T14:05:09+00:00").astimezone()
        assert format_receipt_date("2024-03-07T14:05:09Z") == format_receipt_date(expected)


# ---------------------------------------------------------------------------
# Sale math
# ---------------------------------------------------------------------------


class TestPayment:
    def test_change(self) -> None:
        status = payment_status(25000, 22000)
        assert status.state is PaymentState.CHANGE
        assert status.amount == 3000

    def test_exact_payment(self) -> None:
        status = payment_status(22000, 22000)
        assert status.is_sufficient
        assert status.amount == 0

    def test_insufficient_is_positive(self) -> None:
        status = payment_status(20000, 22000)
        assert status.state is PaymentState.INSUFFICIENT
        assert status.amount == 2000

    def test_effective_price_fallback(self) -> None:
        item = LineItem(name="Roti", quantity=3, price=5000, discountPercentage=10)
        assert item.effective_price == pytest.approx(4500)
        assert item.extended_total == pytest.approx(13500)

    def test_subtotal_rounds_each_line(self) -> None:
        items = [
            LineItem(name="A", quantity=1, price=999, discountPercentage=50),  # 499.5
            LineItem(name="B", quantity=1, price=999, discountPercentage=50),
        ]
        assert subtotal_after_discount(items) == 1000

    def test_fees(self) -> None:
        fees = apply_fees(10010, [
            {"name": "PPN", "type": "percentage", "value": 5},
            {"name": "Layanan", "type": "fixed", "value": 2000},
        ])
        assert [f.computed_amount for f in fees] == [501, 2000]

    def test_complete_transaction(self, kopi_record: TransactionRecord) -> None:
        assert kopi_record.subtotal == 20000
        assert kopi_record.total == 22000
        assert kopi_record.change == 3000
        assert kopi_record.fees[0].computed_amount == 2000
        assert not kopi_record.is_preview

    def test_records_are_immutable(self, kopi_record: TransactionRecord) -> None:
        with pytest.raises(ValidationError):
            kopi_record.total = 0

    def test_discount_total(self) -> None:
        record = complete_transaction(
            items=[{"name": "Roti", "quantity": 2, "price": 5000, "discountPercentage": 20}],
            cash_paid=10000,
        )
        assert record.total_discount == pytest.approx(2000)
        assert record.total == 8000
        assert record.change == 2000


# ---------------------------------------------------------------------------
# Record model / store profile
# ---------------------------------------------------------------------------


class TestRecord:
    def test_dict_round_trip(self, kopi_record: TransactionRecord) -> None:
        data = kopi_record.to_dict()
        assert data["cashPaid"] == 25000
        assert data["fees"][0]["amount"] == 2000
        assert TransactionRecord.from_dict(data) == kopi_record

    def test_error_names_fields(self) -> None:
        with pytest.raises(MalformedTransactionError, match="total"):
            TransactionRecord.from_dict({
                "items": [{"name": "Kopi", "quantity": 1, "price": 1}],
                "subtotal": 1, "cashPaid": 1, "change": 0, "date": "2024-01-01T00:00:00",
            })

    def test_discount_out_of_range(self) -> None:
        with pytest.raises(MalformedTransactionError):
            TransactionRecord.from_dict({
                "items": [{"name": "Kopi", "quantity": 1, "price": 1, "discountPercentage": 120}],
                "subtotal": 1, "total": 1, "cashPaid": 1, "change": 0, "date": "2024-01-01T00:00:00",
            })


class TestStoreProfile:
    @pytest.mark.parametrize("value, paper", [
        ("58mm", PaperSize.MM58),
        ("80mm", PaperSize.MM80),
        ("A4", PaperSize.MM80),
        (None, PaperSize.MM80),
    ])
    def test_paper_parse(self, value, paper: PaperSize) -> None:
        assert PaperSize.parse(value) is paper

    def test_paper_dimensions(self) -> None:
        assert (PaperSize.MM58.chars, PaperSize.MM58.dots) == (32, 384)
        assert (PaperSize.MM80.chars, PaperSize.MM80.dots) == (42, 576)

    @pytest.mark.parametrize("stored, shown", [(None, True), (True, True), ("", True), (False, False)])
    def test_show_logo_only_hidden_explicitly(self, stored, shown: bool) -> None:
        profile = profile_from_settings({"showLogoOnReceipt": stored, "storeLogo": b"png"})
        assert profile.show_logo is shown
        assert profile.prints_logo is shown

    def test_blank_values_fall_back(self) -> None:
        profile = profile_from_settings({"storeName": "", "storeFooterText": None})
        assert profile == StoreProfile()
