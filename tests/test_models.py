"""Tests for item rows, validation and the status lifecycle."""

from __future__ import annotations

import datetime

import pytest

from tracker.errors import InvalidTransition, ValidationError
from tracker.models import (
    Item,
    ItemStatus,
    check_transition,
    parse_timestamp,
    validate_item_fields,
    validate_new_item,
)


class TestItemFromRow:

    def test_full_row(self):
        item = Item.from_row(
            {
                "id": 7,
                "name": "Lamp",
                "cost": "12.50",
                "price": 40,
                "status": "sold",
                "created_at": "2026-10-17T08:30:00.123456+00:00",
            }
        )
        assert item.id == 7
        assert item.cost == 12.5
        assert item.price == 40.0
        assert item.status is ItemStatus.SOLD
        assert item.created_at == datetime.datetime(
            2026, 10, 17, 8, 30, 0, 123456, tzinfo=datetime.timezone.utc
        )

    def test_partial_row_keeps_missing_amounts_as_none(self):
        item = Item.from_row({"id": "a", "name": "Mug"})
        assert item.cost is None
        assert item.price is None
        assert item.status is ItemStatus.AVAILABLE
        assert item.created_at is None

    def test_unknown_status_is_rejected(self):
        with pytest.raises(ValueError):
            Item.from_row({"id": 1, "status": "returned"})

    def test_missing_id_is_rejected(self):
        with pytest.raises(KeyError):
            Item.from_row({"name": "x"})

    def test_items_are_immutable(self):
        item = Item(id=1, name="x")
        with pytest.raises(AttributeError):
            item.status = ItemStatus.SOLD

    def test_zulu_timestamp(self):
        ts = parse_timestamp("2026-10-17T08:30:00Z")
        assert ts.tzinfo is not None
        assert ts.utcoffset() == datetime.timedelta(0)

    def test_blank_timestamp(self):
        assert parse_timestamp("  ") is None


class TestValidateNewItem:

    def test_normalizes(self):
        assert validate_new_item("  Lamp ", 10, "25.5") == ("Lamp", 10.0, 25.5)

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_name_required(self, name):
        with pytest.raises(ValidationError, match="name is required"):
            validate_new_item(name, 1, 1)

    def test_negative_cost(self):
        with pytest.raises(ValidationError, match="non-negative"):
            validate_new_item("Lamp", -1, 5)

    def test_non_numeric_price(self):
        with pytest.raises(ValidationError, match="must be a number"):
            validate_new_item("Lamp", 1, "cheap")

    def test_nan_price(self):
        with pytest.raises(ValidationError, match="finite"):
            validate_new_item("Lamp", 1, float("nan"))

    def test_zero_amounts_are_allowed(self):
        assert validate_new_item("Freebie", 0, 0) == ("Freebie", 0.0, 0.0)


class TestValidateItemFields:

    def test_status_goes_to_wire_form(self):
        assert validate_item_fields({"status": ItemStatus.SOLD}) == {"status": "sold"}

    def test_unknown_field(self):
        with pytest.raises(ValidationError, match="created_at"):
            validate_item_fields({"created_at": "now"})

    def test_empty_update(self):
        with pytest.raises(ValidationError):
            validate_item_fields({})

    def test_unknown_status(self):
        with pytest.raises(ValidationError, match="Unknown item status"):
            validate_item_fields({"status": "lost"})

    def test_no_status_moves_into_available(self):
        with pytest.raises(InvalidTransition) as exc:
            validate_item_fields({"status": "available"}, item_id=5)
        assert exc.value.current is None
        assert str(exc.value) == "Item 5 cannot move to available"


class TestTransitions:

    def test_available_to_sold(self):
        item = Item(id=1, name="x")
        assert check_transition(item, "sold") is ItemStatus.SOLD

    def test_sold_back_to_available_is_invalid(self):
        item = Item(id=1, name="x", status=ItemStatus.SOLD)
        with pytest.raises(InvalidTransition) as exc:
            check_transition(item, ItemStatus.AVAILABLE)
        assert exc.value.current is ItemStatus.SOLD
        assert exc.value.target is ItemStatus.AVAILABLE
        assert "sold to available" in str(exc.value)

    def test_selling_twice_is_invalid(self):
        item = Item(id=1, name="x", status=ItemStatus.SOLD)
        with pytest.raises(InvalidTransition):
            check_transition(item, ItemStatus.SOLD)

    def test_available_to_available_is_invalid(self):
        with pytest.raises(InvalidTransition):
            check_transition(Item(id=1, name="x"), "available")
