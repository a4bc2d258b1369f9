"""
Shared fixtures: an in-memory item gateway and a scripted HTTP session.
Nothing here touches the network.
"""

from __future__ import annotations

import dataclasses
import datetime

import pytest
import pytz
import requests

from gateways.base import ItemGateway
from gateways.supabase import SupabaseItemGateway
from tracker.errors import NotFound, StoreError
from tracker.models import (
    Item,
    ItemStatus,
    check_transition,
    coerce_status,
    validate_item_fields,
    validate_new_item,
)

T0 = datetime.datetime(2026, 1, 1, 12, 0, tzinfo=pytz.UTC)


class FakeGateway(ItemGateway):
    """In-memory gateway. Operations named in `fail_on` raise StoreError."""

    name = "fake"

    def __init__(self, fail_on=()):
        self.items: dict[int, Item] = {}
        self.fail_on = set(fail_on)
        self.calls: list[str] = []
        self._next_id = 1

    def _enter(self, op):
        self.calls.append(op)
        if op in self.fail_on:
            raise StoreError(f"{op} failed")

    def seed(self, name, cost, price, status=ItemStatus.AVAILABLE) -> Item:
        item = Item(
            id=self._next_id,
            name=name,
            cost=cost,
            price=price,
            status=ItemStatus(status),
            created_at=T0 + datetime.timedelta(minutes=self._next_id),
        )
        self.items[item.id] = item
        self._next_id += 1
        return item

    def list_all(self):
        self._enter("list_all")
        return sorted(self.items.values(), key=lambda it: it.created_at, reverse=True)

    def list_by_status(self, status):
        self._enter("list_by_status")
        status = coerce_status(status)
        return [it for it in self.list_all() if it.status is status]

    def get(self, item_id):
        self._enter("get")
        if item_id not in self.items:
            raise NotFound(item_id)
        return self.items[item_id]

    def create(self, name, cost, price):
        name, cost, price = validate_new_item(name, cost, price)
        self._enter("create")
        return self.seed(name, cost, price)

    def update(self, item_id, fields):
        fields = validate_item_fields(fields, item_id)
        self._enter("update")
        if item_id not in self.items:
            raise NotFound(item_id)
        if "status" in fields:
            fields["status"] = check_transition(self.items[item_id], fields["status"])
        item = dataclasses.replace(self.items[item_id], **fields)
        self.items[item_id] = item
        return item

    def delete(self, item_id):
        self._enter("delete")
        if item_id not in self.items:
            raise NotFound(item_id)
        del self.items[item_id]


_INVALID_JSON = object()


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if self._payload is _INVALID_JSON:
            raise ValueError("Expecting value")
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


class FakeSession:
    """Replays queued responses (or raises queued exceptions) in order."""

    def __init__(self, *responses):
        self.headers: dict[str, str] = {}
        self.responses = list(responses)
        self.calls: list[dict] = []

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        nxt = self.responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return nxt


def row(id, name="Lamp", cost=10, price=25, status="available",
        created_at="2026-01-01T12:00:00+00:00"):
    return {
        "id": id,
        "name": name,
        "cost": cost,
        "price": price,
        "status": status,
        "created_at": created_at,
    }


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def make_supabase():
    def _make(*responses, **kwargs):
        session = FakeSession(*responses)
        gw = SupabaseItemGateway(
            url="https://example.supabase.co/",
            api_key="test-key",
            session=session,
            **kwargs,
        )
        return gw, session

    return _make
