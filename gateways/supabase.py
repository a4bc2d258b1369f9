# gateways/supabase.py
import os
from typing import Any, Dict, List, Optional

import requests
from tenacity import (
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from tracker.errors import InvalidTransition, NotFound, StoreError
from tracker.logger import get_logger
from tracker.models import (
    ALLOWED_TRANSITIONS,
    Item,
    ItemStatus,
    coerce_status,
    validate_item_fields,
    validate_new_item,
)

from .base import ItemGateway

logger = get_logger(__name__)

SUPABASE_URL = os.getenv("SUPABASE_URL", "").strip()
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY", "").strip()
SUPABASE_TABLE = os.getenv("SUPABASE_TABLE", "items").strip() or "items"
STORE_TIMEOUT_SECONDS = float(os.getenv("STORE_TIMEOUT_SECONDS", "30"))
# 1 means a failed read surfaces immediately
STORE_READ_ATTEMPTS = int(os.getenv("STORE_READ_ATTEMPTS", "1"))

NEWEST_FIRST = "created_at.desc"
RETURN_ROWS = "return=representation"


def _is_transient(exc: BaseException) -> bool:
    if not isinstance(exc, StoreError) or isinstance(exc, NotFound):
        return False
    if isinstance(exc.__cause__, (requests.ConnectionError, requests.Timeout)):
        return True
    return exc.status_code is not None and exc.status_code >= 500


class SupabaseItemGateway(ItemGateway):
    """
    Item gateway over the Supabase (PostgREST) REST API.

    Each operation is one HTTP request against /rest/v1/<table>. Writes ask
    for the affected rows back, so an empty answer to an update or delete
    means no row matched; a failed status change is then classified with
    one extra read.
    """

    name = "supabase"

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        table: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        read_attempts: Optional[int] = None,
    ):
        self.url = (url or SUPABASE_URL).rstrip("/")
        self.api_key = api_key or SUPABASE_ANON_KEY
        if not (self.url and self.api_key):
            raise StoreError(
                "Supabase not configured (SUPABASE_URL/SUPABASE_ANON_KEY)"
            )

        self.table = table or SUPABASE_TABLE
        self.timeout = timeout if timeout is not None else STORE_TIMEOUT_SECONDS
        self.read_attempts = max(1, read_attempts or STORE_READ_ATTEMPTS)
        self.retry_wait = wait_exponential_jitter(initial=1, max=30)

        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "apikey": self.api_key,
                "Authorization": f"Bearer {self.api_key}",
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
        )

    @property
    def endpoint(self) -> str:
        return f"{self.url}/rest/v1/{self.table}"

    def _send(
        self,
        method: str,
        params: Optional[Dict[str, str]] = None,
        body: Any = None,
        prefer: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        headers = {"Prefer": prefer} if prefer else None
        logger.debug("%s %s params=%s", method, self.endpoint, params)

        try:
            r = self.session.request(
                method,
                self.endpoint,
                params=params,
                json=body,
                headers=headers,
                timeout=self.timeout,
            )
            r.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            logger.error("Store %s on %s failed with HTTP %s", method, self.table, status)
            raise StoreError(
                f"Store {method} on {self.table} failed with HTTP {status}",
                status_code=status,
            ) from e
        except requests.RequestException as e:
            logger.error("Store %s on %s failed: %s", method, self.table, e)
            raise StoreError(f"Store {method} on {self.table} failed: {e}") from e

        try:
            data = r.json()
        except ValueError as e:
            raise StoreError(f"Store returned a non-JSON response for {method}") from e

        if data is None:
            return []
        return data if isinstance(data, list) else [data]

    def _read(self, params: Dict[str, str]) -> List[Dict[str, Any]]:
        retryer = Retrying(
            stop=stop_after_attempt(self.read_attempts),
            wait=self.retry_wait,
            retry=retry_if_exception(_is_transient),
            reraise=True,
        )
        return retryer(self._send, "GET", params=params)

    def _to_items(self, rows: List[Dict[str, Any]]) -> List[Item]:
        try:
            return [Item.from_row(row) for row in rows]
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Malformed row in %s: %s", self.table, e)
            raise StoreError(f"Malformed row in {self.table}: {e}") from e

    def list_all(self) -> List[Item]:
        rows = self._read({"select": "*", "order": NEWEST_FIRST})
        return self._to_items(rows)

    def list_by_status(self, status: ItemStatus | str) -> List[Item]:
        status = coerce_status(status)
        rows = self._read(
            {"select": "*", "status": f"eq.{status.value}", "order": NEWEST_FIRST}
        )
        return self._to_items(rows)

    def get(self, item_id: Any) -> Item:
        rows = self._read({"select": "*", "id": f"eq.{item_id}"})
        if not rows:
            raise NotFound(item_id)
        return self._to_items(rows)[0]

    def create(self, name: str, cost: float, price: float) -> Item:
        name, cost, price = validate_new_item(name, cost, price)
        rows = self._send(
            "POST",
            body=[
                {
                    "name": name,
                    "cost": cost,
                    "price": price,
                    "status": ItemStatus.AVAILABLE.value,
                }
            ],
            prefer=RETURN_ROWS,
        )
        if not rows:
            raise StoreError(f"Insert into {self.table} returned no row")
        item = self._to_items(rows)[0]
        logger.info("Created item %s (%s)", item.id, item.name)
        return item

    def update(self, item_id: Any, fields: Dict[str, Any]) -> Item:
        """
        Patch one row. A status change only matches rows in a status it may
        leave, so the transition check and the write are a single request.
        """
        fields = validate_item_fields(fields, item_id)
        params = {"id": f"eq.{item_id}"}
        target = fields.get("status")
        if target is not None:
            sources = sorted(
                src.value
                for src, targets in ALLOWED_TRANSITIONS.items()
                if target in targets
            )
            if len(sources) == 1:
                params["status"] = f"eq.{sources[0]}"
            else:
                params["status"] = f"in.({','.join(sources)})"

        rows = self._send("PATCH", params=params, body=fields, prefer=RETURN_ROWS)
        if not rows:
            if target is not None:
                # Either no such id, or the row is in a status it cannot leave
                current = self.get(item_id)
                raise InvalidTransition(item_id, current.status, ItemStatus(target))
            raise NotFound(item_id)
        logger.info("Updated item %s: %s", item_id, sorted(fields))
        return self._to_items(rows)[0]

    def delete(self, item_id: Any) -> None:
        rows = self._send(
            "DELETE",
            params={"id": f"eq.{item_id}"},
            prefer=RETURN_ROWS,
        )
        if not rows:
            raise NotFound(item_id)
        logger.info("Deleted item %s", item_id)
