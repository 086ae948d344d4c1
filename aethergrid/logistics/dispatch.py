"""
aethergrid/logistics/dispatch.py
────────────────────────────────
Repair work-order registry.

Provides:
  - create_work_order()   : defaults + fresh id, newest first
  - update_order()        : field merge, forward-only status
  - advance_status()      : move an order to the next board column
  - dispatch_repair_crew(): priority mapping + auto-scheduling of levels 1–2
  - get_orders() / get_order() / summary()

Orders are persisted as one JSON list under WORK_ORDERS_KEY. Every accessor
returns deep copies; writers swap in a new list under the lock.
"""
from __future__ import annotations

import json
import logging
import threading
import uuid
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import ValidationError

from aethergrid.data.models import ORDER_FLOW, Priority, RepairPart, WorkOrder, WorkOrderStatus
from aethergrid.data.store import KeyValueStore
from config.assets import RAPID_RESPONSE_CREW, SEED_WORK_ORDERS, WORK_ORDERS_KEY

logger = logging.getLogger(__name__)


class WorkOrderNotFound(KeyError):
    """No work order with the given id."""


class InvalidTransition(ValueError):
    """Work-order status may only move forward."""


# Numeric priority level (1 = most urgent) → tier.
# Levels 3 and 4 share MEDIUM.
PRIORITY_MAP: dict[int, Priority] = {
    1: Priority.CRITICAL,
    2: Priority.HIGH,
    3: Priority.MEDIUM,
    4: Priority.MEDIUM,
    5: Priority.LOW,
}
AUTO_SCHEDULE_MAX_LEVEL = 2

_ORDER_DEFAULTS: dict[str, Any] = {
    "title": "Untitled Maintenance",
    "asset_id": "UNK-00",
    "status": WorkOrderStatus.PENDING,
    "priority": Priority.MEDIUM,
    "estimated_duration_hours": 2.0,
    "required_parts": [],
}


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def priority_for_level(level: int) -> Priority:
    """Map a 1–5 priority level to its tier; out-of-range levels are clamped."""
    return PRIORITY_MAP[min(5, max(1, int(level)))]


class DispatchRegistry:
    def __init__(self, store: KeyValueStore, clock: Callable[[], datetime] = _utcnow) -> None:
        self._store = store
        self._clock = clock
        self._lock = threading.RLock()
        self._orders: list[WorkOrder] = self._load()

    # ── Persistence ──────────────────────────────────────────────────────────

    def _load(self) -> list[WorkOrder]:
        blob = self._store.load(WORK_ORDERS_KEY)
        if blob:
            try:
                raw = json.loads(blob)
                if not isinstance(raw, list):
                    raise TypeError(f"expected a list, got {type(raw).__name__}")
                return [WorkOrder.model_validate(item) for item in raw]
            except (ValueError, TypeError, ValidationError) as exc:
                logger.warning("Stored work orders unreadable, reseeding: %s", exc)

        orders = [WorkOrder.model_validate(item) for item in SEED_WORK_ORDERS]
        self._save(orders)
        return orders

    def _save(self, orders: list[WorkOrder]) -> None:
        self._store.save(WORK_ORDERS_KEY, json.dumps([o.model_dump(mode="json") for o in orders]))

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _new_id(self) -> str:
        year = self._clock().year
        taken = {o.id for o in self._orders}
        while True:
            candidate = f"WO-{year}-{uuid.uuid4().hex[:8].upper()}"
            if candidate not in taken:
                return candidate

    def _index_of(self, order_id: str) -> int:
        for i, order in enumerate(self._orders):
            if order.id == order_id:
                return i
        raise WorkOrderNotFound(f"Work Order {order_id} not found")

    @staticmethod
    def _coerce(data: dict[str, Any]) -> WorkOrder:
        """Validate, replacing any malformed field with its default."""
        try:
            return WorkOrder.model_validate(data)
        except ValidationError as exc:
            bad = {err["loc"][0] for err in exc.errors() if err["loc"]}
            logger.warning("Coercing malformed work-order fields to defaults: %s", sorted(map(str, bad)))
            for field in bad:
                if field in _ORDER_DEFAULTS:
                    data[field] = _ORDER_DEFAULTS[field]
                else:
                    data.pop(field, None)
            return WorkOrder.model_validate(data)

    # ── Public API ───────────────────────────────────────────────────────────

    def get_orders(self) -> list[WorkOrder]:
        with self._lock:
            return [o.model_copy(deep=True) for o in self._orders]

    def get_order(self, order_id: str) -> WorkOrder | None:
        with self._lock:
            for order in self._orders:
                if order.id == order_id:
                    return order.model_copy(deep=True)
        return None

    def create_work_order(self, partial: Mapping[str, Any] | None = None) -> WorkOrder:
        """
        Create an order from partial data.

        Missing or empty fields get defaults, malformed ones are coerced to
        defaults, and a fresh id is always assigned. The order is prepended
        (most recent first) and persisted.
        """
        fields = WorkOrder.model_fields
        supplied = {
            k: v for k, v in dict(partial or {}).items()
            if k in fields and k != "id" and v not in (None, "")
        }
        with self._lock:
            data = {**_ORDER_DEFAULTS, **supplied, "id": self._new_id()}
            order = self._coerce(data)
            self._orders = [order] + self._orders
            self._save(self._orders)
        logger.info("Created work order %s (%s, %s)", order.id, order.priority.value, order.asset_id)
        return order.model_copy(deep=True)

    def update_order(self, order_id: str, patch: Mapping[str, Any]) -> WorkOrder:
        """Merge `patch` onto an existing order. Raises WorkOrderNotFound."""
        with self._lock:
            idx = self._index_of(order_id)
            current = self._orders[idx]
            changes = {k: v for k, v in patch.items() if k in WorkOrder.model_fields and k != "id"}
            updated = WorkOrder.model_validate({**current.model_dump(), **changes})

            if ORDER_FLOW.index(updated.status) < ORDER_FLOW.index(current.status):
                raise InvalidTransition(
                    f"Work Order {order_id} cannot move from {current.status.value} to {updated.status.value}"
                )

            orders = list(self._orders)
            orders[idx] = updated
            self._orders = orders
            self._save(orders)
        return updated.model_copy(deep=True)

    def advance_status(self, order_id: str) -> WorkOrder:
        """Move an order to the next status column."""
        with self._lock:
            current = self._orders[self._index_of(order_id)]
            pos = ORDER_FLOW.index(current.status)
            if pos == len(ORDER_FLOW) - 1:
                raise InvalidTransition(f"Work Order {order_id} is already {current.status.value}")
            return self.update_order(order_id, {"status": ORDER_FLOW[pos + 1]})

    def dispatch_repair_crew(
        self,
        fault_type: str,
        priority_level: int,
        asset_id: str,
        parts: Iterable[RepairPart | Mapping[str, Any]] = (),
        crew_size: int | None = None,
        estimated_hours: float = 2.0,
    ) -> str:
        """
        Create a repair order and return its id.

        Levels 1–2 are auto-scheduled for tomorrow with the rapid-response
        crew; levels 3–5 stay PENDING.
        """
        level = min(5, max(1, int(priority_level)))
        order = self.create_work_order({
            "title": f"Repair: {fault_type}",
            "asset_id": asset_id,
            "priority": priority_for_level(level),
            "estimated_duration_hours": estimated_hours,
            "required_parts": [p.model_dump() if isinstance(p, RepairPart) else dict(p) for p in parts],
            "crew_size": crew_size,
            "fault_type": fault_type,
        })

        if level <= AUTO_SCHEDULE_MAX_LEVEL:
            tomorrow = (self._clock() + timedelta(hours=24)).date().isoformat()
            self.update_order(order.id, {
                "status": WorkOrderStatus.SCHEDULED,
                "assigned_crew": RAPID_RESPONSE_CREW,
                "scheduled_date": tomorrow,
            })
            logger.info("Auto-scheduled %s for %s (level %d)", order.id, tomorrow, level)

        return order.id

    def summary(self) -> dict[str, int]:
        """Board counters: total, critical, completed, active (in progress)."""
        orders = self.get_orders()
        return {
            "total": len(orders),
            "critical": sum(o.priority == Priority.CRITICAL for o in orders),
            "completed": sum(o.status == WorkOrderStatus.COMPLETED for o in orders),
            "active": sum(o.status == WorkOrderStatus.IN_PROGRESS for o in orders),
        }
