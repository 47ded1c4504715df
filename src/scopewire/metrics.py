from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)

_DUMP_HEADER = (
    "Name",
    "Resolutions",
    "Dependencies",
    "Cost (ms)",
    "Owner",
    "Activated",
    "Last resolution",
)


@dataclass(frozen=True, slots=True)
class MetricRecord:
    """Metrics collected for one type within one injector node."""

    name: str
    """The ``__qualname__`` of the type, or its ``repr`` when it has none."""
    type: Any
    activated: datetime
    """Time of the first resolution."""
    activation_type_owner: Any
    """The type whose resolution triggered the first construction.

    The type itself when it was requested directly.
    """
    resolution_count: int
    last_resolution: datetime
    dependency_count: int
    """Number of constructor parameter slots."""
    creation_time_ms: float
    """Cost of the most recent construction."""


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


class MetricsProvider:
    """Record resolution metrics for the types resolved by one injector.

    A disabled provider ignores every ``update`` call and its ``data`` stays
    empty.
    """

    def __init__(self, *, enabled: bool = True) -> None:
        self.enabled = enabled
        self._records: dict[Any, MetricRecord] = {}

    @property
    def data(self) -> tuple[MetricRecord, ...]:
        return tuple(self._records.values())

    def update(
        self,
        type_: Any,
        owner: Any | None = None,
        cost_ms: float | None = None,
        *,
        dependency_count: int = 0,
    ) -> None:
        """Count one resolution of ``type_``.

        Args:
            type_: The resolved type.
            owner: The type that requested the resolution. Defaults to
                ``type_`` itself.
            cost_ms: Construction cost in milliseconds. ``None`` means the
                instance came from a cache and the last cost is kept.
            dependency_count: Number of constructor parameter slots.

        """
        if not self.enabled:
            return

        now = _now()
        record = self._records.get(type_)
        if record is None:
            self._records[type_] = MetricRecord(
                name=getattr(type_, "__qualname__", None) or repr(type_),
                type=type_,
                activated=now,
                activation_type_owner=owner if owner is not None else type_,
                resolution_count=1,
                last_resolution=now,
                dependency_count=dependency_count,
                creation_time_ms=cost_ms or 0.0,
            )
            return

        self._records[type_] = replace(
            record,
            resolution_count=record.resolution_count + 1,
            last_resolution=max(now, record.last_resolution),
            creation_time_ms=cost_ms if cost_ms is not None else record.creation_time_ms,
        )

    def get_metrics_for_type(self, type_: Any) -> MetricRecord | None:
        return self._records.get(type_)

    def clear(self) -> None:
        self._records.clear()

    def dump(self) -> str:
        """Log the current records as a markdown table and return it."""
        lines = [
            "| " + " | ".join(_DUMP_HEADER) + " |",
            "| " + " | ".join("---" for _ in _DUMP_HEADER) + " |",
        ]
        for record in sorted(self._records.values(), key=lambda r: -r.resolution_count):
            owner = record.activation_type_owner
            row = (
                record.name,
                str(record.resolution_count),
                str(record.dependency_count),
                f"{record.creation_time_ms:.3f}",
                getattr(owner, "__qualname__", None) or repr(owner),
                record.activated.isoformat(),
                record.last_resolution.isoformat(),
            )
            lines.append("| " + " | ".join(row) + " |")
        table = "\n".join(lines)
        logger.info("Resolution metrics:\n%s", table)
        return table
