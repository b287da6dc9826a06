"""
SpaceFlow Warehouse Engine - Logistics KPIs
=============================================
Derived read-only metrics over the fleet and its event log.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from engines.warehouse.events import group_events_by_pallet
from engines.warehouse.models import Pallet, PalletEvent, PalletEventType, PalletStatus


SECONDS_PER_HOUR = 3600.0
STALE_SCAN_HOURS = 24


@dataclass(frozen=True)
class LogisticsKpis:
    on_time_handling_rate: float
    avg_dwell_hours: float
    stale_scans_24h: int

    def to_dict(self) -> dict:
        return {
            "onTimeHandlingRate": self.on_time_handling_rate,
            "avgDwellHours": self.avg_dwell_hours,
            "staleScans24h": self.stale_scans_24h,
        }


def calculate_logistics_kpis(
    pallets: Sequence[Pallet],
    events: Sequence[PalletEvent],
    now: datetime,
) -> LogisticsKpis:
    """
    on_time_handling_rate: percent of pallets not delayed (100 when empty).
    avg_dwell_hours:       received -> loaded, or -> now while still on
                           site. Falls back to the last scan when a
                           pallet has no received event.
    stale_scans_24h:       pallets last scanned more than 24 h ago.
    """
    if not pallets:
        return LogisticsKpis(on_time_handling_rate=100.0, avg_dwell_hours=0.0, stale_scans_24h=0)

    delayed = sum(1 for pallet in pallets if pallet.status is PalletStatus.DELAYED)
    on_time = (len(pallets) - delayed) / len(pallets) * 100

    by_pallet = group_events_by_pallet(events)
    total_dwell = 0.0
    for pallet in pallets:
        history = by_pallet.get(pallet.id, [])
        received = next((e for e in history if e.type is PalletEventType.RECEIVED), None)
        loaded = next((e for e in history if e.type is PalletEventType.LOADED), None)
        start = received.at if received else pallet.last_scanned_at
        end = loaded.at if loaded else now
        total_dwell += max(0.0, (end - start).total_seconds() / SECONDS_PER_HOUR)

    stale = sum(
        1 for pallet in pallets
        if (now - pallet.last_scanned_at).total_seconds() > STALE_SCAN_HOURS * SECONDS_PER_HOUR
    )

    return LogisticsKpis(
        on_time_handling_rate=on_time,
        avg_dwell_hours=total_dwell / len(pallets),
        stale_scans_24h=stale,
    )
