from __future__ import annotations
import json
import logging
from typing import Any, Dict, Optional

from .config import Settings, settings as default_settings
from .models import InvalidDateError, UnknownSlotError
from .services import build_services
from .tools.slots import parse_date


def availability_report(date_str: str, days: int = 1, slot: Optional[str] = None,
                        settings: Optional[Settings] = None, services=None) -> Dict[str, Any]:
    """Availability (or a single-slot check) as a JSON-ready dict."""
    settings = settings or default_settings
    services = services or build_services(settings)
    day = parse_date(date_str)

    if slot:
        check = services.guard.check(day, slot)
        return {
            "date": check.date.isoformat(),
            "slot": check.slot,
            "available": check.available,
            "fallback": check.fallback,
            "demo": check.demo,
        }

    result = services.calculator.get_availability(day, days)
    return {
        "startDate": result.start_date.isoformat(),
        "days": result.days,
        "availability": {d: [s.to_dict() for s in slots] for d, slots in result.availability.items()},
        "demo": result.demo,
        "degraded": result.degraded,
    }


def main(date_str: str, days: int = 1, slot: Optional[str] = None, export_graph: bool = False) -> None:
    logging.basicConfig(
        level=default_settings.log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    services = build_services(default_settings)

    if export_graph:
        from .viz import save_graph_mermaid
        path = save_graph_mermaid(services.reconciler.graph)
        print(f"[OK] Saved graph to: {path}")

    try:
        report = availability_report(date_str, days, slot, services=services)
    except (InvalidDateError, UnknownSlotError) as e:
        print(f"[ERR] {e}")
        raise SystemExit(2) from e

    print("=" * 60)
    print(f"📅 Availability for {date_str}" + (f" at {slot}" if slot else f" (+{days} days)"))
    print("=" * 60)
    print(json.dumps(report, indent=2))
