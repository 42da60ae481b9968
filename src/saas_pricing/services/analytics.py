"""
Analytics events emitted around calculations.
"""
import logging
from dataclasses import dataclass, asdict
from typing import Callable, Optional

from ..engine.models import CalculationResult


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalculationEvent:
    """Summary event sent after every calculation."""
    recommended_price: int
    current_price: float
    customers: int
    price_change_percent: int


def build_calculation_event(result: CalculationResult) -> CalculationEvent:
    return CalculationEvent(
        recommended_price=result.metrics.optimal_price,
        current_price=result.inputs.current_price,
        customers=result.inputs.customers,
        price_change_percent=result.metrics.price_increase_percent,
    )


def _log_sink(name: str, params: dict):
    logger.info("Analytics event %s %s", name, params)


class AnalyticsTracker:
    """Forwards named events to a sink (logs them by default)."""

    def __init__(self, sink: Optional[Callable[[str, dict], None]] = None):
        self.sink = sink or _log_sink

    def track(self, name: str, params: Optional[dict] = None):
        self.sink(name, dict(params or {}))

    def track_calculation(self, result: CalculationResult) -> CalculationEvent:
        event = build_calculation_event(result)
        self.track('calculator_used', asdict(event))
        return event

    def track_export(self, export_type: str):
        self.track('calculation_exported', {'export_type': export_type})

    def track_buy_click(self):
        self.track('begin_checkout', {'currency': 'USD'})
