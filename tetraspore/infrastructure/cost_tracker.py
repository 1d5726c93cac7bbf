"""Cost ledger for generated assets."""

from __future__ import annotations

from typing import Any

from tetraspore.executors.models import CostRecord
from tetraspore.executors.pricing import price, unit_price
from tetraspore.utils.logging import get_logger

logger = get_logger("infrastructure.cost_tracker")


class CostTracker:
    """Records provider usage and prices it.

    Images are priced per image and speech per character; ``units`` is the
    image count or the character count accordingly.
    """

    def __init__(self):
        self._records: list[CostRecord] = []

    def record(self, asset_type: str, model: str, units: float) -> CostRecord:
        if unit_price(asset_type, model) is None:
            logger.warning(f"No price known for {asset_type}/{model}; recording zero cost")
        entry = CostRecord(
            asset_type=asset_type,
            model=model,
            units=units,
            cost=price(asset_type, model, units),
        )
        self._records.append(entry)
        logger.debug(f"Cost recorded: {asset_type}/{model} x{units} = ${entry.cost:.6f}")
        return entry

    def get_total_cost(self) -> float:
        return sum(entry.cost for entry in self._records)

    def get_cost_breakdown(self) -> dict[str, Any]:
        by_type: dict[str, float] = {"image": 0.0, "tts": 0.0}
        by_model: dict[str, float] = {}
        for entry in self._records:
            by_type[entry.asset_type] = by_type.get(entry.asset_type, 0.0) + entry.cost
            by_model[entry.model] = by_model.get(entry.model, 0.0) + entry.cost
        return {
            "total": self.get_total_cost(),
            "by_type": by_type,
            "by_model": by_model,
        }

    def records(self) -> list[CostRecord]:
        return list(self._records)

    def clear(self) -> None:
        self._records.clear()
