# backend/fintrack/services/valuation/engine.py
"""
Portfolio valuation engine.

Turns a portfolio's holdings into EUR performance figures:
- Per holding: converted price, value, cost basis, P&L, daily change, weight
- Aggregate: totals in EUR, daily change, and indicative USD/native totals

Design Principles:
- Pure computation: no database, no network, no shared state
- Uses Decimal for ALL financial calculations (ROUND_HALF_UP)
- Full precision until each figure's final rounding step
- Every division is guarded and degrades to 0
- Two explicit passes: aggregate pass, then weight-assignment pass

Usage:
    engine = ValuationEngine()
    performance = engine.evaluate(
        holdings=[HoldingInput(...), ...],
        fx_table=FxRateTable.from_rates({"USD": Decimal("0.92")}, Decimal("0.92")),
        eur_adjustment_factor=Decimal("1.0"),
    )
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence

from fintrack.services.constants import (
    DEFAULT_ADJUSTMENT_FACTOR,
    MONEY_PRECISION,
    PERCENT_PRECISION,
    PRICE_PRECISION,
)
from fintrack.services.exceptions import ValidationError
from fintrack.services.valuation.pricing import resolve_pricing
from fintrack.services.valuation.types import (
    FxRateTable,
    HoldingInput,
    HoldingPerformance,
    PortfolioPerformance,
)

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


def _money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_PRECISION, rounding=ROUND_HALF_UP)


def _percent(value: Decimal) -> Decimal:
    return value.quantize(PERCENT_PRECISION, rounding=ROUND_HALF_UP)


def _price(value: Decimal) -> Decimal:
    return value.quantize(PRICE_PRECISION, rounding=ROUND_HALF_UP)


def _ratio_percent(numerator: Decimal, denominator: Decimal) -> Decimal:
    """numerator / denominator x 100, or 0 when the denominator is not positive."""
    if denominator <= _ZERO:
        return _percent(_ZERO)
    return _percent(numerator / denominator * _HUNDRED)


@dataclass(frozen=True)
class _HoldingFigures:
    """First-pass result for one holding (everything except weight)."""

    source: HoldingInput
    pricing: str
    eur_rate: Decimal
    current_price: Decimal
    current_value: Decimal
    current_price_eur: Decimal
    current_value_eur: Decimal
    total_cost_eur: Decimal
    profit_loss_eur: Decimal
    profit_loss_percent: Decimal
    daily_change_eur: Decimal


class ValuationEngine:
    """
    Computes per-holding and aggregate EUR performance.

    EUR-quoted holdings are priced with the adjustment factor, all other
    holdings with their FX rate (see pricing.resolve_pricing). avg_buy_price
    is already EUR and is never converted.

    Missing prices:
        current_price None -> 0 (value and weight drop to 0)
        previous_close None -> current_price (no daily change)
    """

    def evaluate(
            self,
            holdings: Sequence[HoldingInput],
            fx_table: FxRateTable,
            eur_adjustment_factor: Decimal = DEFAULT_ADJUSTMENT_FACTOR,
    ) -> PortfolioPerformance:
        """
        Value a portfolio.

        Args:
            holdings: Holdings joined with asset prices, in display order
            fx_table: currency -> EUR rates for every non-EUR currency present
            eur_adjustment_factor: Multiplier for EUR-quoted prices (> 0)

        Returns:
            PortfolioPerformance; the canonical zero aggregate when empty

        Raises:
            ValidationError: Non-positive factor, negative quantity or
                negative avg_buy_price
        """
        if eur_adjustment_factor <= _ZERO:
            raise ValidationError(
                f"EUR adjustment factor must be positive, got {eur_adjustment_factor}",
                field="eur_adjustment_factor",
            )

        if not holdings:
            return PortfolioPerformance.empty(eur_adjustment_factor)

        # Pass 1: per-holding figures and running totals
        figures: list[_HoldingFigures] = []
        total_value_eur = _ZERO
        total_cost_eur = _ZERO
        daily_change_eur = _ZERO
        total_value = _ZERO

        for holding in holdings:
            item = self._evaluate_holding(holding, fx_table, eur_adjustment_factor)
            figures.append(item)
            total_value_eur += item.current_value_eur
            total_cost_eur += item.total_cost_eur
            daily_change_eur += item.daily_change_eur
            total_value += item.current_value

        # Pass 2: weights against the grand total
        results = [
            self._with_weight(item, _ratio_percent(item.current_value_eur, total_value_eur))
            for item in figures
        ]

        total_return_eur = _money(total_value_eur - total_cost_eur)
        usd_rate = fx_table.usd_rate
        total_cost = _money(total_cost_eur / usd_rate) if usd_rate > _ZERO else _money(_ZERO)

        performance = PortfolioPerformance(
            total_value_eur=_money(total_value_eur),
            total_cost_eur=_money(total_cost_eur),
            total_return_eur=total_return_eur,
            total_return_percent=_ratio_percent(total_return_eur, total_cost_eur),
            daily_change_eur=_money(daily_change_eur),
            daily_change_percent=_ratio_percent(
                daily_change_eur, total_value_eur - daily_change_eur
            ),
            total_value=total_value,
            total_cost=total_cost,
            total_return=_money(total_value - total_cost),
            eur_rate=usd_rate,
            eur_adjustment_factor=eur_adjustment_factor,
            holdings=results,
        )

        logger.debug(
            f"Valued {len(results)} holdings: "
            f"value={performance.total_value_eur} EUR, "
            f"cost={performance.total_cost_eur} EUR, "
            f"factor={eur_adjustment_factor}"
        )
        return performance

    def _evaluate_holding(
            self,
            holding: HoldingInput,
            fx_table: FxRateTable,
            eur_adjustment_factor: Decimal,
    ) -> _HoldingFigures:
        """First pass for one holding. Arithmetic uses unrounded EUR prices."""
        if holding.quantity < _ZERO:
            raise ValidationError(
                f"Holding {holding.holding_id} has negative quantity {holding.quantity}",
                field="quantity",
            )
        if holding.avg_buy_price < _ZERO:
            raise ValidationError(
                f"Holding {holding.holding_id} has negative avg_buy_price {holding.avg_buy_price}",
                field="avg_buy_price",
            )

        strategy = resolve_pricing(holding.currency, fx_table, eur_adjustment_factor)

        current_price = holding.current_price if holding.current_price is not None else _ZERO
        previous_close = (
            holding.previous_close if holding.previous_close is not None else current_price
        )

        current_price_eur_raw = strategy.to_eur(current_price)
        previous_close_eur_raw = strategy.to_eur(previous_close)

        current_value_eur = _money(holding.quantity * current_price_eur_raw)
        total_cost_eur = _money(holding.quantity * holding.avg_buy_price)
        profit_loss_eur = _money(current_value_eur - total_cost_eur)

        return _HoldingFigures(
            source=holding,
            pricing=strategy.kind,
            eur_rate=strategy.rate,
            current_price=current_price,
            current_value=holding.quantity * current_price,
            current_price_eur=_price(current_price_eur_raw),
            current_value_eur=current_value_eur,
            total_cost_eur=total_cost_eur,
            profit_loss_eur=profit_loss_eur,
            profit_loss_percent=_ratio_percent(profit_loss_eur, total_cost_eur),
            daily_change_eur=_money(
                holding.quantity * (current_price_eur_raw - previous_close_eur_raw)
            ),
        )

    @staticmethod
    def _with_weight(item: _HoldingFigures, weight: Decimal) -> HoldingPerformance:
        source = item.source
        return HoldingPerformance(
            holding_id=source.holding_id,
            asset_id=source.asset_id,
            symbol=source.symbol,
            name=source.name,
            asset_type=source.asset_type,
            currency=source.currency,
            quantity=source.quantity,
            avg_buy_price=source.avg_buy_price,
            current_price=item.current_price,
            current_value=item.current_value,
            current_price_eur=item.current_price_eur,
            current_value_eur=item.current_value_eur,
            total_cost_eur=item.total_cost_eur,
            profit_loss_eur=item.profit_loss_eur,
            profit_loss_percent=item.profit_loss_percent,
            daily_change_eur=item.daily_change_eur,
            weight=weight,
            pricing=item.pricing,
            eur_rate=item.eur_rate,
        )
