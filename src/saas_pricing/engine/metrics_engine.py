"""
Pricing Metrics Engine - maps business inputs to SaaS metrics.

Pure computation with traceability:
- Single normalization step that parses form values and applies defaults
- Optimal price, unit economics and growth metrics
- Three-tier pricing recommendation
- 12-month revenue projection
- Competitor comparison and normalized radar scores
- Rule-based insights

The engine never raises for malformed input and never lets NaN or
infinity reach a result: every division is guarded.
"""
import logging
import math
from typing import Optional, Union

from ..config.settings import get_settings
from .insights import generate_insights
from .models import (
    CalculationResult,
    CalculatorInputs,
    CompetitorRow,
    Metrics,
    PricingTier,
    PricingTiers,
    ProjectionPoint,
    RadarScore,
    ResolvedInputs,
    TraceStep,
    parse_number,
)
from .profiles import TIER_SPECS, FormulaProfile, get_profile


logger = logging.getLogger(__name__)

# Quick ratio reported when there is expansion but no churn at all
UNBOUNDED_RATIO = 999.99

PROJECTION_MONTHS = 12

# (field, default, integer)
INPUT_DEFAULTS = (
    ('current_price', 0.0, False),
    ('competitor_price', 0.0, False),
    ('customers', 0, True),
    ('churn_rate', 5.0, False),
    ('cac', 100.0, False),
    ('average_contract_length', 12.0, False),
    ('expansion_revenue', 10.0, False),
    ('market_size', 1_000_000.0, False),
)


def finite_or_zero(value: float) -> float:
    """Value as a float, or 0.0 when it overflowed or is not a number."""
    try:
        value = float(value)
    except OverflowError:
        return 0.0
    return value if math.isfinite(value) else 0.0


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from -inf (67.5 -> 68). Overflow rounds to 0."""
    return int(math.floor(finite_or_zero(value) + 0.5))


def round_ratio(value: float) -> float:
    """Round to 2 decimal places with the same half-up rule."""
    value = finite_or_zero(value)
    scaled = value * 100 + 0.5
    if not math.isfinite(scaled):
        return value
    return math.floor(scaled) / 100


def _clamp_score(value: float) -> int:
    if math.isnan(value):
        return 0
    return round_half_up(max(0.0, min(value, 100.0)))


class MetricsEngine:
    """
    Core metrics engine.

    Calculation order:
    1. Normalize inputs (parse, then substitute defaults)
    2. Resolve the optimal price from competitor or current price
    3. Derive unit economics, retention and efficiency metrics
    4. Build tiers, projection, comparison rows and radar scores
    5. Run the insight rules
    """

    def __init__(self, profile: Optional[Union[str, FormulaProfile]] = None):
        """Initialize engine with a formula profile (defaults to settings)."""
        if isinstance(profile, FormulaProfile):
            self.profile = profile
        else:
            self.profile = get_profile(profile or get_settings().formula_profile)

    def resolve_inputs(self, inputs: CalculatorInputs) -> tuple[ResolvedInputs, list[TraceStep]]:
        """
        Parse every field and apply defaults.

        Returns (resolved_inputs, trace_steps).
        """
        trace = []
        values = {}
        for name, default, integer in INPUT_DEFAULTS:
            parsed = parse_number(getattr(inputs, name, None))
            if parsed is None:
                values[name] = default
                trace.append(TraceStep("Default Applied", f"{name} missing or not numeric", str(default)))
            else:
                values[name] = int(parsed) if integer else parsed
        return ResolvedInputs(**values), trace

    def calculate(self, inputs: Union[CalculatorInputs, dict, None] = None) -> CalculationResult:
        """
        Calculate metrics with full traceability.

        Args:
            inputs: CalculatorInputs, or a plain dict of form values

        Returns:
            Frozen CalculationResult
        """
        if not isinstance(inputs, CalculatorInputs):
            inputs = CalculatorInputs.from_dict(inputs)

        resolved, trace = self.resolve_inputs(inputs)
        trace.append(TraceStep("Profile", "Formula set", self.profile.name))

        optimal_price = self._optimal_price(resolved, trace)
        metrics = self._metrics(resolved, optimal_price, trace)

        result = CalculationResult(
            inputs=resolved,
            metrics=metrics,
            tiers=self._tiers(optimal_price),
            projection_data=self._projection(resolved, optimal_price),
            competitor_data=self._competitor_rows(resolved, optimal_price),
            metrics_radar=self._radar(resolved, metrics),
            insights=generate_insights(metrics, resolved),
            profile=self.profile.name,
            trace=tuple(trace),
        )
        logger.debug(
            "Calculated optimal price %s (ltv=%s, nrr=%s) with %d insights",
            metrics.optimal_price, metrics.ltv, metrics.nrr, len(result.insights),
        )
        return result

    # Alias kept for callers of the module-level compute()
    compute = calculate

    def _optimal_price(self, inputs: ResolvedInputs, trace: list) -> int:
        if inputs.competitor_price > 0:
            raw = inputs.competitor_price * self.profile.competitor_factor
            trace.append(TraceStep(
                "Price Basis",
                f"Competitor price × {self.profile.competitor_factor}",
                f"${raw:.2f}",
            ))
        else:
            raw = inputs.current_price * self.profile.current_factor
            trace.append(TraceStep(
                "Price Basis",
                f"No competitor price, current price × {self.profile.current_factor}",
                f"${raw:.2f}",
            ))
        if not math.isfinite(raw):
            trace.append(TraceStep("Guard", "Price basis overflowed, optimal price reported as 0"))
        optimal = round_half_up(raw)
        trace.append(TraceStep("Optimal Price", "Rounded to whole currency units", f"${optimal}"))
        return optimal

    def _ltv_at(self, price: float, inputs: ResolvedInputs) -> float:
        churn_fraction = inputs.churn_rate / 100
        if churn_fraction > 0:
            ltv = (float(price) * inputs.average_contract_length) / churn_fraction
        else:
            ltv = float(price) * inputs.average_contract_length * 12
        return finite_or_zero(ltv)

    def _metrics(self, inputs: ResolvedInputs, optimal_price: int, trace: list) -> Metrics:
        # Revenue arithmetic stays in float; anything that overflows falls back to 0
        price = float(optimal_price)
        customers = float(inputs.customers)
        churn = inputs.churn_rate
        churn_fraction = churn / 100
        expansion = inputs.expansion_revenue

        if churn_fraction <= 0:
            trace.append(TraceStep("Guard", "Zero churn, LTV annualized over contract length"))
        ltv = self._ltv_at(price, inputs)

        if inputs.cac != 0:
            ltv_cac_ratio = finite_or_zero(ltv / inputs.cac)
        else:
            ltv_cac_ratio = 0.0
            trace.append(TraceStep("Guard", "CAC is zero, LTV:CAC reported as 0"))

        monthly_revenue = finite_or_zero(customers * price)
        yearly_revenue = finite_or_zero(monthly_revenue * 12)

        nrr = finite_or_zero(100 + expansion - churn)

        if churn_fraction > 0:
            quick_ratio = finite_or_zero((expansion / 100) / churn_fraction)
        elif expansion > 0:
            quick_ratio = UNBOUNDED_RATIO
            trace.append(TraceStep("Guard", "Zero churn with expansion, quick ratio unbounded", str(UNBOUNDED_RATIO)))
        else:
            quick_ratio = 0.0

        magic_denominator = finite_or_zero(inputs.cac * customers * 0.25)
        if magic_denominator != 0:
            magic_number = finite_or_zero((yearly_revenue - yearly_revenue * 0.8) / magic_denominator)
        else:
            magic_number = 0.0

        growth_denominator = yearly_revenue * 0.8
        if growth_denominator != 0:
            growth_component = (yearly_revenue / growth_denominator - 1) * 100
        else:
            growth_component = 0.0
        rule_of_40 = finite_or_zero(growth_component + (100 - churn))

        payback_period = finite_or_zero(inputs.cac / price) if price != 0 else 0.0

        tam = finite_or_zero(inputs.market_size * price * 12)
        market_share = finite_or_zero((yearly_revenue / tam) * 100) if tam != 0 else 0.0

        if inputs.current_price != 0:
            price_increase = finite_or_zero(((price - inputs.current_price) / inputs.current_price) * 100)
        else:
            price_increase = 0.0

        return Metrics(
            optimal_price=optimal_price,
            ltv=round_half_up(ltv),
            ltv_cac_ratio=round_ratio(ltv_cac_ratio),
            monthly_revenue=round_half_up(monthly_revenue),
            yearly_revenue=round_half_up(yearly_revenue),
            nrr=round_half_up(nrr),
            quick_ratio=round_ratio(quick_ratio),
            magic_number=round_ratio(magic_number),
            rule_of_40=round_half_up(rule_of_40),
            payback_period=round_ratio(payback_period),
            market_share=round_ratio(market_share),
            price_increase_percent=round_half_up(price_increase),
        )

    def _tiers(self, optimal_price: int) -> PricingTiers:
        starter, professional, enterprise = (
            round_half_up(float(optimal_price) * m) for m in self.profile.tier_multipliers
        )
        # Keep tiers strictly ordered when rounding collapses small prices
        if optimal_price > 0:
            starter = min(starter, professional - 1)
            enterprise = max(enterprise, professional + 1)

        prices = {'starter': starter, 'professional': professional, 'enterprise': enterprise}
        built = {
            spec.key: PricingTier(
                name=spec.name,
                price=prices[spec.key],
                features=spec.features,
                target_segment=spec.target_segment,
                projected_adoption=spec.projected_adoption,
                recommended=spec.recommended,
            )
            for spec in TIER_SPECS
        }
        return PricingTiers(**built)

    def _projection(self, inputs: ResolvedInputs, optimal_price: int) -> tuple[ProjectionPoint, ...]:
        growth_rate = 1 + (inputs.expansion_revenue / 100 - inputs.churn_rate / 100)
        points = []
        for month in range(PROJECTION_MONTHS + 1):
            try:
                factor = growth_rate ** month
            except OverflowError:
                factor = math.inf
            month_customers = round_half_up(float(inputs.customers) * factor)
            mrr = round_half_up(float(month_customers) * optimal_price)
            points.append(ProjectionPoint(month=month, revenue=mrr, customers=month_customers, mrr=mrr))
        return tuple(points)

    def _competitor_rows(self, inputs: ResolvedInputs, optimal_price: int) -> tuple[CompetitorRow, ...]:
        prices = (inputs.current_price, inputs.competitor_price, optimal_price)
        top = max(prices)

        def position(price: float) -> int:
            return _clamp_score(price / top * 100) if top > 0 else 0

        you, competitor, optimal = prices
        return (
            CompetitorRow('Price', round_half_up(you), round_half_up(competitor), optimal),
            CompetitorRow(
                'LTV',
                round_half_up(self._ltv_at(you, inputs)),
                round_half_up(self._ltv_at(competitor, inputs)),
                round_half_up(self._ltv_at(optimal, inputs)),
            ),
            CompetitorRow('Market Position', position(you), position(competitor), position(optimal)),
        )

    def _radar(self, inputs: ResolvedInputs, metrics: Metrics) -> tuple[RadarScore, ...]:
        monthly_growth = inputs.expansion_revenue - inputs.churn_rate
        return (
            RadarScore('LTV:CAC', _clamp_score(metrics.ltv_cac_ratio * 20), 60),
            RadarScore('NRR', _clamp_score(metrics.nrr * 0.8), 88),
            RadarScore('Quick Ratio', _clamp_score(metrics.quick_ratio * 20), 80),
            RadarScore('Rule of 40', _clamp_score(metrics.rule_of_40), 40),
            RadarScore('Payback', _clamp_score(100 - metrics.payback_period * 100 / 24), 50),
            RadarScore('Growth', _clamp_score(monthly_growth * 10), 50),
        )


def compute(inputs: Union[CalculatorInputs, dict, None] = None, profile: Optional[str] = None) -> CalculationResult:
    """Compute a CalculationResult with a fresh engine."""
    return MetricsEngine(profile).calculate(inputs)
