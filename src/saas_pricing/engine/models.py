"""
Data models for the pricing metrics engine.

Uses dataclasses for structured, type-safe data representation.
Results are frozen: a new CalculationResult is produced for every
calculation and never mutated afterwards.
"""
import math
from dataclasses import dataclass, field, asdict, fields
from typing import Any, Optional


INPUT_ALIASES = {
    'currentPrice': 'current_price',
    'competitorPrice': 'competitor_price',
    'customers': 'customers',
    'churnRate': 'churn_rate',
    'cac': 'cac',
    'averageContractLength': 'average_contract_length',
    'expansionRevenue': 'expansion_revenue',
    'marketSize': 'market_size',
}


def parse_number(value: Any) -> Optional[float]:
    """
    Parse a free-text form value as a number.

    Returns None for anything that is missing, blank, non-numeric,
    NaN or infinite. Never raises.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace(',', '')
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


@dataclass(frozen=True)
class TraceStep:
    """A single step in the calculation trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass(frozen=True)
class CalculatorInputs:
    """
    Raw calculator inputs as entered by the user.

    Every field is optional. Values may still be unparsed form text;
    the engine normalizes them in a single step before any arithmetic.
    """
    current_price: Optional[Any] = None
    competitor_price: Optional[Any] = None
    customers: Optional[Any] = None
    churn_rate: Optional[Any] = None
    cac: Optional[Any] = None
    average_contract_length: Optional[Any] = None
    expansion_revenue: Optional[Any] = None
    market_size: Optional[Any] = None

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'CalculatorInputs':
        """Build inputs from a form or saved record (snake_case or camelCase keys)."""
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in (data or {}).items():
            name = INPUT_ALIASES.get(key, key)
            if name in known:
                values[name] = value
        return cls(**values)

    def to_dict(self) -> dict:
        return asdict(self)

    def to_form_values(self) -> dict[str, str]:
        """Text for each form field; only a missing value becomes blank, so 0 survives a reload."""
        return {name: '' if value is None else str(value) for name, value in asdict(self).items()}


@dataclass(frozen=True)
class ResolvedInputs:
    """Inputs after parsing and default substitution."""
    current_price: float
    competitor_price: float
    customers: int
    churn_rate: float
    cac: float
    average_contract_length: float
    expansion_revenue: float
    market_size: float


@dataclass(frozen=True)
class Metrics:
    """Derived SaaS metrics, rounded for presentation."""
    optimal_price: int
    ltv: int
    ltv_cac_ratio: float
    monthly_revenue: int
    yearly_revenue: int
    nrr: int
    quick_ratio: float
    magic_number: float
    rule_of_40: int
    payback_period: float
    market_share: float
    price_increase_percent: int


@dataclass(frozen=True)
class PricingTier:
    """One recommended pricing tier."""
    name: str
    price: int
    features: tuple[str, ...]
    target_segment: str
    projected_adoption: str
    recommended: bool = False


@dataclass(frozen=True)
class PricingTiers:
    """The three named tiers of a recommendation."""
    starter: PricingTier
    professional: PricingTier
    enterprise: PricingTier

    def as_list(self) -> list[PricingTier]:
        return [self.starter, self.professional, self.enterprise]


@dataclass(frozen=True)
class ProjectionPoint:
    """Projected revenue and customer count for one month."""
    month: int
    revenue: int
    customers: int
    mrr: int


@dataclass(frozen=True)
class CompetitorRow:
    """A you / competitor / optimal comparison for one dimension."""
    metric: str
    you: int
    competitor: int
    optimal: int


@dataclass(frozen=True)
class RadarScore:
    """A normalized 0-100 score with its fixed benchmark."""
    metric: str
    value: int
    benchmark: int


@dataclass(frozen=True)
class Insight:
    """An advisory message produced by an insight rule."""
    type: str  # "warning", "success" or "opportunity"
    title: str
    message: str


@dataclass(frozen=True)
class CalculationResult:
    """Complete result of a pricing calculation."""
    inputs: ResolvedInputs
    metrics: Metrics
    tiers: PricingTiers
    projection_data: tuple[ProjectionPoint, ...]
    competitor_data: tuple[CompetitorRow, ...]
    metrics_radar: tuple[RadarScore, ...]
    insights: tuple[Insight, ...]
    profile: str = "enhanced"
    trace: tuple[TraceStep, ...] = field(default_factory=tuple)

    def get_trace_text(self) -> str:
        """Get human-readable calculation trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"• {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"• {t.step}: {t.description}")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        """Plain JSON-compatible record (tuples become lists)."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'CalculationResult':
        """Rebuild a result from the record produced by to_dict()."""
        def tier(d: dict) -> PricingTier:
            return PricingTier(**{**d, 'features': tuple(d['features'])})

        tiers = data['tiers']
        return cls(
            inputs=ResolvedInputs(**data['inputs']),
            metrics=Metrics(**data['metrics']),
            tiers=PricingTiers(
                starter=tier(tiers['starter']),
                professional=tier(tiers['professional']),
                enterprise=tier(tiers['enterprise']),
            ),
            projection_data=tuple(ProjectionPoint(**p) for p in data['projection_data']),
            competitor_data=tuple(CompetitorRow(**r) for r in data['competitor_data']),
            metrics_radar=tuple(RadarScore(**r) for r in data['metrics_radar']),
            insights=tuple(Insight(**i) for i in data['insights']),
            profile=data.get('profile', 'enhanced'),
            trace=tuple(TraceStep(**t) for t in data.get('trace', [])),
        )
