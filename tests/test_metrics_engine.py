import math
import pytest
import sys
import os

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from saas_pricing.engine import MetricsEngine, CalculatorInputs, compute
from saas_pricing.engine.metrics_engine import UNBOUNDED_RATIO, round_half_up

SCENARIO = {
    "currentPrice": 49,
    "competitorPrice": 79,
    "customers": 250,
    "churnRate": 5,
    "cac": 100,
    "averageContractLength": 12,
    "expansionRevenue": 10,
    "marketSize": 1000000,
}


@pytest.fixture(scope="module")
def engine():
    return MetricsEngine("enhanced")


@pytest.fixture(scope="module")
def scenario_result(engine):
    return engine.calculate(CalculatorInputs.from_dict(SCENARIO))


def titles(result):
    return [i.title for i in result.insights]


def test_scenario_core_metrics(scenario_result):
    """Competitor-anchored scenario: 79 * 0.85 rounds to 67 and drives every metric."""
    m = scenario_result.metrics
    assert m.optimal_price == 67
    assert m.ltv == 16080
    assert m.ltv_cac_ratio == pytest.approx(160.8)
    assert m.monthly_revenue == 16750
    assert m.yearly_revenue == 201000
    assert m.nrr == 105
    assert m.quick_ratio == pytest.approx(2.0)
    assert m.magic_number == pytest.approx(6.43)
    assert m.rule_of_40 == 120
    assert m.payback_period == pytest.approx(1.49)
    assert m.price_increase_percent == 37


def test_scenario_insights(scenario_result):
    """Healthy unit economics fires, excellent NRR does not (105 <= 110)."""
    found = titles(scenario_result)
    assert found[0] == "Healthy Unit Economics"
    assert "Excellent Net Revenue Retention" not in found
    assert "Significant Pricing Opportunity" in found
    assert "Rule of 40 Achieved" in found
    assert "160.80" in scenario_result.insights[0].message


def test_scenario_tiers(scenario_result):
    tiers = scenario_result.tiers
    assert (tiers.starter.price, tiers.professional.price, tiers.enterprise.price) == (40, 67, 147)
    assert tiers.professional.recommended is True
    assert tiers.starter.recommended is False
    assert tiers.enterprise.recommended is False
    assert tiers.starter.projected_adoption.endswith('%')


def test_scenario_competitor_rows(scenario_result):
    rows = {r.metric: r for r in scenario_result.competitor_data}
    assert [r.metric for r in scenario_result.competitor_data] == ['Price', 'LTV', 'Market Position']
    assert (rows['Price'].you, rows['Price'].competitor, rows['Price'].optimal) == (49, 79, 67)
    assert rows['LTV'].optimal == scenario_result.metrics.ltv
    assert rows['Market Position'].competitor == 100
    assert rows['Market Position'].you == 62
    assert rows['Market Position'].optimal == 85


def test_determinism(engine):
    """Identical inputs always yield identical results."""
    first = engine.calculate(CalculatorInputs.from_dict(SCENARIO))
    second = engine.calculate(CalculatorInputs.from_dict(SCENARIO))
    assert first == second
    assert first.to_dict() == second.to_dict()


def test_dict_and_dataclass_inputs_agree(engine):
    assert engine.calculate(SCENARIO) == engine.calculate(CalculatorInputs.from_dict(SCENARIO))


def test_empty_inputs_use_defaults(engine):
    """compute({}) never raises and substitutes every default."""
    result = engine.calculate({})
    resolved = result.inputs
    assert resolved.churn_rate == 5
    assert resolved.cac == 100
    assert resolved.average_contract_length == 12
    assert resolved.expansion_revenue == 10
    assert resolved.market_size == 1_000_000
    assert resolved.current_price == 0
    assert resolved.customers == 0

    assert result.metrics.optimal_price == 0
    assert result.metrics.ltv_cac_ratio == 0
    assert titles(result) == ["LTV:CAC Ratio Below Target", "Rule of 40 Achieved"]
    defaults = [t for t in result.trace if t.step == "Default Applied"]
    assert len(defaults) == 8


def test_module_level_compute_accepts_none():
    result = compute(None, profile="enhanced")
    assert len(result.projection_data) == 13


def test_non_numeric_inputs_are_defaulted(engine):
    result = engine.calculate({
        "currentPrice": "abc",
        "churnRate": "n/a",
        "cac": "",
        "customers": "12.9",
        "marketSize": "nan",
        "expansionRevenue": "inf",
    })
    assert result.inputs.current_price == 0
    assert result.inputs.churn_rate == 5
    assert result.inputs.cac == 100
    assert result.inputs.customers == 12
    assert result.inputs.market_size == 1_000_000
    assert result.inputs.expansion_revenue == 10


def test_explicit_zero_is_not_defaulted(engine):
    result = engine.calculate({"churnRate": "0", "expansionRevenue": 0})
    assert result.inputs.churn_rate == 0
    assert result.inputs.expansion_revenue == 0


def test_half_up_rounding_of_optimal_price(engine):
    """50 * 1.35 = 67.5 rounds half-up to 68."""
    result = engine.calculate({"currentPrice": 50, "competitorPrice": 0})
    assert result.metrics.optimal_price == 68
    assert round_half_up(67.5) == 68
    assert round_half_up(66.5) == 67


def test_zero_churn_and_zero_expansion_quick_ratio(engine):
    result = engine.calculate({"currentPrice": 50, "churnRate": 0, "expansionRevenue": 0})
    assert result.metrics.quick_ratio == 0
    # LTV falls back to annualized contract value
    assert result.metrics.ltv == 68 * 12 * 12


def test_zero_churn_with_expansion_uses_sentinel(engine):
    result = engine.calculate({"currentPrice": 50, "churnRate": 0, "expansionRevenue": 10})
    assert result.metrics.quick_ratio == UNBOUNDED_RATIO


def test_zero_cac_guards(engine):
    result = engine.calculate({"currentPrice": 50, "customers": 10, "cac": 0})
    assert result.metrics.ltv_cac_ratio == 0
    assert result.metrics.magic_number == 0
    assert result.insights[0].title == "LTV:CAC Ratio Below Target"


def test_excellent_nrr_insight(engine):
    result = engine.calculate({"currentPrice": 100, "competitorPrice": 100, "churnRate": 2, "expansionRevenue": 15})
    assert result.metrics.nrr == 113
    assert "Excellent Net Revenue Retention" in titles(result)
    assert "Significant Pricing Opportunity" not in titles(result)


@pytest.mark.parametrize("inputs", [
    {},
    SCENARIO,
    {"currentPrice": 0, "churnRate": 0, "expansionRevenue": 0, "cac": 0, "marketSize": 0},
    {"currentPrice": 10, "customers": 0, "churnRate": 100, "expansionRevenue": 0},
    {"currentPrice": 1e6, "customers": 1e6, "churnRate": 0.01, "expansionRevenue": 50},
    {"currentPrice": 30, "customers": 5, "churnRate": 60, "expansionRevenue": 1, "averageContractLength": 0},
])
def test_result_invariants(engine, inputs):
    """Shape, bounds and finiteness hold for degenerate and extreme inputs."""
    result = engine.calculate(inputs)

    assert len(result.projection_data) == 13
    assert [p.month for p in result.projection_data] == list(range(13))

    assert 1 <= len(result.insights) <= 4
    assert result.insights[0].title in ("LTV:CAC Ratio Below Target", "Healthy Unit Economics")

    for score in result.metrics_radar:
        assert 0 <= score.value <= 100, f"{score.metric} out of range: {score.value}"
    assert [s.metric for s in result.metrics_radar] == [
        'LTV:CAC', 'NRR', 'Quick Ratio', 'Rule of 40', 'Payback', 'Growth'
    ]

    for name, value in result.metrics.__dict__.items():
        assert math.isfinite(value), f"{name} is not finite"


@pytest.mark.parametrize("price", [1, 2, 3, 10, 49, 999.99])
def test_tier_ordering(engine, price):
    tiers = engine.calculate({"currentPrice": price}).tiers
    assert tiers.starter.price < tiers.professional.price < tiers.enterprise.price
    assert [t.recommended for t in tiers.as_list()] == [False, True, False]


def test_projection_compounds_growth(scenario_result):
    points = scenario_result.projection_data
    assert points[0].customers == 250
    assert points[0].revenue == points[0].mrr == 16750
    customers = [p.customers for p in points]
    assert customers == sorted(customers)
    for p in points:
        assert p.revenue == p.customers * 67


def test_simple_profile(engine):
    result = MetricsEngine("simple").calculate({"currentPrice": 100})
    assert result.profile == "simple"
    assert result.metrics.optimal_price == 110
    tiers = result.tiers
    assert (tiers.starter.price, tiers.professional.price, tiers.enterprise.price) == (55, 110, 275)


def test_unknown_profile_rejected():
    with pytest.raises(ValueError):
        MetricsEngine("turbo")


def test_trace_records_price_basis(scenario_result):
    text = scenario_result.get_trace_text()
    assert "Competitor price" in text
    assert "$67" in text


def test_result_is_immutable(scenario_result):
    with pytest.raises(Exception):
        scenario_result.metrics.ltv = 0


@pytest.mark.parametrize("inputs", [
    {"currentPrice": 1e308},
    {"currentPrice": 49, "customers": 1e308},
    {"currentPrice": 49, "customers": 250, "expansionRevenue": 1e200},
    {"currentPrice": 49, "churnRate": 1e-320, "cac": 1e-300},
    {"competitorPrice": 1e308, "customers": 1e308, "marketSize": 1e308},
    {"currentPrice": -1e308, "churnRate": -1e308, "expansionRevenue": 1e308},
])
def test_extreme_magnitudes_never_raise(engine, inputs):
    """Values that overflow float arithmetic fall back to 0 instead of raising."""
    result = engine.calculate(inputs)

    assert len(result.projection_data) == 13
    for name, value in result.metrics.__dict__.items():
        assert math.isfinite(value), f"{name} is not finite"
    for point in result.projection_data:
        assert math.isfinite(point.revenue) and math.isfinite(point.customers)
    for score in result.metrics_radar:
        assert 0 <= score.value <= 100
    tiers = result.tiers
    assert tiers.starter.price <= tiers.professional.price <= tiers.enterprise.price


def test_overflowing_price_basis_reports_zero(engine):
    result = engine.calculate({"currentPrice": 1e308})
    assert result.metrics.optimal_price == 0
    assert result.metrics.monthly_revenue == 0
    assert "Price basis overflowed" in result.get_trace_text()


def test_overflowing_revenue_reports_zero(engine):
    result = engine.calculate({"currentPrice": 49, "customers": 1e308})
    assert result.metrics.optimal_price == 66
    assert result.metrics.monthly_revenue == 0
    assert result.metrics.yearly_revenue == 0
    assert result.metrics.ltv == 15840


def test_runaway_growth_projection(engine):
    result = engine.calculate({"currentPrice": 49, "customers": 250, "expansionRevenue": 1e200})
    assert result.projection_data[0].customers == 250
    assert result.projection_data[-1].customers == 0
    assert result.metrics.nrr > 100
