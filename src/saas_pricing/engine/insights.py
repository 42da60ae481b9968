"""
Insight rules - turns computed metrics into advisory messages.

Rules are evaluated independently and in a fixed order; each rule emits
at most one insight. The LTV:CAC rule always emits exactly one of its two
branches, so a result carries between 1 and 4 insights.
"""
from typing import Callable, Optional

from .models import Insight, Metrics, ResolvedInputs


LTV_CAC_TARGET = 3.0
UNDERPRICING_THRESHOLD = 1.2  # optimal price above current * threshold
NRR_EXCELLENT = 110
RULE_OF_40_TARGET = 40


def ltv_cac_rule(metrics: Metrics, inputs: ResolvedInputs) -> Optional[Insight]:
    ratio = metrics.ltv_cac_ratio
    if ratio < LTV_CAC_TARGET:
        return Insight(
            type='warning',
            title='LTV:CAC Ratio Below Target',
            message=(
                f"Your LTV:CAC ratio of {ratio:.2f}:1 is below the healthy 3:1 benchmark. "
                "Reduce acquisition costs or extend customer lifetime before scaling spend."
            ),
        )
    return Insight(
        type='success',
        title='Healthy Unit Economics',
        message=(
            f"Your LTV:CAC ratio of {ratio:.2f}:1 is above the 3:1 benchmark. "
            "You can afford to invest more in acquisition."
        ),
    )


def pricing_opportunity_rule(metrics: Metrics, inputs: ResolvedInputs) -> Optional[Insight]:
    if metrics.optimal_price > inputs.current_price * UNDERPRICING_THRESHOLD:
        return Insight(
            type='opportunity',
            title='Significant Pricing Opportunity',
            message=(
                f"You may be underpricing by {metrics.price_increase_percent}%. "
                f"Consider moving toward ${metrics.optimal_price} with grandfathering "
                "for existing customers."
            ),
        )
    return None


def nrr_rule(metrics: Metrics, inputs: ResolvedInputs) -> Optional[Insight]:
    if metrics.nrr > NRR_EXCELLENT:
        return Insight(
            type='success',
            title='Excellent Net Revenue Retention',
            message=(
                f"Your NRR of {metrics.nrr}% means expansion revenue more than "
                "offsets churn. Existing customers grow your revenue on their own."
            ),
        )
    return None


def rule_of_40_rule(metrics: Metrics, inputs: ResolvedInputs) -> Optional[Insight]:
    if metrics.rule_of_40 > RULE_OF_40_TARGET:
        return Insight(
            type='success',
            title='Rule of 40 Achieved',
            message=(
                f"Your Rule of 40 score of {metrics.rule_of_40} shows a healthy "
                "balance between growth and profitability."
            ),
        )
    return None


InsightRule = Callable[[Metrics, ResolvedInputs], Optional[Insight]]

INSIGHT_RULES: tuple[InsightRule, ...] = (
    ltv_cac_rule,
    pricing_opportunity_rule,
    nrr_rule,
    rule_of_40_rule,
)


def generate_insights(metrics: Metrics, inputs: ResolvedInputs) -> tuple[Insight, ...]:
    """Run every insight rule in order and collect the ones that fire."""
    insights = []
    for rule in INSIGHT_RULES:
        insight = rule(metrics, inputs)
        if insight is not None:
            insights.append(insight)
    return tuple(insights)
