"""
Tabular export of calculation results (CSV / Excel).
"""
import io

import pandas as pd

from ..engine.models import CalculationResult


def result_to_frames(result: CalculationResult) -> dict[str, pd.DataFrame]:
    """Split a result into one DataFrame per section."""
    metrics = result.metrics
    metrics_df = pd.DataFrame([
        {'Metric': 'Optimal Price', 'Value': metrics.optimal_price},
        {'Metric': 'LTV', 'Value': metrics.ltv},
        {'Metric': 'LTV:CAC Ratio', 'Value': metrics.ltv_cac_ratio},
        {'Metric': 'Monthly Revenue', 'Value': metrics.monthly_revenue},
        {'Metric': 'Yearly Revenue', 'Value': metrics.yearly_revenue},
        {'Metric': 'NRR (%)', 'Value': metrics.nrr},
        {'Metric': 'Quick Ratio', 'Value': metrics.quick_ratio},
        {'Metric': 'Magic Number', 'Value': metrics.magic_number},
        {'Metric': 'Rule of 40', 'Value': metrics.rule_of_40},
        {'Metric': 'Payback Period (months)', 'Value': metrics.payback_period},
        {'Metric': 'Market Share (%)', 'Value': metrics.market_share},
        {'Metric': 'Price Increase (%)', 'Value': metrics.price_increase_percent},
    ])

    tiers_df = pd.DataFrame([
        {
            'Tier': tier.name,
            'Price': tier.price,
            'Target Segment': tier.target_segment,
            'Projected Adoption': tier.projected_adoption,
            'Recommended': tier.recommended,
            'Features': ", ".join(tier.features),
        }
        for tier in result.tiers.as_list()
    ])

    projection_df = pd.DataFrame([
        {'Month': p.month, 'Customers': p.customers, 'MRR': p.mrr, 'Revenue': p.revenue}
        for p in result.projection_data
    ])

    competitor_df = pd.DataFrame([
        {'Metric': r.metric, 'You': r.you, 'Competitor': r.competitor, 'Optimal': r.optimal}
        for r in result.competitor_data
    ])

    radar_df = pd.DataFrame([
        {'Metric': r.metric, 'Score': r.value, 'Benchmark': r.benchmark}
        for r in result.metrics_radar
    ])

    insights_df = pd.DataFrame(
        [{'Type': i.type, 'Title': i.title, 'Message': i.message} for i in result.insights],
        columns=['Type', 'Title', 'Message'],
    )

    return {
        'Metrics': metrics_df,
        'Tiers': tiers_df,
        'Projection': projection_df,
        'Competitors': competitor_df,
        'Radar': radar_df,
        'Insights': insights_df,
    }


def projection_to_csv(result: CalculationResult) -> str:
    """12-month projection as CSV text."""
    return result_to_frames(result)['Projection'].to_csv(index=False)


def result_to_excel(result: CalculationResult) -> bytes:
    """Workbook with one sheet per result section."""
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
        for sheet, df in result_to_frames(result).items():
            df.to_excel(writer, sheet_name=sheet, index=False)
    return buffer.getvalue()
