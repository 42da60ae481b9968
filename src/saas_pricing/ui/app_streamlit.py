"""
Streamlit UI for the SaaS Pricing Calculator.

Features:
- Calculator form with optional advanced inputs
- Tabbed results: Metrics, Pricing Tiers, Projection, Benchmarks
- Save, rename and delete calculations
- Shareable token and CSV/Excel export
"""
import streamlit as st
import pandas as pd
from datetime import datetime

from saas_pricing.engine import MetricsEngine, CalculatorInputs
from saas_pricing.config.settings import get_settings
from saas_pricing.services.analytics import AnalyticsTracker
from saas_pricing.services.export import projection_to_csv, result_to_excel, result_to_frames
from saas_pricing.services.saved_calculations import SavedCalculationsService
from saas_pricing.services.share import ShareTokenError, decode_share_token, encode_share_token
from saas_pricing.services.storage import JsonFileStore


st.set_page_config(
    page_title="SaaS Pricing Calculator",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_engine():
    """Get cached engine instance."""
    return MetricsEngine(get_settings().formula_profile)


@st.cache_resource
def get_calculations_service():
    """Get cached saved calculations service."""
    return SavedCalculationsService(JsonFileStore(get_settings().storage_path))


engine = get_engine()
calculations = get_calculations_service()
analytics = AnalyticsTracker()

INSIGHT_STYLE = {
    'warning': st.warning,
    'success': st.success,
    'opportunity': st.info,
}


# ============================================================================
# SIDEBAR: Inputs
# ============================================================================
with st.sidebar:
    st.header("📊 Your Business")

    form = CalculatorInputs.from_dict(st.session_state.get('loaded_inputs')).to_form_values()

    with st.container(border=True):
        current_price = st.text_input("Current Monthly Price ($)", value=form['current_price'], placeholder="49")
        customers = st.text_input("Number of Customers", value=form['customers'], placeholder="250")
        churn_rate = st.text_input("Monthly Churn Rate (%)", value=form['churn_rate'], placeholder="5")
        competitor_price = st.text_input("Competitor Price ($)", value=form['competitor_price'], placeholder="79")

    with st.expander("⚙️ Advanced Metrics"):
        cac = st.text_input("Customer Acquisition Cost ($)", value=form['cac'], placeholder="100")
        contract_length = st.text_input("Average Contract Length (months)", value=form['average_contract_length'], placeholder="12")
        expansion = st.text_input("Monthly Expansion Revenue (%)", value=form['expansion_revenue'], placeholder="10")
        market_size = st.text_input("Market Size (potential customers)", value=form['market_size'], placeholder="1000000")

    st.divider()

    with st.expander("🔗 Open Shared Calculation"):
        token = st.text_input("Share token", label_visibility="collapsed", placeholder="Paste share token...")
        if st.button("Open"):
            try:
                shared = decode_share_token(token)
                st.session_state.loaded_inputs = shared.inputs.to_dict()
                st.rerun()
            except ShareTokenError as e:
                st.error(str(e))

inputs = CalculatorInputs(
    current_price=current_price,
    competitor_price=competitor_price,
    customers=customers,
    churn_rate=churn_rate,
    cac=cac,
    average_contract_length=contract_length,
    expansion_revenue=expansion,
    market_size=market_size,
)


# ============================================================================
# MAIN CONTENT: TABBED INTERFACE
# ============================================================================
st.title("SaaS Pricing Calculator")
st.caption(f"Formula set: {engine.profile.name} | {datetime.now().strftime('%Y-%m-%d')}")

if st.button("🧮 Calculate", type="primary"):
    st.session_state.result = engine.calculate(inputs)
    st.session_state.result_inputs = inputs
    analytics.track_calculation(st.session_state.result)

result = st.session_state.get('result')

if result is None:
    st.info("Enter your numbers in the sidebar and press Calculate.")
    st.stop()

metrics = result.metrics
tab1, tab2, tab3, tab4, tab5 = st.tabs(["📈 Metrics", "💰 Pricing Tiers", "📅 Projection", "🎯 Benchmarks", "💾 Save & Share"])


# ============================================================================
# TAB 1: METRICS & INSIGHTS
# ============================================================================
with tab1:
    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Optimal Price", f"${metrics.optimal_price:,}", f"{metrics.price_increase_percent}%")
    m2.metric("LTV", f"${metrics.ltv:,}")
    m3.metric("LTV:CAC", f"{metrics.ltv_cac_ratio:.2f}")
    m4.metric("NRR", f"{metrics.nrr}%")

    m5, m6, m7, m8 = st.columns(4)
    m5.metric("Monthly Revenue", f"${metrics.monthly_revenue:,}")
    m6.metric("Quick Ratio", f"{metrics.quick_ratio:.2f}")
    m7.metric("Rule of 40", metrics.rule_of_40)
    m8.metric("Payback (months)", f"{metrics.payback_period:.2f}")

    st.divider()
    st.subheader("Insights")
    for insight in result.insights:
        INSIGHT_STYLE.get(insight.type, st.info)(f"**{insight.title}**\n\n{insight.message}")

    with st.expander("🔍 Calculation Details"):
        for step in result.trace:
            if step.value:
                st.caption(f"**{step.step}**: {step.description} = `{step.value}`")
            else:
                st.caption(f"**{step.step}**: {step.description}")


# ============================================================================
# TAB 2: PRICING TIERS
# ============================================================================
with tab2:
    columns = st.columns(3)
    for col, tier in zip(columns, result.tiers.as_list()):
        with col:
            with st.container(border=True):
                label = f"⭐ {tier.name}" if tier.recommended else tier.name
                st.markdown(f"### {label}")
                st.markdown(f"## ${tier.price}/mo")
                st.caption(f"{tier.target_segment} · projected adoption {tier.projected_adoption}")
                for feature in tier.features:
                    st.markdown(f"- {feature}")


# ============================================================================
# TAB 3: PROJECTION
# ============================================================================
with tab3:
    frames = result_to_frames(result)
    projection = frames['Projection'].set_index('Month')
    st.line_chart(projection[['Revenue']])
    st.dataframe(projection, use_container_width=True)
    st.download_button(
        "📥 Projection CSV",
        data=projection_to_csv(result),
        file_name="projection.csv",
        mime="text/csv",
    )


# ============================================================================
# TAB 4: BENCHMARKS
# ============================================================================
with tab4:
    st.subheader("Competitor Comparison")
    st.dataframe(frames['Competitors'], use_container_width=True, hide_index=True)

    st.subheader("Metrics vs Benchmarks")
    radar = frames['Radar'].set_index('Metric')
    st.bar_chart(radar)


# ============================================================================
# TAB 5: SAVE & SHARE
# ============================================================================
with tab5:
    result_inputs = st.session_state.get('result_inputs', inputs)

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("Save")
        name = st.text_input("Name", placeholder="Q3 pricing review")
        notes = st.text_area("Notes", height=80)
        if st.button("💾 Save Calculation"):
            saved = calculations.save_calculation(result_inputs, result, name=name or None, notes=notes)
            st.success(f"Saved as {saved.name}")

        st.download_button(
            "📥 Excel Report",
            data=result_to_excel(result),
            file_name="pricing_analysis.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )

    with col2:
        st.subheader("Share")
        st.code(encode_share_token(result_inputs, result), language=None)

    st.divider()
    st.subheader("Saved Calculations")
    saved_list = calculations.list_calculations()
    if saved_list:
        st.dataframe(pd.DataFrame([
            {
                'ID': c.id,
                'Name': c.name,
                'Saved': c.timestamp,
                'Optimal Price': c.results.get('metrics', {}).get('optimal_price'),
            }
            for c in saved_list
        ]), use_container_width=True, hide_index=True)

        selected = st.selectbox("Calculation", options=[c.id for c in saved_list])
        c1, c2, c3 = st.columns([2, 1, 1])
        with c1:
            new_name = st.text_input("Rename to", label_visibility="collapsed", placeholder="New name...")
        with c2:
            if st.button("✏️ Rename") and new_name:
                calculations.rename_calculation(selected, new_name)
                st.rerun()
        with c3:
            if st.button("🗑️ Delete"):
                calculations.delete_calculation(selected)
                st.rerun()

        if st.button("📂 Load Inputs"):
            st.session_state.loaded_inputs = calculations.get_calculation(selected).inputs
            st.rerun()
    else:
        st.caption("No saved calculations yet.")
