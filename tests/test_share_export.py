import io
import sys
import os
import pandas as pd
import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from saas_pricing.engine import MetricsEngine, CalculatorInputs
from saas_pricing.services.analytics import AnalyticsTracker
from saas_pricing.services.export import projection_to_csv, result_to_excel, result_to_frames
from saas_pricing.services.share import ShareTokenError, decode_share_token, encode_share_token


@pytest.fixture(scope="module")
def calculation():
    inputs = CalculatorInputs.from_dict({
        "currentPrice": 49, "competitorPrice": 79, "customers": 250, "churnRate": "5",
    })
    return inputs, MetricsEngine("enhanced").calculate(inputs)


def test_share_token_round_trip(calculation):
    inputs, result = calculation
    token = encode_share_token(inputs, result)

    assert "=" not in token
    assert "/" not in token and "+" not in token

    shared = decode_share_token(token)
    assert shared.inputs == inputs
    assert shared.result == result


def test_share_token_is_stable(calculation):
    inputs, result = calculation
    assert encode_share_token(inputs, result) == encode_share_token(inputs, result)


@pytest.mark.parametrize("token", ["", "   ", "not-a-token!", "e30", "eyJpbnB1dHMiOiB7fX0"])
def test_bad_share_tokens(token):
    with pytest.raises(ShareTokenError):
        decode_share_token(token)


def test_result_frames(calculation):
    _, result = calculation
    frames = result_to_frames(result)
    assert list(frames) == ['Metrics', 'Tiers', 'Projection', 'Competitors', 'Radar', 'Insights']
    assert list(frames['Tiers']['Price']) == [40, 67, 147]
    assert len(frames['Radar']) == 6
    assert frames['Insights']['Title'].iloc[0] == "Healthy Unit Economics"


def test_projection_csv(calculation):
    _, result = calculation
    lines = projection_to_csv(result).strip().splitlines()
    assert lines[0] == "Month,Customers,MRR,Revenue"
    assert len(lines) == 14
    assert lines[1] == "0,250,16750,16750"


def test_excel_export(calculation):
    _, result = calculation
    data = result_to_excel(result)
    assert data[:2] == b"PK"

    sheets = pd.read_excel(io.BytesIO(data), sheet_name=None)
    assert set(sheets) == {'Metrics', 'Tiers', 'Projection', 'Competitors', 'Radar', 'Insights'}
    assert len(sheets['Projection']) == 13


def test_analytics_calculation_event(calculation):
    _, result = calculation
    events = []
    tracker = AnalyticsTracker(sink=lambda name, params: events.append((name, params)))

    event = tracker.track_calculation(result)
    tracker.track_export("excel")
    tracker.track_buy_click()

    assert event.recommended_price == 67
    assert event.price_change_percent == 37
    assert events[0] == ("calculator_used", {
        "recommended_price": 67,
        "current_price": 49,
        "customers": 250,
        "price_change_percent": 37,
    })
    assert [name for name, _ in events[1:]] == ["calculation_exported", "begin_checkout"]


def test_analytics_default_sink_logs(calculation, caplog):
    _, result = calculation
    with caplog.at_level("INFO"):
        AnalyticsTracker().track_calculation(result)
    assert "calculator_used" in caplog.text


def test_shared_zero_inputs_survive_form_reload():
    """Reloading a shared calculation into the form keeps explicit zeros."""
    engine = MetricsEngine("enhanced")
    inputs = CalculatorInputs(current_price=50, churn_rate=0, expansion_revenue=0)
    result = engine.calculate(inputs)

    shared = decode_share_token(encode_share_token(inputs, result))
    form = shared.inputs.to_form_values()

    assert form['churn_rate'] == '0'
    assert form['expansion_revenue'] == '0'
    assert form['cac'] == ''

    reloaded = engine.calculate(CalculatorInputs(**form))
    assert reloaded.inputs.churn_rate == 0
    assert reloaded.inputs.expansion_revenue == 0
    assert reloaded.metrics == result.metrics


def test_form_values_accept_camel_case_records():
    form = CalculatorInputs.from_dict({"churnRate": 0.0, "currentPrice": 49}).to_form_values()
    assert form['churn_rate'] == '0.0'
    assert form['current_price'] == '49'
    assert CalculatorInputs.from_dict(None).to_form_values()['customers'] == ''
