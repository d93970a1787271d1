import pytest

from analysis.sensitivity import (
    FALLBACK_RANGE,
    ParameterRegistry,
    SensitivityAnalyzer,
    SweepPoint,
    SweepRange,
    SweepResult,
    SweepSelection,
)
from models.cost_ledger import CostLedger
from models.financial_model import compute_metrics
from models.inputs import InputField, SCENARIO_PRESETS, ScenarioType

REALISTIC = SCENARIO_PRESETS[ScenarioType.REALISTIC]


@pytest.fixture
def analyzer():
    return SensitivityAnalyzer(REALISTIC, CostLedger.with_defaults().cost_context())


def test_churn_sweep_stops_below_max(analyzer):
    result = analyzer.sweep(InputField.CHURN_RATE, SweepRange(1, 50, 5))
    assert result.values == [1, 6, 11, 16, 21, 26, 31, 36, 41, 46]
    assert len(result) == 10


def test_sweep_includes_max_on_exact_multiple():
    assert list(SweepRange(1, 24, 1).get_values()) == list(range(1, 25))
    values = SweepRange(0, 1, 0.1).get_values()
    assert len(values) == 11
    assert values[-1] == pytest.approx(1.0)


def test_single_sample_when_min_equals_max():
    assert list(SweepRange(7, 7, 5).get_values()) == [7]


@pytest.mark.parametrize("bounds", [(0, 10, 0), (0, 10, -1), (10, 0, 1)])
def test_invalid_ranges_rejected(bounds):
    with pytest.raises(ValueError):
        SweepRange(*bounds)


def test_sweep_matches_engine(analyzer):
    result = analyzer.sweep("partner_count")
    ctx = analyzer.cost_context
    point = result[3]
    assert point.value == 35
    m = compute_metrics(
        REALISTIC.with_value(InputField.PARTNER_COUNT, 35),
        ctx.monthly_fixed_costs,
        ctx.monthly_depreciation,
        ctx.total_capital_investment,
    )
    assert point == SweepPoint.from_metrics(35, m)


def test_sweep_does_not_touch_base_inputs(analyzer):
    analyzer.sweep(InputField.AVG_SUBSCRIPTION_PRICE)
    assert analyzer.base_inputs == REALISTIC


def test_churn_sweep_ltv_is_flat(analyzer):
    result = analyzer.sweep(InputField.CHURN_RATE)
    assert len({p.ltv for p in result}) == 1


def test_default_ranges_and_fallback():
    assert ParameterRegistry.get_range(InputField.CHURN_RATE) == SweepRange(1, 50, 5)
    assert ParameterRegistry.get_range("partnerCount") == SweepRange(5, 500, 10)
    assert ParameterRegistry.get_range(InputField.CONVERSION_RATE) == FALLBACK_RANGE
    assert FALLBACK_RANGE == SweepRange(0, 100, 5)


def test_unknown_variable_rejected(analyzer):
    with pytest.raises(ValueError):
        analyzer.sweep("not_a_field")


def test_all_parameters_listed():
    params = ParameterRegistry.get_all_parameters(REALISTIC)
    assert len(params) == len(InputField)
    churn = next(p for p in params if p.field == InputField.CHURN_RATE)
    assert churn.base_value == 10
    assert churn.category == "Customer Behavior"


def test_selection_resets_on_variable_switch():
    selection = SweepSelection.for_variable(REALISTIC, InputField.CHURN_RATE)
    assert selection.sweep_range == SweepRange(1, 50, 5)
    assert selection.current_value == 10

    custom = selection.with_range(2, 20, 2)
    switched = custom.select(REALISTIC, InputField.PARTNER_COUNT)
    assert switched.variable == InputField.PARTNER_COUNT
    assert switched.sweep_range == SweepRange(5, 500, 10)
    assert switched.current_value == 50


def test_insights_price_sweep(analyzer):
    result = analyzer.sweep(InputField.AVG_SUBSCRIPTION_PRICE)
    insights = result.insights(current_value=150)

    assert insights.base.value == 150
    assert insights.base_on_grid
    # net profit grows with price, so the extremes are the range ends
    assert insights.best.value == 1000
    assert insights.worst.value == 50
    # gross 12m profit is 500 * (8.64 * price - 300) - 25000
    assert insights.profit_improvement == pytest.approx(500 * 8.64 * 850)
    assert insights.profit_decline == pytest.approx(500 * 8.64 * 100)
    assert insights.improvement_percent == pytest.approx(
        insights.profit_improvement / abs(insights.base.net_profit_12_months) * 100
    )


def test_insights_ties_pick_first_sample(analyzer):
    # 12 month profit does not depend on retention months
    insights = analyzer.sweep(InputField.AVG_RETENTION_MONTHS).insights(current_value=6)
    assert insights.best.value == 1
    assert insights.worst.value == 1
    assert insights.base.value == 6
    assert insights.profit_improvement == 0
    assert insights.improvement_percent == 0


def test_insights_nearest_sample_off_grid(analyzer):
    insights = analyzer.sweep(InputField.PARTNER_COUNT).insights(current_value=50)
    # 45 and 55 are equally close; the first wins
    assert insights.base.value == 45
    assert not insights.base_on_grid


def test_insights_zero_base_profit():
    points = [
        SweepPoint(value=v, ltv=0, cac=0, net_profit_12_months=p, gross_margin_percentage=0, payback_period=0)
        for v, p in ((0, -100.0), (5, 0.0), (10, 250.0))
    ]
    result = SweepResult(InputField.CHURN_RATE, SweepRange(0, 10, 5), points)
    insights = result.insights(current_value=5)
    assert insights.base.net_profit_12_months == 0
    assert insights.profit_improvement == 250
    assert insights.profit_decline == 100
    assert insights.improvement_percent == 0


def test_sweep_selection_roundtrip(analyzer):
    selection = SweepSelection.for_variable(REALISTIC, InputField.INFLUENCER_DISCOUNT)
    insights = analyzer.sweep_selection(selection)
    assert insights.base.value == 10
    assert insights.base_on_grid
    assert insights.best.value == 0
    assert insights.worst.value == 50


def test_to_frame(analyzer):
    df = analyzer.sweep(InputField.CHURN_RATE).to_frame()
    assert list(df["value"]) == [1, 6, 11, 16, 21, 26, 31, 36, 41, 46]
    assert {"ltv", "cac", "net_profit_12_months", "gross_margin_percentage", "payback_period"} <= set(df.columns)
    assert (df["parameter_name"] == "Monthly Churn Rate").all()


def test_tornado_sorted_by_impact(analyzer):
    df = analyzer.tornado_analysis()
    assert len(df) == len(ParameterRegistry.DEFAULT_RANGES)
    assert list(df["impact_range"]) == sorted(df["impact_range"], reverse=True)
    churn = df[df["field"] == "churn_rate"].iloc[0]
    assert churn["impact_range"] == 0


def test_scenario_analysis(analyzer):
    df = analyzer.scenario_analysis().set_index("scenario")
    assert list(df.index) == ["OPTIMISTIC", "REALISTIC", "PESSIMISTIC"]
    assert df.loc["OPTIMISTIC", "net_profit_12_months"] > df.loc["REALISTIC", "net_profit_12_months"]
    assert df.loc["REALISTIC", "net_profit_12_months"] > df.loc["PESSIMISTIC", "net_profit_12_months"]
    assert df.loc["REALISTIC", "total_monthly_fixed_costs"] == 24000


def test_churn_impact_is_flat(analyzer):
    df = analyzer.churn_impact()
    assert list(df["churn_rate"]) == [5, 10, 15, 20, 25, 30]
    assert df["expected_profit_12_months"].nunique() == 1


def test_tornado_clamps_base_outside_range():
    inputs = REALISTIC.with_value(InputField.UPFRONT_FEE_PER_PARTNER, 20000)
    df = SensitivityAnalyzer(inputs).tornado_analysis(fields=[InputField.UPFRONT_FEE_PER_PARTNER])
    row = df.iloc[0]
    assert row['low_value'] <= row['high_value']
    assert row['low_value'] == row['high_value'] == 10000
    assert row['impact_range'] == 0
