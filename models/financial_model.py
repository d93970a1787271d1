"""
Partner Program Simulator - Core Financial Model

This module implements the unit economics of a referral/partner subscription
business:
- Effective price, lifetime revenue and operating cost per customer
- Commission cost over the customer lifetime
- LTV, CAC, gross margin and payback period
- Gross and net profit at 3/6/12 month horizons
- Risk indicators and strategic advice derived from the metrics

compute_metrics is a pure function. Division-by-zero is prevented with floor
clamps, never with exceptions.
"""

from dataclasses import dataclass, asdict
from typing import Dict, List, Optional

import pandas as pd

from models.inputs import SimulationInputs

PROFIT_HORIZONS = (3, 6, 12)

# Reference monthly fixed cost used for break-even, independent of the
# caller's cost ledger.
BREAK_EVEN_REFERENCE_FIXED_COSTS = 50000.0


@dataclass(frozen=True)
class SimulationMetrics:
    """Financial metrics for one set of inputs and cost aggregates."""
    cac: float
    ltv: float
    gross_margin: float
    gross_margin_percentage: float
    payback_period: float  # months
    break_even_subscribers: float

    # Before fixed costs and depreciation
    expected_profit_3_months: float
    expected_profit_6_months: float
    expected_profit_12_months: float

    total_subscribers: float
    total_revenue: float

    # Echoed cost context
    total_monthly_fixed_costs: float
    total_monthly_depreciation: float
    total_capital_investment: float

    # After fixed costs and depreciation
    net_profit_3_months: float
    net_profit_6_months: float
    net_profit_12_months: float

    @property
    def ltv_to_cac_ratio(self) -> float:
        return self.ltv / (self.cac or 1)

    def expected_profit(self, months: int) -> float:
        return getattr(self, f"expected_profit_{months}_months")

    def net_profit(self, months: int) -> float:
        return getattr(self, f"net_profit_{months}_months")

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def compute_metrics(inputs: SimulationInputs,
                    monthly_fixed_costs: float = 0,
                    monthly_depreciation: float = 0,
                    total_capital_investment: float = 0,
                    break_even_fixed_costs: float = BREAK_EVEN_REFERENCE_FIXED_COSTS) -> SimulationMetrics:
    """
    Compute unit economics for a snapshot of inputs.

    Formulas:
        effective_price = price * (1 - discount)
        LTV = (lifetime revenue - lifetime op cost - lifetime commission
               - upfront fee per user) * (1 - refund rate)
        CAC = first month commission + upfront fee per user
        payback = CAC / max(0.1, monthly revenue - monthly op cost)

    Recurring commission is a cost of revenue, not part of CAC. Churn rate is
    not used; retention enters only through avg_retention_months.
    """
    effective_price = inputs.avg_subscription_price * (1 - inputs.influencer_discount / 100)

    # Floor of 1 keeps the per-user amortization finite
    total_subscribers = max(1, inputs.partner_count * inputs.avg_referrals_per_partner)

    monthly_revenue = effective_price * (1 - inputs.payment_gateway_fee / 100)
    monthly_op_cost = inputs.infra_cost_per_user + inputs.support_cost_per_user

    total_revenue_life = monthly_revenue * inputs.avg_retention_months
    total_op_cost_life = monthly_op_cost * inputs.avg_retention_months

    # Goes negative when retention is under one month
    first_month_comm = effective_price * (inputs.first_month_commission / 100)
    recurring_comm = (effective_price * (inputs.recurring_commission / 100) *
                      (inputs.avg_retention_months - 1))
    total_comm_life = first_month_comm + recurring_comm

    total_upfront_fees = inputs.partner_count * inputs.upfront_fee_per_partner
    upfront_fee_per_user = total_upfront_fees / total_subscribers

    ltv = ((total_revenue_life - total_op_cost_life - total_comm_life - upfront_fee_per_user) *
           (1 - inputs.refund_rate / 100))
    cac = first_month_comm + upfront_fee_per_user

    gross_margin_percentage = ltv / max(1, total_revenue_life) * 100

    monthly_net = (monthly_revenue - monthly_op_cost -
                   effective_price * inputs.recurring_commission / 100)
    payback_period = cac / max(0.1, monthly_revenue - monthly_op_cost)

    expected = {}
    net = {}
    for months in PROFIT_HORIZONS:
        expected[months] = ((monthly_net * months * total_subscribers) -
                            (total_subscribers * first_month_comm) -
                            total_upfront_fees)
        net[months] = expected[months] - (monthly_fixed_costs + monthly_depreciation) * months

    break_even_subscribers = break_even_fixed_costs / max(0.1, monthly_net)

    return SimulationMetrics(
        cac=cac,
        ltv=ltv,
        gross_margin=ltv,
        gross_margin_percentage=gross_margin_percentage,
        payback_period=payback_period,
        break_even_subscribers=break_even_subscribers,
        expected_profit_3_months=expected[3],
        expected_profit_6_months=expected[6],
        expected_profit_12_months=expected[12],
        total_subscribers=total_subscribers,
        total_revenue=total_revenue_life * total_subscribers,
        total_monthly_fixed_costs=monthly_fixed_costs,
        total_monthly_depreciation=monthly_depreciation,
        total_capital_investment=total_capital_investment,
        net_profit_3_months=net[3],
        net_profit_6_months=net[6],
        net_profit_12_months=net[12],
    )


def profit_timeline(metrics: SimulationMetrics) -> pd.DataFrame:
    """Gross and net profit per horizon, one row per horizon."""
    return pd.DataFrame([
        {
            'months': months,
            'expected_profit': metrics.expected_profit(months),
            'net_profit': metrics.net_profit(months),
        }
        for months in PROFIT_HORIZONS
    ])


@dataclass
class RiskIndicator:
    label: str
    value: str
    status: str  # 'safe', 'warning', 'danger'
    description: str


@dataclass
class Advice:
    title: str
    content: str
    type: str  # 'info', 'warning', 'positive'


def _grade(value: float, safe: float, warning: float, higher_is_better: bool = True) -> str:
    if higher_is_better:
        if value >= safe:
            return 'safe'
        return 'warning' if value >= warning else 'danger'
    if value <= safe:
        return 'safe'
    return 'warning' if value <= warning else 'danger'


def assess_risk(metrics: SimulationMetrics) -> List[RiskIndicator]:
    """Feasibility indicators with traffic-light status."""
    ratio = metrics.ltv_to_cac_ratio
    return [
        RiskIndicator(
            label="LTV to CAC",
            value=f"{ratio:.1f}x",
            status=_grade(ratio, 3, 2),
            description="A customer should return at least 3x what it cost to acquire.",
        ),
        RiskIndicator(
            label="Gross Margin",
            value=f"{metrics.gross_margin_percentage:.1f}%",
            status=_grade(metrics.gross_margin_percentage, 40, 20),
            description="Share of lifetime revenue left to cover fixed costs and development.",
        ),
        RiskIndicator(
            label="Payback Period",
            value=f"{metrics.payback_period:.1f} months",
            status=_grade(metrics.payback_period, 3, 6, higher_is_better=False),
            description="Time needed to recover the cost of acquiring a customer.",
        ),
    ]


def strategic_advice(inputs: SimulationInputs,
                     metrics: Optional[SimulationMetrics] = None) -> List[Advice]:
    """Rule-based recommendations for the partner program."""
    if metrics is None:
        metrics = compute_metrics(inputs)

    advices = []
    ratio = metrics.ltv_to_cac_ratio

    if ratio < 2:
        advices.append(Advice(
            title="Improve unit economics",
            content="LTV to CAC is too low. Cut the first-month commission or the fixed "
                    "partner fees before acquisition drains cash.",
            type='warning',
        ))
    elif ratio > 5:
        advices.append(Advice(
            title="Room to scale",
            content="Unit economics are strong. Commission or bonus budgets can grow to "
                    "attract larger partners without hurting profitability.",
            type='positive',
        ))

    if inputs.churn_rate > 15:
        advices.append(Advice(
            title="Focus on retention",
            content="Monthly churn is very high. Acquisition spend is wasted unless "
                    "content quality and user experience improve.",
            type='warning',
        ))

    if inputs.upfront_fee_per_partner > 1000 and inputs.avg_referrals_per_partner < 10:
        advices.append(Advice(
            title="Reconsider fixed fees",
            content="High upfront fees are paid to partners who bring few subscribers. "
                    "Try a commission-only model to reduce risk.",
            type='info',
        ))

    if metrics.gross_margin_percentage < 30:
        advices.append(Advice(
            title="Raise margins",
            content="Operating costs and commissions consume most of the revenue. Lower "
                    "infrastructure cost or raise the subscription price.",
            type='warning',
        ))

    if not advices:
        advices.append(Advice(
            title="Balanced plan",
            content="Growth and profitability are well balanced. Keep monitoring "
                    "referral quality per partner.",
            type='info',
        ))

    return advices
