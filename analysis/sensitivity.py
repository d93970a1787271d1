"""
Sensitivity Analysis Engine for the Partner Program Simulator

Provides sensitivity analysis on top of the metrics engine:
- Single variable sweeps with best/worst/base insights
- Tornado analysis across all registered variables
- Scenario comparison
- Churn impact series
"""

import logging
from dataclasses import dataclass, asdict, field
from typing import Dict, Iterator, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from models.cost_ledger import CostContext
from models.financial_model import SimulationMetrics, compute_metrics
from models.inputs import InputField, SimulationInputs, ScenarioType, SCENARIO_PRESETS

logger = logging.getLogger(__name__)

# Distance within which the current value counts as lying on the sweep grid
BASE_EPSILON = 0.1


@dataclass(frozen=True)
class SweepRange:
    """Inclusive sample range: min, min + step, ... while <= max."""
    min_value: float
    max_value: float
    step: float

    def __post_init__(self):
        if not self.step > 0:
            raise ValueError(f"Sweep step must be positive, got {self.step}")
        if self.max_value < self.min_value:
            raise ValueError(
                f"Sweep max ({self.max_value}) is below min ({self.min_value})"
            )

    def get_values(self) -> np.ndarray:
        """Generate the ascending sample values."""
        # Index-based so float drift neither drops nor adds the last sample
        count = int(np.floor((self.max_value - self.min_value) / self.step + 1e-9)) + 1
        return self.min_value + np.arange(count) * self.step

    def clamp(self, value: float) -> float:
        return min(max(value, self.min_value), self.max_value)

    def __len__(self) -> int:
        return len(self.get_values())


FALLBACK_RANGE = SweepRange(0, 100, 5)


@dataclass(frozen=True)
class ParameterRange:
    """A sensitizable input with its current value and default sweep range."""
    field: InputField
    base_value: float
    sweep_range: SweepRange

    @property
    def name(self) -> str:
        return self.field.value

    @property
    def display_name(self) -> str:
        return self.field.display_name

    @property
    def category(self) -> str:
        return self.field.category


class ParameterRegistry:
    """Default sweep ranges for the sensitizable inputs."""

    DEFAULT_RANGES: Dict[InputField, SweepRange] = {
        # Commission
        InputField.FIRST_MONTH_COMMISSION: SweepRange(0, 100, 5),
        InputField.RECURRING_COMMISSION: SweepRange(0, 50, 5),
        InputField.UPFRONT_FEE_PER_PARTNER: SweepRange(0, 10000, 500),

        # Pricing
        InputField.AVG_SUBSCRIPTION_PRICE: SweepRange(50, 1000, 50),
        InputField.INFLUENCER_DISCOUNT: SweepRange(0, 50, 5),

        # Customer behavior
        InputField.CHURN_RATE: SweepRange(1, 50, 5),
        InputField.AVG_RETENTION_MONTHS: SweepRange(1, 24, 1),
        InputField.REFUND_RATE: SweepRange(0, 30, 2),

        # Operations
        InputField.INFRA_COST_PER_USER: SweepRange(0, 100, 5),
        InputField.SUPPORT_COST_PER_USER: SweepRange(0, 100, 5),

        # Growth
        InputField.PARTNER_COUNT: SweepRange(5, 500, 10),
        InputField.AVG_REFERRALS_PER_PARTNER: SweepRange(1, 100, 5),
    }

    @classmethod
    def get_range(cls, variable: Union[str, InputField]) -> SweepRange:
        return cls.DEFAULT_RANGES.get(InputField.parse(variable), FALLBACK_RANGE)

    @classmethod
    def get_all_parameters(cls, inputs: SimulationInputs) -> List[ParameterRange]:
        """Every input field with its current value and sweep range."""
        return [
            ParameterRange(field=f, base_value=inputs.get(f), sweep_range=cls.get_range(f))
            for f in InputField
        ]


@dataclass(frozen=True)
class SweepSelection:
    """The caller's current sweep choice.

    Switching the variable resets the range to its default and the marker to
    the variable's present value in the inputs.
    """
    variable: InputField
    sweep_range: SweepRange
    current_value: float

    @classmethod
    def for_variable(cls, inputs: SimulationInputs,
                     variable: Union[str, InputField]) -> "SweepSelection":
        variable = InputField.parse(variable)
        return cls(
            variable=variable,
            sweep_range=ParameterRegistry.get_range(variable),
            current_value=inputs.get(variable),
        )

    def select(self, inputs: SimulationInputs,
               variable: Union[str, InputField]) -> "SweepSelection":
        return SweepSelection.for_variable(inputs, variable)

    def with_range(self, min_value: float, max_value: float, step: float) -> "SweepSelection":
        return SweepSelection(self.variable, SweepRange(min_value, max_value, step), self.current_value)


@dataclass(frozen=True)
class SweepPoint:
    """Selected metrics at one sample value."""
    value: float
    ltv: float
    cac: float
    net_profit_12_months: float
    gross_margin_percentage: float
    payback_period: float

    @classmethod
    def from_metrics(cls, value: float, metrics: SimulationMetrics) -> "SweepPoint":
        return cls(
            value=float(value),
            ltv=metrics.ltv,
            cac=metrics.cac,
            net_profit_12_months=metrics.net_profit_12_months,
            gross_margin_percentage=metrics.gross_margin_percentage,
            payback_period=metrics.payback_period,
        )


@dataclass(frozen=True)
class SweepInsights:
    base: SweepPoint
    best: SweepPoint
    worst: SweepPoint
    base_on_grid: bool
    profit_improvement: float
    profit_decline: float
    improvement_percent: float


@dataclass
class SweepResult:
    """Materialized sweep, ordered by ascending sample value."""
    variable: InputField
    sweep_range: SweepRange
    points: List[SweepPoint] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[SweepPoint]:
        return iter(self.points)

    def __getitem__(self, index: int) -> SweepPoint:
        return self.points[index]

    @property
    def values(self) -> List[float]:
        return [p.value for p in self.points]

    def to_frame(self) -> pd.DataFrame:
        df = pd.DataFrame([asdict(p) for p in self.points])
        df['parameter_name'] = self.variable.display_name
        return df

    def insights(self, current_value: float) -> SweepInsights:
        """Locate base/best/worst samples and the profit spread around the base."""
        values = np.array(self.values)
        profits = np.array([p.net_profit_12_months for p in self.points])

        # argmin/argmax return the first occurrence on ties
        base_idx = int(np.argmin(np.abs(values - current_value)))
        base = self.points[base_idx]
        best = self.points[int(np.argmax(profits))]
        worst = self.points[int(np.argmin(profits))]

        improvement = best.net_profit_12_months - base.net_profit_12_months
        decline = base.net_profit_12_months - worst.net_profit_12_months
        if base.net_profit_12_months == 0:
            improvement_pct = 0.0
        else:
            improvement_pct = improvement / abs(base.net_profit_12_months) * 100

        return SweepInsights(
            base=base,
            best=best,
            worst=worst,
            base_on_grid=abs(base.value - current_value) <= BASE_EPSILON,
            profit_improvement=improvement,
            profit_decline=decline,
            improvement_percent=improvement_pct,
        )


class SensitivityAnalyzer:
    """Performs sensitivity analysis on the metrics engine."""

    def __init__(self,
                 base_inputs: Optional[SimulationInputs] = None,
                 cost_context: Optional[CostContext] = None):
        self.base_inputs = base_inputs or SimulationInputs()
        self.cost_context = cost_context or CostContext()

    def _calculate_metrics(self, inputs: SimulationInputs) -> SimulationMetrics:
        return compute_metrics(
            inputs,
            self.cost_context.monthly_fixed_costs,
            self.cost_context.monthly_depreciation,
            self.cost_context.total_capital_investment,
        )

    def sweep(self,
              variable: Union[str, InputField],
              sweep_range: Optional[SweepRange] = None) -> SweepResult:
        """Re-evaluate the engine with one variable stepped across a range."""
        variable = InputField.parse(variable)
        if sweep_range is None:
            sweep_range = ParameterRegistry.get_range(variable)

        result = SweepResult(variable=variable, sweep_range=sweep_range)
        for value in sweep_range.get_values():
            inputs = self.base_inputs.with_value(variable, float(value))
            result.points.append(SweepPoint.from_metrics(value, self._calculate_metrics(inputs)))

        logger.debug("Swept %s over %d samples (%s to %s step %s)",
                     variable.value, len(result), sweep_range.min_value,
                     sweep_range.max_value, sweep_range.step)
        return result

    def sweep_selection(self, selection: SweepSelection) -> SweepInsights:
        """Sweep a caller selection and derive its insights in one call."""
        return self.sweep(selection.variable, selection.sweep_range).insights(selection.current_value)

    def tornado_analysis(self,
                         fields: Optional[Sequence[InputField]] = None,
                         target_metric: str = 'net_profit_12_months',
                         swing_pct: float = 0.20) -> pd.DataFrame:
        """
        Perform tornado analysis - show impact of each variable at ±swing_pct.

        Returns DataFrame sorted by impact magnitude.
        """
        if fields is None:
            fields = list(ParameterRegistry.DEFAULT_RANGES)

        base_result = getattr(self._calculate_metrics(self.base_inputs), target_metric)

        results = []
        for f in fields:
            f = InputField.parse(f)
            bounds = ParameterRegistry.get_range(f)
            base_value = self.base_inputs.get(f)

            low_value = bounds.clamp(base_value * (1 - swing_pct))
            high_value = bounds.clamp(base_value * (1 + swing_pct))

            low_result = getattr(self._calculate_metrics(self.base_inputs.with_value(f, low_value)), target_metric)
            high_result = getattr(self._calculate_metrics(self.base_inputs.with_value(f, high_value)), target_metric)

            results.append({
                'parameter': f.display_name,
                'field': f.value,
                'category': f.category,
                'base_value': base_value,
                'low_value': low_value,
                'high_value': high_value,
                'low_result': low_result,
                'high_result': high_result,
                'base_result': base_result,
                'low_delta': low_result - base_result,
                'high_delta': high_result - base_result,
                'impact_range': abs(high_result - low_result)
            })

        df = pd.DataFrame(results)
        return df.sort_values('impact_range', ascending=False, kind='stable').reset_index(drop=True)

    def scenario_analysis(self) -> pd.DataFrame:
        """Evaluate every preset scenario under the same cost context."""
        results = []
        for scenario in ScenarioType:
            metrics = self._calculate_metrics(SCENARIO_PRESETS[scenario])
            row = metrics.to_dict()
            row['ltv_to_cac'] = metrics.ltv_to_cac_ratio
            row['scenario'] = scenario.value
            results.append(row)
        return pd.DataFrame(results)

    def churn_impact(self, churn_rates: Sequence[float] = (5, 10, 15, 20, 25, 30)) -> pd.DataFrame:
        """Expected 12 month profit per churn rate.

        Flat by construction: churn does not enter the formulas, only
        avg_retention_months does.
        """
        return pd.DataFrame([
            {
                'churn_rate': rate,
                'expected_profit_12_months': self._calculate_metrics(
                    self.base_inputs.with_value(InputField.CHURN_RATE, rate)
                ).expected_profit_12_months,
            }
            for rate in churn_rates
        ])
