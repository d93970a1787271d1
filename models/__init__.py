"""Financial models for the partner program simulator."""

from .inputs import (
    InputField,
    SimulationInputs,
    ScenarioType,
    SCENARIO_PRESETS,
    get_input_value,
    scenario_inputs
)
from .cost_ledger import (
    CostType,
    CapitalCategory,
    Currency,
    CostItem,
    CapitalCostItem,
    CostContext,
    CurrencySettings,
    CostLedger
)
from .financial_model import (
    SimulationMetrics,
    RiskIndicator,
    Advice,
    compute_metrics,
    profit_timeline,
    assess_risk,
    strategic_advice
)

__all__ = [
    'InputField',
    'SimulationInputs',
    'ScenarioType',
    'SCENARIO_PRESETS',
    'get_input_value',
    'scenario_inputs',
    'CostType',
    'CapitalCategory',
    'Currency',
    'CostItem',
    'CapitalCostItem',
    'CostContext',
    'CurrencySettings',
    'CostLedger',
    'SimulationMetrics',
    'RiskIndicator',
    'Advice',
    'compute_metrics',
    'profit_timeline',
    'assess_risk',
    'strategic_advice'
]
