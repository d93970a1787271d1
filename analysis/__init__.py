"""Sensitivity analysis tools for the partner program simulator."""

from .sensitivity import (
    SweepRange,
    ParameterRange,
    ParameterRegistry,
    SweepSelection,
    SweepPoint,
    SweepInsights,
    SweepResult,
    SensitivityAnalyzer
)

__all__ = [
    'SweepRange',
    'ParameterRange',
    'ParameterRegistry',
    'SweepSelection',
    'SweepPoint',
    'SweepInsights',
    'SweepResult',
    'SensitivityAnalyzer'
]
