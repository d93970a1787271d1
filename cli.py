#!/usr/bin/env python3
"""
Partner Program Simulator - CLI Tool

A command-line interface for exploring partner program unit economics.

Usage:
    python cli.py overview              # Metrics, risk indicators and advice
    python cli.py sensitivity <field>   # Single variable sweep with insights
    python cli.py tornado               # Tornado analysis
    python cli.py scenarios             # Scenario comparison
    python cli.py params                # List sensitizable inputs
    python cli.py export <format>       # Export state (json) or analysis (csv)
    python cli.py import <file>         # Validate and summarize a state document
"""

import argparse
import logging
import sys
from functools import partial
from pathlib import Path
from datetime import datetime
from typing import List, Optional

import pandas as pd

from models.cost_ledger import Currency, CurrencySettings
from models.financial_model import (
    compute_metrics,
    profit_timeline,
    assess_risk,
    strategic_advice
)
from models.inputs import InputField, ScenarioType
from analysis.sensitivity import (
    SensitivityAnalyzer,
    ParameterRegistry,
    SweepSelection
)
from persistence.state_document import (
    SimulatorState,
    StateImportError,
    load_state_file,
    save_state_file
)

logger = logging.getLogger(__name__)


class Colors:
    """ANSI color codes for terminal output."""
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'


STATUS_COLORS = {
    'safe': Colors.GREEN,
    'positive': Colors.GREEN,
    'warning': Colors.YELLOW,
    'info': Colors.CYAN,
    'danger': Colors.RED,
}


def colorize(text: str, color: str) -> str:
    return f"{color}{text}{Colors.ENDC}"


def print_header(text: str):
    print()
    print(colorize("=" * 60, Colors.CYAN))
    print(colorize(f"  {text}", Colors.BOLD + Colors.CYAN))
    print(colorize("=" * 60, Colors.CYAN))
    print()


def print_subheader(text: str):
    print()
    print(colorize(f"--- {text} ---", Colors.YELLOW))
    print()


def print_metric(name: str, value: str, note: Optional[str] = None, color: str = Colors.CYAN):
    if note:
        print(f"  {colorize(name + ':', Colors.BOLD)} {value}  ({colorize(note, color)})")
    else:
        print(f"  {colorize(name + ':', Colors.BOLD)} {value}")


def format_currency(value: float, currency: CurrencySettings) -> str:
    """Round to whole units in the display currency."""
    return f"{currency.convert(value):,.0f} {currency.currency.value}"


def format_percent(value: float) -> str:
    return f"{value:.1f}%"


def cmd_overview(state: SimulatorState):
    """Display unit economics, risk indicators and strategic advice."""
    print_header(f"Partner Program Overview ({state.scenario.value.title()})")

    context = state.cost_context()
    metrics = compute_metrics(
        state.inputs,
        context.monthly_fixed_costs,
        context.monthly_depreciation,
        context.total_capital_investment,
    )
    money = partial(format_currency, currency=state.currency)

    print_subheader("Unit Economics")
    print_metric("LTV", money(metrics.ltv))
    print_metric("CAC", money(metrics.cac))
    print_metric("LTV:CAC Ratio", f"{metrics.ltv_to_cac_ratio:.1f}x", "Target: 3.0x")
    print_metric("Gross Margin", format_percent(metrics.gross_margin_percentage))
    print_metric("Payback Period", f"{metrics.payback_period:.1f} months")
    print_metric("Break-even Subscribers", f"{metrics.break_even_subscribers:,.0f}")
    print_metric("Total Subscribers", f"{metrics.total_subscribers:,.0f}")
    print_metric("Total Lifetime Revenue", money(metrics.total_revenue))

    print_subheader("Fixed Costs")
    print_metric("Monthly Fixed Costs", money(metrics.total_monthly_fixed_costs))
    print_metric("Monthly Depreciation", money(metrics.total_monthly_depreciation))
    print_metric("Capital Investment", money(metrics.total_capital_investment))

    print_subheader("Profit Outlook")
    print(f"  {'Horizon':<10} {'Gross':>18} {'Net':>18}")
    print("  " + "-" * 48)
    for _, row in profit_timeline(metrics).iterrows():
        print(f"  {str(int(row['months'])) + ' mo':<10} "
              f"{money(row['expected_profit']):>18} "
              f"{money(row['net_profit']):>18}")

    print_subheader("Risk Indicators")
    for indicator in assess_risk(metrics):
        print_metric(indicator.label, indicator.value, indicator.status,
                     STATUS_COLORS[indicator.status])

    print_subheader("Strategic Advice")
    for advice in strategic_advice(state.inputs, metrics):
        print(f"  {colorize(advice.title, Colors.BOLD + STATUS_COLORS[advice.type])}")
        print(f"    {advice.content}")

    print()


def cmd_sensitivity(state: SimulatorState, field_name: str,
                    min_value: Optional[float] = None,
                    max_value: Optional[float] = None,
                    step: Optional[float] = None) -> int:
    """Run a single variable sweep."""
    try:
        selection = SweepSelection.for_variable(state.inputs, field_name)
    except ValueError as e:
        print(colorize(f"Error: {e}", Colors.RED))
        cmd_list_params(state)
        return 1

    if min_value is not None or max_value is not None or step is not None:
        default = selection.sweep_range
        try:
            selection = selection.with_range(
                default.min_value if min_value is None else min_value,
                default.max_value if max_value is None else max_value,
                default.step if step is None else step,
            )
        except ValueError as e:
            print(colorize(f"Error: {e}", Colors.RED))
            return 1

    print_header(f"Sensitivity: {selection.variable.display_name}")

    analyzer = SensitivityAnalyzer(state.inputs, state.cost_context())
    result = analyzer.sweep(selection.variable, selection.sweep_range)
    insights = result.insights(selection.current_value)
    money = partial(format_currency, currency=state.currency)

    sweep_range = selection.sweep_range
    print(f"Range: {sweep_range.min_value} to {sweep_range.max_value} step {sweep_range.step}")
    print(f"Current: {selection.current_value}")
    print()

    print(f"  {'Value':>10} {'LTV':>14} {'CAC':>12} {'Net 12m':>16} {'Margin%':>9} {'Payback':>9}")
    print("  " + "-" * 74)
    for point in result:
        marker = colorize(" <", Colors.YELLOW) if point is insights.base else ""
        print(f"  {point.value:>10.2f} "
              f"{money(point.ltv):>14} "
              f"{money(point.cac):>12} "
              f"{money(point.net_profit_12_months):>16} "
              f"{point.gross_margin_percentage:>9.1f} "
              f"{point.payback_period:>9.1f}{marker}")

    print_subheader("Insights")
    base_note = None if insights.base_on_grid else "nearest sample"
    print_metric("Base", f"{insights.base.value:g} -> {money(insights.base.net_profit_12_months)}", base_note)
    print_metric("Best", f"{insights.best.value:g} -> {money(insights.best.net_profit_12_months)}")
    print_metric("Worst", f"{insights.worst.value:g} -> {money(insights.worst.net_profit_12_months)}")
    print_metric("Upside", money(insights.profit_improvement),
                 f"{insights.improvement_percent:+.1f}%", Colors.GREEN)
    print_metric("Downside", money(insights.profit_decline))
    print()
    return 0


def cmd_tornado(state: SimulatorState, swing_pct: float = 0.20):
    """Run tornado analysis."""
    print_header("Tornado Analysis")

    analyzer = SensitivityAnalyzer(state.inputs, state.cost_context())
    results = analyzer.tornado_analysis(swing_pct=swing_pct)

    print("Target Metric: Net Profit (12 months)")
    print(f"Swing: ±{swing_pct*100:.0f}%")
    print()

    print(f"  {'Parameter':<30} {'Low':>14} {'High':>14} {'Impact':>14}")
    print("  " + "-" * 74)
    for _, row in results.iterrows():
        print(f"  {row['parameter']:<30} "
              f"{row['low_delta']:>+14,.0f} "
              f"{row['high_delta']:>+14,.0f} "
              f"{row['impact_range']:>14,.0f}")

    print()


def cmd_scenarios(state: SimulatorState):
    """Compare the preset scenarios under the current cost ledgers."""
    print_header("Scenario Analysis")

    analyzer = SensitivityAnalyzer(state.inputs, state.cost_context())
    results = analyzer.scenario_analysis()
    money = partial(format_currency, currency=state.currency)

    print(f"  {'Scenario':<14} {'LTV':>12} {'CAC':>12} {'LTV:CAC':>8} {'Margin%':>8} {'Net 12m':>16}")
    print("  " + "-" * 74)
    for _, row in results.iterrows():
        print(f"  {row['scenario'].title():<14} "
              f"{money(row['ltv']):>12} "
              f"{money(row['cac']):>12} "
              f"{row['ltv_to_cac']:>8.1f} "
              f"{row['gross_margin_percentage']:>8.1f} "
              f"{money(row['net_profit_12_months']):>16}")

    print()


def cmd_list_params(state: SimulatorState):
    """List all inputs with their sweep ranges."""
    print_header("Available Parameters")

    categories = {}
    for p in ParameterRegistry.get_all_parameters(state.inputs):
        categories.setdefault(p.category, []).append(p)

    for category, params_list in categories.items():
        print(f"\n  {colorize(category, Colors.BOLD)}")
        for p in params_list:
            r = p.sweep_range
            print(f"    {p.name:<28} = {p.base_value:>10} ({r.min_value} - {r.max_value} step {r.step})")

    print()


def check_inputs(state: SimulatorState) -> bool:
    """Print validation errors for the state's inputs; False if there were any."""
    errors = state.inputs.validate()
    if errors:
        print(colorize("Invalid inputs:", Colors.RED))
        for error in errors:
            print(f"  - {error}")
        return False
    return True


def _export_csv(state: SimulatorState, output_path: str) -> Path:
    context = state.cost_context()
    analyzer = SensitivityAnalyzer(state.inputs, context)
    metrics = compute_metrics(
        state.inputs,
        context.monthly_fixed_costs,
        context.monthly_depreciation,
        context.total_capital_investment,
    )

    output_dir = Path(output_path).with_suffix('')
    output_dir.mkdir(parents=True, exist_ok=True)

    pd.DataFrame([metrics.to_dict()]).to_csv(output_dir / 'metrics.csv', index=False)
    profit_timeline(metrics).to_csv(output_dir / 'profit_timeline.csv', index=False)
    analyzer.tornado_analysis().to_csv(output_dir / 'tornado.csv', index=False)
    analyzer.scenario_analysis().to_csv(output_dir / 'scenarios.csv', index=False)
    return output_dir


def cmd_export(state: SimulatorState, format: str, output_path: Optional[str] = None) -> int:
    """Export the state document (json) or the analysis tables (csv)."""
    print_header("Exporting")

    if not output_path:
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        output_path = f"partner_simulator_{timestamp}.{format}"

    if format not in ('json', 'csv'):
        print(colorize(f"Error: Unknown format '{format}'", Colors.RED))
        return 1

    try:
        if format == 'json':
            save_state_file(state, output_path)
        else:
            output_path = str(_export_csv(state, output_path))
    except OSError as e:
        print(colorize(f"Error: could not export to {output_path}: {e}", Colors.RED))
        return 1

    print(colorize(f"Exported to: {output_path}", Colors.GREEN))
    print()
    return 0


def cmd_import(path: str) -> int:
    """Validate a state document and show its overview."""
    try:
        state = load_state_file(path)
    except (OSError, StateImportError) as e:
        print(colorize(f"Error: could not import {path}: {e}", Colors.RED))
        return 1

    if not check_inputs(state):
        return 1

    print(colorize(f"Imported {path}", Colors.GREEN))
    cmd_overview(state)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Partner Program Simulator - Unit Economics and Sensitivity Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python cli.py overview --scenario optimistic
  python cli.py sensitivity churn_rate
  python cli.py sensitivity partner_count --min 10 --max 200 --step 10
  python cli.py tornado --swing 25
  python cli.py scenarios --currency USD
  python cli.py export json --output state.json
  python cli.py import state.json

Input Overrides:
  Use --field=value to override any input, e.g.
  python cli.py overview --churn-rate=12 --partner-count=80
        """
    )

    parser.add_argument('command', choices=[
        'overview', 'sensitivity', 'tornado', 'scenarios', 'params', 'export', 'import'
    ], help='Command to run')

    parser.add_argument('args', nargs='*', help='Command arguments')

    parser.add_argument('--scenario', type=str.upper,
                        choices=[s.value for s in ScenarioType],
                        help='Start from a preset scenario (default: REALISTIC)')
    parser.add_argument('--state', type=str,
                        help='Load scenario, inputs, ledgers and currency from a state document')
    parser.add_argument('--currency', type=str.upper,
                        choices=[c.value for c in Currency],
                        help='Display currency')

    for f in InputField:
        parser.add_argument(f"--{f.value.replace('_', '-')}", dest=f.value, type=float,
                            help=f"{f.display_name} ({f.unit})")

    # Command-specific options
    parser.add_argument('--min', type=float, dest='sweep_min', help='Sweep range minimum')
    parser.add_argument('--max', type=float, dest='sweep_max', help='Sweep range maximum')
    parser.add_argument('--step', type=float, dest='sweep_step', help='Sweep step')
    parser.add_argument('--swing', type=int, default=20,
                        help='Tornado swing percentage (default: 20)')
    parser.add_argument('--output', '-o', type=str,
                        help='Output file path')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable informational logging')

    return parser


def build_state(args: argparse.Namespace) -> SimulatorState:
    """Assemble the working state from a document, scenario and overrides."""
    state = load_state_file(args.state) if args.state else SimulatorState()
    if args.scenario:
        state.select_scenario(args.scenario)

    inputs = state.inputs
    for f in InputField:
        value = getattr(args, f.value)
        if value is not None:
            inputs = inputs.with_value(f, value)
    state.inputs = inputs

    if args.currency:
        state.currency = CurrencySettings(args.currency, state.currency.exchange_rate)
    return state


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == 'import':
        if not args.args:
            print(colorize("Error: Please specify a state document", Colors.RED))
            return 1
        return cmd_import(args.args[0])

    try:
        state = build_state(args)
    except (OSError, StateImportError) as e:
        print(colorize(f"Error: could not load state: {e}", Colors.RED))
        return 1

    if not check_inputs(state):
        return 1

    logger.info("Running %s with scenario %s", args.command, state.scenario.value)

    if args.command == 'overview':
        cmd_overview(state)
    elif args.command == 'sensitivity':
        if not args.args:
            print(colorize("Error: Please specify an input field", Colors.RED))
            cmd_list_params(state)
            return 1
        return cmd_sensitivity(state, args.args[0], args.sweep_min, args.sweep_max, args.sweep_step)
    elif args.command == 'tornado':
        cmd_tornado(state, args.swing / 100)
    elif args.command == 'scenarios':
        cmd_scenarios(state)
    elif args.command == 'params':
        cmd_list_params(state)
    elif args.command == 'export':
        if not args.args:
            print(colorize("Error: Please specify export format (json, csv)", Colors.RED))
            return 1
        return cmd_export(state, args.args[0], args.output)
    return 0


if __name__ == '__main__':
    sys.exit(main())
