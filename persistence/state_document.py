"""
Simulator state document.

Serializes the full simulator state (scenario, inputs, cost ledgers,
currency) to the versioned JSON document shared with other tools:

    {version: "1.0", exportDate, scenario, inputs, costItems, capitalCosts, currency}

Documents without ``version`` or ``inputs`` are rejected. Any other missing
section falls back to its default.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from models.cost_ledger import (
    CapitalCostItem,
    CostContext,
    CostItem,
    CostLedger,
    CurrencySettings,
    default_capital_costs,
    default_cost_items,
)
from models.inputs import SCENARIO_PRESETS, ScenarioType, SimulationInputs
from persistence.storage import KeyValueStore

logger = logging.getLogger(__name__)

DOCUMENT_VERSION = "1.0"
STATE_KEY = "simulator_state"


class StateImportError(ValueError):
    """Raised when a state document cannot be imported."""


@dataclass
class SimulatorState:
    scenario: ScenarioType = ScenarioType.REALISTIC
    inputs: SimulationInputs = field(default_factory=SimulationInputs)
    cost_items: List[CostItem] = field(default_factory=default_cost_items)
    capital_costs: List[CapitalCostItem] = field(default_factory=default_capital_costs)
    currency: CurrencySettings = field(default_factory=CurrencySettings)

    def ledger(self) -> CostLedger:
        """A ledger sharing this state's item lists, so edits are seen here."""
        ledger = CostLedger()
        ledger.cost_items = self.cost_items
        ledger.capital_costs = self.capital_costs
        return ledger

    def cost_context(self) -> CostContext:
        return self.ledger().cost_context()

    def select_scenario(self, scenario: Union[str, ScenarioType]) -> None:
        """Switch scenario, replacing the inputs wholesale."""
        self.scenario = ScenarioType.parse(scenario)
        self.inputs = SCENARIO_PRESETS[self.scenario]


def _cost_item_to_dict(item: CostItem) -> Dict[str, Any]:
    return {
        'id': item.id,
        'name': item.name,
        'amount': item.amount,
        'type': item.type.value,
    }


def _capital_item_to_dict(item: CapitalCostItem) -> Dict[str, Any]:
    return {
        'id': item.id,
        'name': item.name,
        'amount': item.amount,
        'usefulLife': item.useful_life,
        'purchaseDate': item.purchase_date,
        'salvageValue': item.salvage_value,
        'category': item.category.value,
    }


def export_state(state: SimulatorState, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Build the state document as a plain dict."""
    now = now or datetime.now(timezone.utc)
    return {
        'version': DOCUMENT_VERSION,
        'exportDate': now.isoformat(),
        'scenario': state.scenario.value,
        'inputs': state.inputs.to_dict(),
        'costItems': [_cost_item_to_dict(i) for i in state.cost_items],
        'capitalCosts': [_capital_item_to_dict(i) for i in state.capital_costs],
        'currency': {
            'currency': state.currency.currency.value,
            'exchangeRate': state.currency.exchange_rate,
        },
    }


def dumps_state(state: SimulatorState, now: Optional[datetime] = None) -> str:
    return json.dumps(export_state(state, now), indent=2)


def _parse_cost_item(raw: Dict[str, Any]) -> CostItem:
    kwargs = {
        'name': str(raw['name']),
        'amount': float(raw['amount']),
        'type': raw.get('type', 'fixed'),
    }
    if 'id' in raw:
        kwargs['id'] = str(raw['id'])
    return CostItem(**kwargs)


def _parse_capital_item(raw: Dict[str, Any]) -> CapitalCostItem:
    kwargs = {
        'name': str(raw['name']),
        'amount': float(raw['amount']),
        'useful_life': float(raw['usefulLife']),
        'salvage_value': float(raw.get('salvageValue', 0.0)),
        'category': raw.get('category', 'other'),
        'purchase_date': str(raw.get('purchaseDate', '')),
    }
    if 'id' in raw:
        kwargs['id'] = str(raw['id'])
    return CapitalCostItem(**kwargs)


def _parse_items(document: Dict[str, Any], key: str, parser, default_factory) -> list:
    if key not in document:
        logger.warning("State document has no %s, using defaults", key)
        return default_factory()
    raw_items = document[key]
    if not isinstance(raw_items, list):
        raise StateImportError(f"{key} must be a list")
    items = []
    for i, raw in enumerate(raw_items):
        try:
            items.append(parser(raw))
        except (KeyError, TypeError, ValueError) as e:
            raise StateImportError(f"Invalid entry {i} in {key}: {e}") from e
    return items


def _parse_currency(raw: Any) -> CurrencySettings:
    try:
        if isinstance(raw, str):
            return CurrencySettings(currency=raw)
        if isinstance(raw, dict):
            defaults = CurrencySettings()
            return CurrencySettings(
                currency=raw.get('currency', defaults.currency),
                exchange_rate=float(raw.get('exchangeRate', defaults.exchange_rate)),
            )
    except (TypeError, ValueError) as e:
        raise StateImportError(f"Invalid currency settings: {e}") from e
    raise StateImportError(f"Invalid currency settings: {raw!r}")


def import_state(document: Union[str, bytes, Dict[str, Any]]) -> SimulatorState:
    """Parse a state document, rejecting it when version or inputs are missing."""
    if isinstance(document, (str, bytes)):
        try:
            document = json.loads(document)
        except json.JSONDecodeError as e:
            raise StateImportError(f"State document is not valid JSON: {e}") from e

    if not isinstance(document, dict):
        raise StateImportError("State document must be a JSON object")
    missing = [key for key in ('version', 'inputs') if key not in document]
    if missing:
        raise StateImportError(f"State document is missing required fields: {', '.join(missing)}")
    if document['version'] != DOCUMENT_VERSION:
        logger.warning("Importing state document version %s (expected %s)",
                       document['version'], DOCUMENT_VERSION)

    if 'scenario' in document:
        try:
            scenario = ScenarioType.parse(str(document['scenario']))
        except ValueError as e:
            raise StateImportError(str(e)) from e
    else:
        scenario = ScenarioType.REALISTIC

    raw_inputs = document['inputs']
    if not isinstance(raw_inputs, dict):
        raise StateImportError("inputs must be a JSON object")
    try:
        inputs = SimulationInputs.from_dict(raw_inputs, defaults=SCENARIO_PRESETS[ScenarioType.REALISTIC])
    except ValueError as e:
        raise StateImportError(f"Invalid inputs: {e}") from e

    if 'currency' in document:
        currency = _parse_currency(document['currency'])
    else:
        logger.warning("State document has no currency, using defaults")
        currency = CurrencySettings()

    state = SimulatorState(
        scenario=scenario,
        inputs=inputs,
        cost_items=_parse_items(document, 'costItems', _parse_cost_item, default_cost_items),
        capital_costs=_parse_items(document, 'capitalCosts', _parse_capital_item, default_capital_costs),
        currency=currency,
    )
    logger.info("Imported state document (scenario %s, %d cost items, %d capital items)",
                state.scenario.value, len(state.cost_items), len(state.capital_costs))
    return state


def save_state_file(state: SimulatorState, path: Union[str, Path]) -> Path:
    path = Path(path)
    with open(path, 'w') as f:
        f.write(dumps_state(state))
    logger.info("Exported state to %s", path)
    return path


def load_state_file(path: Union[str, Path]) -> SimulatorState:
    with open(path) as f:
        return import_state(f.read())


class SessionStore:
    """Loads and saves the simulator state through a key-value store."""

    def __init__(self, store: KeyValueStore, key: str = STATE_KEY):
        self.store = store
        self.key = key

    def load(self) -> SimulatorState:
        raw = self.store.get(self.key)
        if raw is None:
            return SimulatorState()
        return import_state(raw)

    def save(self, state: SimulatorState) -> None:
        self.store.set(self.key, dumps_state(state))

    def clear(self) -> None:
        self.store.delete(self.key)
