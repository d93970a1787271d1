"""
Partner Program Simulator - Cost Ledgers

Recurring monthly charges and long-lived capital items, reduced to the three
scalars the metrics engine consumes.
"""

import logging
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


class CostType(str, Enum):
    FIXED = "fixed"
    VARIABLE = "variable"


class CapitalCategory(str, Enum):
    EQUIPMENT = "equipment"
    FURNITURE = "furniture"
    TECHNOLOGY = "technology"
    INFRASTRUCTURE = "infrastructure"
    OTHER = "other"


class Currency(str, Enum):
    SAR = "SAR"
    USD = "USD"


@dataclass
class CostItem:
    """A named recurring monthly charge."""
    name: str
    amount: float
    type: CostType = CostType.FIXED
    id: str = field(default_factory=_new_id)

    def __post_init__(self):
        self.type = CostType(self.type)


@dataclass
class CapitalCostItem:
    """A long-lived asset depreciated straight-line over its useful life."""
    name: str
    amount: float
    useful_life: float  # months
    salvage_value: float = 0.0
    category: CapitalCategory = CapitalCategory.OTHER
    purchase_date: str = ""  # ISO date
    id: str = field(default_factory=_new_id)

    def __post_init__(self):
        self.category = CapitalCategory(self.category)
        if not self.useful_life > 0:
            raise ValueError(
                f"Useful life of '{self.name}' must be positive, got {self.useful_life}"
            )

    @property
    def monthly_depreciation(self) -> float:
        return (self.amount - self.salvage_value) / self.useful_life


@dataclass(frozen=True)
class CostContext:
    """Aggregated cost figures passed to the metrics engine unchanged."""
    monthly_fixed_costs: float = 0.0
    monthly_depreciation: float = 0.0
    total_capital_investment: float = 0.0


@dataclass
class CurrencySettings:
    currency: Currency = Currency.SAR
    exchange_rate: float = 3.75  # 1 USD = X SAR

    def __post_init__(self):
        self.currency = Currency(self.currency)
        if not self.exchange_rate > 0:
            raise ValueError(f"exchange_rate must be positive, got {self.exchange_rate}")

    def convert(self, amount_sar: float) -> float:
        """Convert a base-currency (SAR) amount into the display currency."""
        if self.currency == Currency.USD:
            return amount_sar / self.exchange_rate
        return amount_sar


class CostLedger:
    """Owns the cost item collections and performs the engine-facing reductions."""

    def __init__(self,
                 cost_items: Optional[List[CostItem]] = None,
                 capital_costs: Optional[List[CapitalCostItem]] = None):
        self.cost_items: List[CostItem] = list(cost_items or [])
        self.capital_costs: List[CapitalCostItem] = list(capital_costs or [])

    @classmethod
    def with_defaults(cls) -> "CostLedger":
        return cls(default_cost_items(), default_capital_costs())

    # Recurring costs

    def add_cost_item(self, name: str, amount: float,
                      type: CostType = CostType.FIXED) -> CostItem:
        item = CostItem(name=name, amount=amount, type=type)
        self.cost_items.append(item)
        logger.debug("Added cost item %s (%s, %.2f)", item.id, item.type.value, item.amount)
        return item

    def update_cost_item(self, item_id: str, **changes) -> CostItem:
        index = self._index_of(self.cost_items, item_id)
        item = replace(self.cost_items[index], **changes)
        self.cost_items[index] = item
        logger.debug("Updated cost item %s: %s", item_id, changes)
        return item

    def remove_cost_item(self, item_id: str) -> None:
        del self.cost_items[self._index_of(self.cost_items, item_id)]
        logger.debug("Removed cost item %s", item_id)

    # Capital costs

    def add_capital_cost(self, name: str, amount: float, useful_life: float,
                         salvage_value: float = 0.0,
                         category: CapitalCategory = CapitalCategory.OTHER,
                         purchase_date: str = "") -> CapitalCostItem:
        item = CapitalCostItem(
            name=name,
            amount=amount,
            useful_life=useful_life,
            salvage_value=salvage_value,
            category=category,
            purchase_date=purchase_date,
        )
        self.capital_costs.append(item)
        logger.debug("Added capital item %s (%.2f over %s months)", item.id, item.amount, item.useful_life)
        return item

    def update_capital_cost(self, item_id: str, **changes) -> CapitalCostItem:
        # replace() re-runs __post_init__, so a bad useful life is rejected here too
        index = self._index_of(self.capital_costs, item_id)
        item = replace(self.capital_costs[index], **changes)
        self.capital_costs[index] = item
        logger.debug("Updated capital item %s: %s", item_id, changes)
        return item

    def remove_capital_cost(self, item_id: str) -> None:
        del self.capital_costs[self._index_of(self.capital_costs, item_id)]
        logger.debug("Removed capital item %s", item_id)

    @staticmethod
    def _index_of(items: list, item_id: str) -> int:
        for i, item in enumerate(items):
            if item.id == item_id:
                return i
        raise ValueError(f"No cost item with id {item_id}")

    # Reductions

    def total_monthly_fixed_costs(self) -> float:
        """Sum of fixed-tagged items. Variable-tagged items are tracked but not summed."""
        return sum(item.amount for item in self.cost_items if item.type == CostType.FIXED)

    def total_monthly_depreciation(self) -> float:
        return sum(item.monthly_depreciation for item in self.capital_costs)

    def total_capital_investment(self) -> float:
        return sum(item.amount for item in self.capital_costs)

    def cost_context(self) -> CostContext:
        return CostContext(
            monthly_fixed_costs=self.total_monthly_fixed_costs(),
            monthly_depreciation=self.total_monthly_depreciation(),
            total_capital_investment=self.total_capital_investment(),
        )

    def summary(self) -> Dict[str, float]:
        return {
            'fixed_items': len([i for i in self.cost_items if i.type == CostType.FIXED]),
            'variable_items': len([i for i in self.cost_items if i.type == CostType.VARIABLE]),
            'capital_items': len(self.capital_costs),
            'monthly_fixed_costs': self.total_monthly_fixed_costs(),
            'monthly_depreciation': self.total_monthly_depreciation(),
            'total_capital_investment': self.total_capital_investment(),
        }


def default_cost_items() -> List[CostItem]:
    return [
        CostItem(name="Salaries", amount=15000.0),
        CostItem(name="Office Rent", amount=5000.0),
        CostItem(name="Software & Tools", amount=2500.0),
        CostItem(name="Marketing", amount=1500.0),
    ]


def default_capital_costs() -> List[CapitalCostItem]:
    return [
        CapitalCostItem(
            name="Laptops & Workstations",
            amount=12000.0,
            salvage_value=2000.0,
            useful_life=36,
            category=CapitalCategory.TECHNOLOGY,
            purchase_date="2025-01-01",
        ),
        CapitalCostItem(
            name="Office Furniture",
            amount=8000.0,
            salvage_value=800.0,
            useful_life=60,
            category=CapitalCategory.FURNITURE,
            purchase_date="2025-01-01",
        ),
        CapitalCostItem(
            name="Server Equipment",
            amount=20000.0,
            salvage_value=2000.0,
            useful_life=48,
            category=CapitalCategory.EQUIPMENT,
            purchase_date="2025-01-01",
        ),
    ]
