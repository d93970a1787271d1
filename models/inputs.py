"""
Partner Program Simulator - Business Model Inputs

Defines the flat input record consumed by the metrics engine, the enum of
sensitizable fields, and the three canned scenarios.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Union


class InputField(str, Enum):
    """Every field of SimulationInputs, addressable without getattr by name."""

    FIRST_MONTH_COMMISSION = "first_month_commission"
    RECURRING_COMMISSION = "recurring_commission"
    UPFRONT_FEE_PER_PARTNER = "upfront_fee_per_partner"
    AVG_SUBSCRIPTION_PRICE = "avg_subscription_price"
    INFLUENCER_DISCOUNT = "influencer_discount"
    CONVERSION_RATE = "conversion_rate"
    CHURN_RATE = "churn_rate"
    AVG_RETENTION_MONTHS = "avg_retention_months"
    REFUND_RATE = "refund_rate"
    INFRA_COST_PER_USER = "infra_cost_per_user"
    PAYMENT_GATEWAY_FEE = "payment_gateway_fee"
    SUPPORT_COST_PER_USER = "support_cost_per_user"
    PARTNER_COUNT = "partner_count"
    AVG_REFERRALS_PER_PARTNER = "avg_referrals_per_partner"

    @property
    def json_key(self) -> str:
        head, *rest = self.value.split("_")
        return head + "".join(part.title() for part in rest)

    @property
    def display_name(self) -> str:
        return _FIELD_INFO[self][0]

    @property
    def unit(self) -> str:
        return _FIELD_INFO[self][1]

    @property
    def category(self) -> str:
        return _FIELD_INFO[self][2]

    @property
    def is_percentage(self) -> bool:
        return self.unit == "%"

    @property
    def is_integer(self) -> bool:
        return self in (InputField.PARTNER_COUNT, InputField.AVG_REFERRALS_PER_PARTNER)

    @classmethod
    def parse(cls, name: Union[str, "InputField"]) -> "InputField":
        """Resolve a field from its python name, JSON key or display name."""
        if isinstance(name, InputField):
            return name
        wanted = name.strip().lower().replace("-", "_")
        for member in cls:
            if wanted in (member.value, member.json_key.lower(), member.display_name.lower()):
                return member
        raise ValueError(f"Unknown input field: {name}")


# (display name, unit, category)
_FIELD_INFO = {
    InputField.FIRST_MONTH_COMMISSION: ("First Month Commission", "%", "Commission"),
    InputField.RECURRING_COMMISSION: ("Recurring Commission", "%", "Commission"),
    InputField.UPFRONT_FEE_PER_PARTNER: ("Upfront Fee per Partner", "currency", "Commission"),
    InputField.AVG_SUBSCRIPTION_PRICE: ("Average Subscription Price", "currency", "Pricing"),
    InputField.INFLUENCER_DISCOUNT: ("Influencer Discount", "%", "Pricing"),
    InputField.CONVERSION_RATE: ("Conversion Rate", "%", "Customer Behavior"),
    InputField.CHURN_RATE: ("Monthly Churn Rate", "%", "Customer Behavior"),
    InputField.AVG_RETENTION_MONTHS: ("Average Retention", "months", "Customer Behavior"),
    InputField.REFUND_RATE: ("Refund Rate", "%", "Customer Behavior"),
    InputField.INFRA_COST_PER_USER: ("Infrastructure Cost per User", "currency/month", "Operations"),
    InputField.PAYMENT_GATEWAY_FEE: ("Payment Gateway Fee", "%", "Operations"),
    InputField.SUPPORT_COST_PER_USER: ("Support Cost per User", "currency/month", "Operations"),
    InputField.PARTNER_COUNT: ("Active Partners", "partners", "Growth"),
    InputField.AVG_REFERRALS_PER_PARTNER: ("Referrals per Partner", "referrals", "Growth"),
}


@dataclass(frozen=True)
class SimulationInputs:
    """Business-model assumptions for one evaluation of the metrics engine.

    Rates are percentages (0-100). Nothing is enforced here; call
    ``validate()`` before handing user-entered values to the engine.
    """

    # Commission terms
    first_month_commission: float = 30.0
    recurring_commission: float = 15.0
    upfront_fee_per_partner: float = 500.0

    # Pricing
    avg_subscription_price: float = 150.0
    influencer_discount: float = 10.0

    # Customer behavior
    conversion_rate: float = 2.5
    churn_rate: float = 10.0  # Monthly, informational only
    avg_retention_months: float = 6.0
    refund_rate: float = 3.0

    # Operational unit costs
    infra_cost_per_user: float = 15.0
    payment_gateway_fee: float = 2.5
    support_cost_per_user: float = 10.0

    # Growth
    partner_count: int = 50
    avg_referrals_per_partner: int = 10

    def get(self, field: InputField) -> float:
        return get_input_value(self, field)

    def with_value(self, field: InputField, value: float) -> "SimulationInputs":
        """Return a copy with a single field replaced."""
        field = InputField.parse(field)
        if field.is_integer and float(value).is_integer():
            value = int(value)
        return replace(self, **{field.value: value})

    def validate(self) -> List[str]:
        errors = []
        for field in InputField:
            value = self.get(field)
            if value < 0:
                errors.append(f"{field.display_name} cannot be negative")
            elif field.is_percentage and value > 100:
                errors.append(f"{field.display_name} must be between 0% and 100%")
        return errors

    def to_dict(self) -> Dict[str, float]:
        """Serialize using the camelCase keys of the state document."""
        return {field.json_key: self.get(field) for field in InputField}

    @classmethod
    def from_dict(cls, data: Dict[str, float], defaults: "SimulationInputs" = None) -> "SimulationInputs":
        """Build inputs from camelCase or snake_case keys, filling gaps from defaults."""
        base = defaults if defaults is not None else cls()
        overrides = {}
        for field in InputField:
            for key in (field.json_key, field.value):
                if key in data:
                    raw = data[key]
                    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
                        raise ValueError(f"{key} must be a number, got {raw!r}")
                    overrides[field.value] = int(raw) if field.is_integer and float(raw).is_integer() else raw
                    break
        return replace(base, **overrides)


def get_input_value(inputs: SimulationInputs, field: InputField) -> float:
    """Accessor for a single input field."""
    return getattr(inputs, InputField.parse(field).value)


class ScenarioType(str, Enum):
    OPTIMISTIC = "OPTIMISTIC"
    REALISTIC = "REALISTIC"
    PESSIMISTIC = "PESSIMISTIC"

    @classmethod
    def parse(cls, name: Union[str, "ScenarioType"]) -> "ScenarioType":
        if isinstance(name, ScenarioType):
            return name
        try:
            return cls(name.strip().upper())
        except ValueError:
            raise ValueError(f"Unknown scenario: {name}") from None


SCENARIO_PRESETS: Dict[ScenarioType, SimulationInputs] = {
    ScenarioType.REALISTIC: SimulationInputs(),
    ScenarioType.OPTIMISTIC: SimulationInputs(
        first_month_commission=30,
        recurring_commission=10,
        upfront_fee_per_partner=0,
        avg_subscription_price=150,
        influencer_discount=5,
        conversion_rate=5,
        churn_rate=5,
        avg_retention_months=10,
        refund_rate=1,
        infra_cost_per_user=10,
        payment_gateway_fee=2.5,
        support_cost_per_user=5,
        partner_count=100,
        avg_referrals_per_partner=20,
    ),
    ScenarioType.PESSIMISTIC: SimulationInputs(
        first_month_commission=40,
        recurring_commission=25,
        upfront_fee_per_partner=2000,
        avg_subscription_price=150,
        influencer_discount=20,
        conversion_rate=1,
        churn_rate=20,
        avg_retention_months=3,
        refund_rate=10,
        infra_cost_per_user=25,
        payment_gateway_fee=2.5,
        support_cost_per_user=20,
        partner_count=20,
        avg_referrals_per_partner=5,
    ),
}


def scenario_inputs(scenario: Union[str, ScenarioType]) -> SimulationInputs:
    """Preset inputs for a scenario; selecting one replaces inputs wholesale."""
    return SCENARIO_PRESETS[ScenarioType.parse(scenario)]
