"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

# Transaction groups
GROUP_FEE = "fee"
GROUP_OTHER_INCOME = "other_income"
GROUP_OPERATIONAL = "operational"
GROUP_TAX = "tax"
GROUP_LOAN = "loan"
GROUP_PERSONAL = "personal"
GROUP_BANK_ADJUSTMENT = "bank_adjustment"

INCOME_GROUPS = (GROUP_FEE, GROUP_OTHER_INCOME)
EXPENSE_GROUPS = (GROUP_OPERATIONAL, GROUP_TAX, GROUP_LOAN, GROUP_PERSONAL)

# Ledger row accumulator for each group
GROUP_FIELDS = {
    GROUP_FEE: "fee",
    GROUP_OTHER_INCOME: "other_income",
    GROUP_LOAN: "loans",
    GROUP_PERSONAL: "withdrawals",
    GROUP_OPERATIONAL: "expenses",
    GROUP_TAX: "taxes",
    GROUP_BANK_ADJUSTMENT: "bank_adjustments",
}

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"

TYPE_INCOME = "income"
TYPE_EXPENSE = "expense"


@dataclass(frozen=True)
class Transaction:
    """Dated financial event supplied by the transaction source"""

    id: str
    date: str  # YYYY-MM-DD
    amount: float
    type: str  # "income" or "expense"
    group: str
    category: str = ""
    description: str = ""
    status: str = STATUS_COMPLETED
    counterparty: Optional[str] = None
    is_recurring: bool = False
    is_manual_override: bool = False  # Honored by the tax auto-sync collaborator only
    loan_end_month: Optional[str] = None


@dataclass
class LedgerRow:
    """One calendar day of group totals plus derived running balance"""

    date: str
    fee: float = 0.0
    other_income: float = 0.0
    loans: float = 0.0
    withdrawals: float = 0.0
    expenses: float = 0.0
    taxes: float = 0.0
    bank_adjustments: float = 0.0
    daily_total: Optional[float] = None
    balance: Optional[float] = None
    running_total: Optional[float] = None


@dataclass(frozen=True)
class NormalizedRow:
    """Signed numeric view of a ledger row used for netting"""

    fee: float
    other_income: float
    loans: float
    withdrawals: float
    expenses: float
    taxes: float
    bank_adjustments: float

    def total(self) -> float:
        return (
            self.fee
            + self.other_income
            + self.loans
            + self.withdrawals
            + self.expenses
            + self.taxes
            + self.bank_adjustments
        )


@dataclass
class ForecastResult:
    """Month-end balance forecast with the quantities used to build it"""

    forecast: float
    confidence_low: float
    confidence_high: float
    average_monthly_income: float
    income_std_dev: float
    pending_income: float
    projected_working_income: float
    weekend_adjustment: float
    recurring_expenses: float
    seasonal_factor: float
    working_days_remaining: int
    weekend_days_remaining: int


@dataclass
class MonthlyPerformance:
    """Month whose net result fell below its trailing reference average"""

    month_key: str
    net_profit: float
    reference_average: float
    deviation_percent: float


@dataclass
class SlowPayer:
    """Counterparty whose pending income is chronically overdue"""

    name: str
    average_delay_days: int
    pending_amount: float


@dataclass
class ExpenseSpike:
    """Latest month whose expenses grew sharply over the month before"""

    month_key: str
    previous_month_key: str
    total: float
    previous_total: float
    growth_percent: float


@dataclass
class CashflowInsights:
    weak_months: List[MonthlyPerformance] = field(default_factory=list)
    slow_payers: List[SlowPayer] = field(default_factory=list)
    expense_spike: Optional[ExpenseSpike] = None
    reference_window_size: int = 3


@dataclass
class Alert:
    """Flat alert consumed by presentation; id is stable for de-duplication"""

    id: str
    kind: str  # "weak_month", "slow_payer" or "expense_spike"
    severity: str  # "warning" or "high"
    message: str
    related_month: Optional[str] = None
    related_counterparty: Optional[str] = None
    amount: Optional[float] = None


@dataclass
class ThresholdBreach:
    date: str
    balance: float


@dataclass
class DailySummary:
    """Data behind the daily cash summary message"""

    date: str
    current_balance: float
    projected_month_end_balance: float
    first_threshold_breach: Optional[ThresholdBreach]
    fee_today: float
    other_income_today: float
    expenses_today: float
    overdue_count: int
    overdue_amount: float


@dataclass
class DayTotal:
    date: str
    total: float


@dataclass
class ExecutiveSummary:
    """Period figures behind the executive summary report"""

    period: str  # "month", "quarter" or "year"
    start: str
    end: str
    opening_balance: float
    net_cashflow: float
    closing_balance: float
    best_day: Optional[DayTotal]
    worst_day: Optional[DayTotal]
    bank_adjustment_net: float
    income: float
    expenses: float
    net_profit: float
    profit_margin_pct: float
    expenses_by_group: Dict[str, float] = field(default_factory=dict)
    top_client: Optional[str] = None
    top_client_income: float = 0.0
    pending_fee_count: int = 0
    pending_fee_amount: float = 0.0
    overdue_fee_count: int = 0
