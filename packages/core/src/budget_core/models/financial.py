"""Domain records consumed by the engine.

These are the validated inputs handed over by the persistence layer:
accounts, transactions and their splits, routing rules, recurring
expenses and income entries. All models are frozen; the engine never
mutates a caller's record.

Monetary fields are ``Decimal``. Numbers arriving as floats or strings are
converted through ``budget_core.money.to_decimal`` so no binary rounding
error can creep in on the way in.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, Field, model_validator

from budget_core.exceptions import ValidationError
from budget_core.money import CENT, ZERO, to_decimal

Money = Annotated[Decimal, BeforeValidator(to_decimal)]


# =============================================================================
# ENUMERATIONS
# =============================================================================

class AccountType(str, Enum):
    """Kinds of accounts a household can hold."""
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT_CARD = "credit_card"
    CASH = "cash"
    INVESTMENT = "investment"
    LOAN = "loan"
    OTHER = "other"


class TransactionMethod(str, Enum):
    """How a transaction was paid."""
    CREDIT_CARD = "cc"
    CASH = "cash"
    ACH = "ach"
    OTHER = "other"


class SplitType(str, Enum):
    """Budget bucket a split allocates money into."""
    NEED = "need"
    WANT = "want"
    DEBT = "debt"
    TAX = "tax"
    SAVINGS = "savings"
    OTHER = "other"


class Frequency(str, Enum):
    """Recurrence of a recurring expense."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMI_ANNUAL = "semi-annual"
    YEARLY = "yearly"


ASSET_TYPES = frozenset({
    AccountType.CHECKING,
    AccountType.SAVINGS,
    AccountType.CASH,
    AccountType.INVESTMENT,
})
DEBT_TYPES = frozenset({AccountType.CREDIT_CARD, AccountType.LOAN})
DEPOSIT_TYPES = frozenset({AccountType.CHECKING, AccountType.SAVINGS})


# =============================================================================
# ACCOUNTS
# =============================================================================

class Account(BaseModel):
    """A household account.

    Only a subset of the optional fields is meaningful for each type:
    credit cards carry limits, APR and rewards; deposit accounts carry APY,
    fees and FDIC status; loans carry a principal balance. Missing fields
    read as "not applicable", never as zero-valued facts.
    """

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "id": "cc1",
                    "name": "Chase Sapphire",
                    "type": "credit_card",
                    "credit_limit": "10000.00",
                    "current_balance": "2000.00",
                    "interest_rate": "18.99",
                    "cash_back_percent": "2",
                    "annual_fee": "95",
                }
            ]
        },
    }

    id: str
    name: str
    type: AccountType
    is_active: bool = True

    # Credit card
    credit_limit: Optional[Money] = Field(default=None, ge=0)
    interest_rate: Optional[Decimal] = Field(
        default=None, ge=0, le=100, description="APR in percent"
    )
    cash_back_percent: Optional[Decimal] = Field(default=None, ge=0, le=100)
    points_per_dollar: Optional[Decimal] = Field(default=None, ge=0, le=100)
    annual_fee: Optional[Money] = Field(default=None, ge=0)
    rewards_program: Optional[str] = None

    # Checking / savings
    interest_rate_apy: Optional[Decimal] = Field(
        default=None, ge=0, le=100, description="APY in percent"
    )
    monthly_fee: Optional[Money] = Field(default=None, ge=0)
    minimum_balance: Optional[Money] = Field(default=None, ge=0)
    is_fdic: Optional[bool] = None

    # Balances
    current_balance: Optional[Money] = None
    principal_balance: Optional[Money] = Field(default=None, ge=0)

    @property
    def balance(self) -> Decimal:
        """Current balance, falling back to principal (loans), else 0."""
        if self.current_balance:
            return self.current_balance
        if self.principal_balance:
            return self.principal_balance
        return ZERO

    @property
    def is_debt(self) -> bool:
        """Credit cards and loans."""
        return self.type in DEBT_TYPES


# =============================================================================
# TRANSACTIONS AND SPLITS
# =============================================================================

class Split(BaseModel):
    """An allocation of part of a transaction or income into a bucket.

    Either ``amount`` or ``percent`` (or neither) may be set. Splits of one
    record do not have to add up to its total; the remainder stays
    unallocated on purpose.
    """

    model_config = {"frozen": True}

    type: SplitType
    target: str = Field(description="Free-text category label, e.g. 'Groceries'")
    amount: Optional[Money] = Field(default=None, ge=0)
    percent: Optional[Decimal] = Field(default=None, ge=0, le=100)


class Transaction(BaseModel):
    """A single spending transaction.

    ``paying_account_id`` is set when the transaction is itself a payment
    toward a credit card or loan.
    """

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "id": "tx1",
                    "date": "2025-12-01",
                    "amount": "500.00",
                    "description": "Chase CC Payment",
                    "account_id": "checking1",
                    "paying_account_id": "cc1",
                    "method": "ach",
                }
            ]
        },
    }

    id: str
    date: date
    amount: Money = Field(gt=0)
    description: str = ""
    source: Optional[str] = Field(
        default=None,
        description="Payee or merchant the money went to",
    )
    account_id: str
    paying_account_id: Optional[str] = None
    method: TransactionMethod = TransactionMethod.OTHER
    tags: list[str] = Field(default_factory=list)
    splits: list[Split] = Field(default_factory=list)

    @property
    def is_debt_payment(self) -> bool:
        """Returns True if this transaction pays down another account."""
        return bool(self.paying_account_id)


class Income(BaseModel):
    """A paycheck or other income entry.

    ``net_amount`` is derived when omitted. When supplied it must equal
    gross minus taxes and deductions to within one cent.
    """

    model_config = {"frozen": True}

    id: Optional[str] = None
    pay_date: Optional[date] = None
    source: Optional[str] = Field(default=None, description="Employer or payer")
    description: str = ""
    account_id: Optional[str] = None
    gross_amount: Money = Field(gt=0)
    taxes: Money = Field(default=ZERO, ge=0)
    pre_tax_deductions: Money = Field(default=ZERO, ge=0)
    post_tax_deductions: Money = Field(default=ZERO, ge=0)
    net_amount: Money
    tags: list[str] = Field(default_factory=list)
    splits: list[Split] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def derive_net_amount(cls, data: Any) -> Any:
        """Fill in net_amount from gross and deductions when missing."""
        if isinstance(data, dict) and data.get("net_amount") is None:
            data = dict(data)
            data["net_amount"] = (
                to_decimal(data.get("gross_amount"))
                - to_decimal(data.get("taxes"))
                - to_decimal(data.get("pre_tax_deductions"))
                - to_decimal(data.get("post_tax_deductions"))
            )
        return data

    @model_validator(mode="after")
    def check_net_amount(self) -> "Income":
        """Net must reconcile with gross minus taxes and deductions."""
        expected = self.expected_net
        if abs(self.net_amount - expected) > CENT:
            raise ValidationError(
                "Net amount does not match gross minus taxes and deductions",
                field="net_amount",
                value=str(self.net_amount),
                constraint=f"{expected} (within 0.01)",
            )
        return self

    @property
    def expected_net(self) -> Decimal:
        """Gross minus taxes and all deductions."""
        return (
            self.gross_amount
            - self.taxes
            - self.pre_tax_deductions
            - self.post_tax_deductions
        )

    @property
    def amount(self) -> Decimal:
        """Net amount, the money splits allocate."""
        return self.net_amount

    @property
    def method(self) -> None:
        """Income has no payment method; method criteria never match it."""
        return None


# =============================================================================
# ROUTING RULES
# =============================================================================

class Rule(BaseModel):
    """A routing rule that applies a split template to matching records.

    Every non-blank criterion must match (logical AND). Regex criteria are
    searched in the record's ``source`` and ``description``.
    """

    model_config = {"frozen": True}

    name: str = Field(min_length=1)
    match_source: Optional[str] = None
    match_description: Optional[str] = None
    match_account_id: Optional[str] = None
    match_method: Optional[TransactionMethod] = None
    match_tags: list[str] = Field(default_factory=list)
    split_config: list[Split] = Field(default_factory=list)
    is_active: bool = True
    priority: int = Field(
        default=0,
        description="Higher priority rules are tried first",
    )


# =============================================================================
# RECURRING EXPENSES
# =============================================================================

class RecurringExpense(BaseModel):
    """A bill that repeats on a fixed schedule."""

    model_config = {"frozen": True}

    id: str
    description: str
    amount: Money = Field(gt=0)
    frequency: Frequency
    due_day: Optional[int] = Field(
        default=None,
        ge=1,
        le=31,
        description="Day of month for monthly-style frequencies",
    )
    next_due_date: date
    is_active: bool = True
