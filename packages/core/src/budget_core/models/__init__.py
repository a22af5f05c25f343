"""Data models for budget-core.

This package provides:
- Domain records handed to the engine (financial.py)
- Result records the engine hands back (analysis.py)
"""

from budget_core.models.financial import (
    # Enumerations
    AccountType,
    TransactionMethod,
    SplitType,
    Frequency,
    ASSET_TYPES,
    DEBT_TYPES,
    DEPOSIT_TYPES,
    # Records
    Money,
    Account,
    Split,
    Transaction,
    Income,
    Rule,
    RecurringExpense,
)
from budget_core.models.analysis import (
    # Splits
    ResolvedSplit,
    Allocation,
    # Forecast
    ForecastStatus,
    SpendingForecast,
    # Credit cards
    UtilizationStatus,
    CCUtilization,
    UtilizationPoint,
    MonthUtilization,
    UtilizationTrend,
    CCHealthTrend,
    # SBNL
    SBNLBand,
    SBNLResult,
    SBNLPoint,
    SBNLTrendDirection,
    SBNLTrend,
    Severity,
    SBNLInsight,
    # Portfolio
    RewardCard,
    CreditCardAnalysis,
    NetWorthBreakdown,
    CashFlowAnalysis,
    AccountPayments,
    PaymentAnalysis,
    InsightType,
    Impact,
    FinancialInsight,
    CardStrategy,
    AuditEntry,
    PortfolioReport,
)

__all__ = [
    # Enumerations
    "AccountType",
    "TransactionMethod",
    "SplitType",
    "Frequency",
    "ASSET_TYPES",
    "DEBT_TYPES",
    "DEPOSIT_TYPES",
    # Records
    "Money",
    "Account",
    "Split",
    "Transaction",
    "Income",
    "Rule",
    "RecurringExpense",
    # Splits
    "ResolvedSplit",
    "Allocation",
    # Forecast
    "ForecastStatus",
    "SpendingForecast",
    # Credit cards
    "UtilizationStatus",
    "CCUtilization",
    "UtilizationPoint",
    "MonthUtilization",
    "UtilizationTrend",
    "CCHealthTrend",
    # SBNL
    "SBNLBand",
    "SBNLResult",
    "SBNLPoint",
    "SBNLTrendDirection",
    "SBNLTrend",
    "Severity",
    "SBNLInsight",
    # Portfolio
    "RewardCard",
    "CreditCardAnalysis",
    "NetWorthBreakdown",
    "CashFlowAnalysis",
    "AccountPayments",
    "PaymentAnalysis",
    "InsightType",
    "Impact",
    "FinancialInsight",
    "CardStrategy",
    "AuditEntry",
    "PortfolioReport",
]
