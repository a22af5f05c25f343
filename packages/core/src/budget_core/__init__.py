"""Budget Core - Allocation, forecasting and analysis engine for household finances."""

__version__ = "0.1.0"

from .analyzer import PortfolioAnalyzer
from .config import EngineConfig, MonthEndPolicy, configure_logging, load_config
from .exceptions import BudgetCoreError, ConfigurationError, RuleError, ValidationError
from .rules import RuleEngine, RuleMatcher
from .scheduler import Scheduler

__all__ = [
    "PortfolioAnalyzer",
    "EngineConfig",
    "MonthEndPolicy",
    "configure_logging",
    "load_config",
    "BudgetCoreError",
    "ConfigurationError",
    "RuleError",
    "ValidationError",
    "RuleEngine",
    "RuleMatcher",
    "Scheduler",
]
