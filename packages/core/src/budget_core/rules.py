"""Routing rules: match records to rules and allocate them into splits.

A rule's criteria are optional. Each criterion that is present must match
(AND); blank criteria are wildcards. ``match_source`` and
``match_description`` are regular expressions searched anywhere in the
record's ``source`` and ``description``. Account, method and tags are exact.

Matching is case-sensitive unless the matcher is built with
``case_sensitive=False`` (see ``EngineConfig.case_insensitive_rules``).
"""

import re
from collections.abc import Iterable, Sequence
from decimal import ROUND_FLOOR, Decimal
from typing import Optional, Protocol

import structlog

from .config import EngineConfig
from .exceptions import RuleError
from .models import Allocation, ResolvedSplit, Rule, Split
from .money import CENT, HUNDRED, ZERO, MoneyInput, percent_amount, round_amount, to_decimal

logger = structlog.get_logger()


class Routable(Protocol):
    """Anything a rule can be matched against (Transaction, Income)."""

    source: Optional[str]
    description: str
    account_id: Optional[str]
    tags: list[str]


class RuleMatcher:
    """A rule with its regular expressions compiled once.

    Args:
        rule: The routing rule.
        case_sensitive: Compile regexes without ``re.IGNORECASE``.

    Raises:
        RuleError: If a regex criterion does not compile.
    """

    def __init__(self, rule: Rule, case_sensitive: bool = True):
        self.rule = rule
        self.case_sensitive = case_sensitive
        self._source = self._compile(rule.match_source)
        self._description = self._compile(rule.match_description)

    def _compile(self, pattern: Optional[str]) -> Optional[re.Pattern[str]]:
        if not pattern or not pattern.strip():
            return None
        flags = 0 if self.case_sensitive else re.IGNORECASE
        try:
            return re.compile(pattern, flags)
        except re.error as e:
            raise RuleError(
                f"Invalid pattern in rule '{self.rule.name}': {e}",
                rule_name=self.rule.name,
                pattern=pattern,
            ) from e

    def matches(self, record: Routable) -> bool:
        """True iff every specified criterion matches the record."""
        rule = self.rule
        if not rule.is_active:
            return False

        if self._source is not None:
            if not self._source.search(getattr(record, "source", None) or ""):
                return False

        if self._description is not None:
            if not self._description.search(getattr(record, "description", None) or ""):
                return False

        if rule.match_account_id and rule.match_account_id.strip():
            if getattr(record, "account_id", None) != rule.match_account_id:
                return False

        if rule.match_method is not None:
            if getattr(record, "method", None) != rule.match_method:
                return False

        if rule.match_tags:
            record_tags = set(getattr(record, "tags", None) or [])
            if not set(rule.match_tags) <= record_tags:
                return False

        return True


def matches(rule: Rule, record: Routable, case_sensitive: bool = True) -> bool:
    """Check a single rule against a record.

    Prefer ``RuleMatcher`` or ``RuleEngine`` when the same rule is checked
    against many records, so its regexes are compiled only once.
    """
    return RuleMatcher(rule, case_sensitive=case_sensitive).matches(record)


def resolve_split(amount: Decimal, split: Split) -> ResolvedSplit:
    """Work out one split's money amount.

    A fixed amount wins over a percent when both are present; a split with
    neither resolves to 0.
    """
    if split.amount is not None:
        resolved = split.amount
    elif split.percent is not None:
        resolved = percent_amount(split.percent, amount)
    else:
        resolved = ZERO
    return ResolvedSplit(
        type=split.type,
        target=split.target,
        amount=resolved,
        percent=split.percent,
    )


def apply_splits(amount: MoneyInput, split_config: Iterable[Split]) -> list[ResolvedSplit]:
    """Resolve a split template against a record total.

    Resolved amounts are not normalized: excess or shortfall against
    ``amount`` is preserved. The one exception is a template whose percent
    splits add up to exactly 100: their cents are handed out by largest
    remainder so together they allocate the rounded total.
    """
    total = to_decimal(amount)
    splits = list(split_config)
    resolved = [resolve_split(total, split) for split in splits]

    shares = [i for i, split in enumerate(splits) if split.amount is None and split.percent is not None]
    if shares and sum((splits[i].percent for i in shares), ZERO) == HUNDRED:
        for i, share in zip(shares, _largest_remainder(total, [splits[i].percent for i in shares])):
            resolved[i] = resolved[i].model_copy(update={"amount": share})
    return resolved


def _largest_remainder(total: Decimal, percents: list[Decimal]) -> list[Decimal]:
    """Split ``total`` by ``percents`` (summing to 100) into cents that add up.

    Every share is floored to the cent; the leftover cents go to the shares
    with the largest remainders, larger shares first on ties.
    """
    exact = [percent / HUNDRED * total for percent in percents]
    floored = [share.quantize(CENT, rounding=ROUND_FLOOR) for share in exact]
    leftover = int((round_amount(total) - sum(floored, ZERO)) / CENT)
    order = sorted(
        range(len(exact)),
        key=lambda i: (exact[i] - floored[i], exact[i]),
        reverse=True,
    )
    for i in order[:leftover]:
        floored[i] += CENT
    return floored


def unallocated(amount: MoneyInput, resolved: Iterable[ResolvedSplit]) -> Decimal:
    """Amount left after the resolved splits (negative if over-allocated)."""
    return to_decimal(amount) - sum((s.amount for s in resolved), ZERO)


class RuleEngine:
    """Routes records through an ordered set of rules.

    Active rules are tried by descending ``priority``; ties keep the order
    they were given in. The first matching rule wins.

    Args:
        rules: Rules to route with. Inactive rules are dropped up front.
        case_sensitive: Passed to every ``RuleMatcher``. Defaults to the
            inverse of ``config.case_insensitive_rules``.
        config: Engine configuration, loaded from the environment when
            omitted.
    """

    def __init__(
        self,
        rules: Sequence[Rule],
        case_sensitive: Optional[bool] = None,
        config: Optional[EngineConfig] = None,
    ):
        if case_sensitive is None:
            case_sensitive = not (config or EngineConfig()).case_insensitive_rules
        active = [rule for rule in rules if rule.is_active]
        ordered = sorted(active, key=lambda rule: -rule.priority)
        self._matchers = [RuleMatcher(rule, case_sensitive) for rule in ordered]
        logger.debug(
            "rule_engine_initialized",
            rules=len(rules),
            active=len(self._matchers),
            case_sensitive=case_sensitive,
        )

    @property
    def rules(self) -> list[Rule]:
        """Active rules in evaluation order."""
        return [matcher.rule for matcher in self._matchers]

    def find_match(self, record: Routable) -> Optional[Rule]:
        """Return the first rule matching the record, or None."""
        for matcher in self._matchers:
            if matcher.matches(record):
                logger.debug(
                    "rule_matched",
                    rule=matcher.rule.name,
                    record=getattr(record, "id", None),
                )
                return matcher.rule
        return None

    def allocate(self, record) -> Allocation:
        """Split a record using the first matching rule.

        Records no rule matches keep their own splits (if any).
        """
        total = to_decimal(record.amount)
        rule = self.find_match(record)
        template = rule.split_config if rule is not None else getattr(record, "splits", [])
        return Allocation(
            rule_name=rule.name if rule is not None else None,
            total=total,
            splits=apply_splits(total, template),
        )

    def allocate_all(self, records: Iterable) -> list[Allocation]:
        """Allocate every record, preserving input order."""
        allocations = [self.allocate(record) for record in records]
        matched = sum(1 for a in allocations if a.rule_name is not None)
        logger.info(
            "records_allocated",
            count=len(allocations),
            matched=matched,
            unmatched=len(allocations) - matched,
        )
        return allocations


__all__ = [
    "Routable",
    "RuleMatcher",
    "RuleEngine",
    "matches",
    "resolve_split",
    "apply_splits",
    "unallocated",
]
