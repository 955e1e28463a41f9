"""Rule registry: the immutable, indexed set of loaded rules."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from types import MappingProxyType

from policy_lint.rules.base import TRIGGERS, Rule


class DuplicateRuleId(ValueError):
    """Raised when two rules in one registry share an id."""

    def __init__(self, rule_id: str, sources: tuple[str | None, str | None] = (None, None)) -> None:
        where = " and ".join(source for source in sources if source)
        suffix = f" (defined in {where})" if where else ""
        super().__init__(f"Duplicate rule id '{rule_id}'{suffix}")
        self.rule_id = rule_id


class RuleRegistry:
    """Rules indexed by id, trigger, and category.

    Read-only after construction, so one instance can be shared by
    concurrent evaluations without locking.
    """

    __slots__ = ("_rules", "_by_id", "_by_trigger", "_by_category")

    def __init__(self, rules: Iterable[Rule] = ()) -> None:
        ordered = tuple(rules)
        by_id: dict[str, Rule] = {}
        for rule in ordered:
            existing = by_id.get(rule.id)
            if existing is not None:
                raise DuplicateRuleId(rule.id, (existing.source, rule.source))
            by_id[rule.id] = rule

        by_trigger: dict[str, tuple[Rule, ...]] = {
            trigger: tuple(rule for rule in ordered if rule.trigger == trigger)
            for trigger in TRIGGERS
        }
        by_category: dict[str, list[Rule]] = {}
        for rule in ordered:
            by_category.setdefault(rule.category, []).append(rule)

        self._rules = ordered
        self._by_id = MappingProxyType(by_id)
        self._by_trigger = MappingProxyType(by_trigger)
        self._by_category = MappingProxyType(
            {category: tuple(items) for category, items in by_category.items()}
        )

    @classmethod
    def load(cls, rules: Iterable[Rule]) -> RuleRegistry:
        """Build a registry, failing with DuplicateRuleId on repeated ids."""
        return cls(rules)

    def by_trigger(self, trigger: str) -> tuple[Rule, ...]:
        """Return rules with the given trigger in insertion order."""
        if trigger not in self._by_trigger:
            choices = ", ".join(TRIGGERS)
            raise ValueError(f"Unknown trigger '{trigger}'. Expected one of: {choices}")
        return self._by_trigger[trigger]

    def by_category(self, category: str) -> tuple[Rule, ...]:
        """Return rules in a category; unknown categories give an empty tuple."""
        return self._by_category.get(category, ())

    def categories(self) -> list[str]:
        """Categories in first-seen order."""
        return list(self._by_category)

    def get(self, rule_id: str) -> Rule | None:
        """Look up a rule by id."""
        return self._by_id.get(rule_id)

    def select(
        self,
        *,
        enable: list[str] | None = None,
        disable: list[str] | None = None,
    ) -> RuleRegistry:
        """Return a registry restricted to enabled ids minus disabled ids."""
        requested = set(enable or []) | set(disable or [])
        unknown = sorted(rule_id for rule_id in requested if rule_id not in self._by_id)
        if unknown:
            raise ValueError(f"Unknown rule ids: {', '.join(unknown)}")

        disabled = set(disable or [])
        enabled = set(enable) if enable is not None else None
        return RuleRegistry(
            rule
            for rule in self._rules
            if rule.id not in disabled and (enabled is None or rule.id in enabled)
        )

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._by_id

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"RuleRegistry({len(self._rules)} rules)"
