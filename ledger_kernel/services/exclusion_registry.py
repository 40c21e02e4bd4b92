"""
ExclusionRegistry -- tax and reflection exclusion membership.

Two independent sets. The reflection set keeps insertion order so the
rate loop in ReflectionAccounting iterates deterministically.

Setters here are raw membership changes; owner gating and the reflection
re-snapshot live in TaxedLedger and ReflectionAccounting.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ExclusionSnapshot:
    tax_excluded: frozenset[str]
    reflection_excluded: tuple[str, ...]


class ExclusionRegistry:
    def __init__(self) -> None:
        self._tax_excluded: set[str] = set()
        self._reflection_excluded: dict[str, None] = {}

    def is_tax_excluded(self, account: str) -> bool:
        return account in self._tax_excluded

    def set_tax_excluded(self, account: str, excluded: bool) -> bool:
        """Returns True when membership actually changed."""
        if excluded == self.is_tax_excluded(account):
            return False
        if excluded:
            self._tax_excluded.add(account)
        else:
            self._tax_excluded.discard(account)
        return True

    @property
    def tax_excluded(self) -> frozenset[str]:
        return frozenset(self._tax_excluded)

    def is_reflection_excluded(self, account: str) -> bool:
        return account in self._reflection_excluded

    @property
    def reflection_excluded(self) -> tuple[str, ...]:
        return tuple(self._reflection_excluded)

    def add_reflection_excluded(self, account: str) -> None:
        self._reflection_excluded[account] = None

    def remove_reflection_excluded(self, account: str) -> None:
        self._reflection_excluded.pop(account, None)

    def snapshot(self) -> ExclusionSnapshot:
        return ExclusionSnapshot(
            tax_excluded=frozenset(self._tax_excluded),
            reflection_excluded=tuple(self._reflection_excluded),
        )

    def restore(self, snapshot: ExclusionSnapshot) -> None:
        self._tax_excluded = set(snapshot.tax_excluded)
        self._reflection_excluded = dict.fromkeys(snapshot.reflection_excluded)
