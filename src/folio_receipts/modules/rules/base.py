from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class MerchantRule:
    pattern: re.Pattern[str]
    merchant: str
    category: str
    extract_name: bool = False


@dataclass(frozen=True)
class OperationRule:
    pattern: re.Pattern[str]
    label: str
    category: str


@dataclass(frozen=True)
class RuleSet:
    merchants: tuple[MerchantRule, ...]
    operations: tuple[OperationRule, ...]


def merchant(pattern: str, name: str, category: str, *, extract_name: bool = False) -> MerchantRule:
    return MerchantRule(re.compile(pattern, re.I), name, category, extract_name)


def operation(pattern: str, label: str, category: str) -> OperationRule:
    return OperationRule(re.compile(pattern, re.I), label, category)
