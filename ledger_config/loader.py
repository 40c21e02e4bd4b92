"""
Configuration Loader (``ledger_config.loader``).

Responsibility
--------------
Loads a configuration set's ``ledger.yaml`` and parses it into the frozen
dataclasses of ``ledger_config.schema``. This is build/test tooling; the
runtime entry point is ``ledger_config.get_active_config()``.

Invariants enforced
-------------------
* Required keys raise ``KeyError`` when missing; no silent defaults for
  identity, supply or component fields.
* Whole-token amounts are converted to base units with ``token.decimals``.
* ``compute_checksum`` is a deterministic SHA-256 over the raw document.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from ledger_config.schema import (
    ConfigStatus,
    LedgerConfigSet,
    ReflectionDef,
    TaxComponentDef,
    TokenDef,
    TriggerDef,
)
from ledger_kernel.domain.values import MAX_TOTAL_TAX_BPS, to_units

CONFIG_FILE_NAME = "ledger.yaml"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_token(data: dict[str, Any]) -> TokenDef:
    decimals = int(data["decimals"])
    return TokenDef(
        decimals=decimals,
        total_supply=to_units(int(data["total_supply_tokens"]), decimals),
    )


def parse_tax_component(data: dict[str, Any]) -> TaxComponentDef:
    return TaxComponentDef(
        name=data["name"],
        rate_bps=int(data["rate_bps"]),
        kind=str(data["kind"]),
        wallet_role=data.get("wallet_role"),
    )


def parse_reflection(data: dict[str, Any] | None) -> ReflectionDef:
    data = data or {}
    return ReflectionDef(
        enabled=bool(data.get("enabled", False)),
        desync_policy=str(data.get("desync_policy", "absorb")),
    )


def parse_trigger(data: dict[str, Any] | None, decimals: int) -> TriggerDef:
    data = data or {}
    defaults = TriggerDef()
    return TriggerDef(
        mode=str(data.get("mode", defaults.mode)),
        confetti_modulo=int(data.get("confetti_modulo", defaults.confetti_modulo)),
        reverse_day_modulo=int(data.get("reverse_day_modulo", defaults.reverse_day_modulo)),
        lucky_drop_modulo=int(data.get("lucky_drop_modulo", defaults.lucky_drop_modulo)),
        lucky_payout_bps=int(data.get("lucky_payout_bps", defaults.lucky_payout_bps)),
        lucky_max_payout=to_units(int(data.get("lucky_max_payout_tokens", 0)), decimals),
        lucky_requires_window=bool(
            data.get("lucky_requires_window", defaults.lucky_requires_window)
        ),
    )


def parse_config_set(data: dict[str, Any]) -> LedgerConfigSet:
    token = parse_token(data["token"])
    return LedgerConfigSet(
        config_id=data["config_id"],
        version=int(data.get("version", 1)),
        status=ConfigStatus(data.get("status", ConfigStatus.DRAFT.value)),
        description=data.get("description", ""),
        token=token,
        tax_components=tuple(parse_tax_component(c) for c in data.get("tax_components", [])),
        max_total_tax_bps=int(data.get("max_total_tax_bps", MAX_TOTAL_TAX_BPS)),
        reflection=parse_reflection(data.get("reflection")),
        trigger=parse_trigger(data.get("trigger"), token.decimals),
        checksum=compute_checksum(data),
    )


def load_config_set(set_dir: Path) -> LedgerConfigSet:
    """Load ``<set_dir>/ledger.yaml``."""
    return parse_config_set(load_yaml_file(set_dir / CONFIG_FILE_NAME))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 checksum of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
