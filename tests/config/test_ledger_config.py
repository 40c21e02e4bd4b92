"""
Ledger configuration tests.

Verifies:
- Bundled sets load and validate through get_active_config
- Validation errors and warnings
- Checksum pinning
- Bridges build a working TaxedLedger
"""

import shutil
from dataclasses import replace
from pathlib import Path

import pytest
import yaml

from ledger_config import ConfigIntegrityError, ConfigValidationError, get_active_config
from ledger_config.bridges import build_ledger, to_tax_components, to_trigger_parameters
from ledger_config.integrity import PINFILE_NAME, read_pinned_checksum
from ledger_config.loader import (
    CONFIG_FILE_NAME,
    compute_checksum,
    load_config_set,
    load_yaml_file,
    parse_config_set,
)
from ledger_config.schema import ConfigStatus, TaxComponentDef
from ledger_config.validator import validate_configuration
from ledger_kernel.domain.notifications import ListSink, NotificationKind
from ledger_kernel.domain.values import DEAD_ADDRESS, DestinationKind, TriggerMode

from tests.conftest import ALICE, BOB, OWNER, POOL, PRANK_FUND, TREASURY

SETS_DIR = Path(__file__).resolve().parents[2] / "ledger_config" / "sets"
TOKEN = 10**18


@pytest.fixture
def config_dir(tmp_path) -> Path:
    """A writable copy of the bundled sets."""
    target = tmp_path / "sets"
    shutil.copytree(SETS_DIR, target)
    return target


def _rewrite(config_dir: Path, set_name: str, **changes) -> None:
    path = config_dir / set_name / CONFIG_FILE_NAME
    data = load_yaml_file(path)
    data.update(changes)
    path.write_text(yaml.safe_dump(data, sort_keys=False))


class TestBundledSets:
    def test_pooled(self):
        config = get_active_config("pooled")
        assert config.config_id == "pooled"
        assert config.status == ConfigStatus.PUBLISHED
        assert config.token.total_supply == 69_420_000_000_000 * TOKEN
        assert [(c.name, c.rate_bps, c.kind) for c in config.tax_components] == [
            ("treasury", 80, "wallet"),
            ("burn", 40, "unspendable"),
            ("pool", 30, "self_pool"),
        ]
        assert config.wallet_roles == ("treasury",)
        assert not config.reflection.enabled
        assert config.trigger.lucky_max_payout == 1_000 * TOKEN

    def test_reflective(self):
        config = get_active_config("reflective")
        assert config.reflection.enabled
        assert config.reflection.desync_policy == "absorb"
        assert config.total_tax_rate_bps == 200
        assert config.wallet_roles == ("prank_fund",)

    def test_trace_logged(self, captured_logs):
        config = get_active_config("pooled")
        traces = [r for r in captured_logs() if r["message"] == "ledger_config_trace"]
        assert len(traces) == 1
        assert traces[0]["checksum"] == config.checksum
        assert traces[0]["component_count"] == 3
        assert traces[0]["logger"] == "ledger_kernel.config"

    def test_checksum_is_deterministic(self):
        assert get_active_config("pooled").checksum == get_active_config("pooled").checksum
        assert get_active_config("pooled").checksum != get_active_config("reflective").checksum

    def test_missing_set(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config("nope", config_dir=tmp_path)


class TestValidation:
    def test_rate_over_cap(self, config_dir):
        _rewrite(
            config_dir,
            "pooled",
            tax_components=[{"name": "burn", "rate_bps": 1_001, "kind": "unspendable"}],
        )
        with pytest.raises(ConfigValidationError) as exc_info:
            get_active_config("pooled", config_dir=config_dir)
        assert exc_info.value.config_id == "pooled"
        assert any("exceeds" in e for e in exc_info.value.errors)

    def test_superseded_is_error(self, config_dir):
        _rewrite(config_dir, "pooled", status="superseded")
        with pytest.raises(ConfigValidationError):
            get_active_config("pooled", config_dir=config_dir)

    def test_draft_is_warning(self, config_dir, captured_logs):
        _rewrite(config_dir, "pooled", status="draft")
        config = get_active_config("pooled", config_dir=config_dir)
        assert config.status == ConfigStatus.DRAFT
        assert any(r["message"] == "ledger_config_warning" for r in captured_logs())

    def test_reflection_component_requires_reflection(self):
        config = load_config_set(SETS_DIR / "reflective")
        result = validate_configuration(replace(config, reflection=replace(config.reflection, enabled=False)))
        assert not result.is_valid
        assert any("reflection" in e for e in result.errors)

    def test_wallet_component_needs_role(self):
        config = load_config_set(SETS_DIR / "pooled")
        broken = replace(
            config,
            tax_components=(TaxComponentDef("treasury", 80, "wallet"),),
        )
        assert not validate_configuration(broken).is_valid

    def test_duplicate_and_unknown_kinds(self):
        config = load_config_set(SETS_DIR / "pooled")
        broken = replace(
            config,
            tax_components=(
                TaxComponentDef("burn", 10, "unspendable"),
                TaxComponentDef("burn", 10, "furnace"),
            ),
        )
        errors = validate_configuration(broken).errors
        assert any("Duplicate" in e for e in errors)
        assert any("unknown kind" in e for e in errors)

    @pytest.mark.parametrize(
        "changes",
        [
            {"confetti_modulo": 1},
            {"lucky_payout_bps": 2_001},
            {"lucky_max_payout": 0},
            {"mode": "party"},
        ],
    )
    def test_trigger_errors(self, changes):
        config = load_config_set(SETS_DIR / "pooled")
        broken = replace(config, trigger=replace(config.trigger, **changes))
        assert not validate_configuration(broken).is_valid

    def test_missing_required_key(self):
        with pytest.raises(KeyError):
            parse_config_set({"config_id": "x"})


class TestIntegrityPin:
    def test_no_pin_file_is_skipped(self, config_dir):
        assert read_pinned_checksum(config_dir / "pooled") is None
        get_active_config("pooled", config_dir=config_dir)

    def test_matching_pin(self, config_dir):
        checksum = compute_checksum(load_yaml_file(config_dir / "pooled" / CONFIG_FILE_NAME))
        (config_dir / "pooled" / PINFILE_NAME).write_text(checksum + "\n")
        assert get_active_config("pooled", config_dir=config_dir).checksum == checksum

    def test_unreviewed_edit_detected(self, config_dir):
        checksum = compute_checksum(load_yaml_file(config_dir / "pooled" / CONFIG_FILE_NAME))
        (config_dir / "pooled" / PINFILE_NAME).write_text(checksum)
        _rewrite(config_dir, "pooled", description="quietly edited")

        with pytest.raises(ConfigIntegrityError) as exc_info:
            get_active_config("pooled", config_dir=config_dir)
        assert exc_info.value.expected == checksum
        assert exc_info.value.config_id == "pooled"


class TestBridges:
    def test_tax_components_bound(self):
        config = get_active_config("pooled")
        components = to_tax_components(config, {"treasury": TREASURY})
        assert components[0].kind == DestinationKind.WALLET
        assert components[0].destination == TREASURY
        assert components[1].destination is None

    def test_missing_wallet_role(self):
        config = get_active_config("pooled")
        with pytest.raises(ConfigValidationError):
            build_ledger(config, OWNER, {}, POOL)

    def test_trigger_parameters(self):
        params = to_trigger_parameters(get_active_config("pooled").trigger)
        assert params.confetti_modulo == 69
        assert params.lucky_max_payout == 1_000 * TOKEN
        assert params.lucky_requires_window

    def test_build_pooled_ledger(self, deterministic_clock):
        config = get_active_config("pooled")
        sink = ListSink()
        ledger = build_ledger(
            config, OWNER, {"treasury": TREASURY}, POOL, clock=deterministic_clock, sinks=[sink]
        )

        assert ledger.ledger_id == "pooled"
        assert ledger.total_supply == config.token.total_supply
        assert ledger.trigger_mode == TriggerMode.OFF
        assert ledger.is_excluded_from_tax(TREASURY)

        ledger.transfer(OWNER, ALICE, 1_000 * TOKEN)
        result = ledger.transfer(ALICE, BOB, 1_000 * TOKEN)
        assert result.received == 985 * TOKEN
        assert ledger.balance_of(DEAD_ADDRESS) == 4 * TOKEN
        assert len(sink.of_kind(NotificationKind.TAX_APPLIED)) == 1

    def test_build_reflective_ledger(self):
        config = get_active_config("reflective")
        ledger = build_ledger(config, OWNER, {"prank_fund": PRANK_FUND}, POOL, ledger_id="r1")

        assert ledger.ledger_id == "r1"
        assert ledger.reflection_enabled
        assert ledger.is_excluded_from_reflections(PRANK_FUND)
        ledger.transfer(OWNER, ALICE, 1_000 * TOKEN)
        ledger.transfer(ALICE, BOB, 100 * TOKEN)
        assert ledger.balance_of(PRANK_FUND) == TOKEN
        assert ledger.balance_of(BOB) >= 98 * TOKEN
