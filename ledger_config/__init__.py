"""
ledger_config -- single public entrypoint for ledger configuration.

Responsibility:
    Provides the runtime way to obtain a ledger configuration through
    ``get_active_config()``. YAML loading is internal tooling; callers
    receive a validated, frozen ``LedgerConfigSet`` and turn it into a
    live ledger with ``ledger_config.bridges.build_ledger``.

Architecture position:
    Configuration -- sits above ``ledger_kernel``. The kernel MUST NEVER
    import from ``ledger_config``; bridges in this package translate
    configuration into kernel value objects.

Invariants enforced:
    - Validation: a set must pass ``validate_configuration`` before it is
      returned.
    - Checksum pinning: when an APPROVED_CHECKSUM file exists beside the
      set, the loaded checksum must match it.

Failure modes:
    - ``FileNotFoundError`` -- no configuration set with the given name.
    - ``ConfigValidationError`` -- the set failed validation.
    - ``ConfigIntegrityError`` -- checksum differs from the approved pin.

Audit relevance:
    Every successful call emits a ``ledger_config_trace`` log entry with
    the config id, version and checksum, tying each ledger back to the
    exact configuration that built it.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ledger_config.integrity import ConfigIntegrityError, verify_checksum_pin
from ledger_config.loader import CONFIG_FILE_NAME, load_config_set
from ledger_config.schema import LedgerConfigSet
from ledger_config.validator import ConfigValidationError, validate_configuration

_logger = logging.getLogger("ledger_kernel.config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"

__all__ = [
    "ConfigIntegrityError",
    "ConfigValidationError",
    "LedgerConfigSet",
    "get_active_config",
]


def get_active_config(set_name: str, config_dir: Path | None = None) -> LedgerConfigSet:
    """
    Load, validate and pin-check the configuration set ``set_name``.

    Args:
        set_name: Directory name of the set under ``config_dir``.
        config_dir: Override path to the sets directory. Defaults to
            ledger_config/sets/.

    Raises:
        FileNotFoundError: If ``<config_dir>/<set_name>/ledger.yaml`` is missing.
        ConfigValidationError: If validation produces errors.
        ConfigIntegrityError: If APPROVED_CHECKSUM exists and does not match.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    set_dir = sets_dir / set_name
    if not (set_dir / CONFIG_FILE_NAME).is_file():
        raise FileNotFoundError(f"Configuration set not found: {set_dir / CONFIG_FILE_NAME}")

    config = load_config_set(set_dir)

    validation = validate_configuration(config)
    if not validation.is_valid:
        raise ConfigValidationError(config.config_id, validation.errors)
    for warning in validation.warnings:
        _logger.warning(
            "ledger_config_warning",
            extra={"config_id": config.config_id, "warning": warning},
        )

    _logger.info(
        "ledger_config_trace",
        extra={
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "component_count": len(config.tax_components),
            "reflection_enabled": config.reflection.enabled,
        },
    )

    verify_checksum_pin(config.config_id, config.checksum, set_dir)

    return config
