"""
Checksum pinning for approved ledger configuration sets.

A reviewed set is frozen by writing its checksum into ``APPROVED_CHECKSUM``
beside ``ledger.yaml``. From then on any edit to the YAML changes the
loaded checksum and ``get_active_config`` refuses the set until the pin is
rewritten. Sets without a pin file are not checked.
"""

from __future__ import annotations

from pathlib import Path

PINFILE_NAME = "APPROVED_CHECKSUM"


class ConfigIntegrityError(Exception):
    """The set on disk is not the set that was approved."""

    code: str = "CONFIG_INTEGRITY_MISMATCH"

    def __init__(self, config_id: str, expected: str, actual: str, pin_path: Path):
        self.config_id = config_id
        self.expected = expected
        self.actual = actual
        self.pin_path = pin_path
        super().__init__(
            f"Ledger config '{config_id}' was edited after approval: "
            f"{pin_path} pins {expected[:12]}, loaded {actual[:12]}"
        )


def read_pinned_checksum(set_dir: Path) -> str | None:
    pin_path = set_dir / PINFILE_NAME
    return pin_path.read_text().strip() if pin_path.is_file() else None


def verify_checksum_pin(config_id: str, checksum: str, set_dir: Path) -> None:
    pinned = read_pinned_checksum(set_dir)
    if pinned is not None and pinned != checksum:
        raise ConfigIntegrityError(config_id, pinned, checksum, set_dir / PINFILE_NAME)
