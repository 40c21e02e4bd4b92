"""
TriggerEngine -- trigger mode state and the scheduled-window override.

Responsibility:
    Holds the configured mode, the thresholds and the optional scheduled
    window. Resolves the effective mode against the injected clock and
    delegates the firing decision to ``ledger_kernel.domain.trigger``.

Architecture position:
    Kernel > Services -- composed by TaxedLedger, which applies payouts
    through its own settlement scope and emits the notifications.

Invariants enforced:
    - Window evaluation is lazy: stored bounds are compared with the
      clock at call time. No timers.
    - Thresholds are validated before they are stored.

Failure modes:
    - ParameterRejectedError from ``set_parameters``.
    - InvalidWindowError from ``schedule_window`` when end <= start or the
      window already ended.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.trigger import TriggerDecision, check_parameters, decide
from ledger_kernel.domain.values import ScheduledWindow, TriggerMode, TriggerParameters
from ledger_kernel.exceptions import InvalidWindowError
from ledger_kernel.logging_config import get_logger

logger = get_logger("services.trigger")


@dataclass(frozen=True)
class TriggerSnapshot:
    mode: TriggerMode
    parameters: TriggerParameters
    window: ScheduledWindow | None


class TriggerEngine:
    def __init__(
        self,
        clock: Clock,
        parameters: TriggerParameters | None = None,
        mode: TriggerMode = TriggerMode.OFF,
    ):
        self._clock = clock
        self._parameters = parameters or TriggerParameters()
        check_parameters(self._parameters)
        self._mode = mode
        self._window: ScheduledWindow | None = None

    @property
    def mode(self) -> TriggerMode:
        return self._mode

    @property
    def parameters(self) -> TriggerParameters:
        return self._parameters

    @property
    def window(self) -> ScheduledWindow | None:
        return self._window

    def is_window_active(self) -> bool:
        return self._window is not None and self._window.covers(self._clock.now())

    def effective_mode(self) -> TriggerMode:
        if self.is_window_active():
            return self._window.mode
        return self._mode

    def set_mode(self, mode: TriggerMode) -> None:
        self._mode = mode

    def set_parameters(self, parameters: TriggerParameters) -> None:
        check_parameters(parameters)
        self._parameters = parameters

    def schedule_window(self, mode: TriggerMode, start: datetime, end: datetime) -> ScheduledWindow:
        """
        Replace any existing window. A start in the past is allowed; the
        window is then live immediately.
        """
        if end <= start:
            raise InvalidWindowError(start, end, "end must be after start")
        if end < self._clock.now():
            raise InvalidWindowError(start, end, "window already ended")
        self._window = ScheduledWindow(mode=mode, start=start, end=end, active=True)
        return self._window

    def clear_window(self) -> None:
        if self._window is not None:
            self._window = self._window.deactivated()

    def evaluate(
        self, sender: str, recipient: str, amount: int, pool_balance: int
    ) -> TriggerDecision | None:
        window_active = self.is_window_active()
        mode = self._window.mode if window_active else self._mode
        decision = decide(
            mode,
            sender,
            recipient,
            amount,
            self._parameters,
            window_active,
            pool_balance,
        )
        if decision is not None:
            logger.info(
                "trigger_fired",
                extra={
                    "mode": decision.mode.value,
                    "amount": amount,
                    "payout": decision.payout,
                    "window_active": window_active,
                },
            )
        return decision

    def snapshot(self) -> TriggerSnapshot:
        return TriggerSnapshot(self._mode, self._parameters, self._window)

    def restore(self, snapshot: TriggerSnapshot) -> None:
        self._mode = snapshot.mode
        self._parameters = snapshot.parameters
        self._window = snapshot.window
