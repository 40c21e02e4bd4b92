"""
TaxedLedger -- the public ledger: taxed transfers, owner setters, queries.

Responsibility:
    Orchestrates one top-level operation at a time across the direct
    ledger, the exclusion registry, the optional reflection accounting and
    the trigger engine. Owns the tax configuration aggregate and the
    notification buffer.

Architecture position:
    Kernel > Services -- the only entry point callers use. Composes
    FungibleLedger (raw moves), ReflectionAccounting, ExclusionRegistry
    and TriggerEngine. Authorization is delegated to an injected
    OwnerCapability.

Invariants enforced:
    - Atomicity: every public mutation snapshots state first and restores
      it on any exception. Notifications are buffered and only published
      to sinks after the operation commits; a failing sink is logged and
      never undoes a committed operation.
    - Settlement isolation: tax shares and lucky payouts are moved with
      the raw primitive under a SettlementGrant; ``transfer`` refuses to
      run while a settlement is open.
    - Split correctness: a transfer is split iff amount > 0, the total
      rate is positive, and neither party is tax-excluded.

Failure modes:
    - ValidationError subclasses for rejected inputs.
    - UnauthorizedCallerError for non-owner setter calls.
    - InsufficientBalanceError when any sub-movement cannot be covered.
    - SettlementReentryError when ``transfer`` is called mid-settlement.

Audit relevance:
    Every committed operation yields an ordered, sequence-numbered batch
    of notifications. A JournalSink persists them into a hash chain.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Iterator, Mapping, Sequence

from ledger_kernel.domain.authority import OwnerCapability
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.notifications import Notification, NotificationKind, NotificationSink
from ledger_kernel.domain.tax_split import check_rates, compute_split, total_rate_bps
from ledger_kernel.domain.trigger import TriggerDecision
from ledger_kernel.domain.values import (
    DEAD_ADDRESS,
    MAX_TOTAL_TAX_BPS,
    REFLECTION_POOL_ACCOUNT,
    ZERO_ADDRESS,
    DestinationKind,
    ScheduledWindow,
    TaxComponent,
    TriggerMode,
    TriggerParameters,
)
from ledger_kernel.exceptions import (
    InvalidAmountError,
    NoOpRejectedError,
    ParameterRejectedError,
    SettlementReentryError,
    UnauthorizedCallerError,
    ZeroAddressRejectedError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.services.exclusion_registry import ExclusionRegistry, ExclusionSnapshot
from ledger_kernel.services.fungible_ledger import (
    FungibleLedger,
    LedgerSnapshot,
    SettlementGrant,
)
from ledger_kernel.services.reflection_service import (
    ReflectionAccounting,
    ReflectionDesyncPolicy,
    ReflectionSnapshot,
)
from ledger_kernel.services.trigger_service import TriggerEngine, TriggerSnapshot
from ledger_kernel.utils.hashing import transfer_id

logger = get_logger("services.taxed_ledger")


@dataclass(frozen=True)
class TransferResult:
    """Outcome of a committed transfer."""

    transfer_id: str
    sender: str
    recipient: str
    amount: int
    received: int
    taxed: bool
    tax_parts: Mapping[str, int] = field(default_factory=dict)
    trigger: TriggerDecision | None = None

    @property
    def payout(self) -> int:
        return self.trigger.payout if self.trigger is not None else 0


@dataclass(frozen=True)
class _LedgerState:
    direct: LedgerSnapshot
    exclusions: ExclusionSnapshot
    reflection: ReflectionSnapshot | None
    triggers: TriggerSnapshot
    components: tuple[TaxComponent, ...]
    next_seq: int


class TaxedLedger:
    """
    A fixed-supply fungible ledger with taxed transfers.

    Contract:
        The constructor mints the whole supply to the current owner and
        applies the default exclusions: the owner, the pool, every wallet
        destination and DEAD_ADDRESS are tax-excluded; on reflection
        ledgers the pool, wallet destinations and DEAD_ADDRESS are also
        reflection-excluded.

    Non-goals:
        - No allowances or delegated spending.
        - No persistence; attach a sink to record notifications.
    """

    def __init__(
        self,
        owner: OwnerCapability,
        total_supply: int,
        components: Sequence[TaxComponent],
        pool_address: str,
        clock: Clock | None = None,
        *,
        reflection: bool = False,
        desync_policy: ReflectionDesyncPolicy = ReflectionDesyncPolicy.ABSORB,
        trigger_parameters: TriggerParameters | None = None,
        trigger_mode: TriggerMode = TriggerMode.OFF,
        max_total_tax_bps: int = MAX_TOTAL_TAX_BPS,
        sinks: Sequence[NotificationSink] = (),
        ledger_id: str = "ledger",
    ):
        if isinstance(total_supply, bool) or not isinstance(total_supply, int) or total_supply <= 0:
            raise InvalidAmountError(total_supply)
        if pool_address == ZERO_ADDRESS:
            raise ZeroAddressRejectedError("pool_address")
        components = tuple(components)
        _check_components(components, reflection)
        check_rates(components, max_total_tax_bps)

        self._ledger_id = ledger_id
        self._owner = owner
        self._clock = clock or SystemClock()
        self._pool_address = pool_address
        self._components = components
        self._max_total_tax_bps = max_total_tax_bps
        self._sinks: list[NotificationSink] = list(sinks)

        self._direct = FungibleLedger()
        self._exclusions = ExclusionRegistry()
        self._reflection = (
            ReflectionAccounting(self._direct, self._exclusions, desync_policy)
            if reflection
            else None
        )
        self._triggers = TriggerEngine(self._clock, trigger_parameters, trigger_mode)

        self._next_seq = 1
        self._pending: list[Notification] = []
        self._history: list[Notification] = []

        self._genesis(total_supply)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def ledger_id(self) -> str:
        return self._ledger_id

    @property
    def owner(self) -> str:
        return self._owner.owner

    @property
    def total_supply(self) -> int:
        return self._direct.total_supply

    @property
    def pool_address(self) -> str:
        return self._pool_address

    @property
    def components(self) -> tuple[TaxComponent, ...]:
        return self._components

    @property
    def total_tax_rate_bps(self) -> int:
        return total_rate_bps(self._components)

    @property
    def reflection_enabled(self) -> bool:
        return self._reflection is not None

    @property
    def direct_ledger(self) -> FungibleLedger:
        return self._direct

    @property
    def trigger_mode(self) -> TriggerMode:
        return self._triggers.mode

    @property
    def trigger_parameters(self) -> TriggerParameters:
        return self._triggers.parameters

    @property
    def scheduled_window(self) -> ScheduledWindow | None:
        return self._triggers.window

    def component(self, name: str) -> TaxComponent:
        for c in self._components:
            if c.name == name:
                return c
        raise ParameterRejectedError("component", name, "unknown tax component")

    def balance_of(self, account: str) -> int:
        if self._reflection is not None:
            return self._reflection.balance_of(account)
        return self._direct.balance(account)

    def pool_balance(self) -> int:
        return self.balance_of(self._pool_address)

    def is_excluded_from_tax(self, account: str) -> bool:
        return self._exclusions.is_tax_excluded(account)

    def is_excluded_from_reflections(self, account: str) -> bool:
        return self._exclusions.is_reflection_excluded(account)

    def is_window_active(self) -> bool:
        return self._triggers.is_window_active()

    def effective_trigger_mode(self) -> TriggerMode:
        return self._triggers.effective_mode()

    def current_rate(self) -> int:
        return self._reflection.current_rate() if self._reflection is not None else 0

    def r_total(self) -> int:
        return self._reflection.r_total if self._reflection is not None else 0

    def known_accounts(self) -> tuple[str, ...]:
        return tuple(a for a in self._direct.accounts() if a != REFLECTION_POOL_ACCOUNT)

    def conservation_drift(self) -> int:
        """total_supply minus the sum of every known account's balance."""
        return self.total_supply - sum(self.balance_of(a) for a in self.known_accounts())

    def notifications(self, kind: NotificationKind | None = None) -> tuple[Notification, ...]:
        """Every committed notification, optionally filtered by kind."""
        if kind is None:
            return tuple(self._history)
        return tuple(n for n in self._history if n.kind == kind)

    def add_sink(self, sink: NotificationSink) -> None:
        self._sinks.append(sink)

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    def transfer(self, sender: str, recipient: str, amount: int) -> TransferResult:
        """
        Move ``amount`` from ``sender`` to ``recipient``, splitting off tax
        shares when applicable, then evaluate the trigger engine.
        """
        if self._direct.in_settlement:
            raise SettlementReentryError("transfer")

        tid = transfer_id(self._ledger_id, self._next_seq, sender, recipient, amount)
        with self._operation("transfer", sender), LogContext.bind(transfer_id=tid):
            if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
                raise InvalidAmountError(amount)
            if recipient == ZERO_ADDRESS:
                raise ZeroAddressRejectedError("recipient")
            for role, account in (("sender", sender), ("recipient", recipient)):
                if account == REFLECTION_POOL_ACCOUNT:
                    raise ParameterRejectedError(role, account, "internal account")

            taxed = self._should_split(sender, recipient, amount)
            tax_parts: dict[str, int] = {}
            with self._direct.open_settlement() as grant:
                received = amount
                if taxed:
                    split = compute_split(amount, self._components)
                    for component, part in split.parts:
                        if part > 0:
                            self._settle_component(grant, sender, component, part)
                    tax_parts = split.amounts_by_name()
                    received = split.net
                    self._emit(
                        NotificationKind.TAX_APPLIED,
                        {
                            "from": sender,
                            "to": recipient,
                            "amount": amount,
                            "components": [
                                {"name": c.name, "amount": part} for c, part in split.parts
                            ],
                            "net": split.net,
                        },
                    )
                    logger.debug(
                        "tax_split_applied",
                        extra={"amount": amount, "tax_total": split.tax_total, "net": split.net},
                    )
                self._settle(grant, sender, recipient, received)

                decision = self._triggers.evaluate(
                    sender, recipient, amount, self.pool_balance()
                )
                if decision is not None:
                    self._apply_trigger(grant, recipient, decision)

            logger.info(
                "transfer_settled",
                extra={
                    "sender": sender,
                    "recipient": recipient,
                    "amount": amount,
                    "received": received,
                    "taxed": taxed,
                },
            )

        return TransferResult(
            transfer_id=tid,
            sender=sender,
            recipient=recipient,
            amount=amount,
            received=received,
            taxed=taxed,
            tax_parts=tax_parts,
            trigger=decision,
        )

    def _should_split(self, sender: str, recipient: str, amount: int) -> bool:
        return (
            amount > 0
            and self.total_tax_rate_bps > 0
            and not self._exclusions.is_tax_excluded(sender)
            and not self._exclusions.is_tax_excluded(recipient)
        )

    def _destination(self, component: TaxComponent) -> str:
        if component.kind == DestinationKind.WALLET:
            return component.destination
        if component.kind == DestinationKind.UNSPENDABLE:
            return DEAD_ADDRESS
        if component.kind == DestinationKind.SELF_POOL:
            return self._pool_address
        return REFLECTION_POOL_ACCOUNT

    def _settle_component(
        self, grant: SettlementGrant, sender: str, component: TaxComponent, part: int
    ) -> None:
        self._settle(grant, sender, self._destination(component), part)
        if component.kind == DestinationKind.REFLECTION_POOL:
            self._reflection.dissolve(grant)

    def _settle(self, grant: SettlementGrant, sender: str, recipient: str, amount: int) -> None:
        if self._reflection is not None:
            rate = self._reflection.prepare(grant, sender, recipient)
            self._direct.move(grant, sender, recipient, amount)
            self._reflection.apply_movement(sender, recipient, amount, rate)
        else:
            self._direct.move(grant, sender, recipient, amount)
        self._emit(
            NotificationKind.MOVEMENT,
            {"from": sender, "to": recipient, "amount": amount},
        )

    def _apply_trigger(
        self, grant: SettlementGrant, recipient: str, decision: TriggerDecision
    ) -> None:
        with LogContext.bind(trigger_id=decision.trigger_id):
            if decision.payout > 0:
                self._settle(grant, self._pool_address, recipient, decision.payout)
                pool_after = self.pool_balance()
                self._emit(
                    NotificationKind.PAYOUT_ISSUED,
                    {
                        "recipient": recipient,
                        "payout": decision.payout,
                        "pool_after": pool_after,
                        "trigger_id": decision.trigger_id,
                    },
                )
                logger.info(
                    "lucky_payout_issued",
                    extra={"payout": decision.payout, "pool_after": pool_after},
                )
            self._emit(NotificationKind.TRIGGER_FIRED, decision.to_payload())

    # ------------------------------------------------------------------
    # Owner-gated configuration
    # ------------------------------------------------------------------

    def set_tax_rates(self, actor: str, rates: Mapping[str, int]) -> None:
        """Update named component rates; unnamed components keep theirs."""
        with self._operation("set_tax_rates", actor):
            self._require_owner(actor, "set_tax_rates")
            known = {c.name for c in self._components}
            for name, value in rates.items():
                if name not in known:
                    raise ParameterRejectedError(name, value, "unknown tax component")
                if isinstance(value, bool) or not isinstance(value, int):
                    raise ParameterRejectedError(name, value, "rate must be an integer")
            updated = tuple(c.with_rate(rates.get(c.name, c.rate_bps)) for c in self._components)
            check_rates(updated, self._max_total_tax_bps)
            self._components = updated
            self._config_changed(
                "tax_rates",
                rates={c.name: c.rate_bps for c in updated},
                total_bps=total_rate_bps(updated),
            )

    def set_destination_wallet(self, actor: str, component: str, address: str) -> None:
        with self._operation("set_destination_wallet", actor):
            self._require_owner(actor, "set_destination_wallet")
            if address == ZERO_ADDRESS:
                raise ZeroAddressRejectedError("destination")
            current = self.component(component)
            if current.kind != DestinationKind.WALLET:
                raise ParameterRejectedError(
                    "component", component, f"{current.kind.value} destinations are fixed"
                )
            self._components = tuple(
                c.with_destination(address) if c.name == component else c
                for c in self._components
            )
            self._config_changed(
                "destination_wallet",
                component=component,
                previous=current.destination,
                address=address,
            )

    def set_excluded_from_tax(self, actor: str, account: str, excluded: bool) -> None:
        """Idempotent: setting the value already in effect emits nothing."""
        with self._operation("set_excluded_from_tax", actor):
            self._require_owner(actor, "set_excluded_from_tax")
            if account == ZERO_ADDRESS:
                raise ZeroAddressRejectedError("account")
            if self._exclusions.set_tax_excluded(account, excluded):
                self._emit(
                    NotificationKind.EXCLUSION_CHANGED,
                    {"registry": "tax", "account": account, "excluded": excluded},
                )

    def set_excluded_from_reflections(self, actor: str, account: str, excluded: bool) -> None:
        """Re-snapshots the account; the value already in effect is rejected."""
        with self._operation("set_excluded_from_reflections", actor):
            self._require_owner(actor, "set_excluded_from_reflections")
            if self._reflection is None:
                raise ParameterRejectedError(
                    "reflection", False, "ledger has no reflection accounting"
                )
            if account == ZERO_ADDRESS:
                raise ZeroAddressRejectedError("account")
            if account == REFLECTION_POOL_ACCOUNT:
                raise ParameterRejectedError("account", account, "internal account")
            if self._exclusions.is_reflection_excluded(account) == excluded:
                raise NoOpRejectedError(account, excluded)

            balance = self.balance_of(account)
            if excluded:
                with self._direct.open_settlement() as grant:
                    self._reflection.exclude(grant, account)
            else:
                self._reflection.include(account)
            self._emit(
                NotificationKind.EXCLUSION_CHANGED,
                {
                    "registry": "reflection",
                    "account": account,
                    "excluded": excluded,
                    "balance": balance,
                },
            )

    def set_trigger_mode(self, actor: str, mode: TriggerMode) -> None:
        with self._operation("set_trigger_mode", actor):
            self._require_owner(actor, "set_trigger_mode")
            mode = TriggerMode(mode)
            self._triggers.set_mode(mode)
            self._config_changed("trigger_mode", mode=mode.value, code=mode.code)

    def schedule_trigger_window(
        self, actor: str, mode: TriggerMode, start: datetime, end: datetime
    ) -> None:
        with self._operation("schedule_trigger_window", actor):
            self._require_owner(actor, "schedule_trigger_window")
            window = self._triggers.schedule_window(TriggerMode(mode), start, end)
            self._config_changed(
                "scheduled_window",
                mode=window.mode.value,
                start=window.start.isoformat(),
                end=window.end.isoformat(),
                active=True,
            )

    def clear_scheduled_window(self, actor: str) -> None:
        with self._operation("clear_scheduled_window", actor):
            self._require_owner(actor, "clear_scheduled_window")
            self._triggers.clear_window()
            self._config_changed("scheduled_window", active=False)

    def set_trigger_parameters(self, actor: str, parameters: TriggerParameters) -> None:
        with self._operation("set_trigger_parameters", actor):
            self._require_owner(actor, "set_trigger_parameters")
            self._triggers.set_parameters(parameters)
            self._config_changed("trigger_parameters", **asdict(parameters))

    def transfer_ownership(self, actor: str, new_owner: str) -> None:
        with self._operation("transfer_ownership", actor):
            self._require_owner(actor, "transfer_ownership")
            if new_owner == ZERO_ADDRESS:
                raise ZeroAddressRejectedError("new_owner")
            previous = self._owner.owner
            self._owner.transfer(actor, new_owner)
            self._emit(
                NotificationKind.OWNERSHIP_TRANSFERRED,
                {"previous_owner": previous, "new_owner": new_owner},
            )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _genesis(self, total_supply: int) -> None:
        owner = self._owner.owner
        with self._operation("genesis", owner):
            movement = self._direct.mint(owner, total_supply)
            if self._reflection is not None:
                self._reflection.genesis(owner, total_supply)
            self._emit(
                NotificationKind.MOVEMENT,
                {"from": movement.sender, "to": movement.recipient, "amount": movement.amount},
            )

            wallets = [
                c.destination for c in self._components if c.kind == DestinationKind.WALLET
            ]
            for account in [owner, self._pool_address, *wallets, DEAD_ADDRESS]:
                self._exclusions.set_tax_excluded(account, True)
            if self._reflection is not None:
                with self._direct.open_settlement() as grant:
                    for account in [self._pool_address, *wallets, DEAD_ADDRESS]:
                        if not self._exclusions.is_reflection_excluded(account):
                            self._reflection.exclude(grant, account)

    def _require_owner(self, actor: str, operation: str) -> None:
        if not self._owner.authorize(actor):
            raise UnauthorizedCallerError(actor, operation)

    def _config_changed(self, setting: str, **values: Any) -> None:
        self._emit(NotificationKind.CONFIG_CHANGED, {"setting": setting, **values})
        logger.info("config_changed", extra={"setting": setting})

    def _emit(self, kind: NotificationKind, payload: Mapping[str, Any]) -> None:
        self._pending.append(Notification(seq=self._next_seq, kind=kind, payload=payload))
        self._next_seq += 1

    def _snapshot(self) -> _LedgerState:
        return _LedgerState(
            direct=self._direct.snapshot(),
            exclusions=self._exclusions.snapshot(),
            reflection=self._reflection.snapshot() if self._reflection is not None else None,
            triggers=self._triggers.snapshot(),
            components=self._components,
            next_seq=self._next_seq,
        )

    def _restore(self, state: _LedgerState) -> None:
        self._direct.restore(state.direct)
        self._exclusions.restore(state.exclusions)
        if self._reflection is not None:
            self._reflection.restore(state.reflection)
        self._triggers.restore(state.triggers)
        self._components = state.components
        self._next_seq = state.next_seq

    @contextmanager
    def _operation(self, name: str, actor: str) -> Iterator[None]:
        """Commit-or-rollback scope for one top-level call."""
        state = self._snapshot()
        self._pending = []
        with LogContext.bind(ledger_id=self._ledger_id, operation=name, actor=actor):
            try:
                yield
            except Exception:
                self._restore(state)
                self._pending = []
                logger.warning("operation_rolled_back", exc_info=True)
                raise
            batch = tuple(self._pending)
            self._pending = []
            self._history.extend(batch)
            self._publish(batch)

    def _publish(self, batch: tuple[Notification, ...]) -> None:
        """
        Hand a committed batch to every sink.

        The operation has already committed, so a failing sink is logged
        and skipped; the remaining sinks still receive the batch.
        """
        if not batch:
            return
        for sink in self._sinks:
            try:
                sink.publish(batch)
            except Exception:
                logger.error(
                    "notification_publish_failed",
                    exc_info=True,
                    extra={
                        "sink": type(sink).__name__,
                        "first_seq": batch[0].seq,
                        "count": len(batch),
                    },
                )


def _check_components(components: tuple[TaxComponent, ...], reflection: bool) -> None:
    seen: set[str] = set()
    for c in components:
        if c.name in seen:
            raise ParameterRejectedError("component", c.name, "duplicate component name")
        seen.add(c.name)
        if c.kind == DestinationKind.WALLET and (
            c.destination is None or c.destination == ZERO_ADDRESS
        ):
            raise ZeroAddressRejectedError(f"{c.name}.destination")
        if c.kind == DestinationKind.REFLECTION_POOL and not reflection:
            raise ParameterRejectedError(
                "component", c.name, "reflection share requires reflection accounting"
            )
