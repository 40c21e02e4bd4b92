"""
Typed Exception Hierarchy for the Ledger Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every rejection a ledger can produce is a distinct class with a
machine-readable ``code`` and structured attributes. Callers catch by type
and read attributes; they never parse messages.

    try:
        ledger.transfer(alice, bob, amount)
    except InsufficientBalanceError as e:
        api_response(code=e.code, available=e.available, required=e.required)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from LedgerKernelError:

    LedgerKernelError (base)
    |
    +-- ValidationError
    |   +-- ZeroAddressRejectedError
    |   +-- RateCapExceededError
    |   +-- InvalidWindowError
    |   +-- ParameterRejectedError
    |   +-- NoOpRejectedError
    |   +-- InvalidAmountError
    |
    +-- AuthorizationError
    |   +-- UnauthorizedCallerError
    |
    +-- ResourceError
    |   +-- InsufficientBalanceError
    |
    +-- SettlementError
    |   +-- SettlementReentryError
    |   +-- StaleSettlementGrantError
    |   +-- SupplyAlreadyMintedError
    |
    +-- ConsistencyError
    |   +-- ReflectionDesyncError
    |
    +-- JournalError
        +-- JournalChainBrokenError
        +-- JournalImmutabilityError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Validation      | ZERO_ADDRESS_REJECTED       | Zero address as destination/account
                | RATE_CAP_EXCEEDED           | Total tax bps over the cap
                | INVALID_WINDOW              | end <= start, or end already past
                | PARAMETER_REJECTED          | Modulo <= 1, payout bps/cap invalid
                | NOOP_REJECTED               | Reflection toggle to current value
                | INVALID_AMOUNT              | Negative transfer amount
----------------|-----------------------------|-----------------------------------------
Authorization   | UNAUTHORIZED_CALLER         | Non-owner calls an owner setter
----------------|-----------------------------|-----------------------------------------
Resource        | INSUFFICIENT_BALANCE        | Sender cannot cover a movement
----------------|-----------------------------|-----------------------------------------
Settlement      | SETTLEMENT_REENTRY          | Nested settlement or transfer
                | STALE_SETTLEMENT_GRANT      | Grant used outside its scope
                | SUPPLY_ALREADY_MINTED       | Second genesis mint
----------------|-----------------------------|-----------------------------------------
Consistency     | REFLECTION_DESYNC           | Reflected-unit deficit (raise policy)
----------------|-----------------------------|-----------------------------------------
Journal         | JOURNAL_CHAIN_BROKEN        | Notification hash chain mismatch
                | JOURNAL_IMMUTABLE           | UPDATE or DELETE of a journaled row

===============================================================================
DESIGN DECISIONS
===============================================================================

1. Every exception raised inside a top-level ledger operation rolls the
   whole operation back. No error class is "partially applied".

2. ``code`` is a class attribute so handlers can compare
   ``ParameterRejectedError.code`` without instantiating anything.
"""

from datetime import datetime


class LedgerKernelError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses must have a ``code`` class attribute.
    """

    code: str = "LEDGER_KERNEL_ERROR"


# =============================================================================
# Validation errors
# =============================================================================


class ValidationError(LedgerKernelError):
    """Base for rejected inputs. No state is mutated."""

    code: str = "VALIDATION_ERROR"


class ZeroAddressRejectedError(ValidationError):
    """The zero address was supplied where a real account is required."""

    code: str = "ZERO_ADDRESS_REJECTED"

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Zero address rejected for {field}")


class RateCapExceededError(ValidationError):
    """Total tax rate would exceed the configured cap."""

    code: str = "RATE_CAP_EXCEEDED"

    def __init__(self, total_bps: int, cap_bps: int):
        self.total_bps = total_bps
        self.cap_bps = cap_bps
        super().__init__(
            f"Total tax rate {total_bps} bps exceeds max {cap_bps} bps"
        )


class InvalidWindowError(ValidationError):
    """Scheduled window bounds are inverted or already in the past."""

    code: str = "INVALID_WINDOW"

    def __init__(self, start: datetime, end: datetime, reason: str):
        self.start = start
        self.end = end
        self.reason = reason
        super().__init__(f"Invalid trigger window [{start}, {end}]: {reason}")


class ParameterRejectedError(ValidationError):
    """A configuration parameter is outside its permitted range."""

    code: str = "PARAMETER_REJECTED"

    def __init__(self, parameter: str, value: object, reason: str):
        self.parameter = parameter
        self.value = value
        self.reason = reason
        super().__init__(f"Parameter {parameter}={value!r} rejected: {reason}")


class NoOpRejectedError(ValidationError):
    """A toggle was invoked with the value already in effect."""

    code: str = "NOOP_REJECTED"

    def __init__(self, account: str, excluded: bool):
        self.account = account
        self.excluded = excluded
        state = "excluded from" if excluded else "included in"
        super().__init__(f"Account {account} is already {state} reflections")


class InvalidAmountError(ValidationError):
    """Amounts are non-negative integers."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, amount: object):
        self.amount = amount
        super().__init__(f"Invalid amount: {amount!r}")


# =============================================================================
# Authorization errors
# =============================================================================


class AuthorizationError(LedgerKernelError):
    """Base for caller authorization failures."""

    code: str = "AUTHORIZATION_ERROR"


class UnauthorizedCallerError(AuthorizationError):
    """Caller is not the current owner."""

    code: str = "UNAUTHORIZED_CALLER"

    def __init__(self, caller: str, operation: str):
        self.caller = caller
        self.operation = operation
        super().__init__(f"Caller {caller} is not authorized for {operation}")


# =============================================================================
# Resource errors
# =============================================================================


class ResourceError(LedgerKernelError):
    """Base for resource shortfalls."""

    code: str = "RESOURCE_ERROR"


class InsufficientBalanceError(ResourceError):
    """Sender cannot cover the requested movement."""

    code: str = "INSUFFICIENT_BALANCE"

    def __init__(self, account: str, available: int, required: int):
        self.account = account
        self.available = available
        self.required = required
        super().__init__(
            f"Insufficient balance for {account}: "
            f"available {available}, required {required}"
        )


# =============================================================================
# Settlement errors
# =============================================================================


class SettlementError(LedgerKernelError):
    """Base for misuse of the raw movement primitive."""

    code: str = "SETTLEMENT_ERROR"


class SettlementReentryError(SettlementError):
    """A settlement scope is already open on this ledger."""

    code: str = "SETTLEMENT_REENTRY"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Re-entrant {operation} during open settlement")


class StaleSettlementGrantError(SettlementError):
    """The grant does not belong to the currently open settlement."""

    code: str = "STALE_SETTLEMENT_GRANT"

    def __init__(self, grant_id: int):
        self.grant_id = grant_id
        super().__init__(f"Settlement grant {grant_id} is not live")


class SupplyAlreadyMintedError(SettlementError):
    """Genesis mint may run exactly once."""

    code: str = "SUPPLY_ALREADY_MINTED"

    def __init__(self, total_supply: int):
        self.total_supply = total_supply
        super().__init__(f"Supply already minted: {total_supply}")


# =============================================================================
# Consistency errors
# =============================================================================


class ConsistencyError(LedgerKernelError):
    """Base for internal state inconsistencies."""

    code: str = "CONSISTENCY_ERROR"


class ReflectionDesyncError(ConsistencyError):
    """Sender's reflected units cannot cover a debit."""

    code: str = "REFLECTION_DESYNC"

    def __init__(self, account: str, stored: int, required: int):
        self.account = account
        self.stored = stored
        self.required = required
        super().__init__(
            f"Reflected-unit deficit for {account}: "
            f"stored {stored}, required {required}"
        )


# =============================================================================
# Journal errors
# =============================================================================


class JournalError(LedgerKernelError):
    """Base for notification journal errors."""

    code: str = "JOURNAL_ERROR"


class JournalChainBrokenError(JournalError):
    """Recomputed notification hash does not match the stored chain."""

    code: str = "JOURNAL_CHAIN_BROKEN"

    def __init__(self, seq: int, expected_hash: str, actual_hash: str):
        self.seq = seq
        self.expected_hash = expected_hash
        self.actual_hash = actual_hash
        super().__init__(
            f"Journal chain broken at seq {seq}: "
            f"expected {expected_hash}, got {actual_hash}"
        )


class JournalImmutabilityError(JournalError):
    """Journaled notifications are append-only."""

    code: str = "JOURNAL_IMMUTABLE"

    def __init__(self, record_id: str, operation: str):
        self.record_id = record_id
        self.operation = operation
        super().__init__(
            f"Journaled notification {record_id} is immutable ({operation} blocked)"
        )
