from django.core.exceptions import ValidationError

""" Ledger errors subclass Django's ValidationError, so views and admin
    actions catch them the same way as any other model validation error.
    Each class carries a stable `code` the API layer hands back to callers. """


class LedgerError(ValidationError):
    """Base class for every ledger rule violation."""

    code = "ledger_error"
    default_message = "Ledger rule violated."

    def __init__(self, message=None):
        super().__init__(message or self.default_message, code=self.code)

    def __str__(self):
        return self.message


# ---------- Validation errors (fix the input and try again) ----------
class LedgerValidationError(LedgerError):
    code = "ledger_validation_error"


class InsufficientLines(LedgerValidationError):
    """Raised when a journal entry has fewer than two lines."""
    code = "insufficient_lines"
    default_message = "Journal entry must have at least 2 lines."


class UnbalancedEntry(LedgerValidationError):
    """Raised when total debits and total credits differ."""
    code = "unbalanced_entry"
    default_message = "Journal entry is not balanced."


class InvalidLineAmount(LedgerValidationError):
    code = "invalid_line_amount"
    default_message = "Journal line amounts must be non-negative and not both zero."


class InvalidLineInput(LedgerValidationError):
    code = "invalid_line"
    default_message = "Journal lines must be a list of objects."


class InvalidRange(LedgerValidationError):
    code = "invalid_range"
    default_message = "start_date must be before end_date."


class OverlappingPeriod(LedgerValidationError):
    code = "overlapping_period"
    default_message = "Accounting period overlaps an existing period."


class InvalidPaymentAmount(LedgerValidationError):
    code = "invalid_payment_amount"
    default_message = "Payment amount is not valid for this document."


class DuplicateAccountCode(LedgerValidationError):
    code = "duplicate_account_code"
    default_message = "Account code already exists."


# ---------- State errors (current data forbids the operation) ----------
class LedgerStateError(LedgerError):
    code = "ledger_state_error"


class PeriodClosedOrMissing(LedgerStateError):
    """Raised when no OPEN period covers the posting date."""
    code = "period_closed_or_missing"
    default_message = "No open accounting period found for the posting date."


class PeriodNotCloseable(LedgerStateError):
    code = "period_not_closeable"
    default_message = "Accounting period cannot be closed."


class PeriodHasEntries(LedgerStateError):
    code = "period_has_entries"
    default_message = "Cannot delete period with existing journal entries."


class PeriodLocked(LedgerStateError):
    code = "period_locked"
    default_message = "Closed accounting periods cannot be changed."


class UnknownAccount(LedgerStateError):
    code = "unknown_account"
    default_message = "GL account not found."


class AccountInUse(LedgerStateError):
    code = "account_in_use"
    default_message = "Cannot delete account with existing transactions."


class EntryHasPayments(LedgerStateError):
    code = "entry_has_payments"
    default_message = "Cannot delete a journal entry whose document has recorded payments."


class EntryAlreadyPosted(LedgerStateError):
    code = "entry_already_posted"
    default_message = "Journal entry is already posted."


# ---------- Integrity errors (stored data contradicts an invariant) ----------
class LedgerIntegrityError(LedgerError):
    code = "ledger_integrity_error"


class AmbiguousPeriod(LedgerIntegrityError):
    """More than one period contains the same date."""
    code = "ambiguous_period"
    default_message = "More than one accounting period contains this date."


class PeriodIntegrityError(LedgerIntegrityError):
    code = "period_integrity_error"
    default_message = "Posted entries in this period do not balance."
