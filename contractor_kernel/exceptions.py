"""
Typed Exception Hierarchy for the Contractor Costing Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Pricing and reporting errors must be handled precisely. A caller that has to
parse "no rate found" out of a message string breaks the moment the wording
changes. Every error here therefore has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. Structured DATA attributes (not just a message string)

Example:
    try:
        ledger.create_time_log(request)
    except RateNotFoundError as e:
        api_response(code=e.code, role=e.role_name, timeframe=e.timeframe)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    ContractorCostingError (base)
    |
    +-- RateError
    |   +-- InvalidRateError
    |   +-- RateNotFoundError
    |   +-- OverlappingRateError
    |   +-- RateCardKindMismatchError
    |
    +-- RateCardError
    |   +-- RateCardNotFoundError
    |
    +-- TemplateError
    |   +-- TemplateNotFoundError
    |   +-- InvalidTemplateError
    |   +-- DefaultTemplateDeletionError
    |   +-- UnknownTimeframeError
    |
    +-- AssignmentError
    |   +-- DuplicateAssignmentError
    |   +-- AssignmentNotFoundError
    |
    +-- SyncError
    |   +-- PartialSyncError
    |
    +-- LedgerError
    |   +-- LedgerEntryNotFoundError
    |   +-- InvalidStatusTransitionError
    |   +-- InvalidHoursError
    |
    +-- CurrencyError
    |   +-- InvalidCurrencyError
    |   +-- CurrencyMismatchError
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                         | When Raised
-------------|------------------------------|-----------------------------------------
Rate         | INVALID_RATE                 | Rate outside [0, 10000] at save time
             | RATE_NOT_FOUND               | No (role, timeframe, date) match
             | OVERLAPPING_RATE             | Two entries share role/timeframe/window
             | RATE_CARD_KIND_MISMATCH      | Bill card used as pay card (or reverse)
-------------|------------------------------|-----------------------------------------
Rate card    | RATE_CARD_NOT_FOUND          | Rate card ID doesn't exist
-------------|------------------------------|-----------------------------------------
Template     | TEMPLATE_NOT_FOUND           | Template ID doesn't exist
             | INVALID_TEMPLATE             | Template fails structural validation
             | DEFAULT_TEMPLATE_DELETION    | Deleting the company default
             | UNKNOWN_TIMEFRAME            | Rate references a missing timeframe id
-------------|------------------------------|-----------------------------------------
Assignment   | DUPLICATE_ASSIGNMENT         | Second live assignment for a pair
             | ASSIGNMENT_NOT_FOUND         | No assignment for the pair
-------------|------------------------------|-----------------------------------------
Sync         | PARTIAL_SYNC                 | Some cards failed during template sync
-------------|------------------------------|-----------------------------------------
Ledger       | LEDGER_ENTRY_NOT_FOUND       | Time log / expense ID doesn't exist
             | INVALID_STATUS_TRANSITION    | e.g. DRAFT -> APPROVED
             | INVALID_HOURS                | Hours outside [0, 24]
-------------|------------------------------|-----------------------------------------
Currency     | INVALID_CURRENCY             | Not a three-letter code
             | CURRENCY_MISMATCH            | Pay and bill cards in different currencies
-------------|------------------------------|-----------------------------------------
Concurrency  | OPTIMISTIC_LOCK_CONFLICT     | Status moved under a transition
-------------|------------------------------|-----------------------------------------
Immutability | IMMUTABILITY_VIOLATION       | Financial field changed after creation

===============================================================================
"""


class ContractorCostingError(Exception):
    """
    Base exception for all contractor costing errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "CONTRACTOR_COSTING_ERROR"


# Rate exceptions


class RateError(ContractorCostingError):
    """Base exception for rate errors."""

    code: str = "RATE_ERROR"


class InvalidRateError(RateError):
    """A rate lies outside the accepted [minimum, maximum] range."""

    code: str = "INVALID_RATE"

    def __init__(self, field: str, value: str, minimum: str, maximum: str):
        self.field = field
        self.value = value
        self.minimum = minimum
        self.maximum = maximum
        super().__init__(
            f"Invalid rate for {field}: {value} (must be between {minimum} and {maximum})"
        )


class RateNotFoundError(RateError):
    """
    No rate entry matches (role, timeframe, date) on a rate card.

    The entry cannot be priced; creation must be refused, not zero-filled.
    """

    code: str = "RATE_NOT_FOUND"

    def __init__(
        self,
        role_name: str,
        timeframe: str,
        work_date: str,
        rate_card_id: str | None = None,
        reason: str = "no matching rate entry",
    ):
        self.role_name = role_name
        self.timeframe = timeframe
        self.work_date = work_date
        self.rate_card_id = rate_card_id
        self.reason = reason
        super().__init__(
            f"No rate for role '{role_name}' / timeframe '{timeframe}' "
            f"on {work_date} (card {rate_card_id}): {reason}"
        )


class OverlappingRateError(RateError):
    """Two rate entries share role and timeframe with overlapping windows."""

    code: str = "OVERLAPPING_RATE"

    def __init__(self, role_name: str, timeframe: str, first_from: str, second_from: str):
        self.role_name = role_name
        self.timeframe = timeframe
        self.first_from = first_from
        self.second_from = second_from
        super().__init__(
            f"Overlapping rate windows for role '{role_name}' / timeframe "
            f"'{timeframe}': entries from {first_from} and {second_from}"
        )


class RateCardKindMismatchError(RateError):
    """A rate card was used on the wrong side of an assignment."""

    code: str = "RATE_CARD_KIND_MISMATCH"

    def __init__(self, rate_card_id: str, expected_kind: str, actual_kind: str):
        self.rate_card_id = rate_card_id
        self.expected_kind = expected_kind
        self.actual_kind = actual_kind
        super().__init__(
            f"Rate card {rate_card_id} is a {actual_kind} card, expected {expected_kind}"
        )


# Rate card exceptions


class RateCardError(ContractorCostingError):
    """Base exception for rate card errors."""

    code: str = "RATE_CARD_ERROR"


class RateCardNotFoundError(RateCardError):
    """Rate card with given ID was not found."""

    code: str = "RATE_CARD_NOT_FOUND"

    def __init__(self, rate_card_id: str):
        self.rate_card_id = rate_card_id
        super().__init__(f"Rate card not found: {rate_card_id}")


# Template exceptions


class TemplateError(ContractorCostingError):
    """Base exception for rate card template errors."""

    code: str = "TEMPLATE_ERROR"


class TemplateNotFoundError(TemplateError):
    """Template with given ID was not found."""

    code: str = "TEMPLATE_NOT_FOUND"

    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(f"Rate card template not found: {template_id}")


class InvalidTemplateError(TemplateError):
    """Template failed structural validation."""

    code: str = "INVALID_TEMPLATE"

    def __init__(self, template_name: str, problems: list[str]):
        self.template_name = template_name
        self.problems = problems
        super().__init__(
            f"Invalid template '{template_name}': {'; '.join(problems)}"
        )


class DefaultTemplateDeletionError(TemplateError):
    """The company default template cannot be deleted."""

    code: str = "DEFAULT_TEMPLATE_DELETION"

    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(
            f"Template {template_id} is the company default; set another "
            f"template as default first"
        )


class UnknownTimeframeError(TemplateError):
    """A rate entry references a timeframe id the template does not define."""

    code: str = "UNKNOWN_TIMEFRAME"

    def __init__(self, template_id: str, timeframe_id: str):
        self.template_id = template_id
        self.timeframe_id = timeframe_id
        super().__init__(
            f"Timeframe '{timeframe_id}' is not defined by template {template_id}"
        )


# Assignment exceptions


class AssignmentError(ContractorCostingError):
    """Base exception for rate assignment errors."""

    code: str = "ASSIGNMENT_ERROR"


class DuplicateAssignmentError(AssignmentError):
    """A live assignment already exists for the (subcontractor, client) pair."""

    code: str = "DUPLICATE_ASSIGNMENT"

    def __init__(self, subcontractor_id: str, client_id: str):
        self.subcontractor_id = subcontractor_id
        self.client_id = client_id
        super().__init__(
            f"Subcontractor {subcontractor_id} already has a rate assignment "
            f"for client {client_id}"
        )


class AssignmentNotFoundError(AssignmentError):
    """No rate assignment exists for the (subcontractor, client) pair."""

    code: str = "ASSIGNMENT_NOT_FOUND"

    def __init__(self, subcontractor_id: str, client_id: str):
        self.subcontractor_id = subcontractor_id
        self.client_id = client_id
        super().__init__(
            f"No rate assignment for subcontractor {subcontractor_id} "
            f"and client {client_id}"
        )


# Sync exceptions


class SyncError(ContractorCostingError):
    """Base exception for template sync errors."""

    code: str = "SYNC_ERROR"


class PartialSyncError(SyncError):
    """
    One or more rate cards failed to sync with their template.

    Not fatal: the batch continues and failures are reported in the result.
    Raised only when a caller asks the result to be strict.
    """

    code: str = "PARTIAL_SYNC"

    def __init__(self, template_id: str, rate_cards_updated: int, failed_card_ids: list[str]):
        self.template_id = template_id
        self.rate_cards_updated = rate_cards_updated
        self.failed_card_ids = failed_card_ids
        super().__init__(
            f"Template {template_id} sync: {rate_cards_updated} card(s) updated, "
            f"{len(failed_card_ids)} failed"
        )


# Ledger exceptions


class LedgerError(ContractorCostingError):
    """Base exception for ledger entry errors."""

    code: str = "LEDGER_ERROR"


class LedgerEntryNotFoundError(LedgerError):
    """Time log or expense with given ID was not found."""

    code: str = "LEDGER_ENTRY_NOT_FOUND"

    def __init__(self, entry_type: str, entry_id: str):
        self.entry_type = entry_type
        self.entry_id = entry_id
        super().__init__(f"{entry_type} not found: {entry_id}")


class InvalidStatusTransitionError(LedgerError):
    """The requested status change is not allowed by the workflow."""

    code: str = "INVALID_STATUS_TRANSITION"

    def __init__(self, entry_id: str, from_status: str, action: str):
        self.entry_id = entry_id
        self.from_status = from_status
        self.action = action
        super().__init__(
            f"Cannot {action} entry {entry_id} in status {from_status}"
        )


class InvalidHoursError(LedgerError):
    """Logged hours lie outside the accepted range."""

    code: str = "INVALID_HOURS"

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field}: {value} (must be between 0 and 24)")


# Currency exceptions


class CurrencyError(ContractorCostingError):
    """Base exception for currency errors."""

    code: str = "CURRENCY_ERROR"


class InvalidCurrencyError(CurrencyError):
    """Currency code is not a three-letter code."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Invalid currency code: {currency!r}")


class CurrencyMismatchError(CurrencyError):
    """Pay and bill cards are priced in different currencies."""

    code: str = "CURRENCY_MISMATCH"

    def __init__(self, pay_currency: str, bill_currency: str):
        self.pay_currency = pay_currency
        self.bill_currency = bill_currency
        super().__init__(
            f"Pay card currency {pay_currency} does not match bill card "
            f"currency {bill_currency}"
        )


# Concurrency exceptions


class ConcurrencyError(ContractorCostingError):
    """Base exception for concurrency errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """The entry's status changed between read and conditional update."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str, expected_status: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected_status = expected_status
        super().__init__(
            f"Concurrent modification of {entity_type} {entity_id}: "
            f"status is no longer {expected_status}"
        )


# Immutability exceptions


class ImmutabilityError(ContractorCostingError):
    """Base exception for immutability errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify a write-once field.

    Ledger entry cost, billing and margin fields are fixed at creation.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, fields: list[str]):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.fields = fields
        super().__init__(
            f"Cannot modify {', '.join(fields)} on {entity_type} {entity_id}: "
            f"financial fields are write-once"
        )
