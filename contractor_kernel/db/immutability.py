"""
ORM-level write-once enforcement for ledger entries.

Time logs and expenses are priced once, at creation.  After that their
financial fields never change; only status moves, and it moves through
LedgerService's conditional UPDATE rather than the unit of work.

    session.flush()
         |
         v
    [before_update] --> _check_*_immutability() --> ImmutabilityViolationError
         |
         v
    [before_delete] --> _check_*_delete() ---------> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

updated_at / updated_by_id may change: they are audit metadata, not
financial data.

Usage:

    from contractor_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once at startup

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event
from sqlalchemy.orm.attributes import get_history

from contractor_kernel.domain.ledger import EntryStatus
from contractor_kernel.exceptions import ImmutabilityViolationError
from contractor_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _changed_fields(target, fields: tuple[str, ...]) -> list[str]:
    return [f for f in fields if get_history(target, f).has_changes()]


def _block(entity_type: str, target, operation: str, fields: list[str]) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
            "fields": fields,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        fields=fields,
    )


def _check_time_log_immutability(mapper, connection, target):
    from contractor_kernel.models.ledger import TIME_LOG_FINANCIAL_FIELDS

    changed = _changed_fields(target, TIME_LOG_FINANCIAL_FIELDS)
    if changed:
        _block("TimeLog", target, "UPDATE", changed)


def _check_expense_immutability(mapper, connection, target):
    from contractor_kernel.models.ledger import EXPENSE_FINANCIAL_FIELDS

    changed = _changed_fields(target, EXPENSE_FINANCIAL_FIELDS)
    if changed:
        _block("Expense", target, "UPDATE", changed)


def _check_approved_delete(entity_type: str):
    def _check(mapper, connection, target):
        if target.status == EntryStatus.APPROVED.value:
            _block(entity_type, target, "DELETE", ["status"])

    _check.__name__ = f"_check_{entity_type.lower()}_delete"
    return _check


_check_time_log_delete = _check_approved_delete("TimeLog")
_check_expense_delete = _check_approved_delete("Expense")


def _listeners():
    from contractor_kernel.models.ledger import ExpenseModel, TimeLogModel

    return (
        (TimeLogModel, "before_update", _check_time_log_immutability),
        (TimeLogModel, "before_delete", _check_time_log_delete),
        (ExpenseModel, "before_update", _check_expense_immutability),
        (ExpenseModel, "before_delete", _check_expense_delete),
    )


def register_immutability_listeners() -> None:
    """Register write-once listeners.  Safe to call more than once."""
    for target, event_name, listener_fn in _listeners():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)
    logger.info("immutability_listeners_registered")


def _safe_remove_listener(target, event_name, listener_fn):
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners() -> None:
    """
    Remove the write-once listeners.

    WARNING: Only use this in tests that need to violate the rule on purpose.
    """
    for target, event_name, listener_fn in _listeners():
        _safe_remove_listener(target, event_name, listener_fn)
