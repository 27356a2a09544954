"""
BaseService -- shared constructor for the costing services.

Services take the caller's ``Session``, ``flush()`` their writes and leave
commit or rollback to the caller (``session_scope()`` in production, the
rolled-back test transaction in the suite).  ``begin_nested()`` savepoints
are used where one item may fail alone: a card during template sync, an
assignment insert racing the unique constraint, a batch submit.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from contractor_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``; the caller controls the transaction.
        - Public methods return frozen domain DTOs, not ORM entities.
    """

    def __init__(self, session: Session):
        self.session = session
