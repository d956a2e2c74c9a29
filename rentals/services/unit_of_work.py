"""Explicit unit of work for atomic multi-row writes.

Callers open a unit of work around one logical write, pass the session down to
the functions that add or modify rows, and the block commits on success or
rolls back on any exception. Functions that receive the session only flush.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """Commit the block's changes as one transaction.

    Args:
        db: Session the block writes through

    Yields:
        The same session

    Raises:
        Whatever the block raises, after rolling back
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        logger.debug("Unit of work rolled back", exc_info=True)
        raise


__all__ = ["unit_of_work"]
