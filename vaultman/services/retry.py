"""
Bounded retry for the allocate/release write path.

Two failures are retried with exponential backoff:
- LostRace: a compare-and-swap claimed fewer rows than it selected, i.e.
  another transaction got there first. The attempt's transaction has
  already rolled back.
- OperationalError: lock timeout, busy database, dropped connection.

Reads never go through here; they fail fast.
"""

import logging
import time

from django.db import OperationalError, connection

from vaultman.conf import vaultman_settings
from vaultman.exceptions import StockError

logger = logging.getLogger('vaultman')


class LostRace(Exception):
    """Raised inside an attempt to roll it back and try again."""


def run_with_retry(operation, *args, event: str, **kwargs):
    """
    Call operation(*args, **kwargs) until it succeeds or attempts run out.

    Raises:
        StockError('CONCURRENT_MODIFICATION'): lost every race
        StockError('TRANSIENT_STORE_ERROR'): store kept failing, or failed
            inside a caller's transaction (which can no longer be used)
    """
    attempts = max(1, vaultman_settings.WRITE_MAX_ATTEMPTS)
    backoff = vaultman_settings.RETRY_BACKOFF_SECONDS
    nested = connection.in_atomic_block

    for attempt in range(1, attempts + 1):
        try:
            return operation(*args, **kwargs)
        except LostRace:
            if attempt == attempts:
                raise StockError('CONCURRENT_MODIFICATION', attempts=attempts) from None
            reason = 'lost_race'
        except OperationalError as exc:
            if nested or attempt == attempts:
                logger.error(
                    f"{event}.store_error",
                    extra={"attempt": attempt, "error": str(exc)},
                )
                raise StockError(
                    'TRANSIENT_STORE_ERROR',
                    attempts=attempt,
                    error=str(exc),
                ) from exc
            reason = 'store_error'

        delay = backoff * (2 ** (attempt - 1))
        logger.warning(
            f"{event}.retry",
            extra={"attempt": attempt, "reason": reason, "delay": delay},
        )
        if delay:
            time.sleep(delay)
