"""Expiration scanner: find warranties inside their notification window."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from warrantywatch.core.urgency import classify, days_until
from warrantywatch.models.notification import ExpiringWarranty
from warrantywatch.models.preference import DEFAULT_THRESHOLD_DAYS

if TYPE_CHECKING:
    from datetime import date

    from warrantywatch.core.ports import WarrantyStore

log = logging.getLogger(__name__)


class ExpirationScanner:
    """Read-only query of upcoming and recently passed expirations.

    Parameters
    ----------
    store:
        Any :class:`~warrantywatch.core.ports.WarrantyStore`.
    default_threshold_days:
        Lookahead for users with no stored preference.
    expired_grace_days:
        How long after expiry a record keeps being reported (as
        ``expired``).

    """

    def __init__(
        self,
        store: WarrantyStore,
        default_threshold_days: int = DEFAULT_THRESHOLD_DAYS,
        expired_grace_days: int = 30,
    ) -> None:
        self._store = store
        self._default_threshold = default_threshold_days
        self._grace = expired_grace_days

    def scan(self, as_of: date, lookahead_days: int | None = None) -> list[ExpiringWarranty]:
        """Return candidates sorted most urgent first.

        Parameters
        ----------
        as_of:
            The calendar day to measure from.
        lookahead_days:
            ``None`` applies each user's own threshold; an integer
            overrides it for every user.

        Returns
        -------
        list[ExpiringWarranty]
            Sorted by ``days_left``, then expiration date, then record id.

        """
        if lookahead_days is not None and lookahead_days < 0:
            msg = f"lookahead_days must not be negative, got {lookahead_days}"
            raise ValueError(msg)

        records = self._store.find_expiring(
            as_of,
            lookahead_days,
            self._grace,
            self._default_threshold,
        )

        candidates: list[ExpiringWarranty] = []
        for record in records:
            if record.expiration_date is None:
                log.warning(
                    "Record %s has a warranty duration but no expiration date; skipping",
                    record.id,
                    extra={"user_id": record.user_id, "record_id": str(record.id)},
                )
                continue
            days_left = days_until(record.expiration_date, as_of)
            if days_left < -self._grace:
                continue
            if lookahead_days is not None and days_left > lookahead_days:
                continue
            candidates.append(
                ExpiringWarranty(record=record, days_left=days_left, tier=classify(days_left)),
            )

        candidates.sort(key=lambda c: (c.days_left, c.expiration_date, str(c.record_id)))
        log.debug("Scan as of %s found %d candidate(s)", as_of, len(candidates))
        return candidates
