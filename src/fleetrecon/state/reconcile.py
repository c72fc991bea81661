"""Deterministic AIS/GPS reconciliation.

This is the only component allowed to merge the two snapshots.  It is a
pure function of its inputs: no I/O, no clock, no retained state.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime

from fleetrecon.ingestion.normalize import parse_instant
from fleetrecon.models.ais import AisRecord
from fleetrecon.models.gps import GpsRecord
from fleetrecon.models.target import DataSource, ReconciliationResult, Target, TargetSource

_logger = logging.getLogger(__name__)


def reconcile(
    ais_records: Iterable[AisRecord] | None,
    gps_records: Mapping[str, GpsRecord] | None,
) -> ReconciliationResult:
    """Merge an AIS snapshot and a GPS snapshot into one classified view.

    Parameters
    ----------
    ais_records
        AIS documents in any order, or ``None`` when the AIS read failed.
    gps_records
        GPS positions keyed by user id, or ``None`` when the GPS read failed.

    Returns
    -------
    ReconciliationResult
        Counts, targets and the most recent AIS update.  An unavailable
        side contributes zero records and is listed in
        ``unavailable_sources``.

    Notes
    -----
    A ``linked_user_id`` on an AIS record is trusted without looking at
    the GPS side: the record counts as ``merged`` even if the linked user
    is missing or private, and the linked id is suppressed from
    ``gps_only`` either way.
    """
    targets: list[Target] = []
    ais_only = 0
    merged = 0
    gps_only = 0
    last_update: datetime | None = None
    linked_ids: set[str] = set()
    unavailable: set[DataSource] = set()

    if ais_records is None:
        unavailable.add(DataSource.AIS)
    else:
        for record in ais_records:
            if record.latitude is None or record.longitude is None:
                _logger.debug("Skipping AIS record %s without position", record.document_id)
                continue

            updated_at = parse_instant(record.last_updated)
            if updated_at is not None and (last_update is None or updated_at > last_update):
                last_update = updated_at

            if record.linked_user_id:
                linked_ids.add(record.linked_user_id)
                merged += 1
                source = TargetSource.MERGED
            else:
                ais_only += 1
                source = TargetSource.AIS
            targets.append(Target(latitude=record.latitude, longitude=record.longitude, source=source))

    if gps_records is None:
        unavailable.add(DataSource.GPS)
    else:
        for user_id, location in gps_records.items():
            if location.privacy_enabled:
                continue
            if user_id in linked_ids:
                continue
            if location.latitude is None or location.longitude is None:
                _logger.debug("Skipping GPS record %s without position", user_id)
                continue
            gps_only += 1
            targets.append(Target(latitude=location.latitude, longitude=location.longitude, source=TargetSource.GPS))

    result = ReconciliationResult(
        ais_only=ais_only,
        gps_only=gps_only,
        merged=merged,
        last_update=last_update,
        targets=tuple(targets),
        unavailable_sources=frozenset(unavailable),
    )
    _logger.debug(
        "Reconciled total=%d ais_only=%d gps_only=%d merged=%d last_update=%s unavailable=%s",
        result.total_targets,
        ais_only,
        gps_only,
        merged,
        last_update,
        sorted(unavailable),
    )
    return result
