"""Reference timestamp selection per backup type.

Incremental backups key off the newest completed backup of *any* type;
differential backups key off the newest completed *full* backup. When no
reference exists a fixed lookback window is used.
"""

from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from gofr_backup.ledger import Ledger
from gofr_backup.models import BackupRecord, BackupType

DEFAULT_LOOKBACK_DAYS = 7

ReferenceLookup = Callable[[Ledger], Optional[BackupRecord]]

_REFERENCE_LOOKUPS: Dict[BackupType, Optional[ReferenceLookup]] = {
    BackupType.FULL: None,
    BackupType.INCREMENTAL: lambda ledger: ledger.latest_completed(),
    BackupType.DIFFERENTIAL: lambda ledger: ledger.latest_completed([BackupType.FULL]),
}


def reference_timestamp(
    backup_type: BackupType,
    ledger: Ledger,
    now: datetime,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
) -> Optional[datetime]:
    """Lower bound a dump of ``backup_type`` should start from.

    Args:
        backup_type: Snapshot kind
        ledger: Ledger to look reference backups up in
        now: Start of the current backup
        lookback_days: Fallback window when no reference backup exists

    Returns:
        None for full backups, otherwise the reference backup's creation
        time or ``now - lookback_days``
    """
    lookup = _REFERENCE_LOOKUPS[BackupType.coerce(backup_type)]
    if lookup is None:
        return None

    reference = lookup(ledger)
    if reference is None:
        return now - timedelta(days=lookback_days)
    return reference.created_at
