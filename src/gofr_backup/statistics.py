"""Per-type backup statistics derived from the ledger."""

from typing import Dict, List, Optional

from gofr_backup.ledger import Ledger
from gofr_backup.logger import Logger, create_logger
from gofr_backup.models import BackupStatus, BackupType, TypeStatistics


class StatisticsAggregator:
    """Read-only rollups over backup records"""

    def __init__(self, ledger: Ledger, logger: Optional[Logger] = None):
        self.ledger = ledger
        self.logger = logger or create_logger(name="gofr-backup-stats")

    def get_backup_statistics(self) -> Dict[BackupType, TypeStatistics]:
        """Statistics for every backup type present in the ledger

        Durations and sizes are aggregated over completed backups only;
        in-progress backups count towards the total and nothing else.
        """
        stats: Dict[BackupType, TypeStatistics] = {}
        durations: Dict[BackupType, List[int]] = {}

        for record in self.ledger.query_records():
            entry = stats.get(record.type)
            if entry is None:
                entry = stats[record.type] = TypeStatistics(type=record.type)
                durations[record.type] = []

            entry.total_backups += 1
            if record.status == BackupStatus.FAILED:
                entry.failed_backups += 1
            elif record.status == BackupStatus.COMPLETED:
                entry.successful_backups += 1
                entry.total_size_bytes += record.size_bytes or 0
                if record.duration_ms is not None:
                    durations[record.type].append(record.duration_ms)
                if entry.last_successful_backup is None or record.created_at > entry.last_successful_backup:
                    entry.last_successful_backup = record.created_at

        for backup_type, values in durations.items():
            if values:
                stats[backup_type].avg_duration_ms = sum(values) / len(values)

        self.logger.debug("Backup statistics computed", types=len(stats))
        return stats
