from __future__ import annotations

from dataclasses import dataclass, field

from filestamp.errors import StalenessError
from filestamp.models import PathRecord
from filestamp.snapshot import Snapshot, check_record


@dataclass(slots=True)
class StaleRecord:
    record: PathRecord
    error: StalenessError


@dataclass(slots=True)
class FailedRecord:
    record: PathRecord
    error: OSError


@dataclass(slots=True)
class StatusResult:
    fresh: list[PathRecord] = field(default_factory=list)
    stale: list[StaleRecord] = field(default_factory=list)
    failed: list[FailedRecord] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.fresh or self.stale or self.failed)

    @property
    def has_changes(self) -> bool:
        return bool(self.stale)


def evaluate_snapshot(snapshot: Snapshot) -> StatusResult:
    """Check every record instead of stopping at the first stale one."""
    result = StatusResult()
    for record in snapshot:
        try:
            check_record(record)
        except StalenessError as exc:
            result.stale.append(StaleRecord(record=record, error=exc))
        except OSError as exc:
            result.failed.append(FailedRecord(record=record, error=exc))
        else:
            result.fresh.append(record)
    return result
