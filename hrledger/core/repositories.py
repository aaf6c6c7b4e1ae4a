"""
Repository layer for payroll persistence.
Each tenant's records live in one JSON file with timestamped backups.
"""
import json
from pathlib import Path
from typing import Dict, List, Any, Iterable, Optional, Tuple
from datetime import datetime
from abc import ABC, abstractmethod

from hrledger.core.config import settings
from hrledger.core.errors import DuplicatePayrollError
from hrledger.core.utils import setup_logging, write_json_atomic

class BaseRepository(ABC):
    """Base repository with common data persistence patterns."""

    def __init__(self, tenant_id: str, entity_type: str, data_dir: Optional[str] = None):
        self.tenant_id = tenant_id
        self.entity_type = entity_type
        self.logger = setup_logging(tenant_id)

        self.data_dir = Path(data_dir or settings.DATA_DIR)
        self.entity_dir = self.data_dir / entity_type
        self.archive_dir = self.entity_dir / "archive"

        for dir_path in [self.entity_dir, self.archive_dir]:
            dir_path.mkdir(parents=True, exist_ok=True)

    def _get_data_file(self) -> Path:
        return self.entity_dir / f"{self.tenant_id}_{self.entity_type}.json"

    def _get_archive_file(self) -> Path:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        return self.archive_dir / f"{self.tenant_id}_{self.entity_type}_{timestamp}.json"

    def load_data(self) -> List[Dict[str, Any]]:
        data_file = self._get_data_file()
        if not data_file.exists():
            return []
        with open(data_file, 'r', encoding="utf-8") as f:
            return json.load(f)

    def save_data(self, data: List[Dict[str, Any]], create_backup: bool = True):
        """Save data, archiving the previous file first."""
        data_file = self._get_data_file()
        if create_backup and data_file.exists():
            self._create_backup()
        write_json_atomic(data_file, data)

    def _create_backup(self):
        current_data = self.load_data()
        if current_data:
            write_json_atomic(self._get_archive_file(), current_data)

    def get_count(self) -> int:
        return len(self.load_data())

    @abstractmethod
    def bulk_insert(self, records: List[Dict[str, Any]]) -> Dict[str, int]:
        pass

def payroll_key(record: Dict[str, Any]) -> Tuple[str, str, str, str]:
    return (
        str(record.get('employee_id')),
        str(record.get('period_start')),
        str(record.get('period_end')),
        record.get('run_type', 'REGULAR'),
    )

class PayrollRunsRepository(BaseRepository):
    """Payroll records, unique per employee, period and run type."""

    def __init__(self, tenant_id: str, data_dir: Optional[str] = None):
        super().__init__(tenant_id, "payroll_runs", data_dir)

    def bulk_insert(self, records: List[Dict[str, Any]]) -> Dict[str, int]:
        """Insert a batch atomically; any duplicate rejects the whole batch."""
        current_data = self.load_data()
        existing_keys = {payroll_key(r) for r in current_data}

        for record in records:
            key = payroll_key(record)
            if key in existing_keys:
                self.logger.warning("Duplicate payroll rejected: %s", key)
                raise DuplicatePayrollError(*key)
            existing_keys.add(key)

        current_data.extend(records)
        self.save_data(current_data)
        return {"created": len(records), "total": len(current_data)}

    def find_payroll(self, employee_id: str, period_start: str, period_end: str,
                     run_type: str = 'REGULAR') -> Optional[Dict[str, Any]]:
        wanted = (str(employee_id), period_start, period_end, run_type)
        for record in self.load_data():
            if payroll_key(record) == wanted:
                return record
        return None

    def update_payroll(self, key: Tuple[str, str, str, str], changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        data = self.load_data()
        for record in data:
            if payroll_key(record) == key:
                record.update(changes)
                record['updated_at'] = datetime.now().isoformat()
                self.save_data(data)
                return record
        return None

    def get_by_period(self, period_start: str, period_end: str) -> List[Dict[str, Any]]:
        return [
            r for r in self.load_data()
            if r.get('period_start') == period_start and r.get('period_end') == period_end
        ]

    def get_by_employee(self, employee_id: str) -> List[Dict[str, Any]]:
        return [r for r in self.load_data() if str(r.get('employee_id')) == str(employee_id)]

    def distinct_periods(self) -> Iterable[Tuple[str, str]]:
        seen = []
        for record in self.load_data():
            period = (record.get('period_start'), record.get('period_end'))
            if period not in seen:
                seen.append(period)
        return seen
