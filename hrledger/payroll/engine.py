"""
Payroll generation: prorates each employee's monthly pay over a period,
applies statutory deductions and stores draft payroll records.
"""
import pandas as pd
from typing import List, Dict, Any, Iterable, Optional
from datetime import datetime

from hrledger.core.config import settings
from hrledger.core.errors import NoEmployeesError, PayrollError
from hrledger.core.repositories import PayrollRunsRepository
from hrledger.core.utils import audit_log, setup_logging
from hrledger.payroll.periods import DateLike, format_period_label, parse_period, proration_factor
from hrledger.tax.salary import ALLOWANCE_FIELDS, calculate_complete_salary, summarize_breakdown

RUN_TYPES = ("REGULAR", "BONUS", "ADJUSTMENT", "TERMINATION", "OTHER")
STATUSES = ("DRAFT", "APPROVED", "PAID", "VOID")

# flat employee columns accepted in place of an ``allowances`` mapping
FLAT_ALLOWANCE_COLUMNS = {
    "housing": "house_allowance",
    "transport": "transport_allowance",
    "medical": "medical_allowance",
    "other": "other_allowances",
}

REGISTER_COLUMNS = [
    "employee_id", "employee_name", "period_start", "period_end", "run_type",
    "gross_pay", "nhif", "nssf", "housing_levy", "paye",
    "total_deductions", "net_pay", "status",
]

def employee_allowances(employee: Dict[str, Any]) -> Dict[str, Any]:
    if employee.get("allowances") is not None:
        return dict(employee["allowances"])
    return {name: employee.get(column, 0) for name, column in FLAT_ALLOWANCE_COLUMNS.items()}

def employee_name(employee: Dict[str, Any]) -> str:
    if employee.get("name"):
        return employee["name"]
    return f"{employee.get('first_name','')} {employee.get('last_name','')}".strip()

class PayrollEngine:
    def __init__(self, tenant_id: str, repository: Optional[PayrollRunsRepository] = None):
        self.tenant_id = tenant_id
        self.repository = repository or PayrollRunsRepository(tenant_id)
        self.logger = setup_logging(tenant_id)

    def compute_payroll_line(self, employee: Dict[str, Any], factor: float) -> Dict[str, Any]:
        """Prorate basic and allowances by ``factor`` and build the payslip lines."""
        basic = employee.get("basic_salary", employee.get("salary"))
        allowances = employee_allowances(employee)
        breakdown = calculate_complete_salary(
            basic_salary=round(basic * factor, 2),
            allowances={
                name: round((allowances.get(name) or 0) * factor, 2) for name in ALLOWANCE_FIELDS
            },
        )
        summary = summarize_breakdown(breakdown)
        deductions = breakdown.deductions
        other_taxes = deductions.nhif + deductions.housing_levy
        return {
            "earnings": [line.to_dict() for line in summary.earnings if line.amount],
            "deductions": [line.to_dict() for line in summary.deductions],
            "taxes": {
                "PAYE": deductions.paye,
                "NSSF": deductions.nssf,
                "other": other_taxes,
                "total": deductions.paye + deductions.nssf + other_taxes,
            },
            "gross_pay": breakdown.gross_salary,
            "total_deductions": breakdown.total_deductions,
            "net_pay": breakdown.net_salary,
        }

    def generate_payroll(
        self,
        employees: Iterable[Dict[str, Any]],
        period_start: DateLike,
        period_end: DateLike,
        run_type: str = "REGULAR",
        actor: str = "system",
    ) -> Dict[str, Any]:
        """
        Generate draft payroll records for every employee with a salary.

        Args:
            employees: Employee dicts (``id``/``employee_id``, name, ``basic_salary``
                or ``salary``, optional allowances)
            period_start, period_end: Inclusive pay period (date or ISO string)
            run_type: One of RUN_TYPES
            actor: Recorded in the audit trail
        """
        start, end = parse_period(period_start, period_end)
        if run_type not in RUN_TYPES:
            raise PayrollError(f"Unknown run type: {run_type}")

        employees = list(employees)
        if not employees:
            raise NoEmployeesError("No employees found")

        factor = proration_factor(start, end)
        created_at = datetime.now().isoformat()
        records = []
        skipped = []

        for e in employees:
            emp_id = e.get("employee_id", e.get("id"))
            salary = e.get("basic_salary", e.get("salary"))
            if emp_id in (None, ""):
                # payroll records are keyed by employee id
                self.logger.warning("Skipping employee %r: no employee id", employee_name(e))
                skipped.append(employee_name(e) or None)
                continue
            if not salary or salary <= 0:
                self.logger.warning("Skipping employee %s: no valid salary", emp_id)
                skipped.append(emp_id)
                continue

            record = {
                "employee_id": emp_id,
                "employee_name": employee_name(e),
                "period_start": start.isoformat(),
                "period_end": end.isoformat(),
                "run_type": run_type,
                "currency": settings.CURRENCY,
                "status": "DRAFT",
                "created_at": created_at,
            }
            record.update(self.compute_payroll_line(e, factor))
            records.append(record)

        if not records:
            raise PayrollError("No valid employees with salary to process")

        self.repository.bulk_insert(records)

        self.logger.info(
            "Generated %d %s payroll records for %s to %s (%d skipped)",
            len(records), run_type, start, end, len(skipped),
        )
        audit_log(
            self.tenant_id, "generate_payroll", "payroll_run",
            f"{start.isoformat()}:{end.isoformat()}:{run_type}",
            actor=actor, changes={"count": len(records), "skipped": skipped},
        )

        return {
            "count": len(records),
            "skipped": skipped,
            "payroll": records,
        }

    def get_payroll_by_period(self, period_start: DateLike, period_end: DateLike) -> List[Dict[str, Any]]:
        start, end = parse_period(period_start, period_end)
        records = self.repository.get_by_period(start.isoformat(), end.isoformat())
        return sorted(records, key=lambda r: r.get("employee_name", ""))

    def get_employee_payslips(self, employee_id: str) -> List[Dict[str, Any]]:
        """All payslips for an employee, most recent period first."""
        records = self.repository.get_by_employee(employee_id)
        return sorted(records, key=lambda r: r.get("period_end", ""), reverse=True)

    def get_payslip(self, employee_id: str, period_start: DateLike, period_end: DateLike,
                    run_type: str = "REGULAR") -> Optional[Dict[str, Any]]:
        start, end = parse_period(period_start, period_end)
        return self.repository.find_payroll(employee_id, start.isoformat(), end.isoformat(), run_type)

    def set_status(self, employee_id: str, period_start: DateLike, period_end: DateLike, status: str,
                   run_type: str = "REGULAR", actor: str = "system") -> Dict[str, Any]:
        """Move a payroll record to a new status; PAID stamps the payment date."""
        if status not in STATUSES:
            raise PayrollError(f"Unknown payroll status: {status}")
        start, end = parse_period(period_start, period_end)
        key = (str(employee_id), start.isoformat(), end.isoformat(), run_type)
        current = self.repository.find_payroll(*key)
        if current is None:
            raise PayrollError(f"Payroll not found for employee {employee_id}")
        if current["status"] == "VOID":
            raise PayrollError("A void payroll cannot change status")

        changes = {"status": status}
        if status == "PAID":
            changes["payment_date"] = datetime.now().date().isoformat()
        record = self.repository.update_payroll(key, changes)
        audit_log(self.tenant_id, "set_payroll_status", "payroll", ":".join(key),
                  actor=actor, changes={"from": current["status"], "to": status})
        return record

    def list_payroll_periods(self) -> List[Dict[str, str]]:
        periods = sorted(self.repository.distinct_periods(), key=lambda p: p[0], reverse=True)
        return [
            {"period_start": start, "period_end": end, "label": format_period_label(start, end)}
            for start, end in periods
        ]

def payroll_register(records: List[Dict[str, Any]]) -> pd.DataFrame:
    """One row per payroll record with each statutory deduction in its own column."""
    rows = []
    for r in records:
        row = {col: r.get(col) for col in REGISTER_COLUMNS}
        amounts = {line.get("code"): line.get("amount", 0) for line in r.get("deductions", [])}
        row["nhif"] = amounts.get("NHIF", 0)
        row["nssf"] = amounts.get("NSSF", 0)
        row["housing_levy"] = amounts.get("HOUSING_LEVY", 0)
        row["paye"] = amounts.get("PAYE", 0)
        rows.append(row)
    return pd.DataFrame(rows, columns=REGISTER_COLUMNS)

def summarize_payroll(records: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Totals and averages across a batch of payroll records."""
    df = payroll_register(records)
    if df.empty:
        return {"total_employees": 0, "totals": {}, "averages": {}}

    amount_columns = ["gross_pay", "nhif", "nssf", "housing_levy", "paye", "total_deductions", "net_pay"]
    totals = df[amount_columns].sum()
    total_employees = len(df)
    return {
        "total_employees": total_employees,
        "totals": {col: round(float(totals[col]), 2) for col in amount_columns},
        "averages": {
            "gross_pay": round(float(totals["gross_pay"]) / total_employees, 2),
            "net_pay": round(float(totals["net_pay"]) / total_employees, 2),
        },
    }
