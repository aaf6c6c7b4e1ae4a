import json
from datetime import date
from pathlib import Path
import pytest
from hrledger.core.config import settings
from hrledger.core.errors import DuplicatePayrollError, InvalidPeriodError, NoEmployeesError, PayrollError
from hrledger.payroll.engine import PayrollEngine, payroll_register, summarize_payroll
from hrledger.tax.salary import calculate_complete_salary

EMPLOYEES = [
    {"id": "EMP001", "name": "Achieng Otieno", "basic_salary": 50000,
     "allowances": {"housing": 10000, "transport": 5000, "medical": 2000}},
    {"id": "EMP002", "first_name": "Kamau", "last_name": "Njoroge", "salary": 31000, "house_allowance": 4000},
    {"id": "EMP003", "name": "No Salary", "basic_salary": 0},
]

def test_full_month_payroll_matches_salary_breakdown():
    eng = PayrollEngine("demo-tenant")
    res = eng.generate_payroll(EMPLOYEES, "2025-01-01", "2025-01-31")
    assert res["count"] == 2
    assert res["skipped"] == ["EMP003"]

    first = res["payroll"][0]
    expected = calculate_complete_salary({
        "basic_salary": 50000, "allowances": {"housing": 10000, "transport": 5000, "medical": 2000},
    })
    assert first["gross_pay"] == expected.gross_salary == 67000
    assert first["net_pay"] == expected.net_salary
    assert first["total_deductions"] == expected.total_deductions
    assert first["status"] == "DRAFT"
    assert first["currency"] == "KES"
    assert first["taxes"]["PAYE"] == expected.deductions.paye
    assert first["taxes"]["other"] == expected.deductions.nhif + expected.deductions.housing_levy
    assert [line["code"] for line in first["earnings"]] == ["BASIC", "HOUSING", "TRANSPORT", "MEDICAL"]

    second = res["payroll"][1]
    assert second["employee_name"] == "Kamau Njoroge"
    assert second["gross_pay"] == 35000

def test_half_month_is_prorated():
    eng = PayrollEngine("demo-tenant")
    res = eng.generate_payroll([{"id": "E1", "name": "A", "basic_salary": 62000}], date(2025, 1, 1), date(2025, 1, 15))
    rec = res["payroll"][0]
    assert rec["gross_pay"] == pytest.approx(30000)
    assert rec["net_pay"] == calculate_complete_salary(basic_salary=30000).net_salary

def test_period_validation():
    eng = PayrollEngine("demo-tenant")
    with pytest.raises(InvalidPeriodError):
        eng.generate_payroll(EMPLOYEES, None, "2025-01-31")
    with pytest.raises(InvalidPeriodError):
        eng.generate_payroll(EMPLOYEES, "not-a-date", "2025-01-31")
    with pytest.raises(InvalidPeriodError):
        eng.generate_payroll(EMPLOYEES, "2025-02-01", "2025-01-31")
    with pytest.raises(PayrollError):
        eng.generate_payroll(EMPLOYEES, "2025-01-01", "2025-01-31", run_type="WEEKLY")

def test_no_employees_and_no_valid_salary():
    eng = PayrollEngine("demo-tenant")
    with pytest.raises(NoEmployeesError):
        eng.generate_payroll([], "2025-01-01", "2025-01-31")
    with pytest.raises(PayrollError):
        eng.generate_payroll([EMPLOYEES[2]], "2025-01-01", "2025-01-31")

def test_duplicate_payroll_rejected_but_bonus_run_allowed():
    eng = PayrollEngine("demo-tenant")
    eng.generate_payroll(EMPLOYEES, "2025-01-01", "2025-01-31")
    with pytest.raises(DuplicatePayrollError):
        eng.generate_payroll(EMPLOYEES, "2025-01-01", "2025-01-31")
    assert eng.repository.get_count() == 2
    eng.generate_payroll(EMPLOYEES[:1], "2025-01-01", "2025-01-31", run_type="BONUS")
    assert eng.repository.get_count() == 3

def test_queries_and_periods():
    eng = PayrollEngine("demo-tenant")
    eng.generate_payroll(EMPLOYEES, "2025-01-01", "2025-01-31")
    eng.generate_payroll(EMPLOYEES, "2025-02-01", "2025-02-28")

    jan = eng.get_payroll_by_period("2025-01-01", "2025-01-31")
    assert [r["employee_name"] for r in jan] == ["Achieng Otieno", "Kamau Njoroge"]

    slips = eng.get_employee_payslips("EMP001")
    assert [s["period_end"] for s in slips] == ["2025-02-28", "2025-01-31"]

    assert eng.get_payslip("EMP002", "2025-02-01", "2025-02-28")["gross_pay"] == 35000
    assert eng.get_payslip("EMP002", "2025-03-01", "2025-03-31") is None

    periods = eng.list_payroll_periods()
    assert [p["label"] for p in periods] == ["Feb 1 – 28, 2025", "Jan 1 – 31, 2025"]

def test_status_transitions():
    eng = PayrollEngine("demo-tenant")
    eng.generate_payroll(EMPLOYEES, "2025-01-01", "2025-01-31")
    rec = eng.set_status("EMP001", "2025-01-01", "2025-01-31", "PAID")
    assert rec["status"] == "PAID"
    assert "payment_date" in rec
    eng.set_status("EMP002", "2025-01-01", "2025-01-31", "VOID")
    with pytest.raises(PayrollError):
        eng.set_status("EMP002", "2025-01-01", "2025-01-31", "APPROVED")
    with pytest.raises(PayrollError):
        eng.set_status("EMP001", "2025-01-01", "2025-01-31", "LOST")

def test_audit_trail_written():
    eng = PayrollEngine("audit-tenant")
    eng.generate_payroll(EMPLOYEES, "2025-01-01", "2025-01-31", actor="hr@demo.local")
    lines = (Path(settings.LOG_PATH) / "audit-tenant_audit.jsonl").read_text().splitlines()
    entry = json.loads(lines[-1])
    assert entry["action"] == "generate_payroll"
    assert entry["actor"] == "hr@demo.local"
    assert entry["changes"]["count"] == 2
    assert entry["entity"] == "payroll_run"
    assert entry["tenant"] == "audit-tenant"

def test_register_and_summary():
    eng = PayrollEngine("demo-tenant")
    records = eng.generate_payroll(EMPLOYEES, "2025-01-01", "2025-01-31")["payroll"]
    df = payroll_register(records)
    assert list(df["employee_id"]) == ["EMP001", "EMP002"]
    assert df.loc[0, "nhif"] == 1300
    summary = summarize_payroll(records)
    assert summary["total_employees"] == 2
    assert summary["totals"]["gross_pay"] == 102000
    assert summary["totals"]["net_pay"] == records[0]["net_pay"] + records[1]["net_pay"]
    assert summarize_payroll([])["total_employees"] == 0

def test_employees_without_id_are_skipped():
    eng = PayrollEngine("demo-tenant")
    staff = [
        {"name": "Wanjiru Kariuki", "basic_salary": 40000},
        {"name": "Otieno Ouma", "basic_salary": 45000},
        {"id": "EMP010", "name": "Mutua Kioko", "basic_salary": 50000},
    ]
    res = eng.generate_payroll(staff, "2025-03-01", "2025-03-31")
    assert res["count"] == 1
    assert res["payroll"][0]["employee_id"] == "EMP010"
    assert res["skipped"] == ["Wanjiru Kariuki", "Otieno Ouma"]
    assert eng.repository.get_count() == 1
