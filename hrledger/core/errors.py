"""
Exception types raised by the payroll workflow and the strict-input guards.
All derive from ValueError so callers can treat them as bad input.
"""

class HRLedgerError(ValueError):
    """Base error for the package."""

class InvalidAmountError(HRLedgerError):
    """A monetary amount is not a finite number."""

class PayrollError(HRLedgerError):
    """Payroll generation could not proceed."""

class InvalidPeriodError(PayrollError):
    pass

class NoEmployeesError(PayrollError):
    pass

class DuplicatePayrollError(PayrollError):
    """A payroll already exists for the employee, period and run type."""

    def __init__(self, employee_id, period_start, period_end, run_type):
        self.employee_id = employee_id
        self.period_start = period_start
        self.period_end = period_end
        self.run_type = run_type
        super().__init__(
            f"Payroll already exists for employee {employee_id} "
            f"({period_start} to {period_end}, {run_type})"
        )
