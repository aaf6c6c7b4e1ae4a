"""
Salary aggregation: allowances + basic -> gross -> statutory deductions -> net,
and the payslip-style summary built from the same breakdown.

Inputs are permissive. Missing or empty allowance fields count as 0 and no
range checks are made unless ``settings.STRICT_INPUTS`` is on.
"""
import math
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from hrledger.core.utils import guard_amount, round_half_up
from hrledger.tax.payroll import (
    calculate_housing_levy,
    calculate_nhif,
    calculate_nssf,
    calculate_paye,
)

Amount = Union[int, float]

ALLOWANCE_FIELDS = ("housing", "transport", "medical", "other")

def _or_zero(value):
    if value is None:
        return 0
    if isinstance(value, float) and math.isnan(value):
        return 0
    return value or 0

class _Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_dict(self, by_alias: bool = False) -> Dict[str, Any]:
        return self.model_dump(by_alias=by_alias)

class Allowances(_Model):
    housing: Amount = 0
    transport: Amount = 0
    medical: Amount = 0
    other: Amount = 0

    @field_validator(*ALLOWANCE_FIELDS, mode="before")
    @classmethod
    def _missing_is_zero(cls, value):
        return _or_zero(value)

    @property
    def total(self) -> Amount:
        return self.housing + self.transport + self.medical + self.other

class SalaryInput(_Model):
    basic_salary: Amount = 0
    allowances: Allowances = Field(default_factory=Allowances)

    @field_validator("basic_salary", mode="before")
    @classmethod
    def _basic_defaults_to_zero(cls, value):
        return 0 if value is None else value

    @field_validator("allowances", mode="before")
    @classmethod
    def _allowances_default(cls, value):
        return {} if value is None else value

class Deductions(_Model):
    nhif: Amount
    nssf: Amount
    housing_levy: Amount
    paye: Amount

    @property
    def total(self) -> Amount:
        return self.nhif + self.nssf + self.housing_levy + self.paye

class SalaryBreakdown(_Model):
    basic_salary: Amount
    allowances: Allowances
    total_allowances: Amount
    gross_salary: Amount
    taxable_income: Amount
    deductions: Deductions
    total_deductions: Amount
    net_salary: Amount

class LineItem(_Model):
    label: str
    amount: Amount
    code: Optional[str] = None
    description: Optional[str] = None

class SalarySummary(_Model):
    earnings: List[LineItem]
    gross_salary: Amount
    deductions: List[LineItem]
    total_deductions: Amount
    net_salary: Amount

SalaryData = Union[SalaryInput, Mapping[str, Any], None]

def _to_input(salary_data: SalaryData, overrides: Dict[str, Any]) -> SalaryInput:
    if isinstance(salary_data, SalaryInput):
        if not overrides:
            return salary_data
        data = salary_data.model_dump()
    else:
        data = dict(salary_data or {})
    data.update(overrides)
    return SalaryInput.model_validate(data)

def calculate_complete_salary(salary_data: SalaryData = None, **overrides) -> SalaryBreakdown:
    """Compute the full monthly breakdown for a basic salary and allowances.

    ``salary_data`` may be a ``SalaryInput`` or a mapping using either
    snake_case or camelCase keys, e.g. ``{"basicSalary": 50000,
    "allowances": {"housing": 10000}}``. Keyword arguments override it.

    NHIF, NSSF and the housing levy are charged on gross. PAYE is charged
    on gross less NSSF and the levy; NHIF is not deducted from the PAYE base.
    """
    salary_input = _to_input(salary_data, overrides)
    basic_salary = guard_amount(salary_input.basic_salary)
    allowances = Allowances(**{
        name: guard_amount(getattr(salary_input.allowances, name)) for name in ALLOWANCE_FIELDS
    })

    total_allowances = allowances.total
    gross_salary = basic_salary + total_allowances

    nhif = calculate_nhif(gross_salary)
    nssf = calculate_nssf(gross_salary)
    housing_levy = calculate_housing_levy(gross_salary)

    taxable_income = gross_salary - nssf - housing_levy
    paye = calculate_paye(taxable_income)

    deductions = Deductions(nhif=nhif, nssf=nssf, housing_levy=housing_levy, paye=paye)
    total_deductions = deductions.total

    return SalaryBreakdown(
        basic_salary=basic_salary,
        allowances=allowances,
        total_allowances=total_allowances,
        gross_salary=gross_salary,
        taxable_income=taxable_income,
        deductions=deductions,
        total_deductions=total_deductions,
        net_salary=round_half_up(gross_salary - total_deductions),
    )

def summarize_breakdown(breakdown: SalaryBreakdown) -> SalarySummary:
    allowances = breakdown.allowances
    deductions = breakdown.deductions
    return SalarySummary(
        earnings=[
            LineItem(label="Basic Salary", amount=breakdown.basic_salary, code="BASIC"),
            LineItem(label="Housing Allowance", amount=allowances.housing, code="HOUSING"),
            LineItem(label="Transport Allowance", amount=allowances.transport, code="TRANSPORT"),
            LineItem(label="Medical Allowance", amount=allowances.medical, code="MEDICAL"),
            LineItem(label="Other Allowances", amount=allowances.other, code="OTHER"),
        ],
        gross_salary=breakdown.gross_salary,
        deductions=[
            LineItem(label="NHIF", amount=deductions.nhif, code="NHIF",
                     description="National Hospital Insurance Fund"),
            LineItem(label="NSSF", amount=deductions.nssf, code="NSSF",
                     description="National Social Security Fund"),
            LineItem(label="Housing Levy", amount=deductions.housing_levy, code="HOUSING_LEVY",
                     description="Affordable Housing Levy (1.5%)"),
            LineItem(label="PAYE", amount=deductions.paye, code="PAYE",
                     description="Pay As You Earn Tax"),
        ],
        total_deductions=breakdown.total_deductions,
        net_salary=breakdown.net_salary,
    )

def get_salary_summary(salary_data: SalaryData = None, **overrides) -> SalarySummary:
    return summarize_breakdown(calculate_complete_salary(salary_data, **overrides))
