"""
Kenyan statutory deductions: PAYE, NHIF, NSSF and the Affordable Housing Levy.
Rates and bands live in ``Settings`` so a new Finance Act only touches config.
"""
from hrledger.core.config import settings
from hrledger.core.utils import guard_amount, round_half_up

MONTHS_PER_YEAR = 12

def annual_paye(annual_taxable: float) -> float:
    """Gross annual tax before relief, folded over the marginal bands."""
    bands = settings.PAYE_ANNUAL_BANDS
    tax = 0.0
    prev_limit = 0.0
    for i, (limit, rate) in enumerate(bands):
        # last band is open-ended, so NaN still reaches a rate and propagates
        if annual_taxable <= limit or i == len(bands) - 1:
            tax += (annual_taxable - prev_limit) * rate
            break
        tax += (limit - prev_limit) * rate
        prev_limit = limit
    return tax

def calculate_paye(monthly_amount: float) -> int:
    monthly_amount = guard_amount(monthly_amount)
    tax = annual_paye(monthly_amount * MONTHS_PER_YEAR) - settings.PERSONAL_RELIEF_ANNUAL
    if tax < 0:
        tax = 0
    return round_half_up(tax / MONTHS_PER_YEAR)

def calculate_nhif(monthly_gross_salary: float) -> int:
    monthly_gross_salary = guard_amount(monthly_gross_salary)
    for limit, contrib in settings.NHIF_BANDS:
        if monthly_gross_salary <= limit:
            return contrib
    return settings.NHIF_BANDS[-1][1]

def calculate_nssf(monthly_gross_salary: float) -> int:
    monthly_gross_salary = guard_amount(monthly_gross_salary)
    tier1_limit = settings.NSSF_TIER_1_UPPER
    tier2_limit = settings.NSSF_TIER_2_UPPER
    rate = settings.NSSF_RATE
    tier2 = 0
    if monthly_gross_salary <= tier1_limit:
        tier1 = monthly_gross_salary * rate
    else:
        tier1 = tier1_limit * rate
        tier2 = min(monthly_gross_salary - tier1_limit, tier2_limit - tier1_limit) * rate
    return round_half_up(tier1 + tier2)

def calculate_housing_levy(monthly_gross_salary: float) -> int:
    monthly_gross_salary = guard_amount(monthly_gross_salary)
    return round_half_up(monthly_gross_salary * settings.HOUSING_LEVY_RATE)
