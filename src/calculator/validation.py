"""
Post-computation review of a return.

Checks run after the federal computation and report items for the preparer;
they never change an amount. ``TaxReturnValidator.validate`` does not raise:
a failing check is logged and skipped so one bad rule cannot hide the rest.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional

from calculator.decimal_math import format_money, sum_cents
from calculator.engine import Form1040Result
from models.tax_return import TaxReturn
from models.taxpayer import FilingStatus

logger = logging.getLogger(__name__)

# 1099-MISC other income over $600 may be nonemployee pay
POSSIBLE_SE_INCOME_THRESHOLD = 60000


class ValidationSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class ValidationItem:
    code: str
    severity: ValidationSeverity
    message: str
    irs_citation: Optional[str] = None
    category: str = "general"

    def to_dict(self) -> dict:
        data = asdict(self)
        data["severity"] = self.severity.value
        return data


Check = Callable[[TaxReturn, Form1040Result], Iterable[ValidationItem]]


class TaxReturnValidator:
    """
    Runs every review check against a computed return.

    Args:
        supported_states: State codes that have a calculator; any other
            configured state is reported as unsupported. ``None`` skips the
            state check.
    """

    def __init__(self, supported_states: Optional[Iterable[str]] = None):
        self.supported_states = set(supported_states) if supported_states is not None else None
        self.checks: List[Check] = [
            self._check_self_employment_income,
            self._check_mfs_social_security,
            self._check_early_withdrawal_penalty,
            self._check_premium_tax_credit,
            self._check_dividends,
            self._check_schedule_b,
            self._check_hsa_excess,
            self._check_states,
            self._check_dependent_ssns,
            self._check_home_office_carryforward,
        ]

    def validate(self, tax_return: TaxReturn, form1040: Form1040Result) -> List[ValidationItem]:
        items: List[ValidationItem] = []
        for check in self.checks:
            try:
                items.extend(check(tax_return, form1040))
            except Exception:
                logger.exception("Validation check %s failed", getattr(check, "__name__", check))
        logger.debug("Validation produced %d items", len(items))
        return items

    # -- income ---------------------------------------------------------------

    def _check_self_employment_income(self, r: TaxReturn, f: Form1040Result) -> Iterable[ValidationItem]:
        other = sum_cents(m.box3_other_income for m in r.form1099_misc)
        if other > POSSIBLE_SE_INCOME_THRESHOLD and not r.schedule_c_businesses:
            yield ValidationItem(
                code="POSSIBLE_SE_INCOME",
                severity=ValidationSeverity.INFO,
                message=(
                    f"1099-MISC other income of {format_money(other)} is reported on Schedule 1 line 8z. "
                    "If it is pay for services, report it on Schedule C and Schedule SE instead."
                ),
                irs_citation="Schedule 1 instructions, line 8z",
                category="income",
            )

    def _check_mfs_social_security(self, r: TaxReturn, f: Form1040Result) -> Iterable[ValidationItem]:
        if r.filing_status == FilingStatus.MARRIED_SEPARATE and f.line6a.amount > 0:
            yield ValidationItem(
                code="MFS_SS_BENEFITS",
                severity=ValidationSeverity.WARNING,
                message=(
                    "Married filing separately: the base amount is $0, which applies if you lived with "
                    "your spouse at any time during the year. Up to 85% of benefits are taxable."
                ),
                irs_citation="Pub 915, Social Security Benefits Worksheet",
                category="income",
            )

    def _check_early_withdrawal_penalty(self, r: TaxReturn, f: Form1040Result) -> Iterable[ValidationItem]:
        penalty = sum_cents(i.box2_early_withdrawal_penalty for i in r.form1099_int)
        if penalty:
            yield ValidationItem(
                code="EARLY_WITHDRAWAL_PENALTY",
                severity=ValidationSeverity.INFO,
                message=f"Early withdrawal penalty of {format_money(penalty)} deducted on Schedule 1 line 18.",
                irs_citation="Schedule 1, line 18",
                category="deductions",
            )

    def _check_dividends(self, r: TaxReturn, f: Form1040Result) -> Iterable[ValidationItem]:
        for d in r.form1099_div:
            if d.box1b_qualified_dividends > d.box1a_ordinary_dividends:
                yield ValidationItem(
                    code="QUALIFIED_DIVIDENDS_EXCEED_ORDINARY",
                    severity=ValidationSeverity.ERROR,
                    message=(
                        f"1099-DIV {d.id}: qualified dividends ({format_money(d.box1b_qualified_dividends)}) "
                        f"exceed ordinary dividends ({format_money(d.box1a_ordinary_dividends)})."
                    ),
                    irs_citation="Form 1099-DIV instructions, box 1b",
                    category="income",
                )

    def _check_schedule_b(self, r: TaxReturn, f: Form1040Result) -> Iterable[ValidationItem]:
        if "Schedule B" in f.executed_schedules:
            yield ValidationItem(
                code="SCHEDULE_B_REQUIRED",
                severity=ValidationSeverity.INFO,
                message="Taxable interest or ordinary dividends exceed $1,500; Schedule B must be filed.",
                irs_citation="Schedule B instructions",
                category="income",
            )

    # -- credits and accounts ------------------------------------------------

    def _check_premium_tax_credit(self, r: TaxReturn, f: Form1040Result) -> Iterable[ValidationItem]:
        ptc = f.premium_tax_credit
        if ptc is None:
            return
        if r.filing_status == FilingStatus.MARRIED_SEPARATE:
            yield ValidationItem(
                code="PTC_MFS_INELIGIBLE",
                severity=ValidationSeverity.WARNING,
                message=(
                    "Married filing separately generally cannot claim the premium tax credit; "
                    f"advance payments of {format_money(ptc.total_advance_ptc)} are reconciled as a repayment."
                ),
                irs_citation="Form 8962 instructions, Married Filing Separately",
                category="credits",
            )
            return
        yield ValidationItem(
            code="PTC_RECONCILED",
            severity=ValidationSeverity.INFO,
            message=(
                f"Premium tax credit {format_money(ptc.annual_credit)} reconciled against advance payments of "
                f"{format_money(ptc.total_advance_ptc)}: net credit {format_money(ptc.net_premium_tax_credit)}, "
                f"repayment {format_money(ptc.excess_advance_repayment)}."
            ),
            irs_citation="Form 8962",
            category="credits",
        )

    def _check_hsa_excess(self, r: TaxReturn, f: Form1040Result) -> Iterable[ValidationItem]:
        hsa = f.hsa
        if hsa is not None and hsa.excess_contributions > 0:
            yield ValidationItem(
                code="HSA_EXCESS_CONTRIBUTION",
                severity=ValidationSeverity.WARNING,
                message=(
                    f"HSA contributions exceed the {format_money(hsa.contribution_limit)} limit by "
                    f"{format_money(hsa.excess_contributions)}; a 6% excise tax applies unless withdrawn "
                    "before the filing deadline."
                ),
                irs_citation="Form 5329, Part VII",
                category="deductions",
            )

    # -- states ---------------------------------------------------------------

    def _check_states(self, r: TaxReturn, f: Form1040Result) -> Iterable[ValidationItem]:
        for state in r.state_returns:
            code = state.state_code
            if self.supported_states is not None and code not in self.supported_states:
                yield unsupported_state_item(code)
            if code == "KY" and any(d.box2a_taxable_amount for d in r.form1099_r):
                yield ValidationItem(
                    code="KY_PENSION_EXCLUSION_APPROXIMATION",
                    severity=ValidationSeverity.INFO,
                    message=(
                        "The Kentucky pension income exclusion is applied once to the whole return. "
                        "On a joint return each spouse may exclude up to $31,110 of their own pension income."
                    ),
                    irs_citation="KY Schedule P",
                    category="state",
                )

    # -- dependents and business ---------------------------------------------

    def _check_dependent_ssns(self, r: TaxReturn, f: Form1040Result) -> Iterable[ValidationItem]:
        for dependent in r.dependents:
            if not dependent.has_valid_ssn:
                name = f"{dependent.first_name} {dependent.last_name}".strip() or dependent.relationship
                yield ValidationItem(
                    code="MISSING_DEPENDENT_SSN",
                    severity=ValidationSeverity.WARNING,
                    message=(
                        f"Dependent {name} has no valid SSN; the child tax credit and EIC "
                        "cannot be claimed for them."
                    ),
                    irs_citation="Schedule 8812 instructions",
                    category="dependents",
                )

    def _check_home_office_carryforward(self, r: TaxReturn, f: Form1040Result) -> Iterable[ValidationItem]:
        for business in f.schedule_c:
            office = business.home_office
            if office is not None and office.carryforward > 0:
                yield ValidationItem(
                    code="HOME_OFFICE_CARRYFORWARD",
                    severity=ValidationSeverity.INFO,
                    message=(
                        f"{business.business_name or business.business_id}: {format_money(office.carryforward)} "
                        "of home office expenses exceed the income limit and carry forward to next year."
                    ),
                    irs_citation="Form 8829, lines 43-44",
                    category="business",
                )


def unsupported_state_item(state_code: str) -> ValidationItem:
    return ValidationItem(
        code="UNSUPPORTED_STATE",
        severity=ValidationSeverity.WARNING,
        message=f"No calculator is available for state {state_code}; its return was not computed.",
        category="state",
    )
