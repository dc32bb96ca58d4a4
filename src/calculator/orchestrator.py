"""
Return orchestrator.

Runs the federal engine, then each configured state in the filer's order,
then validation, all against one fresh trace graph per run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from calculator.engine import FederalTaxEngine, Form1040Result
from calculator.state import NO_INCOME_TAX_STATES, StateComputeResult, StateTaxEngine, supported_states
from calculator.traced_value import TraceGraph, TraceGraphBuilder
from calculator.validation import TaxReturnValidator, ValidationItem
from config.logging_config import ComputationLogger
from config.settings import get_settings
from models.tax_return import TaxReturn

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReturnComputation:
    """Everything one run produces. ``values`` is the merged, frozen trace graph."""
    form1040: Form1040Result
    state_results: Tuple[StateComputeResult, ...]
    values: TraceGraph
    executed_schedules: Tuple[str, ...]
    validation_items: Tuple[ValidationItem, ...]

    def state_result(self, state_code: str) -> Optional[StateComputeResult]:
        code = state_code.upper()
        for result in self.state_results:
            if result.state_code == code:
                return result
        return None

    def explain(self, node_id: str) -> str:
        return self.values.explain(node_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "form1040": self.form1040.to_dict(),
            "state_results": [s.to_dict() for s in self.state_results],
            "values": self.values.to_dict(),
            "executed_schedules": list(self.executed_schedules),
            "validation_items": [v.to_dict() for v in self.validation_items],
        }


class ReturnOrchestrator:
    """
    Sequences the federal return, the state returns and validation.

    State calculators only read the federal result and their own config, so
    each state sees the same federal inputs regardless of order; the order
    only determines the order of ``state_results``.
    """

    def __init__(
        self,
        federal_engine: Optional[FederalTaxEngine] = None,
        validator: Optional[TaxReturnValidator] = None,
    ):
        self.federal_engine = federal_engine or FederalTaxEngine()
        self.validator = validator

    def compute(self, tax_return: TaxReturn) -> ReturnComputation:
        settings = get_settings()
        run_log = ComputationLogger(tax_return.tax_year, tax_return.filing_status.value)
        run_log.start(tax_return.model_dump(mode="json"))

        trace = TraceGraphBuilder(debug_logging=settings.trace_debug_logging)
        form1040 = self.federal_engine.compute(tax_return, trace)
        run_log.phase("federal", line11=form1040.agi, line24=form1040.total_tax)

        state_engine = StateTaxEngine(tax_return.tax_year)
        state_results: List[StateComputeResult] = []
        for state_config in tax_return.state_returns:
            result = state_engine.compute(tax_return, form1040, state_config, trace)
            if result is not None:
                state_results.append(result)
                run_log.phase(
                    f"state:{result.state_code}",
                    overpaid=result.overpaid,
                    amount_owed=result.amount_owed,
                )

        executed = list(form1040.executed_schedules) + [s.form_label for s in state_results]

        validator = self.validator or TaxReturnValidator(
            set(supported_states(tax_return.tax_year)) | NO_INCOME_TAX_STATES
        )
        items = tuple(dict.fromkeys(validator.validate(tax_return, form1040)))

        values = trace.freeze()
        run_log.finish(form1040.refund, form1040.amount_owed, len(values), len(state_results))
        return ReturnComputation(
            form1040=form1040,
            state_results=tuple(state_results),
            values=values,
            executed_schedules=tuple(executed),
            validation_items=items,
        )


def compute_return(tax_return: TaxReturn) -> ReturnComputation:
    """Compute the federal return, every configured state return and validation items."""
    return ReturnOrchestrator().compute(tax_return)
