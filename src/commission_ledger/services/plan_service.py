"""Individual plan store with whole-plan replace."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from commission_ledger.audit import Actor, AuditLog, FieldChange, IndividualPlanUpdated
from commission_ledger.calculators.types import (
    ZERO,
    LineItem,
    Period,
    PeriodStatistics,
    PlanInputs,
    to_money,
)
from commission_ledger.errors import InputValidationError, NotFoundError
from commission_ledger.models import IndividualPlan, PlanLineItem
from commission_ledger.providers.base import (
    PeriodStatisticsProvider,
    Representative,
    RepresentativeDirectory,
)

logger = logging.getLogger(__name__)


@dataclass
class PlanSummary:
    """A representative's plan and order statistics for a period."""

    representative: Representative
    salary: Decimal
    cancellation_deduction: Decimal
    line_items: list[LineItem] = field(default_factory=list)
    order_stats: PeriodStatistics = field(default_factory=PeriodStatistics)
    has_plan: bool = False


class IndividualPlanService:
    """Reads and replaces per-representative plans.

    Saving a plan keeps the plan row, deletes its line items and inserts the
    new list in the caller's transaction. Invalid input is rejected before
    any write.
    """

    def __init__(
        self,
        session: AsyncSession,
        directory: RepresentativeDirectory,
        statistics: PeriodStatisticsProvider | None = None,
    ):
        self.session = session
        self.directory = directory
        self.statistics = statistics
        self.audit = AuditLog(session)

    async def get_plan(self, representative_id: str, period: Period) -> IndividualPlan | None:
        result = await self.session.execute(
            select(IndividualPlan)
            .where(
                IndividualPlan.representative_id == representative_id,
                IndividualPlan.year == period.year,
                IndividualPlan.month == period.month,
            )
            .options(selectinload(IndividualPlan.line_items))
        )
        return result.scalar_one_or_none()

    async def get_plans_by_representative(self, period: Period) -> dict[str, IndividualPlan]:
        """All plans for a period keyed by representative id."""
        result = await self.session.execute(
            select(IndividualPlan)
            .where(IndividualPlan.year == period.year, IndividualPlan.month == period.month)
            .options(selectinload(IndividualPlan.line_items))
        )
        return {plan.representative_id: plan for plan in result.scalars().all()}

    async def get_plans_for_period(self, period: Period) -> list[PlanSummary]:
        """Every active representative with their plan (or a zero plan) and stats."""
        representatives = await self.directory.list_representatives(active_only=True)
        plans = await self.get_plans_by_representative(period)
        stats = (
            await self.statistics.get_period_statistics(period) if self.statistics else {}
        )

        summaries: list[PlanSummary] = []
        for rep in representatives:
            plan = plans.get(rep.representative_id)
            summaries.append(
                PlanSummary(
                    representative=rep,
                    salary=plan.salary if plan else ZERO,
                    cancellation_deduction=plan.cancellation_deduction if plan else ZERO,
                    line_items=[item.to_line_item() for item in plan.line_items] if plan else [],
                    order_stats=stats.get(rep.representative_id, PeriodStatistics()),
                    has_plan=plan is not None,
                )
            )
        return summaries

    async def set_individual_plan(
        self,
        representative_id: str,
        period: Period,
        *,
        salary: Any = None,
        cancellation_deduction: Any = None,
        line_items: Sequence[LineItem] = (),
        actor: Actor,
    ) -> IndividualPlan:
        """Replace a representative's plan for a period.

        ``salary`` and ``cancellation_deduction`` left as None keep their
        current value (zero for a new plan). Line items are always replaced.

        Raises:
            NotFoundError: If the representative is unknown.
            InputValidationError: If any amount or line item is invalid.
        """
        representative = await self.directory.get_representative(representative_id)
        if representative is None:
            raise NotFoundError("representative", representative_id)

        plan = await self.get_plan(representative_id, period)
        inputs = self._validated_inputs(plan, salary, cancellation_deduction, line_items)

        previous_line_item_count = 0
        changes: list[FieldChange] = []
        if plan is None:
            plan = IndividualPlan(
                representative_id=representative_id,
                month=period.month,
                year=period.year,
                line_items=[],
            )
            self.session.add(plan)
            before_salary = before_deduction = None
        else:
            previous_line_item_count = len(plan.line_items)
            before_salary = plan.salary
            before_deduction = plan.cancellation_deduction

        if before_salary is None or before_salary != inputs.salary:
            changes.append(FieldChange.of("salary", before_salary, inputs.salary))
        if before_deduction is None or before_deduction != inputs.cancellation_deduction:
            changes.append(
                FieldChange.of(
                    "cancellation_deduction", before_deduction, inputs.cancellation_deduction
                )
            )

        plan.salary = inputs.salary
        plan.cancellation_deduction = inputs.cancellation_deduction
        plan.updated_by_actor_id = actor.actor_id
        # Assigning a new collection deletes the old rows (delete-orphan)
        plan.line_items = [
            PlanLineItem(name=item.name, amount=item.amount, sort_order=index)
            for index, item in enumerate(inputs.line_items)
        ]
        await self.session.flush()

        await self.audit.record(
            actor,
            IndividualPlanUpdated(
                representative_id=representative_id,
                representative_name=representative.display_name,
                month=period.month,
                year=period.year,
                line_item_count=len(inputs.line_items),
                previous_line_item_count=previous_line_item_count,
                changes=tuple(changes),
            ),
        )
        logger.info(
            "Saved plan for %s %s: salary=%s deduction=%s line_items=%d",
            representative_id,
            period,
            inputs.salary,
            inputs.cancellation_deduction,
            len(inputs.line_items),
        )
        return plan

    @staticmethod
    def _validated_inputs(
        plan: IndividualPlan | None,
        salary: Any,
        cancellation_deduction: Any,
        line_items: Sequence[LineItem],
    ) -> PlanInputs:
        errors: list[str] = []

        def money(value: Any, current: Decimal | None, name: str) -> Decimal:
            if value is None:
                return current if current is not None else ZERO
            try:
                return to_money(value, name)
            except InputValidationError as exc:
                errors.extend(exc.errors)
                return ZERO

        new_salary = money(salary, plan.salary if plan else None, "salary")
        new_deduction = money(
            cancellation_deduction,
            plan.cancellation_deduction if plan else None,
            "cancellation_deduction",
        )

        items: list[LineItem] = []
        for index, item in enumerate(line_items):
            name = (item.name or "").strip()
            if item.amount is None:
                errors.append(f"line_items[{index}].amount is required")
                amount = ZERO
            else:
                amount = money(item.amount, None, f"line_items[{index}].amount")
            items.append(LineItem(name=name, amount=amount))

        inputs = PlanInputs(
            salary=new_salary,
            cancellation_deduction=new_deduction,
            line_items=tuple(items),
        )
        errors.extend(inputs.validate())
        if errors:
            raise InputValidationError(errors, subject="individual plan")
        return inputs
