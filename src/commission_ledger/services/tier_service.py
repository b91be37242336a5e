"""Office tier schedule store with whole-schedule replace."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from decimal import Decimal

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_ledger.audit import Actor, AuditLog, OfficeTiersUpdated
from commission_ledger.calculators.types import (
    BonusForm,
    Period,
    TierBracket,
    TierMetric,
    to_decimal,
)
from commission_ledger.errors import InputValidationError
from commission_ledger.models import CommissionTier

logger = logging.getLogger(__name__)

# Column scale of commission_tier thresholds and bonus amounts.
TIER_DECIMAL_PLACES = 4
THRESHOLD_LIMIT = Decimal("1e10")
BONUS_LIMIT = Decimal("1e8")


class TierScheduleService:
    """Reads and replaces office tier schedules.

    A schedule is saved as a whole: every row for the office and period is
    deleted and the new set inserted in the caller's transaction, so readers
    never see a partial schedule. Invalid input is rejected before any write.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditLog(session)

    async def get_office_tiers(self, office: str, period: Period) -> list[CommissionTier]:
        """Tiers for an office and period, in sort order."""
        result = await self.session.execute(
            select(CommissionTier)
            .where(
                CommissionTier.office == office,
                CommissionTier.year == period.year,
                CommissionTier.month == period.month,
            )
            .order_by(CommissionTier.sort_order, CommissionTier.min_value)
        )
        return list(result.scalars().all())

    async def get_tiers_by_office(self, period: Period) -> dict[str, list[TierBracket]]:
        """All offices' tier brackets for a period."""
        result = await self.session.execute(
            select(CommissionTier)
            .where(CommissionTier.year == period.year, CommissionTier.month == period.month)
            .order_by(CommissionTier.office, CommissionTier.sort_order)
        )
        by_office: dict[str, list[TierBracket]] = {}
        for tier in result.scalars().all():
            by_office.setdefault(tier.office, []).append(tier.to_bracket())
        return by_office

    async def set_office_tiers(
        self,
        office: str,
        period: Period,
        tiers: Sequence[TierBracket],
        actor: Actor,
    ) -> list[CommissionTier]:
        """Replace an office's tier schedule for a period.

        Raises:
            InputValidationError: If the office or any tier is invalid; the
                existing schedule is left untouched.
        """
        brackets = self.validate_tiers(office, tiers)

        existing = await self.get_office_tiers(office, period)
        await self.session.execute(
            delete(CommissionTier).where(
                CommissionTier.office == office,
                CommissionTier.year == period.year,
                CommissionTier.month == period.month,
            )
        )

        rows = [
            CommissionTier(
                office=office,
                month=period.month,
                year=period.year,
                metric=bracket.metric.value,
                min_value=bracket.min_value,
                max_value=bracket.max_value,
                bonus_amount=bracket.bonus_amount,
                bonus_form=bracket.bonus_form.value,
                sort_order=index,
            )
            for index, bracket in enumerate(brackets)
        ]
        self.session.add_all(rows)
        await self.session.flush()

        await self.audit.record(
            actor,
            OfficeTiersUpdated(
                office=office,
                month=period.month,
                year=period.year,
                tier_count=len(rows),
                previous_tier_count=len(existing),
                tiers=tuple(bracket.to_dict() for bracket in brackets),
            ),
        )
        logger.info(
            "Replaced %d tier(s) for %s %s with %d tier(s)",
            len(existing),
            office,
            period,
            len(rows),
        )
        return rows

    @staticmethod
    def validate_tiers(office: str, tiers: Sequence[TierBracket]) -> list[TierBracket]:
        """Validate and normalize a tier set.

        Returns normalized brackets with sort_order set to list position.

        Raises:
            InputValidationError: Listing every violated constraint.
        """
        errors: list[str] = []
        brackets: list[TierBracket] = []

        if not office or not office.strip():
            errors.append("office is required")

        for index, tier in enumerate(tiers):
            prefix = f"tiers[{index}]"
            tier_errors: list[str] = []

            try:
                metric = TierMetric(tier.metric)
            except ValueError:
                tier_errors.append(f"{prefix}.metric must be one of units_sold, order_total")
                metric = None
            try:
                bonus_form = BonusForm(tier.bonus_form)
            except ValueError:
                tier_errors.append(f"{prefix}.bonus_form must be one of flat, percentage")
                bonus_form = None

            min_value = _checked_decimal(
                tier.min_value, f"{prefix}.min_value", tier_errors, THRESHOLD_LIMIT
            )
            max_value = (
                None
                if tier.max_value is None
                else _checked_decimal(
                    tier.max_value, f"{prefix}.max_value", tier_errors, THRESHOLD_LIMIT
                )
            )
            bonus_amount = _checked_decimal(
                tier.bonus_amount, f"{prefix}.bonus_amount", tier_errors, BONUS_LIMIT
            )

            if min_value is not None and min_value < 0:
                tier_errors.append(f"{prefix}.min_value must be >= 0")
            if min_value is not None and max_value is not None and max_value <= min_value:
                tier_errors.append(f"{prefix}.max_value must be greater than min_value")
            if bonus_amount is not None and bonus_amount < 0:
                tier_errors.append(f"{prefix}.bonus_amount must be >= 0")

            if tier_errors:
                errors.extend(tier_errors)
                continue

            brackets.append(
                TierBracket(
                    metric=metric,
                    min_value=min_value,
                    max_value=max_value,
                    bonus_amount=bonus_amount,
                    bonus_form=bonus_form,
                    sort_order=index,
                )
            )

        if errors:
            raise InputValidationError(errors, subject="tier schedule")
        return brackets


def _checked_decimal(
    value: object, name: str, errors: list[str], limit: Decimal
) -> Decimal | None:
    """Parse a tier value that must fit its column exactly."""
    try:
        amount = to_decimal(value, name)
    except InputValidationError as exc:
        errors.extend(exc.errors)
        return None
    if _decimal_places(amount) > TIER_DECIMAL_PLACES:
        errors.append(f"{name} must have at most {TIER_DECIMAL_PLACES} decimal places")
        return None
    if abs(amount) >= limit:
        errors.append(f"{name} must be less than {limit:,f}")
        return None
    return amount


def _decimal_places(amount: Decimal) -> int:
    _, digits, exponent = amount.as_tuple()
    significant = "".join(map(str, digits)).rstrip("0")
    if not significant:
        return 0
    return max(0, -(exponent + len(digits) - len(significant)))
