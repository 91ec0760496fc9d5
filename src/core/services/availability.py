"""Lock-free availability checks against the lot ledger."""

from collections.abc import Iterable, Mapping
from typing import Any

from src.config import get_logger
from src.core.entities.allocation import (
    AvailabilityDetail,
    AvailabilityReport,
    MaterialRequirement,
    normalize_requirements,
)
from src.core.entities.lot import EPSILON
from src.core.exceptions import ValidationError
from src.core.interfaces.material_store import IMaterialStore
from src.core.services.lot_ledger import LotLedger

logger = get_logger(__name__)


class AvailabilityChecker:
    """
    Report whether requested weights could be allocated right now.

    Reads are taken without the allocation locks, so a report is a snapshot
    and may already be stale when an allocation follows it.
    """

    def __init__(self, ledger: LotLedger, material_store: IMaterialStore):
        self._ledger = ledger
        self._material_store = material_store

    async def check_availability(
        self,
        requirements: Iterable[MaterialRequirement | Mapping[str, Any]],
    ) -> AvailabilityReport:
        normalized = normalize_requirements(requirements)
        if not normalized:
            raise ValidationError("requirements", "at least one requirement is required")

        report = AvailabilityReport()
        for requirement in normalized:
            detail = await self._check_material(requirement)
            report.materials.append(detail)
            report.all_available = report.all_available and detail.is_available
            report.all_sufficient = report.all_sufficient and detail.is_sufficient

        logger.debug(
            "availability_checked",
            materials=len(report.materials),
            all_sufficient=report.all_sufficient,
        )
        return report

    async def _check_material(self, requirement: MaterialRequirement) -> AvailabilityDetail:
        material = await self._material_store.get_material(requirement.material_id)
        lots = await self._ledger.list_active_lots(requirement.material_id)

        total_remaining = sum(lot.remaining_quantity.weight for lot in lots)
        total_allocated = sum(lot.allocated_quantity.weight for lot in lots)
        total_available = total_remaining - total_allocated

        if requirement.required_weight > 0:
            is_sufficient = total_available + EPSILON >= requirement.required_weight
        else:
            is_sufficient = total_available > 0

        return AvailabilityDetail(
            material_id=requirement.material_id,
            material_name=material.name if material else (requirement.material_name or "Unknown"),
            category=material.category.value if material else "",
            required_weight=requirement.required_weight,
            total_remaining=total_remaining,
            total_allocated=total_allocated,
            total_available=total_available,
            lot_count=len(lots),
            is_available=total_available > 0,
            is_sufficient=is_sufficient,
        )
