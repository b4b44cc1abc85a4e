"""Final feasibility report for a finished market."""

from __future__ import annotations

import logging

from echelon_core.advisory import PRIORITY_REPORT, AdvisoryGateway
from echelon_core.advisory.schemas import FEASIBILITY_REPORT_SCHEMA, FeasibilityReport
from echelon_core.models import MarketState

from .fallback import fallback_report
from .prompts import build_report_prompt

logger = logging.getLogger(__name__)


class ReportSynthesizer:
    def __init__(self, gateway: AdvisoryGateway):
        self.gateway = gateway

    async def synthesize(self, state: MarketState) -> FeasibilityReport:
        """Ask for the report at the highest priority; never raises for advisory failures."""
        result = await self.gateway.call(
            build_report_prompt(state),
            priority=PRIORITY_REPORT,
            response_schema=FEASIBILITY_REPORT_SCHEMA,
            response_model=FeasibilityReport,
        )
        if not result.ok:
            logger.warning("Using fallback report: %s", result.message)
            return fallback_report()
        return result.parsed
