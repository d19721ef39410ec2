"""A reporter for generating concise execution summaries."""

import logging

from markguard.match_state import UnitLifecycle
from markguard.models import ExecutionContext, Granularity

logger = logging.getLogger(__name__)


class SummaryReporter:
    """Generates a concise summary of an operation and logs it."""

    def generate(self, context: ExecutionContext) -> None:
        """Log a summary of the execution to the console."""
        if context.aborted:
            logger.info("Operation on '%s' stopped: %s.", context.document_name, context.abort_reason)
            return

        logger.info("--- Summary for '%s' (%s via %s) ---", context.document_name, context.target_lang, context.provider_name)

        if context.granularity is Granularity.CELL:
            units = context.units
            logger.info("Units processed: %d", len(units))
            for lifecycle in (UnitLifecycle.TRANSLATED, UnitLifecycle.SKIPPED, UnitLifecycle.FALLBACK):
                count = sum(1 for unit in units if unit.lifecycle is lifecycle)
                logger.info("  - %s: %d", lifecycle.value.capitalize(), count)
        elif context.document is not None:
            logger.info("Protected entries: %d", len(context.document.vault) + len(context.document.separators))

        report = context.report
        logger.info("Restored entries: %d", report.total_resolved)
        if report.used_fallback:
            levels = ", ".join(f"{level.name.lower()}={count}" for level, count in sorted(report.resolved.items()) if count)
            logger.info("  - By level: %s", levels)
        if report.shortfall:
            kinds = ", ".join(f"{kind.tag}={count}" for kind, count in report.unresolved_by_kind().items())
            logger.warning("Unresolved placeholders: %d (%s)", report.shortfall, kinds)
        if report.orphan_markers:
            logger.warning("Unmatched placeholder residues: %d", len(report.orphan_markers))

        repaired = [issue for issue in context.issues if issue.repaired]
        if repaired:
            logger.info("Table repairs: %d", len(repaired))
        if len(repaired) != len(context.issues):
            logger.warning("Table issues left as is: %d", len(context.issues) - len(repaired))

        if context.characters_used > 0:
            logger.info("Characters billed: %d", context.characters_used)
        logger.info("Written: %s", "yes" if context.written else "no")
        logger.info("-------------------------------------------------")
