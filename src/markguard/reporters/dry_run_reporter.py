"""A reporter for generating dry-run execution summaries."""

import logging

from markguard import paths
from markguard.models import ExecutionContext, Granularity
from markguard.pipeline import ProtectedDocument

logger = logging.getLogger(__name__)


class DryRunReporter:
    """Generates a detailed Markdown report for a dry-run execution."""

    def generate(self, context: ExecutionContext) -> None:
        """
        Create a Markdown file with a summary of the dry run.

        Args:
            context: The execution context containing all run information.

        """
        if context.aborted:
            logger.info("[DRY RUN] Operation stopped (%s). No report generated.", context.abort_reason)
            return

        report_path = None
        try:
            report_dir = paths.get_report_dir(context.project_root)
            paths.ensure_dir_exists(report_dir)
            report_path = report_dir / f"{context.document_name}_dry_run.md"
            logger.info("Generating dry-run report at: %s", report_path)

            report_content = self._build_report_content(context)

            with report_path.open("w", encoding="utf-8") as f:
                f.write(report_content)
            logger.info("Successfully wrote dry-run report to %s", report_path)
        except FileNotFoundError:
            logger.exception("Could not generate dry-run report because the project root could not be determined.")
        except OSError:
            logger.exception("Failed to write dry-run report to %s", report_path)

    def _build_report_content(self, context: ExecutionContext) -> str:
        """Construct the full Markdown content for the report."""
        parts = [
            self._build_header(context),
            self._build_inventory(context),
            self._build_restoration(context),
            self._build_protected_text(context),
        ]
        return "\n".join(parts)

    def _build_header(self, context: ExecutionContext) -> str:
        """Build the main header and overview section of the report."""
        return (
            f"# Dry Run Report for `{context.document_name}`\n\n"
            "This report simulates the operation with an identity transform. No backend was called and nothing was written.\n\n"
            "## 📝 Overview\n\n"
            f"- **Target Language:** `{context.target_lang}`\n"
            f"- **Provider:** `{context.provider_name}`\n"
            f"- **Scope:** `{context.scope.value}`\n"
            f"- **Granularity:** `{context.granularity.value}`\n"
            f"- **Characters Captured:** {len(context.source_text)}\n"
            f"- **Round Trip Identical:** `{'Yes' if context.final_text == context.source_text else 'No'}`\n"
        )

    def _documents(self, context: ExecutionContext) -> list[ProtectedDocument]:
        if context.granularity is Granularity.CELL:
            return [document for _, document in context.unit_documents]
        return [context.document] if context.document else []

    def _build_inventory(self, context: ExecutionContext) -> str:
        """Build the span inventory section."""
        totals: dict[str, int] = {}
        examples: dict[str, str] = {}
        for document in self._documents(context):
            for kind, count in document.inventory().items():
                totals[kind.tag] = totals.get(kind.tag, 0) + count
            for span in document.spans:
                examples.setdefault(span.kind.tag, span.original_text)

        if not totals:
            return "## 🛡️ Protected Spans\n\nNothing needed protection.\n"

        rows = "".join(f"| `{tag}` | {count} | `{self._escape_markdown(examples.get(tag, ''))}` |\n" for tag, count in totals.items())
        return f"## 🛡️ Protected Spans\n\n| Kind | Count | Example |\n|---|---|---|\n{rows}"

    def _build_restoration(self, context: ExecutionContext) -> str:
        """Build the restoration diagnostics section."""
        report = context.report
        lines = [f"- **Restored Entries:** {report.total_resolved}", f"- **Unresolved Entries:** {report.shortfall}"]
        lines.extend(f"- **Table Issue (line {issue.line_number}):** {issue.message}" for issue in context.issues)
        return "## 🔄 Restoration\n\n" + "\n".join(lines) + "\n"

    def _build_protected_text(self, context: ExecutionContext) -> str:
        """Build the section showing exactly what the backend would receive."""
        if context.granularity is Granularity.CELL:
            items = [document.safe_text for unit, document in context.unit_documents if unit.text.strip()]
            body = "\n".join(f"- `{self._escape_markdown(text)}`" for text in items) or "No units would be sent."
            return f"## 🚀 Text Sent to the Backend (Simulated)\n\n**{len(items)}** units would be sent:\n\n{body}\n"

        safe_text = context.document.safe_text if context.document else ""
        return f"## 🚀 Text Sent to the Backend (Simulated)\n\n````text\n{safe_text}\n````\n"

    def _escape_markdown(self, text: str) -> str:
        """Escapes characters that have special meaning in Markdown."""
        return text.replace("|", "\\|").replace("\n", " ")
