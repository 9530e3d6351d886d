"""output formatters for contract inventories: text, json"""

from enum import Enum
from typing import Protocol, Dict, Any, List
import json
from datetime import datetime

from src.compiler.contract_resolver import dependency_order
from src.compiler.pipeline import ExtractionResult, RootExtraction
from src.models.contest import Contest
from src.models.contracts import Contract


class OutputFormat(Enum):
    """supported output formats"""
    TEXT = "text"
    JSON = "json"


class OutputFormatter(Protocol):
    """protocol for output formatters"""
    def format_extraction(self, result: ExtractionResult) -> str:
        ...

    def format_contests(self, contests: List[Contest]) -> str:
        ...


def root_to_dict(root: RootExtraction) -> Dict[str, Any]:
    data = {
        "path": str(root.project_root.path),
        "project_type": root.project_root.project_type.value,
        "duration_seconds": round(root.duration_seconds, 3),
        "contracts": [c.to_dict() for c in root.contracts],
    }
    if root.import_graph is not None:
        data["build_order"] = [str(p) for p in dependency_order(root.import_graph)]
    return data


def extraction_to_dict(result: ExtractionResult) -> Dict[str, Any]:
    return {
        "repo_dir": str(result.repo_dir),
        "success": result.success,
        "roots": [root_to_dict(root) for root in result.roots],
        "failures": [
            {
                "path": str(failure.project_root.path),
                "project_type": failure.project_root.project_type.value,
                "error_type": failure.error_type,
                "error_message": str(failure.error),
            }
            for failure in result.failures
        ],
    }


class TextFormatter:
    """human-readable text output (default terminal format)"""

    def _contract_lines(self, contracts: List[Contract], indent: str = "  ") -> List[str]:
        lines = []
        for i, contract in enumerate(contracts, 1):
            kind = "interface" if contract.kind.is_interface else "contract"
            unlinked = " (unlinked libraries)" if contract.kind.needs_linking else ""
            lines.append(f"{indent}{i}. {contract.name} [{kind}] solc {contract.version}{unlinked}")
            if contract.source_file:
                lines.append(f"{indent}   Source: {contract.source_file}")
            if contract.imported_contracts:
                imported = ", ".join(c.name for c in contract.imported_contracts)
                lines.append(f"{indent}   Imports: {imported}")
        return lines

    def format_extraction(self, result: ExtractionResult) -> str:
        lines = []

        lines.append("=" * 80)
        lines.append("EXTRACTION SUCCESSFUL" if result.success else "EXTRACTION FINISHED WITH FAILURES")
        lines.append("=" * 80)
        lines.append(f"Repository: {result.repo_dir}")
        lines.append(f"Build Roots: {len(result.roots) + len(result.failures)}")
        lines.append(f"Contracts: {len(result.contracts)}")

        for root in result.roots:
            lines.append(f"\n{root.project_root.path} ({root.project_root.project_type.value}, "
                         f"{root.duration_seconds:.1f}s)")
            if not root.contracts:
                lines.append("  (no contracts)")
            lines.extend(self._contract_lines(root.contracts))
            if root.import_graph is not None:
                lines.append("  Build order:")
                for path in dependency_order(root.import_graph):
                    lines.append(f"    {path}")

        if result.failures:
            lines.append("\nFAILED ROOTS:")
            for failure in result.failures:
                lines.append(f"  - {failure}")

        lines.append("=" * 80)
        return "\n".join(lines)

    def format_contests(self, contests: List[Contest]) -> str:
        lines = []
        for contest in contests:
            lines.append("=" * 80)
            lines.append(f"Contest: {contest.name} ({contest.status.value})")
            if contest.repo_uri:
                lines.append(f"Repository: {contest.repo_uri}")
            lines.append(f"Contracts: {len(contest.contracts)}")
            lines.extend(self._contract_lines(contest.contracts))
        lines.append("=" * 80)
        return "\n".join(lines)


class JSONFormatter:
    """json output for programmatic consumption"""

    def format_extraction(self, result: ExtractionResult) -> str:
        data = extraction_to_dict(result)
        data["generated_at"] = datetime.now().isoformat()
        return json.dumps(data, indent=2)

    def format_contests(self, contests: List[Contest]) -> str:
        return json.dumps({
            "generated_at": datetime.now().isoformat(),
            "contests": [c.to_dict() for c in contests],
        }, indent=2)


def get_formatter(format_type: OutputFormat) -> OutputFormatter:
    formatters = {
        OutputFormat.TEXT: TextFormatter(),
        OutputFormat.JSON: JSONFormatter(),
    }
    return formatters[format_type]
