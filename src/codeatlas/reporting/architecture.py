"""Human-readable architecture summary (ARCHITECTURE.md)."""

from __future__ import annotations

from collections import Counter
from datetime import UTC, datetime

from codeatlas.config.constants import DEBT_THRESHOLD_HIGH, DEBT_THRESHOLD_VERY_HIGH
from codeatlas.index._internal.db.schema import COMPONENT_SEED
from codeatlas.index.models import ComplexityEntry, DependencyEdge, RepositoryMetrics
from codeatlas.index.store import RepositoryStore

KEY_FILES_PER_COMPONENT = 5
TOP_DEPENDENCIES = 5
TOP_COMPLEX_FILES = 10


def format_top_dependencies(dependencies: list[DependencyEdge]) -> str:
    counts = Counter(dep.from_file for dep in dependencies if dep.from_file)
    top = sorted(counts.items(), key=lambda item: (-item[1], item[0]))[:TOP_DEPENDENCIES]
    if not top:
        return "No dependencies found."
    return "\n".join(f"- **{path}** depends on {count} other files" for path, count in top)


def identify_technical_debt(complexity: list[ComplexityEntry]) -> str:
    """Naive callout: counts of files above fixed complexity thresholds."""
    issues: list[str] = []
    high = [c for c in complexity if c.file_complexity > DEBT_THRESHOLD_HIGH]
    if high:
        issues.append(f"- {len(high)} files have high complexity (>{DEBT_THRESHOLD_HIGH})")
    very_high = [c for c in complexity if c.file_complexity > DEBT_THRESHOLD_VERY_HIGH]
    if very_high:
        issues.append(
            f"- {len(very_high)} files are very large and may benefit from refactoring"
        )
    if not issues:
        return "No significant technical debt identified."
    return "\n".join(issues)


def _primary_language(metrics: RepositoryMetrics) -> str:
    return metrics.languages[0].name if metrics.languages else "n/a"


def _component_sections(components: dict[str, list[str]]) -> list[str]:
    out: list[str] = []
    for name, component_type, description in COMPONENT_SEED:
        paths = components.get(component_type.value, [])
        out.append(f"### {name}")
        out.append(f"- **Files**: {len(paths)}")
        out.append(f"- **Purpose**: {description}")
        if paths:
            out.append("")
            out.append("Key files:")
            out.extend(f"- {p}" for p in paths[:KEY_FILES_PER_COMPONENT])
        out.append("")
    return out


def render_architecture(store: RepositoryStore, repo_id: int, *, top_n: int = 20) -> str:
    """Markdown summary of structure, languages, complexity and technical debt."""
    repo = store.get_repository(repo_id)
    metrics = store.get_repository_metrics(repo_id)
    dependencies = store.get_dependency_graph(repo_id)
    complexity = store.get_complexity_report(repo_id, top_n=top_n)
    components = store.get_component_assignments(repo_id)
    title = f"{repo.repo_owner}/{repo.repo_name}" if repo else f"repository {repo_id}"

    lines = [
        "# Repository Architecture",
        "",
        f"Last Updated: {datetime.now(UTC).isoformat()}",
        "",
        "## Overview",
        "",
        f"**{title}**",
        "",
        f"- **Total Files**: {metrics.files.total_files}",
        f"- **Total Lines**: {metrics.files.total_lines}",
        f"- **Code Lines**: {metrics.files.total_code_lines}",
        f"- **Primary Language**: {_primary_language(metrics)}",
        "",
        "## Component Breakdown",
        "",
        *_component_sections(components),
        "## Dependency Graph",
        "",
        f"Total Dependencies: {len(dependencies)}",
        f"Unresolved: {sum(1 for d in dependencies if not d.is_resolved)}",
        "",
        "### Key Dependencies",
        "",
        format_top_dependencies(dependencies),
        "",
        "## File Statistics",
        "",
        "### By Language",
    ]
    lines.extend(
        f"- **{lang.name}**: {lang.file_count} files ({round(lang.percentage)}%)"
        for lang in metrics.languages
    )
    lines.extend(["", "## Complexity Analysis", "", "### Most Complex Files"])
    lines.extend(
        f"{i}. **{c.path}** (complexity: {c.file_complexity:g}, functions: {c.function_count})"
        for i, c in enumerate(complexity[:TOP_COMPLEX_FILES], start=1)
    )
    lines.extend(
        [
            "",
            "### Function Distribution",
            f"- **Total Functions**: {metrics.functions.total_functions}",
            f"- **Exported Functions**: {metrics.functions.exported_functions}",
            f"- **Async Functions**: {metrics.functions.async_functions}",
            f"- **Average Complexity**: {round(metrics.functions.avg_complexity, 2)}",
            "",
            "## Maintenance",
            "",
            "### Code Quality",
            f"- Average file complexity: {round(metrics.files.avg_complexity, 2)}",
            f"- Average function complexity: {round(metrics.functions.avg_complexity, 2)}",
            "",
            "### Technical Debt",
            identify_technical_debt(complexity),
            "",
        ]
    )
    return "\n".join(lines)
