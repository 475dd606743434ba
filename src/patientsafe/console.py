"""
Rich-based console utilities for the PatientSafe CLI.

Provides consistent terminal output with:
- PatientSafe logo/branding
- Styled messages (info, success, warning, error)
- Tables for metrics, markers, recommendations and desert zones
- Panels for the action plan and errors
"""

from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from patientsafe.core.models import (
    ActionPlan,
    DesertZoneData,
    FacilityMarker,
    FacilityRecommendation,
    Metrics,
)

# Custom theme for PatientSafe
PATIENTSAFE_THEME = Theme(
    {
        "info": "cyan",
        "success": "green",
        "warning": "yellow",
        "error": "red bold",
        "highlight": "magenta",
        "muted": "dim",
        "brand": "bold blue",
        "path": "cyan underline",
        "command": "bold green",
    }
)

# Global console instance with custom theme
console = Console(theme=PATIENTSAFE_THEME)

PATIENTSAFE_LOGO = r"""
  ___      _   _         _   ___       __
 | _ \__ _| |_(_)___ _ _| |_/ __| __ _/ _|___
 |  _/ _` |  _| / -_) ' \  _\__ \/ _` |  _/ -_)
 |_| \__,_|\__|_\___|_||_\__|___/\__,_|_| \___|
"""

PATIENTSAFE_TAGLINE = "Verified facilities for every referral"

# Marker status / triage level -> theme style
STATUS_STYLES = {
    "validated": "success",
    "uncertain": "warning",
    "anomaly": "error",
}
TRIAGE_STYLES = {
    "stable": "success",
    "monitor": "warning",
    "critical": "error",
}
ZONE_STYLES = {
    "critical": "error",
    "high": "warning",
    "moderate": "info",
}


def print_logo(show_tagline: bool = True, show_version: bool = True) -> None:
    """Print the PatientSafe logo with optional tagline and version."""
    from patientsafe import __version__

    logo_text = Text(PATIENTSAFE_LOGO, style="bold blue")

    if show_tagline:
        tagline = Text(f"\n  {PATIENTSAFE_TAGLINE}", style="italic cyan")
        logo_text.append(tagline)

    if show_version:
        version = Text(f"\n  v{__version__}", style="dim")
        logo_text.append(version)

    console.print(logo_text)


def info(message: str, prefix: str = "info") -> None:
    """Print an info message."""
    console.print(f"[info]{prefix}:[/info] {message}")


def success(message: str, prefix: str = "done") -> None:
    """Print a success message."""
    console.print(f"[success]{prefix}:[/success] {message}")


def warning(message: str, prefix: str = "warning") -> None:
    """Print a warning message."""
    console.print(f"[warning]{prefix}:[/warning] {message}")


def error(message: str, prefix: str = "error") -> None:
    """Print an error message."""
    console.print(f"[error]{prefix}:[/error] {message}")


def print_key_value(key: str, value: Any, indent: int = 2) -> None:
    """Print a key-value pair."""
    spaces = " " * indent
    console.print(f"{spaces}[muted]{key}:[/muted] {value}")


def print_error_panel(title: str, message: str, hint: str | None = None) -> None:
    """Print an error in a styled panel."""
    content = f"[error]{message}[/error]"
    if hint:
        content += f"\n\n[dim]Hint: {hint}[/dim]"
    console.print(Panel(content, title=f"[error]{title}[/error]", padding=(1, 2)))


def create_status_table(title: str | None = None) -> Table:
    """Create a styled table for status display."""
    table = Table(
        title=title,
        show_header=True,
        header_style="bold",
        border_style="dim",
        padding=(0, 1),
    )
    return table


def _styled(value: str, styles: dict[str, str]) -> str:
    style = styles.get(value)
    return f"[{style}]{value}[/{style}]" if style else value


# ── Dashboard views ──────────────────────────────────────────────────

def print_metrics(metrics: Metrics) -> None:
    """Print the metrics row."""
    table = create_status_table("Facility metrics")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Total facilities", f"{metrics.total_facilities:,}")
    table.add_row("Safe C-section", f"{metrics.safe_c_section:,}")
    table.add_row("C-section coverage", f"{metrics.c_section_coverage:.1%}")
    table.add_row("High-risk anomalies", f"{metrics.high_risk_anomalies:,}")
    table.add_row("Medical desert regions", f"{metrics.medical_desert_regions:,}")

    console.print(table)


def print_action_plan(plan: ActionPlan) -> None:
    """Print the action plan in a panel."""
    severity_style = {"High": "error", "Medium": "warning", "Low": "success"}[
        plan.severity_label
    ]
    panel_content = (
        f"[muted]Region:[/muted]       [bold]{plan.region}[/bold]\n"
        f"[muted]Gap:[/muted]          {plan.gap}\n"
        f"[muted]Impact:[/muted]       {plan.impact}\n"
        f"[muted]Candidate:[/muted]    {plan.candidate}\n"
        f"[muted]Intervention:[/muted] [highlight]{plan.intervention}[/highlight]\n"
        f"[muted]Severity:[/muted]     [{severity_style}]{plan.severity_label}[/{severity_style}]"
    )
    console.print(
        Panel(panel_content, title="[bold blue]Action plan[/bold blue]", padding=(1, 2))
    )


def print_recommendations(
    recommendations: list[FacilityRecommendation], title: str = "Recommended facilities"
) -> None:
    """Print ranked recommendations with their available capabilities."""
    if not recommendations:
        warning("No facility matches the requested capabilities.")
        return

    table = create_status_table(title)
    table.add_column("#", justify="right", style="muted")
    table.add_column("Facility", style="bold")
    table.add_column("Score")
    table.add_column("Triage", justify="center")
    table.add_column("Available capabilities")
    table.add_column("Evidence", style="muted", overflow="fold")

    for rank, rec in enumerate(recommendations, start=1):
        available = ", ".join(c.name for c in rec.capabilities if c.available)
        table.add_row(
            str(rank),
            rec.name,
            rec.distance,
            _styled(rec.triage_level, TRIAGE_STYLES),
            available or "[muted]-[/muted]",
            rec.evidence,
        )

    console.print(table)


def print_markers(markers: list[FacilityMarker], limit: int = 50) -> None:
    """Print map markers, truncated to ``limit`` rows."""
    table = create_status_table("Map markers")
    table.add_column("Facility", style="bold")
    table.add_column("Region")
    table.add_column("Category")
    table.add_column("Status", justify="center")
    table.add_column("Lat, Lng", justify="right", style="muted")

    for marker in markers[:limit]:
        table.add_row(
            marker.name,
            marker.region,
            marker.category,
            _styled(marker.status, STATUS_STYLES),
            f"{marker.lat:.4f}, {marker.lng:.4f}",
        )

    console.print(table)
    if len(markers) > limit:
        console.print(f"  [muted]+{len(markers) - limit} more[/muted]")


def print_status_counts(counts: dict[str, int]) -> None:
    console.print(
        f"  [success]{counts['validated']} validated[/success]  "
        f"[warning]{counts['uncertain']} uncertain[/warning]  "
        f"[error]{counts['anomaly']} anomaly[/error]  "
        f"[muted]({counts['total']} total)[/muted]"
    )


def print_desert_zones(zones: list[DesertZoneData]) -> None:
    """Print medical desert zones."""
    if not zones:
        info("No medical desert zones detected.")
        return

    table = create_status_table("Medical desert zones")
    table.add_column("Region", style="bold")
    table.add_column("Severity", justify="center")
    table.add_column("Gaps")
    table.add_column("Centroid", justify="right", style="muted")
    table.add_column("Radius", justify="right")

    for zone in zones:
        table.add_row(
            zone.region,
            _styled(zone.severity, ZONE_STYLES),
            ", ".join(zone.gaps),
            f"{zone.lat:.4f}, {zone.lng:.4f}",
            f"{zone.radius / 1000:.1f} km",
        )

    console.print(table)
