import dataclasses
import json
import logging
from typing import Annotated, Any

import typer

from patientsafe.config import PatientSafeConfig, get_config
from patientsafe.console import (
    console,
    error,
    info,
    print_action_plan,
    print_desert_zones,
    print_error_panel,
    print_key_value,
    print_logo,
    print_markers,
    print_metrics,
    print_recommendations,
    print_status_counts,
)
from patientsafe.core.exceptions import ConfigurationError, DatasetError, PatientSafeError
from patientsafe.core.intent import CONTEXT_PROFILES
from patientsafe.core.markers import (
    MarkerFilter,
    build_markers,
    filter_markers,
    markers_to_geojson,
    status_counts,
)
from patientsafe.core.models import Facility
from patientsafe.core.deserts import derive_desert_zones
from patientsafe.core.specialties import build_specialty_options
from patientsafe.core.summary import build_facility_summary
from patientsafe.dashboard import build_dashboard, triage
from patientsafe.data_io import load_facilities

logger = logging.getLogger("patientsafe")

app = typer.Typer(
    name="patientsafe",
    help="PatientSafe CLI: facility metrics, medical deserts and referral recommendations.",
    add_completion=False,
    rich_markup_mode="markdown",
)

VALID_CATEGORIES = ("Maternity", "Trauma", "Infrastructure")
VALID_STATUSES = ("validated", "uncertain", "anomaly")

SourceOption = Annotated[
    str | None,
    typer.Option(
        "--source",
        "-s",
        help=(
            "Facility JSON file, .csv/.parquet wide table, or http(s) URL. "
            "Defaults to PATIENTSAFE_FACILITIES_URL / PATIENTSAFE_FACILITIES_PATH."
        ),
    ),
]
JsonOption = Annotated[
    bool, typer.Option("--json", help="Print machine-readable JSON instead of tables.")
]


def version_callback(value: bool):
    if value:
        print_logo(show_tagline=True, show_version=True)
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            callback=version_callback,
            is_eager=True,
            help="Show CLI version.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose", "-V", help="Enable DEBUG level logging for patientsafe components."
        ),
    ] = False,
):
    """
    Main callback for the PatientSafe CLI. Sets logging level.
    """
    logging.basicConfig(
        level=logging.WARNING, format="%(levelname)s | %(name)s | %(message)s"
    )
    if verbose:
        logger.setLevel(logging.DEBUG)
        logger.debug("Verbose mode enabled via CLI flag.")
    else:
        logger.setLevel(logging.WARNING)


# ----------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------


def _load(source: str | None) -> tuple[list[Facility], PatientSafeConfig]:
    """Load config and facilities, turning PatientSafe errors into a clean exit."""
    try:
        config = get_config()
        return load_facilities(source, config=config), config
    except ConfigurationError as e:
        print_error_panel(
            "Configuration error",
            str(e),
            hint=f"Check the {e.variable} environment variable." if e.variable else None,
        )
        raise typer.Exit(code=1)
    except DatasetError as e:
        print_error_panel(
            "Could not load facilities",
            str(e),
            hint="Pass --source or set PATIENTSAFE_FACILITIES_PATH.",
        )
        raise typer.Exit(code=1)
    except PatientSafeError as e:
        print_error_panel("Error", str(e))
        raise typer.Exit(code=1)


def _jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value):
        return _jsonable(dataclasses.asdict(value))
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return sorted(_jsonable(v) for v in value)
    return value


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(_jsonable(payload), indent=2, ensure_ascii=False))


def _limit(value: int | None, default: int) -> int:
    return default if value is None else value


# ----------------------------------------------------------------
# Commands
# ----------------------------------------------------------------


@app.command("summary")
def summary_cmd(
    source: SourceOption = None,
    as_json: JsonOption = False,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-n", min=1, help="Number of recommendations."),
    ] = None,
):
    """Show dataset metrics, the action plan and top obstetric recommendations."""
    facilities, config = _load(source)
    state = build_dashboard(
        facilities,
        recommendation_limit=_limit(limit, config.recommendation_limit),
        specialty_limit=config.specialty_limit,
    )

    if as_json:
        _echo_json(
            {
                "metrics": state.metrics,
                "action_plan": state.action_plan,
                "recommendations": state.recommendations,
                "specialties": state.specialties,
            }
        )
        return

    print_metrics(state.metrics)
    print_action_plan(state.action_plan)
    print_recommendations(state.recommendations, title="Safe obstetric facilities")


@app.command("recommend")
def recommend_cmd(
    query: Annotated[
        str,
        typer.Argument(
            help="Free-text patient description, e.g. 'bleeding after delivery'.",
            metavar="QUERY",
        ),
    ],
    source: SourceOption = None,
    as_json: JsonOption = False,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-n", min=1, help="Number of recommendations."),
    ] = None,
):
    """Recommend facilities for a patient description."""
    facilities, config = _load(source)
    result = triage(facilities, query, _limit(limit, config.recommendation_limit))

    if as_json:
        _echo_json(result)
        return

    label = CONTEXT_PROFILES[result.intent.context].label
    print_key_value("Clinical context", f"[highlight]{label}[/highlight]")
    print_key_value(
        "Required capabilities",
        ", ".join(result.intent.required_caps) or "[muted]none detected[/muted]",
    )
    if result.intent.required_caps:
        print_key_value("Facilities with all required", len(result.matching_facilities))
    console.print()
    print_recommendations(result.recommendations, title=f"{label} recommendations")


@app.command("markers")
def markers_cmd(
    source: SourceOption = None,
    as_json: JsonOption = False,
    geojson: Annotated[
        bool, typer.Option("--geojson", help="Print markers as a GeoJSON FeatureCollection.")
    ] = False,
    category: Annotated[
        str | None,
        typer.Option("--category", "-c", help=f"One of: {', '.join(VALID_CATEGORIES)}."),
    ] = None,
    status: Annotated[
        str | None,
        typer.Option("--status", help=f"One of: {', '.join(VALID_STATUSES)}."),
    ] = None,
    region: Annotated[str | None, typer.Option("--region", "-r", help="Exact region.")] = None,
    specialty: Annotated[
        str | None, typer.Option("--specialty", help="Specialty substring.")
    ] = None,
    query: Annotated[
        str | None,
        typer.Option("--query", "-q", help="Search name, region, type and specialties."),
    ] = None,
):
    """List map markers, optionally filtered like the map panel."""
    if category is not None and category not in VALID_CATEGORIES:
        raise typer.BadParameter(
            f"must be one of {', '.join(VALID_CATEGORIES)}", param_hint="--category"
        )
    if status is not None and status not in VALID_STATUSES:
        raise typer.BadParameter(
            f"must be one of {', '.join(VALID_STATUSES)}", param_hint="--status"
        )

    facilities, _ = _load(source)
    marker_filter = MarkerFilter(
        category=category, status=status, region=region, specialty=specialty, query=query
    )
    markers = filter_markers(build_markers(facilities), marker_filter)

    if geojson:
        _echo_json(markers_to_geojson(markers))
        return
    if as_json:
        _echo_json({"markers": markers, "counts": status_counts(markers)})
        return

    if not markers:
        info("No facilities match filters.")
        return
    print_markers(markers)
    print_status_counts(status_counts(markers))


@app.command("deserts")
def deserts_cmd(source: SourceOption = None, as_json: JsonOption = False):
    """List medical desert zones by region."""
    facilities, _ = _load(source)
    zones = derive_desert_zones(facilities)
    if as_json:
        _echo_json(zones)
        return
    print_desert_zones(zones)


@app.command("specialties")
def specialties_cmd(
    source: SourceOption = None,
    as_json: JsonOption = False,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-n", min=1, help="Number of specialties."),
    ] = None,
):
    """List the most common specialties."""
    facilities, config = _load(source)
    options = build_specialty_options(facilities, _limit(limit, config.specialty_limit))
    if as_json:
        _echo_json(options)
        return
    if not options:
        info("No specialties listed in the dataset.")
        return
    for rank, specialty in enumerate(options, start=1):
        console.print(f"  [muted]{rank:>2}.[/muted] {specialty}")


@app.command("context")
def context_cmd(source: SourceOption = None):
    """Print the facility context block used by the chat assistant."""
    facilities, _ = _load(source)
    typer.echo(build_facility_summary(facilities))
    if not facilities:
        error("The dataset contains no facilities.")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
