"""Run a single extractor against a piece of text."""

from datetime import date
from enum import Enum
from typing import Annotated

import typer

from pulseguard.cli.console import console, dim, error, warning


class ExtractorKind(str, Enum):
    BP = "bp"
    HYDRATION = "hydration"
    REMINDER = "reminder"
    DATE = "date"
    VISIT = "visit"
    RECOMMENDATION = "recommendation"


def register(app: typer.Typer) -> None:
    @app.command()
    def extract(
        kind: Annotated[ExtractorKind, typer.Argument(help="Which extractor to run")],
        text: Annotated[str, typer.Argument(help="Text to parse")],
        reference: Annotated[
            str | None,
            typer.Option("--reference", "-r", help="Reference date (YYYY-MM-DD), default today"),
        ] = None,
    ) -> None:
        """Parse TEXT with one extractor and print the typed result.

        Examples:
            pulseguard extract bp "120 over 80 sitting"
            pulseguard extract hydration "two bottles of water"
            pulseguard extract reminder "remind me to take my pills every weekday at 8am"
        """
        from pulseguard.extraction import (
            classify_blood_pressure,
            parse_blood_pressure,
            parse_date,
            parse_hydration,
            parse_recommendation,
            parse_reminder,
            parse_visit_outcome,
        )

        try:
            ref = date.fromisoformat(reference) if reference else date.today()
        except ValueError:
            error(f"Invalid reference date: {reference}")
            raise typer.Exit(1) from None

        match kind:
            case ExtractorKind.BP:
                result = parse_blood_pressure(text)
            case ExtractorKind.HYDRATION:
                result = parse_hydration(text)
            case ExtractorKind.REMINDER:
                result = parse_reminder(text, ref)
            case ExtractorKind.DATE:
                result = parse_date(text, ref)
            case ExtractorKind.VISIT:
                result = parse_visit_outcome(text, ref)
            case ExtractorKind.RECOMMENDATION:
                result = parse_recommendation(text, ref)

        if result is None:
            warning("No match")
            raise typer.Exit(1)

        if hasattr(result, "summary"):
            console.print(f"[bold]{result.summary()}[/bold]")
        console.print(result)
        if kind is ExtractorKind.BP:
            classification = classify_blood_pressure(result.systolic, result.diastolic)
            dim(f"Category: {classification.label}")
