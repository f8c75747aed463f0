"""List the capabilities the companion can request."""

from typing import Annotated

import typer

from pulseguard.cli.console import console, create_table, error


def register(app: typer.Typer) -> None:
    @app.command()
    def capabilities(
        category: Annotated[
            str | None,
            typer.Option("--category", help="Only show one category"),
        ] = None,
        sensitivity: Annotated[
            str | None,
            typer.Option("--sensitivity", help="Only show one sensitivity tier"),
        ] = None,
        prompt: Annotated[
            bool,
            typer.Option("--prompt", help="Print the tool instructions given to the model"),
        ] = False,
    ) -> None:
        """Show the capability catalog."""
        from pulseguard.capabilities import (
            Category,
            Sensitivity,
            build_capability_prompt,
            build_default_registry,
        )

        registry = build_default_registry()
        if prompt:
            console.print(build_capability_prompt(registry), markup=False)
            return

        definitions = list(registry)
        try:
            if category:
                definitions = [d for d in definitions if d.category == Category(category)]
            if sensitivity:
                definitions = [
                    d for d in definitions if d.sensitivity == Sensitivity(sensitivity)
                ]
        except ValueError as e:
            error(str(e))
            raise typer.Exit(1) from None

        table = create_table(
            "Capabilities",
            [
                ("ID", "cyan"),
                ("Category", ""),
                ("Sensitivity", ""),
                ("Confirm", {"justify": "center"}),
                ("Parameters", "dim"),
            ],
        )
        for d in definitions:
            params = ", ".join(
                f"{p.name}*" if p.required else p.name for p in d.parameters
            )
            table.add_row(
                d.id,
                d.category.value,
                d.sensitivity.value,
                "yes" if d.requires_confirmation else "",
                params or "-",
            )
        console.print(table)
