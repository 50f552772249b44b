"""savkit CLI application entry point.

Provides commands for inspecting SPSS .sav files, listing value labels,
previewing records, exporting data to ASCII and generating DDI 2
codebooks.

Usage:
    savkit info <file.sav>
    savkit labels <file.sav> <variable>
    savkit dump <file.sav>
    savkit export <file.sav> <output>
    savkit ddi <file.sav>
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console

from savkit.errors import SavError
from savkit.models.options import FormatOptions, OutputKind

if TYPE_CHECKING:
    from savkit.session import SavSession

app = typer.Typer(
    name="savkit",
    help="Decode SPSS .sav system files: metadata, value labels, ASCII export and DDI.",
    no_args_is_help=True,
)

console = Console()

EncodingOption = Annotated[
    str,
    typer.Option("--encoding", "-e", help="Character set of names, labels and strings"),
]


def _fail(message: str) -> typer.Exit:
    console.print(f"[bold red]Error:[/bold red] {message}")
    return typer.Exit(code=1)


def _load(sav_file: Path, encoding: str) -> SavSession:
    """Open ``sav_file`` and load its dictionary, exiting with code 1 on failure."""
    from savkit.session import open_session

    if not sav_file.is_file():
        raise _fail(f"File not found: {sav_file}")
    session = open_session(sav_file, encoding=encoding)
    try:
        session.load_dictionary()
    except SavError as e:
        session.close()
        raise _fail(f"Cannot read {sav_file.name}: {e}") from e
    return session


@app.command()
def version() -> None:
    """Show the current version."""
    from savkit import __version__

    console.print(f"savkit {__version__}")


@app.command()
def info(
    sav_file: Annotated[Path, typer.Argument(help="SPSS .sav file")],
    variables: Annotated[
        bool,
        typer.Option("--variables", "-v", help="Show the variable dictionary"),
    ] = False,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the metadata summary as JSON to this file"),
    ] = None,
    encoding: EncodingOption = "latin-1",
) -> None:
    """Show header information and, optionally, the variable dictionary."""
    from savkit.cli.display import display_file_summary, display_variable_table

    with _load(sav_file, encoding) as session:
        display_file_summary(session.dictionary, sav_file.name, console)
        if variables:
            console.print()
            display_variable_table(session.variables, console)

        if output is not None:
            import json

            output.write_text(json.dumps(session.summary(), indent=2, default=str))
            console.print(f"\n[green]Metadata written to {output}[/green]")


@app.command()
def labels(
    sav_file: Annotated[Path, typer.Argument(help="SPSS .sav file")],
    variable: Annotated[str, typer.Argument(help="Variable name (long or short)")],
    encoding: EncodingOption = "latin-1",
) -> None:
    """List the value labels and missing values of one variable."""
    from savkit.cli.display import display_categories

    with _load(sav_file, encoding) as session:
        found = session.variable_by_name(variable)
        if found is None:
            raise _fail(f"Variable not found: {variable}")
        display_categories(found, console)


@app.command()
def dump(
    sav_file: Annotated[Path, typer.Argument(help="SPSS .sav file")],
    records: Annotated[
        int,
        typer.Option("--records", "-n", min=1, help="Number of records to show"),
    ] = 10,
    encoding: EncodingOption = "latin-1",
) -> None:
    """Preview the first records of the data section."""
    from savkit.cli.display import display_records

    options = FormatOptions(output_kind=OutputKind.DELIMITED)
    with _load(sav_file, encoding) as session:
        rows: list[list[str]] = []
        try:
            for _ in session.iter_records(options):
                rows.append([v.value_as_text(0, options) for v in session.variables])
                if len(rows) >= records:
                    break
        except SavError as e:
            raise _fail(f"Cannot decode records of {sav_file.name}: {e}") from e
        display_records([v.name for v in session.variables], rows, console)


@app.command()
def export(
    sav_file: Annotated[Path, typer.Argument(help="SPSS .sav file")],
    output: Annotated[Path, typer.Argument(help="Destination text file")],
    kind: Annotated[
        OutputKind,
        typer.Option("--kind", "-k", help="Record layout"),
    ] = OutputKind.CSV,
    delimiter: Annotated[
        str,
        typer.Option("--delimiter", "-d", help="Field separator for delimited output"),
    ] = "\t",
    no_header: Annotated[
        bool,
        typer.Option("--no-header", help="Do not write a row of variable names"),
    ] = False,
    encoding: EncodingOption = "latin-1",
) -> None:
    """Export every record to a fixed-width, delimited or CSV text file."""
    from savkit.export.ascii import export_data

    options = FormatOptions(
        output_kind=kind, delimiter=delimiter, include_header_row=not no_header
    )
    with _load(sav_file, encoding) as session:
        try:
            count = export_data(session, output, options)
        except (SavError, OSError) as e:
            raise _fail(f"Export failed: {e}") from e
    console.print(f"[green]{count} records written to {output}[/green]")


@app.command()
def ddi(
    sav_file: Annotated[Path, typer.Argument(help="SPSS .sav file")],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the codebook to this file"),
    ] = None,
    kind: Annotated[
        OutputKind,
        typer.Option("--kind", "-k", help="ASCII layout the variable locations describe"),
    ] = OutputKind.FIXED,
    encoding: EncodingOption = "latin-1",
) -> None:
    """Generate a DDI 2.0 codebook describing the file."""
    from lxml import etree

    from savkit.export.ddi import build_ddi2, write_ddi2

    options = FormatOptions(output_kind=kind)
    with _load(sav_file, encoding) as session:
        if output is None:
            xml = etree.tostring(build_ddi2(session, options), pretty_print=True, encoding="unicode")
            typer.echo(xml)
            return
        write_ddi2(session, output, options)
    console.print(f"[green]DDI codebook written to {output}[/green]")
