"""Rich display helpers for terminal output.

Provides formatted display functions for the file header, the variable
dictionary, the categories of one variable and a preview of data records
using Rich tables and panels.
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from savkit.dictionary import SavDictionary
from savkit.models.variable import StringVariable, Variable


def display_file_summary(dictionary: SavDictionary, name: str, console: Console) -> None:
    """Print a panel describing the file header.

    Args:
        dictionary: Loaded dictionary of the file.
        name: File name shown in the panel title.
        console: Rich Console for output.
    """
    header = dictionary.header
    weight = dictionary.weight_variable
    info_lines = [
        f"[bold]Product:[/bold] {header.product}",
        f"[bold]Created:[/bold] {header.creation_date} {header.creation_time}",
        f"[bold]Label:[/bold] {header.file_label or '-'}",
        f"[bold]Cases:[/bold] {header.case_count if header.case_count >= 0 else 'unknown'}",
        f"[bold]Variables:[/bold] {len(dictionary.variables)}",
        f"[bold]Compressed:[/bold] {'yes' if header.compressed else 'no'}",
        f"[bold]Byte order:[/bold] {'big-endian' if header.big_endian else 'little-endian'}",
        f"[bold]Weight:[/bold] {weight.name if weight else '-'}",
    ]
    if dictionary.integer_info is not None:
        info = dictionary.integer_info
        info_lines.append(
            f"[bold]Release:[/bold] {info.release_major}.{info.release_minor}."
            f"{info.release_special}"
        )
    console.print(Panel("\n".join(info_lines), title=f"SPSS File: {name}"))

    if dictionary.documents:
        console.print(Panel("\n".join(dictionary.documents), title="Documents"))


def display_variable_table(variables: list[Variable], console: Console) -> None:
    """Print one row per variable.

    Columns: #, Name, Short, Type, Format, Measure, Labels, Missing, Label.
    Variables with value labels are highlighted in cyan.

    Args:
        variables: Logical variables in dictionary order.
        console: Rich Console for output.
    """
    table = Table(title="Variables", show_lines=True)
    table.add_column("#", justify="right", style="dim", width=4)
    table.add_column("Name", style="bold", no_wrap=True)
    table.add_column("Short", style="dim", no_wrap=True)
    table.add_column("Type", no_wrap=True)
    table.add_column("Format", no_wrap=True)
    table.add_column("Measure", no_wrap=True)
    table.add_column("Labels", justify="right")
    table.add_column("Missing", justify="right")
    table.add_column("Label", max_width=40)

    for v in variables:
        n_missing = sum(1 for c in v.categories.values() if c.is_missing)
        n_labels = sum(1 for c in v.categories.values() if c.label)
        kind = v.kind
        if isinstance(v, StringVariable) and v.segments:
            kind = f"string ({len(v.segments) + 1} parts)"
        table.add_row(
            str(v.number),
            Text(v.name, style="cyan" if n_labels else ""),
            v.short_name,
            kind,
            v.spss_format,
            v.measure_label,
            str(n_labels),
            str(n_missing),
            v.label[:40] if v.label else "",
        )

    console.print(table)


def display_categories(variable: Variable, console: Console) -> None:
    """Print the value labels and missing values of one variable.

    Args:
        variable: Variable to display.
        console: Rich Console for output.
    """
    table = Table(title=f"{variable.name} ({variable.spss_format})", show_lines=False)
    table.add_column("Value", style="bold", no_wrap=True)
    table.add_column("Label")
    table.add_column("Missing", justify="center")

    for category in variable.categories.values():
        table.add_row(
            category.key,
            category.label,
            Text("Y", style="bold red") if category.is_missing else "",
        )

    console.print(table)
    if not variable.categories:
        console.print("[dim]No value labels or missing values defined.[/dim]")


def display_records(names: list[str], rows: list[list[str]], console: Console) -> None:
    """Print decoded records as a table, one column per variable.

    Args:
        names: Column headings.
        rows: Formatted values, one list per record.
        console: Rich Console for output.
    """
    table = Table(title="Records", show_lines=False)
    table.add_column("Case", justify="right", style="dim")
    for name in names:
        table.add_column(name, no_wrap=True)
    for index, row in enumerate(rows, start=1):
        table.add_row(str(index), *row)
    console.print(table)
