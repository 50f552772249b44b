"""ASCII export of decoded records (fixed-width, delimited or CSV)."""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from savkit.models.options import FormatOptions, OutputKind
from savkit.session import SavSession


def export_data(
    session: SavSession,
    output_path: str | Path,
    options: FormatOptions | None = None,
) -> int:
    """Write every record of the file to a text file, one line per case.

    Records are streamed from disk, so the data section never has to be
    held in memory. Delimited and CSV exports start with a row of variable
    names when ``options.include_header_row`` is set.

    Args:
        session: Session to export; its dictionary is loaded if needed.
        output_path: Destination text file (written as UTF-8).
        options: Layout options (defaults to fixed-width).

    Returns:
        Number of records written.

    Raises:
        IsADirectoryError: If ``output_path`` is a directory.
    """
    options = options or FormatOptions()
    output_path = Path(output_path)
    if output_path.is_dir():
        raise IsADirectoryError(f"Export target is a directory: {output_path}")
    if not session.is_loaded:
        session.load_dictionary()

    logger.info("Exporting {} data to {}", options.output_kind.value, output_path)
    count = 0
    with output_path.open("w", encoding="utf-8", newline="\n") as out:
        if options.include_header_row and options.output_kind != OutputKind.FIXED:
            out.write(session.header_row(options) + "\n")
        for line in session.iter_records(options):
            out.write(line + "\n")
            count += 1

    if count == 0:
        logger.warning("{} does not contain any data", session.name or "File")
    logger.info("Exported {} records to {}", count, output_path.name)
    return count
