"""DDI 2.0 codebook generation.

Describes the file (name, dimensions, producing software) and each
variable (location in the exported ASCII layout, label, categories and
SPSS format) as a DDI 2 ``codeBook`` document. Uses lxml for namespace
handling.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from pathlib import Path

from lxml import etree

from savkit.models.options import FormatOptions
from savkit.models.variable import Measure, NumericVariable, Variable
from savkit.session import SavSession

# -- XML namespace constants --------------------------------------------------
DDI2_NS = "http://www.icpsr.umich.edu/DDI"

NSMAP = {None: DDI2_NS}

SOFTWARE_NAME = "savkit"


def _el(parent: etree._Element, tag: str, text: str | None = None) -> etree._Element:
    element = etree.SubElement(parent, f"{{{DDI2_NS}}}{tag}")
    if text is not None:
        element.text = text
    return element


def _product_name(product: str) -> str:
    return product.removeprefix("@(#) ")


def build_ddi2(
    session: SavSession,
    options: FormatOptions | None = None,
    *,
    unique_id: str | None = None,
) -> etree._Element:
    """Build a DDI 2 ``codeBook`` element for a session.

    Args:
        session: Session whose dictionary is described (loaded if needed).
        options: Output layout the variable locations refer to.
        unique_id: Value of the codeBook ID attribute; random when omitted.

    Returns:
        The root ``codeBook`` element.
    """
    from savkit import __version__

    options = options or FormatOptions()
    if not session.is_loaded:
        session.load_dictionary()
    header = session.dictionary.header
    title = f"SPSS File {session.name}"

    root = etree.Element(f"{{{DDI2_NS}}}codeBook", nsmap=NSMAP)
    root.set("version", "2.0")
    root.set("ID", unique_id or f"ID_{uuid.uuid4()}")

    # docDscr
    citation = _el(_el(root, "docDscr"), "citation")
    _el(_el(citation, "titlStmt"), "titl", title)
    prod_stmt = _el(citation, "prodStmt")
    today = datetime.now(UTC).strftime("%Y-%m-%d")
    _el(prod_stmt, "prodDate", today).set("date", today)
    _el(prod_stmt, "software", SOFTWARE_NAME).set("version", __version__)

    # stdyDscr
    citation = _el(_el(root, "stdyDscr"), "citation")
    _el(_el(citation, "titlStmt"), "titl", title)
    prod_stmt = _el(citation, "prodStmt")
    _el(prod_stmt, "prodDate")
    _el(prod_stmt, "software", _product_name(header.product))

    # fileDscr
    file_txt = _el(_el(root, "fileDscr"), "fileTxt")
    _el(file_txt, "fileName", session.name)
    dimensions = _el(file_txt, "dimensns")
    _el(dimensions, "caseQnty", str(header.case_count))
    _el(dimensions, "varQnty", str(session.variable_count))
    _el(file_txt, "fileType", _product_name(header.product))

    # dataDscr
    data_dscr = _el(root, "dataDscr")
    offset = 1
    for variable in session.variables:
        _add_variable(data_dscr, variable, options, offset)
        offset += variable.output_width(options)
    return root


def _add_variable(
    parent: etree._Element, variable: Variable, options: FormatOptions, offset: int
) -> None:
    var = _el(parent, "var")
    var.set("name", variable.name)
    if variable.decimals > 0:
        var.set("dcml", str(variable.decimals))
    if isinstance(variable, NumericVariable) and variable.display is not None:
        if variable.display.measure in (Measure.NOMINAL, Measure.ORDINAL):
            var.set("intrvl", "discrete")
        elif variable.display.measure == Measure.SCALE:
            var.set("intrvl", "contin")

    width = variable.output_width(options)
    location = _el(var, "location")
    location.set("width", str(width))
    location.set("StartPos", str(offset))
    location.set("EndPos", str(offset + width))

    _el(var, "labl", variable.label)

    for category in variable.categories.values():
        catgry = _el(var, "catgry")
        if category.is_missing:
            catgry.set("missing", "Y")
        _el(catgry, "catValu", category.key)
        _el(catgry, "labl", category.label)

    var_format = _el(var, "varFormat")
    var_format.set("type", "numeric" if isinstance(variable, NumericVariable) else "character")
    var_format.set("schema", "SPSS")
    var_format.set("formatname", variable.spss_format)


def write_ddi2(
    session: SavSession,
    output_path: str | Path,
    options: FormatOptions | None = None,
) -> Path:
    """Write the DDI 2 codebook of a session to ``output_path``."""
    output_path = Path(output_path)
    tree = etree.ElementTree(build_ddi2(session, options))
    tree.write(str(output_path), xml_declaration=True, encoding="UTF-8", pretty_print=True)
    return output_path
