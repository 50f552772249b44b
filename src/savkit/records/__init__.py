"""Decoders for the dictionary records of a system file."""

from savkit.records.document import DocumentRecord
from savkit.records.extension import (
    DisplayParamsRecord,
    ExtensionRecord,
    LongNamesRecord,
    LongStringLabelSet,
    LongStringLabelsRecord,
    MachineFloatInfo,
    MachineIntegerInfo,
    UnknownExtension,
    VariableSets,
    VeryLongStringsRecord,
    read_extension,
)
from savkit.records.header import FileHeader
from savkit.records.value_labels import ValueLabel, ValueLabelRecord, VariableIndexRecord
from savkit.records.variable import VariableRecord

__all__ = [
    "FileHeader",
    "VariableRecord",
    "ValueLabel",
    "ValueLabelRecord",
    "VariableIndexRecord",
    "DocumentRecord",
    "ExtensionRecord",
    "MachineIntegerInfo",
    "MachineFloatInfo",
    "VariableSets",
    "DisplayParamsRecord",
    "LongNamesRecord",
    "VeryLongStringsRecord",
    "LongStringLabelSet",
    "LongStringLabelsRecord",
    "UnknownExtension",
    "read_extension",
]
