"""Type definitions for the AAMVA codec.

This module defines the value objects shared by the encoder, the validator and
the extraction boundary: the closed tag vocabulary, field sets, encoded
records and validation reports following the AAMVA DL/ID Card Design Standard
(2020 revision).
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Pattern

# Control separators of the AAMVA header and subfile body
LF = "\x0a"  # Data element separator
RS = "\x1e"  # Record separator
CR = "\x0d"  # Segment terminator

COMPLIANCE_INDICATOR = "@"
FILE_TYPE = "ANSI "
STANDARD_VERSION = "10"  # AAMVA 2020
HEADER_LENGTH = 21
DESIGNATOR_LENGTH = 10
SINGLE_SUBFILE_OFFSET = HEADER_LENGTH + DESIGNATOR_LENGTH  # 31

UNAVAILABLE = "unavl"
NONE_PLACEHOLDER = "NONE"
MISSING = "MISSING"

TAG_PATTERN = re.compile(r"^[A-Z][A-Z0-9]{2}$")


class Tag(str, Enum):
    """Data element identifiers known to the codec."""

    DCA = "DCA"
    DCB = "DCB"
    DCD = "DCD"
    DBA = "DBA"
    DCS = "DCS"
    DAC = "DAC"
    DAD = "DAD"
    DBD = "DBD"
    DBB = "DBB"
    DBC = "DBC"
    DAY = "DAY"
    DAU = "DAU"
    DAG = "DAG"
    DAI = "DAI"
    DAJ = "DAJ"
    DAK = "DAK"
    DAQ = "DAQ"
    DCF = "DCF"
    DCG = "DCG"
    DCU = "DCU"
    DDA = "DDA"
    DDK = "DDK"
    DAW = "DAW"
    DAZ = "DAZ"
    DDE = "DDE"
    DDF = "DDF"
    DDG = "DDG"

    @property
    def label(self) -> str:
        """Human-readable element name."""
        return TAG_LABELS[self]

    @classmethod
    def lookup(cls, key: Any) -> Optional["Tag"]:
        """Return the Tag for ``key`` or None if it is not in the vocabulary."""
        if isinstance(key, cls):
            return key
        try:
            return cls(str(key).strip().upper())
        except ValueError:
            return None


TAG_LABELS: Mapping[Tag, str] = MappingProxyType(
    {
        Tag.DCA: "Jurisdiction-specific vehicle class",
        Tag.DCB: "Jurisdiction-specific restriction codes",
        Tag.DCD: "Jurisdiction-specific endorsement codes",
        Tag.DBA: "Document expiration date",
        Tag.DCS: "Customer family name",
        Tag.DAC: "Customer first name",
        Tag.DAD: "Customer middle name(s)",
        Tag.DBD: "Document issue date",
        Tag.DBB: "Date of birth",
        Tag.DBC: "Physical description - sex",
        Tag.DAY: "Physical description - eye color",
        Tag.DAU: "Physical description - height",
        Tag.DAG: "Address - street 1",
        Tag.DAI: "Address - city",
        Tag.DAJ: "Address - jurisdiction code",
        Tag.DAK: "Address - postal code",
        Tag.DAQ: "Customer ID number",
        Tag.DCF: "Document discriminator",
        Tag.DCG: "Country identification",
        Tag.DCU: "Name suffix",
        Tag.DDA: "Compliance type (REAL ID)",
        Tag.DDK: "Organ donor indicator",
        Tag.DAW: "Physical description - weight (pounds)",
        Tag.DAZ: "Hair color",
        Tag.DDE: "Family name truncation",
        Tag.DDF: "First name truncation",
        Tag.DDG: "Middle name truncation",
    }
)


class SubfileType(Enum):
    """Subfile (document) type."""

    DRIVER_LICENSE = "DL"
    ID_CARD = "ID"

    @classmethod
    def parse(cls, value: Any, default: Optional["SubfileType"] = None) -> "SubfileType":
        """Coerce ``value`` to a SubfileType, falling back to ``default``."""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().upper()
        for member in cls:
            if member.value == text:
                return member
        return default if default is not None else cls.DRIVER_LICENSE


class ValidationStatus(Enum):
    """Per-element reconciliation status."""

    MATCH = "MATCH"
    MISMATCH = "MISMATCH"
    MISSING_IN_SCAN = "MISSING_IN_SCAN"
    FORMAT_ERROR = "FORMAT_ERROR"


# Metadata keys accepted by FieldSet.from_dict (form field names)
META_IIN = "IIN"
META_JURISDICTION_VERSION = "JurisdictionVersion"
META_SUBFILE_TYPE = "subfileType"
META_VERSION = "Version"


@dataclass(frozen=True)
class FieldSet:
    """Immutable set of data elements for one card.

    Attributes:
        elements: Known data elements (Tag -> value)
        unknown: Unrecognized 3-character elements preserved verbatim
        iin: Issuer identification number (6 digits), empty for the default
        jurisdiction_version: Jurisdiction version number, empty for the default
        subfile_type: Document type (DL or ID), None for the default
    """

    elements: Mapping[Tag, str] = field(default_factory=dict)
    unknown: Mapping[str, str] = field(default_factory=dict)
    iin: str = ""
    jurisdiction_version: str = ""
    subfile_type: Optional[SubfileType] = None

    def __post_init__(self):
        object.__setattr__(self, "elements", MappingProxyType(dict(self.elements)))
        object.__setattr__(self, "unknown", MappingProxyType(dict(self.unknown)))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FieldSet":
        """Build a FieldSet from a form-style mapping.

        Keys that name a known Tag go to ``elements``; the metadata keys
        ``IIN``, ``JurisdictionVersion`` and ``subfileType`` fill the metadata;
        any other 3-character tag-shaped key is kept in ``unknown``. Other
        keys are ignored.

        Example:
            >>> fields = FieldSet.from_dict({"DCS": "SMITH", "IIN": "636014"})
            >>> fields.get(Tag.DCS)
            'SMITH'
        """
        elements: Dict[Tag, str] = {}
        unknown: Dict[str, str] = {}
        iin = ""
        jurisdiction_version = ""
        subfile_type = None

        for key, value in data.items():
            text = "" if value is None else str(value)
            if key == META_IIN:
                iin = text
            elif key == META_JURISDICTION_VERSION:
                jurisdiction_version = text
            elif key == META_SUBFILE_TYPE:
                subfile_type = SubfileType.parse(text) if text else None
            elif key == META_VERSION:
                continue
            else:
                tag = Tag.lookup(key)
                if tag is not None:
                    elements[tag] = text
                elif TAG_PATTERN.match(str(key)):
                    unknown[str(key)] = text

        return cls(
            elements=elements,
            unknown=unknown,
            iin=iin,
            jurisdiction_version=jurisdiction_version,
            subfile_type=subfile_type,
        )

    def get(self, tag: Any, default: str = "") -> str:
        """Value of a known or unknown element, ``default`` when absent."""
        known = Tag.lookup(tag)
        if known is not None:
            return self.elements.get(known, default)
        return self.unknown.get(str(tag), default)

    def merge(self, updates: Mapping[Any, str]) -> "FieldSet":
        """Return a new FieldSet with ``updates`` layered over this one."""
        elements = dict(self.elements)
        unknown = dict(self.unknown)
        for key, value in updates.items():
            text = "" if value is None else str(value)
            tag = Tag.lookup(key)
            if tag is not None:
                elements[tag] = text
            elif TAG_PATTERN.match(str(key)):
                unknown[str(key)] = text
        return FieldSet(
            elements=elements,
            unknown=unknown,
            iin=self.iin,
            jurisdiction_version=self.jurisdiction_version,
            subfile_type=self.subfile_type,
        )

    def replace(self, **changes: Any) -> "FieldSet":
        """Return a copy with metadata (or whole mappings) replaced."""
        values = {
            "elements": self.elements,
            "unknown": self.unknown,
            "iin": self.iin,
            "jurisdiction_version": self.jurisdiction_version,
            "subfile_type": self.subfile_type,
        }
        values.update(changes)
        return FieldSet(**values)

    def to_dict(self) -> Dict[str, str]:
        """Flatten back to the form-style mapping accepted by from_dict."""
        data: Dict[str, str] = {tag.value: value for tag, value in self.elements.items()}
        data.update(self.unknown)
        if self.iin:
            data[META_IIN] = self.iin
        if self.jurisdiction_version:
            data[META_JURISDICTION_VERSION] = self.jurisdiction_version
        if self.subfile_type is not None:
            data[META_SUBFILE_TYPE] = self.subfile_type.value
        return data


@dataclass(frozen=True)
class Rule:
    """Format rule for one data element.

    Attributes:
        pattern: Compiled character-class/length constraint (full match)
        description: Human-readable explanation shown in reports
    """

    pattern: Pattern[str]
    description: str

    def accepts(self, value: str) -> bool:
        """Check if ``value`` satisfies the constraint."""
        return self.pattern.fullmatch(value) is not None


class EncodedRecord(str):
    """AAMVA record string produced by the encoder.

    Behaves exactly like the raw string; the properties expose the fixed
    layout (21-character header, 10-character designator, subfile).
    """

    @property
    def header(self) -> str:
        return self[:HEADER_LENGTH]

    @property
    def designator(self) -> str:
        return self[HEADER_LENGTH:SINGLE_SUBFILE_OFFSET]

    @property
    def subfile(self) -> str:
        return self[SINGLE_SUBFILE_OFFSET:]

    @property
    def subfile_type(self) -> SubfileType:
        return SubfileType.parse(self.designator[:2])

    @property
    def declared_offset(self) -> int:
        return int(self.designator[2:6])

    @property
    def declared_length(self) -> int:
        return int(self.designator[6:10])


@dataclass(frozen=True)
class FieldResult:
    """Reconciliation result for one rule-table element.

    Attributes:
        tag: Element identifier
        description: Rule description
        form_value: Expected value supplied by the caller ("" when none)
        scanned_value: Value found in the raw record, or "MISSING"
        status: Reconciliation status
    """

    tag: Tag
    description: str
    form_value: str
    scanned_value: str
    status: ValidationStatus

    def is_match(self) -> bool:
        return self.status == ValidationStatus.MATCH


@dataclass(frozen=True)
class ValidationReport:
    """Outcome of validating a raw record.

    Attributes:
        is_header_valid: True when no header problems were found
        raw_string: The record that was validated
        fields: Per-element results in rule-table order
        overall_score: 0-100, forced to 0 when the header is invalid
        header_errors: Human-readable header problems
    """

    is_header_valid: bool
    raw_string: str
    fields: List[FieldResult]
    overall_score: int
    header_errors: List[str] = field(default_factory=list)

    def result_for(self, tag: Any) -> Optional[FieldResult]:
        """Result for ``tag`` or None if the tag has no rule."""
        known = Tag.lookup(tag)
        for result in self.fields:
            if result.tag == known:
                return result
        return None

    def status_counts(self) -> Dict[ValidationStatus, int]:
        counts = {status: 0 for status in ValidationStatus}
        for result in self.fields:
            counts[result.status] += 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isHeaderValid": self.is_header_valid,
            "rawString": self.raw_string,
            "overallScore": self.overall_score,
            "headerErrors": list(self.header_errors),
            "fields": [
                {
                    "elementId": result.tag.value,
                    "description": result.description,
                    "formValue": result.form_value,
                    "scannedValue": result.scanned_value,
                    "status": result.status.value,
                }
                for result in self.fields
            ],
        }


@dataclass(frozen=True)
class ParsedRecord:
    """Tolerant decode of a raw record.

    Attributes:
        iin: Issuer identification number from the header ("" if unreadable)
        version: AAMVA version number from the header
        jurisdiction_version: Jurisdiction version number from the header
        entries: Number of entries declared in the header (0 if unreadable)
        subfile_type: Type of the first subfile, None if not located
        elements: Known data elements found in the record
        unknown: Unrecognized elements found in the record
    """

    iin: str
    version: str
    jurisdiction_version: str
    entries: int
    subfile_type: Optional[SubfileType]
    elements: Mapping[Tag, str]
    unknown: Mapping[str, str]

    def to_field_set(self) -> FieldSet:
        return FieldSet(
            elements=self.elements,
            unknown=self.unknown,
            iin=self.iin,
            jurisdiction_version=self.jurisdiction_version,
            subfile_type=self.subfile_type,
        )
