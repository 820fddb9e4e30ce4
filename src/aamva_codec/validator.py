"""AAMVA record structure validation and reconciliation.

This module checks a raw record string against the 2020 layout and the
rule table, and reconciles the decoded elements with an expected field set
(form data or OCR output):

    1. HEADER CHECK: compliance indicator, file type and (strict mode)
       separator bytes, version and designator offset/length
    2. TOKENIZATION: split on LF, RS and CR
    3. RECONCILIATION: per rule-table element -> MATCH / MISMATCH /
       MISSING_IN_SCAN / FORMAT_ERROR
    4. SCORING: share of MATCH elements, 0 when the header is invalid

Validation is diagnostic: nothing here raises, every problem is reported as
data in the ValidationReport.

Example:
    >>> report = validate(record, expected_fields)
    >>> if report.is_header_valid:
    ...     print(f"Score: {report.overall_score}")
"""

import logging
import re
from typing import Dict, List, Mapping, Optional, Union

from .normalizer import comparison_key
from .rules import RULES
from .types import (
    COMPLIANCE_INDICATOR,
    CR,
    DESIGNATOR_LENGTH,
    FILE_TYPE,
    HEADER_LENGTH,
    LF,
    MISSING,
    RS,
    SINGLE_SUBFILE_OFFSET,
    STANDARD_VERSION,
    TAG_PATTERN,
    FieldResult,
    FieldSet,
    ParsedRecord,
    SubfileType,
    Tag,
    ValidationReport,
    ValidationStatus,
)

logger = logging.getLogger(__name__)

SEPARATORS = re.compile(f"[{LF}{RS}{CR}]")
_DIGITS = re.compile(r"\d")
_ASCII_NUMBER = re.compile(r"[0-9]+")

# Reconciliation compares this many leading characters of the expected value
COMPARISON_PREFIX = 3

ExpectedFields = Union[FieldSet, Mapping[str, str], None]


def _is_number(text: str) -> bool:
    # ASCII only, str.isdigit() also accepts superscripts that int() rejects
    return _ASCII_NUMBER.fullmatch(text) is not None


def check_header(raw: str, strict: bool = True) -> List[str]:
    """Check the header and designator of a raw record.

    Args:
        raw: Raw record string
        strict: Also verify separator bytes, AAMVA version, designator
            offset and (single-entry records) designator length

    Returns:
        List of problems, empty when the header is valid.

    Example:
        >>> check_header("ANSI 636014100001", strict=False)
        ["Missing '@' Compliance Indicator"]
    """
    errors: List[str] = []

    if not raw.startswith(COMPLIANCE_INDICATOR):
        errors.append("Missing '@' Compliance Indicator")
    if FILE_TYPE not in raw:
        errors.append("Missing 'ANSI ' file type")

    if not strict:
        return errors

    if raw[1:4] != LF + RS + CR:
        errors.append("Invalid control separators after compliance indicator")
    if raw[15:17] != STANDARD_VERSION:
        errors.append(f"AAMVA version is not '{STANDARD_VERSION}' (2020)")

    designator = raw[HEADER_LENGTH:SINGLE_SUBFILE_OFFSET]
    if len(designator) < DESIGNATOR_LENGTH or not _is_number(designator[2:]):
        errors.append("Malformed subfile designator")
        return errors

    offset = int(designator[2:6])
    length = int(designator[6:10])
    if offset != SINGLE_SUBFILE_OFFSET:
        errors.append(
            f"Subfile offset is {offset}, expected {SINGLE_SUBFILE_OFFSET}"
        )
    elif raw[19:21] == "01" and length != len(raw) - offset:
        errors.append(
            f"Subfile length is {length}, actual {len(raw) - offset}"
        )

    return errors


def _first_subfile_start(raw: str) -> Optional[int]:
    """Offset of the first subfile body (after its type prefix), if locatable."""
    designator = raw[HEADER_LENGTH:SINGLE_SUBFILE_OFFSET]
    if len(designator) < DESIGNATOR_LENGTH or not _is_number(designator[2:6]):
        return None
    offset = int(designator[2:6])
    if raw[offset : offset + 2] != designator[:2]:
        return None
    return offset + 2


def tokenize(raw: str) -> List[str]:
    """Split a raw record into candidate subfield lines.

    The first element of the subfile shares its line with the subfile type
    prefix (e.g. ``DLDAQ...``); when the designator locates the subfile that
    element is put first so tag lookups find it.
    """
    lines = SEPARATORS.split(raw)
    start = _first_subfile_start(raw)
    if start is not None:
        lines.insert(0, SEPARATORS.split(raw[start:], maxsplit=1)[0])
    return lines


def _expected_value(expected: ExpectedFields, tag: Tag) -> str:
    if expected is None:
        return ""
    if isinstance(expected, FieldSet):
        return expected.get(tag)
    value = expected.get(tag.value)
    return "" if value is None else str(value)


def _reconcile(tag: Tag, value: str, form_value: str) -> ValidationStatus:
    clean_value = comparison_key(value)
    clean_form = comparison_key(form_value)

    if tag == Tag.DAU and _DIGITS.search(value) and _DIGITS.search(form_value):
        # Heights are stored converted ("071 IN" vs "5-11"), any numeric height matches
        return ValidationStatus.MATCH

    # TODO: a 3-character prefix lets "SMITH" match "SMITHSON"; tightening it
    # changes existing scores, needs a decision on the tolerance first
    if clean_form and clean_form[:COMPARISON_PREFIX] not in clean_value:
        return ValidationStatus.MISMATCH
    return ValidationStatus.MATCH


def validate(raw: str, expected: ExpectedFields = None, strict: bool = True) -> ValidationReport:
    """Validate a raw AAMVA record and reconcile it with expected values.

    Args:
        raw: Raw record string (e.g. decoded from a PDF417 symbol)
        expected: Expected values (FieldSet or tag -> value mapping); elements
            without an expected value only need to be present and well-formed
        strict: Run the strict header checks (see check_header)

    Returns:
        ValidationReport with per-element results and a 0-100 score.
    """
    raw = raw if isinstance(raw, str) else ""
    header_errors = check_header(raw, strict=strict)
    lines = tokenize(raw)

    fields: List[FieldResult] = []
    matched = 0

    for tag, rule in RULES.items():
        line = next((candidate for candidate in lines if candidate.startswith(tag.value)), None)
        value = line[len(tag.value) :] if line is not None else ""
        form_value = _expected_value(expected, tag)

        if line is None:
            status = ValidationStatus.MATCH if rule.accepts("") else ValidationStatus.MISSING_IN_SCAN
        elif not rule.accepts(value):
            status = ValidationStatus.FORMAT_ERROR
        elif form_value:
            status = _reconcile(tag, value, form_value)
        else:
            status = ValidationStatus.MATCH

        if status == ValidationStatus.MATCH:
            matched += 1

        fields.append(
            FieldResult(
                tag=tag,
                description=rule.description,
                form_value=form_value,
                scanned_value=value or MISSING,
                status=status,
            )
        )

    is_header_valid = not header_errors
    # Round half up
    score = int(100 * matched / len(RULES) + 0.5) if is_header_valid else 0

    if header_errors:
        logger.warning(f"Invalid AAMVA header: {'; '.join(header_errors)}")
    logger.debug(f"Validated record: matched={matched}/{len(RULES)}, score={score}")

    return ValidationReport(
        is_header_valid=is_header_valid,
        raw_string=raw,
        fields=fields,
        overall_score=score,
        header_errors=header_errors,
    )


def parse_record(raw: str) -> ParsedRecord:
    """Decode a raw record into header metadata and data elements.

    Decoding is tolerant: unreadable header parts come back empty and, when
    the designator cannot be used, every tag-shaped line after the header
    is taken as an element. The first occurrence of a tag wins.

    Args:
        raw: Raw record string

    Returns:
        ParsedRecord with known elements and unknown (preserved) elements.
    """
    raw = raw if isinstance(raw, str) else ""
    header = raw[:HEADER_LENGTH]
    has_file_type = header[4:9] == FILE_TYPE

    iin = header[9:15] if has_file_type else ""
    version = header[15:17] if has_file_type else ""
    jurisdiction_version = header[17:19] if has_file_type else ""
    entries_text = header[19:21] if has_file_type else ""
    entries = int(entries_text) if _is_number(entries_text) else 0

    start = _first_subfile_start(raw)
    subfile_type: Optional[SubfileType] = None
    if start is not None:
        type_text = raw[start - 2 : start]
        if type_text in {member.value for member in SubfileType}:
            subfile_type = SubfileType(type_text)
        length_text = raw[HEADER_LENGTH + 6 : SINGLE_SUBFILE_OFFSET]
        end = start - 2 + int(length_text) if _is_number(length_text) else len(raw)
        lines = SEPARATORS.split(raw[start:end])
    else:
        body = raw[SINGLE_SUBFILE_OFFSET:] if has_file_type else raw
        lines = SEPARATORS.split(body)

    elements: Dict[Tag, str] = {}
    unknown: Dict[str, str] = {}
    for line in lines:
        code = line[:3]
        if len(line) < 3 or not TAG_PATTERN.match(code):
            continue
        tag = Tag.lookup(code)
        if tag is not None:
            elements.setdefault(tag, line[3:])
        else:
            unknown.setdefault(code, line[3:])

    return ParsedRecord(
        iin=iin,
        version=version,
        jurisdiction_version=jurisdiction_version,
        entries=entries,
        subfile_type=subfile_type,
        elements=elements,
        unknown=unknown,
    )
