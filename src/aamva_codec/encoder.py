"""AAMVA 2020 record encoder.

Builds the exact character layout embedded in the PDF417 symbol:

    header (21)      "@" LF RS CR "ANSI " IIN(6) "10" JurVersion(2) "01"
    designator (10)  SubfileType(2) Offset(4)="0031" Length(4)
    subfile          SubfileType(2) <tag><value> LF ... <tag><value> CR

The encoder is total: absent mandatory elements become "NONE", absent
optional elements are omitted and metadata falls back to configured defaults.
Values are cut to their maximum field length (a cut name sets its truncation
indicator to "T") and unknown elements stop before the subfile would outgrow
the 4-digit designator length.
Element order is fixed so repeated encodes of the same field set are
byte-identical.

Example:
    >>> from aamva_codec import FieldSet, encode
    >>> record = encode(FieldSet.from_dict({"DCS": "SMITH", "DAC": "JOHN"}))
    >>> record.designator[2:6]
    '0031'
"""

import logging
from types import MappingProxyType
from typing import Callable, List, Optional, Set, Tuple

from .config_loader import EncoderConfig
from .normalizer import normalize_height, normalize_weight, sanitize_text
from .types import (
    COMPLIANCE_INDICATOR,
    CR,
    FILE_TYPE,
    LF,
    NONE_PLACEHOLDER,
    RS,
    SINGLE_SUBFILE_OFFSET,
    STANDARD_VERSION,
    UNAVAILABLE,
    EncodedRecord,
    FieldSet,
    SubfileType,
    Tag,
)

logger = logging.getLogger(__name__)

# Table D.3 mandatory elements, in emission order
MANDATORY_ELEMENTS: Tuple[Tag, ...] = (
    Tag.DCA,
    Tag.DCB,
    Tag.DCD,
    Tag.DBA,
    Tag.DCS,
    Tag.DAC,
    Tag.DAD,
    Tag.DBD,
    Tag.DBB,
    Tag.DBC,
    Tag.DAY,
    Tag.DAU,
    Tag.DAG,
    Tag.DAI,
    Tag.DAJ,
    Tag.DAK,
    Tag.DAQ,
    Tag.DCF,
    Tag.DCG,
)

# Table D.4 optional elements, emitted only when present
OPTIONAL_ELEMENTS: Tuple[Tag, ...] = (
    Tag.DCU,
    Tag.DDA,
    Tag.DDK,
    Tag.DAW,
    Tag.DAZ,
)

# Required by the 2020 revision, "N" = not truncated
TRUNCATION_INDICATORS: Tuple[Tag, ...] = (Tag.DDE, Tag.DDF, Tag.DDG)
NOT_TRUNCATED = "N"
TRUNCATED = "T"

# Name element -> its truncation indicator
TRUNCATED_NAMES = MappingProxyType({Tag.DCS: Tag.DDE, Tag.DAC: Tag.DDF, Tag.DAD: Tag.DDG})

NUMBER_OF_ENTRIES = "01"

# Table D.3/D.4 maximum field lengths; other elements use DEFAULT_MAX_LENGTH
MAX_LENGTHS = MappingProxyType(
    {
        Tag.DCA: 6,
        Tag.DCB: 12,
        Tag.DCD: 5,
        Tag.DCS: 40,
        Tag.DAC: 40,
        Tag.DAD: 40,
        Tag.DAG: 35,
        Tag.DAI: 20,
        Tag.DAK: 11,
        Tag.DAQ: 25,
        Tag.DCF: 25,
        Tag.DCU: 5,
        Tag.DAZ: 12,
    }
)
DEFAULT_MAX_LENGTH = 40

# The designator length field has 4 digits
MAX_SUBFILE_LENGTH = 9999


def _digits_only(text: str) -> str:
    return "".join(ch for ch in text or "" if ch in "0123456789")


def _value_formatter(tag: Tag) -> Callable[[str, str], str]:
    if tag == Tag.DAU:
        return lambda value, placeholder: normalize_height(value)
    if tag == Tag.DAW:
        return lambda value, placeholder: normalize_weight(value)
    return sanitize_text


class RecordEncoder:
    """Encodes field sets into AAMVA 2020 record strings.

    Args:
        config: Encoder configuration (defaults for metadata and elements).

    Example:
        >>> encoder = RecordEncoder(EncoderConfig(default_iin="636014"))
        >>> record = encoder.encode(FieldSet.from_dict({"DCS": "DOE"}))
        >>> record.header[9:15]
        '636014'
    """

    def __init__(self, config: Optional[EncoderConfig] = None):
        self.config = config if config is not None else EncoderConfig()

        self._defaults = {
            Tag.DCA: self.config.default_class,
            Tag.DCG: self.config.default_country,
        }

    def encode(self, fields: FieldSet) -> EncodedRecord:
        """Encode a field set.

        Args:
            fields: Field set to encode

        Returns:
            EncodedRecord (a str) with header, designator and subfile.
        """
        subfile_type = fields.subfile_type or SubfileType.parse(
            self.config.default_subfile_type
        )

        subfields = self._build_subfields(fields)
        subfile = subfile_type.value + LF.join(subfields) + CR

        designator = f"{subfile_type.value}{SINGLE_SUBFILE_OFFSET:04d}{len(subfile):04d}"
        header = self._build_header(fields)

        logger.debug(
            f"Encoded {len(subfields)} elements: "
            f"subfile_type={subfile_type.value}, length={len(subfile)}"
        )

        return EncodedRecord(header + designator + subfile)

    def _build_subfields(self, fields: FieldSet) -> List[str]:
        subfields: List[str] = []
        truncated: Set[Tag] = set()

        for tag in MANDATORY_ELEMENTS:
            value = fields.get(tag) or self._defaults.get(tag, "")
            subfields.append(self._subfield(tag, value, NONE_PLACEHOLDER, truncated))

        for tag in OPTIONAL_ELEMENTS:
            value = fields.get(tag)
            if value and value.strip():
                subfields.append(self._subfield(tag, value, UNAVAILABLE, truncated))

        for tag in TRUNCATION_INDICATORS:
            value = fields.get(tag) or (TRUNCATED if tag in truncated else NOT_TRUNCATED)
            subfields.append(self._subfield(tag, value, NOT_TRUNCATED, truncated))

        if self.config.preserve_unknown_elements:
            # type prefix + one LF/CR per subfield
            length = 2 + sum(len(subfield) + 1 for subfield in subfields)
            for tag in sorted(fields.unknown):
                value = fields.unknown[tag]
                if not (value and value.strip()):
                    continue
                subfield = f"{tag}{sanitize_text(value, UNAVAILABLE)[:DEFAULT_MAX_LENGTH]}"
                if length + len(subfield) + 1 > MAX_SUBFILE_LENGTH:
                    logger.warning(
                        f"Subfile length limit reached, dropping unknown elements from {tag}"
                    )
                    break
                subfields.append(subfield)
                length += len(subfield) + 1

        return subfields

    @staticmethod
    def _subfield(tag: Tag, value: str, placeholder: str, truncated: Set[Tag]) -> str:
        text = _value_formatter(tag)(value, placeholder)
        max_length = MAX_LENGTHS.get(tag, DEFAULT_MAX_LENGTH)
        if len(text) > max_length:
            logger.debug(f"Truncating {tag.value} from {len(text)} to {max_length} characters")
            text = text[:max_length]
            if tag in TRUNCATED_NAMES:
                truncated.add(TRUNCATED_NAMES[tag])
        return f"{tag.value}{text}"

    def _build_header(self, fields: FieldSet) -> str:
        # IIN is cut or zero-filled to 6 digits, never rejected
        iin = _digits_only(fields.iin) or self.config.default_iin
        iin = iin[:6].ljust(6, "0")

        jurisdiction_version = (
            _digits_only(fields.jurisdiction_version)
            or self.config.default_jurisdiction_version
        )
        jurisdiction_version = jurisdiction_version.zfill(2)[-2:]

        return (
            COMPLIANCE_INDICATOR
            + LF
            + RS
            + CR
            + FILE_TYPE
            + iin
            + STANDARD_VERSION
            + jurisdiction_version
            + NUMBER_OF_ENTRIES
        )


def encode(fields: FieldSet, config: Optional[EncoderConfig] = None) -> EncodedRecord:
    """Encode ``fields`` with a one-off RecordEncoder."""
    return RecordEncoder(config).encode(fields)
