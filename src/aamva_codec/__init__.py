"""AAMVA 2020 DL/ID record codec.

Encodes driver's license / ID card data into the AAMVA 2020 text record
carried by the PDF417 barcode, validates raw records against the standard's
element rules and normalizes free-form or OCR-extracted field values.

Core Components:
    - types: Data structures (FieldSet, EncodedRecord, ValidationReport, etc.)
    - normalizer: Height, weight, date, sex and text canonicalization
    - encoder: FieldSet -> AAMVA record string
    - rules: Per-element format rules
    - validator: Header checks, reconciliation and scoring
    - jurisdictions: Issuer identification numbers by jurisdiction
    - extractor: Gemini vision extraction of fields from card images
    - processor: Scan / generate / verify workflow
    - cli: aamva-codec command-line entry point

Example:
    >>> from aamva_codec import FieldSet, encode, validate
    >>> fields = FieldSet.from_dict({"DCS": "SMITH", "DAC": "JOHN"})
    >>> record = encode(fields)
    >>> report = validate(record, fields)
    >>> report.is_header_valid
    True
"""

from .config_loader import (
    AAMVAModuleConfig,
    BarcodeConfig,
    Config,
    EncoderConfig,
    ExtractionConfig,
    ValidatorConfig,
    get_default_config,
    load_config,
)
from .encoder import RecordEncoder, encode
from .extractor import ExtractionError, FieldExtractor, clean_extracted_fields
from .jurisdictions import JURISDICTIONS, Jurisdiction, detect_jurisdiction, find_by_iin
from .normalizer import (
    comparison_key,
    normalize_date,
    normalize_flag,
    normalize_height,
    normalize_sex,
    normalize_weight,
    sanitize_text,
)
from .processor import GenerationResult, RecordProcessor, apply_jurisdiction, merge_extracted
from .rules import RULES, get_rule
from .types import (
    EncodedRecord,
    FieldResult,
    FieldSet,
    ParsedRecord,
    Rule,
    SubfileType,
    Tag,
    ValidationReport,
    ValidationStatus,
)
from .validator import check_header, parse_record, validate

__all__ = [
    # Types
    "Tag",
    "SubfileType",
    "FieldSet",
    "Rule",
    "EncodedRecord",
    "ValidationStatus",
    "FieldResult",
    "ValidationReport",
    "ParsedRecord",
    # Configuration
    "Config",
    "AAMVAModuleConfig",
    "EncoderConfig",
    "ValidatorConfig",
    "BarcodeConfig",
    "ExtractionConfig",
    "load_config",
    "get_default_config",
    # Normalization
    "normalize_height",
    "normalize_weight",
    "sanitize_text",
    "normalize_date",
    "normalize_sex",
    "normalize_flag",
    "comparison_key",
    # Encoding
    "RecordEncoder",
    "encode",
    # Validation
    "RULES",
    "get_rule",
    "check_header",
    "validate",
    "parse_record",
    # Jurisdictions
    "Jurisdiction",
    "JURISDICTIONS",
    "detect_jurisdiction",
    "find_by_iin",
    # Extraction
    "FieldExtractor",
    "ExtractionError",
    "clean_extracted_fields",
    # Workflow
    "RecordProcessor",
    "GenerationResult",
    "apply_jurisdiction",
    "merge_extracted",
]
