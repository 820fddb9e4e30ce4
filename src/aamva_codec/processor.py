"""AAMVA record processing workflow.

This module orchestrates the codec components:
    1. SCAN: extract fields from a card image and merge them into a form
    2. GENERATE: encode a field set and self-validate the resulting record
    3. VERIFY: validate an arbitrary raw record against expected fields

Example:
    >>> from aamva_codec import RecordProcessor, FieldSet
    >>> processor = RecordProcessor()
    >>> result = processor.generate(FieldSet.from_dict({"DCS": "SMITH"}))
    >>> print(result.report.overall_score)
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import numpy as np

from .config_loader import Config, get_default_config, load_config
from .encoder import RecordEncoder
from .extractor import FieldExtractor
from .jurisdictions import Jurisdiction, detect_jurisdiction
from .types import EncodedRecord, FieldSet, Tag, ValidationReport
from .validator import validate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationResult:
    """Encoded record with its self-validation report.

    Attributes:
        record: Encoded AAMVA record
        report: Validation of the record against the fields it was built from
        barcode_options: PDF417 parameters for the barcode renderer
    """

    record: EncodedRecord
    report: ValidationReport
    barcode_options: Dict[str, Any]


def apply_jurisdiction(fields: FieldSet, jurisdiction: Jurisdiction) -> FieldSet:
    """Point a field set at a jurisdiction (state code, IIN, version, country)."""
    updated = fields.merge({Tag.DAJ: jurisdiction.code, Tag.DCG: jurisdiction.country})
    return updated.replace(iin=jurisdiction.iin, jurisdiction_version=jurisdiction.version)


def merge_extracted(base: FieldSet, extracted: Mapping[str, str]) -> FieldSet:
    """Layer extracted fields over ``base``.

    When the extracted state code names a known jurisdiction, the IIN, state
    code and jurisdiction version follow it. The country is left as is.
    """
    merged = base.merge(extracted)
    jurisdiction = detect_jurisdiction(extracted.get(Tag.DAJ.value, ""))
    if jurisdiction is None:
        return merged

    logger.info(f"Detected jurisdiction {jurisdiction.name} (IIN {jurisdiction.iin})")
    return merged.merge({Tag.DAJ: jurisdiction.code}).replace(
        iin=jurisdiction.iin,
        jurisdiction_version=jurisdiction.version,
    )


class RecordProcessor:
    """Main entry point combining extraction, encoding and validation.

    Args:
        config_path: Optional path to config YAML file. If None, uses default config.
        extractor: Optional pre-built extractor (created lazily otherwise).

    Attributes:
        config: Full configuration object
        encoder: Record encoder
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        extractor: Optional[FieldExtractor] = None,
    ):
        if config_path is None:
            self.config: Config = get_default_config()
        else:
            self.config: Config = load_config(config_path)

        self.encoder = RecordEncoder(self.config.aamva.encoder)
        self._extractor = extractor

        logger.info(
            f"RecordProcessor initialized: "
            f"default_iin={self.config.aamva.encoder.default_iin}, "
            f"strict_header={self.config.aamva.validator.strict_header}"
        )

    @property
    def extractor(self) -> FieldExtractor:
        if self._extractor is None:
            self._extractor = FieldExtractor(self.config.aamva.extraction)
        return self._extractor

    def generate(self, fields: Union[FieldSet, Mapping[str, Any]]) -> GenerationResult:
        """Encode ``fields`` and validate the record against them.

        Args:
            fields: FieldSet or form-style mapping

        Returns:
            GenerationResult with the record, its report and barcode options.
        """
        if not isinstance(fields, FieldSet):
            fields = FieldSet.from_dict(fields)

        record = self.encoder.encode(fields)
        report = self.verify(record, fields)

        if report.overall_score < 100:
            failing = [r.tag.value for r in report.fields if not r.is_match()]
            logger.warning(
                f"Generated record scored {report.overall_score}: failing elements {failing}"
            )
        else:
            logger.info(f"Generated record ({len(record)} chars), score=100")

        return GenerationResult(
            record=record,
            report=report,
            barcode_options=self.config.aamva.barcode.to_renderer_options(),
        )

    def verify(
        self,
        raw: str,
        expected: Union[FieldSet, Mapping[str, str], None] = None,
    ) -> ValidationReport:
        """Validate a raw record using the configured header strictness."""
        return validate(raw, expected, strict=self.config.aamva.validator.strict_header)

    def scan(self, image: np.ndarray, base: Optional[FieldSet] = None) -> FieldSet:
        """Extract fields from a card image and merge them into ``base``.

        Raises:
            ExtractionError: If extraction fails (see FieldExtractor.extract)
        """
        extracted = self.extractor.extract(image)
        return merge_extracted(base if base is not None else FieldSet(), extracted)
