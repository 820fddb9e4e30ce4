"""Gemini vision extraction of AAMVA fields from card images.

This is the only component that talks to an external service. It handles:

- Image preparation (alpha flattening, downscaling, JPEG encoding)
- A single request to the vision model with the tag vocabulary as hints
- Parsing of the JSON answer into a tag -> value mapping
- Normalization of the extracted values (dates, sex code, casing)

Failures of the service or of its answer raise ExtractionError; an element
the model could not read is simply missing from the returned mapping.

Example:
    >>> extractor = FieldExtractor(ExtractionConfig())
    >>> image = cv2.imread("license_front.jpg")
    >>> fields = extractor.extract(image)
    >>> fields.get("DCS")
    'SMITH'
"""

import json
import logging
import os
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

import cv2
import numpy as np

from .config_loader import ExtractionConfig
from .normalizer import normalize_date, normalize_flag, normalize_sex
from .types import TAG_PATTERN, Tag

logger = logging.getLogger(__name__)

DATE_TAGS = frozenset({Tag.DBA, Tag.DBB, Tag.DBD})

# Vocabulary sent to the model (tag -> description hint)
FIELD_HINTS: Mapping[Tag, str] = MappingProxyType(
    {
        Tag.DCS: "Last Name",
        Tag.DAC: "First Name",
        Tag.DAD: "Middle Name",
        Tag.DCU: "Suffix",
        Tag.DAQ: "ID Number",
        Tag.DBB: "DOB",
        Tag.DBA: "Expiry",
        Tag.DBD: "Issue Date",
        Tag.DAG: "Address",
        Tag.DAI: "City",
        Tag.DAJ: "State Code (2 chars)",
        Tag.DAK: "Zip",
        Tag.DBC: "Sex",
        Tag.DAY: "Eyes",
        Tag.DAU: "Height",
        Tag.DCF: "Document Discriminator",
        Tag.DDA: "REAL ID Indicator",
        Tag.DDK: "Donor",
    }
)

EXTRACTION_PROMPT = """Analyze the Driver's License/ID image. Extract data for AAMVA 2020 standard tags.
Rules:
- Dates (DBA, DBB, DBD) must be MMDDYYYY.
- Sex (DBC): 1 for Male, 2 for Female.
- Eye Color (DAY): 3-letter codes (e.g., BRO, BLU, GRN).
- Height (DAU): format as FT-IN (e.g., 5'-11").
- DDA: 'F' if has Gold Star (REAL ID), 'N' if not.
- DDK: '1' if Organ Donor, '0' if not.
Return ONLY a valid JSON object whose keys are these tags:
{fields}"""


class ExtractionError(Exception):
    """Raised when the extraction service fails or its answer is unusable.

    Attributes:
        message: Human-readable explanation
        error_type: One of "configuration", "invalid_image", "api",
            "empty_response", "invalid_response"
    """

    def __init__(self, message: str, error_type: str = "general"):
        self.message = message
        self.error_type = error_type
        super().__init__(f"{error_type.upper()}: {message}")


def build_prompt(hints: Mapping[Tag, str] = FIELD_HINTS) -> str:
    fields = "\n".join(f"- {tag.value}: {description}" for tag, description in hints.items())
    return EXTRACTION_PROMPT.format(fields=fields)


def clean_extracted_fields(raw: Mapping[str, Any]) -> Dict[str, str]:
    """Normalize a raw extraction answer.

    Values are uppercased and trimmed; dates go through normalize_date, sex
    through normalize_sex and the REAL ID / donor flags through
    normalize_flag. Keys that are not tag-shaped and empty values are
    dropped.

    Args:
        raw: Mapping returned by the model (tag -> raw value)

    Returns:
        Mapping of tag string -> normalized value.
    """
    cleaned: Dict[str, str] = {}
    for key, value in raw.items():
        code = str(key).strip().upper()
        if not TAG_PATTERN.match(code):
            logger.debug(f"Dropping non-tag key from extraction: {key!r}")
            continue

        text = "" if value is None else str(value).upper().strip()
        tag = Tag.lookup(code)
        if tag in DATE_TAGS:
            text = normalize_date(text)
        elif tag == Tag.DBC:
            text = normalize_sex(text)
        elif tag == Tag.DDA:
            text = normalize_flag(text, truthy="F", falsy="N")
        elif tag == Tag.DDK:
            text = normalize_flag(text, truthy="1", falsy="0")

        if text:
            cleaned[code] = text
    return cleaned


def _strip_code_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        lines = [line for line in text.split("\n") if not line.strip().startswith("```")]
        text = "\n".join(lines).strip()
    return text


def parse_response(text: Optional[str]) -> Dict[str, Any]:
    """Parse the model's JSON answer.

    Raises:
        ExtractionError: If the answer is empty, not JSON or not an object
    """
    body = _strip_code_fence(text or "")
    if not body:
        raise ExtractionError("Model returned an empty response", "empty_response")

    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise ExtractionError(
            f"Failed to parse AI response: {e.msg}", "invalid_response"
        ) from e

    if not isinstance(data, dict):
        raise ExtractionError(
            f"Expected a JSON object, got {type(data).__name__}", "invalid_response"
        )
    return data


class FieldExtractor:
    """Wrapper for the Gemini vision model.

    Args:
        config: Extraction configuration.
        api_key: API key; read from ``config.api_key_env`` when omitted.

    Attributes:
        config: Extraction configuration instance.
        model: Gemini model instance (lazy-loaded).
    """

    def __init__(self, config: ExtractionConfig, api_key: Optional[str] = None):
        self.config = config
        self.api_key = api_key if api_key is not None else os.getenv(config.api_key_env, "")
        self._model: Optional[Any] = None  # Lazy-loaded

        logger.info(
            f"FieldExtractor initialized: model={config.model_name}, "
            f"max_image_side={config.max_image_side}, "
            f"api_key_configured={bool(self.api_key)}"
        )

    @property
    def model(self):
        """Lazy-load the Gemini model on first access.

        Raises:
            ExtractionError: If no API key is configured
            ImportError: If google-generativeai is not installed
        """
        if self._model is None:
            if not self.api_key:
                raise ExtractionError(
                    f"{self.config.api_key_env} not configured", "configuration"
                )
            try:
                import google.generativeai as genai
            except ImportError as e:
                logger.error(
                    "Failed to import google.generativeai. "
                    "Install with: pip install google-generativeai"
                )
                raise ImportError(
                    "google-generativeai not installed. "
                    "Run: pip install google-generativeai"
                ) from e

            genai.configure(api_key=self.api_key)
            self._model = genai.GenerativeModel(self.config.model_name)
            logger.info(f"Gemini model '{self.config.model_name}' loaded")

        return self._model

    def prepare_image(self, image: np.ndarray) -> bytes:
        """Convert an image to the JPEG payload sent to the model.

        Transparent areas are flattened onto white and the image is
        downscaled so its longest side is at most ``max_image_side``.

        Args:
            image: Grayscale, BGR or BGRA uint8 image

        Returns:
            JPEG bytes.

        Raises:
            ExtractionError: If the image is empty or cannot be encoded
        """
        if image is None or image.size == 0:
            raise ExtractionError("Invalid image: empty or None", "invalid_image")

        if image.ndim == 2:
            image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
        elif image.shape[2] == 4:
            color = image[:, :, :3].astype(np.float32)
            alpha = image[:, :, 3:4].astype(np.float32) / 255.0
            image = (color * alpha + 255.0 * (1.0 - alpha)).astype(np.uint8)

        h, w = image.shape[:2]
        longest = max(h, w)
        if longest > self.config.max_image_side:
            scale = self.config.max_image_side / longest
            new_size = (max(1, int(round(w * scale))), max(1, int(round(h * scale))))
            image = cv2.resize(image, new_size, interpolation=cv2.INTER_AREA)
            logger.debug(f"Resized image from {w}x{h} to {new_size[0]}x{new_size[1]}")

        ok, buffer = cv2.imencode(
            ".jpg", image, [int(cv2.IMWRITE_JPEG_QUALITY), self.config.jpeg_quality]
        )
        if not ok:
            raise ExtractionError("JPEG encoding failed", "invalid_image")
        return buffer.tobytes()

    def extract(self, image: np.ndarray) -> Dict[str, str]:
        """Extract and normalize AAMVA fields from a card image.

        Args:
            image: Card image (grayscale, BGR or BGRA)

        Returns:
            Mapping of tag -> normalized value for every element found.

        Raises:
            ExtractionError: On configuration, service or response failures
        """
        payload = self.prepare_image(image)
        model = self.model

        try:
            response = model.generate_content(
                [{"mime_type": "image/jpeg", "data": payload}, build_prompt()],
                generation_config={"response_mime_type": "application/json"},
            )
        except Exception as e:
            logger.error(f"Gemini request failed: {e}")
            raise ExtractionError(f"Gemini request failed: {e}", "api") from e

        try:
            text = response.text
        except ValueError as e:
            # Raised by the SDK when the response has no usable candidate
            raise ExtractionError(f"No usable response: {e}", "empty_response") from e

        fields = clean_extracted_fields(parse_response(text))
        logger.info(f"Extracted {len(fields)} fields: {sorted(fields)}")
        return fields
