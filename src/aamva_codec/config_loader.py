"""Configuration loader with Pydantic validation for the AAMVA codec.

This module provides type-safe configuration loading from YAML files using
Pydantic models for validation and default values.
"""

from pathlib import Path
from typing import Any, Dict, Literal

import yaml
from pydantic import BaseModel, Field


class EncoderConfig(BaseModel):
    """Record encoder configuration.

    Attributes:
        default_iin: Issuer identification number used when a field set has none
        default_jurisdiction_version: Jurisdiction version used when none is given
        default_subfile_type: Subfile type used when none is given ("DL" or "ID")
        default_class: Vehicle class (DCA) used when the element is empty
        default_country: Country (DCG) used when the element is empty
        preserve_unknown_elements: Append unrecognized elements after the
            standard ones
    """

    default_iin: str = Field(default="636000", pattern=r"^\d{1,6}$")
    default_jurisdiction_version: str = Field(default="00", pattern=r"^\d{1,2}$")
    default_subfile_type: Literal["DL", "ID"] = "DL"
    default_class: str = "C"
    default_country: Literal["USA", "CAN"] = "USA"
    preserve_unknown_elements: bool = True


class ValidatorConfig(BaseModel):
    """Record validator configuration.

    Attributes:
        strict_header: Also check separator bytes, version and designator
            offsets, not just the compliance indicator and file type
    """

    strict_header: bool = True


class BarcodeConfig(BaseModel):
    """PDF417 symbol parameters handed to the external barcode renderer.

    Attributes:
        symbology: Renderer symbology identifier
        scale: Module (X-dimension) scale factor
        row_height: Row height in modules (>= 3X for ID cards)
        error_correction_level: PDF417 error correction level (0-8)
        columns: Data columns, 0 lets the renderer choose
        rows: Rows, 0 lets the renderer choose
        padding: Quiet zone padding
        include_text: Render human-readable text below the symbol
    """

    symbology: str = "pdf417"
    scale: int = Field(default=2, gt=0)
    row_height: int = Field(default=12, gt=0)
    error_correction_level: int = Field(default=5, ge=0, le=8)
    columns: int = Field(default=0, ge=0, le=30)
    rows: int = Field(default=0, ge=0, le=90)
    padding: int = Field(default=2, ge=0)
    include_text: bool = False

    def to_renderer_options(self) -> Dict[str, Any]:
        """Options in the key names used by bwip-style renderers."""
        return {
            "bcid": self.symbology,
            "scale": self.scale,
            "height": self.row_height,
            "eclevel": self.error_correction_level,
            "columns": self.columns,
            "rows": self.rows,
            "padding": self.padding,
            "includetext": self.include_text,
        }


class ExtractionConfig(BaseModel):
    """Field extraction (vision model) configuration.

    Attributes:
        model_name: Gemini model used for extraction
        api_key_env: Environment variable holding the API key
        max_image_side: Longest image side sent to the model, in pixels
        jpeg_quality: JPEG quality of the uploaded image (1-100)
    """

    model_name: str = "gemini-2.0-flash"
    api_key_env: str = "GEMINI_API_KEY"
    max_image_side: int = Field(default=1200, gt=0)
    jpeg_quality: int = Field(default=90, ge=1, le=100)


class AAMVAModuleConfig(BaseModel):
    """Complete codec configuration.

    Attributes:
        encoder: Record encoder configuration
        validator: Record validator configuration
        barcode: PDF417 renderer parameters
        extraction: Field extraction configuration
    """

    encoder: EncoderConfig = EncoderConfig()
    validator: ValidatorConfig = ValidatorConfig()
    barcode: BarcodeConfig = BarcodeConfig()
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)


class Config(BaseModel):
    """Root configuration container.

    Attributes:
        aamva: Codec configuration
    """

    aamva: AAMVAModuleConfig = AAMVAModuleConfig()


def load_config(config_path: Path) -> Config:
    """Load and validate configuration from YAML file.

    The file may either hold the module settings directly or nest them under
    an ``aamva`` key.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated Config object with all settings

    Raises:
        FileNotFoundError: If config file does not exist
        yaml.YAMLError: If YAML parsing fails
        pydantic.ValidationError: If configuration validation fails

    Example:
        >>> config = load_config(Path("src/aamva_codec/config.yaml"))
        >>> print(config.aamva.barcode.error_correction_level)
        5
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        config_dict = yaml.safe_load(f) or {}

    if "aamva" in config_dict:
        return Config(**config_dict)
    return Config(aamva=AAMVAModuleConfig(**config_dict))


def get_default_config() -> Config:
    """Get default configuration from bundled config.yaml file.

    Returns:
        Config object loaded from the package's config.yaml
    """
    default_config_path = Path(__file__).parent / "config.yaml"
    if default_config_path.exists():
        return load_config(default_config_path)
    else:
        # Fallback to hardcoded defaults if config file is missing
        return Config()
