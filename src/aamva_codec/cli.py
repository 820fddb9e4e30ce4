"""Command-line interface for the AAMVA codec.

Usage:
    aamva-codec encode form.yaml --output record.txt
    aamva-codec validate record.txt --expected form.yaml
    aamva-codec scan license_front.jpg --base form.yaml
"""

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import cv2
import yaml

from .extractor import ExtractionError
from .processor import RecordProcessor
from .types import FieldSet

logger = logging.getLogger(__name__)


def load_form(form_path: Path) -> FieldSet:
    """Load a form (YAML or JSON mapping of tag -> value) into a FieldSet.

    Raises:
        FileNotFoundError: If the form file does not exist
        ValueError: If the file does not hold a mapping
    """
    if not form_path.exists():
        raise FileNotFoundError(f"Form file not found: {form_path}")

    with open(form_path, "r", encoding="utf-8") as f:
        # BaseLoader: every scalar stays a string, dates keep their leading zeros
        data = yaml.load(f, Loader=yaml.BaseLoader) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Form file must contain a mapping: {form_path}")
    return FieldSet.from_dict(data)


def read_record(record_path: Path) -> str:
    # newline="" keeps the CR separators intact
    with open(record_path, "r", encoding="ascii", newline="") as f:
        return f.read()


def write_record(record: str, record_path: Path) -> None:
    with open(record_path, "w", encoding="ascii", newline="") as f:
        f.write(record)


def _print_report(report_dict: Dict[str, Any]) -> None:
    print(json.dumps(report_dict, indent=2))


def _cmd_encode(processor: RecordProcessor, args: argparse.Namespace) -> int:
    result = processor.generate(load_form(Path(args.form)))

    if args.output:
        write_record(result.record, Path(args.output))
        logger.info(f"Record written to {args.output}")
    else:
        print(repr(str(result.record)))

    print(f"Score: {result.report.overall_score}")
    return 0 if result.report.is_header_valid else 1


def _cmd_validate(processor: RecordProcessor, args: argparse.Namespace) -> int:
    raw = read_record(Path(args.record))
    expected = load_form(Path(args.expected)) if args.expected else None

    report = processor.verify(raw, expected)
    _print_report(report.to_dict())
    return 0 if report.is_header_valid else 1


def _cmd_scan(processor: RecordProcessor, args: argparse.Namespace) -> int:
    image = cv2.imread(args.image, cv2.IMREAD_UNCHANGED)
    if image is None:
        raise FileNotFoundError(f"Could not read image: {args.image}")

    base = load_form(Path(args.base)) if args.base else None
    fields = processor.scan(image, base)
    print(json.dumps(fields.to_dict(), indent=2, sort_keys=True))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aamva-codec",
        description="Encode, validate and scan AAMVA 2020 DL/ID records",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--config", type=str, default=None, help="Path to config YAML file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    encode_parser = subparsers.add_parser("encode", help="Encode a form into a record")
    encode_parser.add_argument("form", type=str, help="YAML/JSON form (tag -> value)")
    encode_parser.add_argument("--output", type=str, default=None, help="Record output file")
    encode_parser.set_defaults(handler=_cmd_encode)

    validate_parser = subparsers.add_parser("validate", help="Validate a raw record")
    validate_parser.add_argument("record", type=str, help="Raw record file")
    validate_parser.add_argument(
        "--expected", type=str, default=None, help="YAML/JSON form with expected values"
    )
    validate_parser.set_defaults(handler=_cmd_validate)

    scan_parser = subparsers.add_parser("scan", help="Extract fields from a card image")
    scan_parser.add_argument("image", type=str, help="Card image file")
    scan_parser.add_argument("--base", type=str, default=None, help="Form to merge into")
    scan_parser.set_defaults(handler=_cmd_scan)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        processor = RecordProcessor(Path(args.config) if args.config else None)
        return args.handler(processor, args)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"\n❌ {args.command} failed: {e}")
        return 2
    except ExtractionError as e:
        logger.error(f"Extraction failed: {e}")
        print(f"\n❌ Extraction failed: {e}")
        return 3


if __name__ == "__main__":
    raise SystemExit(main())
