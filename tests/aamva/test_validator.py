"""Unit tests for record validation, reconciliation and parsing."""

from aamva_codec.encoder import encode
from aamva_codec.rules import RULES
from aamva_codec.types import MISSING, FieldSet, SubfileType, Tag, ValidationStatus
from aamva_codec.validator import check_header, parse_record, tokenize, validate

HEADER = "@\n\x1e\rANSI 636014100101"
SHORT_RECORD = HEADER + "DL00310023" + "DLDAQD1234567\nDCSSMITH\r"


# ═══════════════════════════════════════════════════════════════════════════
# HEADER
# ═══════════════════════════════════════════════════════════════════════════


class TestCheckHeader:
    """Test header and designator checks."""

    def test_encoded_record_is_valid(self, complete_fields):
        """Test the encoder output passes the strict checks."""
        assert check_header(encode(complete_fields)) == []

    def test_handwritten_record_is_valid(self):
        """Test a minimal hand-built record passes the strict checks."""
        assert check_header(SHORT_RECORD) == []

    def test_missing_compliance_indicator(self):
        """Test a record not starting with '@' is flagged."""
        errors = check_header("ANSI 636014100001", strict=False)
        assert errors == ["Missing '@' Compliance Indicator"]

    def test_missing_file_type(self):
        """Test a record without 'ANSI ' is flagged."""
        errors = check_header("@\n\x1e\rXXXXX636014100101", strict=False)
        assert errors == ["Missing 'ANSI ' file type"]

    def test_lenient_ignores_layout(self):
        """Test lenient mode only checks the indicator and file type."""
        assert check_header("@ANSI whatever", strict=False) == []

    def test_strict_separators(self):
        """Test wrong separator bytes are flagged in strict mode."""
        raw = SHORT_RECORD.replace("@\n\x1e\r", "@\n\n\r", 1)
        assert "Invalid control separators after compliance indicator" in check_header(raw)

    def test_strict_version(self):
        """Test a version other than 10 is flagged in strict mode."""
        raw = SHORT_RECORD[:15] + "09" + SHORT_RECORD[17:]
        assert "AAMVA version is not '10' (2020)" in check_header(raw)

    def test_strict_offset(self):
        """Test a designator offset other than 31 is flagged."""
        raw = SHORT_RECORD.replace("DL00310023", "DL00300023", 1)
        assert "Subfile offset is 30, expected 31" in check_header(raw)

    def test_strict_length(self):
        """Test a designator length that disagrees with the subfile is flagged."""
        raw = SHORT_RECORD.replace("DL00310023", "DL00310099", 1)
        assert "Subfile length is 99, actual 23" in check_header(raw)

    def test_strict_malformed_designator(self):
        """Test a truncated record has a malformed designator."""
        assert "Malformed subfile designator" in check_header(HEADER + "DL0031")

    def test_non_ascii_digits_in_designator(self):
        """Test Unicode digits in the designator are malformed, not a crash."""
        raw = HEADER + "DL\u00b2\u00b3310023" + "DLDAQD1234567\nDCSSMITH\r"

        assert "Malformed subfile designator" in check_header(raw)

        report = validate(raw)
        assert not report.is_header_valid
        assert report.overall_score == 0


# ═══════════════════════════════════════════════════════════════════════════
# TOKENIZATION
# ═══════════════════════════════════════════════════════════════════════════


class TestTokenize:
    """Test subfield line splitting."""

    def test_first_element_is_exposed(self):
        """Test the element sharing a line with the subfile type is found."""
        lines = tokenize(SHORT_RECORD)

        assert lines[0] == "DAQD1234567"
        assert "DCSSMITH" in lines

    def test_unlocatable_subfile(self):
        """Test plain splitting when the designator is unusable."""
        lines = tokenize("DAQX\nDCSY\r")
        assert lines == ["DAQX", "DCSY", ""]


# ═══════════════════════════════════════════════════════════════════════════
# VALIDATION
# ═══════════════════════════════════════════════════════════════════════════


class TestValidate:
    """Test reconciliation and scoring."""

    def test_round_trip_scores_100(self, complete_fields):
        """Test an encoded record validated against its input scores 100."""
        report = validate(encode(complete_fields), complete_fields)

        assert report.is_header_valid
        assert report.header_errors == []
        assert report.overall_score == 100
        assert all(result.is_match() for result in report.fields)

    def test_fields_follow_rule_order(self, complete_fields):
        """Test one result per rule, in rule-table order."""
        report = validate(encode(complete_fields), complete_fields)

        assert [result.tag for result in report.fields] == list(RULES)
        assert len(report.fields) == 15

    def test_sparse_record_score(self, scenario_fields):
        """Test defaulted mandatory elements fail their format rules."""
        report = validate(encode(scenario_fields), scenario_fields)
        counts = report.status_counts()

        assert counts[ValidationStatus.MATCH] == 10
        assert counts[ValidationStatus.FORMAT_ERROR] == 5
        assert report.overall_score == 67
        for tag in (Tag.DBD, Tag.DBC, Tag.DAY, Tag.DAU, Tag.DAK):
            assert report.result_for(tag).status == ValidationStatus.FORMAT_ERROR

    def test_missing_indicator_scores_zero(self, complete_fields):
        """Test a record without '@' scores 0 however many elements match."""
        raw = encode(complete_fields)[1:]
        report = validate(raw, complete_fields, strict=False)

        assert not report.is_header_valid
        assert report.overall_score == 0
        assert report.result_for(Tag.DCS).status == ValidationStatus.MATCH

    def test_prefix_match(self):
        """Test a scanned abbreviation matches the longer expected value."""
        raw = encode(FieldSet.from_dict({"DAY": "BRO"}))
        report = validate(raw, {"DAY": "BROWN"})

        result = report.result_for("DAY")
        assert result.scanned_value == "BRO"
        assert result.form_value == "BROWN"
        assert result.status == ValidationStatus.MATCH

    def test_mismatch(self, complete_fields):
        """Test a different expected value is a mismatch."""
        report = validate(encode(complete_fields), {"DCS": "JONES"})

        assert report.result_for(Tag.DCS).status == ValidationStatus.MISMATCH
        assert report.overall_score == 93

    def test_prefix_tolerance_accepts_longer_name(self, complete_fields):
        """Test only the first 3 expected characters are compared."""
        report = validate(encode(complete_fields), {"DCS": "SMITHSON"})
        assert report.result_for(Tag.DCS).status == ValidationStatus.MATCH

    def test_separators_ignored(self):
        """Test whitespace, hyphens and apostrophes are ignored when comparing."""
        raw = encode(FieldSet.from_dict({"DCS": "O'BRIEN"}))
        report = validate(raw, {"DCS": "obrien"})
        assert report.result_for(Tag.DCS).status == ValidationStatus.MATCH

    def test_height_any_numeric(self, complete_fields):
        """Test any numeric expected height matches a numeric scanned height."""
        report = validate(encode(complete_fields), {"DAU": "6-2"})
        assert report.result_for(Tag.DAU).status == ValidationStatus.MATCH

    def test_none_placeholder_last_name(self):
        """Test DCSNONE is well-formed and matches with no expected value."""
        raw = encode(FieldSet.from_dict({"DCS": ""}))
        result = validate(raw).result_for(Tag.DCS)

        assert result.scanned_value == "NONE"
        assert result.status == ValidationStatus.MATCH

    def test_missing_in_scan(self):
        """Test absent elements are reported, optional middle name is not."""
        report = validate(SHORT_RECORD)

        assert report.is_header_valid
        assert report.result_for(Tag.DAQ).status == ValidationStatus.MATCH
        assert report.result_for(Tag.DCS).status == ValidationStatus.MATCH
        assert report.result_for(Tag.DAD).status == ValidationStatus.MATCH
        missing = report.result_for(Tag.DAC)
        assert missing.status == ValidationStatus.MISSING_IN_SCAN
        assert missing.scanned_value == MISSING
        assert report.overall_score == 20

    def test_format_error(self):
        """Test a malformed value is a format error even without expectations."""
        raw = encode(FieldSet.from_dict({"DBB": "1990-01-15"}))
        result = validate(raw).result_for(Tag.DBB)

        assert result.scanned_value == "1990-01-15"
        assert result.status == ValidationStatus.FORMAT_ERROR

    def test_never_raises(self):
        """Test garbage input yields a report instead of an exception."""
        for raw in ("", "garbage", "@", None):
            report = validate(raw)
            assert not report.is_header_valid
            assert report.overall_score == 0
            assert len(report.fields) == 15

    def test_to_dict(self, complete_fields):
        """Test the serialized report uses the record keys."""
        data = validate(encode(complete_fields), complete_fields).to_dict()

        assert data["isHeaderValid"] is True
        assert data["overallScore"] == 100
        assert data["fields"][0] == {
            "elementId": "DAQ",
            "description": "ID Number (ANS, max 25)",
            "formValue": "D1234567",
            "scannedValue": "D1234567",
            "status": "MATCH",
        }

    def test_lenient_mode_ignores_length(self, complete_fields):
        """Test lenient mode accepts a record whose length field is wrong."""
        raw = encode(complete_fields)
        raw = raw[:27] + "0000" + raw[31:]

        assert not validate(raw).is_header_valid
        assert validate(raw, strict=False).is_header_valid


# ═══════════════════════════════════════════════════════════════════════════
# PARSING
# ═══════════════════════════════════════════════════════════════════════════


class TestParseRecord:
    """Test tolerant record decoding."""

    def test_header_metadata(self, complete_fields):
        """Test IIN, versions and entry count are read from the header."""
        parsed = parse_record(encode(complete_fields))

        assert parsed.iin == "636014"
        assert parsed.version == "10"
        assert parsed.jurisdiction_version == "01"
        assert parsed.entries == 1
        assert parsed.subfile_type == SubfileType.DRIVER_LICENSE

    def test_elements(self, complete_fields):
        """Test data elements are decoded, including the first one."""
        parsed = parse_record(encode(complete_fields))

        assert parsed.elements[Tag.DCA] == "C"
        assert parsed.elements[Tag.DCS] == "SMITH"
        assert parsed.elements[Tag.DAU] == "071 IN"
        assert parsed.elements[Tag.DDG] == "N"

    def test_reencode_is_identical(self, complete_fields):
        """Test re-encoding a parsed record reproduces it exactly."""
        record = encode(complete_fields.merge({"ZCA": "custom"}))
        assert encode(parse_record(record).to_field_set()) == record

    def test_unknown_elements_preserved(self):
        """Test jurisdiction-specific elements are kept in unknown."""
        record = encode(FieldSet.from_dict({"ZCA": "blue"}))
        assert parse_record(record).unknown == {"ZCA": "BLUE"}

    def test_first_occurrence_wins(self):
        """Test duplicate tags keep the first value."""
        raw = HEADER + "DL00310019" + "DLDCSFIRST\nDCSLAST\r"
        assert parse_record(raw).elements[Tag.DCS] == "FIRST"

    def test_non_ascii_digits_in_header(self):
        """Test Unicode digits in the entry count and length are ignored."""
        raw = (
            SHORT_RECORD[:19]
            + "\u00b2\u00b3"  # entry count
            + SHORT_RECORD[21:27]
            + "\u00b2\u00b3\u00b2\u00b3"  # designator length
            + SHORT_RECORD[31:]
        )
        parsed = parse_record(raw)

        assert parsed.entries == 0
        assert parsed.elements[Tag.DCS] == "SMITH"

    def test_headerless_input(self):
        """Test bare element lines decode without header metadata."""
        parsed = parse_record("DCSSMITH\nDACJOHN\nnoise")

        assert parsed.iin == ""
        assert parsed.entries == 0
        assert parsed.subfile_type is None
        assert parsed.elements == {Tag.DCS: "SMITH", Tag.DAC: "JOHN"}
