"""Unit tests for jurisdiction lookup."""

from aamva_codec.jurisdictions import JURISDICTIONS, detect_jurisdiction, find_by_iin


class TestJurisdictionTable:
    """Test the jurisdiction table."""

    def test_codes_unique(self):
        """Test each jurisdiction code appears once."""
        codes = [jurisdiction.code for jurisdiction in JURISDICTIONS]
        assert len(codes) == len(set(codes))

    def test_iins_well_formed(self):
        """Test every IIN is 6 digits and every version is 2 digits."""
        for jurisdiction in JURISDICTIONS:
            assert len(jurisdiction.iin) == 6 and jurisdiction.iin.isdigit()
            assert len(jurisdiction.version) == 2 and jurisdiction.version.isdigit()

    def test_countries(self):
        """Test Canadian provinces carry CAN, states carry USA."""
        assert detect_jurisdiction("ON").country == "CAN"
        assert detect_jurisdiction("TX").country == "USA"
        assert {jurisdiction.country for jurisdiction in JURISDICTIONS} == {"USA", "CAN"}


class TestDetectJurisdiction:
    """Test detect_jurisdiction function."""

    def test_known_codes(self):
        """Test lookup of common codes."""
        assert detect_jurisdiction("CA").iin == "636014"
        assert detect_jurisdiction("NY").iin == "636001"
        assert detect_jurisdiction("FL").name == "Florida"

    def test_case_and_whitespace(self):
        """Test codes are matched case-insensitively after trimming."""
        assert detect_jurisdiction(" ca ").code == "CA"

    def test_first_two_characters(self):
        """Test only the first two characters are used."""
        assert detect_jurisdiction("CALIFORNIA").code == "CA"

    def test_unknown(self):
        """Test unknown or short codes return None."""
        assert detect_jurisdiction("XX") is None
        assert detect_jurisdiction("C") is None
        assert detect_jurisdiction("") is None
        assert detect_jurisdiction(None) is None


class TestFindByIIN:
    """Test find_by_iin function."""

    def test_known_iin(self):
        """Test lookup by issuer number."""
        assert find_by_iin("636015").code == "TX"
        assert find_by_iin("636012").code == "ON"

    def test_unknown_iin(self):
        """Test unknown numbers return None."""
        assert find_by_iin("999999") is None
        assert find_by_iin("") is None
        assert find_by_iin(None) is None
