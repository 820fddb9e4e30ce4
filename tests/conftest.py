"""
Pytest Configuration and Shared Fixtures

This file contains pytest configuration and fixtures that are available
to all test modules.
"""

import pytest

from aamva_codec.types import FieldSet


@pytest.fixture
def complete_form():
    """Fixture providing a form with every mandatory element populated."""
    return {
        "IIN": "636014",
        "JurisdictionVersion": "01",
        "subfileType": "DL",
        "DCA": "C",
        "DCB": "NONE",
        "DCD": "NONE",
        "DBA": "01152030",
        "DCS": "SMITH",
        "DAC": "JOHN",
        "DAD": "QUINCY",
        "DBD": "01152022",
        "DBB": "01151990",
        "DBC": "1",
        "DAY": "BRO",
        "DAU": "5-11",
        "DAG": "123 Main St",
        "DAI": "Sacramento",
        "DAJ": "CA",
        "DAK": "95814",
        "DAQ": "D1234567",
        "DCF": "DOC12345",
        "DCG": "USA",
        "DAW": "185",
        "DAZ": "BRO",
        "DDA": "F",
        "DDK": "1",
    }


@pytest.fixture
def complete_fields(complete_form):
    """Fixture providing the complete form as a FieldSet."""
    return FieldSet.from_dict(complete_form)


@pytest.fixture
def scenario_fields():
    """Fixture providing a sparse field set (other mandatory fields defaulted)."""
    return FieldSet.from_dict(
        {
            "DCS": "SMITH",
            "DAC": "JOHN",
            "DBB": "01151990",
            "DBA": "01152030",
            "DAJ": "CA",
            "DAQ": "D1234567",
        }
    )
