"""AAMVA 2020 data element format rules.

Character types used by the standard:
    - A: alphabetic A-Z
    - N: numeric 0-9
    - ANS: A-Z, 0-9, space and the printable special characters

The table only covers the elements the validator reconciles; elements
without a rule are never flagged for format errors.

References:
    - AAMVA DL/ID Card Design Standard (2020), Annex D, Tables D.3 and D.4
"""

import re
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .types import Rule, Tag


def _rule(pattern: str, description: str) -> Rule:
    return Rule(pattern=re.compile(pattern), description=description)


RULES: Mapping[Tag, Rule] = MappingProxyType(
    {
        Tag.DAQ: _rule(r"[A-Z0-9\-\s]{1,25}", "ID Number (ANS, max 25)"),
        Tag.DCS: _rule(r"[A-Z\s\-']{1,40}", "Last Name (ANS, max 40)"),
        Tag.DAC: _rule(r"[A-Z\s\-']{1,40}", "First Name (ANS, max 40)"),
        Tag.DAD: _rule(r"[A-Z\s\-']{0,40}", "Middle Name (ANS, max 40)"),
        Tag.DBB: _rule(r"\d{8}", "DOB (MMDDYYYY)"),
        Tag.DBA: _rule(r"\d{8}", "Expiry (MMDDYYYY)"),
        Tag.DBD: _rule(r"\d{8}", "Issue Date (MMDDYYYY)"),
        Tag.DBC: _rule(r"[129]", "Sex (1=M, 2=F, 9=U)"),
        Tag.DAY: _rule(r"[A-Z]{3}", "Eyes (3-letter code)"),
        Tag.DAU: _rule(r"\d{3}\s(IN|CM)", "Height (e.g. 071 IN)"),
        Tag.DAG: _rule(r"[\x20-\x7E]{1,35}", "Address (ANS, max 35)"),
        Tag.DAI: _rule(r"[\x20-\x7E]{1,20}", "City (ANS, max 20)"),
        Tag.DAJ: _rule(r"[A-Z]{2}", "State (2-letter code)"),
        Tag.DAK: _rule(r"[A-Z0-9\-\s]{5,11}", "Postal Code (ANS)"),
        Tag.DCG: _rule(r"USA|CAN", "Country (USA/CAN)"),
    }
)


def get_rule(tag: Any) -> Optional[Rule]:
    """Look up the format rule for a tag.

    Args:
        tag: Tag member or 3-character element ID

    Returns:
        The Rule, or None when the tag is unknown or has no rule.

    Example:
        >>> get_rule("DBB").accepts("01151990")
        True
        >>> get_rule("DCA") is None
        True
    """
    known = Tag.lookup(tag)
    if known is None:
        return None
    return RULES.get(known)
