"""Issuing jurisdictions and their AAMVA issuer identification numbers.

References:
    - AAMVA IIN registry (ISO/IEC 7812 issuer numbers assigned to DL/ID issuers)
"""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class Jurisdiction:
    """Card issuing jurisdiction.

    Attributes:
        name: Jurisdiction name
        code: 2-letter jurisdiction code (DAJ)
        iin: 6-digit issuer identification number
        version: Jurisdiction version number written in the header
        country: Country identification (DCG)
    """

    name: str
    code: str
    iin: str
    version: str = "00"
    country: str = "USA"


def _ca(name: str, code: str, iin: str) -> Jurisdiction:
    return Jurisdiction(name=name, code=code, iin=iin, country="CAN")


JURISDICTIONS: Tuple[Jurisdiction, ...] = (
    Jurisdiction("Alabama", "AL", "636033"),
    Jurisdiction("Alaska", "AK", "636059"),
    Jurisdiction("Arizona", "AZ", "636026"),
    Jurisdiction("Arkansas", "AR", "636021"),
    Jurisdiction("California", "CA", "636014"),
    Jurisdiction("Colorado", "CO", "636020"),
    Jurisdiction("Connecticut", "CT", "636006"),
    Jurisdiction("Delaware", "DE", "636011"),
    Jurisdiction("District of Columbia", "DC", "636043"),
    Jurisdiction("Florida", "FL", "636010"),
    Jurisdiction("Georgia", "GA", "636055"),
    Jurisdiction("Hawaii", "HI", "636047"),
    Jurisdiction("Idaho", "ID", "636050"),
    Jurisdiction("Illinois", "IL", "636035"),
    Jurisdiction("Indiana", "IN", "636037"),
    Jurisdiction("Iowa", "IA", "636018"),
    Jurisdiction("Kansas", "KS", "636022"),
    Jurisdiction("Kentucky", "KY", "636046"),
    Jurisdiction("Louisiana", "LA", "636007"),
    Jurisdiction("Maine", "ME", "636041"),
    Jurisdiction("Maryland", "MD", "636003"),
    Jurisdiction("Massachusetts", "MA", "636002"),
    Jurisdiction("Michigan", "MI", "636032"),
    Jurisdiction("Minnesota", "MN", "636038"),
    Jurisdiction("Mississippi", "MS", "636051"),
    Jurisdiction("Missouri", "MO", "636030"),
    Jurisdiction("Montana", "MT", "636008"),
    Jurisdiction("Nebraska", "NE", "636054"),
    Jurisdiction("Nevada", "NV", "636049"),
    Jurisdiction("New Hampshire", "NH", "636039"),
    Jurisdiction("New Jersey", "NJ", "636036"),
    Jurisdiction("New Mexico", "NM", "636009"),
    Jurisdiction("New York", "NY", "636001"),
    Jurisdiction("North Carolina", "NC", "636004"),
    Jurisdiction("North Dakota", "ND", "636034"),
    Jurisdiction("Ohio", "OH", "636023"),
    Jurisdiction("Oklahoma", "OK", "636058"),
    Jurisdiction("Oregon", "OR", "636029"),
    Jurisdiction("Pennsylvania", "PA", "636025"),
    Jurisdiction("Rhode Island", "RI", "636052"),
    Jurisdiction("South Carolina", "SC", "636005"),
    Jurisdiction("South Dakota", "SD", "636042"),
    Jurisdiction("Tennessee", "TN", "636053"),
    Jurisdiction("Texas", "TX", "636015"),
    Jurisdiction("Utah", "UT", "636040"),
    Jurisdiction("Vermont", "VT", "636024"),
    Jurisdiction("Virginia", "VA", "636000"),
    Jurisdiction("Washington", "WA", "636045"),
    Jurisdiction("West Virginia", "WV", "636061"),
    Jurisdiction("Wisconsin", "WI", "636031"),
    Jurisdiction("Wyoming", "WY", "636060"),
    Jurisdiction("Guam", "GU", "636019"),
    Jurisdiction("Puerto Rico", "PR", "604431"),
    Jurisdiction("US Virgin Islands", "VI", "636062"),
    _ca("Alberta", "AB", "604432"),
    _ca("British Columbia", "BC", "636028"),
    _ca("Manitoba", "MB", "636048"),
    _ca("New Brunswick", "NB", "636017"),
    _ca("Newfoundland and Labrador", "NL", "636016"),
    _ca("Nova Scotia", "NS", "636013"),
    _ca("Ontario", "ON", "636012"),
    _ca("Prince Edward Island", "PE", "604426"),
    _ca("Quebec", "QC", "604428"),
    _ca("Saskatchewan", "SK", "636044"),
    _ca("Yukon", "YT", "604429"),
)


def detect_jurisdiction(code: Optional[str]) -> Optional[Jurisdiction]:
    """Find the jurisdiction for a state/province code.

    Only the first two characters are used, case-insensitively.

    Example:
        >>> detect_jurisdiction("ca").iin
        '636014'
        >>> detect_jurisdiction("XX") is None
        True
    """
    prefix = (code or "").strip().upper()[:2]
    if len(prefix) != 2:
        return None
    for jurisdiction in JURISDICTIONS:
        if jurisdiction.code == prefix:
            return jurisdiction
    return None


def find_by_iin(iin: Optional[str]) -> Optional[Jurisdiction]:
    """Find the jurisdiction that issues cards under ``iin``."""
    text = (iin or "").strip()[:6]
    for jurisdiction in JURISDICTIONS:
        if jurisdiction.iin == text:
            return jurisdiction
    return None
