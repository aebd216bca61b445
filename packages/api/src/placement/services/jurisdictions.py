# This project was developed with assistance from AI tools.
"""US jurisdiction name -> two-letter code normalization."""

import logging
import re

logger = logging.getLogger(__name__)

STATE_CODES: dict[str, str] = {
    "AL": "Alabama",
    "AK": "Alaska",
    "AZ": "Arizona",
    "AR": "Arkansas",
    "CA": "California",
    "CO": "Colorado",
    "CT": "Connecticut",
    "DE": "Delaware",
    "FL": "Florida",
    "GA": "Georgia",
    "HI": "Hawaii",
    "ID": "Idaho",
    "IL": "Illinois",
    "IN": "Indiana",
    "IA": "Iowa",
    "KS": "Kansas",
    "KY": "Kentucky",
    "LA": "Louisiana",
    "ME": "Maine",
    "MD": "Maryland",
    "MA": "Massachusetts",
    "MI": "Michigan",
    "MN": "Minnesota",
    "MS": "Mississippi",
    "MO": "Missouri",
    "MT": "Montana",
    "NE": "Nebraska",
    "NV": "Nevada",
    "NH": "New Hampshire",
    "NJ": "New Jersey",
    "NM": "New Mexico",
    "NY": "New York",
    "NC": "North Carolina",
    "ND": "North Dakota",
    "OH": "Ohio",
    "OK": "Oklahoma",
    "OR": "Oregon",
    "PA": "Pennsylvania",
    "RI": "Rhode Island",
    "SC": "South Carolina",
    "SD": "South Dakota",
    "TN": "Tennessee",
    "TX": "Texas",
    "UT": "Utah",
    "VT": "Vermont",
    "VA": "Virginia",
    "WA": "Washington",
    "WV": "West Virginia",
    "WI": "Wisconsin",
    "WY": "Wyoming",
    "DC": "District of Columbia",
}

_NAME_TO_CODE: dict[str, str] = {name.lower(): code for code, name in STATE_CODES.items()}
_NAME_TO_CODE.update(
    {
        "washington dc": "DC",
        "washington d.c.": "DC",
        "d.c.": "DC",
    }
)

# Longest names first so "west virginia" wins over "virginia".
_PARTIAL_KEYS = sorted(_NAME_TO_CODE, key=len, reverse=True)

_CODE_RE = re.compile(r"^[A-Z]{2}$")


def normalize_jurisdiction(state: str | None) -> str:
    """Return a two-letter code for a state name or code.

    Two-letter input is upper-cased and passed through. Full names match
    case-insensitively, then by containment. Anything else comes back
    upper-cased as-is; ``is_known_jurisdiction`` tells whether it resolved.
    """
    if not state:
        return ""
    upper = state.strip().upper()
    if _CODE_RE.match(upper):
        return upper

    key = state.strip().lower()
    code = _NAME_TO_CODE.get(key)
    if code:
        return code

    if len(key) >= 3:
        for name in _PARTIAL_KEYS:
            if name in key or key in name:
                return _NAME_TO_CODE[name]

    logger.warning("Jurisdiction not recognized: %r, using as-is", state)
    return upper


def is_known_jurisdiction(code: str) -> bool:
    return code in STATE_CODES
