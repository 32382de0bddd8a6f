"""Internal business units and agencies."""

from enum import Enum


class Agency(str, Enum):
    """Agencies that bill the sales branches each month."""

    ORANGE = "orange"
    WIREMAN = "wireman"


class Branch(str, Enum):
    """Sales branches that receive inter-branch bills."""

    RETAIL = "retail"
    DISTRIBUTION = "distribution"
