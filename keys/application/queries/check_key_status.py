"""
CheckKeyStatusQuery.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass
class CheckKeyStatusQuery:
    """Query a key's usability without recording a use."""

    key: Optional[str]
