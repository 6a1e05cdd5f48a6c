"""
RegisterAccountCommand.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass
class RegisterAccountCommand:
    """
    Command to self-register a user account.

    When key is given the new account claims it, which marks the key
    validated.
    """

    email: str
    password: str
    key: Optional[str] = None
