"""
ValidateKeyCommand.

Command issued by the client application when it starts.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass
class ValidateKeyCommand:
    """
    Command to validate a key and record one use.

    hwid binds the key to a device on first use; without it no device
    binding happens. ip_address, game_id and executor only feed the usage log.
    """

    key: Optional[str]
    hwid: Optional[str] = None
    ip_address: Optional[str] = None
    game_id: Optional[str] = None
    executor: Optional[str] = None
