"""
Keys module - license key issuance and lifecycle.

This module handles:
- Key entity and domain logic
- Tier defaults and key issuance
- Validation decisions (status, expiry, registration, device binding, usage)
- Usage logging and reporting
"""
