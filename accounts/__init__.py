"""
Accounts module - users, roles and authentication.

This module handles:
- Account entity and role-based access
- Registration with optional key claiming
- Login, bearer tokens and failed-login lockout
"""
