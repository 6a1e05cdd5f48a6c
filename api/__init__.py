"""
HTTP API for the key management service.
"""
