"""
API Layer

Versioned REST API for FreeShare.
"""
