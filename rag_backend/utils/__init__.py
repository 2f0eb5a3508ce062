"""
Shared utilities: logging setup, exception types, and decorators.
"""
