"""
Configuration management for the RAG backend.

Handles environment variables, settings, and domain models
using Pydantic for validation and type safety.
"""
