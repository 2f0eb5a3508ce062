"""
HTTP API for the RAG backend.
"""
