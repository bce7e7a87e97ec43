"""Pydantic models for type expressions, declarations, documents and codec options."""
