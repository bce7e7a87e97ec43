"""Shared runtime pieces: errors, logging and value wrappers.

Nothing here depends on the pydantic declaration models.
"""
