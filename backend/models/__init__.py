"""Models package - pydantic schemas, settings and domain exceptions."""
