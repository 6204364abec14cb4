"""
devinde-tracker — domain layer

Purpose
- Enum families, persisted record shapes, view records and identifier helpers.

Rules
- Keep the domain layer free of IO side effects.
"""
