"""
devinde-tracker — generic adapter layer

Purpose
- Code mapping, normalization, serialization, hierarchy building, statistics,
  SWOT synthesis and reconciliation, parameterized by per-entity schemas.

Rules
- Every function is pure over its explicit inputs (``AdapterContext`` carries
  the clock, the id factory and the code registry).
"""
