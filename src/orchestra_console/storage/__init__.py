"""
orchestra_console.storage

Client-side persistence package.

Responsibilities:
- SQLAlchemy base, schema and async engine/session helpers.
- Key/value repository backing the persisted credential and cached principal.
"""

# Package marker; import from submodules directly.


# --- Module Notes -----------------------------------------------------------
# The credential and cached principal are the only state persisted by this core.
