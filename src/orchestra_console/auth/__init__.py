"""
orchestra_console.auth

Authentication/session package.

Responsibilities:
- Principal model and the injected session context.
- Credential stores (in-memory and SQL-backed).
- Session Manager: credential lifecycle and 401 handling.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Only `auth.session.SessionManager` writes to `SessionContext`; everything else reads.
