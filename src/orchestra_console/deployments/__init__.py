"""
orchestra_console.deployments

Deployment configuration package.

Responsibilities:
- Reference data fetched for the wizard (`catalog`).
- Pure draft model + payload assembly (`draft`).
- Step enumeration and forward guards (`steps`).
- Wizard controller (`wizard`).
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# `draft` and `steps` perform no I/O; only `wizard` talks to the gateway.
