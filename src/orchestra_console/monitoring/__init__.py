"""
orchestra_console.monitoring

Dashboard metrics refresh.

Responsibilities:
- Fixed-interval poller for the monitoring overview/infra endpoints.
"""

# Package marker.
