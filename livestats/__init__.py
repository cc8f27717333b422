# ==============================================================================
# livestats
# ==============================================================================
"""
Real-time visitor analytics.

Ingests visitor behaviour events, keeps live session and statistics state in
memory, and fans updates out to connected dashboard viewers over WebSockets.
"""
