# config.py
from __future__ import annotations

# ---------------------------
# Story dependency resolver
# ---------------------------

# How a dependency id that matches no known story is treated:
#   block   -> counts as unmet, the story is blocked
#   ignore  -> counts as satisfied
#   pending -> neither; the story falls through to "pending"
UNRESOLVED_DEPENDENCY_POLICY = "block"

RESOLVER_TRACE = False

# ---------------------------
# Subagent aggregation
# ---------------------------

# Seconds after started_at during which a node is highlighted as new
NEW_NODE_HIGHLIGHT_S = 2.0

AGGREGATOR_TRACE = False

# ---------------------------
# Backend command proxy
# ---------------------------
BACKEND_BASE_URL = "http://localhost:3420"
BACKEND_TIMEOUT_S = 10
BACKEND_AUTH_TOKEN = None   # "Authorization: Bearer <token>" when set

BACKEND_TRACE = False

# ---------------------------
# Polling
# ---------------------------
POLL_INTERVAL_S = 2.0
