# callscope/__init__.py
# ======================
# CallScope - sales-call transcript intake service
#
# Layers:
#   - security  - upload / transcript validation, sanitization, session ids,
#                 rate limiting, CSP violation logging, startup initialization
#   - storage   - namespaced key/value storage with per-entry expiration
#   - analysis  - call metadata model and the placeholder analysis
#   - api       - FastAPI application exposing the dashboard actions

__version__ = "1.0.0"
