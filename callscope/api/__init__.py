# callscope/api/__init__.py
# ==========================
# API Layer - CallScope
#
# Responsibility:
#   - Expose the dashboard actions over HTTP (upload, analyze, session,
#     rate-limit status, CSP reports)
#   - Own the storage and the two rate limiters per app instance
#
# Public API:
#   - create_app() - application factory

from callscope.api.app import create_app  # noqa: F401
