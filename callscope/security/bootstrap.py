"""
callscope/security/bootstrap.py
================================
Security Initialization - CallScope Security Layer

Responsibility:
    - Register the passive CSP-violation listener (POST /api/v1/csp-report)
    - Sweep namespaced storage once so expired entries are pruned

Runs once per application, at startup. A second call on the same app is a
no-op. A failing storage sweep is logged and does not abort startup.
"""

import json
import logging

from fastapi import FastAPI, Request, Response

from callscope.security.csp import handle_csp_violation
from callscope.storage import NamespacedStorage

logger = logging.getLogger("callscope.security.bootstrap")

CSP_REPORT_PATH: str = "/api/v1/csp-report"


async def csp_report(request: Request) -> Response:
    """
    Receive a CSP violation report from the browser and log it.

    Always answers 204 - the listener is diagnostic only.
    """
    try:
        payload = json.loads(await request.body())
        handle_csp_violation(payload)
    except ValueError as exc:
        logger.warning("Discarding malformed CSP report: %s", exc)
    return Response(status_code=204)


def initialize(app: FastAPI, storage: NamespacedStorage) -> bool:
    """
    One-time security setup for ``app``.

    Returns:
        True if initialization ran, False if ``app`` was already initialized.
    """
    if getattr(app.state, "security_initialized", False):
        logger.debug("Security already initialized - skipping.")
        return False

    app.add_api_route(
        CSP_REPORT_PATH,
        csp_report,
        methods=["POST"],
        status_code=204,
        include_in_schema=False,
    )

    try:
        pruned = storage.sweep_expired()
        logger.info("Startup storage sweep complete (%d expired entries pruned).", pruned)
    except Exception as exc:
        logger.warning("Failed to clean expired storage: %s", exc)

    app.state.security_initialized = True
    logger.info("Security initialized: CSP listener registered at %s.", CSP_REPORT_PATH)
    return True
