"""
tests/test_api.py
==================
HTTP API Tests - CallScope

Tests verify:
    1. Upload endpoint: policy enforcement and text extraction
    2. Analyze endpoint: sanitization, validation, analysis limiter, caching
    3. Session endpoint: secure ids and fail-closed behaviour
    4. Rate-limit status and the app-wide API limiter
    5. CSP report listener registered at startup
    6. Mocked analysis and settings loading

All tests are OFFLINE - analysis delay is zero, webhook is not configured,
and storage is in-memory.
"""

import asyncio
import os
import re
import sys
import unittest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

# Ensure project root is on sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from fastapi.testclient import TestClient

from callscope.analysis import AnalysisInputError, CallMetadata, analyze_transcript
from callscope.analysis.mock_analyzer import _build_result
from callscope.api import create_app
from callscope.config import Settings, load_settings
from callscope.security.sanitizer import sanitize_input


class FakeClock:
    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


def _transcript(n: int = 60) -> str:
    return " ".join(f"word{i}" for i in range(n))


def _analyze_body(**overrides) -> dict:
    body = {
        "transcript": _transcript(),
        "metadata": {"prospectName": "Jane Doe", "accountTypes": ["401k"]},
    }
    body.update(overrides)
    return body


class ApiTestCase(unittest.TestCase):
    """Spins up a fresh app (and fresh limiters) per test."""

    settings = Settings(analysis_delay_seconds=0)
    random_source = staticmethod(lambda n: bytes(range(n)))

    def setUp(self):
        self.clock = FakeClock()
        self.app = create_app(
            settings=self.settings,
            clock=self.clock,
            random_source=self.random_source,
        )
        self.client = TestClient(self.app)
        self.client.__enter__()

    def tearDown(self):
        self.client.__exit__(None, None, None)


# ===================================================================
# 1. UPLOAD
# ===================================================================


class TestUploadEndpoint(ApiTestCase):

    def test_valid_text_file(self):
        content = _transcript(60).encode("utf-8")
        resp = self.client.post(
            "/api/v1/upload-transcript",
            files={"file": ("call.txt", content, "text/plain")},
        )
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["filename"], "call.txt")
        self.assertEqual(body["transcript"], _transcript(60))
        self.assertEqual(body["validation"], {"valid": True})

    def test_short_file_reports_validation_without_failing(self):
        resp = self.client.post(
            "/api/v1/upload-transcript",
            files={"file": ("call.txt", b"hello there", "text/plain")},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(resp.json()["validation"]["valid"])

    def test_disallowed_type_rejected(self):
        resp = self.client.post(
            "/api/v1/upload-transcript",
            files={"file": ("call.png", b"\x89PNG", "image/png")},
        )
        self.assertEqual(resp.status_code, 422)
        self.assertIn("Invalid file type", resp.json()["detail"])

    def test_oversized_file_rejected(self):
        content = b"a" * (10 * 1024 * 1024 + 1)
        resp = self.client.post(
            "/api/v1/upload-transcript",
            files={"file": ("call.txt", content, "text/plain")},
        )
        self.assertEqual(resp.status_code, 422)
        self.assertIn("too large", resp.json()["detail"])

    def test_undecodable_bytes_replaced(self):
        resp = self.client.post(
            "/api/v1/upload-transcript",
            files={"file": ("call.txt", b"caf\xff notes", "text/plain")},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertIn("�", resp.json()["transcript"])


# ===================================================================
# 2. ANALYZE
# ===================================================================


class TestAnalyzeEndpoint(ApiTestCase):

    def test_successful_analysis(self):
        resp = self.client.post("/api/v1/analyze-call", json=_analyze_body())
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertTrue(body["analysisId"].startswith("analysis-"))
        self.assertEqual(body["processingTime"], 2847)
        self.assertEqual(body["summary"]["overallQualificationScore"], 78)
        self.assertEqual(
            body["analyses"]["conversation"]["conversationScorecard"]["discovery"], 85,
        )

    def test_result_is_cached(self):
        body = self.client.post("/api/v1/analyze-call", json=_analyze_body()).json()
        resp = self.client.get(f"/api/v1/analysis/{body['analysisId']}")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), body)

    def test_cached_result_expires(self):
        body = self.client.post("/api/v1/analyze-call", json=_analyze_body()).json()
        self.clock.advance(self.settings.analysis_cache_ttl_ms + 1)
        resp = self.client.get(f"/api/v1/analysis/{body['analysisId']}")
        self.assertEqual(resp.status_code, 404)

    def test_unknown_analysis(self):
        self.assertEqual(self.client.get("/api/v1/analysis/missing").status_code, 404)

    def test_missing_prospect_name(self):
        resp = self.client.post(
            "/api/v1/analyze-call", json=_analyze_body(metadata={"prospectName": " "}),
        )
        self.assertEqual(resp.status_code, 400)
        self.assertIn("prospect name", resp.json()["detail"])

    def test_short_transcript_rejected(self):
        resp = self.client.post(
            "/api/v1/analyze-call", json=_analyze_body(transcript=_transcript(49)),
        )
        self.assertEqual(resp.status_code, 422)
        self.assertIn("too short", resp.json()["detail"])

    def test_transcript_validated_after_sanitizing(self):
        padded = "<script>" + _transcript(80) + "</script>" + _transcript(10)
        resp = self.client.post("/api/v1/analyze-call", json=_analyze_body(transcript=padded))
        self.assertEqual(resp.status_code, 422)

    def test_markup_stripped_before_analysis(self):
        captured = {}

        async def fake_analyze(transcript, metadata, delay_seconds):
            captured["transcript"] = transcript
            captured["metadata"] = metadata
            return {"analysisId": "analysis-1"}

        with patch("callscope.api.app.analyze_transcript", side_effect=fake_analyze):
            resp = self.client.post(
                "/api/v1/analyze-call",
                json=_analyze_body(
                    transcript="<b>" + _transcript() + "</b>",
                    metadata={"prospectName": "<i>Jane</i>"},
                ),
            )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(captured["transcript"], _transcript())
        self.assertEqual(captured["metadata"].prospect_name, "Jane")

    def test_analysis_limited_to_five_per_minute(self):
        for _ in range(5):
            self.assertEqual(
                self.client.post("/api/v1/analyze-call", json=_analyze_body()).status_code,
                200,
            )
        resp = self.client.post("/api/v1/analyze-call", json=_analyze_body())
        self.assertEqual(resp.status_code, 429)
        self.assertEqual(resp.headers["Retry-After"], "60")
        self.assertEqual(resp.json()["detail"]["reset_time"], self.clock() + 60_000)

        self.clock.advance(60_001)
        self.assertEqual(
            self.client.post("/api/v1/analyze-call", json=_analyze_body()).status_code,
            200,
        )

    def test_rejected_input_does_not_use_analysis_slot(self):
        for _ in range(6):
            self.client.post("/api/v1/analyze-call", json=_analyze_body(transcript=""))
        self.assertEqual(self.app.state.analysis_limiter.get_remaining(), 5)

    def test_missing_prospect_does_not_use_analysis_slot(self):
        for _ in range(6):
            resp = self.client.post(
                "/api/v1/analyze-call", json=_analyze_body(metadata={"prospectName": ""}),
            )
            self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.app.state.analysis_limiter.get_remaining(), 5)
        self.assertEqual(
            self.client.post("/api/v1/analyze-call", json=_analyze_body()).status_code,
            200,
        )

    def test_webhook_called_when_configured(self):
        self.app.state.settings = Settings(
            analysis_delay_seconds=0, webhook_url="http://hook.invalid/",
        )
        with patch("callscope.api.app._forward_to_webhook", new_callable=AsyncMock) as hook:
            resp = self.client.post("/api/v1/analyze-call", json=_analyze_body())
        self.assertEqual(resp.status_code, 200)
        hook.assert_awaited_once()
        self.assertEqual(hook.await_args.args[0], "http://hook.invalid/")


# ===================================================================
# 3. SESSION
# ===================================================================


class TestSessionEndpoint(ApiTestCase):

    def test_session_id_issued_and_stored(self):
        resp = self.client.post("/api/v1/session")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertRegex(body["sessionId"], re.compile(r"^[0-9a-f]{64}$"))
        self.assertEqual(body["expiresAt"] - body["createdAt"], self.settings.session_ttl_ms)
        stored = self.app.state.storage.get(f"session_{body['sessionId']}")
        self.assertEqual(stored, {"createdAt": body["createdAt"]})


class TestExpiredSessionsPruned(ApiTestCase):

    settings = Settings(
        analysis_delay_seconds=0, session_ttl_ms=1000, storage_sweep_interval_ms=5000,
    )

    def test_backend_shrinks_after_ttl(self):
        for _ in range(50):
            self.client.post("/api/v1/session")
        backend = self.app.state.storage.backend
        self.assertEqual(len(backend), 50)

        self.clock.advance(10_000)
        self.assertEqual(self.client.post("/api/v1/session").status_code, 200)
        self.assertEqual(len(backend), 1)


class TestSessionWithoutSecureSource(ApiTestCase):

    random_source = None

    def test_fails_closed(self):
        self.assertEqual(self.client.post("/api/v1/session").status_code, 503)


class TestSessionInsecureFallbackAllowed(ApiTestCase):

    random_source = None
    settings = Settings(analysis_delay_seconds=0, allow_insecure_session_ids=True)

    def test_fallback_used(self):
        resp = self.client.post("/api/v1/session")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.json()["sessionId"]), 64)


# ===================================================================
# 4. RATE LIMITS
# ===================================================================


class TestRateLimitEndpoints(ApiTestCase):

    def test_status(self):
        body = self.client.get("/api/v1/rate-limits").json()
        self.assertEqual(body["analysis"], {"remaining": 5, "limit": 5, "windowMs": 60_000})
        self.assertEqual(body["api"]["limit"], 100)
        self.assertEqual(body["api"]["windowMs"], 900_000)
        self.assertEqual(body["api"]["remaining"], 99)

    def test_limiters_not_shared_between_apps(self):
        self.client.post("/api/v1/analyze-call", json=_analyze_body())
        other = create_app(settings=self.settings, clock=self.clock)
        self.assertEqual(other.state.analysis_limiter.get_remaining(), 5)
        self.assertEqual(self.app.state.analysis_limiter.get_remaining(), 4)


class TestApiLimiter(ApiTestCase):

    settings = Settings(analysis_delay_seconds=0, api_rate_limit=2)

    def test_every_route_counts(self):
        self.assertEqual(self.client.get("/api/v1/rate-limits").status_code, 200)
        self.assertEqual(self.client.post("/api/v1/session").status_code, 200)
        resp = self.client.get("/api/v1/rate-limits")
        self.assertEqual(resp.status_code, 429)
        self.assertIn("Retry-After", resp.headers)


# ===================================================================
# 5. CSP REPORTS
# ===================================================================


class TestCspReportEndpoint(ApiTestCase):

    def test_report_logged(self):
        report = {"csp-report": {"blocked-uri": "eval", "violated-directive": "script-src"}}
        with self.assertLogs("callscope.security.csp", level="WARNING") as logs:
            resp = self.client.post("/api/v1/csp-report", json=report)
        self.assertEqual(resp.status_code, 204)
        self.assertIn("script-src", logs.output[0])

    def test_malformed_report_still_accepted(self):
        with self.assertLogs("callscope.security.bootstrap", level="WARNING"):
            resp = self.client.post(
                "/api/v1/csp-report",
                content=b"not json",
                headers={"Content-Type": "application/csp-report"},
            )
        self.assertEqual(resp.status_code, 204)

    def test_initialized_once(self):
        self.assertTrue(self.app.state.security_initialized)


class TestCspReportsBypassApiLimiter(ApiTestCase):

    settings = Settings(analysis_delay_seconds=0, api_rate_limit=3)

    def test_reports_never_rate_limited(self):
        report = {"csp-report": {"blocked-uri": "eval", "violated-directive": "script-src"}}
        with self.assertLogs("callscope.security.csp", level="WARNING"):
            for _ in range(10):
                resp = self.client.post("/api/v1/csp-report", json=report)
                self.assertEqual(resp.status_code, 204)
        self.assertEqual(self.app.state.api_limiter.get_remaining(), 3)
        self.assertEqual(self.client.get("/api/v1/rate-limits").status_code, 200)


# ===================================================================
# 6. ANALYSIS STUB & SETTINGS
# ===================================================================


class TestMockAnalyzer(unittest.TestCase):

    def test_returns_fixed_payload(self):
        result = asyncio.run(
            analyze_transcript("text", CallMetadata(prospect_name="Jane"), delay_seconds=0)
        )
        self.assertEqual(
            set(result), {"analysisId", "timestamp", "processingTime", "analyses", "summary"},
        )
        self.assertEqual(result["summary"]["riskLevel"], "medium")
        self.assertEqual(len(result["summary"]["keyInsights"]), 3)

    def test_timestamp_has_millisecond_precision(self):
        result = asyncio.run(
            analyze_transcript("text", CallMetadata(prospect_name="Jane"), delay_seconds=0)
        )
        self.assertRegex(
            result["timestamp"], r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$",
        )

    def test_timestamp_keeps_milliseconds_on_whole_second(self):
        now = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        self.assertEqual(_build_result(now)["timestamp"], "2024-01-02T03:04:05.000Z")

    def test_payload_not_shared_between_calls(self):
        meta = CallMetadata(prospect_name="Jane")
        first = asyncio.run(analyze_transcript("text", meta, delay_seconds=0))
        first["summary"]["keyInsights"].clear()
        second = asyncio.run(analyze_transcript("text", meta, delay_seconds=0))
        self.assertEqual(len(second["summary"]["keyInsights"]), 3)

    def test_requires_transcript_and_prospect(self):
        with self.assertRaises(AnalysisInputError):
            asyncio.run(analyze_transcript("", CallMetadata(prospect_name="Jane"), 0))
        with self.assertRaises(AnalysisInputError):
            asyncio.run(analyze_transcript("text", CallMetadata(), 0))

    def test_metadata_accepts_camel_case(self):
        meta = CallMetadata.model_validate(
            {"prospectName": "Jane", "goldIRAInterest": "high", "previousContact": True}
        )
        self.assertEqual(meta.gold_ira_interest, "high")
        self.assertTrue(meta.previous_contact)

    def test_metadata_sanitized_copy(self):
        meta = CallMetadata(prospect_name="<b>Jane</b>", account_types=["<i>IRA</i>"])
        clean = meta.sanitized(sanitize_input)
        self.assertEqual(clean.prospect_name, "Jane")
        self.assertEqual(clean.account_types, ["IRA"])
        self.assertEqual(meta.prospect_name, "<b>Jane</b>")


class TestLoadSettings(unittest.TestCase):

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = load_settings()
        self.assertEqual(settings, Settings())
        self.assertEqual(settings.analysis_rate_limit, 5)
        self.assertEqual(settings.api_window_ms, 900_000)

    def test_overrides(self):
        env = {
            "CALLSCOPE_STORAGE_PREFIX": "acme",
            "CALLSCOPE_ANALYSIS_RATE_LIMIT": "10",
            "CALLSCOPE_ALLOW_INSECURE_SESSION_IDS": "yes",
            "CALLSCOPE_CORS_ORIGINS": "http://a.test, http://b.test",
            "WEBHOOK_URL": "http://hook.test/",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = load_settings()
        self.assertEqual(settings.storage_prefix, "acme")
        self.assertEqual(settings.analysis_rate_limit, 10)
        self.assertTrue(settings.allow_insecure_session_ids)
        self.assertEqual(settings.cors_origins, ("http://a.test", "http://b.test"))
        self.assertEqual(settings.webhook_url, "http://hook.test/")

    def test_malformed_number_names_variable(self):
        with patch.dict(os.environ, {"CALLSCOPE_API_RATE_LIMIT": "lots"}, clear=True):
            with self.assertRaises(ValueError) as ctx:
                load_settings()
        self.assertIn("CALLSCOPE_API_RATE_LIMIT", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
