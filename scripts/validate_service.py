#!/usr/bin/env python3
"""
Service Validation Script for the PageSpeed / Gemini proxy

Smoke-tests a running instance:
1. Health and configuration status
2. Request validation (400 envelopes, no upstream calls)
3. PageSpeed relay (full mode only)
4. Gemini relay with a summarized Lighthouse report (full mode only)

Usage:
    python3 scripts/validate_service.py --mode [quick|full] --base-url http://localhost:4001

    quick: Health checks and validation only (< 5 seconds)
    full: Real PageSpeed + Gemini round trip (1-2 minutes, uses API quota)
"""

import argparse
import sys
from typing import Dict, List

import requests

DEFAULT_BASE_URL = "http://localhost:4001"
TEST_URL = "https://example.com"


class ServiceValidator:
    """Runs smoke checks against a live proxy."""

    def __init__(self, base_url: str, verbose: bool = True):
        self.base_url = base_url.rstrip("/")
        self.verbose = verbose
        self.results: Dict[str, bool] = {}
        self.errors: List[str] = []
        self.lighthouse = None

    def log(self, message: str, level: str = "INFO"):
        """Print log message if verbose mode is enabled."""
        if self.verbose:
            prefix = {
                "INFO": "ℹ️ ",
                "SUCCESS": "✅",
                "ERROR": "❌",
                "WARNING": "⚠️ ",
                "TEST": "🧪"
            }.get(level, "")
            print(f"{prefix} {message}")

    def test_health(self) -> bool:
        self.log("Testing health endpoints...", "TEST")
        response = requests.get(f"{self.base_url}/health", timeout=10)
        if response.status_code != 200:
            self.errors.append(f"/health returned {response.status_code}")
            return False

        status = requests.get(f"{self.base_url}/status/detailed", timeout=10).json()
        self.log(f"Overall status: {status.get('overall_status')}", "INFO")
        self.log(f"Gemini API: {status.get('gemini_api')} ({status.get('gemini_model')})", "INFO")
        if status.get("gemini_api") == "missing":
            self.log("GEMINI_API_KEY is not set, Gemini checks will fail", "WARNING")
        return True

    def test_validation(self) -> bool:
        self.log("Testing request validation...", "TEST")
        checks = [
            ("/api/pagespeed", {"error": "Missing url"}),
            ("/api/gemini", {"error": "Missing prompt or lighthouse payload"}),
        ]
        ok = True
        for path, expected in checks:
            response = requests.post(f"{self.base_url}{path}", json={}, timeout=10)
            if response.status_code != 400 or response.json() != expected:
                self.errors.append(f"{path} with empty body returned {response.status_code}: {response.text}")
                ok = False
            else:
                self.log(f"{path} rejects empty body", "SUCCESS")
        return ok

    def test_pagespeed(self) -> bool:
        self.log(f"Running PageSpeed for {TEST_URL} (this can take ~30s)...", "TEST")
        response = requests.post(
            f"{self.base_url}/api/pagespeed", json={"url": TEST_URL}, timeout=180
        )
        if response.status_code != 200:
            self.errors.append(f"PageSpeed relay returned {response.status_code}: {response.text[:200]}")
            return False

        data = response.json()
        self.lighthouse = data.get("lighthouseResult")
        score = (self.lighthouse or {}).get("categories", {}).get("performance", {}).get("score")
        self.log(f"Performance score: {score}", "SUCCESS")
        return self.lighthouse is not None

    def test_gemini_report(self) -> bool:
        if not self.lighthouse:
            self.log("Skipping Gemini check, no Lighthouse result available", "WARNING")
            return False

        self.log("Sending summarized report to Gemini...", "TEST")
        response = requests.post(
            f"{self.base_url}/api/gemini", json={"lighthouse": self.lighthouse}, timeout=300
        )
        if response.status_code != 200:
            self.errors.append(f"Gemini relay returned {response.status_code}: {response.text[:200]}")
            return False

        data = response.json()
        self.log(f"Prompt length: {data.get('summaryLength')} chars", "INFO")
        self.log(f"AI answer preview: {data.get('ai', '')[:200]}", "SUCCESS")
        return bool(data.get("ai"))

    def run(self, mode: str) -> bool:
        steps = [("health", self.test_health), ("validation", self.test_validation)]
        if mode == "full":
            steps += [("pagespeed", self.test_pagespeed), ("gemini", self.test_gemini_report)]

        for name, step in steps:
            try:
                self.results[name] = step()
            except requests.RequestException as e:
                self.errors.append(f"{name}: {e}")
                self.results[name] = False

        print("\n" + "=" * 60)
        for name, passed in self.results.items():
            print(f"{'✅' if passed else '❌'} {name}")
        for error in self.errors:
            print(f"   - {error}")
        print("=" * 60)
        return all(self.results.values())


def main():
    parser = argparse.ArgumentParser(description="Validate a running proxy instance")
    parser.add_argument("--mode", choices=["quick", "full"], default="quick")
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL)
    parser.add_argument("--quiet", action="store_true")
    args = parser.parse_args()

    validator = ServiceValidator(args.base_url, verbose=not args.quiet)
    sys.exit(0 if validator.run(args.mode) else 1)


if __name__ == "__main__":
    main()
