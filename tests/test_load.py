"""
Load Testing for the public redirect

Fires scans at /r/{id} at increasing request rates against a running
server and reports latency percentiles and error rates per step.

Usage:
    RATE_LIMIT_ENABLED=false uvicorn qr_service.main:app --port 8000
    LOAD_TEST_BASE_URL=http://localhost:8000 pytest tests/test_load.py -m load -v -s
"""

import asyncio
import os
import statistics
import time
import uuid
from typing import List

import httpx
import pytest

BASE_URL = os.getenv("LOAD_TEST_BASE_URL")
TEST_DURATION = 5  # seconds per step
RAMP_UP_STEPS = [10, 50, 100, 200]  # Requests per second

pytestmark = [
    pytest.mark.load,
    pytest.mark.skipif(not BASE_URL, reason="LOAD_TEST_BASE_URL is not set"),
]


class LoadTestResult:
    """Results of one load step."""

    def __init__(self, rps: int):
        self.target_rps = rps
        self.response_times: List[float] = []
        self.errors = 0
        self.total = 0
        self.elapsed = 0.0

    @property
    def error_rate(self) -> float:
        return (self.errors / self.total * 100) if self.total else 0.0

    def percentile(self, pct: int) -> float:
        if not self.response_times:
            return 0.0
        ordered = sorted(self.response_times)
        return ordered[min(len(ordered) - 1, int(len(ordered) * pct / 100))]

    def __str__(self) -> str:
        avg = statistics.mean(self.response_times) if self.response_times else 0.0
        return (
            f"RPS target={self.target_rps} actual={self.total / max(self.elapsed, 1e-9):.1f} | "
            f"errors={self.error_rate:.1f}% | avg={avg * 1000:.1f}ms "
            f"p50={self.percentile(50) * 1000:.1f}ms p95={self.percentile(95) * 1000:.1f}ms "
            f"p99={self.percentile(99) * 1000:.1f}ms"
        )


async def create_scan_target(client: httpx.AsyncClient) -> str:
    email = f"load-{uuid.uuid4().hex[:8]}@example.com"
    response = await client.post("/auth/signup", json={"email": email, "password": "load-test-pass"})
    response.raise_for_status()
    headers = {"Authorization": f"Bearer {response.json()['access_token']}"}

    response = await client.post(
        "/api/qr-codes",
        json={"name": "Load test", "destination_url": "https://example.com/load"},
        headers=headers
    )
    response.raise_for_status()
    return response.json()["id"]


async def scan(client: httpx.AsyncClient, qr_code_id: str, result: LoadTestResult) -> None:
    start = time.perf_counter()
    try:
        response = await client.get(f"/r/{qr_code_id}")
        if response.status_code != 302:
            result.errors += 1
    except httpx.HTTPError:
        result.errors += 1
    finally:
        result.total += 1
        result.response_times.append(time.perf_counter() - start)


async def run_step(client: httpx.AsyncClient, qr_code_id: str, rps: int) -> LoadTestResult:
    result = LoadTestResult(rps)
    interval = 1.0 / rps
    pending = []
    start = time.perf_counter()

    while time.perf_counter() - start < TEST_DURATION:
        pending.append(asyncio.create_task(scan(client, qr_code_id, result)))
        await asyncio.sleep(interval)

    await asyncio.gather(*pending)
    result.elapsed = time.perf_counter() - start
    return result


async def test_load_redirect_endpoint():
    limits = httpx.Limits(max_connections=200, max_keepalive_connections=50)
    async with httpx.AsyncClient(base_url=BASE_URL, timeout=10.0, limits=limits) as client:
        qr_code_id = await create_scan_target(client)

        results = []
        for rps in RAMP_UP_STEPS:
            result = await run_step(client, qr_code_id, rps)
            print(result)
            results.append(result)

    # The lowest step must be clean; higher ones are reported only
    assert results[0].error_rate == 0.0
