"""
IPVerify HTTP Load Test - Locust
================================
Exercises the real HTTP API layer (POST /v1/verify) end-to-end.
Complements benchmarks/latency_benchmark.py, which benchmarks the
in-process VerificationService directly without going through the
network stack.

Usage (headless, 200 concurrent users, 60-second run):

    locust -f benchmarks/locustfile.py \\
           --headless -u 200 -r 20 --run-time 60s \\
           --host http://localhost:8080

    # Interactive web UI (browse to http://localhost:8089):
    locust -f benchmarks/locustfile.py --host http://localhost:8080

The server must be running with a MaxMind City database that knows the
university addresses below.

Key stats emitted at test end
------------------------------
  - Total requests / failure count / error rate (%)
  - P50 / P95 / P99 HTTP latency (ms)
  - Requests per second (RPS) at steady state
  - Share of verified logins flagged suspicious, rejected replays
  - Mean and peak CPU utilisation (%) sampled via psutil
"""

from __future__ import annotations

import random
import threading
import time
import uuid
from collections import deque

import psutil
from locust import HttpUser, between, events, task

# brown.edu, fau.edu, ucla.edu, uark.edu
ADDRESSES = [
    "128.148.252.151",
    "131.91.101.181",
    "128.97.27.37",
    "130.184.5.181",
]

# A small user pool so timelines grow and neighbours exist.
USERS = [f"user_{i:03d}" for i in range(50)]

# ---------------------------------------------------------------------------
# Run-wide counters, shared by every simulated user
# ---------------------------------------------------------------------------

class _RunStats:
    """CPU samples plus verdict counts gathered while the test runs."""

    def __init__(self) -> None:
        self.cpu: deque[float] = deque()
        self.stop = threading.Event()
        self.lock = threading.Lock()
        self.verified = 0
        self.suspicious = 0
        self.replays_rejected = 0

    def reset(self) -> None:
        self.cpu.clear()
        self.stop.clear()
        with self.lock:
            self.verified = self.suspicious = self.replays_rejected = 0

    def record_verdict(self, body: dict) -> None:
        flagged = body.get("travelToCurrentGeoSuspicious") or body.get(
            "travelFromCurrentGeoSuspicious"
        )
        with self.lock:
            self.verified += 1
            if flagged:
                self.suspicious += 1

    def record_replay(self) -> None:
        with self.lock:
            self.replays_rejected += 1


_run = _RunStats()


def _sample_cpu() -> None:
    while not _run.stop.is_set():
        _run.cpu.append(psutil.cpu_percent(interval=None))
        time.sleep(1.0)


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    _run.reset()
    psutil.cpu_percent(interval=None)  # baseline; the first reading is 0.0
    threading.Thread(target=_sample_cpu, daemon=True, name="ipverify-cpu").start()


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    """Print latency, verdict and CPU figures for the run."""
    _run.stop.set()

    total = environment.runner.stats.total
    failures = total.num_failures
    requests = total.num_requests
    cpu = list(_run.cpu)
    flagged_pct = 100.0 * _run.suspicious / _run.verified if _run.verified else 0.0

    rows = [
        ("requests", f"{requests:,}"),
        ("failures", f"{failures:,} ({100.0 * failures / requests if requests else 0.0:.2f}%)"),
        ("rps", f"{total.current_rps:.1f}"),
        ("latency p50/p95/p99 ms", "/".join(
            str(total.get_response_time_percentile(q) or 0) for q in (0.50, 0.95, 0.99)
        )),
        ("verified logins", f"{_run.verified:,}"),
        ("flagged suspicious", f"{_run.suspicious:,} ({flagged_pct:.1f}%)"),
        ("replays rejected", f"{_run.replays_rejected:,}"),
        ("cpu mean/peak %", (
            f"{sum(cpu) / len(cpu):.1f}/{max(cpu):.1f}" if cpu else "n/a"
        )),
    ]
    width = max(len(label) for label, _ in rows)
    print("\nIPVerify load test")
    for label, value in rows:
        print(f"  {label:<{width}} : {value}")


def _verify_payload(user: str, timestamp: int) -> dict:
    return {
        "username": user,
        "unix_timestamp": timestamp,
        "event_uuid": str(uuid.uuid4()),
        "ip_address": random.choice(ADDRESSES),
    }


class IPVerifyUser(HttpUser):
    """Simulated client submitting logins for a shared pool of users."""

    wait_time = between(0.01, 0.1)

    @task(10)
    def verify_login(self):
        """Login a few hours either side of now."""
        timestamp = int(time.time()) + random.randint(-72, 72) * 3600
        payload = _verify_payload(random.choice(USERS), timestamp)
        with self.client.post(
            "/v1/verify", json=payload, name="/v1/verify", catch_response=True
        ) as response:
            if response.status_code != 200:
                response.failure(f"unexpected status {response.status_code}")
                return
            _run.record_verdict(response.json())

    @task(1)
    def replayed_login(self):
        """Submitting the same event id twice must be rejected the second time."""
        payload = _verify_payload(random.choice(USERS), int(time.time()))
        self.client.post("/v1/verify", json=payload, name="/v1/verify")
        with self.client.post(
            "/v1/verify", json=payload, name="/v1/verify [replay]", catch_response=True
        ) as response:
            if response.status_code == 400:
                _run.record_replay()
                response.success()
            else:
                response.failure(f"replay accepted with status {response.status_code}")

    @task(1)
    def status(self):
        self.client.get("/v1/status", name="/v1/status")
