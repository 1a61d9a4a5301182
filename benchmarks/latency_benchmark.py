import time
import uuid
import random
import concurrent.futures

import numpy as np

from ipverify.core.types import GeoPoint, LoginEvent
from ipverify.geo.lookup import StaticLookup
from ipverify.service import VerificationService
from ipverify.store import InMemoryEventStore, SQLiteEventStore

LOCATIONS = {
    "128.148.252.151": GeoPoint(41.8244, -71.408, 5),
    "131.91.101.181": GeoPoint(26.3796, -80.1029, 5),
    "128.97.27.37": GeoPoint(34.0648, -118.4414, 10),
    "130.184.5.181": GeoPoint(36.0557, -94.1567, 5),
}
ADDRESSES = list(LOCATIONS)
USERS = [f"user_bench_{i:03d}" for i in range(100)]
BASE_TIME = 1514764800


def create_service(store):
    return VerificationService(store=store, lookup=StaticLookup(LOCATIONS))


def random_event():
    return LoginEvent(
        event_id=str(uuid.uuid4()),
        user_id=random.choice(USERS),
        ip_address=random.choice(ADDRESSES),
        unix_timestamp=BASE_TIME + random.randint(0, 30 * 24) * 3600,
    )


def run_latency_benchmark(store, iterations=1000):
    service = create_service(store)

    print(f"--- Latency Benchmark: {type(store).__name__} ({iterations} iterations) ---")

    latencies = []

    # Warmup
    service.verify_event(random_event())

    for i in range(iterations):
        event = random_event()
        start_time = time.perf_counter()
        service.verify_event(event)
        end_time = time.perf_counter()

        latency_ms = (end_time - start_time) * 1000
        latencies.append(latency_ms)

        if (i + 1) % 200 == 0:
            print(f"  Completed {i + 1}/{iterations} iterations")

    print("\nLatency Results:")
    print(f"  Mean:   {np.mean(latencies):.3f} ms")
    print(f"  Median: {np.median(latencies):.3f} ms")
    print(f"  P95:    {np.percentile(latencies, 95):.3f} ms")
    print(f"  P99:    {np.percentile(latencies, 99):.3f} ms")
    print("-" * 40)
    return latencies


def run_throughput_benchmark(store, total_requests=5000, concurrent_users=10):
    service = create_service(store)
    events = [random_event() for _ in range(total_requests)]

    print(f"\n--- Throughput Benchmark: {type(store).__name__} "
          f"({total_requests} requests, {concurrent_users} concurrent) ---")

    start_time = time.perf_counter()

    with concurrent.futures.ThreadPoolExecutor(max_workers=concurrent_users) as executor:
        futures = [executor.submit(service.verify_event, e) for e in events]
        concurrent.futures.wait(futures)

    end_time = time.perf_counter()
    total_time = end_time - start_time

    throughput = total_requests / total_time
    failures = sum(1 for f in futures if f.exception() is not None)

    print(f"\nThroughput Results:")
    print(f"  Total Time: {total_time:.2f} s")
    print(f"  Throughput: {throughput:.2f} requests/sec")
    print(f"  Failures:   {failures}")
    print("-" * 40)
    return throughput


if __name__ == "__main__":
    for make_store in (InMemoryEventStore, SQLiteEventStore):
        run_latency_benchmark(make_store())
        run_throughput_benchmark(make_store())
