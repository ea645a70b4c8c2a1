"""HTTP benchmark for the post listing and search endpoints."""
import asyncio
import argparse
import time
import statistics
import httpx

BASE_URL = "http://localhost:8000"

ENDPOINTS = [
    ("GET /posts", "/posts"),
    ("GET /posts?page=10&limit=50", "/posts?page=10&limit=50"),
    ("GET /posts?colname=post_text&searchtext=fastapi", "/posts?colname=post_text&searchtext=fastapi"),
    ("GET /posts?colname=post_image&searchtext=.png", "/posts?colname=post_image&searchtext=.png"),
    ("GET /posts/page/1/20", "/posts/page/1/20"),
    ("GET /posts/page/5/20/likes/desc", "/posts/page/5/20/likes/desc"),
    ("GET /tasks", "/tasks"),
    ("GET /health", "/health"),
]


def _percentile(times: list[float], fraction: float) -> float:
    ordered = sorted(times)
    return ordered[min(int(len(ordered) * fraction), len(ordered) - 1)]


async def benchmark_endpoint(client: httpx.AsyncClient, name: str, path: str, iterations: int = 50):
    times = []
    query_counts = []
    errors = 0

    # Warmup
    for _ in range(3):
        try:
            await client.get(path)
        except httpx.HTTPError:
            pass

    for _ in range(iterations):
        try:
            start = time.perf_counter()
            resp = await client.get(path)
            elapsed = (time.perf_counter() - start) * 1000
        except httpx.HTTPError:
            errors += 1
            continue

        if resp.status_code != 200:
            errors += 1
            continue
        times.append(elapsed)
        qc = resp.headers.get("X-Query-Count")
        if qc is not None:
            query_counts.append(int(qc))

    if not times:
        return {"name": name, "error": f"All {iterations} requests failed"}

    return {
        "name": name,
        "avg_ms": round(statistics.mean(times), 2),
        "p50_ms": round(_percentile(times, 0.50), 2),
        "p95_ms": round(_percentile(times, 0.95), 2),
        "p99_ms": round(_percentile(times, 0.99), 2),
        "queries": round(statistics.mean(query_counts), 1) if query_counts else "N/A",
        "errors": errors,
    }


async def run_benchmark(base_url: str, token: str, iterations: int = 50):
    print("=" * 90)
    print(f"Tasks & Posts API Benchmark, {iterations} iterations per endpoint")
    print(f"Target: {base_url}")
    print("=" * 90)

    headers = {"Authorization": f"Bearer {token}"}
    async with httpx.AsyncClient(base_url=base_url, headers=headers) as client:
        try:
            resp = await client.get("/health")
        except httpx.HTTPError as e:
            print(f"ERROR: Cannot connect to {base_url}: {e}")
            return
        if resp.status_code != 200:
            print(f"ERROR: Health check failed ({resp.status_code})")
            return
        print(f"Health: {resp.json()}")

        print()
        print(f"{'Endpoint':<55} {'Avg':>8} {'P50':>8} {'P95':>8} {'P99':>8} {'Queries':>8} {'Err':>4}")
        print("-" * 90)

        for name, path in ENDPOINTS:
            result = await benchmark_endpoint(client, name, path, iterations)
            if "error" in result:
                print(f"{result['name']:<55} {'ERROR':>8}")
            else:
                print(
                    f"{result['name']:<55} "
                    f"{result['avg_ms']:>7.1f}ms "
                    f"{result['p50_ms']:>7.1f}ms "
                    f"{result['p95_ms']:>7.1f}ms "
                    f"{result['p99_ms']:>7.1f}ms "
                    f"{str(result['queries']):>8} "
                    f"{result['errors']:>4}"
                )

        print("-" * 90)
        print("\nBenchmark complete.")


def main():
    parser = argparse.ArgumentParser(description="Benchmark the tasks & posts API")
    parser.add_argument("-n", "--iterations", type=int, default=50, help="Iterations per endpoint")
    parser.add_argument("--base-url", default=BASE_URL, help="API base URL")
    parser.add_argument("--token", required=True, help="Bearer token (printed by scripts/seed.py)")
    args = parser.parse_args()
    asyncio.run(run_benchmark(args.base_url, args.token, args.iterations))


if __name__ == "__main__":
    main()
