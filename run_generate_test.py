"""
run_generate_test.py: end-to-end check against a running roomgen server

Runs the whole flow in one go:
  1. Health check (is rate limiting on?)
  2. Invalid request → 400
  3. Real generation (Modern Living Room) → image URL
  4. Gaming Room generation (canned prompt)
  5. Quota headers once the limit is hit (only with Redis configured)

Usage:
    uvicorn roomgen.main:app --port 8000 &
    python run_generate_test.py <public image url>
"""

import asyncio
import sys
import time

import httpx

BASE = "http://localhost:8000"

# Generation blocks for up to ~30s of polling on the server
GENERATE_TIMEOUT = 90


def _banner(title: str) -> None:
    print("\n" + "=" * 60)
    print(f"  {title}")
    print("=" * 60)


async def main(image_url: str) -> int:
    failures = 0

    async with httpx.AsyncClient(base_url=BASE, timeout=GENERATE_TIMEOUT) as c:
        # ── Step 1: Health ───────────────────────────────────
        _banner("Step 1: Health")
        r = await c.get("/api/v1/health")
        r.raise_for_status()
        health = r.json()
        rate_limited = health.get("rate_limiting", False)
        print(f"  ✓ status={health['status']}, rate_limiting={rate_limited}")

        # ── Step 2: Invalid request ──────────────────────────
        _banner("Step 2: Missing imageUrl → 400")
        r = await c.post("/api/v1/generate", json={"theme": "Modern", "room": "Living Room"})
        if r.status_code == 400:
            print(f"  ✓ 400 {r.json()}")
        else:
            failures += 1
            print(f"  ✗ expected 400, got {r.status_code}: {r.text[:200]}")

        # ── Steps 3-4: Real generations ──────────────────────
        for step, (theme, room) in enumerate([("Modern", "Living Room"), ("Modern", "Gaming Room")], start=3):
            _banner(f"Step {step}: {theme} / {room}")
            start = time.time()
            r = await c.post("/api/v1/generate", json={"imageUrl": image_url, "theme": theme, "room": room})
            elapsed = time.time() - start
            if r.status_code == 200:
                print(f"  ✓ {elapsed:.1f}s → {r.json()['image']}")
            else:
                failures += 1
                print(f"  ✗ {r.status_code} after {elapsed:.1f}s: {r.text[:300]}")

        # ── Step 5: Quota ────────────────────────────────────
        _banner("Step 5: Quota headers")
        if not rate_limited:
            print("  – skipped: server runs in permissive mode (no REDIS_URL)")
        else:
            for _ in range(10):
                r = await c.post("/api/v1/generate", json={})
                if r.status_code == 429:
                    print(
                        f"  ✓ 429 limit={r.headers.get('X-RateLimit-Limit')} "
                        f"remaining={r.headers.get('X-RateLimit-Remaining')} "
                        f"retry-after={r.headers.get('Retry-After')}s"
                    )
                    break
            else:
                failures += 1
                print("  ✗ quota never exhausted")

    _banner("Done")
    print(f"  failures: {failures}")
    return 1 if failures else 0


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("usage: python run_generate_test.py <public image url>")
        sys.exit(2)
    sys.exit(asyncio.run(main(sys.argv[1])))
