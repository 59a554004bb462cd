"""
Simulator: posts realistic sensor snapshots to a running server.

Each zone gets readings with slow sinusoidal drift plus gaussian noise, and
10-minute trend deltas against the previous sample.

Usage:
    cd backend
    python -m app.simulate --zone Cafeteria --count 3
"""

import argparse
import asyncio
import math
import random
from datetime import datetime, timedelta, timezone

import httpx

# Sample spacing; trend deltas are reported over this window
INTERVAL_MINUTES = 10


# ──────────────────────────────────────────────
# Realistic reading generators
# ──────────────────────────────────────────────

def generate_temperature(t: float, seed: float) -> float:
    """20-26°C with gradual drift + noise."""
    base = 23 + 2 * math.sin(seed + t / 3600)
    noise = random.gauss(0, 0.3)
    return round(max(20, min(26, base + noise)), 1)


def generate_humidity(t: float, seed: float) -> int:
    """35-65% with slow wave."""
    base = 50 + 10 * math.sin(seed + t / 7200)
    noise = random.gauss(0, 2)
    return round(max(35, min(65, base + noise)))


def generate_occupancy(t: float, seed: float) -> int:
    """0-60 people, peaking around lunch."""
    hour_of_day = (t / 3600) % 24
    daily_factor = math.exp(-((hour_of_day - 12.5) ** 2) / 8)
    noise = random.gauss(0, 3)
    return round(max(0, min(60, 60 * daily_factor + noise)))


def generate_co2(occupancy: int) -> int:
    """450-1400 ppm, correlated with occupancy."""
    base = 450 + occupancy * 15
    noise = random.gauss(0, 40)
    return round(max(450, min(1400, base + noise)))


def generate_noise(occupancy: int) -> int:
    """35-75 dBA, correlated with occupancy."""
    base = 38 + occupancy * 0.6
    noise = random.gauss(0, 2)
    return round(max(35, min(75, base + noise)))


def generate_productivity(co2: int, noise_dba: int) -> int:
    """40-95, dragged down by stale air and noise."""
    base = 90 - max(0, co2 - 800) * 0.03 - max(0, noise_dba - 55) * 0.8
    noise = random.gauss(0, 3)
    return round(max(40, min(95, base + noise)))


def build_snapshot(zone: str, when: datetime, previous: dict | None = None, seed: float = 0.0) -> dict:
    """Build one snapshot for `zone` at `when`, with trends against `previous`."""
    t = when.timestamp()
    occupancy = generate_occupancy(t, seed)
    co2 = generate_co2(occupancy)
    noise_dba = generate_noise(occupancy)
    productivity = generate_productivity(co2, noise_dba)

    snapshot = {
        "timestamp": when.isoformat(timespec="seconds"),
        "zone": zone,
        "temperature_c": generate_temperature(t, seed),
        "humidity_pct": generate_humidity(t, seed),
        "co2_ppm": co2,
        "voc_index": round(max(0, min(500, 80 + occupancy * 2 + random.gauss(0, 10)))),
        "occupancy": occupancy,
        "noise_dba": noise_dba,
        "productivity_score": productivity,
    }
    prev = previous or snapshot
    snapshot["trend_10min_co2_ppm_delta"] = co2 - prev["co2_ppm"]
    snapshot["trend_10min_noise_dba_delta"] = noise_dba - prev["noise_dba"]
    snapshot["trend_10min_productivity_delta"] = productivity - prev["productivity_score"]
    return snapshot


# ──────────────────────────────────────────────
# Main routine
# ──────────────────────────────────────────────

async def simulate(url: str, zone: str, count: int, music_length_ms: int):
    seed_val = random.uniform(0, 2 * math.pi)
    start = datetime.now(timezone.utc) - timedelta(minutes=INTERVAL_MINUTES * count)
    previous = None

    async with httpx.AsyncClient(base_url=url, timeout=300) as client:
        for i in range(count):
            when = start + timedelta(minutes=INTERVAL_MINUTES * (i + 1))
            snapshot = build_snapshot(zone, when, previous, seed_val)
            previous = snapshot

            r = await client.post(
                "/api/generate-music",
                json={**snapshot, "music_length_ms": music_length_ms},
            )
            data = r.json()
            if r.is_success:
                print(f"  [OK] {zone} {snapshot['timestamp']} -> {data['audioPath']}")
                print(f"       mood={data['musicBrief']['mood']} prompt={data['prompt'][:80]!r}")
            else:
                print(f"  [FAIL {r.status_code}] {zone} {snapshot['timestamp']}: {data.get('error', data)}")


def main():
    parser = argparse.ArgumentParser(description="Post simulated sensor snapshots")
    parser.add_argument("--url", default="http://localhost:8000")
    parser.add_argument("--zone", default="Cafeteria")
    parser.add_argument("--count", type=int, default=1)
    parser.add_argument("--music-length-ms", type=int, default=30000)
    args = parser.parse_args()

    print("=" * 50)
    print(f"SIMULATOR - {args.count} snapshot(s) for {args.zone}")
    print("=" * 50)
    asyncio.run(simulate(args.url, args.zone, args.count, args.music_length_ms))


if __name__ == "__main__":
    main()
