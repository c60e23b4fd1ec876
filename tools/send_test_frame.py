"""
Send sample feature frames to a running bridge.

    python tools/send_test_frame.py --url ws://127.0.0.1:8090 --count 30
"""
import argparse
import asyncio
import json
import math
import random

import websockets


def sample_payload(i: int) -> dict:
    return {
        "rms": 0.3 + 0.2 * math.sin(i / 5),
        "rmsNorm": random.random(),
        "centroidNorm": random.random(),
        "beat": i % 8 == 0,
        "bpm": 124.0,
        "bpmConfidence": 0.8,
        "bpmSource": "beatGrid",
        "bandEnv": {"sub": 0.4, "bass": 0.5, "mid": 0.2, "treble": 0.1},
        "mfcc": [random.uniform(-20, 20) for _ in range(20)],
        "chroma": [random.random() for _ in range(12)],
        "beatGrid": {"bpm": 124.0, "confidence": 0.9},
    }


async def main(url: str, count: int, interval_s: float):
    async with websockets.connect(url) as ws:
        for i in range(count):
            await ws.send(json.dumps({"type": "features", "payload": sample_payload(i)}))
            await asyncio.sleep(interval_s)
        # Malformed input must be ignored without closing the connection
        await ws.send("not json")
    print(f"sent {count} frames to {url}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--url", default="ws://127.0.0.1:8090")
    parser.add_argument("--count", type=int, default=30)
    parser.add_argument("--interval", type=float, default=0.033)
    args = parser.parse_args()
    asyncio.run(main(args.url, args.count, args.interval))
