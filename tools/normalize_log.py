import json
import sys
from pathlib import Path

def normalize_timestamps(log_text: str) -> str:
    """
    Rewrite bridge JSONL so 'ts_ms' is seconds since the first record.

    Non-JSON lines (uvicorn output) are kept unchanged.
    """
    out: list[str] = []
    t0: int | None = None

    for line in log_text.splitlines():
        try:
            record = json.loads(line)
        except ValueError:
            out.append(line)
            continue

        if not isinstance(record, dict) or not isinstance(record.get("ts_ms"), int):
            out.append(line)
            continue

        if t0 is None:
            t0 = record["ts_ms"]
        record["ts_ms"] = round((record["ts_ms"] - t0) / 1000.0, 3)
        out.append(json.dumps(record, separators=(",", ":")))

    return "\n".join(out)


if __name__ == "__main__":
    src = Path(sys.argv[1])
    normalized = normalize_timestamps(src.read_text(encoding="utf-8"))

    out_path = src.with_suffix(".normalized.jsonl")
    out_path.write_text(normalized, encoding="utf-8")
