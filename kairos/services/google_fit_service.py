import asyncio
from datetime import datetime, timezone

from googleapiclient.discovery import build

from kairos.utils.timezone import ensure_utc

DAY_MILLIS = 86400000

STEP_COUNT = "com.google.step_count.delta"
SLEEP_SEGMENT = "com.google.sleep.segment"
HEART_RATE = "com.google.heart_rate.bpm"

def _bucket_date(bucket: dict) -> str:
    start = datetime.fromtimestamp(int(bucket["startTimeMillis"]) / 1000, tz=timezone.utc)
    return start.date().isoformat()

def _points(bucket: dict) -> list:
    datasets = bucket.get("dataset") or []
    return (datasets[0].get("point") or []) if datasets else []

def process_step_data(data: dict) -> list[dict]:
    result = []
    for bucket in (data or {}).get("bucket", []):
        steps = sum((p.get("value") or [{}])[0].get("intVal", 0) for p in _points(bucket))
        result.append({"date": _bucket_date(bucket), "steps": steps})
    return result

def process_sleep_data(data: dict) -> list[dict]:
    result = []
    for bucket in (data or {}).get("bucket", []):
        hours = 0.0
        for p in _points(bucket):
            duration_ms = (int(p["endTimeNanos"]) - int(p["startTimeNanos"])) / 1_000_000
            hours += duration_ms / (1000 * 60 * 60)
        result.append({"date": _bucket_date(bucket), "sleep_hours": round(hours, 2)})
    return result

def process_heart_rate_data(data: dict) -> list[dict]:
    result = []
    for bucket in (data or {}).get("bucket", []):
        values = [v["fpVal"] for p in _points(bucket) for v in (p.get("value") or []) if v.get("fpVal")]
        avg = sum(values) / len(values) if values else 0.0
        result.append({"date": _bucket_date(bucket), "heart_rate": round(avg, 1)})
    return result

def merge_daily(steps: list, sleep: list, heart: list) -> list[dict]:
    """One record per date with steps / sleep_hours / heart_rate (zeros where missing)."""
    merged = {}
    for rows in (steps, sleep, heart):
        for row in rows:
            day = merged.setdefault(row["date"], {"date": row["date"], "steps": 0, "sleep_hours": 0.0, "heart_rate": 0.0})
            day.update({k: v for k, v in row.items() if k != "date"})
    return [merged[d] for d in sorted(merged)]


class GoogleFitClient:
    """Daily aggregates from the Fitness v1 API."""

    def __init__(self, creds):
        self.service = build("fitness", "v1", credentials=creds, cache_discovery=False)

    async def _aggregate(self, data_type: str, start: datetime, end: datetime) -> dict:
        body = {
            "aggregateBy": [{"dataTypeName": data_type}],
            "bucketByTime": {"durationMillis": DAY_MILLIS},
            "startTimeMillis": int(ensure_utc(start).timestamp() * 1000),
            "endTimeMillis": int(ensure_utc(end).timestamp() * 1000),
        }
        request = self.service.users().dataset().aggregate(userId="me", body=body)
        return await asyncio.to_thread(request.execute)

    async def fetch_daily_health(self, start: datetime, end: datetime) -> list[dict]:
        steps = process_step_data(await self._aggregate(STEP_COUNT, start, end))
        sleep = process_sleep_data(await self._aggregate(SLEEP_SEGMENT, start, end))
        heart = process_heart_rate_data(await self._aggregate(HEART_RATE, start, end))
        return merge_daily(steps, sleep, heart)
