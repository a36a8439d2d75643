"""Reading candles for a symbol from Redis."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import msgpack

from klinebuilder.indicators import Candle

_FIELDS = ("open_time", "open", "high", "low", "close", "volume", "asset_volume")


def candle_keys(symbol: str, interval: str, kline_count: int, now: datetime) -> list[str]:
    """Keys for the last ``kline_count`` minutes, newest first."""
    keys = []
    for minutes_back in range(kline_count):
        t = now - timedelta(minutes=minutes_back)
        keys.append(
            f"{symbol}_{t.year}_{t.month:02}_{t.day:02}_{t.hour:02}_{t.minute:02}_{interval}"
        )
    return keys


def _number(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"field {name!r} is not a number: {value!r}")
    return float(value)


def decode_candle(data: bytes) -> Candle:
    """Decode a MessagePack candle stored as a map or as a 7-element array."""
    try:
        raw = msgpack.unpackb(data, raw=False)
    except (ValueError, TypeError, msgpack.UnpackException) as exc:
        raise ValueError(f"invalid candle data: {exc}") from exc

    if isinstance(raw, dict):
        missing = [name for name in _FIELDS if name not in raw]
        if missing:
            raise ValueError(f"candle is missing fields: {', '.join(missing)}")
        values = [raw[name] for name in _FIELDS]
    elif isinstance(raw, (list, tuple)):
        if len(raw) != len(_FIELDS):
            raise ValueError(f"candle array must have {len(_FIELDS)} items, got {len(raw)}")
        values = list(raw)
    else:
        raise ValueError(f"candle must be a map or an array, got {type(raw).__name__}")

    open_time = values[0]
    if isinstance(open_time, bool) or not isinstance(open_time, int):
        raise ValueError(f"field 'open_time' is not an integer: {open_time!r}")
    rest = [_number(name, v) for name, v in zip(_FIELDS[1:], values[1:])]
    return Candle(open_time, *rest)


async def fetch_candles_batch_from_redis(
    client: Any, symbol: str, interval: str, kline_count: int, gmt_offset: int
) -> list[Candle]:
    """Fetch up to ``kline_count`` candles, oldest first, skipping absent or bad entries."""
    now = datetime.now(timezone.utc) + timedelta(hours=gmt_offset)
    keys = candle_keys(symbol, interval, kline_count, now)
    values = await client.mget(keys)
    candles = []
    for value in reversed(values):
        if value is None:
            continue
        try:
            candles.append(decode_candle(value))
        except ValueError:
            continue
    return candles