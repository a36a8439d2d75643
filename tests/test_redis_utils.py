from datetime import datetime

import msgpack
import pytest

from klinebuilder.indicators import Candle
from klinebuilder.redis_utils import (
    candle_keys,
    decode_candle,
    fetch_candles_batch_from_redis,
)


def packed(candle):
    return msgpack.packb(
        {
            "open_time": candle.open_time,
            "open": candle.open,
            "high": candle.high,
            "low": candle.low,
            "close": candle.close,
            "volume": candle.volume,
            "asset_volume": candle.asset_volume,
        }
    )


A = Candle(1000, 1.0, 2.0, 0.5, 1.5, 10.0, 15.0)
B = Candle(2000, 1.5, 2.5, 1.0, 2.0, 11.0, 16.0)


class FakeRedis:
    def __init__(self, values):
        self.values = values
        self.requested = None

    async def mget(self, keys):
        self.requested = list(keys)
        return self.values


def test_candle_keys_cross_midnight():
    keys = candle_keys("BTC", "2m", 3, datetime(2024, 1, 2, 0, 1))
    assert keys == [
        "BTC_2024_01_02_00_01_2m",
        "BTC_2024_01_02_00_00_2m",
        "BTC_2024_01_01_23_59_2m",
    ]


def test_candle_keys_zero_count():
    assert candle_keys("BTC", "2m", 0, datetime(2024, 5, 5)) == []


def test_decode_map_round_trip():
    assert decode_candle(packed(A)) == A


def test_decode_array_form():
    data = msgpack.packb([2000, 1.5, 2.5, 1.0, 2.0, 11.0, 16.0])
    assert decode_candle(data) == B


def test_decode_accepts_integer_prices_and_extra_fields():
    data = msgpack.packb(
        {"open_time": 5, "open": 1, "high": 2, "low": 1, "close": 2,
         "volume": 3, "asset_volume": 4, "extra": "x"}
    )
    candle = decode_candle(data)
    assert candle.close == 2.0
    assert isinstance(candle.close, float)


@pytest.mark.parametrize(
    "data",
    [
        b"garbage",
        b"",
        msgpack.packb({"open_time": 1, "open": 1.0}),
        msgpack.packb([1, 2.0, 3.0]),
        msgpack.packb("text"),
        msgpack.packb([1.5, 1.0, 1.0, 1.0, 1.0, 1.0, 1.0]),
        msgpack.packb([1, "x", 1.0, 1.0, 1.0, 1.0, 1.0]),
    ],
)
def test_decode_rejects_bad_data(data):
    with pytest.raises(ValueError):
        decode_candle(data)


@pytest.mark.asyncio
async def test_fetch_reverses_and_skips_bad_entries():
    client = FakeRedis([packed(B), None, b"garbage", packed(A)])
    candles = await fetch_candles_batch_from_redis(client, "ETH", "30m", 4, 2)
    assert candles == [A, B]
    assert len(client.requested) == 4
    assert all(k.startswith("ETH_") and k.endswith("_30m") for k in client.requested)


@pytest.mark.asyncio
async def test_fetch_all_missing():
    client = FakeRedis([None, None])
    assert await fetch_candles_batch_from_redis(client, "ETH", "2m", 2, 0) == []