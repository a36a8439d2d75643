import msgpack
import pytest

from klinebuilder.cli import (
    determine_calculation_count,
    fetch_symbols,
    main,
    process_symbol,
    process_timeframe,
    round_up_to_ten,
    run,
)


def _packed_candle(i: int) -> bytes:
    close = 100.0 + (i % 7) * 1.5 + i * 0.3
    return msgpack.packb(
        {
            "open_time": 1_700_000_000_000 + i * 60_000,
            "open": close - 0.5,
            "high": close + 1.0,
            "low": close - 1.0,
            "close": close,
            "volume": 10.0 + i,
            "asset_volume": 1000.0 + i,
        },
        use_bin_type=True,
    )


class FakeRedis:
    def __init__(self, store=None, candle_count=0, failing_keys=()):
        self.store = dict(store or {})
        # newest first, as the keys are generated
        self.payloads = [_packed_candle(i) for i in reversed(range(candle_count))]
        self.failing_keys = set(failing_keys)
        self.mget_calls = []

    async def get(self, key):
        return self.store.get(key)

    async def mget(self, keys):
        self.mget_calls.append(list(keys))
        values = self.payloads[: len(keys)]
        return values + [None] * (len(keys) - len(values))

    async def set(self, key, value):
        if key in self.failing_keys:
            raise ConnectionError(f"cannot write {key}")
        self.store[key] = value


def test_round_up_to_ten_cases_from_source():
    assert round_up_to_ten(25) == 30
    assert round_up_to_ten(15) == 20


@pytest.mark.parametrize("count,expected", [(0, 0), (1, 10), (10, 10), (30, 30), (31, 40)])
def test_round_up_to_ten(count, expected):
    assert round_up_to_ten(count) == expected


@pytest.mark.asyncio
async def test_fetch_symbols_splits_on_hash():
    client = FakeRedis({"symbols": b"BTCUSDT#ETHUSDT#SOLUSDT"})
    assert await fetch_symbols(client, "symbols") == ["BTCUSDT", "ETHUSDT", "SOLUSDT"]


@pytest.mark.asyncio
async def test_fetch_symbols_accepts_str():
    client = FakeRedis({"symbols": "BTCUSDT"})
    assert await fetch_symbols(client, "symbols") == ["BTCUSDT"]


@pytest.mark.asyncio
async def test_fetch_symbols_missing_key():
    with pytest.raises(KeyError):
        await fetch_symbols(FakeRedis(), "absent")


@pytest.mark.asyncio
async def test_determine_calculation_count_returns_max():
    assert await determine_calculation_count(FakeRedis(), "BTC", "2m", 120) == 120


@pytest.mark.asyncio
async def test_process_timeframe_writes_document():
    client = FakeRedis(candle_count=30)
    assert await process_timeframe(client, "BTC", "2m", 40) is True
    assert len(client.mget_calls[0]) == 40
    doc = msgpack.unpackb(client.store["BTCklines2m"], raw=False)
    assert len(doc["klines"]) == 30
    assert len(doc["kama_21"]) == 30
    assert doc["klines"][0]["open_time"] == 1_700_000_000_000
    assert doc["klines"][-1]["open_time"] == 1_700_000_000_000 + 29 * 60_000


@pytest.mark.asyncio
async def test_process_timeframe_too_few_candles():
    client = FakeRedis(candle_count=20)
    assert await process_timeframe(client, "BTC", "30m", 40) is False
    assert "BTCklines30m" not in client.store


@pytest.mark.asyncio
async def test_process_symbol_handles_both_intervals():
    client = FakeRedis(candle_count=25)
    outcome = await process_symbol(client, "ETH", 25)
    assert outcome == {"2m": None, "30m": None}
    assert {"ETHklines2m", "ETHklines30m"} <= set(client.store)


@pytest.mark.asyncio
async def test_process_symbol_reports_interval_error():
    client = FakeRedis(candle_count=25, failing_keys={"ETHklines30m"})
    outcome = await process_symbol(client, "ETH", 25)
    assert outcome["2m"] is None
    assert isinstance(outcome["30m"], ConnectionError)
    assert "ETHklines2m" in client.store


@pytest.mark.asyncio
async def test_run_counts_successes():
    client = FakeRedis({"symbols": b"BTC#ETH"}, candle_count=22)
    assert await run(client, "symbols", 22) == (2, 0)
    assert {"BTCklines2m", "BTCklines30m", "ETHklines2m", "ETHklines30m"} <= set(client.store)


@pytest.mark.asyncio
async def test_run_missing_symbols_key():
    with pytest.raises(KeyError):
        await run(FakeRedis(), "symbols", 10)


@pytest.mark.parametrize("argv", [[], ["symbols"], ["symbols", "10", "extra"]])
def test_main_wrong_argument_count(argv):
    assert main(argv) == 1


@pytest.mark.parametrize("count", ["abc", "-5", "1.5"])
def test_main_bad_count(count):
    assert main(["symbols", count]) == 1