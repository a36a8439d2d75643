"""Command line entry point: compute indicators for every listed symbol."""

from __future__ import annotations

import asyncio
import sys
from typing import Any, Sequence

from klinebuilder.indicators import DONCHIAN_PERIOD, calculate_indicators
from klinebuilder.redis_utils import fetch_candles_batch_from_redis
from klinebuilder.redis_writer import build_output, output_key, write_indicators_to_redis

REDIS_URL = "redis://127.0.0.1/"
INTERVALS = ("2m", "30m")
GMT_OFFSET_HOURS = 2
SYMBOL_SEPARATOR = "#"

# Every run recomputes the full window; the incremental path stays available.
RECOMPUTE_ALL = True
ESTIMATED_NEW_KLINES = 30
MIN_INCREMENTAL_KLINES = 20


def round_up_to_ten(count: int) -> int:
    """Round ``count`` up to the next multiple of ten."""
    return (count + 9) // 10 * 10


async def fetch_symbols(client: Any, symbols_key: str) -> list[str]:
    """Read the '#'-separated symbol list stored under ``symbols_key``."""
    value = await client.get(symbols_key)
    if value is None:
        raise KeyError(f"symbols key {symbols_key!r} not found")
    if isinstance(value, bytes):
        value = value.decode("utf-8")
    return value.split(SYMBOL_SEPARATOR)


async def determine_calculation_count(
    client: Any, symbol: str, interval: str, max_kline_count: int
) -> int:
    """Number of klines to recompute for one symbol and interval.

    With ``RECOMPUTE_ALL`` set this is always ``max_kline_count``. Otherwise the
    full count is used when no output exists yet, and an estimated number of new
    klines, rounded up to a multiple of ten, when it does.
    """
    if RECOMPUTE_ALL:
        return max_kline_count

    if not await client.exists(output_key(symbol, interval)):
        return max_kline_count

    new_data_count = ESTIMATED_NEW_KLINES
    if new_data_count <= MIN_INCREMENTAL_KLINES:
        return max(MIN_INCREMENTAL_KLINES, new_data_count)
    return round_up_to_ten(new_data_count)


async def process_timeframe(client: Any, symbol: str, interval: str, kline_count: int) -> bool:
    """Compute and store indicators for one symbol and interval.

    Returns False when there were too few candles and nothing was written.
    """
    count = await determine_calculation_count(client, symbol, interval, kline_count)
    candles = await fetch_candles_batch_from_redis(
        client, symbol, interval, count, GMT_OFFSET_HOURS
    )
    if len(candles) < DONCHIAN_PERIOD:
        print(
            f"⚠ {symbol}-{interval}: not enough data ({len(candles)}), "
            f"at least {DONCHIAN_PERIOD} klines required"
        )
        return False

    result = calculate_indicators(candles)
    await write_indicators_to_redis(client, symbol, interval, build_output(candles, result))
    return True


async def process_symbol(
    client: Any, symbol: str, kline_count: int
) -> dict[str, BaseException | None]:
    """Process every interval of a symbol concurrently; map each interval to its error."""
    print(f"Processing: {symbol}")
    results = await asyncio.gather(
        *(process_timeframe(client, symbol, interval, kline_count) for interval in INTERVALS),
        return_exceptions=True,
    )
    outcome: dict[str, BaseException | None] = {}
    for interval, result in zip(INTERVALS, results):
        if isinstance(result, BaseException):
            print(f"✗ {symbol}-{interval} error: {result}", file=sys.stderr)
            outcome[interval] = result
        else:
            print(f"✓ {symbol}-{interval} done")
            outcome[interval] = None
    return outcome


async def run(client: Any, symbols_key: str, kline_count: int) -> tuple[int, int]:
    """Process all symbols concurrently; return (successes, failures)."""
    symbols = await fetch_symbols(client, symbols_key)
    print(f"Symbols to process: {symbols}")

    tasks = [asyncio.create_task(process_symbol(client, s, kline_count)) for s in symbols]
    successes = failures = 0
    for finished in asyncio.as_completed(tasks):
        try:
            await finished
        except Exception as exc:  # noqa: BLE001 - a failed task is counted, not fatal
            failures += 1
            print(f"✗ Task error: {exc}", file=sys.stderr)
        else:
            successes += 1
            print(f"✓ Successful: {successes}")

    print(f"Finished. Successful: {successes}, failed: {failures}")
    return successes, failures


async def _run_with_default_client(symbols_key: str, kline_count: int) -> None:
    import redis.asyncio as aioredis

    client = aioredis.Redis.from_url(REDIS_URL)
    try:
        await run(client, symbols_key, kline_count)
    finally:
        await client.aclose()


def main(argv: Sequence[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 2:
        print("usage: klinebuilder <symbols_key> <kline_count>", file=sys.stderr)
        return 1

    symbols_key, raw_count = args
    try:
        kline_count = int(raw_count)
    except ValueError:
        kline_count = -1
    if kline_count < 0:
        print(f"kline_count must be a non-negative integer, got {raw_count!r}", file=sys.stderr)
        return 1

    asyncio.run(_run_with_default_client(symbols_key, kline_count))
    return 0


if __name__ == "__main__":
    sys.exit(main())