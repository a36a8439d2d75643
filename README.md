# klinebuilder

klinebuilder reads candlestick data (klines) for a list of trading symbols
from Redis. It computes a set of technical indicators for each symbol and
writes the results back to Redis as MessagePack.

## What it computes

For every symbol, klinebuilder handles two intervals, `2m` and `30m`. For
each one it computes:

- KAMA over 21 and 34 periods, with fast/slow smoothing of 2/30. It also
  computes the one-step rate of change of KAMA-21, which is 0 for the first
  value and wherever the previous value is 0.
- CCI over 34 and 170 periods, using the typical price and the 0.015 factor.
- ATR over 14 periods, with Wilder smoothing.
- The Donchian channel (upper and lower) over 21 periods.
- The Ichimoku cloud with periods 9, 26 and 52: conversion, base, and
  leading spans A and B.
- Three derived positions. Each is 0 for the first 21 candles and wherever
  its denominator is 0.
  - `donc_position`: where the price sits inside the Donchian channel,
    minus 0.5. The price used is the high when the close is at or above the
    previous close, and the low otherwise.
  - `kama_donc_position`: where KAMA-21 sits inside the Donchian channel,
    minus 0.5.
  - `close_kama_position`: `(close - KAMA-21) / (2 * ATR)`.

If fewer than 21 candles are found for an interval, nothing is written for
that interval.

## Redis layout

The data in Redis is arranged as follows:

- **Symbol list.** A string key that holds symbols separated by `#`, for
  example `BTCUSDT#ETHUSDT`.
- **Input candles.** Each one-minute candle is stored under a key of the form
  `<symbol>_<YYYY>_<MM>_<DD>_<HH>_<mm>_<interval>`, with the time in UTC+2.
  - The value is MessagePack: either a map or a 7-item array of `open_time`,
    `open`, `high`, `low`, `close`, `volume` and `asset_volume`.
  - Keys that are missing or cannot be decoded are skipped.
- **Output.** Written under `<symbol>klines<interval>`, for example
  `BTCUSDTklines2m`. The value is a MessagePack map with these entries:
  - `klines`: a list of maps, each with `open_time`, `open`, `close`, `high`,
    `low`, `volume` and `asset_volume`.
  - `kama_21`, `kama_34`, `kama_roc_1`
  - `cci_34`, `cci_170`
  - `donchian_upper`, `donchian_lower`
  - `ichimoku_span_a`, `ichimoku_span_b`
  - `donc_position`, `kama_donc_position`, `close_kama_position`

## Installation

```
pip install .
```

## Usage

```
klinebuilder <symbols_key> <kline_count>
```

- `symbols_key` is the Redis key that holds the `#`-separated symbol list.
- `kline_count` is how many of the most recent one-minute keys to read for
  each symbol and interval. It must be a non-negative integer.

If the arguments are wrong, the command prints a usage message and exits with
status 1.

The command connects to Redis at `redis://127.0.0.1/`. It processes all
symbols and both intervals concurrently, and prints progress as it goes. When
every symbol is done, it prints how many symbols were processed and how many
failed.

If a single interval fails, the error is reported and the other interval
still runs. If the symbol list key does not exist, the command fails with a
`KeyError`.

## Using it as a library

```python
from klinebuilder.indicators import Candle, calculate_indicators
from klinebuilder.redis_writer import build_output, pack_output

candles = [
    Candle(open_time=i, open=1.0 + i, high=2.0 + i, low=0.5 + i,
           close=1.5 + i, volume=10.0, asset_volume=10.0)
    for i in range(60)
]
result = calculate_indicators(candles)
print(result.kama21[-1], result.atr14[-1])

payload = pack_output(build_output(candles, result))  # MessagePack bytes
```

The package is made up of these modules:

- `klinebuilder.indicators`: provides `Candle`, `IndicatorResult` and
  `calculate_indicators`. It also has the streaming indicators `Kama`, `Cci`,
  `Atr`, `DonchianChannel` and `IchimokuCloud`. Each has an `update(candle)`
  method.
- `klinebuilder.redis_utils`: provides `candle_keys`, `decode_candle` and the
  async `fetch_candles_batch_from_redis`.
- `klinebuilder.redis_writer`: provides `Kline`, `IndicatorOutput`,
  `kline_from_candle`, `build_output`, `output_key`, `pack_output` and the
  async `write_indicators_to_redis`.
- `klinebuilder.cli`: provides `fetch_symbols`, `determine_calculation_count`,
  `process_timeframe`, `process_symbol`, `run` and `main`.

The async functions take any client that has awaitable `get`, `mget`, `set`
and `exists` methods, such as `redis.asyncio.Redis`.

## What it does not do

- **Incremental updates.** Every run recomputes the full window of
  `kline_count` candles. The incremental path in
  `determine_calculation_count` is switched off.
- **Redis address.** The Redis address cannot be changed from the command
  line.
- **Scheduling.** The command runs once and exits. It does not watch for new
  candles.

## Running the tests

```
pip install .[test]
pytest
```