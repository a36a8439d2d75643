"""Packing indicator output and storing it in Redis."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Sequence

import msgpack

from klinebuilder.indicators import Candle, IndicatorResult


@dataclass(frozen=True)
class Kline:
    """A candle as written to the output document."""

    open_time: int
    open: float
    close: float
    high: float
    low: float
    volume: float
    asset_volume: float


@dataclass
class IndicatorOutput:
    """The document stored for one symbol and interval."""

    klines: list[Kline]
    kama_21: list[float]
    kama_34: list[float]
    kama_roc_1: list[float]
    cci_34: list[float]
    cci_170: list[float]
    donchian_upper: list[float]
    donchian_lower: list[float]
    ichimoku_span_a: list[float]
    ichimoku_span_b: list[float]
    donc_position: list[float]
    kama_donc_position: list[float]
    close_kama_position: list[float]


def kline_from_candle(candle: Candle) -> Kline:
    return Kline(
        open_time=candle.open_time,
        open=candle.open,
        close=candle.close,
        high=candle.high,
        low=candle.low,
        volume=candle.volume,
        asset_volume=candle.asset_volume,
    )


def build_output(candles: Sequence[Candle], result: IndicatorResult) -> IndicatorOutput:
    """Combine candles and their indicators into the stored document."""
    return IndicatorOutput(
        klines=[kline_from_candle(c) for c in candles],
        kama_21=result.kama21,
        kama_34=result.kama34,
        kama_roc_1=result.kama21_roc1,
        cci_34=result.cci34,
        cci_170=result.cci170,
        donchian_upper=result.donchian_upper,
        donchian_lower=result.donchian_lower,
        ichimoku_span_a=result.ichimoku_span_a,
        ichimoku_span_b=result.ichimoku_span_b,
        donc_position=result.donc_position,
        kama_donc_position=result.kama_donc_position,
        close_kama_position=result.close_kama_position,
    )


def output_key(symbol: str, interval: str) -> str:
    return f"{symbol}klines{interval}"


def pack_output(output: IndicatorOutput) -> bytes:
    """Serialise the document as MessagePack maps keyed by field name."""
    return msgpack.packb(asdict(output), use_bin_type=True)


async def write_indicators_to_redis(
    client: Any, symbol: str, interval: str, output: IndicatorOutput
) -> None:
    await client.set(output_key(symbol, interval), pack_output(output))