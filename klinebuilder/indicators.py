"""Candle data and the technical indicators computed over it."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from itertools import pairwise
from typing import Sequence

DONCHIAN_PERIOD = 21


@dataclass(frozen=True, slots=True)
class Candle:
    """One OHLCV bar."""

    open_time: int
    open: float
    high: float
    low: float
    close: float
    volume: float
    asset_volume: float

    @property
    def typical_price(self) -> float:
        return (self.high + self.low + self.close) / 3.0


@dataclass
class IndicatorResult:
    """Indicator series, each aligned with the input candles."""

    kama21: list[float]
    kama34: list[float]
    kama21_roc1: list[float]
    cci34: list[float]
    cci170: list[float]
    atr14: list[float]
    donchian_upper: list[float]
    donchian_lower: list[float]
    ichimoku_conv: list[float]
    ichimoku_base: list[float]
    ichimoku_span_a: list[float]
    ichimoku_span_b: list[float]
    donc_position: list[float]
    kama_donc_position: list[float]
    close_kama_position: list[float]


def _check_period(period: int) -> int:
    if period < 1:
        raise ValueError(f"period must be at least 1, got {period}")
    return period


class Kama:
    """Kaufman adaptive moving average of the close price."""

    def __init__(self, period: int, fast: int = 2, slow: int = 30) -> None:
        self.period = _check_period(period)
        if fast < 1 or slow < 1:
            raise ValueError("fast and slow periods must be at least 1")
        self._fast_k = 2.0 / (fast + 1)
        self._slow_k = 2.0 / (slow + 1)
        self._window: deque[float] | None = None
        self.value = 0.0

    def update(self, candle: Candle) -> float:
        price = candle.close
        if self._window is None:
            self._window = deque([price] * (self.period + 1), maxlen=self.period + 1)
            self.value = price
            return self.value
        self._window.append(price)
        change = abs(self._window[-1] - self._window[0])
        volatility = sum(abs(b - a) for a, b in pairwise(self._window))
        efficiency = change / volatility if volatility != 0 else 0.0
        smoothing = (efficiency * (self._fast_k - self._slow_k) + self._slow_k) ** 2
        self.value += smoothing * (price - self.value)
        return self.value


class Cci:
    """Commodity channel index over the typical price."""

    FACTOR = 0.015

    def __init__(self, period: int) -> None:
        self.period = _check_period(period)
        self._window: deque[float] | None = None

    def update(self, candle: Candle) -> float:
        tp = candle.typical_price
        if self._window is None:
            self._window = deque([tp] * self.period, maxlen=self.period)
        else:
            self._window.append(tp)
        mean = sum(self._window) / self.period
        deviation = sum(abs(x - mean) for x in self._window) / self.period
        if deviation == 0:
            return 0.0
        return (tp - mean) / (self.FACTOR * deviation)


class Atr:
    """Average true range with Wilder smoothing."""

    def __init__(self, period: int) -> None:
        self.period = _check_period(period)
        self._prev_close: float | None = None
        self.value = 0.0

    def update(self, candle: Candle) -> float:
        if self._prev_close is None:
            self.value = candle.high - candle.low
        else:
            true_range = max(
                candle.high - candle.low,
                abs(candle.high - self._prev_close),
                abs(candle.low - self._prev_close),
            )
            self.value += (true_range - self.value) / self.period
        self._prev_close = candle.close
        return self.value


class DonchianChannel:
    """Highest high and lowest low over the period; update returns (upper, lower)."""

    def __init__(self, period: int) -> None:
        self.period = _check_period(period)
        self._highs: deque[float] = deque(maxlen=self.period)
        self._lows: deque[float] = deque(maxlen=self.period)

    def update(self, candle: Candle) -> tuple[float, float]:
        self._highs.append(candle.high)
        self._lows.append(candle.low)
        return max(self._highs), min(self._lows)


class IchimokuCloud:
    """Ichimoku lines; update returns (conversion, base, span_a, span_b)."""

    def __init__(self, conversion: int = 9, base: int = 26, span_b: int = 52) -> None:
        self._windows = tuple(
            deque(maxlen=_check_period(p)) for p in (conversion, base, span_b)
        )

    @staticmethod
    def _midpoint(window: deque[tuple[float, float]]) -> float:
        return (max(h for h, _ in window) + min(lo for _, lo in window)) / 2.0

    def update(self, candle: Candle) -> tuple[float, float, float, float]:
        for window in self._windows:
            window.append((candle.high, candle.low))
        conv, base, span_b = (self._midpoint(w) for w in self._windows)
        return conv, base, (conv + base) / 2.0, span_b


def _rate_of_change(values: Sequence[float]) -> list[float]:
    roc = [0.0] if values else []
    roc.extend((cur - prev) / prev if prev != 0 else 0.0 for prev, cur in pairwise(values))
    return roc


def calculate_indicators(candles: Sequence[Candle]) -> IndicatorResult:
    """Compute every indicator series for the given candles."""
    kama21, kama34 = Kama(21), Kama(34)
    cci34, cci170 = Cci(34), Cci(170)
    atr14 = Atr(14)
    donchian = DonchianChannel(DONCHIAN_PERIOD)
    ichimoku = IchimokuCloud(9, 26, 52)

    result = IndicatorResult(*([] for _ in range(15)))
    for candle in candles:
        result.kama21.append(kama21.update(candle))
        result.kama34.append(kama34.update(candle))
        result.cci34.append(cci34.update(candle))
        result.cci170.append(cci170.update(candle))
        result.atr14.append(atr14.update(candle))
        upper, lower = donchian.update(candle)
        result.donchian_upper.append(upper)
        result.donchian_lower.append(lower)
        conv, base, span_a, span_b = ichimoku.update(candle)
        result.ichimoku_conv.append(conv)
        result.ichimoku_base.append(base)
        result.ichimoku_span_a.append(span_a)
        result.ichimoku_span_b.append(span_b)

    result.kama21_roc1 = _rate_of_change(result.kama21)

    previous_close: float | None = None
    for i, candle in enumerate(candles):
        donc = kama_donc = close_kama = 0.0
        if i >= DONCHIAN_PERIOD:
            kama = result.kama21[i]
            up, down = result.donchian_upper[i], result.donchian_lower[i]
            atr = result.atr14[i]
            green = previous_close is not None and candle.close >= previous_close
            donc_price = candle.high if green else candle.low
            span = up - down
            if span != 0:
                donc = (donc_price - down) / span - 0.5
                kama_donc = (kama - down) / span - 0.5
                if atr != 0:
                    close_kama = (candle.close - kama) / (2.0 * atr)
        result.donc_position.append(donc)
        result.kama_donc_position.append(kama_donc)
        result.close_kama_position.append(close_kama)
        previous_close = candle.close

    return result