"""Technical indicators for candlestick data kept in Redis."""

__version__ = "0.1.0"
__all__ = ["cli", "indicators", "redis_utils", "redis_writer"]