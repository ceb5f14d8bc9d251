"""
CLI entry points.

Provides command-line interfaces for:
- Configuration search (ranked by net profit)
- Single-configuration PnL statistics
- Kline download into the local cache
"""
