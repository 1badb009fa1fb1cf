"""
Demo arbitrage bot for Sui: quote/swap executors with fallback pricing,
an in-memory pool registry and a periodic opportunity scanner.
"""
