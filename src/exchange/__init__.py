from .bitcointrade import BITCOINTRADE_SCOPE, BitcointradeCollector

__all__ = [
    "BITCOINTRADE_SCOPE",
    "BitcointradeCollector",
]
