"""SplitLedger: group expense sharing with pairwise net balances"""

__version__ = "1.0.0"
