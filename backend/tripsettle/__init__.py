"""
Tripsettle backend: shared travel expense balances and settlements.
"""
__version__ = "1.0.0"
