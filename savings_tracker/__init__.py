"""
Savings Tracker - Allowance-to-Savings Planner.

Plans a daily savings target from a declared allowance, counts business
days around calendar exclusions and closes each day's ledger on rollover.

Version: 0.1.0
"""

__version__ = "0.1.0"
__author__ = "Savings Tracker Team"
