"""
Core modules for the gas optimizer.

This package contains the ledger, baseline registry, budget monitoring,
reporting, recommendation and savings tally logic.
"""
