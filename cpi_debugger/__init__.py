"""
CPI Debugger — diagnostic engine for confirmed Solana transactions.

Takes one already-fetched transaction record and produces a structured
report: the cross-program invocation call tree, a classified error and
warning list, and compute-efficiency scoring with optimization hints.
Pure and synchronous; fetching, HTTP and dashboards live elsewhere.
"""

__version__ = "0.1.0"
