"""
Task & challenge progression engine.

Turns task/challenge content into one live, timed session with pause/resume,
auto-completion, step sequencing and an append-only completion ledger.
"""
