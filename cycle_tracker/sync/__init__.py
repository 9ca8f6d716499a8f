"""Maintenance jobs that keep cycle_data complete.

Modules:
    backfill — fill missing days between the last entry and yesterday
    cli      — ``cycle-tracker-backfill`` command-line entry point
"""
