"""Finances app package.

This app contains the payment ledger backing each booking's paid amount,
the reconciliation job that backfills missing ledger entries, and the
fee settings store consulted when a booking is completed.
"""
