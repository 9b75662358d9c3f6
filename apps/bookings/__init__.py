"""Bookings app package.

This app owns the rental booking lifecycle: the booking aggregate and its
status machine (reserved, confirmed, in use, completed, cancelled), the
return fee calculation and the schedule extension history. Status
transitions are committed with an optimistic precondition on the current
status so that concurrent requests cannot overwrite each other.
"""
