"""Notifications app package.

Subscribes to booking domain events and delivers customer messages via
the WhatsApp Cloud API from Celery workers. Delivery runs after the
booking transaction commits and its failures never affect bookings.
"""
