"""
Shared Kernel

Base classes shared across the booking and finance contexts: entities,
value objects, domain errors, the unit of work and the event bus.
"""
