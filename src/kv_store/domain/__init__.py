"""Domain layer for the key-value store.

Contains the value objects (keys, values, outcome statuses) and the
domain services (the read/write lock) that carry no I/O dependencies.
"""
