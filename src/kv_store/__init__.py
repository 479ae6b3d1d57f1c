"""
KV Store - single-table durable key-value store

A small HTTP-facing key-value service with a transactional storage-access
layer over a file-backed SQLite table, guarded by a single-writer /
multiple-reader lock.
"""

__version__ = "0.1.0"
__author__ = "Systems Engineering Portfolio"
