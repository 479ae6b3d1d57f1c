"""Adapters layer - concrete implementations of ports.

Inbound adapters (HTTP API, CLI) drive the application; outbound
adapters (SQLite engine) implement the storage port.
"""
