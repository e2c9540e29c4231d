"""Channel relay engine.

This package provides:
- RelayStore: JSON persistence for relay definitions
- Transport: direct and webhook delivery strategies
- build_payload: converts inbound messages into relay payloads
- RelayRegistry: the table of active relays
- RelayManager: startup restoration and live event dispatch
"""
