"""
Adapters: Concrete implementations of ports.

This layer contains all external integrations:
- Hyperliquid adapter (live reads and signed writes)
- Paper exchange (simulated order placement)
"""
