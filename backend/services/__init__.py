"""
Services package - Business logic layer.

This package contains all business logic services that operate on Django models
but are decoupled from the HTTP/WebSocket layer.

Modules:
    - ride_management: Ride/request lifecycle, seat ledger and ratings
    - feed: Read-side projection of rides and standing requests for discovery
"""
