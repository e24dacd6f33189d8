"""
Application Layer

Orchestrates domain objects and infrastructure to fulfill party use cases.

Structure:
- services/: Party, voting and suggestion services plus the broadcast relay
- interfaces/: Port interfaces for clocks, schedulers and client broadcast
"""
