"""
Live streaming domain logic.

Includes:
- session: Registry of connections currently live on the relay.
- rooms: Room membership, broadcast and chat relay.
- recording: Recording state machine, sinks and finalizers.
- catalog: Listing and lookup of finalized recordings.
"""
