"""Game domain services: digests, scoring, rounds, connections and timers.

Nothing in this package imports Flask or Socket.IO; the transport is handed
in from outside so a full round cycle can run in a plain unit test.
"""
