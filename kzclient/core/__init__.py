"""Core helpers shared by the transport callers (flat JSON field extraction).

Kept free of network concerns so it can be reused by the game loop, the world
parser, and tests.
"""
