"""KillZone terminal client.

Drives one player session against the KillZone zone server over plain HTTP.
"""
