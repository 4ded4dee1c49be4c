"""HTTP transport for the zone server.

A `Device` performs the raw open/header/submit/read/close calls, `Transport`
sequences them into one exchange with a bounded read retry, and `ServerApi`
formats the per-endpoint paths and bodies.
"""
