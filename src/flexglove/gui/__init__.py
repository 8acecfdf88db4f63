"""Qt adapters for displaying a live glove session.

Rendering lives in the host application; :mod:`bridge` only re-emits session
events as Qt signals so widgets can connect to them.
"""
