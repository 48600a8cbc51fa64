"""activity/ -- Append-only audit trail of user actions.

Layer rule: imports only stdlib, third-party libraries, and core/.
"""
