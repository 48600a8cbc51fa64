"""auth/ -- Account registration, password hashing, and bearer tokens.

Layer rule: auth/ imports only stdlib, third-party libraries, core/, and
activity/ (to append register/login entries). It does NOT import from api/
or client/. api/ imports from auth/, not the other way around.
"""
