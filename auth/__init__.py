"""auth/ -- Authentication core for ReelHub.

Password hashing, token issuance and verification, identity persistence,
and the bearer-token gateway used by protected routes.

Layer rule: auth/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/. api/ imports from auth/, not the other way around.
"""
