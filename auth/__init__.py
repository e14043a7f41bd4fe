"""auth/ -- Authentication core for PolicyLab.

Credential store, password hasher, token issuer, and the AuthService that
orchestrates them, plus the FastAPI request guard.

Layer rule: auth/ imports only stdlib + third-party libraries.
It does NOT import from api/ or core/. Configuration values are passed in
by the caller (api/main.py lifespan). api/ imports from auth/, not the other
way around.
"""
