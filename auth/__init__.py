"""auth/ -- Identity and access-control package for the todo service.

Layer rule: auth/ imports only stdlib + third-party libraries.
It does NOT import from api/ or core/; configuration values arrive as
constructor arguments. api/ imports from auth/, not the other way around.
"""
