"""auth/ -- Authentication configuration engine for schemaauth.

Binds an AuthConfig to a live registry.FieldRegistry, repairs field-name
references on rename/removal, validates before commit and derives the auth
endpoint list. It produces configuration only; hashing, token issuance and
routing belong to the external auth runtime that consumes it.

Layer rule: auth/ imports only stdlib and registry/.
It does NOT import from api/, cache/, core/, or schemas/.
"""
