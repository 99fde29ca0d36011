"""usergate — user management backend with a bearer-token authentication gate.

Registration, login and listing of users over HTTP, backed by a relational
``users`` table. Protected routes run every request through the
authentication gate, which verifies a signed JWT and re-resolves the
identity it names before any handler sees the request.
"""

__version__ = "0.1.0"
