"""Authentication and authorization.

Learn: users log in with email/password and receive a signed JWT. Every
protected request goes through the AuthenticationGate:

1. extract the bearer token from the Authorization header
2. verify signature, structure and expiry
3. re-resolve the subject in the identity store
4. hand a read-only AuthenticatedUser to the route

Tokens are not stored server-side and cannot be revoked individually;
step 3 is what stops a token from outliving its user.
"""
