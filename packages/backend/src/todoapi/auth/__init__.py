"""Authentication and authorization.

Learn: Users trade email/password for a signed token (the ``x-auth``
header). Tokens are also stored on the user row, so verification needs
both a valid signature and a matching stored token, which is what makes
logout (single-token revocation) possible without a denylist.
"""
