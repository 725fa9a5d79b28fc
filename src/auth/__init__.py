"""Authentication: JWT access tokens and role checks."""
