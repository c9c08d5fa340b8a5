"""Session identifier generation."""

import uuid


def new_identifier() -> str:
    """Return a fresh random session identifier.

    UUID4 values come from os.urandom, so identifiers are unguessable and
    collisions are negligible. Canonical 8-4-4-4-12 hex form.
    """
    return str(uuid.uuid4())
