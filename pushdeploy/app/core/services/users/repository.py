"""Persistence for users.

Access tokens are encrypted on the way into the database and decrypted on the
way out; callers only ever hold plaintext on detached instances.
"""

from __future__ import annotations

from typing import Any

from sqlmodel import select

from pushdeploy.app.core.services.database.db_session import DbSessionService
from pushdeploy.app.core.services.users.crypto import CredentialCipher
from pushdeploy.app.entities.common import utcnow
from pushdeploy.app.entities.user.table import User

ENCRYPTED_FIELDS = ("github_access_token", "cloudflare_token")


class UserRepository:
    def __init__(self, db: DbSessionService, cipher: CredentialCipher) -> None:
        self._db = db
        self._cipher = cipher

    def get(self, user_id: str) -> User | None:
        with self._db.session() as session:
            user = session.get(User, user_id)
        return self._reveal(user) if user else None

    def email_taken(self, email: str) -> bool:
        with self._db.session() as session:
            return session.exec(select(User.id).where(User.email == email)).first() is not None

    def add(self, user: User) -> User:
        for field in ENCRYPTED_FIELDS:
            value = getattr(user, field)
            if value:
                setattr(user, field, self._cipher.encrypt(value))

        with self._db.session() as session:
            session.add(user)
            session.flush()
            session.refresh(user)
        return self._reveal(user)

    def update(self, user_id: str, **values: Any) -> User | None:
        """Set the given columns; token values are encrypted, None clears them."""
        with self._db.session() as session:
            user = session.get(User, user_id)
            if user is None:
                return None
            for key, value in values.items():
                if key in ENCRYPTED_FIELDS and value:
                    value = self._cipher.encrypt(value)
                setattr(user, key, value)
            user.updated_at = utcnow()
            session.add(user)
            session.flush()
            session.refresh(user)
        return self._reveal(user)

    def _reveal(self, user: User) -> User:
        for field in ENCRYPTED_FIELDS:
            value = getattr(user, field)
            if value:
                setattr(user, field, self._cipher.decrypt(value))
        return user
