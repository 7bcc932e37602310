"""Basic authentication with optional session issuance."""

import asyncio
from typing import Any

from src.userhub.core.models.session import SessionMode, SessionOptions
from src.userhub.core.services.session_service import SessionService
from src.userhub.core.services.user_directory import UserDirectoryService


class AuthService:
    def __init__(self, directory: UserDirectoryService, sessions: SessionService) -> None:
        self._directory = directory
        self._sessions = sessions

    async def authenticate(
        self,
        account: str,
        password: str | None,
        session_opts: SessionOptions | None = None,
    ) -> dict[str, Any]:
        """Verify the credential and, depending on the mode, issue a session.

        ``none`` returns only the user, ``exclusive`` revokes the user's
        other sessions first, and any other mode value issues an
        independent session.
        """
        session_opts = session_opts or SessionOptions()
        user = await asyncio.to_thread(self._directory.verify_credential, account, password)

        if session_opts.mode == SessionMode.NONE:
            return {"user": user}
        if session_opts.mode == SessionMode.EXCLUSIVE:
            session = await self._sessions.create_exclusive(user["id"], session_opts)
        else:
            session = await self._sessions.create(user["id"], session_opts)
        return {"user": user, "session": session.model_dump()}
