"""
Handles authentication with the streaming service, either with a username and
password or with the reusable credentials librespot stores after a login.
"""

import asyncio
import logging
from pathlib import Path

from librespot.core import Session

from spotqueue.exceptions import AuthenticationError

from .client import LibrespotSession

log = logging.getLogger(__name__)


class SpotifyAuthenticator:
    """
    Creates authenticated sessions. Any failure here is fatal for the run.
    """

    def __init__(self, quality: str = "very_high"):
        """
        Args:
            quality: Audio quality passed on to the created session.
        """
        self.quality = quality

    async def authenticate_with_credentials(
        self,
        username: str,
        password: str,
        store_credentials_at: Path | None = None,
    ) -> LibrespotSession:
        """
        Logs in with a username and password.

        Args:
            username: The account's username or email.
            password: The account's password.
            store_credentials_at: If given, librespot writes reusable credentials
                to this file after a successful login.

        Returns:
            An authenticated session.
        """
        log.info(f"Authenticating as: {username}")

        def _connect() -> Session:
            conf_builder = Session.Configuration.Builder()
            if store_credentials_at is not None:
                store_credentials_at.parent.mkdir(parents=True, exist_ok=True)
                conf_builder.set_stored_credential_file(str(store_credentials_at))
            else:
                conf_builder.set_store_credentials(False)
            return Session.Builder(conf_builder.build()).user_pass(username, password).create()

        try:
            session = await asyncio.to_thread(_connect)
        except Exception as e:
            raise AuthenticationError(f"Login failed for '{username}': {e}") from e

        log.info("Connected!")
        return LibrespotSession(session, quality=self.quality)

    async def authenticate_with_stored(self, credentials_path: Path) -> LibrespotSession:
        """
        Logs in with credentials stored by a previous login.

        Args:
            credentials_path: The credentials file written by librespot.

        Returns:
            An authenticated session.
        """
        if not credentials_path.is_file():
            raise AuthenticationError(
                f"No stored credentials at '{credentials_path}'."
                " Please run 'spotqueue init' first."
            )
        log.info("Authenticating with stored credentials...")

        def _connect() -> Session:
            conf = Session.Configuration.Builder().set_store_credentials(False).build()
            return Session.Builder(conf).stored_file(str(credentials_path)).create()

        try:
            session = await asyncio.to_thread(_connect)
        except Exception as e:
            raise AuthenticationError(
                f"The stored credentials were rejected or have expired: {e}"
            ) from e

        log.info("Connected!")
        return LibrespotSession(session, quality=self.quality)
