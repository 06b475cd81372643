"""In-memory registry of signed-in drive sessions."""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from typing import Dict, Optional

from controllers.dashboard_controller import DashboardController
from dal.local_storage_dal import LocalStorageDAL
from models.user_models import IdentityUser, UserProfile
from services.catalog.file_catalog import DEFAULT_KEY_PREFIX, FileCatalog
from services.identity.auth_gate import AuthGate
from services.identity.identity_client import IdentityClient
from services.openai.content_analyzer import ContentAnalyzer
from utils.database_init import AsyncDatabaseInitializer

LOGGER = logging.getLogger(__name__)


@dataclass
class DriveSession:
	"""Everything scoped to one verified sign-in; built at login, torn down at logout."""

	token: str
	user: IdentityUser
	identity: IdentityClient
	gate: AuthGate
	catalog: FileCatalog
	dashboard: DashboardController
	profile: Optional[UserProfile] = None
	closed: bool = False

	def teardown(self) -> None:
		"""Drop late enrichment results and stop listening for auth changes."""
		self.closed = True
		self.dashboard.teardown()
		self.gate.close()


class SessionRegistry:
	"""Open, look up and close drive sessions by opaque bearer token."""

	def __init__(
		self,
		db_initializer: AsyncDatabaseInitializer,
		analyzer: ContentAnalyzer,
		key_prefix: str = DEFAULT_KEY_PREFIX,
	) -> None:
		self._storage = LocalStorageDAL(db_initializer)
		self._analyzer = analyzer
		self._key_prefix = key_prefix
		self._sessions: Dict[str, DriveSession] = {}

	def __len__(self) -> int:
		return len(self._sessions)

	async def open(self, user: IdentityUser, identity: IdentityClient, gate: AuthGate) -> DriveSession:
		"""Create a session for a verified user and hydrate their catalog.

		An earlier session of the same user is closed first.
		"""
		if not user.email_verified:
			raise ValueError("Sessions are only opened for verified accounts.")
		for token, existing in list(self._sessions.items()):
			if existing.user.uid == user.uid:
				self.close(token)

		catalog = FileCatalog(user.uid, self._storage, key_prefix=self._key_prefix)
		await catalog.load()
		session = DriveSession(
			token=secrets.token_urlsafe(32),
			user=user,
			identity=identity,
			gate=gate,
			catalog=catalog,
			dashboard=DashboardController(catalog, self._analyzer),
		)
		self._sessions[session.token] = session
		LOGGER.info("Opened session for %s with %d files", user.uid, len(catalog))
		return session

	def get(self, token: str) -> DriveSession:
		"""Return a session or raise KeyError if missing."""
		session = self._sessions.get(token)
		if session is None:
			raise KeyError("Session not found")
		return session

	def close(self, token: str) -> Optional[DriveSession]:
		"""Tear down and forget a session. Unknown tokens are ignored."""
		session = self._sessions.pop(token, None)
		if session is not None:
			session.teardown()
		return session

	def close_all(self) -> None:
		for token in list(self._sessions):
			self.close(token)
