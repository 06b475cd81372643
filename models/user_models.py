"""Identity and profile domain models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class IdentityUser:
	"""The signed-in account as reported by the identity provider."""

	uid: str
	email: Optional[str]
	email_verified: bool = False
	display_name: Optional[str] = None
	photo_url: Optional[str] = None
	id_token: Optional[str] = None
	refresh_token: Optional[str] = None
	provider_id: str = "password"


@dataclass
class UserProfile:
	"""Profile document kept in the USERS collection.

	Attributes:
		uid: Identity provider user id (primary key).
		email: Email captured at creation.
		display_name: Editable display name.
		photo_url: Photo URL supplied by the identity provider, if any.
		photo_name: Editable profile photo identifier.
		created_at: Creation time in epoch milliseconds.
		last_login: Last verified sign-in in epoch milliseconds.
	"""

	uid: str
	email: Optional[str]
	display_name: str
	photo_url: Optional[str] = None
	photo_name: Optional[str] = None
	created_at: int = 0
	last_login: int = 0

	def to_dict(self) -> Dict[str, Any]:
		return {
			"uid": self.uid,
			"email": self.email,
			"displayName": self.display_name,
			"photoURL": self.photo_url,
			"photoName": self.photo_name,
			"createdAt": self.created_at,
			"lastLogin": self.last_login,
		}
