"""
Admin authentication.

A token is accepted only if it decodes, has a live session record and
belongs to an active admin. Logout deletes the session, so a revoked
token stops working before it expires.
"""

from datetime import timedelta
from typing import Optional, Tuple

from hostelpay.core.clock import utcnow, isoformat
from hostelpay.core.exceptions import (
    AuthenticationError,
    InvalidTokenError,
    TokenExpiredError,
    ValidationError,
)
from hostelpay.core.logging_config import logger
from hostelpay.core.security import (
    create_access_token,
    decode_token,
    get_password_hash,
    verify_password,
)
from hostelpay.schemas.admin import Admin
from hostelpay.services.hostel_data import HostelDataService


class AuthService:

    def __init__(self, data: HostelDataService, token_ttl_minutes: int = 1440):
        self.data = data
        self.token_ttl = timedelta(minutes=token_ttl_minutes)

    async def _find_admin_by_username(self, username: str) -> Optional[Admin]:
        return await self.data.admins.find_by("username", username)

    async def _find_admin_by_id(self, admin_id: str) -> Optional[Admin]:
        admin = self.data.admins.get(admin_id)
        if admin is None:
            admin = await self.data.admins.find_by("id", admin_id)
        return admin

    async def ensure_default_admin(self, username: str, password: str, email: Optional[str] = None) -> Optional[Admin]:
        """Create the bootstrap operator when no admin exists yet"""
        if await self.data.admins.list():
            return None
        admin = await self.data.admins.create({
            "username": username,
            "passwordHash": get_password_hash(password),
            "email": email,
            "role": "super_admin",
            "isActive": True,
        })
        logger.info(f"[Auth] Default admin '{username}' created")
        return admin

    async def login(self, username: str, password: str) -> Tuple[str, Admin]:
        admin = await self._find_admin_by_username(username)
        # Same message whether the user is unknown or the password is wrong
        if admin is None or not verify_password(password, admin.password_hash):
            logger.log_auth_event("login", False, username=username, reason="invalid credentials")
            raise AuthenticationError()
        if not admin.is_active:
            logger.log_auth_event("login", False, username=username, reason="inactive")
            raise AuthenticationError()

        await self.purge_expired_sessions()

        now = utcnow()
        token = create_access_token({"sub": admin.id, "username": admin.username}, self.token_ttl)
        await self.data.sessions.create({
            "adminId": admin.id,
            "token": token,
            "expiresAt": isoformat(now + self.token_ttl),
        })
        admin = await self.data.admins.update(admin.id, {"lastLogin": isoformat(now)})

        logger.log_auth_event("login", True, username=username)
        return token, admin

    async def authenticate(self, token: str) -> Admin:
        payload = decode_token(token)

        session = await self.data.sessions.find_by("token", token)
        if session is None:
            raise InvalidTokenError()
        if session.expires_at <= utcnow():
            await self.data.sessions.delete(session.id)
            raise TokenExpiredError()

        admin = await self._find_admin_by_id(payload.get("sub", ""))
        if admin is None or not admin.is_active or admin.id != session.admin_id:
            raise InvalidTokenError()
        return admin

    async def logout(self, token: str) -> bool:
        session = await self.data.sessions.find_by("token", token)
        if session is None:
            return False
        await self.data.sessions.delete(session.id)
        logger.log_auth_event("logout", True, session_admin=session.admin_id)
        return True

    async def purge_expired_sessions(self) -> int:
        now = utcnow()
        expired = [s for s in await self.data.sessions.list() if s.expires_at <= now]
        for session in expired:
            await self.data.sessions.delete(session.id)
        if expired:
            logger.debug(f"[Auth] Purged {len(expired)} expired sessions")
        return len(expired)

    async def change_password(self, admin: Admin, current_password: str, new_password: str) -> Admin:
        if not verify_password(current_password, admin.password_hash):
            logger.log_auth_event("password_change", False, username=admin.username, reason="wrong password")
            raise AuthenticationError("Current password is incorrect")
        updated = await self.data.admins.update(admin.id, {"passwordHash": get_password_hash(new_password)})
        logger.log_auth_event("password_change", True, username=admin.username)
        return updated

    async def update_profile(
        self, admin: Admin, username: Optional[str] = None, email: Optional[str] = None
    ) -> Admin:
        changes = {}
        if username and username != admin.username:
            other = await self._find_admin_by_username(username)
            if other is not None and other.id != admin.id:
                raise ValidationError("Username is already taken", field="username")
            changes["username"] = username
        if email:
            changes["email"] = email
        if not changes:
            return admin
        return await self.data.admins.update(admin.id, changes)
