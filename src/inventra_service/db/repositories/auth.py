"""Repository for identity and cross-organization DB operations.

These queries run before an organization scope exists: signing up, logging in,
creating an organization, listing the caller's own memberships and looking up
an invite by its token.
"""

from __future__ import annotations

import re
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from inventra_service.auth.passwords import hash_password
from inventra_service.db.models import (
    InviteModel,
    MembershipModel,
    OrganizationModel,
    SubscriptionModel,
    UserModel,
)


def slugify(name: str) -> str:
    """Lower-case, strip non-alphanumerics, collapse whitespace to hyphens."""
    base = re.sub(r"[^a-zA-Z0-9\s]", "", name).lower().strip()
    base = re.sub(r"\s+", "-", base)
    return base or "org"


class AuthRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # -- users --------------------------------------------------------------

    async def create_user(self, email: str, password: str, display_name: str | None = None) -> UserModel:
        """Create a new user with a bcrypt-hashed password."""
        user = UserModel(
            email=email.strip().lower(),
            password_hash=hash_password(password),
            display_name=display_name,
        )
        self._session.add(user)
        await self._session.flush()
        await self._session.refresh(user)
        return user

    async def get_user(self, user_id: UUID) -> UserModel | None:
        return await self._session.get(UserModel, user_id)

    async def get_user_by_email(self, email: str) -> UserModel | None:
        result = await self._session.execute(
            select(UserModel).where(UserModel.email == email.strip().lower())
        )
        return result.scalars().first()

    # -- organizations ------------------------------------------------------

    async def get_org_by_slug(self, slug: str) -> OrganizationModel | None:
        result = await self._session.execute(
            select(OrganizationModel).where(OrganizationModel.slug == slug)
        )
        return result.scalars().first()

    async def unique_slug(self, name: str) -> str:
        base = slugify(name)
        slug, counter = base, 0
        while await self.get_org_by_slug(slug) is not None:
            counter += 1
            slug = f"{base}-{counter}"
        return slug

    async def create_org(self, name: str, slug: str, owner_id: UUID) -> OrganizationModel:
        """Create an organization, its owner membership and a free/active subscription."""
        org = OrganizationModel(name=name, slug=slug)
        self._session.add(org)
        await self._session.flush()
        self._session.add(MembershipModel(org_id=org.id, user_id=owner_id, role="owner"))
        self._session.add(SubscriptionModel(org_id=org.id, plan="free", status="active"))
        await self._session.flush()
        await self._session.refresh(org)
        return org

    # -- memberships --------------------------------------------------------

    async def list_memberships(self, user_id: UUID) -> list[tuple[MembershipModel, OrganizationModel]]:
        """The caller's own memberships with their organizations, oldest first."""
        result = await self._session.execute(
            select(MembershipModel, OrganizationModel)
            .join(OrganizationModel, OrganizationModel.id == MembershipModel.org_id)
            .where(MembershipModel.user_id == user_id)
            .order_by(MembershipModel.created_at)
        )
        return [(m, o) for m, o in result.all()]

    # -- invites ------------------------------------------------------------

    async def get_invite_by_token(self, token: str) -> InviteModel | None:
        result = await self._session.execute(select(InviteModel).where(InviteModel.token == token))
        return result.scalars().first()

    async def get_org(self, org_id: UUID) -> OrganizationModel | None:
        return await self._session.get(OrganizationModel, org_id)
