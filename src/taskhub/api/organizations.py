"""Organization and membership routes.  All act on the caller's organization."""
from __future__ import annotations

from fastapi import APIRouter

from taskhub.api.schemas import (
    InviteResponse,
    MemberView,
    MessageResponse,
    OrganizationView,
    RoleChangeResponse,
    invite_response,
    member_view,
    organization_details_view,
    organization_view,
)
from taskhub.core.schemas import InviteRequest, OrganizationUpdate, RoleChange
from taskhub.dependencies import CurrentActor, Organizations

router = APIRouter(prefix="/organizations", tags=["organizations"])


@router.get("", response_model=OrganizationView)
async def get_organization(actor: CurrentActor, organizations: Organizations) -> OrganizationView:
    return organization_details_view(await organizations.get(actor.organization_id, actor))


@router.put("/settings", response_model=OrganizationView)
async def update_settings(
    body: OrganizationUpdate, actor: CurrentActor, organizations: Organizations
) -> OrganizationView:
    updated = await organizations.update_settings(actor.organization_id, body, actor)
    return organization_view(updated)


@router.get("/members", response_model=list[MemberView])
async def list_members(actor: CurrentActor, organizations: Organizations) -> list[MemberView]:
    return [member_view(u) for u in await organizations.list_members(actor.organization_id, actor)]


@router.post("/invite", response_model=InviteResponse)
async def invite_member(
    body: InviteRequest, actor: CurrentActor, organizations: Organizations
) -> InviteResponse:
    invitation = await organizations.invite(actor.organization_id, body.email, body.role, actor)
    return invite_response(invitation)


@router.put("/members/{user_id}/role", response_model=RoleChangeResponse)
async def change_role(
    user_id: str, body: RoleChange, actor: CurrentActor, organizations: Organizations
) -> RoleChangeResponse:
    user = await organizations.change_role(actor.organization_id, user_id, body.role, actor)
    return RoleChangeResponse(message="User role updated successfully", user=member_view(user))


@router.delete("/members/{user_id}", response_model=MessageResponse)
async def remove_member(
    user_id: str, actor: CurrentActor, organizations: Organizations
) -> MessageResponse:
    await organizations.remove_member(actor.organization_id, user_id, actor)
    return MessageResponse(message="User removed successfully")
