"""
Schemas para el registro de roles.
"""

from pydantic import BaseModel, Field

from emr_ledger.models.role_assignment import Role


class RoleChange(BaseModel):
    principal: str = Field(..., min_length=1, max_length=66)
    role: Role


class RoleCheckResponse(BaseModel):
    principal: str
    role: Role
    has_role: bool


class PrincipalRolesResponse(BaseModel):
    principal: str
    roles: list[Role]
