"""
Category and role endpoints - v1 API.

Just enough administration to attach roles to categories; ballots inherit
their visibility from the category.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from ballotcore.db.base import get_db
from ballotcore.core.deps import get_current_principal
from ballotcore.core.errors import NotFoundError, InvalidPayloadError
from ballotcore.core.permissions import (
    Principal,
    require_admin,
    resolve_eligible_categories,
    category_visible,
)
from ballotcore.models.category import Category
from ballotcore.models.role import Role
from ballotcore.schemas.category import (
    CategoryCreate, CategoryResponse, RoleCreate, RoleResponse
)

router = APIRouter()
roles_router = APIRouter()


def category_to_response(category: Category) -> CategoryResponse:
    """Convert Category model to CategoryResponse schema."""
    return CategoryResponse(
        id=category.id,
        name=category.name,
        description=category.description,
        role_ids=[role.id for role in category.roles] if category.roles else [],
        created=category.created,
        updated=category.updated,
    )


@router.get("", response_model=list[CategoryResponse])
async def list_categories(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """List the categories the caller can see, by name."""
    query = select(Category).order_by(Category.name.asc())

    eligible = await resolve_eligible_categories(db, principal)
    if eligible is not None:
        if not eligible:
            return []
        query = query.where(Category.id.in_(eligible))

    result = await db.execute(query)
    return [category_to_response(c) for c in result.scalars().all()]


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    category_data: CategoryCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Create a category and attach roles to it.
    Requires the admin capability.
    """
    require_admin(principal)

    existing = await db.execute(
        select(Category).where(Category.name == category_data.name)
    )
    if existing.scalar_one_or_none():
        raise InvalidPayloadError("Category name already exists")

    roles = []
    if category_data.role_ids:
        role_result = await db.execute(
            select(Role).where(Role.id.in_(category_data.role_ids))
        )
        roles = list(role_result.scalars().all())
        if len(roles) != len(set(category_data.role_ids)):
            raise NotFoundError("Role not found")

    category = Category(
        name=category_data.name,
        description=category_data.description,
    )
    category.roles = roles

    db.add(category)
    await db.flush()

    return category_to_response(category)


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(
    category_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """Get a category visible to the caller."""
    result = await db.execute(
        select(Category).where(Category.id == category_id)
    )
    category = result.scalar_one_or_none()

    eligible = await resolve_eligible_categories(db, principal)
    if category is None or not category_visible(eligible, category.id):
        raise NotFoundError("Category not found")

    return category_to_response(category)


@roles_router.get("", response_model=list[RoleResponse])
async def list_roles(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """List roles. Requires the admin capability."""
    require_admin(principal)
    result = await db.execute(select(Role).order_by(Role.name.asc()))
    return [RoleResponse.model_validate(r) for r in result.scalars().all()]


@roles_router.post("", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
async def create_role(
    role_data: RoleCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """Create a role. Requires the admin capability."""
    require_admin(principal)

    existing = await db.execute(select(Role).where(Role.name == role_data.name))
    if existing.scalar_one_or_none():
        raise InvalidPayloadError("Role name already exists")

    role = Role(name=role_data.name, is_admin=role_data.is_admin)
    db.add(role)
    await db.flush()

    return RoleResponse.model_validate(role)
