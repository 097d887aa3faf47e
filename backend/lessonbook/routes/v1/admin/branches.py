# backend/lessonbook/routes/v1/admin/branches.py
"""
Admin branch routes - API v1

Endpoints:
    GET /                → List branches
    POST /               → Create a branch
    GET /{branch_id}     → Branch details
    PATCH /{branch_id}   → Update a branch
    DELETE /{branch_id}  → Delete a branch without lessons or reservations
"""

from typing import List

from fastapi import APIRouter, Body, Depends, Response, status
from fastapi.params import Path

from ....api.dependencies import get_catalog_service
from ....core.exceptions import DomainException
from ....errors import handle_domain_exception
from ....schemas.catalog import BranchCreate, BranchResponse, BranchUpdate
from ....services.catalog_service import CatalogService

router = APIRouter(tags=["admin-branches"])


@router.get("", response_model=List[BranchResponse])
def list_branches(
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> List[BranchResponse]:
    return [BranchResponse.model_validate(b) for b in catalog_service.list_branches()]


@router.post("", response_model=BranchResponse, status_code=status.HTTP_201_CREATED)
def create_branch(
    payload: BranchCreate = Body(...),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> BranchResponse:
    try:
        return BranchResponse.model_validate(catalog_service.create_branch(payload.model_dump()))
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{branch_id}", response_model=BranchResponse)
def get_branch(
    branch_id: str = Path(...),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> BranchResponse:
    try:
        return BranchResponse.model_validate(catalog_service.get_branch(branch_id))
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{branch_id}", response_model=BranchResponse)
def update_branch(
    branch_id: str = Path(...),
    payload: BranchUpdate = Body(...),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> BranchResponse:
    try:
        branch = catalog_service.update_branch(branch_id, payload.model_dump(exclude_unset=True))
        return BranchResponse.model_validate(branch)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete("/{branch_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_branch(
    branch_id: str = Path(...),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> Response:
    try:
        catalog_service.delete_branch(branch_id)
    except DomainException as e:
        handle_domain_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
