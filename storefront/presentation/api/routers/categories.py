from typing import Any, Dict

from fastapi import APIRouter, Depends, status

from ....application.services.catalog_service import CatalogService
from ....core.dependencies import get_catalog_service
from ....domain.models import User
from ...api.dependencies import require_admin
from ...api.schemas.catalog import CategoryCreateRequest, CategoryResponse

router = APIRouter(prefix="/api/v1/category", tags=["Categories"])


@router.post("/create-category", status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreateRequest,
    _: User = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
) -> Dict[str, Any]:
    category = catalog.create_category(payload.name)
    return {
        "success": True,
        "message": "New category created",
        "category": CategoryResponse.model_validate(category),
    }


@router.get("/get-category")
def list_categories(catalog: CatalogService = Depends(get_catalog_service)) -> Dict[str, Any]:
    return {
        "success": True,
        "message": "All Categories List",
        "category": [CategoryResponse.model_validate(item) for item in catalog.list_categories()],
    }


@router.get("/single-category/{slug}")
def get_category(
    slug: str,
    catalog: CatalogService = Depends(get_catalog_service),
) -> Dict[str, Any]:
    return {
        "success": True,
        "message": "Get single category successfully",
        "category": CategoryResponse.model_validate(catalog.get_category_by_slug(slug)),
    }
