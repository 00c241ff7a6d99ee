"""Catalog endpoints. Writes take multipart forms because of the photo upload."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status

from ....application.services.catalog_service import MAX_PHOTO_BYTES, CatalogService, ProductFields
from ....core.dependencies import get_catalog_service
from ....domain.models import Product, ProductPhoto, User
from ...api.dependencies import require_admin
from ...api.schemas.catalog import CategoryResponse, ProductFilterRequest, ProductResponse

router = APIRouter(prefix="/api/v1/product", tags=["Products"])


def _serialize(products: List[Product]) -> List[ProductResponse]:
    return [ProductResponse.model_validate(product) for product in products]


async def _read_photo(upload: Optional[UploadFile]) -> Optional[ProductPhoto]:
    if upload is None:
        return None
    # one byte past the limit is enough for the size check to reject it
    data = await upload.read(MAX_PHOTO_BYTES + 1)
    # browsers submit an empty part when no file was chosen
    if not data:
        return None
    return ProductPhoto(data=data, content_type=upload.content_type or "application/octet-stream")


# ============ MANAGEMENT ============

@router.post("/create-product", status_code=status.HTTP_201_CREATED)
async def create_product(
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[float] = Form(None),
    category: Optional[str] = Form(None),
    quantity: Optional[int] = Form(None),
    shipping: Optional[bool] = Form(None),
    photo: Optional[UploadFile] = File(None),
    _: User = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
) -> Dict[str, Any]:
    fields = ProductFields(
        name=name,
        description=description,
        price=price,
        category_id=category,
        quantity=quantity,
        shipping=shipping,
    )
    product = catalog.create_product(fields, await _read_photo(photo))
    return {
        "success": True,
        "message": "Product created successfully",
        "product": ProductResponse.model_validate(product),
    }


@router.put("/update-product/{pid}", status_code=status.HTTP_201_CREATED)
async def update_product(
    pid: str,
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[float] = Form(None),
    category: Optional[str] = Form(None),
    quantity: Optional[int] = Form(None),
    shipping: Optional[bool] = Form(None),
    photo: Optional[UploadFile] = File(None),
    _: User = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
) -> Dict[str, Any]:
    fields = ProductFields(
        name=name,
        description=description,
        price=price,
        category_id=category,
        quantity=quantity,
        shipping=shipping,
    )
    product = catalog.update_product(pid, fields, await _read_photo(photo))
    return {
        "success": True,
        "message": "Product Updated Successfully",
        "product": ProductResponse.model_validate(product),
    }


@router.delete("/delete-product/{pid}")
def delete_product(
    pid: str,
    _: User = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
) -> Dict[str, Any]:
    catalog.delete_product(pid)
    return {"success": True, "message": "Product deleted successfully"}


# ============ QUERIES ============

@router.get("/get-product")
def list_products(catalog: CatalogService = Depends(get_catalog_service)) -> Dict[str, Any]:
    products = catalog.list_latest()
    return {
        "success": True,
        "count": len(products),
        "message": "All products",
        "products": _serialize(products),
    }


@router.get("/get-product/{slug}")
def get_product(slug: str, catalog: CatalogService = Depends(get_catalog_service)) -> Dict[str, Any]:
    return {
        "success": True,
        "message": "Single Product Fetched",
        "product": ProductResponse.model_validate(catalog.get_by_slug(slug)),
    }


@router.get("/product-photo/{pid}")
def get_product_photo(pid: str, catalog: CatalogService = Depends(get_catalog_service)) -> Response:
    photo = catalog.get_photo(pid)
    return Response(content=photo.data, media_type=photo.content_type)


@router.post("/product-filters")
def filter_products(
    payload: ProductFilterRequest,
    catalog: CatalogService = Depends(get_catalog_service),
) -> Dict[str, Any]:
    products = catalog.filter_products(payload.categories, payload.price_range)
    return {"success": True, "products": _serialize(products)}


@router.get("/product-count")
def product_count(catalog: CatalogService = Depends(get_catalog_service)) -> Dict[str, Any]:
    return {"success": True, "total": catalog.count()}


@router.get("/product-list/{page}")
def product_page(page: int, catalog: CatalogService = Depends(get_catalog_service)) -> Dict[str, Any]:
    return {"success": True, "products": _serialize(catalog.list_page(page))}


@router.get("/search/{keyword}")
def search_products(
    keyword: str,
    catalog: CatalogService = Depends(get_catalog_service),
) -> List[ProductResponse]:
    return _serialize(catalog.search(keyword))


@router.get("/related-product/{pid}/{cid}")
def related_products(
    pid: str,
    cid: str,
    catalog: CatalogService = Depends(get_catalog_service),
) -> Dict[str, Any]:
    return {"success": True, "products": _serialize(catalog.related_products(pid, cid))}


@router.get("/product-category/{slug}")
def products_by_category(
    slug: str,
    catalog: CatalogService = Depends(get_catalog_service),
) -> Dict[str, Any]:
    category, products = catalog.get_by_category_slug(slug)
    return {
        "success": True,
        "category": CategoryResponse.model_validate(category),
        "products": _serialize(products),
    }
