from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from product_api.core.exceptions import NotFoundError, ValidationError
from product_api.models.product import INT64_MAX, INT64_MIN, Product
from product_api.schemas.product_schemas import ErrorResponse, ProductEnvelope, ProductRequest
from product_api.services.product_service import ProductServiceProtocol
import json
import structlog

logger = structlog.get_logger()

router = APIRouter(prefix="/products", tags=["Products"])

PRODUCT_BODY = {
    "requestBody": {
        "content": {"application/json": {"schema": ProductRequest.model_json_schema()}},
        "required": True,
        "description": "Product object to store",
    }
}


def get_product_service(request: Request) -> ProductServiceProtocol:
    return request.app.state.product_service


def _fail(status_code: int, method_name: str, operation: str, error: Exception) -> JSONResponse:
    logger.error(
        str(error),
        methodName=method_name,
        type=f"{method_name}_handler_{operation}_operation",
    )
    return JSONResponse(status_code=status_code, content={"error": str(error)})


def _parse_id(raw_id: str) -> int:
    try:
        id = int(raw_id)
    except ValueError:
        raise ValidationError(f"invalid product id: {raw_id!r}")
    if not INT64_MIN <= id <= INT64_MAX:
        raise ValidationError(f"product id out of range: {raw_id!r}")
    return id


async def _decode_body(request: Request) -> ProductRequest:
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError(f"malformed JSON body: {e}")
    try:
        return ProductRequest.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(str(e))


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=ProductEnvelope,
    responses={400: {"model": ErrorResponse, "description": "Invalid input"},
               500: {"model": ErrorResponse, "description": "Db operation failed"}},
    summary="Add a new product to the database",
    openapi_extra=PRODUCT_BODY,
)
async def add_product(request: Request, product_service: ProductServiceProtocol = Depends(get_product_service)):
    try:
        body = await _decode_body(request)
    except ValidationError as e:
        return _fail(status.HTTP_400_BAD_REQUEST, "add_product", "bind", e)

    try:
        created = await product_service.add_product(body.to_entity())
    except Exception as e:
        return _fail(status.HTTP_500_INTERNAL_SERVER_ERROR, "add_product", "insert", e)

    return ProductEnvelope.wrap(created)


@router.get(
    "/{product_id}",
    response_model=ProductEnvelope,
    responses={400: {"model": ErrorResponse, "description": "Invalid ID supplied"},
               404: {"model": ErrorResponse, "description": "Product not found"},
               500: {"model": ErrorResponse, "description": "Db operation failed"}},
    summary="Find a product by id",
)
async def get_product(product_id: str, product_service: ProductServiceProtocol = Depends(get_product_service)):
    try:
        id = _parse_id(product_id)
    except ValidationError as e:
        return _fail(status.HTTP_400_BAD_REQUEST, "get_product", "convert_id", e)

    try:
        product = await product_service.get_product_by_id(Product(id=id))
    except NotFoundError as e:
        return _fail(status.HTTP_404_NOT_FOUND, "get_product", "get", e)
    except Exception as e:
        return _fail(status.HTTP_500_INTERNAL_SERVER_ERROR, "get_product", "get", e)

    return ProductEnvelope.wrap(product)


@router.put(
    "/{product_id}",
    response_model=ProductEnvelope,
    responses={400: {"model": ErrorResponse, "description": "Invalid ID supplied"},
               404: {"model": ErrorResponse, "description": "Product not found"},
               500: {"model": ErrorResponse, "description": "Db operation failed"}},
    summary="Update a product",
    openapi_extra=PRODUCT_BODY,
)
async def update_product(
    product_id: str,
    request: Request,
    product_service: ProductServiceProtocol = Depends(get_product_service)
):
    try:
        id = _parse_id(product_id)
    except ValidationError as e:
        return _fail(status.HTTP_400_BAD_REQUEST, "update_product", "convert_id", e)

    try:
        body = await _decode_body(request)
    except ValidationError as e:
        return _fail(status.HTTP_400_BAD_REQUEST, "update_product", "bind", e)

    product = body.to_entity(product_id=id)

    try:
        await product_service.get_product_by_id(Product(id=id))
    except NotFoundError as e:
        return _fail(status.HTTP_404_NOT_FOUND, "update_product", "is_exists", e)
    except Exception as e:
        return _fail(status.HTTP_500_INTERNAL_SERVER_ERROR, "update_product", "is_exists", e)

    try:
        updated = await product_service.update_product(product)
    except Exception as e:
        return _fail(status.HTTP_500_INTERNAL_SERVER_ERROR, "update_product", "update", e)

    return ProductEnvelope.wrap(updated)


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={400: {"model": ErrorResponse, "description": "Invalid ID supplied"},
               404: {"model": ErrorResponse, "description": "Product not found"},
               500: {"model": ErrorResponse, "description": "Db operation failed"}},
    summary="Delete a product",
)
async def delete_product(product_id: str, product_service: ProductServiceProtocol = Depends(get_product_service)):
    try:
        id = _parse_id(product_id)
    except ValidationError as e:
        return _fail(status.HTTP_400_BAD_REQUEST, "delete_product", "convert_id", e)

    product = Product(id=id)

    try:
        await product_service.get_product_by_id(product)
    except NotFoundError as e:
        return _fail(status.HTTP_404_NOT_FOUND, "delete_product", "is_exists", e)
    except Exception as e:
        return _fail(status.HTTP_500_INTERNAL_SERVER_ERROR, "delete_product", "is_exists", e)

    try:
        await product_service.remove_product(product)
    except Exception as e:
        return _fail(status.HTTP_500_INTERNAL_SERVER_ERROR, "delete_product", "delete", e)

    return Response(status_code=status.HTTP_204_NO_CONTENT)
