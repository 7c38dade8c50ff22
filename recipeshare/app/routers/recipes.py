from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Request, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from recipeshare.app.config import settings
from recipeshare.app.deps import (
    CurrentUser,
    get_mutation_service,
    get_optional_user,
    get_recipe_store,
    get_scaling_gateway,
)
from recipeshare.app.domain.errors import (
    RepositoryError,
    ScalingInputError,
    ScalingUnavailableError,
)
from recipeshare.app.domain.models import ImageUpload, MutationResult, MutationStatus
from recipeshare.app.schemas.recipes import (
    ErrorResponse,
    IngredientPayload,
    RecipeEnvelope,
    RecipeResponse,
    ScaleResponse,
)
from recipeshare.services.recipe_mutations import RecipeMutationService
from recipeshare.services.recipe_store import RecipeStore
from recipeshare.services.scaling import ScalingGateway

log = logging.getLogger(__name__)
router = APIRouter(prefix="/recipes", tags=["recipes"])

IMAGE_FIELD = "main_image"
EXISTING_IMAGE_FIELD = "existing_main_image_url"
NOT_FOUND_MESSAGE = "Recipe not found."
LOAD_FAILED_MESSAGE = "Failed to load recipes. Please try again later."

_STATUS_CODES = {
    MutationStatus.INVALID: status.HTTP_422_UNPROCESSABLE_ENTITY,
    MutationStatus.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    MutationStatus.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    MutationStatus.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    MutationStatus.FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _error(status_code: int, message: str, validation_errors: Optional[dict[str, list[str]]] = None) -> JSONResponse:
    body = ErrorResponse(error=message, validationErrors=validation_errors)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _mutation_response(result: MutationResult, success_code: int) -> JSONResponse:
    if result.ok and result.recipe is not None:
        envelope = RecipeEnvelope(data=RecipeResponse.from_recipe(result.recipe))
        return JSONResponse(status_code=success_code, content=envelope.model_dump(mode="json"))
    return _error(
        _STATUS_CODES.get(result.status, status.HTTP_500_INTERNAL_SERVER_ERROR),
        result.error or "Request failed",
        result.validation_errors,
    )


async def _read_form(request: Request) -> tuple[dict[str, Any], Optional[ImageUpload]]:
    form = await request.form()
    fields = {key: value for key, value in form.items() if isinstance(value, str)}
    upload = form.get(IMAGE_FIELD)
    image = None
    if isinstance(upload, UploadFile):
        data = await upload.read()
        if data:
            image = ImageUpload(
                filename=upload.filename or "image",
                content_type=upload.content_type or "application/octet-stream",
                data=data,
            )
    return fields, image


def _foreign_user(fields: dict[str, Any], user: Optional[CurrentUser]) -> bool:
    submitted = fields.pop("user_id", None)
    return user is not None and bool(submitted) and submitted != user.id


@router.get("", response_model=list[RecipeResponse])
async def list_recipes(store: RecipeStore = Depends(get_recipe_store)):
    try:
        recipes = await run_in_threadpool(store.list_recipes, settings.RECIPE_LIST_LIMIT)
    except RepositoryError as exc:
        log.error("Error fetching recipes: %s", exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, LOAD_FAILED_MESSAGE)
    return [RecipeResponse.from_recipe(recipe) for recipe in recipes]


@router.post("/scale", response_model=ScaleResponse, responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}})
async def scale_ingredients(
    payload: dict[str, Any] = Body(...),
    gateway: ScalingGateway = Depends(get_scaling_gateway),
):
    try:
        scaled = await run_in_threadpool(gateway.scale_request, payload)
    except ScalingInputError as exc:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))
    except ScalingUnavailableError as exc:
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, str(exc))
    return ScaleResponse(data=[IngredientPayload(**item.to_dict()) for item in scaled])


@router.get("/{recipe_id}", response_model=RecipeResponse, responses={404: {"model": ErrorResponse}})
async def get_recipe(recipe_id: str, store: RecipeStore = Depends(get_recipe_store)):
    try:
        recipe = await run_in_threadpool(store.get_recipe, recipe_id)
    except RepositoryError as exc:
        log.error("Error fetching recipe by id %s: %s", recipe_id, exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, LOAD_FAILED_MESSAGE)
    if recipe is None:
        return _error(status.HTTP_404_NOT_FOUND, NOT_FOUND_MESSAGE)
    return RecipeResponse.from_recipe(recipe)


@router.post("", response_model=RecipeEnvelope, status_code=status.HTTP_201_CREATED)
async def create_recipe(
    request: Request,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    service: RecipeMutationService = Depends(get_mutation_service),
):
    fields, image = await _read_form(request)
    if _foreign_user(fields, user):
        return _error(status.HTTP_403_FORBIDDEN, "You can only create recipes as yourself.")
    # Field errors are reported before the login check
    result = await run_in_threadpool(service.create_recipe, fields, user.id if user else None, image)
    return _mutation_response(result, status.HTTP_201_CREATED)


@router.put("/{recipe_id}", response_model=RecipeEnvelope)
async def update_recipe(
    recipe_id: str,
    request: Request,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    service: RecipeMutationService = Depends(get_mutation_service),
):
    fields, image = await _read_form(request)
    if _foreign_user(fields, user):
        return _error(status.HTTP_403_FORBIDDEN, "You can only edit your own recipes.")
    existing_image_url = fields.pop(EXISTING_IMAGE_FIELD, None) or None
    result = await run_in_threadpool(
        service.update_recipe,
        recipe_id,
        fields,
        user.id if user else None,
        image,
        existing_image_url,
    )
    return _mutation_response(result, status.HTTP_200_OK)
