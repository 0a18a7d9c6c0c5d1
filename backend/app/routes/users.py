"""
ProfileHub Backend — Users Route Handlers
===========================================

What:  HTTP endpoints under /api/users.
Why:   Entry point for every user operation the frontend performs.
How:   Each handler unpacks the request into a typed schema (form, JSON body,
       query string, uploaded file), calls UserService, and returns its result.
       Errors are raised by the service and formatted by the global handlers
       in main.py, so no handler builds an error response itself.

Route Inventory:
    POST   /api/users/upload          standalone image upload
    POST   /api/users/                register (multipart, optional image)
    POST   /api/users/login/          login (JSON or form-encoded)
    GET    /api/users/?limit=N        list users
    GET    /api/users/{user_id}       get one user
    PUT    /api/users/{user_id}/upload replace profile image
    DELETE /api/users/{user_id}       delete user
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile

from app.database import get_user_store
from app.exceptions import ValidationError
from app.schemas.user import (
    ErrorResponse,
    ImageUpdateResponse,
    ListUsersQuery,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterForm,
    UploadResponse,
    UserResponse,
)
from app.services.image_service import ImageService
from app.services.user_service import ImageUpload, UserService
from app.services.user_store import UserStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


# ── Dependencies ──────────────────────────────────────────────────────────

def get_user_service(
    request: Request,
    store: UserStore = Depends(get_user_store),
) -> UserService:
    """Build a UserService from the handles created in the lifespan."""
    return UserService(store=store, images=request.app.state.image_service)


FORM_MEDIA_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def read_credentials(request: Request) -> LoginRequest:
    """Login credentials from a JSON body or a submitted form."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_MEDIA_TYPES):
        payload = await request.form()
    else:
        try:
            payload = await request.json()
        except ValueError:
            raise ValidationError(message="Invalid request body", field="body")
    return LoginRequest.from_payload(payload)


async def read_upload(file: Optional[UploadFile], images: ImageService) -> Optional[ImageUpload]:
    """
    Read an optional uploaded file into memory.

    A part with no filename is what browsers send for an empty file input,
    so it counts as "no file". Type and spooled size are checked before any
    bytes are read, and at most max_file_size + 1 bytes are ever read.

    Raises:
        InvalidFileTypeError / PayloadTooLargeError
    """
    if file is None or not file.filename:
        return None
    try:
        images.validate_content_type(file.content_type)
        images.validate_size(file.size, 0)
        content = await file.read(images.max_file_size + 1)
    finally:
        await file.close()

    logger.debug(
        "Received upload: filename=%s, content_type=%s, size=%d bytes",
        file.filename,
        file.content_type,
        len(content),
    )
    return ImageUpload(
        filename=file.filename,
        content=content,
        content_type=file.content_type,
        size=file.size,
    )


# ── Routes ────────────────────────────────────────────────────────────────

@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={
        400: {"description": "No file, or not an image", "model": ErrorResponse},
        413: {"description": "Image too large", "model": ErrorResponse},
    },
    summary="Upload an image without attaching it to a user",
)
async def upload_image(
    image: Optional[UploadFile] = File(None, description="Image file (image/*, max 5MB)"),
    service: UserService = Depends(get_user_service),
) -> UploadResponse:
    return await service.upload_image(await read_upload(image, service.images))


@router.post(
    "/",
    response_model=UserResponse,
    response_model_exclude_none=True,
    responses={400: {"description": "Missing fields or user could not be created", "model": ErrorResponse}},
    summary="Register a user",
    description=(
        "Creates a user from multipart form fields. The password is stored as a "
        "bcrypt hash. An optional `image` file becomes the profile image."
    ),
)
async def register_user(
    username: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    age: Optional[str] = Form(None),
    jobrole: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    education: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    form = RegisterForm(
        username=username,
        password=password,
        age=age,
        jobrole=jobrole,
        location=location,
        education=education,
    )
    return await service.register(form, await read_upload(image, service.images))


@router.post(
    "/login/",
    response_model=LoginResponse,
    response_model_exclude_none=True,
    responses={
        400: {"description": "Missing username or password", "model": ErrorResponse},
        404: {"description": "Unknown user or wrong password", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Check a username and password",
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                media_type: {"schema": LoginRequest.model_json_schema()}
                for media_type in ("application/json", *FORM_MEDIA_TYPES)
            },
        }
    },
)
async def login_user(
    credentials: LoginRequest = Depends(read_credentials),
    service: UserService = Depends(get_user_service),
) -> LoginResponse:
    return await service.login(credentials)


@router.get(
    "/",
    response_model=List[UserResponse],
    response_model_exclude_none=True,
    responses={
        400: {"description": "Unknown query parameter", "model": ErrorResponse},
        404: {"description": "Invalid limit, or limit exceeds user count", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="List users",
    description="Returns all users, or the first `limit` users in storage order.",
)
async def list_users(
    request: Request,
    service: UserService = Depends(get_user_service),
) -> List[UserResponse]:
    # Parsed by hand: unknown parameters must be rejected, not ignored
    query = ListUsersQuery.from_query_params(request.query_params)
    return await service.list_users(query)


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    response_model_exclude_none=True,
    responses={
        404: {"description": "User not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Get a user by id",
)
async def get_user(
    user_id: str,
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    return await service.get_user(user_id)


@router.put(
    "/{user_id}/upload",
    response_model=ImageUpdateResponse,
    response_model_exclude_none=True,
    responses={
        400: {"description": "No file, or not an image", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
        413: {"description": "Image too large", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Replace a user's profile image",
)
async def update_user_image(
    user_id: str,
    image: Optional[UploadFile] = File(None),
    service: UserService = Depends(get_user_service),
) -> ImageUpdateResponse:
    return await service.update_image(user_id, await read_upload(image, service.images))


@router.delete(
    "/{user_id}",
    response_model=MessageResponse,
    responses={
        404: {"description": "User not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Delete a user",
)
async def delete_user(
    user_id: str,
    service: UserService = Depends(get_user_service),
) -> MessageResponse:
    return await service.delete_user(user_id)
