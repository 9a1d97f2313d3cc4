from __future__ import annotations

import dataclasses
import logging
from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse

from src.api.responses import error_response
from src.config import get_settings
from src.db.base import SchoolStore
from src.db.factory import get_school_store
from src.schemas.school import SchoolCreatedResponse, SchoolListResponse, SchoolResponse
from src.services.images import ImageSink
from src.services.validation import validate_submission

logger = logging.getLogger(__name__)

router = APIRouter(tags=["schools"])


@lru_cache
def get_image_sink() -> ImageSink:
    """Return the process-wide image sink."""
    return ImageSink(get_settings())


@router.get("/api/schools", response_model=SchoolListResponse)
@router.get("/schools", response_model=SchoolListResponse, include_in_schema=False)
async def list_schools(
    store: Annotated[SchoolStore, Depends(get_school_store)],
) -> SchoolListResponse | JSONResponse:
    """List every school, newest first."""
    try:
        await store.ensure_schema()
        schools = await store.list_schools()
    except Exception as exc:  # noqa: BLE001
        return error_response(exc, "Failed to fetch schools")
    return SchoolListResponse(data=[SchoolResponse.model_validate(s, from_attributes=True) for s in schools])


@router.post("/api/schools", response_model=SchoolCreatedResponse)
@router.post("/schools", response_model=SchoolCreatedResponse, include_in_schema=False)
async def create_school(
    store: Annotated[SchoolStore, Depends(get_school_store)],
    sink: Annotated[ImageSink, Depends(get_image_sink)],
    name: Annotated[str, Form()] = "",
    address: Annotated[str, Form()] = "",
    city: Annotated[str, Form()] = "",
    state: Annotated[str, Form()] = "",
    contact: Annotated[str, Form()] = "",
    email_id: Annotated[str, Form()] = "",
    image: Annotated[UploadFile | None, File()] = None,
) -> SchoolCreatedResponse | JSONResponse:
    """Add a school from the multipart add-school form.

    The image, if any, is stored before the row is inserted; a failed upload
    aborts the submission. A failed insert after a successful upload leaves
    the stored image behind.
    """
    try:
        await store.ensure_schema()
        candidate = validate_submission(
            {
                "name": name,
                "address": address,
                "city": city,
                "state": state,
                "contact": contact,
                "email_id": email_id,
            }
        )
        image_ref = await sink.save(image)
        await store.insert_school(dataclasses.replace(candidate, image=image_ref))
    except Exception as exc:  # noqa: BLE001
        return error_response(exc, "Failed to add school")

    logger.info("Added school %r", candidate.name)
    return SchoolCreatedResponse()
