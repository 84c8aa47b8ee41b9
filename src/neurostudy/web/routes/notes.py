"""Notes generation endpoints."""

import structlog
from fastapi import APIRouter, File, UploadFile
from fastapi.responses import JSONResponse

from neurostudy.core.notes_generator import (
    EmptyContentError,
    NotesGenerationError,
    UploadValidationError,
    extract_text,
    generate_notes,
    notes_error_message,
)
from neurostudy.llm.client import GatewayError, LLMClient
from neurostudy.web.schemas import NotesRequest, NotesResponse, UploadResponse

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/notes", tags=["notes"])

# Overridable in tests
_client_factory = LLMClient

# Other upstream failures are reported as 500
PASSTHROUGH_STATUS = (402, 413, 429)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/summarize", response_model=NotesResponse)
def summarize(request: NotesRequest):
    """Summarise text into structured notes."""
    if not request.content.strip():
        return _error(400, EmptyContentError().args[0])

    try:
        result = generate_notes(
            request.content,
            detail_level=request.detail_level,
            modes=request.modes,
            client=_client_factory(),
        )
    except GatewayError as e:
        logger.error("notes_gateway_error", status=e.status_code, error=str(e))
        status_code = e.status_code if e.status_code in PASSTHROUGH_STATUS else 500
        return _error(status_code, notes_error_message(e))
    except NotesGenerationError as e:
        return _error(500, str(e))

    return NotesResponse(**result.to_dict())


@router.post("/upload", response_model=UploadResponse)
async def upload(file: UploadFile = File(...)):
    """Validate an uploaded file and return its text."""
    data = await file.read()
    filename = file.filename or ""
    try:
        content = extract_text(filename, data)
    except UploadValidationError as e:
        return _error(400, str(e))

    logger.info("notes_upload_extracted", filename=filename, length=len(content))
    return UploadResponse(filename=filename, content=content, length=len(content))
