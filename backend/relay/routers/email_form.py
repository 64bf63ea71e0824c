"""
Email form router.

Endpoint:
  POST /email — multipart submission with ``from``, ``subject``, ``text``
                and any number of file parts (any field name)

The fields become a text message and each supported file becomes an
image / video / audio message; all of them are pushed to the fixed group.
Responds 200 with an empty body once every message has been pushed.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from starlette.datastructures import UploadFile

from relay.clients import get_line_client, get_storage
from relay.config import Settings, get_settings
from relay.models.email import FormSubmission, SubmittedFile
from relay.services.email_to_chat import forward_submission
from relay.services.line_client import LineApiError, LineClient
from relay.services.storage import StorageService, StorageUploadError

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(status_code: int, message: str, error_code: str) -> HTTPException:
    """Build an HTTPException with a structured detail payload."""
    return HTTPException(
        status_code=status_code,
        detail={"detail": message, "error_code": error_code},
    )


def _field(value) -> str:
    return value if isinstance(value, str) else ""


async def read_submission(request: Request) -> FormSubmission:
    """
    Decode the multipart body into a FormSubmission.

    Every file part is kept, whatever its field name, in the order it was
    sent. The part's declared Content-Type is discarded.
    """
    form = await request.form()
    files: list[SubmittedFile] = []
    for _, value in form.multi_items():
        if isinstance(value, UploadFile):
            files.append(
                SubmittedFile(data=await value.read(), filename=value.filename or "upload")
            )

    return FormSubmission(
        sender=_field(form.get("from")),
        subject=_field(form.get("subject")),
        text=_field(form.get("text")),
        files=files,
    )


@router.post("/email")
async def receive_email(
    submission: FormSubmission = Depends(read_submission),
    line: LineClient = Depends(get_line_client),
    storage: StorageService = Depends(get_storage),
    settings: Settings = Depends(get_settings),
) -> Response:
    logger.info(
        f"Received form submission from {submission.sender!r} "
        f"with {len(submission.files)} file(s)"
    )

    try:
        await forward_submission(submission, line, storage, settings.group_id)
    except StorageUploadError as e:
        logger.error(f"Form submission aborted: {e}")
        raise _error(502, str(e), "storage_upload_failed")
    except LineApiError as e:
        logger.error(f"Form submission push failed: {e}")
        raise _error(502, e.message, "line_push_failed")

    return Response(status_code=200)
