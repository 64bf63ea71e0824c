"""
Email-side models.

  OutboundEmail   — what the chat-to-email leg hands to the mail provider
  EmailAttachment — one base64-encoded attachment
  FormSubmission  — a decoded POST /email multipart submission
  SubmittedFile   — one uploaded file part, already read into memory
"""

from pydantic import BaseModel


class EmailAttachment(BaseModel):
    content: str            # base64-encoded file bytes
    type: str               # MIME type reported by the content endpoint
    filename: str


class OutboundEmail(BaseModel):
    """
    A single email ready to send.

    ``text`` always starts with the greeting line, so it is never empty.
    """

    to: list[str]
    from_email: str
    from_name: str
    subject: str
    text: str
    attachments: list[EmailAttachment] = []


class SubmittedFile(BaseModel):
    """A file part from the form. The client-declared MIME type is not kept."""

    data: bytes
    filename: str


class FormSubmission(BaseModel):
    sender: str = ""
    subject: str = ""
    text: str = ""
    files: list[SubmittedFile] = []
