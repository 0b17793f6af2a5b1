"""Gallery routes: photo uploads and the community gallery page."""
import logging
import time
from pathlib import Path, PurePosixPath

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from sqlmodel import Session, select

from reunion.collaborators import Collaborators, get_collaborators
from reunion.core.database import get_session
from reunion.core.errors import BadRequest
from reunion.core.ratelimit import registration_rate_limit
from reunion.models import GalleryItem

logger = logging.getLogger(__name__)

router = APIRouter(tags=["gallery"])
templates = Jinja2Templates(directory=Path(__file__).resolve().parent.parent / "templates")

UPLOAD_PREFIX = "uploads"


def upload_path(filename: str | None, millis: int) -> str:
    """Storage path for an upload, keeping only the file's base name."""
    name = PurePosixPath((filename or "").replace("\\", "/")).name or "upload"
    return f"{UPLOAD_PREFIX}/{millis}-{name}"


@router.post("/upload-file", dependencies=[Depends(registration_rate_limit)])
async def upload_file(
    myFile: UploadFile | None = File(None),
    username: str | None = Form(None),
    message: str | None = Form(None),
    session: Session = Depends(get_session),
    collaborators: Collaborators = Depends(get_collaborators),
):
    """
    Store an uploaded photo and add it to the gallery.

    The file goes to object storage under ``uploads/``; a gallery row
    records its public URL with the uploader's name and caption.
    """
    if myFile is None:
        raise BadRequest("No file.")

    data = await myFile.read()
    path = upload_path(myFile.filename, int(time.time() * 1000))
    content_type = myFile.content_type or "application/octet-stream"
    await collaborators.storage.put_object(path, data, content_type)
    image_url = collaborators.storage.public_url(path)

    item = GalleryItem(
        image_url=image_url,
        username=(username or "").strip() or "Anonymous",
        message=(message or "").strip() or "No message",
    )
    session.add(item)
    session.commit()
    logger.info(f"Gallery upload {path} by {item.username}")

    return {"message": "File uploaded and database record saved!", "imageUrl": image_url}


@router.get("/gallery", response_class=HTMLResponse)
async def gallery(request: Request, session: Session = Depends(get_session)):
    """Display every gallery photo, newest first."""
    items = session.exec(select(GalleryItem).order_by(GalleryItem.id.desc())).all()
    return templates.TemplateResponse(request, "gallery.html", {"items": items})


@router.get("/files")
async def list_files(collaborators: Collaborators = Depends(get_collaborators)):
    """List uploaded files straight from object storage, newest first."""
    return await collaborators.storage.list_objects(UPLOAD_PREFIX, sort_by="created_at", order="desc")
