from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from ....application.use_cases.catalog import ContentCatalog
from ....domain.entities import ContentType
from ....infrastructure.cache import ContentListCache
from ..authz import get_claims, require_admin
from ..deps import get_content_cache, get_content_catalog, to_media
from ..schemas import ContentOut, MessageResp

router = APIRouter(prefix="/api/content", tags=["content"])

@router.get("", response_model=list[ContentOut], dependencies=[Depends(get_claims)])
def list_content(
    type: ContentType | None = Query(None),
    catalog: ContentCatalog = Depends(get_content_catalog),
    cache: ContentListCache = Depends(get_content_cache),
):
    key = type.value if type else None
    cached = cache.get(key)
    if cached is not None:
        return cached
    result = [ContentOut.model_validate(row) for row in catalog.list(type)]
    cache.put(key, [r.model_dump(mode="json", by_alias=True) for r in result])
    return result

# --- Admin-only CRUD:

@router.post("", response_model=ContentOut, status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_admin)])
def create_content(
    title: str = Form(...),
    type: ContentType = Form(...),
    text: str = Form(...),
    image: UploadFile | None = File(None),
    audio: UploadFile | None = File(None),
    video: UploadFile | None = File(None),
    catalog: ContentCatalog = Depends(get_content_catalog),
    cache: ContentListCache = Depends(get_content_cache),
):
    uploads = {"image": to_media(image), "audio": to_media(audio), "video": to_media(video)}
    row = catalog.create(title, type, text, uploads)
    cache.invalidate()
    return row

@router.put("/{content_id}", response_model=ContentOut, dependencies=[Depends(require_admin)])
def update_content(
    content_id: int,
    title: str | None = Form(None),
    type: ContentType | None = Form(None),
    text: str | None = Form(None),
    image: UploadFile | None = File(None),
    audio: UploadFile | None = File(None),
    video: UploadFile | None = File(None),
    catalog: ContentCatalog = Depends(get_content_catalog),
    cache: ContentListCache = Depends(get_content_cache),
):
    uploads = {"image": to_media(image), "audio": to_media(audio), "video": to_media(video)}
    row = catalog.update(content_id, uploads, title=title, content_type=type, text=text)
    cache.invalidate()
    return row

@router.delete("/{content_id}", response_model=MessageResp, dependencies=[Depends(require_admin)])
def delete_content(
    content_id: int,
    catalog: ContentCatalog = Depends(get_content_catalog),
    cache: ContentListCache = Depends(get_content_cache),
):
    catalog.delete(content_id)
    cache.invalidate()
    return MessageResp(message="Content and associated files deleted successfully")
