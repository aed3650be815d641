from fastapi import Depends, UploadFile
from sqlalchemy.orm import Session

from ...application.dto import MediaUpload
from ...application.use_cases.catalog import ContentCatalog, IdeaCatalog, IMediaStore
from ...application.use_cases.device_approval import DeviceApprovalEngine
from ...config import Settings, get_settings
from ...infrastructure.cache import ContentListCache
from ...infrastructure.db import get_db
from ...infrastructure.media import get_media_store
from ...infrastructure.repositories import ContentRepository, IdeaRepository, LoginLogRepository
from ...infrastructure.security import TokenIssuer
from .authz import get_token_issuer

content_cache = ContentListCache()


def get_content_cache() -> ContentListCache:
    return content_cache


def get_device_engine(
    db: Session = Depends(get_db),
    config: Settings = Depends(get_settings),
    tokens: TokenIssuer = Depends(get_token_issuer),
) -> DeviceApprovalEngine:
    return DeviceApprovalEngine(
        LoginLogRepository(db),
        tokens,
        mode=config.LOGIN_APPROVAL_MODE,
        quota=config.MAX_APPROVED_DEVICES,
        pending_limit=config.MAX_PENDING_DEVICES,
    )


def get_content_catalog(db: Session = Depends(get_db),
                        media: IMediaStore = Depends(get_media_store)) -> ContentCatalog:
    return ContentCatalog(ContentRepository(db), media)


def get_idea_catalog(db: Session = Depends(get_db),
                     media: IMediaStore = Depends(get_media_store)) -> IdeaCatalog:
    return IdeaCatalog(IdeaRepository(db), media)


def to_media(file: UploadFile | None) -> MediaUpload | None:
    if file is None or not file.filename:
        return None
    return MediaUpload(content=file.file.read(), filename=file.filename, content_type=file.content_type)
