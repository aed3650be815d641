"""Content and idea catalogs.

Binary payloads go to the media store before any row is written, so an
upload failure never leaves a half-saved record. Removing or replacing media
is best-effort: a failed delete on the media host is logged and the database
change goes ahead.
"""
import structlog

from ...domain.entities import ContentType
from ..dto import MediaUpload
from ..errors import InvalidInput, NotFound, UpstreamFailure

logger = structlog.get_logger()


class IMediaStore:
    def upload(self, upload: MediaUpload, folder: str) -> str: ...
    def delete(self, url: str) -> None: ...


class ICatalogRepository:
    def list(self, **filters): ...
    def get(self, row_id: int): ...
    def create(self, **fields): ...
    def update(self, row_id: int, **fields): ...
    def delete(self, row_id: int) -> bool: ...


class _MediaCatalog:
    # upload field name -> (row attribute, media folder)
    media_fields: dict[str, tuple[str, str]] = {}

    def __init__(self, repo: ICatalogRepository, media: IMediaStore):
        self.repo = repo
        self.media = media

    def _upload_all(self, uploads: dict[str, MediaUpload | None]) -> dict[str, str]:
        urls: dict[str, str] = {}
        try:
            for name, upload in uploads.items():
                if upload is None:
                    continue
                if name not in self.media_fields:
                    raise InvalidInput(f"Unexpected file field: {name}")
                attr, folder = self.media_fields[name]
                urls[attr] = self.media.upload(upload, folder)
        except Exception:
            for url in urls.values():
                self._discard(url)
            raise
        return urls

    def _discard(self, url: str | None) -> None:
        if not url:
            return
        try:
            self.media.delete(url)
        except UpstreamFailure as e:
            logger.warning("media_delete_failed", url=url, error=e.detail)

    def _replace(self, row_id: int, fields: dict, uploads: dict[str, MediaUpload | None], missing: str):
        row = self.repo.get(row_id)
        if row is None:
            raise NotFound(missing)
        urls = self._upload_all(uploads)
        previous = [getattr(row, attr) for attr in urls]
        updated = self.repo.update(row_id, **fields, **urls)
        if updated is None:
            for url in urls.values():
                self._discard(url)
            raise NotFound(missing)
        for url in previous:
            self._discard(url)
        return updated

    def _remove(self, row_id: int, missing: str) -> None:
        row = self.repo.get(row_id)
        if row is None:
            raise NotFound(missing)
        for attr, _ in self.media_fields.values():
            self._discard(getattr(row, attr))
        self.repo.delete(row_id)


class ContentCatalog(_MediaCatalog):
    media_fields = {
        "image": ("image_url", "content/image"),
        "audio": ("audio_url", "content/audio"),
        "video": ("video_url", "content/video"),
    }

    def list(self, content_type: ContentType | None = None):
        return self.repo.list(content_type=content_type)

    def create(self, title: str, content_type: ContentType, text: str,
               uploads: dict[str, MediaUpload | None]):
        if not title or not content_type or not text:
            raise InvalidInput("Title, type, and text are required.")
        urls = self._upload_all(uploads)
        row = self.repo.create(title=title, type=content_type, text=text, **urls)
        logger.info("content_created", content_id=row.id, media=sorted(urls))
        return row

    def update(self, content_id: int, uploads: dict[str, MediaUpload | None],
               title: str | None = None, content_type: ContentType | None = None,
               text: str | None = None):
        fields = {k: v for k, v in (("title", title), ("type", content_type), ("text", text)) if v is not None}
        row = self._replace(content_id, fields, uploads, "Content not found")
        logger.info("content_updated", content_id=content_id, fields=sorted(fields))
        return row

    def delete(self, content_id: int) -> None:
        self._remove(content_id, "Content not found")
        logger.info("content_deleted", content_id=content_id)


class IdeaCatalog(_MediaCatalog):
    media_fields = {"file": ("file_path", "ideas")}

    def list(self):
        return self.repo.list()

    def submit(self, title: str, body: str, submitted_by: int, upload: MediaUpload | None = None):
        if not title or not body:
            raise InvalidInput("Title and body are required.")
        urls = self._upload_all({"file": upload})
        row = self.repo.create(title=title, body=body, submitted_by=submitted_by, **urls)
        logger.info("idea_submitted", idea_id=row.id, submitted_by=submitted_by, has_file=bool(urls))
        return row

    def update(self, idea_id: int, title: str | None = None, body: str | None = None,
               upload: MediaUpload | None = None):
        fields = {k: v for k, v in (("title", title), ("body", body)) if v is not None}
        row = self._replace(idea_id, fields, {"file": upload}, "Idea not found")
        logger.info("idea_updated", idea_id=idea_id, fields=sorted(fields))
        return row

    def delete(self, idea_id: int) -> None:
        self._remove(idea_id, "Idea not found")
        logger.info("idea_deleted", idea_id=idea_id)
