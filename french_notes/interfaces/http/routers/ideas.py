from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from ....application.use_cases.catalog import IdeaCatalog
from ....infrastructure.models import IdeaORM
from ..authz import get_claims, get_user_id, require_admin
from ..deps import get_idea_catalog, to_media
from ..schemas import IdeaOut, IdeaSubmitResp, MessageResp, Submitter

router = APIRouter(prefix="/api/ideas", tags=["ideas"])


def to_out(row: IdeaORM) -> IdeaOut:
    submitter = Submitter(id=row.submitter.id, username=row.submitter.username) if row.submitter else None
    return IdeaOut(id=row.id, title=row.title, body=row.body, file_path=row.file_path,
                   created_at=row.created_at, submitted_by=submitter)


@router.get("", response_model=list[IdeaOut], dependencies=[Depends(get_claims)])
def list_ideas(catalog: IdeaCatalog = Depends(get_idea_catalog)):
    return [to_out(row) for row in catalog.list()]


@router.post("/submit", response_model=IdeaSubmitResp, status_code=status.HTTP_201_CREATED)
def submit_idea(
    title: str = Form(...),
    body: str = Form(...),
    file: UploadFile | None = File(None),
    user_id: int = Depends(get_user_id),
    catalog: IdeaCatalog = Depends(get_idea_catalog),
):
    row = catalog.submit(title, body, submitted_by=user_id, upload=to_media(file))
    return IdeaSubmitResp(message="Idea submitted successfully!", idea=to_out(row))


@router.put("/{idea_id}", response_model=IdeaOut, dependencies=[Depends(require_admin)])
def update_idea(
    idea_id: int,
    title: str | None = Form(None),
    body: str | None = Form(None),
    file: UploadFile | None = File(None),
    catalog: IdeaCatalog = Depends(get_idea_catalog),
):
    return to_out(catalog.update(idea_id, title=title, body=body, upload=to_media(file)))


@router.delete("/{idea_id}", response_model=MessageResp, dependencies=[Depends(require_admin)])
def delete_idea(idea_id: int, catalog: IdeaCatalog = Depends(get_idea_catalog)):
    catalog.delete(idea_id)
    return MessageResp(message="Idea deleted successfully.")
