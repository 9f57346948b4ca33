from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field
from notekeeper.models import Notebook


class CreateNotebookRequest(BaseModel):
    name: str = Field(min_length=1)


class UpdateNotebookRequest(BaseModel):
    name: Optional[str] = None


class NotebookResponse(BaseModel):
    id: str
    name: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, notebook: Notebook) -> "NotebookResponse":
        return cls(
            id=notebook.id,
            name=notebook.name,
            created_at=notebook.created_at,
            updated_at=notebook.updated_at,
        )


class ListNotebooksResponse(BaseModel):
    notebooks: List[NotebookResponse]
