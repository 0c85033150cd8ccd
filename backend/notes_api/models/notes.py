from pydantic import BaseModel, ConfigDict, Field


class NoteCreate(BaseModel):
    content: str = Field(min_length=1, max_length=50_000)


class NoteUpdate(BaseModel):
    content: str = Field(min_length=1, max_length=50_000)


class NoteOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    owner: str
    content: str
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")


class NoteCreatedOut(BaseModel):
    message: str = "Note saved successfully"
    note: NoteOut


class NoteSummaryOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str
    created_at: str = Field(alias="createdAt")


class MessageOut(BaseModel):
    message: str
