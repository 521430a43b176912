from pydantic import BaseModel


class RepositoryCreate(BaseModel):
    name: str
    default_branch: str | None = None  # Falls back to the configured default branch


class RepositoryRead(BaseModel):
    name: str
    org_name: str
    full_name: str
    clone_url: str
    default_branch: str


class FileRead(BaseModel):
    name: str


class FileListing(BaseModel):
    """Files on a branch. `empty` is set when the branch has no commits yet."""
    branch: str
    empty: bool = False
    files: list[FileRead] = []
