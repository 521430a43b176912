from githost.schemas.repository import FileListing, FileRead, RepositoryCreate, RepositoryRead

__all__ = [
    "FileListing",
    "FileRead",
    "RepositoryCreate",
    "RepositoryRead",
]
