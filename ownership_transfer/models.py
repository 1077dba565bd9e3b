from typing import List, Literal, Optional

from pydantic import BaseModel


class DriveFile(BaseModel):
    """Represents the file being transferred."""
    id: str
    name: str
    mimeType: Optional[str] = None
    webViewLink: Optional[str] = None


class PermissionDetails(BaseModel):
    """Represents a specific permission on a Drive item."""
    id: str
    type: str # 'user', 'group', 'domain', 'anyone'
    role: str # 'owner', 'organizer', 'fileOrganizer', 'writer', 'commenter', 'reader'
    emailAddress: Optional[str] = None
    pendingOwner: bool = False

    @property
    def is_owner(self):
        return self.role == 'owner' and not self.pendingOwner


class FilePermissions(BaseModel):
    """Represents a file along with its complete list of permissions."""
    file: DriveFile
    permissions: List[PermissionDetails]


class TransferOutcome(BaseModel):
    """What a transfer run did to the target user's permission."""
    file_id: str
    file_name: str
    new_owner_email: str
    permission_id: Optional[str] = None
    action: Literal['created', 'updated', 'already_owner']
