import logging

import httplib2
from google.auth.exceptions import GoogleAuthError
from googleapiclient.errors import HttpError

from ownership_transfer.errors import TransferError
from ownership_transfer.models import DriveFile, FilePermissions, PermissionDetails, TransferOutcome

FILE_FIELDS = 'id,name,mimeType,webViewLink'
PERMISSION_FIELDS = 'nextPageToken,permissions(id,type,emailAddress,role,pendingOwner)'

# Transport failures are reported as unclassified errors.
API_ERRORS = (HttpError, GoogleAuthError, httplib2.HttpLib2Error, OSError)


def get_file_permissions(drive_service, file_id):
    """
    Fetches the file's metadata and every permission on it.
    Raises TransferError when either call fails; nothing has been changed at that point.
    """
    try:
        item = drive_service.files().get(fileId=file_id, fields=FILE_FIELDS).execute()
    except API_ERRORS as e:
        raise TransferError.wrap(e, f"Could not retrieve file {file_id}") from e
    logging.info(f"Found file '{item.get('name')}' ({file_id}).")

    permissions = []
    page_token = None
    while True:
        try:
            response = drive_service.permissions().list(
                fileId=file_id, fields=PERMISSION_FIELDS, pageToken=page_token).execute()
        except API_ERRORS as e:
            raise TransferError.wrap(e, f"Could not list permissions for file {file_id}") from e
        permissions.extend(PermissionDetails(**p) for p in response.get('permissions', []))
        page_token = response.get('nextPageToken')
        if not page_token:
            break

    return FilePermissions(file=DriveFile(**item), permissions=permissions)


def find_user_permission(permissions, email):
    for p in permissions:
        if p.type == 'user' and (p.emailAddress or '').lower() == email.lower():
            return p
    return None


def create_pending_owner_permission(drive_service, file_id, email, message):
    """Invites email to become the owner, with a notification email carrying message."""
    body = {'type': 'user', 'role': 'owner', 'emailAddress': email, 'pendingOwner': True}
    try:
        created = drive_service.permissions().create(
            fileId=file_id,
            body=body,
            transferOwnership=True,
            moveToNewOwnersRoot=True,
            sendNotificationEmail=True,
            emailMessage=message,
            fields='id',
        ).execute()
    except API_ERRORS as e:
        raise TransferError.wrap(e, f"Could not invite {email} to own file {file_id}") from e
    return created.get('id')


def update_to_pending_owner(drive_service, file_id, permission_id):
    body = {'role': 'owner', 'pendingOwner': True}
    try:
        updated = drive_service.permissions().update(
            fileId=file_id,
            permissionId=permission_id,
            body=body,
            transferOwnership=True,
            fields='id',
        ).execute()
    except API_ERRORS as e:
        raise TransferError.wrap(e, f"Could not update permission {permission_id} on file {file_id}") from e
    return updated.get('id', permission_id)


def transfer_ownership(drive_service, file_id, new_owner_email, message):
    """
    Starts the ownership transfer of file_id to new_owner_email.

    An existing permission for the address is updated in place, so repeated runs
    leave a single pending invitation instead of stacking new ones.
    """
    file_permissions = get_file_permissions(drive_service, file_id)
    file_name = file_permissions.file.name
    existing = find_user_permission(file_permissions.permissions, new_owner_email)

    outcome = {'file_id': file_id, 'file_name': file_name, 'new_owner_email': new_owner_email}

    if existing and existing.is_owner:
        logging.info(f"{new_owner_email} already owns '{file_name}'. Nothing to do.")
        return TransferOutcome(permission_id=existing.id, action='already_owner', **outcome)

    if existing:
        logging.info(f"Updating existing permission {existing.id} ({existing.role}) for {new_owner_email} to pending owner.")
        permission_id = update_to_pending_owner(drive_service, file_id, existing.id)
        return TransferOutcome(permission_id=permission_id, action='updated', **outcome)

    logging.info(f"No permission found for {new_owner_email}. Creating a pending-owner invitation.")
    permission_id = create_pending_owner_permission(drive_service, file_id, new_owner_email, message)
    return TransferOutcome(permission_id=permission_id, action='created', **outcome)
