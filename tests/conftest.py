import json

import httplib2
import pytest
from googleapiclient.errors import HttpError

from ownership_transfer.config import Settings


def make_http_error(status, message, reason=None):
    error = {'code': status, 'message': message}
    if reason:
        error['errors'] = [{'domain': 'global', 'reason': reason, 'message': message}]
    content = json.dumps({'error': error}).encode('utf-8')
    return HttpError(httplib2.Response({'status': status}), content)


class _Request:
    def __init__(self, drive, name, run):
        self._drive = drive
        self._name = name
        self._run = run

    def execute(self):
        if self._name in self._drive.failures:
            raise self._drive.failures[self._name]
        return self._run()


class _FilesResource:
    def __init__(self, drive):
        self._drive = drive

    def get(self, fileId, fields=None):
        self._drive.calls.append(('files.get', fileId, {'fields': fields}))

        def run():
            if fileId not in self._drive.file_data:
                raise make_http_error(404, f"File not found: {fileId}.", 'notFound')
            return dict(self._drive.file_data[fileId])
        return _Request(self._drive, 'files.get', run)


class _PermissionsResource:
    def __init__(self, drive):
        self._drive = drive

    def list(self, fileId, fields=None, pageToken=None):
        self._drive.calls.append(('permissions.list', fileId, {'fields': fields, 'pageToken': pageToken}))
        return _Request(self._drive, 'permissions.list',
                        lambda: {'permissions': [dict(p) for p in self._drive.permission_data[fileId]]})

    def create(self, fileId, body, **kwargs):
        self._drive.calls.append(('permissions.create', fileId, dict(kwargs, body=body)))

        def run():
            records = self._drive.permission_data[fileId]
            permission = dict(body, id=f"perm-{len(records) + 1}")
            records.append(permission)
            return {'id': permission['id']}
        return _Request(self._drive, 'permissions.create', run)

    def update(self, fileId, permissionId, body, **kwargs):
        self._drive.calls.append(('permissions.update', fileId, dict(kwargs, body=body, permissionId=permissionId)))

        def run():
            for permission in self._drive.permission_data[fileId]:
                if permission['id'] == permissionId:
                    permission.update(body)
                    return {'id': permissionId}
            raise make_http_error(404, f"Permission not found: {permissionId}.", 'notFound')
        return _Request(self._drive, 'permissions.update', run)


class FakeDriveService:
    """In-memory stand-in for the Drive v3 resources a transfer touches."""

    def __init__(self):
        self.file_data = {}
        self.permission_data = {}
        self.calls = []
        # Maps 'files.get', 'permissions.create', ... to an exception raised on execute().
        self.failures = {}

    def add_file(self, file_id, name, owner='owner@example.com'):
        self.file_data[file_id] = {'id': file_id, 'name': name, 'mimeType': 'application/vnd.google-apps.document'}
        self.permission_data[file_id] = [
            {'id': 'perm-owner', 'type': 'user', 'role': 'owner', 'emailAddress': owner},
        ]

    def files(self):
        return _FilesResource(self)

    def permissions(self):
        return _PermissionsResource(self)

    def records_for(self, file_id, email):
        return [p for p in self.permission_data[file_id] if (p.get('emailAddress') or '').lower() == email.lower()]

    def calls_named(self, name):
        return [c for c in self.calls if c[0] == name]

    @property
    def mutation_calls(self):
        return [c for c in self.calls if c[0] in ('permissions.create', 'permissions.update')]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in Settings.model_fields:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_drive():
    drive = FakeDriveService()
    drive.add_file('file123', 'Quarterly Report')
    return drive


@pytest.fixture
def settings(tmp_path):
    return Settings(
        FILE_ID='file123',
        NEW_OWNER_EMAIL='new.owner@example.com',
        GOOGLE_CREDENTIALS_JSON='{}',
        GOOGLE_CLIENT_ID='client-id',
        GOOGLE_CLIENT_SECRET='client-secret',
        TOKEN_PATH=str(tmp_path / 'cache' / 'token.json'),
        OAUTH_PORT=0,
        _env_file=None,
    )
