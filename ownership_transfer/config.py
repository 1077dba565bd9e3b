# ownership_transfer/config.py
import enum
import os
from typing import Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from ownership_transfer.errors import ErrorKind, TransferError

DRIVE_SCOPE = 'https://www.googleapis.com/auth/drive'
DRIVE_FILE_SCOPE = 'https://www.googleapis.com/auth/drive.file'

# A key file only needs access to files the app touches; an inline key and the
# interactive flow act on the whole drive.
KEY_FILE_SCOPES = [DRIVE_FILE_SCOPE]
INLINE_KEY_SCOPES = [DRIVE_SCOPE]
OAUTH_SCOPES = [DRIVE_SCOPE]

DEFAULT_TRANSFER_MESSAGE = (
    "I'd like to transfer ownership of this file to you. "
    "Please open it in Google Drive and accept the ownership request."
)


class AuthMode(str, enum.Enum):
    SERVICE_ACCOUNT = 'service-account'
    OAUTH = 'oauth'


class Settings(BaseSettings):
    """
    Run configuration loaded from environment variables and an optional .env file.
    """
    FILE_ID: str = Field(min_length=1)
    NEW_OWNER_EMAIL: str = Field(min_length=1)

    # Service-account strategy
    GOOGLE_APPLICATION_CREDENTIALS: Optional[str] = None
    GOOGLE_CREDENTIALS_JSON: Optional[str] = None
    GOOGLE_DELEGATED_USER: Optional[str] = None

    # Interactive strategy
    GOOGLE_CLIENT_SECRETS_FILE: str = os.path.join('credentials', 'credentials_DeskApp.json')
    GOOGLE_CLIENT_ID: Optional[str] = None
    GOOGLE_CLIENT_SECRET: Optional[str] = None
    TOKEN_PATH: str = 'token.json'
    OAUTH_PORT: int = 8080

    TRANSFER_MESSAGE: str = DEFAULT_TRANSFER_MESSAGE

    model_config = SettingsConfigDict(env_file='.env', extra='ignore', str_strip_whitespace=True)

    @property
    def has_inline_client(self):
        return bool(self.GOOGLE_CLIENT_ID and self.GOOGLE_CLIENT_SECRET)

    def missing_credentials(self, auth_mode):
        """Returns a description of the credential material auth_mode lacks, or None."""
        if auth_mode == AuthMode.SERVICE_ACCOUNT:
            if not (self.GOOGLE_CREDENTIALS_JSON or self.GOOGLE_APPLICATION_CREDENTIALS):
                return "GOOGLE_CREDENTIALS_JSON or GOOGLE_APPLICATION_CREDENTIALS"
            return None
        if self.has_inline_client or os.path.exists(self.GOOGLE_CLIENT_SECRETS_FILE):
            return None
        return (f"an OAuth client secrets file at '{self.GOOGLE_CLIENT_SECRETS_FILE}' "
                "(GOOGLE_CLIENT_SECRETS_FILE) or GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET")


def load_settings(auth_mode, env_file='.env'):
    """
    Builds the Settings for one run and checks the credential material auth_mode needs.
    Raises TransferError(CONFIGURATION) before any network activity when something is missing.
    """
    try:
        settings = Settings(_env_file=env_file)
    except ValidationError as e:
        names = sorted({str(err['loc'][0]) for err in e.errors() if err.get('loc')})
        raise TransferError(
            ErrorKind.CONFIGURATION,
            f"Missing or invalid configuration: {', '.join(names)}. "
            "Please set it in your environment or .env file.",
            cause=e,
        ) from e

    missing = settings.missing_credentials(auth_mode)
    if missing:
        raise TransferError(
            ErrorKind.CONFIGURATION,
            f"The '{auth_mode.value}' strategy needs {missing}.",
        )
    return settings
