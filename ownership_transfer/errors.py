# ownership_transfer/errors.py
import enum

from google.auth.exceptions import GoogleAuthError, RefreshError, TransportError
from googleapiclient.errors import HttpError

# Reasons the Drive API attaches to a refused ownership transfer.
CONSENT_REASONS = {'consentRequiredForOwnershipTransfer', 'consentRequired'}
CONSENT_PHRASE = 'consent is required'

# Quota refusals, returned as 403 or 429.
RATE_LIMIT_REASONS = {'userRateLimitExceeded', 'rateLimitExceeded', 'dailyLimitExceeded', 'sharingRateLimitExceeded'}

# OAuth token endpoint errors raised when delegation or consent is missing.
CONSENT_OAUTH_ERRORS = {'unauthorized_client', 'access_denied'}


class ErrorKind(enum.Enum):
    CONFIGURATION = 'configuration'
    AUTHENTICATION = 'authentication'
    NOT_FOUND = 'not_found'
    PERMISSION_DENIED = 'permission_denied'
    CONSENT_REQUIRED = 'consent_required'
    RATE_LIMITED = 'rate_limited'
    UNKNOWN = 'unknown'


class TransferError(Exception):
    """A failure already tagged with the kind the reporter switches on."""

    def __init__(self, kind, message, cause=None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.cause = cause

    @classmethod
    def wrap(cls, exc, action):
        return cls(classify_error(exc), f"{action}: {exc}", cause=exc)


def _http_error_reasons(error):
    details = getattr(error, 'error_details', None)
    if not isinstance(details, list):
        return set()
    return {d.get('reason') for d in details if isinstance(d, dict) and d.get('reason')}


def _classify_http_error(error):
    reasons = _http_error_reasons(error)
    reason_text = str(getattr(error, 'reason', '') or '').lower()
    status = error.resp.status

    if reasons & CONSENT_REASONS or CONSENT_PHRASE in reason_text:
        return ErrorKind.CONSENT_REQUIRED
    if reasons & RATE_LIMIT_REASONS or status == 429:
        return ErrorKind.RATE_LIMITED
    if status == 404 or 'notFound' in reasons:
        return ErrorKind.NOT_FOUND
    if status == 401:
        return ErrorKind.AUTHENTICATION
    if status == 403:
        return ErrorKind.PERMISSION_DENIED
    return ErrorKind.UNKNOWN


def _oauth_error_code(error):
    # RefreshError carries the token endpoint's JSON body as its second argument.
    if len(error.args) > 1 and isinstance(error.args[1], dict):
        return error.args[1].get('error')
    return None


def classify_error(exc):
    """Maps a Google client exception to an ErrorKind."""
    if isinstance(exc, TransferError):
        return exc.kind
    if isinstance(exc, HttpError):
        return _classify_http_error(exc)
    if isinstance(exc, RefreshError):
        if _oauth_error_code(exc) in CONSENT_OAUTH_ERRORS:
            return ErrorKind.CONSENT_REQUIRED
        return ErrorKind.AUTHENTICATION
    if isinstance(exc, TransportError):
        # Network failure reaching the token endpoint.
        return ErrorKind.UNKNOWN
    if isinstance(exc, GoogleAuthError):
        return ErrorKind.AUTHENTICATION
    return ErrorKind.UNKNOWN
