import json
import logging
import os
import webbrowser

import httplib2
import google_auth_httplib2 # Import the authorization bridge
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from oauthlib.oauth2.rfc6749.errors import OAuth2Error

from ownership_transfer.callback_server import OAuthCallbackServer
from ownership_transfer.config import AuthMode, INLINE_KEY_SCOPES, KEY_FILE_SCOPES, OAUTH_SCOPES
from ownership_transfer.errors import ErrorKind, TransferError

GOOGLE_AUTH_URI = 'https://accounts.google.com/o/oauth2/auth'
GOOGLE_TOKEN_URI = 'https://oauth2.googleapis.com/token'


def build_drive_service(creds):
    http_obj = httplib2.Http(cache=None)
    authed_http = google_auth_httplib2.AuthorizedHttp(creds, http=http_obj)
    return build('drive', 'v3', http=authed_http, cache_discovery=False)


def get_service_account_credentials(settings):
    """
    Loads service-account credentials, preferring the inline JSON document over the key file.
    No token is requested here; the exchange happens on the first API call.
    """
    try:
        if settings.GOOGLE_CREDENTIALS_JSON:
            logging.info("Using the inline service-account credentials (full drive scope).")
            info = json.loads(settings.GOOGLE_CREDENTIALS_JSON)
            creds = service_account.Credentials.from_service_account_info(info, scopes=INLINE_KEY_SCOPES)
        else:
            logging.info(f"Using the service-account key file at '{settings.GOOGLE_APPLICATION_CREDENTIALS}'.")
            creds = service_account.Credentials.from_service_account_file(
                settings.GOOGLE_APPLICATION_CREDENTIALS, scopes=KEY_FILE_SCOPES)
    except (OSError, ValueError, GoogleAuthError) as e:
        raise TransferError(ErrorKind.AUTHENTICATION, f"Could not load the service-account key: {e}", cause=e) from e

    if settings.GOOGLE_DELEGATED_USER:
        logging.info(f"Acting on behalf of {settings.GOOGLE_DELEGATED_USER} via domain-wide delegation.")
        creds = creds.with_subject(settings.GOOGLE_DELEGATED_USER)
    return creds


def load_cached_token(token_path):
    """Returns the cached user credentials, or None when there is no usable token file."""
    if not os.path.exists(token_path):
        return None
    try:
        creds = Credentials.from_authorized_user_file(token_path, OAUTH_SCOPES)
    except (OSError, ValueError) as e:
        logging.warning(f"Unreadable token file at '{token_path}' ({e}). Starting a new authorization.")
        return None
    logging.info(f"Reusing cached token from {token_path}")
    return creds


def save_token(creds, token_path):
    token_dir = os.path.dirname(token_path)
    if token_dir:
        os.makedirs(token_dir, exist_ok=True)
    # Owner-only: the file holds the refresh token and client secret.
    fd = os.open(token_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, 'w', encoding='utf-8') as token:
        token.write(creds.to_json())
    # os.open only applies the mode when it creates the file.
    os.chmod(token_path, 0o600)
    logging.info(f"Token saved to {token_path}")


def _build_flow(settings):
    if settings.has_inline_client:
        client_config = {
            'installed': {
                'client_id': settings.GOOGLE_CLIENT_ID,
                'client_secret': settings.GOOGLE_CLIENT_SECRET,
                'auth_uri': GOOGLE_AUTH_URI,
                'token_uri': GOOGLE_TOKEN_URI,
            }
        }
        return InstalledAppFlow.from_client_config(client_config, scopes=OAUTH_SCOPES)
    return InstalledAppFlow.from_client_secrets_file(settings.GOOGLE_CLIENT_SECRETS_FILE, scopes=OAUTH_SCOPES)


def run_authorization_flow(settings, flow, open_browser=webbrowser.open):
    """
    Runs the authorization-code flow against a loopback listener on OAUTH_PORT.
    The code is exchanged and the token persisted before the browser gets its answer.
    """
    def exchange_code(code):
        flow.fetch_token(code=code)
        creds = flow.credentials
        save_token(creds, settings.TOKEN_PATH)
        return creds

    try:
        server = OAuthCallbackServer(settings.OAUTH_PORT, exchange_code)
    except OSError as e:
        raise TransferError(ErrorKind.AUTHENTICATION,
                            f"Could not listen on port {settings.OAUTH_PORT} for the OAuth callback: {e}", cause=e) from e

    # The socket is bound but not serving yet; the state is known before the first request.
    flow.redirect_uri = f"http://localhost:{server.port}/"
    auth_url, server.expected_state = flow.authorization_url(access_type='offline', prompt='consent')

    with server:
        logging.info(f"Opening the browser for authorization. If it does not open, visit: {auth_url}")
        open_browser(auth_url)
        return server.wait()


def get_user_credentials(settings, open_browser=webbrowser.open):
    creds = load_cached_token(settings.TOKEN_PATH)
    if creds:
        return creds

    logging.info("No valid token found, starting new OAuth flow...")
    try:
        flow = _build_flow(settings)
        return run_authorization_flow(settings, flow, open_browser)
    except TransferError:
        raise
    except (OAuth2Error, GoogleAuthError, OSError, ValueError) as e:
        raise TransferError(ErrorKind.AUTHENTICATION, f"Authentication flow failed: {e}", cause=e) from e


def get_drive_service(settings, auth_mode, open_browser=webbrowser.open):
    """Returns an authenticated Drive v3 service for the selected strategy."""
    if auth_mode == AuthMode.SERVICE_ACCOUNT:
        creds = get_service_account_credentials(settings)
    else:
        creds = get_user_credentials(settings, open_browser)
    return build_drive_service(creds)


def reset_authentication(token_path):
    """
    Deletes the cached token to force re-authentication on the next run.
    Returns True on success (or if file did not exist), False on failure.
    """
    try:
        if os.path.exists(token_path):
            os.remove(token_path)
            logging.info(f"Authentication token deleted: {token_path}")
        else:
            logging.info("No authentication token to delete.")
        return True
    except OSError as e:
        logging.error(f"Failed to delete token file at {token_path}: {e}")
        return False
