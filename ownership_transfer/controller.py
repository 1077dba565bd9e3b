import logging
import webbrowser

from ownership_transfer.auth import get_drive_service
from ownership_transfer.errors import TransferError
from ownership_transfer.reporter import report_failure, report_success
from ownership_transfer.transfer import transfer_ownership


def run_transfer(settings, auth_mode, open_browser=webbrowser.open):
    """Authenticates, starts the transfer and reports it. Returns the process exit code."""
    logging.info(f"--- Authenticating ({auth_mode.value}) ---")
    try:
        service = get_drive_service(settings, auth_mode, open_browser=open_browser)
        logging.info(f"--- Transferring {settings.FILE_ID} to {settings.NEW_OWNER_EMAIL} ---")
        outcome = transfer_ownership(service, settings.FILE_ID, settings.NEW_OWNER_EMAIL, settings.TRANSFER_MESSAGE)
    except TransferError as e:
        logging.error(f"[{e.kind.value.upper()}] {e.message}")
        report_failure(e)
        return 1

    report_success(outcome)
    return 0
