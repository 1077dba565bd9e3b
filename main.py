# main.py

import argparse
import logging
import sys

from ownership_transfer.auth import reset_authentication
from ownership_transfer.config import AuthMode, load_settings
from ownership_transfer.controller import run_transfer
from ownership_transfer.errors import TransferError
from ownership_transfer.reporter import report_failure


def main(argv=None):
    parser = argparse.ArgumentParser(description="Transfer ownership of a Google Drive file to another user.")
    parser.add_argument('--auth', choices=[m.value for m in AuthMode], default=AuthMode.OAUTH.value,
                        help="Credential strategy. Default: oauth (interactive, token cached locally).")
    parser.add_argument('--env-file', default='.env', help="Optional .env file to read settings from.")
    parser.add_argument('--reset-auth', action='store_true', help="Delete the cached OAuth token before authenticating.")
    parser.add_argument('--verbose', action='store_true', help="Enable debug logging.")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s - %(levelname)s - %(message)s')

    auth_mode = AuthMode(args.auth)
    try:
        settings = load_settings(auth_mode, env_file=args.env_file)
    except TransferError as e:
        report_failure(e)
        return 1

    if args.reset_auth and not reset_authentication(settings.TOKEN_PATH):
        return 1

    return run_transfer(settings, auth_mode)


if __name__ == '__main__':
    sys.exit(main())
