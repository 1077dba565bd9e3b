# ownership_transfer/reporter.py
import sys

from ownership_transfer.errors import ErrorKind

RECIPIENT_INSTRUCTIONS = [
    "The new owner should check their inbox for the ownership request email.",
    "Open the file from the email link or from 'Shared with me' in Google Drive.",
    "Click 'Accept ownership' in the banner at the top of the file (or in Share > Accept ownership).",
    "Once accepted, the file moves into their My Drive and counts against their storage.",
]

CONSENT_GUIDANCE = """\
Google refused the transfer because consent is missing. To fix it:
  1. Open the Google Cloud Console > APIs & Services > OAuth consent screen for this project.
  2. Make sure the app is published (or your account is listed as a test user) and that the
     scope https://www.googleapis.com/auth/drive is declared.
  3. If you authenticate with a service account, a Workspace admin must grant it domain-wide
     delegation: Admin console > Security > Access and data control > API controls >
     Manage domain-wide delegation > Add new, with the service account's client ID and the
     scope https://www.googleapis.com/auth/drive. Then set GOOGLE_DELEGATED_USER to the file owner.
  4. Service accounts cannot hand ownership of their own files to consumer accounts. Run with
     --auth oauth to act as the file's current owner instead.
  5. If you are using --auth oauth, delete the cached token (--reset-auth) and authorize again."""

FAILURE_HINTS = {
    ErrorKind.CONFIGURATION: "Check your environment variables or .env file.",
    ErrorKind.AUTHENTICATION: "Check your credentials. With --auth oauth, --reset-auth forces a new authorization.",
    ErrorKind.NOT_FOUND: "The file was not found. Check FILE_ID and that the authenticated account can see the file.",
    ErrorKind.PERMISSION_DENIED: "The authenticated account is not allowed to change this file's permissions. Only the current owner can transfer ownership.",
    ErrorKind.RATE_LIMITED: "Google Drive refused the request because a usage limit was reached. Wait a few minutes and run the transfer again.",
}


def report_success(outcome, out=None):
    out = out or sys.stdout
    if outcome.action == 'already_owner':
        print(f"\n✅ {outcome.new_owner_email} already owns '{outcome.file_name}'. No changes were made.", file=out)
        return

    verb = 'Created' if outcome.action == 'created' else 'Updated'
    print(f"\n✅ Ownership transfer of '{outcome.file_name}' initiated for {outcome.new_owner_email}.", file=out)
    print(f"   {verb} pending-owner permission {outcome.permission_id} on file {outcome.file_id}.", file=out)
    print("\nNext steps for the recipient:", file=out)
    for i, step in enumerate(RECIPIENT_INSTRUCTIONS, start=1):
        print(f"  {i}. {step}", file=out)


def report_failure(error, out=None):
    out = out or sys.stderr
    print(f"\n❌ Failed to transfer ownership: {error.message}", file=out)
    if error.kind == ErrorKind.CONSENT_REQUIRED:
        print(CONSENT_GUIDANCE, file=out)
    elif error.kind in FAILURE_HINTS:
        print(FAILURE_HINTS[error.kind], file=out)
    else:
        print("An unexpected error occurred. Re-run with --verbose for details.", file=out)
