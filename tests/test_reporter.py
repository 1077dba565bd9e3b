import io

from ownership_transfer.errors import ErrorKind, TransferError
from ownership_transfer.models import TransferOutcome
from ownership_transfer.reporter import CONSENT_GUIDANCE, FAILURE_HINTS, report_failure, report_success


def _outcome(action, permission_id='perm-2'):
    return TransferOutcome(file_id='file123', file_name='Quarterly Report',
                           new_owner_email='new.owner@example.com', permission_id=permission_id, action=action)


def test_success_lists_numbered_recipient_steps():
    out = io.StringIO()

    report_success(_outcome('created'), out=out)

    text = out.getvalue()
    assert "initiated for new.owner@example.com" in text
    assert 'Created pending-owner permission perm-2' in text
    assert '  1. ' in text and '  4. ' in text


def test_update_is_reported_as_such():
    out = io.StringIO()

    report_success(_outcome('updated'), out=out)

    assert 'Updated pending-owner permission perm-2' in out.getvalue()


def test_already_owner_skips_instructions():
    out = io.StringIO()

    report_success(_outcome('already_owner', 'perm-owner'), out=out)

    assert 'already owns' in out.getvalue()
    assert 'Next steps' not in out.getvalue()


def test_failure_switches_on_error_kind():
    consent, denied, unknown = io.StringIO(), io.StringIO(), io.StringIO()

    report_failure(TransferError(ErrorKind.CONSENT_REQUIRED, 'Consent is required'), out=consent)
    report_failure(TransferError(ErrorKind.PERMISSION_DENIED, 'Insufficient permissions'), out=denied)
    report_failure(TransferError(ErrorKind.UNKNOWN, 'Backend Error'), out=unknown)

    assert CONSENT_GUIDANCE in consent.getvalue()
    assert FAILURE_HINTS[ErrorKind.PERMISSION_DENIED] in denied.getvalue()
    assert CONSENT_GUIDANCE not in denied.getvalue()
    assert 'unexpected error' in unknown.getvalue()


def test_rate_limit_gets_retry_advice_not_permission_advice():
    out = io.StringIO()

    report_failure(TransferError(ErrorKind.RATE_LIMITED, 'User Rate Limit Exceeded.'), out=out)

    assert FAILURE_HINTS[ErrorKind.RATE_LIMITED] in out.getvalue()
    assert FAILURE_HINTS[ErrorKind.PERMISSION_DENIED] not in out.getvalue()
