import signal

from merchant_sync.core.cancellation import CancellationToken, CancellationState, FORCE_EXIT_CODE


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


def _token(grace=3.0):
    clock = FakeClock()
    exits = []
    token = CancellationToken(grace_seconds=grace, clock=clock, force_exit=exits.append)
    return token, clock, exits


def test_starts_running():
    token, _, _ = _token()
    assert token.state == CancellationState.RUNNING
    assert not token.is_cancelled
    assert token() is False


def test_first_interrupt_requests_stop():
    token, _, exits = _token()
    token.request_stop()
    assert token.state == CancellationState.STOP_REQUESTED
    assert token.is_cancelled
    assert exits == []


def test_interrupt_during_grace_period_is_ignored():
    token, clock, exits = _token()
    token.request_stop()
    clock.now += 1.0
    token.request_stop()
    assert token.state == CancellationState.STOP_REQUESTED
    assert exits == []


def test_interrupt_after_grace_period_forces_exit():
    token, clock, exits = _token(grace=3.0)
    token.request_stop()
    clock.now += 3.0
    assert token.state == CancellationState.FORCE_ARMED
    token.request_stop()
    assert exits == [FORCE_EXIT_CODE]


def test_signal_handler_drives_token():
    token, _, _ = _token()
    token.handle_signal(signal.SIGINT, None)
    assert token.is_cancelled


def test_install_and_uninstall_restore_handlers():
    previous = signal.getsignal(signal.SIGINT)
    token, _, _ = _token()
    token.install(signals=(signal.SIGINT,))
    try:
        assert signal.getsignal(signal.SIGINT) == token.handle_signal
    finally:
        token.uninstall()
    assert signal.getsignal(signal.SIGINT) == previous
