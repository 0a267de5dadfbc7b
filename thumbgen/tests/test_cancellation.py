"""Tests for CancellationToken and signal handling."""

import os
import signal
import threading

from thumbgen.cancellation import CancellationToken, install_signal_handlers


class TestCancellationToken:
    """Tests for CancellationToken class."""

    def test_initial_state(self):
        token = CancellationToken()
        assert not token.is_cancelled
        assert token.reason is None

    def test_cancel_keeps_first_reason(self):
        token = CancellationToken()
        token.cancel('SIGTERM')
        token.cancel('SIGINT')

        assert token.is_cancelled
        assert token.reason == 'SIGTERM'

    def test_cancel_from_another_thread(self):
        token = CancellationToken()
        worker = threading.Thread(target=token.cancel, args=('worker',))
        worker.start()
        worker.join(5)

        assert token.is_cancelled
        assert token.reason == 'worker'


class TestSignalHandlers:
    """Tests for install_signal_handlers."""

    def test_sigterm_cancels(self):
        token = CancellationToken()
        restore = install_signal_handlers(token)
        try:
            os.kill(os.getpid(), signal.SIGTERM)
            assert token.is_cancelled
            assert token.reason == 'SIGTERM'
        finally:
            restore()

    def test_restore(self):
        before = signal.getsignal(signal.SIGTERM)
        restore = install_signal_handlers(CancellationToken())

        assert signal.getsignal(signal.SIGTERM) is not before
        restore()
        assert signal.getsignal(signal.SIGTERM) is before
