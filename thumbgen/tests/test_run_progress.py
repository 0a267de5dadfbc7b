"""Tests for RunProgress class."""

import logging

from thumbgen.run_progress import RunProgress
from thumbgen.run_report import RunReport


class TestRunProgress:
    """Tests for RunProgress class."""

    def test_show_files_output(self, capsys):
        progress = RunProgress(show_files=True)

        progress.on_file_converted('a.png', 'a.webp', 2048)
        progress.on_file_skipped('b.png', 'up to date')
        progress.on_file_failed('c.png', 'boom')
        progress.on_dry_run('d.png', 'd.webp', 'stale')

        out = capsys.readouterr().out
        assert '[OK] a.png -> a.webp (2.0 KB)' in out
        assert '[SKIP] b.png -> up to date' in out
        assert '[ERROR] c.png -> boom' in out
        assert '[DRY RUN] d.png -> would write d.webp (stale)' in out

    def test_quiet_without_show_files(self, capsys):
        progress = RunProgress()
        progress.on_file_converted('a.png', 'a.webp', 10)
        assert capsys.readouterr().out == ''

    def test_progress_logged_at_interval(self, caplog):
        progress = RunProgress(log_interval=2, logger=logging.getLogger('test.progress'))
        report = RunReport(files_total=5)

        with caplog.at_level(logging.INFO, logger='test.progress'):
            report.add_file_done()
            progress.on_progress_update(report)
            report.add_file_done()
            progress.on_progress_update(report)
            report.add_file_done()
            progress.on_progress_update(report)

        messages = [r.getMessage() for r in caplog.records]
        assert len(messages) == 1
        assert messages[0].startswith('Progress: 2/5 files')
        assert progress.last_logged == 2
