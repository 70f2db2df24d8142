"""Unit tests for liveness probing."""

import os
import shutil
import tempfile
import unittest
from unittest.mock import patch

import psutil

from worker_supervisor.errors import ProbeError
from worker_supervisor.liveness import (
    LivenessObservation, PidFileReader, PsutilPidFileReader, probe
)
from worker_supervisor.slots import ProcessSlot


class FakeReader(PidFileReader):
    """PID file reader with canned answers."""

    def __init__(self, pid=None, alive=False, error=None):
        self.pid = pid
        self.alive = alive
        self.error = error

    def read_pid(self, pid_file_path):
        if self.error:
            raise self.error
        return self.pid

    def is_alive(self, pid):
        return self.alive


class TestPsutilPidFileReader(unittest.TestCase):
    """Test cases for the psutil-backed reader."""

    def setUp(self):
        """Set up test fixtures."""
        self.test_dir = tempfile.mkdtemp()
        self.pid_file = os.path.join(self.test_dir, 'sidekiq_blog-1.pid')
        self.reader = PsutilPidFileReader()

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def _write_pid_file(self, content):
        with open(self.pid_file, 'w', encoding='utf-8') as f:
            f.write(content)

    def test_read_pid(self):
        """Test reading a well-formed PID file."""
        self._write_pid_file('4242\n')
        self.assertEqual(self.reader.read_pid(self.pid_file), 4242)

    def test_read_missing_pid_file(self):
        """Test a missing PID file holds no PID."""
        self.assertIsNone(self.reader.read_pid(self.pid_file))

    def test_read_garbage_pid_file(self):
        """Test a PID file without a number holds no PID."""
        self._write_pid_file('not-a-pid')
        self.assertIsNone(self.reader.read_pid(self.pid_file))

    def test_read_unreadable_pid_file(self):
        """Test an unreadable PID file raises ProbeError."""
        with self.assertRaises(ProbeError):
            self.reader.read_pid(self.test_dir)

    @patch('psutil.Process')
    def test_is_alive(self, mock_process):
        """Test a live process is reported alive."""
        mock_process.return_value.status.return_value = psutil.STATUS_SLEEPING
        self.assertTrue(self.reader.is_alive(4242))
        mock_process.assert_called_once_with(4242)

    @patch('psutil.Process')
    def test_zombie_is_not_alive(self, mock_process):
        """Test a zombie process is not reported alive."""
        mock_process.return_value.status.return_value = psutil.STATUS_ZOMBIE
        self.assertFalse(self.reader.is_alive(4242))

    @patch('psutil.Process')
    def test_missing_process(self, mock_process):
        """Test a vanished process is not reported alive."""
        mock_process.side_effect = psutil.NoSuchProcess(4242)
        self.assertFalse(self.reader.is_alive(4242))

    @patch('psutil.Process')
    def test_access_denied(self, mock_process):
        """Test an inaccessible process raises ProbeError."""
        mock_process.return_value.status.side_effect = psutil.AccessDenied(4242)
        with self.assertRaises(ProbeError):
            self.reader.is_alive(4242)

    def test_current_process_alive(self):
        """Test the running test process is alive."""
        self.assertTrue(self.reader.is_alive(os.getpid()))

    def test_non_positive_pid(self):
        self.assertFalse(self.reader.is_alive(0))


class TestProbe(unittest.TestCase):
    """Test cases for probe()."""

    def setUp(self):
        """Set up test fixtures."""
        self.slot = ProcessSlot.for_index('blog', '/srv/www/blog', 1)

    def test_running(self):
        """Test a live PID gives a running observation."""
        observation = probe(self.slot, FakeReader(pid=4242, alive=True))
        self.assertEqual(observation, LivenessObservation(True, 4242))

    def test_no_pid_file(self):
        """Test a missing PID file means not running."""
        observation = probe(self.slot, FakeReader(pid=None))
        self.assertFalse(observation.running)
        self.assertIsNone(observation.pid)

    def test_stale_pid(self):
        """Test a dead PID means not running."""
        observation = probe(self.slot, FakeReader(pid=4242, alive=False))
        self.assertFalse(observation.running)

    def test_probe_errors_mean_not_running(self):
        """Test probe failures are downgraded to not running."""
        for error in (ProbeError('boom'), PermissionError('denied'),
                      ValueError('bad')):
            with self.subTest(error=error):
                observation = probe(self.slot, FakeReader(error=error))
                self.assertFalse(observation.running)


if __name__ == '__main__':
    unittest.main()
