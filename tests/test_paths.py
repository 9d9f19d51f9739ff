"""Tests for agent path resolution."""

import os
import unittest
from pathlib import Path
from unittest import mock

from uniqproc.agent.paths import AgentPaths


class AgentPathsTests(unittest.TestCase):
    def test_env_overrides(self) -> None:
        env = {
            "UNIQ_PROC_SOCKET": "/run/user/1000/up.sock",
            "UNIQ_PROC_CONFIG_DIR": "/etc/up",
            "UNIQ_PROC_STATE_PATH": "/var/tmp/up.state",
            "UNIQ_PROC_LOG_DIR": "/var/log/up",
        }
        with mock.patch.dict(os.environ, env):
            paths = AgentPaths.from_env()
        self.assertEqual(paths.socket_path, Path("/run/user/1000/up.sock"))
        self.assertEqual(paths.config_path, Path("/etc/up/config.json"))
        self.assertEqual(paths.state_path, Path("/var/tmp/up.state"))
        self.assertEqual(paths.log_file, Path("/var/log/up/agent.log"))

    def test_defaults_use_socket_and_state_file_names(self) -> None:
        with mock.patch.dict(os.environ, {"UNIQ_PROC_SOCKET": "", "UNIQ_PROC_STATE_PATH": ""}):
            paths = AgentPaths.from_env()
        self.assertEqual(paths.socket_path.name, "uniq-proc.sock")
        self.assertEqual(paths.state_path.name, "uniq-proc.state")
        self.assertEqual(paths.config_path.name, "config.json")


if __name__ == "__main__":
    unittest.main()
