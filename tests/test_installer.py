"""
Installation pipeline tests.
"""

from unittest.mock import Mock, patch

import pytest

from onprem_quickstart import installer
from onprem_quickstart.config import RunConfig, Settings
from onprem_quickstart.errors import EnvironmentCheckError, RegistrationError


def _config() -> RunConfig:
    return RunConfig(
        license_key="a" * 300,
        docker_token="0f8fad5b-d9cb-469f-a165-70867728950e",
        env_secret="secret",
        dev=False,
        registry="docker.cke-cs.com",
        cs_port=8000,
        node_port=3000,
    )


class TestRunInstall:
    def test_steps_run_in_order(self):
        calls = []
        stack = Mock()

        with patch.object(installer.docker, "check_docker_version", side_effect=lambda s: calls.append("check")), \
                patch.object(installer.docker, "registry_login", side_effect=lambda c, s: calls.append("login")), \
                patch.object(installer.docker, "pull_image", side_effect=lambda c, s: calls.append("pull")), \
                patch.object(installer, "edit_compose_file", side_effect=lambda p, c: calls.append("edit")), \
                patch.object(installer, "start_containers", side_effect=lambda *a: calls.append("start") or stack), \
                patch.object(installer, "detect_ip_address", return_value="10.1.2.3"), \
                patch.object(installer, "register_environment", side_effect=lambda *a: calls.append("register")):
            result = installer.run_install(_config(), Settings())

        assert calls == ["check", "login", "pull", "edit", "start", "register"]
        assert result.ip == "10.1.2.3"
        assert result.stack is stack

    def test_failure_stops_pipeline(self):
        with patch.object(installer.docker, "check_docker_version", side_effect=EnvironmentCheckError("missing")), \
                patch.object(installer.docker, "registry_login") as mock_login:
            with pytest.raises(EnvironmentCheckError):
                installer.run_install(_config(), Settings())

        mock_login.assert_not_called()

    def test_registration_failure_stops_stack(self):
        stack = Mock()

        with patch.object(installer.docker, "check_docker_version"), \
                patch.object(installer.docker, "registry_login"), \
                patch.object(installer.docker, "pull_image"), \
                patch.object(installer, "edit_compose_file"), \
                patch.object(installer, "start_containers", return_value=stack), \
                patch.object(installer, "detect_ip_address", return_value="10.1.2.3"), \
                patch.object(installer, "register_environment", side_effect=RegistrationError("refused")):
            with pytest.raises(RegistrationError):
                installer.run_install(_config(), Settings())

        stack.stop.assert_called_once()

    def test_interrupt_during_registration_stops_stack(self):
        stack = Mock()

        with patch.object(installer.docker, "check_docker_version"), \
                patch.object(installer.docker, "registry_login"), \
                patch.object(installer.docker, "pull_image"), \
                patch.object(installer, "edit_compose_file"), \
                patch.object(installer, "start_containers", return_value=stack), \
                patch.object(installer, "detect_ip_address", return_value="10.1.2.3"), \
                patch.object(installer, "register_environment", side_effect=KeyboardInterrupt):
            with pytest.raises(KeyboardInterrupt):
                installer.run_install(_config(), Settings())

        stack.stop.assert_called_once()


def test_completion_message(capsys):
    installer.print_completion("192.168.1.20", 3005)

    out = capsys.readouterr().out
    assert "Installation complete" in out
    assert "http://192.168.1.20:3005" in out
