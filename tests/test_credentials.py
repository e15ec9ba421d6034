"""
Credential collection, validation and port selection tests.
"""

import socket
from unittest.mock import Mock

import pytest

from onprem_quickstart.credentials import (
    collect_credentials,
    find_first_unused_port,
    is_port_in_use,
    validate_credentials,
)
from onprem_quickstart.errors import CredentialError

VALID_LICENSE = "0123456789abcdef" * 20
VALID_TOKEN = "0f8fad5b-d9cb-469f-a165-70867728950e"
VALID_SECRET = "s3cret"


class TestValidateCredentials:
    def test_accepts_valid_credentials(self):
        validate_credentials(VALID_LICENSE, VALID_TOKEN, VALID_SECRET)

    def test_accepts_license_of_exactly_minimum_length(self):
        validate_credentials("a" * 300, VALID_TOKEN, VALID_SECRET)

    @pytest.mark.parametrize("license_key", [
        "",
        "a" * 299,
        "A" * 300,
        "g" + "a" * 299,
        "a" * 150 + " " + "a" * 150,
        "a" * 300 + "\n",
    ])
    def test_rejects_invalid_license_key(self, license_key):
        with pytest.raises(CredentialError, match="License Key"):
            validate_credentials(license_key, VALID_TOKEN, VALID_SECRET)

    @pytest.mark.parametrize("token", [
        "",
        VALID_TOKEN[:-1],
        VALID_TOKEN + "0",
        VALID_TOKEN.upper(),
        "0f8fad5b_d9cb_469f_a165_70867728950e",
        "z" * 36,
    ])
    def test_rejects_invalid_docker_token(self, token):
        with pytest.raises(CredentialError, match="Docker Token"):
            validate_credentials(VALID_LICENSE, token, VALID_SECRET)

    def test_rejects_empty_secret(self):
        with pytest.raises(CredentialError, match="secret can not be empty"):
            validate_credentials(VALID_LICENSE, VALID_TOKEN, "")

    def test_first_failing_rule_wins(self):
        with pytest.raises(CredentialError) as exc_info:
            validate_credentials("short", "bad", "")

        assert "License Key" in exc_info.value.message
        assert exc_info.value.step == "Validating credentials"


class TestCollectCredentials:
    def test_no_prompt_when_all_given(self):
        prompt = Mock()

        result = collect_credentials(VALID_LICENSE, VALID_TOKEN, VALID_SECRET, prompt=prompt)

        prompt.assert_not_called()
        assert result == {
            "license_key": VALID_LICENSE,
            "docker_token": VALID_TOKEN,
            "env_secret": VALID_SECRET,
        }

    def test_prompts_only_for_missing_values(self):
        prompt = Mock(side_effect=lambda name: f"typed-{name}")

        result = collect_credentials(VALID_LICENSE, None, "", prompt=prompt)

        assert [call.args[0] for call in prompt.call_args_list] == ["docker_token", "env_secret"]
        assert result["license_key"] == VALID_LICENSE
        assert result["docker_token"] == "typed-docker_token"
        assert result["env_secret"] == "typed-env_secret"

    def test_prints_notice_when_prompting(self, capsys):
        collect_credentials(None, VALID_TOKEN, VALID_SECRET, prompt=lambda name: "x")

        assert "credentials are missing" in capsys.readouterr().out

    def test_non_interactive_raises_for_missing_values(self):
        prompt = Mock()

        with pytest.raises(CredentialError, match="license_key, env_secret"):
            collect_credentials(None, VALID_TOKEN, None, non_interactive=True, prompt=prompt)

        prompt.assert_not_called()

    def test_closed_stdin_raises_credential_error(self):
        prompt = Mock(side_effect=EOFError)

        with pytest.raises(CredentialError, match="license_key, env_secret") as exc_info:
            collect_credentials(None, VALID_TOKEN, None, prompt=prompt)

        assert "stdin closed" in exc_info.value.details
        assert exc_info.value.step == "Validating credentials"


class TestPortSelection:
    def test_returns_start_when_free(self):
        assert find_first_unused_port(8000, in_use=lambda port: False) == 8000

    def test_skips_ports_in_use(self):
        busy = {3000, 3001, 3003}

        assert find_first_unused_port(3000, in_use=lambda port: port in busy) == 3002

    def test_stops_at_highest_port(self):
        with pytest.raises(CredentialError, match="No unused port"):
            find_first_unused_port(65534, in_use=lambda port: True)

    def test_detects_listening_socket(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server:
            server.bind(("127.0.0.1", 0))
            server.listen(1)
            port = server.getsockname()[1]

            assert is_port_in_use(port) is True
            assert find_first_unused_port(port, in_use=lambda p: p == port) == port + 1
