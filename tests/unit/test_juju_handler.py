"""Unit tests for the Juju handler."""

from typing import Any

import pytest
import yaml

from jujuprep.config.models import ProvisionConfig
from jujuprep.core.errors import PhaseError
from jujuprep.juju.handler import JujuHandler, controller_missing, merge, render_flags
from jujuprep.providers.factory import create_all_providers
from jujuprep.system.mock import MockSystem

GCP_FILE = "/home/test-user/gcp.yaml"


def setup(data: dict[str, Any]) -> tuple[MockSystem, JujuHandler]:
    system = MockSystem()
    system.mock_file(GCP_FILE, b"auth-type: oauth2\nproject-id: test\n")
    config = ProvisionConfig.model_validate(data)
    return system, JujuHandler(system, config, create_all_providers(system, config))


def missing_controller(system: MockSystem, name: str) -> None:
    system.mock_command_return(
        f"sudo -u test-user juju show-controller {name}",
        f"ERROR controller {name} not found".encode(),
        1,
    )


class TestPrepare:
    """Tests for installing Juju and bootstrapping controllers."""

    @pytest.mark.asyncio
    async def test_bootstraps_lxd(self) -> None:
        system, handler = setup(
            {
                "juju": {"channel": "3.6/stable"},
                "providers": {"lxd": {"enable": True, "bootstrap": True}},
            }
        )
        missing_controller(system, "concierge-lxd")

        await handler.prepare()

        assert system.executed_commands == [
            "snap install juju --channel 3.6/stable",
            "sudo -u test-user juju show-controller concierge-lxd",
            "sudo -u test-user -g lxd juju bootstrap localhost concierge-lxd --verbose",
            "sudo -u test-user juju add-model -c concierge-lxd testing",
        ]
        assert system.created_directories == [".local/share/juju"]
        assert system.created_files == {}
        assert system.exclusive_commands == ["snap install juju --channel 3.6/stable"]
        assert system.retried_commands == [
            ("sudo -u test-user -g lxd juju bootstrap localhost concierge-lxd --verbose", 300)
        ]

    @pytest.mark.asyncio
    async def test_existing_controller_is_left_alone(self) -> None:
        """A successful show-controller means there is nothing to bootstrap."""
        system, handler = setup({"providers": {"lxd": {"enable": True, "bootstrap": True}}})

        await handler.prepare()

        assert system.executed_commands == [
            "snap install juju",
            "sudo -u test-user juju show-controller concierge-lxd",
        ]

    @pytest.mark.asyncio
    async def test_other_show_controller_errors_skip_bootstrap(self) -> None:
        system, handler = setup({"providers": {"lxd": {"enable": True, "bootstrap": True}}})
        system.mock_command_return(
            "sudo -u test-user juju show-controller concierge-lxd", b"ERROR permission denied", 1
        )

        await handler.prepare()

        assert not any("bootstrap" in c for c in system.executed_commands)

    @pytest.mark.asyncio
    async def test_provider_without_bootstrap(self) -> None:
        system, handler = setup({"providers": {"lxd": {"enable": True}}})
        await handler.prepare()
        assert system.executed_commands == ["snap install juju"]

    @pytest.mark.asyncio
    async def test_flags_are_merged_and_sorted(self) -> None:
        system, handler = setup(
            {
                "juju": {
                    "agent-version": "3.6.1",
                    "model-defaults": {"b": "2", "a": "1"},
                    "bootstrap-constraints": {"mem": "4G"},
                    "extra-bootstrap-args": "--config idle-connection-timeout=90s",
                },
                "providers": {
                    "k8s": {
                        "enable": True,
                        "bootstrap": True,
                        "model-defaults": {"a": "9"},
                        "bootstrap-constraints": {"root-disk": "2G"},
                    }
                },
            }
        )
        missing_controller(system, "concierge-k8s")

        await handler.prepare()

        assert (
            "sudo -u test-user juju bootstrap k8s concierge-k8s --verbose"
            " --agent-version 3.6.1"
            " --model-default a=9 --model-default b=2"
            " --bootstrap-constraints mem=4G --bootstrap-constraints root-disk=2G"
            " --config idle-connection-timeout=90s"
        ) in system.executed_commands

    @pytest.mark.asyncio
    async def test_channel_override(self) -> None:
        system, handler = setup(
            {"juju": {"channel": "3.5/stable"}, "overrides": {"juju_channel": "3.6/edge"}}
        )
        await handler.prepare()
        assert system.executed_commands == ["snap install juju --channel 3.6/edge"]

    @pytest.mark.asyncio
    async def test_writes_credentials(self) -> None:
        system, handler = setup(
            {"providers": {"google": {"enable": True, "credentials-file": GCP_FILE}}}
        )
        for provider in handler.providers:
            await provider.prepare()

        await handler.prepare()

        written = yaml.safe_load(system.created_files[".local/share/juju/credentials.yaml"])
        assert written == {
            "credentials": {
                "google": {"concierge": {"auth-type": "oauth2", "project-id": "test"}}
            }
        }

    @pytest.mark.asyncio
    async def test_one_failed_bootstrap_does_not_stop_others(self) -> None:
        system, handler = setup(
            {
                "providers": {
                    "lxd": {"enable": True, "bootstrap": True},
                    "k8s": {"enable": True, "bootstrap": True},
                }
            }
        )
        missing_controller(system, "concierge-lxd")
        missing_controller(system, "concierge-k8s")
        system.mock_command_return(
            "sudo -u test-user juju bootstrap k8s concierge-k8s --verbose", b"ERROR no cluster", 1
        )

        with pytest.raises(PhaseError) as exc_info:
            await handler.prepare()

        assert len(exc_info.value.errors) == 1
        assert "concierge-k8s" in str(exc_info.value.first)
        assert "sudo -u test-user juju add-model -c concierge-lxd testing" in system.executed_commands
        assert "sudo -u test-user juju add-model -c concierge-k8s testing" not in system.executed_commands


class TestRestore:
    """Tests for tearing Juju down."""

    @pytest.mark.asyncio
    async def test_kills_credentialed_controller(self) -> None:
        system, handler = setup(
            {"providers": {"google": {"enable": True, "credentials-file": GCP_FILE}}}
        )
        for provider in handler.providers:
            await provider.restore()

        await handler.restore()

        assert system.executed_commands == [
            "sudo -u test-user juju show-controller concierge-google",
            "sudo -u test-user juju kill-controller --verbose --no-prompt concierge-google",
            "snap remove juju --purge",
        ]
        assert system.deleted == [".local/share/juju"]

    @pytest.mark.asyncio
    async def test_missing_controller_is_not_killed(self) -> None:
        system, handler = setup(
            {"providers": {"google": {"enable": True, "credentials-file": GCP_FILE}}}
        )
        missing_controller(system, "concierge-google")
        for provider in handler.providers:
            await provider.restore()

        await handler.restore()

        assert system.executed_commands == [
            "sudo -u test-user juju show-controller concierge-google",
            "snap remove juju --purge",
        ]

    @pytest.mark.asyncio
    async def test_kills_controller_without_credentials_file(self) -> None:
        system, handler = setup(
            {"providers": {"google": {"enable": True, "credentials-file": GCP_FILE}}}
        )
        system.remove_file(GCP_FILE)
        for provider in handler.providers:
            await provider.restore()

        await handler.restore()

        assert system.executed_commands == [
            "sudo -u test-user juju show-controller concierge-google",
            "sudo -u test-user juju kill-controller --verbose --no-prompt concierge-google",
            "snap remove juju --purge",
        ]

    @pytest.mark.asyncio
    async def test_local_providers_only_remove_juju(self) -> None:
        system, handler = setup({"providers": {"lxd": {"enable": True, "bootstrap": True}}})
        await handler.restore()
        assert system.executed_commands == ["snap remove juju --purge"]
        assert system.deleted == [".local/share/juju"]


class TestHelpers:
    def test_merge_provider_wins(self) -> None:
        assert merge({"a": "1", "b": "2"}, {"a": "9"}) == {"a": "9", "b": "2"}

    def test_render_flags_sorted(self) -> None:
        assert render_flags("--model-default", {"b": "2", "a": "9"}) == [
            "--model-default",
            "a=9",
            "--model-default",
            "b=2",
        ]

    def test_render_flags_empty(self) -> None:
        assert render_flags("--model-default", {}) == []

    def test_controller_missing(self) -> None:
        assert controller_missing("ERROR controller concierge-lxd not found")
        assert not controller_missing("ERROR cannot connect to controller")
