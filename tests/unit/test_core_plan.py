"""Unit tests for building, validating and executing plans."""

from typing import Any

import pytest

from jujuprep.config.models import ProvisionConfig
from jujuprep.core.errors import PhaseError, PlanValidationError
from jujuprep.core.plan import Plan
from jujuprep.core.validators import validate_single_local_kubernetes
from jujuprep.system.mock import MockSystem
from jujuprep.system.models import Deb, Snap


def make_plan(data: dict[str, Any]) -> tuple[MockSystem, Plan]:
    system = MockSystem()
    return system, Plan(ProvisionConfig.model_validate(data), system)


class TestPlanSnaps:
    """Tests for snap selection and channel precedence."""

    def test_config_channels(self) -> None:
        _, plan = make_plan(
            {"host": {"snaps": {"charmcraft": {"channel": "latest/stable"}, "jq": {}}}}
        )
        assert plan.snaps == [
            Snap(name="charmcraft", channel="latest/stable"),
            Snap(name="jq"),
        ]

    @pytest.mark.parametrize("name", ["charmcraft", "snapcraft", "rockcraft"])
    def test_override_beats_config(self, name: str) -> None:
        _, plan = make_plan(
            {
                "host": {"snaps": {name: {"channel": "latest/stable"}}},
                "overrides": {f"{name}_channel": "latest/edge"},
            }
        )
        assert plan.snaps[0].channel == "latest/edge"

    def test_override_only_touches_its_snap(self) -> None:
        _, plan = make_plan(
            {
                "host": {"snaps": {"jq": {"channel": "latest/stable"}}},
                "overrides": {"charmcraft_channel": "latest/edge"},
            }
        )
        assert plan.snaps[0].channel == "latest/stable"

    def test_connections_kept(self) -> None:
        _, plan = make_plan(
            {"host": {"snaps": {"jhack": {"connections": ["jhack:dot-local-share-juju"]}}}}
        )
        assert plan.snaps[0].connections == ["jhack:dot-local-share-juju"]

    def test_extra_snaps(self) -> None:
        _, plan = make_plan(
            {
                "overrides": {
                    "extra_snaps": ["kubectl/1.31/stable", "rockcraft"],
                    "rockcraft_channel": "latest/edge",
                }
            }
        )
        assert plan.snaps == [
            Snap(name="kubectl", channel="1.31/stable"),
            Snap(name="rockcraft", channel="latest/edge"),
        ]


class TestPlanDebsAndProviders:
    def test_debs(self) -> None:
        _, plan = make_plan(
            {"host": {"packages": ["python3-pip"]}, "overrides": {"extra_debs": ["make"]}}
        )
        assert plan.debs == [Deb("python3-pip"), Deb("make")]

    def test_providers_in_supported_order(self) -> None:
        _, plan = make_plan(
            {"providers": {"google": {"enable": True}, "lxd": {"enable": True}}}
        )
        assert [p.name() for p in plan.providers] == ["lxd", "google"]

    def test_disable_juju_override(self) -> None:
        _, plan = make_plan(
            {
                "providers": {"lxd": {"enable": True, "bootstrap": True}},
                "overrides": {"disable_juju": True},
            }
        )
        assert plan.config.juju.disable


class TestValidation:
    """Tests for plan validation."""

    @pytest.mark.asyncio
    async def test_microk8s_and_k8s_conflict(self) -> None:
        """Both local Kubernetes providers fail validation and nothing runs."""
        system, plan = make_plan(
            {
                "host": {"snaps": {"jq": {}}},
                "providers": {"microk8s": {"enable": True}, "k8s": {"enable": True}},
            }
        )
        with pytest.raises(PlanValidationError, match="multiple local kubernetes"):
            await plan.execute("prepare")
        assert system.executed_commands == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["microk8s", "k8s"])
    async def test_single_local_kubernetes_is_fine(self, name: str) -> None:
        _, plan = make_plan({"providers": {name: {"enable": True}, "lxd": {"enable": True}}})
        await plan.validate()

    @pytest.mark.asyncio
    async def test_validator_directly(self) -> None:
        _, plan = make_plan({"providers": {"microk8s": {"enable": True}, "k8s": {"enable": True}}})
        with pytest.raises(PlanValidationError):
            await validate_single_local_kubernetes(plan)


class TestExecute:
    """Tests for phased execution."""

    @pytest.mark.asyncio
    async def test_prepare_phase_order(self) -> None:
        system, plan = make_plan(
            {
                "juju": {"channel": "3.6/stable"},
                "host": {"packages": ["make"], "snaps": {"jq": {}}},
                "providers": {"lxd": {"enable": True}},
            }
        )
        await plan.execute("prepare")

        commands = system.executed_commands
        assert commands.index("snap install jq") < commands.index("snap install lxd")
        assert commands.index("apt-get install -y make") < commands.index("lxd waitready")
        assert commands.index("iptables -P FORWARD ACCEPT") < commands.index(
            "snap install juju --channel 3.6/stable"
        )

    @pytest.mark.asyncio
    async def test_juju_disabled(self) -> None:
        system, plan = make_plan({"juju": {"disable": True}, "host": {"snaps": {"jq": {}}}})
        await plan.execute("prepare")
        assert system.executed_commands == ["snap install jq"]

    @pytest.mark.asyncio
    async def test_restore_uses_same_order(self) -> None:
        system, plan = make_plan(
            {"host": {"snaps": {"jq": {}}}, "providers": {"lxd": {"enable": True}}}
        )
        await plan.execute("restore")
        assert system.executed_commands == [
            "snap remove jq --purge",
            "snap remove lxd --purge",
            "snap remove juju --purge",
        ]

    @pytest.mark.asyncio
    async def test_package_failures_stop_later_phases(self) -> None:
        system, plan = make_plan(
            {
                "host": {"packages": ["make"], "snaps": {"jq": {}}},
                "providers": {"lxd": {"enable": True}},
            }
        )
        system.mock_command_return("snap install jq", b"error", 1)
        system.mock_command_return("apt-get update", b"error", 100)

        with pytest.raises(PhaseError) as exc_info:
            await plan.execute("prepare")

        assert exc_info.value.phase == "prepare packages"
        assert len(exc_info.value.errors) == 2
        assert "snap install lxd" not in system.executed_commands

    @pytest.mark.asyncio
    async def test_unknown_action(self) -> None:
        _, plan = make_plan({})
        with pytest.raises(ValueError):
            await plan.execute("destroy")
