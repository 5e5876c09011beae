"""Unit tests for provider construction and default channel selection."""

import pytest

from jujuprep.config.models import ProvisionConfig
from jujuprep.providers.channels import compute_default_channel, newest_stable
from jujuprep.providers.factory import SUPPORTED_PROVIDERS, create_all_providers, create_provider
from jujuprep.providers.google import Google
from jujuprep.providers.k8s import K8s
from jujuprep.providers.lxd import LXD
from jujuprep.providers.microk8s import MicroK8s
from jujuprep.system.mock import MockSystem


class TestCreateProvider:
    """Tests for create_provider."""

    @pytest.mark.parametrize(
        ("name", "cls"),
        [("lxd", LXD), ("microk8s", MicroK8s), ("k8s", K8s), ("google", Google)],
    )
    def test_enabled(self, name: str, cls: type) -> None:
        config = ProvisionConfig.model_validate({"providers": {name: {"enable": True}}})
        assert isinstance(create_provider(name, MockSystem(), config), cls)

    @pytest.mark.parametrize("name", SUPPORTED_PROVIDERS)
    def test_disabled(self, name: str) -> None:
        assert create_provider(name, MockSystem(), ProvisionConfig()) is None

    def test_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unsupported provider 'aws'"):
            create_provider("aws", MockSystem(), ProvisionConfig())


class TestCreateAllProviders:
    def test_keeps_supported_order(self) -> None:
        """Providers come back in the fixed order, whatever the config order."""
        config = ProvisionConfig.model_validate(
            {"providers": {"google": {"enable": True}, "lxd": {"enable": True}}}
        )
        providers = create_all_providers(MockSystem(), config)
        assert [p.name() for p in providers] == ["lxd", "google"]

    def test_none_enabled(self) -> None:
        assert create_all_providers(MockSystem(), ProvisionConfig()) == []


class TestNewestStable:
    """Tests for picking the newest stable channel of a variant."""

    def test_numeric_ordering(self) -> None:
        channels = ["1.9-strict/stable", "1.10-strict/stable", "1.2-strict/stable"]
        assert newest_stable(channels, "strict") == "1.10-strict/stable"

    def test_ignores_other_risks_and_variants(self) -> None:
        channels = ["1.33-strict/edge", "1.33/stable", "1.32-strict/stable", "latest/stable"]
        assert newest_stable(channels, "strict") == "1.32-strict/stable"

    def test_nothing_matches(self) -> None:
        assert newest_stable(["latest/stable", "1.32/stable"], "classic") == ""


class TestComputeDefaultChannel:
    @pytest.mark.asyncio
    async def test_from_store(self) -> None:
        system = MockSystem()
        system.mock_snap_channels("k8s", ["1.31-classic/stable", "1.32-classic/stable"])
        assert await compute_default_channel(system, "k8s", "classic", "x") == "1.32-classic/stable"

    @pytest.mark.asyncio
    async def test_store_unreachable(self) -> None:
        assert await compute_default_channel(MockSystem(), "k8s", "classic", "fallback") == "fallback"

    @pytest.mark.asyncio
    async def test_no_match(self) -> None:
        system = MockSystem()
        system.mock_snap_channels("k8s", ["latest/edge"])
        assert await compute_default_channel(system, "k8s", "classic", "fallback") == "fallback"
