"""Construct the providers enabled in a configuration."""

from jujuprep.config.models import ProvisionConfig
from jujuprep.providers.base import Provider
from jujuprep.providers.google import Google
from jujuprep.providers.k8s import K8s
from jujuprep.providers.lxd import LXD
from jujuprep.providers.microk8s import MicroK8s
from jujuprep.system.worker import Worker

# Order matters: providers are created, and reported, in this order.
SUPPORTED_PROVIDERS = ("lxd", "microk8s", "k8s", "google")

_CONSTRUCTORS = {
    "lxd": LXD,
    "microk8s": MicroK8s,
    "k8s": K8s,
    "google": Google,
}


def create_provider(name: str, system: Worker, config: ProvisionConfig) -> Provider | None:
    """Build the named provider, or return None if it is disabled.

    Raises:
        ValueError: If ``name`` is not a supported provider
    """
    if name not in _CONSTRUCTORS:
        raise ValueError(f"Unsupported provider '{name}'")

    if not getattr(config.providers, name).enable:
        return None
    return _CONSTRUCTORS[name](system, config)


def create_all_providers(system: Worker, config: ProvisionConfig) -> list[Provider]:
    providers = []
    for name in SUPPORTED_PROVIDERS:
        provider = create_provider(name, system, config)
        if provider is not None:
            providers.append(provider)
    return providers
