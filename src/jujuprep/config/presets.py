"""Built-in configuration presets."""

import copy
from typing import Any

from jujuprep.config.models import ProvisionConfig

_JUJU = {
    "model-defaults": {
        "test-mode": "true",
        "automatically-retry-hooks": "false",
    },
}

_PACKAGES = ["python3-pip", "python3-venv"]

_SNAPS = {
    "charmcraft": {"channel": "latest/stable"},
    "jq": {"channel": "latest/stable"},
    "yq": {"channel": "latest/stable"},
}

_LXD = {"enable": True, "bootstrap": True}

# LXD is still needed to build charms and rocks on Kubernetes presets, but no
# controller is bootstrapped onto it there.
_LXD_BUILD_ONLY = {"enable": True}

_MICROK8S = {
    "enable": True,
    "bootstrap": True,
    "addons": ["hostpath-storage", "dns", "rbac", "metallb"],
}

_K8S = {
    "enable": True,
    "bootstrap": True,
    "bootstrap-constraints": {"root-disk": "2G"},
    "features": {
        "load-balancer": {"l2-mode": "true", "cidrs": "10.43.45.0/28"},
        "local-storage": {},
        "network": {},
    },
}


def _preset(
    providers: dict[str, Any], extra_snaps: tuple[str, ...] = (), juju: dict | None = None
) -> dict[str, Any]:
    snaps = dict(_SNAPS)
    for name in extra_snaps:
        snaps[name] = {"channel": "latest/stable"}
    return {
        "juju": _JUJU if juju is None else juju,
        "providers": providers,
        "host": {"packages": _PACKAGES, "snaps": snaps},
    }


_PRESETS: dict[str, dict[str, Any]] = {
    "machine": _preset({"lxd": _LXD}, ("snapcraft",)),
    "k8s": _preset({"lxd": _LXD_BUILD_ONLY, "k8s": _K8S}, ("rockcraft",)),
    "microk8s": _preset({"lxd": _LXD_BUILD_ONLY, "microk8s": _MICROK8S}, ("rockcraft",)),
    "dev": _preset({"lxd": _LXD, "k8s": _K8S}, ("rockcraft", "snapcraft")),
    "crafts": _preset({"lxd": _LXD}, ("rockcraft", "snapcraft"), juju={"disable": True}),
}

_PRESETS["dev"]["host"]["snaps"]["jhack"] = {
    "channel": "latest/stable",
    "connections": ["jhack:dot-local-share-juju"],
}


def get_available_presets() -> list[str]:
    return list(_PRESETS)


def get_preset(name: str) -> ProvisionConfig:
    """Build a fresh config from the named preset.

    Raises:
        ValueError: If no preset has that name
    """
    if name not in _PRESETS:
        available = ", ".join(_PRESETS)
        raise ValueError(f"Unknown preset '{name}'. Available presets: {available}")
    return ProvisionConfig.model_validate(copy.deepcopy(_PRESETS[name]))
