"""Cross-cutting checks run against a plan before anything is executed."""

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from jujuprep.core.errors import PlanValidationError

if TYPE_CHECKING:
    from jujuprep.core.plan import Plan

LOCAL_KUBERNETES = frozenset({"microk8s", "k8s"})


async def validate_single_local_kubernetes(plan: "Plan") -> None:
    """MicroK8s and k8s both claim the local kubelet, so only one may be enabled."""
    enabled = [p.name() for p in plan.providers if p.name() in LOCAL_KUBERNETES]
    if len(enabled) > 1:
        raise PlanValidationError(
            "cannot configure multiple local kubernetes providers: " + ", ".join(enabled)
        )


PLAN_VALIDATORS: list[Callable[["Plan"], Awaitable[None]]] = [
    validate_single_local_kubernetes,
]
