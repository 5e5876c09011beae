"""Build Juju's credentials.yaml from provider credentials."""

from typing import Any

from jujuprep.providers.base import Provider

CREDENTIAL_NAME = "concierge"


def build_credentials(providers: list[Provider]) -> dict[str, Any]:
    """Collect credentials of every provider that has some.

    Each becomes ``{cloud: {"concierge": <credentials>}}``; when two
    providers share a cloud name the later one wins.

    Returns:
        The document for credentials.yaml, or an empty dict if no provider
        contributes credentials.
    """
    clouds: dict[str, Any] = {}
    for provider in providers:
        credentials = provider.credentials()
        if not credentials:
            continue
        clouds[provider.cloud_name()] = {CREDENTIAL_NAME: credentials}

    return {"credentials": clouds} if clouds else {}
