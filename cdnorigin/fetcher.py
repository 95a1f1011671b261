"""Fetching Ingresses and turning them into CDNIngresses."""

from __future__ import annotations

from typing import Callable, Iterable, Protocol

from cdnorigin.ingress import IngressError, new_cdn_ingress_from_v1
from cdnorigin.resources import CDNClass, CDNIngress, Ingress
from cdnorigin.user_origin import cdn_ingresses_for_user_origins


class IngressLister(Protocol):
    """Anything able to list every v1 Ingress of the cluster."""

    def list_ingresses(self) -> Iterable[Ingress]: ...


class IngressFetcher:
    """Fetches v1 Ingresses and selects the ones matching a predicate."""

    def __init__(self, client: IngressLister) -> None:
        self._client = client

    def fetch_by(
        self, cdn_class: CDNClass, predicate: Callable[[CDNIngress], bool]
    ) -> list[CDNIngress]:
        """Return the CDNIngresses matching ``predicate``.

        The user-supplied origins declared on each matching Ingress follow it
        in the result.
        """
        try:
            ingresses = list(self._client.list_ingresses())
        except Exception as err:
            raise IngressError(f"listing Ingresses: {err}") from err

        result: list[CDNIngress] = []
        for k8s_ing in ingresses:
            ing = new_cdn_ingress_from_v1(k8s_ing, cdn_class)
            if predicate(ing):
                result.append(ing)
                result.extend(cdn_ingresses_for_user_origins(k8s_ing))
        return result