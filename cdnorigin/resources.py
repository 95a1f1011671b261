"""Kubernetes-side domain objects: Ingresses, CDN classes and their helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from cdnorigin.functions import FunctionAssociations

CDN_GROUP_ANNOTATION = "cdn-origin-controller.gympass.com/cdn.group"
CDN_CLASS_ANNOTATION = "cdn-origin-controller.gympass.com/cdn.class"
CDN_FINALIZER = "cdn-origin-controller.gympass.com/finalizer"

CF_VIEWER_FN_ANNOTATION = "cdn-origin-controller.gympass.com/cf.viewer-function-arn"
CF_ORIG_REQ_POLICY_ANNOTATION = "cdn-origin-controller.gympass.com/cf.origin-request-policy"
CF_CACHE_POLICY_ANNOTATION = "cdn-origin-controller.gympass.com/cf.cache-policy"
CF_RESPONSE_POLICY_ANNOTATION = "cdn-origin-controller.gympass.com/cf.response-policy"
CF_ORIG_RESP_TIMEOUT_ANNOTATION = "cdn-origin-controller.gympass.com/cf.origin-response-timeout"
CF_ALTERNATE_DOMAIN_NAMES_ANNOTATION = "cdn-origin-controller.gympass.com/cf.alternate-domain-names"
CF_WEB_ACL_ARN_ANNOTATION = "cdn-origin-controller.gympass.com/cf.web-acl-arn"
CF_TAGS_ANNOTATION = "cdn-origin-controller.gympass.com/cf.tags"
CF_ORIG_HEADERS_ANNOTATION = "cdn-origin-controller.gympass.com/cf.origin-headers"


@dataclass
class IngressPath:
    """A single HTTP path of an Ingress rule."""

    path: str = ""
    path_type: str = "ImplementationSpecific"


@dataclass
class IngressRule:
    """An Ingress rule; ``paths`` is None when the rule has no HTTP section."""

    host: str = ""
    paths: list[IngressPath] | None = None


@dataclass
class Ingress:
    """A networking.k8s.io/v1 Ingress, reduced to what the controller reads."""

    name: str = ""
    namespace: str = ""
    annotations: dict[str, str] = field(default_factory=dict)
    finalizers: list[str] = field(default_factory=list)
    deletion_timestamp: datetime | None = None
    rules: list[IngressRule] = field(default_factory=list)
    load_balancer_hostnames: list[str] = field(default_factory=list)


@dataclass
class CDNClass:
    """Configuration shared by every distribution of a CDN class."""

    hosted_zone_id: str = ""
    create_alias: bool = False
    txt_owner_value: str = ""


@dataclass
class Path:
    """A path item of an Ingress with its function associations."""

    path_pattern: str = ""
    path_type: str = ""
    function_associations: FunctionAssociations = field(default_factory=FunctionAssociations)


@dataclass
class CDNIngress:
    """An Ingress as seen by the CDN origin controller."""

    namespace: str = ""
    name: str = ""
    origin_host: str = ""
    group: str = ""
    unmerged_paths: list[Path] = field(default_factory=list)
    origin_req_policy: str = ""
    origin_headers: dict[str, str] | None = None
    cache_policy: str = ""
    response_policy: str = ""
    origin_resp_timeout: int = 0
    alternate_domain_names: list[str] = field(default_factory=list)
    unmerged_web_acl_arn: str = ""
    is_being_removed: bool = False
    origin_access: str = ""
    cdn_class: CDNClass = field(default_factory=CDNClass)
    tags: dict[str, str] | None = None


def _annotations(obj: Any) -> dict[str, str]:
    return getattr(obj, "annotations", None) or {}


def _finalizers(obj: Any) -> list[str]:
    return getattr(obj, "finalizers", None) or []


def cdn_class_annotation_value(obj: Any) -> str:
    """Return the CDN class found in the object's annotations."""
    return _annotations(obj).get(CDN_CLASS_ANNOTATION, "")


def cdn_class_not_empty(candidate: str) -> bool:
    """Return whether a CDN class name was given."""
    return len(candidate) > 0


def has_finalizer(obj: Any) -> bool:
    """Return whether the object carries the controller's finalizer."""
    return CDN_FINALIZER in _finalizers(obj)


def add_finalizer(obj: Any) -> None:
    """Add the controller's finalizer to the object unless already present."""
    finalizers = list(_finalizers(obj))
    if CDN_FINALIZER not in finalizers:
        finalizers.append(CDN_FINALIZER)
    obj.finalizers = finalizers


def remove_finalizer(obj: Any) -> None:
    """Remove the controller's finalizer from the object."""
    obj.finalizers = [f for f in _finalizers(obj) if f != CDN_FINALIZER]


def has_group_annotation(obj: Any) -> bool:
    """Return whether the object has a non-empty CDN group annotation."""
    return len(_annotations(obj).get(CDN_GROUP_ANNOTATION, "")) > 0


def has_load_balancer(obj: Any) -> bool:
    """Return whether the Ingress has been provisioned with a load balancer hostname."""
    if not isinstance(obj, Ingress):
        return False
    return bool(obj.load_balancer_hostnames) and len(obj.load_balancer_hostnames[0]) > 0


def is_being_removed_from_desired_state(obj: Any) -> bool:
    """Return whether the object is being deleted or no longer belongs to a group."""
    if getattr(obj, "deletion_timestamp", None) is not None:
        return True
    return not has_group_annotation(obj) and has_finalizer(obj)


def used_deprecated_fields(obj: Any) -> list[str]:
    """Return the deprecated annotations present on the object."""
    return [key for key in (CF_VIEWER_FN_ANNOTATION,) if key in _annotations(obj)]


def group_annotation_value(obj: Any) -> str:
    """Return the CDN group of the object, or an empty string."""
    return _annotations(obj).get(CDN_GROUP_ANNOTATION, "")