"""User-supplied origins declared in an Ingress annotation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

import yaml

from cdnorigin.functions import (
    FunctionAssociationError,
    FunctionAssociations,
    function_associations_from_mapping,
    new_fa_from_viewer_function_arn,
)
from cdnorigin.resources import CDNIngress, Path, group_annotation_value

CF_USER_ORIGIN_ACCESS_PUBLIC = "Public"
CF_USER_ORIGIN_ACCESS_BUCKET = "Bucket"

CF_USER_ORIGINS_ANNOTATION = "cdn-origin-controller.gympass.com/cf.user-origins"


class UserOriginError(ValueError):
    """Raised when user origins cannot be parsed or are invalid."""


@dataclass
class OriginBehavior:
    """A path of a user origin with its function associations."""

    path: str = ""
    function_associations: FunctionAssociations = field(default_factory=FunctionAssociations)


@dataclass
class UserOrigin:
    """An origin declared by the user rather than derived from the Ingress."""

    host: str = ""
    headers: dict[str, str] | None = None
    response_timeout: int = 0
    legacy_paths: list[str] = field(default_factory=list)
    behaviors: list[OriginBehavior] = field(default_factory=list)
    viewer_function_arn: str = ""
    request_policy: str = ""
    cache_policy: str = ""
    response_policy: str = ""
    web_acl_arn: str = ""
    origin_access: str = CF_USER_ORIGIN_ACCESS_PUBLIC

    def paths(self) -> list[Path]:
        """Return the paths of this origin, legacy paths first, then behaviors."""
        result = []
        for p in self.legacy_paths:
            fa = (
                new_fa_from_viewer_function_arn(self.viewer_function_arn)
                if self.viewer_function_arn
                else FunctionAssociations()
            )
            result.append(Path(path_pattern=p, function_associations=fa))
        result.extend(
            Path(path_pattern=b.path, function_associations=b.function_associations)
            for b in self.behaviors
        )
        return result

    def validate(self) -> None:
        """Raise UserOriginError if the origin is not usable."""
        self._validate_behaviors()
        if not self.host:
            raise UserOriginError("the origin must have a host")
        if not self.legacy_paths and not self.behaviors:
            raise UserOriginError("the origin must have at least one path or behavior")
        if self.origin_access not in (CF_USER_ORIGIN_ACCESS_PUBLIC, CF_USER_ORIGIN_ACCESS_BUCKET):
            raise UserOriginError(
                "the origin must specify a valid originAccess. Valid values: "
                f'"{CF_USER_ORIGIN_ACCESS_PUBLIC}", "{CF_USER_ORIGIN_ACCESS_BUCKET}"'
            )

    def _validate_behaviors(self) -> None:
        for b in self.behaviors:
            try:
                b.function_associations.validate()
            except FunctionAssociationError as err:
                raise UserOriginError(
                    f"validating behavior function associations: {err}"
                ) from err
            if b.path in self.legacy_paths:
                raise UserOriginError(
                    f'same path "{b.path}" informed in paths (deprecated) and behaviors. '
                    "Specify it in behaviors only"
                )
            if not b.function_associations.is_empty() and self.viewer_function_arn:
                raise UserOriginError(
                    "function associations declared in behaviors, but viewerFunctionArn is "
                    "present (deprecated). Configure all functions via behaviors only"
                )


def _scalar_str(key: str, value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise UserOriginError(f"{key} must be a scalar, got {value!r}")


def _as_int(key: str, value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    raise UserOriginError(f"{key} must be an integer, got {value!r}")


def _as_list(key: str, value: Any) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise UserOriginError(f"{key} must be a list")
    return value


def _behavior_from_mapping(data: Any) -> OriginBehavior:
    if data is None:
        return OriginBehavior()
    if not isinstance(data, Mapping):
        raise UserOriginError("behavior must be a mapping")
    try:
        fa = function_associations_from_mapping(data.get("functionAssociations"))
    except FunctionAssociationError as err:
        raise UserOriginError(str(err)) from err
    return OriginBehavior(path=_scalar_str("path", data.get("path")), function_associations=fa)


def _origin_from_mapping(data: Any) -> UserOrigin:
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise UserOriginError("each user origin must be a mapping")

    headers_raw = data.get("headers")
    headers = None
    if headers_raw is not None:
        if not isinstance(headers_raw, Mapping):
            raise UserOriginError("headers must be a mapping")
        headers = {
            _scalar_str("headers", k): _scalar_str("headers", v) for k, v in headers_raw.items()
        }

    return UserOrigin(
        host=_scalar_str("host", data.get("host")),
        headers=headers,
        response_timeout=_as_int("responseTimeout", data.get("responseTimeout")),
        legacy_paths=[_scalar_str("paths", p) for p in _as_list("paths", data.get("paths"))],
        behaviors=[_behavior_from_mapping(b) for b in _as_list("behaviors", data.get("behaviors"))],
        viewer_function_arn=_scalar_str("viewerFunctionARN", data.get("viewerFunctionARN")),
        request_policy=_scalar_str("originRequestPolicy", data.get("originRequestPolicy")),
        cache_policy=_scalar_str("cachePolicy", data.get("cachePolicy")),
        response_policy=_scalar_str("responsePolicy", data.get("responsePolicy")),
        web_acl_arn=_scalar_str("webACLARN", data.get("webACLARN")),
        origin_access=_scalar_str("originAccess", data.get("originAccess"))
        or CF_USER_ORIGIN_ACCESS_PUBLIC,
    )


def user_origins_from_yaml(data: str | bytes) -> list[UserOrigin]:
    """Parse and validate a YAML list of user origins."""
    try:
        loaded = yaml.safe_load(data)
    except yaml.YAMLError as err:
        raise UserOriginError(str(err)) from err
    if loaded is None:
        return []
    if not isinstance(loaded, list):
        raise UserOriginError("user origins must be a list")

    origins = []
    for item in loaded:
        origin = _origin_from_mapping(item)
        try:
            origin.validate()
        except UserOriginError as err:
            raise UserOriginError(f"validating user origin: {err}") from err
        origins.append(origin)
    return origins


def cdn_ingresses_for_user_origins(obj: Any) -> list[CDNIngress]:
    """Build one CDNIngress per user origin declared in the object's annotation."""
    annotations = getattr(obj, "annotations", None) or {}
    markup = annotations.get(CF_USER_ORIGINS_ANNOTATION)
    if markup is None:
        return []

    namespace = getattr(obj, "namespace", "")
    name = getattr(obj, "name", "")
    try:
        origins = user_origins_from_yaml(markup)
    except UserOriginError as err:
        raise UserOriginError(
            f"ingress {namespace}/{name}: parsing user origins data from the "
            f"{CF_USER_ORIGINS_ANNOTATION} annotation: {err}"
        ) from err

    group = group_annotation_value(obj)
    return [
        CDNIngress(
            namespace=namespace,
            name=name,
            origin_host=o.host,
            origin_headers=o.headers,
            group=group,
            unmerged_paths=o.paths(),
            origin_req_policy=o.request_policy,
            cache_policy=o.cache_policy,
            response_policy=o.response_policy,
            origin_resp_timeout=o.response_timeout,
            unmerged_web_acl_arn=o.web_acl_arn,
            origin_access=o.origin_access,
        )
        for o in origins
    ]