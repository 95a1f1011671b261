"""Conversion of Ingresses into CDNIngresses and merging of parameters shared between them."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

import yaml

from cdnorigin.functions import (
    CF_FUNCTION_ASSOCIATIONS_ANNOTATION,
    FunctionAssociationError,
    FunctionAssociations,
    function_associations,
    new_fa_from_viewer_function_arn,
)
from cdnorigin.resources import (
    CF_ALTERNATE_DOMAIN_NAMES_ANNOTATION,
    CF_CACHE_POLICY_ANNOTATION,
    CF_ORIG_HEADERS_ANNOTATION,
    CF_ORIG_REQ_POLICY_ANNOTATION,
    CF_ORIG_RESP_TIMEOUT_ANNOTATION,
    CF_RESPONSE_POLICY_ANNOTATION,
    CF_TAGS_ANNOTATION,
    CF_VIEWER_FN_ANNOTATION,
    CF_WEB_ACL_ARN_ANNOTATION,
    CDNClass,
    CDNIngress,
    Ingress,
    Path,
    group_annotation_value,
    is_being_removed_from_desired_state,
)
from cdnorigin.user_origin import CF_USER_ORIGIN_ACCESS_PUBLIC

logger = logging.getLogger(__name__)

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_INTEGER = re.compile(r"[+-]?[0-9]+")


class IngressError(ValueError):
    """Raised when an Ingress cannot be turned into a CDNIngress."""


class SharedParamsError(IngressError):
    """Raised when parameters shared between Ingresses cannot be merged."""


class ConflictingWebACLError(SharedParamsError):
    """Raised when Ingresses of one group name different WAF WebACLs."""


class ConflictingPathsError(SharedParamsError):
    """Raised when the same path carries conflicting function associations."""


@dataclass
class SharedIngressParams:
    """Parameters which might be specified in several Ingresses of a group."""

    web_acl_arn: str = ""
    paths_by_origin: dict[str, list[Path]] = field(default_factory=dict)

    def paths_from_origin(self, origin_host: str) -> list[Path]:
        """Return the merged paths served by ``origin_host``."""
        return list(self.paths_by_origin.get(origin_host, ()))


def new_shared_ingress_params(ingresses: Iterable[CDNIngress]) -> SharedIngressParams:
    """Merge the shared parameters of ``ingresses``; raise on conflicts."""
    ingresses = list(ingresses)
    try:
        acl = _merged_web_acl(ingresses)
    except ValueError as err:
        raise ConflictingWebACLError(f"conflicting WAF WebACL ARNs: {err}") from err

    try:
        paths = _merged_paths(ingresses)
    except FunctionAssociationError as err:
        raise ConflictingPathsError(f"conflicting path configuration: {err}") from err

    return SharedIngressParams(web_acl_arn=acl, paths_by_origin=paths)


def _merged_paths(ingresses: list[CDNIngress]) -> dict[str, list[Path]]:
    # Paths are keyed by pattern and type only, so the same path declared in
    # several Ingresses gets its function associations merged.
    merged: dict[str, dict[tuple[str, str], FunctionAssociations]] = {}
    for ing in ingresses:
        by_path = merged.setdefault(ing.origin_host, {})
        for p in ing.unmerged_paths:
            key = (p.path_pattern, p.path_type)
            existing = by_path.get(key)
            if existing is None:
                by_path[key] = p.function_associations
                continue
            try:
                by_path[key] = existing.merge(p.function_associations)
            except FunctionAssociationError as err:
                raise FunctionAssociationError(
                    f'conflicting function associations on "{p.path_pattern}": {err}'
                ) from err

    return {
        origin: [
            Path(path_pattern=pattern, path_type=path_type, function_associations=fa)
            for (pattern, path_type), fa in by_path.items()
        ]
        for origin, by_path in merged.items()
        if by_path
    }


def _merged_web_acl(ingresses: list[CDNIngress]) -> str:
    arns = {ing.unmerged_web_acl_arn for ing in ingresses if ing.unmerged_web_acl_arn}
    if len(arns) > 1:
        raise ValueError(f"more than one ACL specified: {sorted(arns)}")
    return next(iter(arns), "")


def new_cdn_ingress_from_v1(ing: Ingress, cdn_class: CDNClass) -> CDNIngress:
    """Build a CDNIngress from a v1 Ingress belonging to ``cdn_class``."""
    annotations = ing.annotations or {}
    tags = _tags(annotations)
    paths = _paths(ing)
    headers = _headers(annotations)

    return CDNIngress(
        namespace=ing.namespace,
        name=ing.name,
        origin_host=ing.load_balancer_hostnames[0] if ing.load_balancer_hostnames else "",
        group=group_annotation_value(ing),
        unmerged_paths=paths,
        origin_req_policy=annotations.get(CF_ORIG_REQ_POLICY_ANNOTATION, ""),
        origin_headers=headers,
        cache_policy=annotations.get(CF_CACHE_POLICY_ANNOTATION, ""),
        response_policy=annotations.get(CF_RESPONSE_POLICY_ANNOTATION, ""),
        origin_resp_timeout=_origin_resp_timeout(annotations),
        alternate_domain_names=_alternate_domain_names(annotations),
        unmerged_web_acl_arn=annotations.get(CF_WEB_ACL_ARN_ANNOTATION, ""),
        is_being_removed=is_being_removed_from_desired_state(ing),
        origin_access=CF_USER_ORIGIN_ACCESS_PUBLIC,
        cdn_class=cdn_class,
        tags=tags,
    )


def _paths(ing: Ingress) -> list[Path]:
    try:
        fa = function_associations(ing.annotations)
    except FunctionAssociationError as err:
        raise IngressError(f"parsing function associations from annotation: {err}") from err

    viewer_fn = (ing.annotations or {}).get(CF_VIEWER_FN_ANNOTATION, "")
    if viewer_fn and fa:
        raise IngressError(
            f'can\'t use "{CF_VIEWER_FN_ANNOTATION}" (deprecated) and '
            f'"{CF_FUNCTION_ASSOCIATIONS_ANNOTATION}" at the same time, '
            f'prefer "{CF_FUNCTION_ASSOCIATIONS_ANNOTATION}"'
        )

    if viewer_fn:
        return [
            Path(
                path_pattern=p.path,
                path_type=p.path_type,
                function_associations=new_fa_from_viewer_function_arn(viewer_fn),
            )
            for p in _http_paths(ing)
        ]
    return _paths_for_function_associations(ing, fa or {})


def _http_paths(ing: Ingress):
    for rule in ing.rules:
        if rule.paths is None:
            continue
        yield from rule.paths


def _paths_for_function_associations(
    ing: Ingress, fa: Mapping[str, FunctionAssociations]
) -> list[Path]:
    paths = []
    for p in _http_paths(ing):
        path = Path(path_pattern=p.path, path_type=p.path_type)
        candidate = fa.get(p.path, FunctionAssociations())
        try:
            candidate.validate()
        except FunctionAssociationError as err:
            # The offending Ingress reports the error itself when reconciled;
            # don't halt computing the desired state for the others.
            logger.error(
                "Found invalid function association when calculating desired state: %s "
                "(functionAssociation=%r, invalidIngress=%s/%s)",
                err,
                candidate,
                ing.namespace,
                ing.name,
            )
        else:
            path.function_associations = candidate
        paths.append(path)
    return paths


def _headers(annotations: Mapping[str, str]) -> dict[str, str] | None:
    raw = annotations.get(CF_ORIG_HEADERS_ANNOTATION)
    if raw is None:
        return None
    try:
        return parse_origin_headers(raw)
    except IngressError as err:
        raise IngressError(
            f'parsing origin headers from annotation "{CF_ORIG_HEADERS_ANNOTATION}": {err}'
        ) from err


def parse_origin_headers(raw_headers: str) -> dict[str, str] | None:
    """Parse ``key=value`` pairs separated by commas; None for an empty string."""
    if not raw_headers:
        return None
    result = {}
    for kv in raw_headers.split(","):
        parts = kv.split("=")
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise IngressError(
                f"informed origin header does not follow 'key=value' format: {kv}"
            )
        result[parts[0]] = parts[1]
    return result


def _origin_resp_timeout(annotations: Mapping[str, str]) -> int:
    value = annotations.get(CF_ORIG_RESP_TIMEOUT_ANNOTATION, "")
    if not _INTEGER.fullmatch(value):
        return 0
    return max(_INT64_MIN, min(_INT64_MAX, int(value)))


def _tags(annotations: Mapping[str, str]) -> dict[str, str]:
    raw = annotations.get(CF_TAGS_ANNOTATION)
    if raw is None:
        return {}
    try:
        loaded: Any = yaml.load(raw, Loader=yaml.BaseLoader)
    except yaml.YAMLError as err:
        raise IngressError(f"invalid custom tags configuration: {err}") from err
    if loaded is None:
        return {}
    if not isinstance(loaded, Mapping):
        raise IngressError("invalid custom tags configuration: expected a mapping")
    tags = {}
    for key, value in loaded.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise IngressError(
                f"invalid custom tags configuration: tag {key!r} must map to a string"
            )
        tags[key] = value
    return tags


def _alternate_domain_names(annotations: Mapping[str, str]) -> list[str]:
    value = annotations.get(CF_ALTERNATE_DOMAIN_NAMES_ANNOTATION, "")
    if not value:
        return []
    return list(dict.fromkeys(value.split(",")))