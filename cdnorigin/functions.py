"""CloudFront and Lambda@Edge function associations for cache behaviors."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

import yaml

CF_FUNCTION_ASSOCIATIONS_ANNOTATION = "cdn-origin-controller.gympass.com/cf.function-associations"


class FunctionType(str, Enum):
    """Kind of function associated with a viewer event."""

    EDGE = "edge"
    CLOUDFRONT = "cloudfront"

    def __str__(self) -> str:
        return self.value


class FunctionAssociationError(ValueError):
    """Raised for invalid, conflicting or unparsable function associations."""


_VALID_TYPES = (FunctionType.EDGE, FunctionType.CLOUDFRONT)


@dataclass
class ViewerFunction:
    """A function associated with a viewer event."""

    arn: str = ""
    function_type: FunctionType | str = ""

    def _validate(self) -> None:
        if not self.arn:
            raise FunctionAssociationError("function arn must be informed")
        if self.function_type not in _VALID_TYPES:
            raise FunctionAssociationError(f'invalid function type: "{self.function_type}"')


@dataclass
class ViewerRequestFunction(ViewerFunction):
    """A function associated with the viewer request event."""

    include_body: bool = False

    def _validate(self) -> None:
        super()._validate()
        if self.function_type == FunctionType.CLOUDFRONT and self.include_body:
            raise FunctionAssociationError(
                f'includeBody is only supported for functionType "{FunctionType.EDGE}"'
            )


@dataclass
class OriginFunction:
    """A function associated with an origin event."""

    arn: str = ""

    def _validate(self) -> None:
        if not self.arn:
            raise FunctionAssociationError("function arn must be informed")


@dataclass
class OriginRequestFunction(OriginFunction):
    """A function associated with the origin request event."""

    include_body: bool = False


def _merge_slot(event: str, mine: Any, theirs: Any, checks: tuple[tuple[str, str], ...]) -> Any:
    if mine is None:
        return theirs
    if theirs is None:
        return mine
    for attr, what in checks:
        if getattr(mine, attr) != getattr(theirs, attr):
            raise FunctionAssociationError(f"{event} function informed twice with {what}")
    return mine


_DIFFERENT_ARN = ("arn", "different ARNs")
_DIFFERENT_TYPE = ("function_type", "different function types")
_DIFFERENT_BODY = ("include_body", "different body inclusion configuration")


@dataclass
class FunctionAssociations:
    """The functions bound to each event of a cache behavior."""

    viewer_request: ViewerRequestFunction | None = None
    viewer_response: ViewerFunction | None = None
    origin_request: OriginRequestFunction | None = None
    origin_response: OriginFunction | None = None

    def validate(self) -> None:
        """Raise FunctionAssociationError if any association is invalid."""
        for label, fn in (
            ("viewerRequest", self.viewer_request),
            ("viewerResponse", self.viewer_response),
            ("originRequest", self.origin_request),
            ("originResponse", self.origin_response),
        ):
            if fn is None:
                continue
            try:
                fn._validate()
            except FunctionAssociationError as err:
                raise FunctionAssociationError(f"invalid {label}: {err}") from err

        request, response = self.viewer_request, self.viewer_response
        if request is not None and response is not None and request.function_type != response.function_type:
            raise FunctionAssociationError(
                "different function types informed for viewerResponse and viewerRequest. "
                f'They must be "{FunctionType.CLOUDFRONT}" only or "{FunctionType.EDGE}" only'
            )

    def merge(self, other: FunctionAssociations) -> FunctionAssociations:
        """Return a new value combining both; raise if they conflict on an event."""
        mine = copy.deepcopy(self)
        theirs = copy.deepcopy(other)
        return FunctionAssociations(
            viewer_request=_merge_slot(
                "viewer request",
                mine.viewer_request,
                theirs.viewer_request,
                (_DIFFERENT_ARN, _DIFFERENT_TYPE, _DIFFERENT_BODY),
            ),
            viewer_response=_merge_slot(
                "viewer response",
                mine.viewer_response,
                theirs.viewer_response,
                (_DIFFERENT_ARN, _DIFFERENT_TYPE),
            ),
            origin_request=_merge_slot(
                "origin request",
                mine.origin_request,
                theirs.origin_request,
                (_DIFFERENT_ARN, _DIFFERENT_BODY),
            ),
            origin_response=_merge_slot(
                "origin response",
                mine.origin_response,
                theirs.origin_response,
                (_DIFFERENT_ARN,),
            ),
        )

    def is_empty(self) -> bool:
        """Return whether no function is associated with any event."""
        return (
            self.viewer_request is None
            and self.viewer_response is None
            and self.origin_request is None
            and self.origin_response is None
        )


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


def _as_bool(key: str, value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    raise FunctionAssociationError(f"{key} must be a boolean, got {value!r}")


def _as_function_type(value: Any) -> FunctionType | str:
    text = _as_str(value)
    try:
        return FunctionType(text)
    except ValueError:
        return text


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any] | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise FunctionAssociationError(f"{key} must be a mapping")
    return value


def function_associations_from_mapping(data: Mapping[str, Any] | None) -> FunctionAssociations:
    """Build FunctionAssociations from a decoded YAML mapping of events."""
    if data is None:
        return FunctionAssociations()
    if not isinstance(data, Mapping):
        raise FunctionAssociationError("function associations must be a mapping")

    result = FunctionAssociations()
    if (vr := _section(data, "viewerRequest")) is not None:
        result.viewer_request = ViewerRequestFunction(
            arn=_as_str(vr.get("arn")),
            function_type=_as_function_type(vr.get("functionType")),
            include_body=_as_bool("includeBody", vr.get("includeBody")),
        )
    if (vresp := _section(data, "viewerResponse")) is not None:
        result.viewer_response = ViewerFunction(
            arn=_as_str(vresp.get("arn")),
            function_type=_as_function_type(vresp.get("functionType")),
        )
    if (oreq := _section(data, "originRequest")) is not None:
        result.origin_request = OriginRequestFunction(
            arn=_as_str(oreq.get("arn")),
            include_body=_as_bool("includeBody", oreq.get("includeBody")),
        )
    if (oresp := _section(data, "originResponse")) is not None:
        result.origin_response = OriginFunction(arn=_as_str(oresp.get("arn")))
    return result


def function_associations(
    annotations: Mapping[str, str] | None,
) -> dict[str, FunctionAssociations] | None:
    """Parse the per-path function associations annotation.

    Returns None when the annotation is absent or holds an empty document.
    """
    raw = (annotations or {}).get(CF_FUNCTION_ASSOCIATIONS_ANNOTATION)
    if raw is None:
        return None
    try:
        loaded = yaml.safe_load(raw)
    except yaml.YAMLError as err:
        raise FunctionAssociationError(f"unmarshalling YAML: {err}") from err
    if loaded is None:
        return None
    if not isinstance(loaded, Mapping):
        raise FunctionAssociationError("unmarshalling YAML: expected a mapping of paths")
    return {str(path): function_associations_from_mapping(value) for path, value in loaded.items()}


def new_fa_from_viewer_function_arn(arn: str) -> FunctionAssociations:
    """Associations holding only a CloudFront viewer request function."""
    return FunctionAssociations(
        viewer_request=ViewerRequestFunction(arn=arn, function_type=FunctionType.CLOUDFRONT)
    )