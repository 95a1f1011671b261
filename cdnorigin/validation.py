"""Validation of the function associations declared on an Ingress."""

from __future__ import annotations

from cdnorigin.functions import (
    CF_FUNCTION_ASSOCIATIONS_ANNOTATION,
    FunctionAssociationError,
    function_associations,
)
from cdnorigin.ingress import IngressError
from cdnorigin.resources import CF_VIEWER_FN_ANNOTATION, Ingress


def validate_ingress_function_associations(ing: Ingress) -> None:
    """Raise IngressError if the Ingress' function associations are unusable."""
    try:
        all_fas = function_associations(ing.annotations)
    except FunctionAssociationError as err:
        raise IngressError(f"parsing function associations: {err}") from err

    if all_fas is None:
        return

    if (ing.annotations or {}).get(CF_VIEWER_FN_ANNOTATION, ""):
        raise IngressError(
            f'can\'t use "{CF_VIEWER_FN_ANNOTATION}" (deprecated) and '
            f'"{CF_FUNCTION_ASSOCIATIONS_ANNOTATION}" at the same time, '
            f'prefer "{CF_FUNCTION_ASSOCIATIONS_ANNOTATION}"'
        )

    paths = ingress_paths(ing)
    for fa_path, fa in all_fas.items():
        try:
            fa.validate()
        except FunctionAssociationError as err:
            raise IngressError(
                f'invalid function association at path "{fa_path}": {err}'
            ) from err

        if fa_path not in paths:
            raise IngressError(
                f'function associations references a path "{fa_path}" that is not part '
                f"of the Ingress' paths [{' '.join(paths)}]"
            )


def ingress_paths(ing: Ingress) -> list[str]:
    """Return every HTTP path of the Ingress rules, in order."""
    return [p.path for rule in ing.rules if rule.paths is not None for p in rule.paths]