import pytest

from cdnorigin.functions import CF_FUNCTION_ASSOCIATIONS_ANNOTATION
from cdnorigin.ingress import IngressError
from cdnorigin.resources import CF_VIEWER_FN_ANNOTATION, Ingress, IngressPath, IngressRule
from cdnorigin.validation import ingress_paths, validate_ingress_function_associations

ARN = "arn:aws:cloudfront::000000000000:function/test-function-associations"

VALID_FA = f"""
/foo/*:
  viewerRequest:
    arn: {ARN}
    functionType: cloudfront
"""


def make_ingress(annotations, paths=("/foo/*",)):
    return Ingress(
        name="foo",
        namespace="bar",
        annotations=dict(annotations),
        rules=[IngressRule(paths=[IngressPath(path=p) for p in paths])],
    )


def test_valid_associations_pass_and_unknown_path_fails():
    ok = make_ingress({CF_FUNCTION_ASSOCIATIONS_ANNOTATION: VALID_FA})
    assert validate_ingress_function_associations(ok) is None

    missing = make_ingress({CF_FUNCTION_ASSOCIATIONS_ANNOTATION: VALID_FA}, paths=("/bar",))
    with pytest.raises(IngressError, match="not part of the Ingress' paths"):
        validate_ingress_function_associations(missing)


def test_unknown_path_error_names_the_path():
    ing = make_ingress({CF_FUNCTION_ASSOCIATIONS_ANNOTATION: VALID_FA}, paths=("/bar",))
    with pytest.raises(IngressError) as excinfo:
        validate_ingress_function_associations(ing)
    assert "/foo/*" in str(excinfo.value)
    assert "/bar" in str(excinfo.value)


def test_viewer_function_and_associations_together_are_invalid():
    ing = make_ingress(
        {CF_FUNCTION_ASSOCIATIONS_ANNOTATION: VALID_FA, CF_VIEWER_FN_ANNOTATION: "some-arn"}
    )
    with pytest.raises(IngressError, match="deprecated"):
        validate_ingress_function_associations(ing)


def test_viewer_function_alone_is_accepted_while_conflict_is_not():
    alone = make_ingress({CF_VIEWER_FN_ANNOTATION: "some-arn"})
    assert validate_ingress_function_associations(alone) is None
    both = make_ingress(
        {CF_VIEWER_FN_ANNOTATION: "some-arn", CF_FUNCTION_ASSOCIATIONS_ANNOTATION: VALID_FA}
    )
    with pytest.raises(IngressError):
        validate_ingress_function_associations(both)


def test_invalid_association_is_reported_with_its_path():
    fa_yaml = """
/foo/*:
  viewerRequest:
    functionType: cloudfront
"""
    ing = make_ingress({CF_FUNCTION_ASSOCIATIONS_ANNOTATION: fa_yaml})
    with pytest.raises(IngressError, match="invalid function association at path") as excinfo:
        validate_ingress_function_associations(ing)
    assert "function arn must be informed" in str(excinfo.value)


def test_unparsable_yaml_is_invalid():
    ing = make_ingress({CF_FUNCTION_ASSOCIATIONS_ANNOTATION: "\tfoo"})
    with pytest.raises(IngressError, match="parsing function associations"):
        validate_ingress_function_associations(ing)


def test_ingress_paths_skips_rules_without_http_and_keeps_order():
    ing = Ingress(
        rules=[
            IngressRule(paths=[IngressPath(path="/a"), IngressPath(path="/b")]),
            IngressRule(paths=None),
            IngressRule(paths=[IngressPath(path="/c")]),
        ]
    )
    assert ingress_paths(ing) == ["/a", "/b", "/c"]


def test_ingress_paths_of_ingress_without_rules_is_empty():
    assert ingress_paths(Ingress()) == []