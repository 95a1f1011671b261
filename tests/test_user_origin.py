import pytest

from cdnorigin.functions import (
    FunctionAssociations,
    FunctionType,
    OriginFunction,
    OriginRequestFunction,
    ViewerFunction,
    ViewerRequestFunction,
)
from cdnorigin.resources import CDN_GROUP_ANNOTATION, CDNIngress, Ingress, Path
from cdnorigin.user_origin import (
    CF_USER_ORIGINS_ANNOTATION,
    OriginBehavior,
    UserOrigin,
    UserOriginError,
    cdn_ingresses_for_user_origins,
    user_origins_from_yaml,
)


def _ingress(value, group=True):
    annotations = {CF_USER_ORIGINS_ANNOTATION: value}
    if group:
        annotations[CDN_GROUP_ANNOTATION] = "group"
    return Ingress(annotations=annotations)


SUCCESS_CASES = [
    (
        "Set default origin access",
        """
- host: foo.com
  paths:
    - /foo
    - /foo/*""",
        [
            CDNIngress(
                group="group",
                origin_host="foo.com",
                unmerged_paths=[Path(path_pattern="/foo"), Path(path_pattern="/foo/*")],
                origin_access="Public",
            )
        ],
    ),
    (
        "Has origin access entry",
        """
- host: foo.com
  paths:
    - /foo
    - /foo/*
  originAccess: Bucket""",
        [
            CDNIngress(
                group="group",
                origin_host="foo.com",
                unmerged_paths=[Path(path_pattern="/foo"), Path(path_pattern="/foo/*")],
                origin_access="Bucket",
            )
        ],
    ),
    (
        "Has a single user origin",
        """
- host: foo.com
  responseTimeout: 35
  paths:
    - /foo
    - /foo/*
  originRequestPolicy: None""",
        [
            CDNIngress(
                group="group",
                origin_host="foo.com",
                unmerged_paths=[Path(path_pattern="/foo"), Path(path_pattern="/foo/*")],
                origin_resp_timeout=35,
                origin_req_policy="None",
                origin_access="Public",
            )
        ],
    ),
    (
        "Has a single user origin with response policy",
        """
- host: foo.com
  paths:
    - /foo
  responsePolicy: 67f7725c-6f97-4210-82d7-5512b31e9d03""",
        [
            CDNIngress(
                group="group",
                origin_host="foo.com",
                unmerged_paths=[Path(path_pattern="/foo")],
                response_policy="67f7725c-6f97-4210-82d7-5512b31e9d03",
                origin_access="Public",
            )
        ],
    ),
    (
        "Has multiple user origins",
        """
- host: foo.com
  paths:
    - /foo
  originRequestPolicy: None
  originAccess: Bucket
- host: bar.com
  responseTimeout: 35
  paths:
    - /bar""",
        [
            CDNIngress(
                group="group",
                origin_host="foo.com",
                unmerged_paths=[Path(path_pattern="/foo")],
                origin_req_policy="None",
                origin_access="Bucket",
            ),
            CDNIngress(
                group="group",
                origin_host="bar.com",
                unmerged_paths=[Path(path_pattern="/bar")],
                origin_resp_timeout=35,
                origin_access="Public",
            ),
        ],
    ),
]


@pytest.mark.parametrize("name,value,expected", SUCCESS_CASES, ids=[c[0] for c in SUCCESS_CASES])
def test_cdn_ingresses_for_user_origins_success(name, value, expected):
    assert cdn_ingresses_for_user_origins(_ingress(value)) == expected


def test_no_annotation_gives_no_ingresses():
    assert cdn_ingresses_for_user_origins(Ingress()) == []


def test_with_viewer_function_arn_is_valid():
    value = """
- host: foo.com
  viewerFunctionARN: some-arn
  paths:
  - /foo
  - /foo/*
"""
    got = cdn_ingresses_for_user_origins(_ingress(value))
    expected = ViewerRequestFunction(
        arn="some-arn", function_type=FunctionType.CLOUDFRONT, include_body=False
    )
    assert got[0].unmerged_paths[0].function_associations.viewer_request == expected
    assert got[0].unmerged_paths[1].function_associations.viewer_request == expected


def test_with_behaviors_is_valid():
    value = """
- host: foo.com
  behaviors:
  - path: /foo
    functionAssociations:
      viewerRequest:
        arn: arn:aws:cloudfront::000000000000:function/test-function-associations
        functionType: cloudfront
      viewerResponse:
        arn: arn:aws:cloudfront::000000000000:function/test-function-associations
        functionType: cloudfront
      originRequest:
        arn: arn:aws:lambda:us-east-1:000000000000:function:test-function-associations
        includeBody: true
      originResponse:
        arn: arn:aws:lambda:us-east-1:000000000000:function:test-function-associations 
"""
    got = cdn_ingresses_for_user_origins(_ingress(value))
    assert len(got) == 1
    assert len(got[0].unmerged_paths) == 1
    assert got[0].unmerged_paths[0].path_pattern == "/foo"
    assert got[0].unmerged_paths[0].function_associations == FunctionAssociations(
        viewer_request=ViewerRequestFunction(
            arn="arn:aws:cloudfront::000000000000:function/test-function-associations",
            function_type=FunctionType.CLOUDFRONT,
        ),
        viewer_response=ViewerFunction(
            arn="arn:aws:cloudfront::000000000000:function/test-function-associations",
            function_type=FunctionType.CLOUDFRONT,
        ),
        origin_request=OriginRequestFunction(
            arn="arn:aws:lambda:us-east-1:000000000000:function:test-function-associations",
            include_body=True,
        ),
        origin_response=OriginFunction(
            arn="arn:aws:lambda:us-east-1:000000000000:function:test-function-associations",
        ),
    )


@pytest.mark.parametrize(
    "value",
    [
        "- host: foo.com",
        "- paths: [/bar]",
        "*",
        """
- host: foo.com
  paths:
    - /foo
    - /foo/*
  originAccess: invalid""",
    ],
    ids=["No path", "No host", "Invalid YAML", "Invalid Origin Access"],
)
def test_invalid_annotation_value(value):
    with pytest.raises(UserOriginError):
        cdn_ingresses_for_user_origins(_ingress(value))


def test_with_headers_is_valid():
    value = """
- host: foo.com
  responseTimeout: 30
  headers:
    static: val
    dynamic: '{{origin.host}}'
  behaviors:
  - path: /bar
"""
    got = cdn_ingresses_for_user_origins(_ingress(value, group=False))
    assert len(got) == 1
    assert got[0].origin_headers == {"static": "val", "dynamic": "{{origin.host}}"}


def test_same_path_in_paths_and_behaviors_is_invalid():
    origin = UserOrigin(
        host="foo.com", legacy_paths=["/foo"], behaviors=[OriginBehavior(path="/foo")]
    )
    with pytest.raises(UserOriginError, match="same path"):
        origin.validate()


def test_behaviors_with_functions_and_viewer_arn_is_invalid():
    origin = UserOrigin(
        host="foo.com",
        viewer_function_arn="some-arn",
        behaviors=[
            OriginBehavior(
                path="/bar",
                function_associations=FunctionAssociations(
                    origin_response=OriginFunction(arn="some-arn")
                ),
            )
        ],
    )
    with pytest.raises(UserOriginError, match="viewerFunctionArn"):
        origin.validate()


def test_paths_order_and_default_access():
    origins = user_origins_from_yaml(
        "- host: foo.com\n  paths: [/a]\n  behaviors:\n  - path: /b\n"
    )
    assert origins[0].origin_access == "Public"
    assert [p.path_pattern for p in origins[0].paths()] == ["/a", "/b"]


def test_invalid_behavior_function_is_rejected():
    value = """
- host: foo.com
  behaviors:
  - path: /bar
    functionAssociations:
      originResponse:
        arn: ""
"""
    with pytest.raises(UserOriginError, match="validating behavior function associations"):
        user_origins_from_yaml(value)