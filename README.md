# cdnorigin

`cdnorigin` turns Ingress-style resources and their annotations into the
desired state of a CDN distribution, and keeps the DNS alias records that
point at that distribution in line with it.

## What it covers

- **Function associations** (`cdnorigin.functions`): `FunctionAssociations`
  with its `ViewerRequestFunction`, `ViewerFunction`, `OriginRequestFunction`
  and `OriginFunction` slots. `validate()` checks ARNs, function types
  (`FunctionType.EDGE` / `FunctionType.CLOUDFRONT`) and `includeBody` use;
  `merge()` combines two sets and raises on conflicting events;
  `function_associations(annotations)` parses the per-path YAML annotation.
- **Ingress model** (`cdnorigin.resources`): the `Ingress`, `IngressRule`,
  `IngressPath`, `CDNClass`, `Path` and `CDNIngress` dataclasses, plus
  helpers such as `has_finalizer`, `add_finalizer`, `remove_finalizer`,
  `has_group_annotation`, `has_load_balancer`,
  `is_being_removed_from_desired_state` and `used_deprecated_fields`.
- **Ingress conversion** (`cdnorigin.ingress`): `new_cdn_ingress_from_v1`
  reads an `Ingress`'s annotations (origin request, cache and response
  policies, response timeout, alternate domain names, tags, origin headers,
  WAF ACL, function associations) into a `CDNIngress`.
  `parse_origin_headers` parses `key=value,key=value` strings.
- **Shared parameters**: `new_shared_ingress_params` merges the paths and the
  WAF ACL of several `CDNIngress` objects; `SharedIngressParams.paths_from_origin`
  returns the merged paths of one origin. Conflicts raise
  `ConflictingPathsError` or `ConflictingWebACLError`.
- **User origins** (`cdnorigin.user_origin`): `user_origins_from_yaml`
  parses and validates extra origins declared in YAML (`originAccess`
  defaults to `Public`); `cdn_ingresses_for_user_origins` builds one
  `CDNIngress` per origin declared on an object.
- **Fetching** (`cdnorigin.fetcher`): `IngressFetcher(client).fetch_by(cdn_class, predicate)`
  lists ingresses through any object with a `list_ingresses()` method and
  returns the matching `CDNIngress` objects, each followed by its user origins.
- **Validation** (`cdnorigin.validation`):
  `validate_ingress_function_associations` checks the function association
  annotation against the ingress's own paths (`ingress_paths`).
- **DNS aliases** (`cdnorigin.alias`, `cdnorigin.repository`): `new_aliases`
  builds `Aliases` (A records, plus AAAA when IPv6 is enabled) with
  normalized domain names; `AliasRepository(client)` upserts or deletes the
  alias records and their TXT ownership record. The client must offer
  `list_resource_record_sets(**params)` and
  `change_resource_record_sets(**params)` in the Route53 API shape.
- **String helpers** (`cdnorigin.strhelper`): `StringSet`, `contains`,
  `filter_strings`, `merge_maps`, `is_empty_or_none`.

## Installing

```
pip install .
```

Running the tests needs the `test` extra:

```
pip install ".[test]"
pytest
```

## Example

```python
from cdnorigin.functions import function_associations
from cdnorigin.alias import new_aliases

annotations = {
    "cdn-origin-controller.gympass.com/cf.function-associations": """
/foo/*:
  viewerRequest:
    arn: arn:aws:cloudfront::000000000000:function/example
    functionType: cloudfront
""",
}
paths = function_associations(annotations)
paths["/foo/*"].validate()          # raises FunctionAssociationError if invalid

aliases = new_aliases(
    "d111111abcdef8.cloudfront.net.", "ZONEEXAMPLE", "my-class",
    ["www.example.com"], ipv6_enabled=True,
)
print(aliases.domains())            # ['www.example.com.']
```

Errors are reported by raising exceptions: `FunctionAssociationError`,
`IngressError`, `SharedParamsError` (and its subclasses), `UserOriginError`
and `AliasRepositoryError`.

## What it does not do

The package is a library with no command. It does not talk to a Kubernetes
cluster, watch or reconcile resources, or create and update CloudFront
distributions, certificates or access controls. Listing ingresses and
calling the DNS API are left to the client objects you pass to
`IngressFetcher` and `AliasRepository`.