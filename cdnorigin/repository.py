"""Route53 records that alias domain names to a CloudFront distribution.

The client handed to :class:`AliasRepository` follows the Route53 API shape:
``list_resource_record_sets(**params)`` returns a mapping with a
``"ResourceRecordSets"`` list, and ``change_resource_record_sets(**params)``
applies a change batch. Record sets, records and changes are plain dicts
keyed the way the Route53 API names them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from cdnorigin.alias import RR_TYPE_TXT, TXT_OWNER_KEY, Aliases, Entry

CF_HOSTED_ZONE_ID = "Z2FDTNDATAQYW2"
CF_EVALUATE_TARGET_HEALTH = False
# Number of record types Route53 supports.
NUMBER_OF_SUPPORTED_RECORD_TYPES = "13"
TXT_TTL = 300

CHANGE_ACTION_UPSERT = "UPSERT"
CHANGE_ACTION_DELETE = "DELETE"

UPSERT_COMMENT = "Upserting Alias for CloudFront distribution managed by cdn-origin-controller"
DELETE_COMMENT = "Deleting Alias for CloudFront distribution managed by cdn-origin-controller"

RecordSet = dict[str, Any]
Record = dict[str, Any]
Change = dict[str, Any]


class Route53Client(Protocol):
    """The subset of the Route53 API used by the repository."""

    def list_resource_record_sets(self, **params: Any) -> dict[str, Any]: ...

    def change_resource_record_sets(self, **params: Any) -> Any: ...


class AliasRepositoryError(Exception):
    """Raised when existing DNS records prevent managing an alias."""


@dataclass
class _FilteredRecordSets:
    address_records: list[RecordSet] = field(default_factory=list)
    txt_record: RecordSet | None = None


def _is_owned_by_this_class(ownership_txt_value: str, record: Record) -> bool:
    return record.get("Value") == ownership_txt_value


def _is_ownership_record(record: Record) -> bool:
    return TXT_OWNER_KEY in (record.get("Value") or "")


def _contains_ownership_record(records: list[Record]) -> bool:
    return any(_is_ownership_record(rec) for rec in records)


def _validate_routing_policy(rs: RecordSet | None) -> None:
    if rs is None:
        return
    for key, policy in (
        ("Weight", "weighted"),
        ("GeoLocation", "geo-location"),
        ("CidrRoutingConfig", "ip-based"),
    ):
        if rs.get(key) is not None:
            raise AliasRepositoryError(
                f'existing {rs.get("Type", "")} record ("{rs.get("Name", "")}") has {policy} '
                "routing policy. Routing policy should be simple"
            )


def _validate_ownership(ownership_txt_value: str, rs: RecordSet) -> None:
    for rec in rs.get("ResourceRecords") or []:
        if _is_owned_by_this_class(ownership_txt_value, rec):
            return
        if _is_ownership_record(rec):
            raise AliasRepositoryError(
                f"TXT record ({rs.get('Name')}) is managed by another CDN class "
                f"(ownership value: {rec.get('Value')})"
            )


def _validate_record_sets(ownership_txt_value: str, filtered: _FilteredRecordSets) -> None:
    for rs in [*filtered.address_records, filtered.txt_record]:
        _validate_routing_policy(rs)

    txt = filtered.txt_record
    if txt is None or not _contains_ownership_record(txt.get("ResourceRecords") or []):
        if filtered.address_records:
            raise AliasRepositoryError(
                "address record (A or AAAA) exists but is not managed by the controller"
            )
        return

    _validate_ownership(ownership_txt_value, txt)


def _filter_record_sets(entry: Entry, record_sets: list[RecordSet]) -> _FilteredRecordSets:
    filtered = _FilteredRecordSets()
    for rs in record_sets:
        if rs.get("Name") != entry.name:
            continue
        if rs.get("Type") in entry.types:
            filtered.address_records.append(rs)
        if rs.get("Type") == RR_TYPE_TXT:
            filtered.txt_record = rs
    return filtered


def _new_alias_change(target: str, action: str, name: str, record_type: str) -> Change:
    return {
        "Action": action,
        "ResourceRecordSet": {
            "AliasTarget": {
                "DNSName": target,
                "EvaluateTargetHealth": CF_EVALUATE_TARGET_HEALTH,
                "HostedZoneId": CF_HOSTED_ZONE_ID,
            },
            "Name": name,
            "Type": record_type,
        },
    }


def _new_alias_changes(target: str, action: str, entry: Entry) -> list[Change]:
    return [_new_alias_change(target, action, entry.name, t) for t in entry.types]


def _new_txt_change(action: str, name: str, records: list[Record]) -> Change:
    return {
        "Action": action,
        "ResourceRecordSet": {
            "Name": name,
            "ResourceRecords": records,
            "TTL": TXT_TTL,
            "Type": RR_TYPE_TXT,
        },
    }


def _ensure_txt_value(ownership_txt_value: str, records: list[Record]) -> list[Record]:
    if any(rec.get("Value") == ownership_txt_value for rec in records):
        return list(records)
    return [*records, {"Value": ownership_txt_value}]


def _remove_ownership_record(ownership_txt_value: str, records: list[Record]) -> list[Record]:
    for i, rec in enumerate(records):
        if _is_owned_by_this_class(ownership_txt_value, rec):
            return records[:i] + records[i + 1 :]
    return list(records)


def _new_txt_change_for_upsert(
    ownership_txt_value: str, name: str, existing: list[Record]
) -> Change:
    return _new_txt_change(CHANGE_ACTION_UPSERT, name, _ensure_txt_value(ownership_txt_value, existing))


def _new_txt_change_for_delete(
    ownership_txt_value: str, name: str, existing: list[Record]
) -> Change:
    records = _remove_ownership_record(ownership_txt_value, existing)
    if records:
        return _new_txt_change(CHANGE_ACTION_UPSERT, name, records)
    # A delete only succeeds when the records match the current ones.
    return _new_txt_change(CHANGE_ACTION_DELETE, name, list(existing))


class AliasRepository:
    """Creates and removes alias records and their ownership TXT records."""

    def __init__(self, client: Route53Client) -> None:
        self._client = client

    def upsert(self, aliases: Aliases) -> None:
        """Insert or update the alias records for every entry of ``aliases``."""
        if not aliases.entries:
            return

        changes: list[Change] = []
        for entry in aliases.entries:
            try:
                existing = self._existing_record_sets(
                    aliases.ownership_txt_value, aliases.hosted_zone_id, entry
                )
            except Exception as err:
                raise AliasRepositoryError(f"fetching existing DNS records: {err}") from err

            existing_txt = []
            if existing.txt_record is not None:
                existing_txt = list(existing.txt_record.get("ResourceRecords") or [])

            changes.extend(_new_alias_changes(aliases.target, CHANGE_ACTION_UPSERT, entry))
            changes.append(
                _new_txt_change_for_upsert(aliases.ownership_txt_value, entry.name, existing_txt)
            )

        self._request_changes(changes, aliases.hosted_zone_id, UPSERT_COMMENT)

    def delete(self, aliases: Aliases) -> None:
        """Delete the alias records of ``aliases`` owned by this class."""
        if not aliases.entries:
            return

        target = aliases.target
        changes: list[Change] = []
        for entry in aliases.entries:
            record_sets = self._existing_record_sets(
                aliases.ownership_txt_value, aliases.hosted_zone_id, entry
            )

            if record_sets.txt_record is None:
                raise AliasRepositoryError(
                    f"ownership TXT record ({entry.name}) not found, can't delete address records"
                )

            # The distribution may already be gone; prefer the target the record points at.
            if record_sets.address_records:
                alias_target = record_sets.address_records[0].get("AliasTarget")
                if alias_target:
                    target = alias_target["DNSName"]

            changes.extend(_new_alias_changes(target, CHANGE_ACTION_DELETE, entry))
            changes.append(
                _new_txt_change_for_delete(
                    aliases.ownership_txt_value,
                    entry.name,
                    list(record_sets.txt_record.get("ResourceRecords") or []),
                )
            )

        self._request_changes(changes, aliases.hosted_zone_id, DELETE_COMMENT)

    def _request_changes(self, changes: list[Change], hosted_zone_id: str, comment: str) -> None:
        self._client.change_resource_record_sets(
            ChangeBatch={"Changes": changes, "Comment": comment},
            HostedZoneId=hosted_zone_id,
        )

    def _alias_record_sets(self, hosted_zone_id: str, entry: Entry) -> list[RecordSet]:
        output = self._client.list_resource_record_sets(
            HostedZoneId=hosted_zone_id,
            StartRecordName=entry.name,
            MaxItems=NUMBER_OF_SUPPORTED_RECORD_TYPES,
        )
        return list((output or {}).get("ResourceRecordSets") or [])

    def _txt_record_set(self, hosted_zone_id: str, entry: Entry) -> RecordSet | None:
        output = self._client.list_resource_record_sets(
            HostedZoneId=hosted_zone_id,
            StartRecordName=entry.name,
            MaxItems="1",
            StartRecordType=RR_TYPE_TXT,
        )
        sets = (output or {}).get("ResourceRecordSets") or []
        return sets[0] if sets else None

    def _record_sets_by_entry(self, hosted_zone_id: str, entry: Entry) -> list[RecordSet]:
        sets = self._alias_record_sets(hosted_zone_id, entry)
        txt = self._txt_record_set(hosted_zone_id, entry)
        if txt is not None:
            sets.append(txt)
        return sets

    def _existing_record_sets(
        self, ownership_txt_value: str, hosted_zone_id: str, entry: Entry
    ) -> _FilteredRecordSets:
        all_sets = self._record_sets_by_entry(hosted_zone_id, entry)
        filtered = _filter_record_sets(entry, all_sets)
        try:
            _validate_record_sets(ownership_txt_value, filtered)
        except AliasRepositoryError as err:
            raise AliasRepositoryError(f"validating records: {err}") from err
        return filtered