from __future__ import annotations

import logging
from collections.abc import Hashable
from dataclasses import dataclass, field

from nsd.errors import BrokenChain, CyclicChain, InconsistentChain, InvalidField
from nsd.index.token_index import (
    ANNOTATIONS_BY_INSTANCE,
    SAMPLE_DATA_BY_STREAM,
    SAMPLES_BY_SCENE,
    StreamKey,
    TokenIndex,
)
from nsd.tables.schema import INSTANCE, SAMPLE, SAMPLE_ANNOTATION, SAMPLE_DATA, SCENE, token_or_none

_LOGGER = logging.getLogger("nsd.index")


@dataclass(frozen=True)
class ChainSet:
    """Chronological orderings of every chain family, keyed by parent."""

    samples_by_scene: dict[str, tuple[str, ...]] = field(default_factory=dict)
    sample_data_by_stream: dict[StreamKey, tuple[str, ...]] = field(default_factory=dict)
    annotations_by_instance: dict[str, tuple[str, ...]] = field(default_factory=dict)


def _check_links(index: TokenIndex, kind: str, parent: Hashable, members: tuple[str, ...]) -> None:
    """Every prev/next link of the group must stay in the group and be mirrored."""
    member_set = frozenset(members)
    for token in members:
        record = index.get(kind, token)
        for own_field, mirror_field in (("prev", "next"), ("next", "prev")):
            linked = token_or_none(record.get(own_field))
            if linked is None:
                continue
            if linked not in member_set:
                raise InconsistentChain(
                    kind,
                    str(parent),
                    f"{token}.{own_field} points to {linked}, which belongs to another group",
                    unexpected=frozenset({linked}),
                )
            mirrored = token_or_none(index.get(kind, linked).get(mirror_field))
            if mirrored != token:
                raise BrokenChain(
                    kind,
                    token,
                    f"{own_field} is {linked} but {linked}.{mirror_field} is {mirrored or 'empty'}",
                )


def walk_chain(
    index: TokenIndex,
    kind: str,
    parent: Hashable,
    head: str | None,
    members: tuple[str, ...],
    timestamp_field: str | None = None,
) -> tuple[str, ...]:
    """Follow ``next`` links from ``head`` and cross-check against ``members``.

    ``members`` is the grouping-index view of the same parent. The walk must
    reach exactly that set; an empty group with no head is an empty chain.
    """
    member_set = frozenset(members)
    if head is None:
        if member_set:
            raise InconsistentChain(
                kind,
                str(parent),
                f"no chain head but {len(member_set)} records are grouped under it",
                unreached=member_set,
            )
        return ()

    ordered: list[str] = []
    seen: set[str] = set()
    previous: str | None = None
    previous_timestamp = None
    token: str | None = head
    while token is not None:
        if token in seen:
            raise CyclicChain(kind, token, str(parent))
        if token not in member_set:
            raise InconsistentChain(
                kind,
                str(parent),
                f"{token} is linked into the chain but grouped elsewhere",
                unexpected=frozenset({token}),
            )
        record = index.get(kind, token)
        if previous is not None and token_or_none(record.get("prev")) != previous:
            raise BrokenChain(
                kind,
                token,
                f"prev is {record.get('prev') or 'empty'}, expected {previous}",
            )
        if timestamp_field is not None:
            timestamp = record.get(timestamp_field)
            if isinstance(timestamp, bool) or not isinstance(timestamp, int):
                raise InvalidField(kind, token, timestamp_field, f"must be an integer, got {timestamp!r}")
            if previous_timestamp is not None and not timestamp > previous_timestamp:
                raise BrokenChain(
                    kind,
                    token,
                    f"timestamp {timestamp} does not follow {previous_timestamp} of {previous}",
                )
            previous_timestamp = timestamp

        seen.add(token)
        ordered.append(token)
        previous = token
        token = token_or_none(record.get("next"))

    head_prev = token_or_none(index.get(kind, head).get("prev"))
    if head_prev is not None:
        raise BrokenChain(kind, head, f"chain head has predecessor {head_prev}")

    if seen != member_set:
        unreached = member_set - seen
        raise InconsistentChain(
            kind,
            str(parent),
            f"{len(unreached)} grouped records are not reachable from head {head}",
            unreached=frozenset(unreached),
        )
    return tuple(ordered)


def _check_declared_ends(
    kind: str,
    parent_kind: str,
    parent: str,
    chain: tuple[str, ...],
    declared_last: str | None,
    declared_count: object,
) -> None:
    tail = chain[-1] if chain else None
    if tail != declared_last:
        raise InconsistentChain(
            kind,
            parent,
            f"{parent_kind} declares last record {declared_last or 'empty'}, chain ends at {tail or 'nothing'}",
        )
    if declared_count is not None and int(declared_count) != len(chain):
        raise InconsistentChain(
            kind,
            parent,
            f"{parent_kind} declares {declared_count} records, chain has {len(chain)}",
        )


def _scene_chains(index: TokenIndex, check: bool) -> dict[str, tuple[str, ...]]:
    chains: dict[str, tuple[str, ...]] = {}
    for scene_token in index.tokens(SCENE):
        scene = index.get(SCENE, scene_token)
        members = index.group(SAMPLES_BY_SCENE, scene_token)
        _check_links(index, SAMPLE, scene_token, members)
        chain = walk_chain(
            index,
            SAMPLE,
            scene_token,
            token_or_none(scene.get("first_sample_token")),
            members,
            timestamp_field="timestamp" if check else None,
        )
        if check:
            _check_declared_ends(
                SAMPLE,
                SCENE,
                scene_token,
                chain,
                token_or_none(scene.get("last_sample_token")),
                scene.get("nbr_samples"),
            )
        chains[scene_token] = chain
    return chains


def _stream_chains(index: TokenIndex, check: bool) -> dict[StreamKey, tuple[str, ...]]:
    chains: dict[StreamKey, tuple[str, ...]] = {}
    for key in index.group_keys(SAMPLE_DATA_BY_STREAM):
        members = index.group(SAMPLE_DATA_BY_STREAM, key)
        _check_links(index, SAMPLE_DATA, key, members)
        heads = [
            token
            for token in members
            if token_or_none(index.get(SAMPLE_DATA, token).get("prev")) is None
        ]
        if not heads:
            raise CyclicChain(SAMPLE_DATA, members[0], str(key))
        if len(heads) > 1:
            raise BrokenChain(
                SAMPLE_DATA,
                heads[1],
                f"second chain head in stream {key}, first is {heads[0]}",
            )
        chains[key] = walk_chain(
            index,
            SAMPLE_DATA,
            key,
            heads[0],
            members,
            timestamp_field="timestamp" if check else None,
        )
    return chains


def _instance_chains(index: TokenIndex, check: bool) -> dict[str, tuple[str, ...]]:
    chains: dict[str, tuple[str, ...]] = {}
    for instance_token in index.tokens(INSTANCE):
        instance = index.get(INSTANCE, instance_token)
        members = index.group(ANNOTATIONS_BY_INSTANCE, instance_token)
        _check_links(index, SAMPLE_ANNOTATION, instance_token, members)
        chain = walk_chain(
            index,
            SAMPLE_ANNOTATION,
            instance_token,
            token_or_none(instance.get("first_annotation_token")),
            members,
        )
        if check:
            _check_declared_ends(
                SAMPLE_ANNOTATION,
                INSTANCE,
                instance_token,
                chain,
                token_or_none(instance.get("last_annotation_token")),
                instance.get("nbr_annotations"),
            )
        chains[instance_token] = chain
    return chains


def reconstruct_chains(index: TokenIndex, check: bool = True) -> ChainSet:
    """Rebuild every embedded linked list.

    Families run in a fixed order (scene samples, sensor streams, instance
    annotations) and parents in table order, so the first error is stable.
    ``check=False`` skips timestamp ordering and declared tail/count checks;
    link, cycle and grouping checks always run.
    """
    chains = ChainSet(
        samples_by_scene=_scene_chains(index, check),
        sample_data_by_stream=_stream_chains(index, check),
        annotations_by_instance=_instance_chains(index, check),
    )
    _LOGGER.debug(
        "chains rebuilt: scenes=%d streams=%d instances=%d",
        len(chains.samples_by_scene),
        len(chains.sample_data_by_stream),
        len(chains.annotations_by_instance),
    )
    return chains
