"""Trigger listener: find the pushed tag and decide whether it starts a run.

The tag comes from, in order:
1. an explicit ``--tag`` argument
2. ``GITHUB_REF=refs/tags/<tag>`` set by a push event
3. the event payload at ``GITHUB_EVENT_PATH`` (push or create events)
4. the single tag pointing at HEAD in the local checkout, outside CI

A CI event for any other ref is refused rather than resolved from HEAD.

Tag filters use the GitHub Actions pattern syntax, so a filter written for
``on.push.tags`` behaves the same here.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from tagrel.core.patterns import compile_tag_pattern
from tagrel.core.result import Err, Ok, Result
from tagrel.core.structured import as_str_dict, get_str
from tagrel.git.repository import Repository
from tagrel.pipeline.errors import TriggerError

TagSource = Literal["argument", "ci_ref", "ci_event", "git"]

_TAG_REF_PREFIX = "refs/tags/"
_INVALID_TAG_RE = re.compile(r"[\s~^:?*\[\\]|\.\.|@\{|^-|^/|/$|\.lock$")


@dataclass(frozen=True, slots=True)
class TagEvent:
    tag: str
    source: TagSource


@dataclass(frozen=True, slots=True)
class _Rule:
    negated: bool
    regex: re.Pattern[str]


class TagFilter:
    """Ordered include/exclude patterns; the last matching pattern wins.

    A tag matching no positive pattern is rejected, so a filter made only of
    ``!`` patterns matches nothing.
    """

    def __init__(self, patterns: Sequence[str]) -> None:
        if not patterns:
            raise ValueError("at least one tag pattern is required")
        self._patterns = tuple(patterns)
        rules: list[_Rule] = []
        for p in patterns:
            compiled = compile_tag_pattern(p.removeprefix("!"))
            if isinstance(compiled, Err):
                raise ValueError(f"invalid tag pattern {p!r}: {compiled.error}")
            rules.append(_Rule(negated=p.startswith("!"), regex=compiled.value))
        self._rules = tuple(rules)

    @property
    def patterns(self) -> tuple[str, ...]:
        return self._patterns

    def matches(self, tag: str) -> bool:
        matched = False
        for rule in self._rules:
            if rule.regex.fullmatch(tag):
                matched = not rule.negated
        return matched


def validate_tag(tag: str) -> Result[str, TriggerError]:
    t = tag.strip()
    if not t or _INVALID_TAG_RE.search(t):
        return Err(TriggerError(kind="invalid_event", message=f"invalid tag name: {tag!r}"))
    return Ok(t)


def _tag_from_event_file(path: Path) -> Result[str | None, TriggerError]:
    try:
        obj: object = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        return Err(
            TriggerError(
                kind="invalid_event",
                message=f"cannot read event payload: {e}",
                hint=str(path),
            )
        )
    except json.JSONDecodeError as e:
        return Err(
            TriggerError(
                kind="invalid_event",
                message=f"invalid event payload JSON: {e}",
                hint=str(path),
            )
        )

    data = as_str_dict(obj)
    if data is None:
        return Err(TriggerError(kind="invalid_event", message="event payload is not an object"))

    ref = get_str(data, "ref")
    if ref is None:
        return Ok(None)
    # create events carry the bare tag name plus ref_type.
    if get_str(data, "ref_type") == "tag":
        return Ok(ref)
    if ref.startswith(_TAG_REF_PREFIX):
        return Ok(ref[len(_TAG_REF_PREFIX) :])
    return Err(_not_a_tag_push(ref))


def _not_a_tag_push(ref: str) -> TriggerError:
    return TriggerError(
        kind="no_tag",
        message=f"not a tag push: {ref}",
        hint="Releases run only from tag events; pass --tag to force one",
    )


def resolve_tag(
    *,
    explicit: str | None,
    env: Mapping[str, str],
    repo: Repository | None,
    tag_filter: TagFilter | None = None,
) -> Result[TagEvent, TriggerError]:
    """Find the tag that triggered this run."""
    if explicit is not None:
        return validate_tag(explicit).map(lambda t: TagEvent(tag=t, source="argument"))

    ref = env.get("GITHUB_REF", "")
    if ref.startswith(_TAG_REF_PREFIX):
        return validate_tag(ref[len(_TAG_REF_PREFIX) :]).map(
            lambda t: TagEvent(tag=t, source="ci_ref")
        )
    if ref:
        # A CI run for a branch or pull request never falls back to HEAD tags.
        return Err(_not_a_tag_push(ref))

    event_path = env.get("GITHUB_EVENT_PATH")
    if event_path:
        from_event = _tag_from_event_file(Path(event_path))
        if isinstance(from_event, Err):
            return from_event
        if from_event.value is not None:
            return validate_tag(from_event.value).map(
                lambda t: TagEvent(tag=t, source="ci_event")
            )
        return Err(
            TriggerError(
                kind="no_tag",
                message="event payload carries no tag",
                hint="Releases run only from tag events; pass --tag to force one",
            )
        )

    if repo is None or not repo.exists():
        return Err(
            TriggerError(
                kind="no_tag",
                message="no tag given and no tag event found",
                hint="Pass --tag or run from a tag push",
            )
        )

    tags = repo.tags_at("HEAD")
    if isinstance(tags, Err):
        return Err(
            TriggerError(
                kind="no_tag",
                message="failed to list tags at HEAD",
                hint=tags.error.message,
            )
        )

    candidates = tags.value
    if tag_filter is not None and len(candidates) > 1:
        candidates = [t for t in candidates if tag_filter.matches(t)]

    if not candidates:
        return Err(
            TriggerError(
                kind="no_tag",
                message="HEAD is not tagged",
                hint="Pass --tag or run from a tag push",
            )
        )
    if len(candidates) > 1:
        return Err(
            TriggerError(
                kind="ambiguous_tag",
                message=f"several tags point at HEAD: {', '.join(candidates)}",
                hint="Pass --tag to pick one",
            )
        )
    return validate_tag(candidates[0]).map(lambda t: TagEvent(tag=t, source="git"))
