from __future__ import annotations

from collections.abc import Sequence

from birthday_digest.date_logic import ordinal
from birthday_digest.models import DEFAULT_MAX_MESSAGE_LENGTH, DEFAULT_PRODUCT_LINK, BirthdayCandidate


def describe_days_until(days_until: int) -> str:
    if days_until == 0:
        return "today"
    if days_until == 1:
        return "tomorrow"
    return f"in {days_until} days"


def render_candidate_line(candidate: BirthdayCandidate) -> str:
    return f"{candidate.name}'s {ordinal(candidate.age_turning)} is {describe_days_until(candidate.days_until)}"


def _overflow_marker(remaining: int, suffix: str) -> str:
    return f"\n+ {remaining} more...{suffix}"


def _join(body: str, line: str) -> str:
    return f"{body}\n{line}" if body else line


def compose_message(
    candidates: Sequence[BirthdayCandidate],
    *,
    link: str = DEFAULT_PRODUCT_LINK,
    max_length: int = DEFAULT_MAX_MESSAGE_LENGTH,
) -> str | None:
    """Pack the ranked candidates into a single SMS body.

    Lines are taken greedily in order. When more than one candidate has to be
    left out, a ``+ N more...`` line reports how many. The body always ends
    with the product link and never exceeds ``max_length`` characters as long
    as ``max_length`` leaves room for the link.
    """
    if not candidates:
        return None

    suffix = f"\n{link}"
    body = ""
    included = 0

    for index, candidate in enumerate(candidates):
        extended = _join(body, render_candidate_line(candidate))
        remaining_after = len(candidates) - index - 1

        if len(extended + suffix) > max_length:
            break

        if remaining_after == 0:
            body = extended
            included += 1
            break

        if remaining_after == 1:
            with_next = _join(extended, render_candidate_line(candidates[index + 1])) + suffix
            if len(with_next) <= max_length:
                body = extended
                included += 1
                continue

        if remaining_after > 1 and len(extended + _overflow_marker(remaining_after, suffix)) <= max_length:
            body = extended
            included += 1
            break

        body = extended
        included += 1

    remaining = len(candidates) - included
    if remaining > 1:
        with_marker = body + _overflow_marker(remaining, suffix)
        if len(with_marker) <= max_length:
            return with_marker

    return body + suffix
