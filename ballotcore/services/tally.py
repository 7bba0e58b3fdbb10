"""
Tallying engine.

Pure, read-only functions over one ballot's options and vote rows. Nothing is
cached or written; every call recomputes from the rows it is given, so it is safe
to run concurrently and against a read replica.

Ranked choice uses the Borda count: with ``n`` options, a rank ``r`` is worth
``n - r + 1`` points and an option's score is the sum over its rank counts.
"""
from collections import Counter, defaultdict
from datetime import date, datetime, timezone
from typing import Iterable, Optional, Sequence

from ballotcore.models.ballot import Ballot, BallotType
from ballotcore.models.voting_option import VotingOption
from ballotcore.models.vote import Vote
from ballotcore.schemas.analytics import (
    BallotAnalytics,
    OptionTally,
    RankTally,
    HourSlot,
    DailyActivity,
    LinearSummary,
)
from ballotcore.services.lifecycle import ballot_status

HOURS_PER_DAY = 24


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def participation_rate(unique_voters: int, eligible_users: int) -> float:
    """Share of eligible users who voted; 0 when nobody is eligible."""
    if eligible_users <= 0:
        return 0.0
    return unique_voters / eligible_users


def _percentage(count: int, total: int) -> float:
    return count / total * 100 if total else 0.0


def choice_distribution(
    options: Sequence[VotingOption],
    votes: Iterable[Vote],
) -> list[OptionTally]:
    """Vote rows per option, zero-count options included."""
    votes = list(votes)
    counts = Counter(vote.option_id for vote in votes)
    total = len(votes)
    return [
        OptionTally(
            option_id=option.id,
            title=option.title,
            votes=counts.get(option.id, 0),
            percentage=_percentage(counts.get(option.id, 0), total),
        )
        for option in options
    ]


def rankings_by_user(votes: Iterable[Vote]) -> dict[str, list[Vote]]:
    """Each user's ranked rows, most preferred first."""
    grouped: dict[str, list[Vote]] = defaultdict(list)
    for vote in votes:
        grouped[vote.user_id].append(vote)
    for rows in grouped.values():
        rows.sort(key=lambda v: (v.position or 0, _utc(v.timestamp)))
    return dict(grouped)


def rank_counts(votes: Iterable[Vote]) -> dict[str, dict[int, int]]:
    """``{option_id: {rank: count}}`` with 1-based ranks."""
    counts: dict[str, dict[int, int]] = defaultdict(lambda: defaultdict(int))
    for rows in rankings_by_user(votes).values():
        for index, vote in enumerate(rows):
            counts[vote.option_id][index + 1] += 1
    return {option_id: dict(ranks) for option_id, ranks in counts.items()}


def borda_score(ranks: dict[int, int], total_options: int) -> int:
    return sum(
        count * (total_options - rank + 1)
        for rank, count in ranks.items()
    )


def rank_distribution(
    options: Sequence[VotingOption],
    votes: Iterable[Vote],
) -> tuple[list[RankTally], Optional[str]]:
    """Rank tallies with Borda scores, and the winning option id.

    The winner is ``None`` when there are no votes or the top score is tied.
    """
    votes = list(votes)
    total_options = len(options)
    rankings = len({vote.user_id for vote in votes})
    counts = rank_counts(votes)

    tallies = []
    for option in options:
        observed = counts.get(option.id, {})
        ranks = {rank: observed.get(rank, 0) for rank in range(1, total_options + 1)}
        score = borda_score(ranks, total_options)
        max_score = rankings * total_options
        tallies.append(
            RankTally(
                option_id=option.id,
                title=option.title,
                ranks=ranks,
                score=score,
                normalized_score=score / max_score * 100 if max_score else 0.0,
            )
        )

    winner = None
    if tallies:
        best = max(t.score for t in tallies)
        leaders = [t for t in tallies if t.score == best]
        if best > 0 and len(leaders) == 1:
            winner = leaders[0].option_id
    return tallies, winner


def parse_linear_option(title: str) -> Optional[tuple[int, str]]:
    """Parse ``"<value>[,<label>]"``; the label defaults to the value."""
    value_text, _, label = title.partition(",")
    try:
        value = int(value_text.strip())
    except ValueError:
        return None
    return value, label.strip() or str(value)


def linear_summary(
    options: Sequence[VotingOption],
    votes: Iterable[Vote],
) -> LinearSummary:
    counts = Counter(vote.option_id for vote in votes)
    scale = []
    for option in options:
        parsed = parse_linear_option(option.title)
        if parsed is not None:
            scale.append((parsed[0], parsed[1], counts.get(option.id, 0)))
    if not scale:
        return LinearSummary()

    scale.sort(key=lambda item: item[0])
    total = sum(count for _, _, count in scale)
    weighted = sum(value * count for value, _, count in scale)
    top = max(count for _, _, count in scale)

    return LinearSummary(
        average=weighted / total if total else 0.0,
        min_value=scale[0][0],
        max_value=scale[-1][0],
        modes=[label for _, label, count in scale if count == top] if top > 0 else [],
    )


def text_responses(votes: Iterable[Vote]) -> list[str]:
    return [vote.text_response for vote in votes if vote.text_response]


def _empty_day() -> list[int]:
    return [0] * HOURS_PER_DAY


def hourly_activity(
    votes: Iterable[Vote],
    one_per_user_hour: bool = False,
) -> tuple[list[HourSlot], list[DailyActivity]]:
    """Votes per UTC hour, overall and per UTC date.

    With ``one_per_user_hour`` several rows from one user in the same hour of the
    same day count once.
    """
    overall = _empty_day()
    by_day: dict[date, list[int]] = defaultdict(_empty_day)
    seen: set[tuple[str, date, int]] = set()

    for vote in votes:
        ts = _utc(vote.timestamp)
        day, hour = ts.date(), ts.hour
        if one_per_user_hour:
            key = (vote.user_id, day, hour)
            if key in seen:
                continue
            seen.add(key)
        overall[hour] += 1
        by_day[day][hour] += 1

    def slots(counts: list[int]) -> list[HourSlot]:
        return [HourSlot(hour=hour, votes=count) for hour, count in enumerate(counts)]

    daily = [
        DailyActivity(date=day, hourly_distribution=slots(by_day[day]))
        for day in sorted(by_day)
    ]
    return slots(overall), daily


def tally_ballot(
    ballot: Ballot,
    votes: Sequence[Vote],
    eligible_users: int,
    now: Optional[datetime] = None,
) -> BallotAnalytics:
    """Build the full analytics view for one ballot.

    A ballot without votes still gets every option and all 24 hours, zero-filled.
    """
    options = list(ballot.options)
    ballot_type = ballot.ballot_type
    unique_voters = len({vote.user_id for vote in votes})

    hourly, daily = hourly_activity(votes, one_per_user_hour=ballot_type.allows_multiple_rows)

    analytics = BallotAnalytics(
        ballot_id=ballot.id,
        ballot_type=ballot_type,
        status=ballot_status(ballot, now),
        total_voters=unique_voters,
        total_votes=len(votes),
        eligible_users=eligible_users,
        participation_rate=participation_rate(unique_voters, eligible_users),
        choice_distribution=choice_distribution(options, votes),
        hourly_distribution=hourly,
        hourly_distribution_by_date=daily,
    )

    if ballot_type == BallotType.RANKED_CHOICE:
        analytics.rank_distribution, analytics.winner_option_id = rank_distribution(options, votes)
    elif ballot_type == BallotType.LINEAR_CHOICE:
        analytics.linear_summary = linear_summary(options, votes)
    elif ballot_type == BallotType.TEXT_INPUT:
        analytics.text_responses = text_responses(votes)

    return analytics
