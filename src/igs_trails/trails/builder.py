from __future__ import annotations

import logging
from typing import Sequence

from igs_trails.config import AppConfig
from igs_trails.io.schema import ConversationRecord, MovementRecord
from igs_trails.models import DataPoint, User
from igs_trails.session import Session, normalize_name
from igs_trails.trails.stops import compute_stops

LOGGER = logging.getLogger(__name__)


def next_user_color(users: Sequence[User], palette: Sequence[str], fallback: str) -> str:
    used = {user.color for user in users}
    for color in palette:
        if color not in used:
            return color
    return fallback


def get_or_create_user(session: Session, name: str, config: AppConfig) -> User:
    user = session.find_user(name)
    if user is not None:
        return user
    user = User(
        name=normalize_name(name),
        color=next_user_color(
            session.users,
            config.palette.user_colors,
            config.palette.fallback_color,
        ),
    )
    session.users.append(user)
    LOGGER.debug("Created user %s with color %s", user.name, user.color)
    return user


def _time_key(point: DataPoint) -> float:
    return point.time if point.time is not None else float("-inf")


def ingest_movement_rows(
    session: Session,
    name: str,
    records: Sequence[MovementRecord],
    config: AppConfig,
) -> User:
    """Append movement samples to a user's trail and refresh its stops.

    Each record after the first is kept only when its time is strictly greater
    than the previous record's time.
    """
    user = get_or_create_user(session, name, config)
    added = 0
    for prior, record in zip(records, records[1:]):
        if record.time > prior.time:
            user.data_trail.append(DataPoint(time=record.time, x=record.x, y=record.y))
            added += 1
    user.data_trail.sort(key=_time_key)

    longest = compute_stops(user.data_trail, min_dwell=config.stops.min_dwell)
    session.max_stop_length = max(session.max_stop_length, longest)

    if records:
        end_time = max(record.time for record in records)
        session.max_time = max(session.max_time, end_time)
    session.timeline.reset(session.max_time)

    LOGGER.info("Ingested %d movement points for %s", added, user.name)
    session.notify("users")
    session.notify("timeline")
    return user


def closest_time_index(trail: Sequence[DataPoint], time: float) -> int:
    closest = -1
    best = float("inf")
    for index, point in enumerate(trail):
        if point.time is None:
            continue
        distance = abs(point.time - time)
        if distance < best:
            best = distance
            closest = index
    return closest


def insert_closest_by_time(trail: list[DataPoint], point: DataPoint) -> int:
    """Insert ``point`` next to the existing point nearest in time; return its index."""
    if point.time is None:
        trail.append(point)
        return len(trail) - 1
    closest = closest_time_index(trail, point.time)
    if closest == -1:
        trail.append(point)
        return len(trail) - 1

    anchor = trail[closest].time
    index = closest + 1 if anchor <= point.time else closest
    # Equal neighbouring times can leave the anchor short of the sorted position.
    while index < len(trail) and _time_key(trail[index]) <= point.time:
        index += 1
    while index > 0 and _time_key(trail[index - 1]) > point.time:
        index -= 1
    trail.insert(index, point)
    return index


def ingest_conversation_row(
    session: Session,
    speaker: str,
    record: ConversationRecord,
    config: AppConfig,
) -> User:
    user = get_or_create_user(session, speaker, config)
    insert_closest_by_time(user.data_trail, DataPoint(time=record.time, speech=record.talk))
    return user


def ingest_conversation_rows(
    session: Session,
    records: Sequence[ConversationRecord],
    config: AppConfig,
) -> list[User]:
    touched: dict[str, User] = {}
    for record in records:
        user = ingest_conversation_row(session, record.speaker, record, config)
        touched.setdefault(user.name, user)
    for user in touched.values():
        longest = compute_stops(user.data_trail, min_dwell=config.stops.min_dwell)
        session.max_stop_length = max(session.max_stop_length, longest)
    LOGGER.info("Ingested %d conversation turns for %d speakers", len(records), len(touched))
    session.notify("users")
    return list(touched.values())
