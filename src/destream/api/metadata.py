"""
Resolve video identifiers into downloadable Video descriptors.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from destream.api.schemas import GroupVideosResponse, TextTracksResponse, VideoInfoResponse
from destream.config import defaults
from destream.exceptions import ApiError, InvalidVideoError
from destream.models.video import Video
from destream.utils.formatting import (
    duration_to_chunks,
    format_duration,
    iso_duration_to_seconds,
    split_published,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from destream.api.client import ApiClient

logger = logging.getLogger(__name__)

GROUP_PAGE_SIZE = 100

# Statuses that mean "this id does not resolve" rather than a transport failure
_NOT_FOUND_STATUSES = (400, 403, 404)


def _get_video_info(client: ApiClient, video_id: str) -> VideoInfoResponse:
    try:
        data = client.call(f"videos/{video_id}", params={"$expand": "creator"})
    except ApiError as e:
        if e.status_code in _NOT_FOUND_STATUSES:
            raise InvalidVideoError(f"Video {video_id} not found", video_id=video_id) from e
        raise

    try:
        return VideoInfoResponse.model_validate(data)
    except ValidationError as e:
        raise InvalidVideoError(
            f"Unexpected metadata for video {video_id}: {e.error_count()} error(s)",
            video_id=video_id,
        ) from e


def _get_captions_url(client: ApiClient, video_id: str) -> str | None:
    try:
        data = client.call(f"videos/{video_id}/texttracks")
        tracks = TextTracksResponse.model_validate(data).value
    except (ApiError, ValidationError) as e:
        logger.warning(f"Could not fetch captions for {video_id}: {e}")
        return None

    if not tracks:
        logger.info(f"No captions available for {video_id}")
        return None
    return tracks[0].url


def fetch_video_info(
    client: ApiClient,
    video_ids: Sequence[str],
    want_captions: bool = False,
    seconds_per_chunk: float = defaults.SECONDS_PER_CHUNK,
) -> list[Video]:
    """Fetch metadata for every id, preserving order.

    Args:
        client: Authenticated API client
        video_ids: Video GUIDs
        want_captions: Also look up the first caption track
        seconds_per_chunk: Chunk size used for ``Video.total_chunks``

    Returns:
        One Video per id

    Raises:
        InvalidVideoError: If any id cannot be resolved (the whole batch fails)
        ApiError: On other API failures
    """
    videos = []
    for video_id in video_ids:
        info = _get_video_info(client, video_id)
        playback_url = info.hls_url
        if playback_url is None:
            raise InvalidVideoError(f"Video {video_id} has no HLS stream", video_id=video_id)

        try:
            seconds = iso_duration_to_seconds(info.media.duration)
        except ValueError:
            logger.warning(f"Unparsable duration {info.media.duration!r} for {video_id}")
            seconds = 0.0

        publish_date, publish_time = split_published(info.published_date)
        creator = info.creator
        videos.append(
            Video(
                id=video_id,
                title=info.name,
                playback_url=playback_url,
                poster_image_url=info.poster_url,
                total_chunks=duration_to_chunks(seconds, seconds_per_chunk),
                publish_date=publish_date,
                publish_time=publish_time,
                duration=format_duration(seconds),
                author=creator.name if creator else "",
                author_email=creator.mail if creator else "",
                unique_id=video_id[-8:],
                captions_url=_get_captions_url(client, video_id) if want_captions else None,
            )
        )
        logger.debug(f"Resolved {video_id}: {info.name}")
    return videos


def fetch_group_video_ids(client: ApiClient, group_id: str) -> list[str]:
    """List the ids of the videos in a group, oldest first.

    Raises:
        InvalidVideoError: If the group cannot be resolved
    """
    try:
        data = client.call(
            f"groups/{group_id}/videos",
            params={"$top": GROUP_PAGE_SIZE, "$orderby": "publishedDate asc"},
        )
        response = GroupVideosResponse.model_validate(data)
    except ApiError as e:
        if e.status_code in _NOT_FOUND_STATUSES:
            raise InvalidVideoError(f"Group {group_id} not found", video_id=group_id) from e
        raise
    except ValidationError as e:
        raise InvalidVideoError(f"Unexpected response for group {group_id}", video_id=group_id) from e

    ids = [video.id for video in response.value]
    logger.info(f"Group {group_id}: {len(ids)} video(s)")
    return ids
