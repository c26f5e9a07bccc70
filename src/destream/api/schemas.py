"""
Pydantic schemas for data crossing the wire.

Covers the in-page session object read by the browser, the session cache
file, and the subset of the platform API responses destream consumes. Extra
fields are ignored; only the fields below are validated.

Example:
    >>> info = SessionInfo.model_validate(
    ...     {"AccessToken": "t", "ApiGatewayUri": "https://api/", "ApiGatewayVersion": "1.4"}
    ... )
    >>> info.to_session().api_gateway_version
    '1.4'
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from destream.models.session import Session

HLS_MIME_TYPE = "application/vnd.apple.mpegurl"


class SessionInfo(BaseModel):
    """The provider's session object (in-page ``sessionInfo`` and cache file)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    access_token: str = Field(alias="AccessToken", min_length=1)
    api_gateway_uri: str = Field(alias="ApiGatewayUri", min_length=1)
    api_gateway_version: str = Field(alias="ApiGatewayVersion", min_length=1)

    def to_session(self) -> Session:
        return Session(
            access_token=self.access_token,
            api_gateway_uri=self.api_gateway_uri,
            api_gateway_version=self.api_gateway_version,
        )

    @classmethod
    def from_session(cls, session: Session) -> SessionInfo:
        return cls(
            access_token=session.access_token,
            api_gateway_uri=session.api_gateway_uri,
            api_gateway_version=session.api_gateway_version,
        )


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PlaybackUrl(_ApiModel):
    mime_type: str = Field(alias="mimeType", default="")
    playback_url: str = Field(alias="playbackUrl")


class PosterImageSize(_ApiModel):
    url: str | None = None


class PosterImage(_ApiModel):
    medium: PosterImageSize | None = None


class Media(_ApiModel):
    duration: str = "PT0S"


class Creator(_ApiModel):
    name: str = ""
    mail: str = ""


class VideoInfoResponse(_ApiModel):
    """Response of ``videos/<guid>?$expand=creator``."""

    id: str = ""
    name: str
    published_date: str = Field(alias="publishedDate", default="")
    playback_urls: list[PlaybackUrl] = Field(alias="playbackUrls", default_factory=list)
    poster_image: PosterImage | None = Field(alias="posterImage", default=None)
    media: Media = Field(default_factory=Media)
    creator: Creator | None = None

    @property
    def hls_url(self) -> str | None:
        """The HLS playback URL, if the video has one."""
        for entry in self.playback_urls:
            if entry.mime_type == HLS_MIME_TYPE:
                return entry.playback_url
        return None

    @property
    def poster_url(self) -> str | None:
        if self.poster_image and self.poster_image.medium:
            return self.poster_image.medium.url
        return None


class TextTrack(_ApiModel):
    url: str
    language: str = ""


class TextTracksResponse(_ApiModel):
    """Response of ``videos/<guid>/texttracks``."""

    value: list[TextTrack] = Field(default_factory=list)


class GroupVideo(_ApiModel):
    id: str


class GroupVideosResponse(_ApiModel):
    """Response of ``groups/<guid>/videos``."""

    value: list[GroupVideo] = Field(default_factory=list)
