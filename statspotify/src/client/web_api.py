"""
Spotify Web API access for the dashboard.

JSON from the Web API is validated into typed records here, at the fetch boundary,
so the rest of the client never has to probe dicts defensively.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError

from .config import API_TIMEOUT_SECONDS

API_BASE = "https://api.spotify.com"
TIME_RANGES = ("short_term", "medium_term", "long_term")
TOP_LIMIT = 50


class Image(BaseModel):
    url: str
    width: Optional[int] = None
    height: Optional[int] = None


class ArtistRef(BaseModel):
    id: Optional[str] = None
    name: str


class Album(BaseModel):
    id: Optional[str] = None
    name: str = ""
    images: List[Image] = Field(default_factory=list)
    release_date: Optional[str] = None

    @property
    def release_year(self) -> Optional[str]:
        return self.release_date.split("-")[0] if self.release_date else None


class Track(BaseModel):
    id: str
    name: str
    artists: List[ArtistRef] = Field(default_factory=list)
    album: Optional[Album] = None
    duration_ms: int = 0
    popularity: Optional[int] = None
    explicit: bool = False
    preview_url: Optional[str] = None

    @property
    def artist_names(self) -> str:
        return ", ".join(a.name for a in self.artists)

    @property
    def duration_label(self) -> str:
        """m:ss"""
        minutes, rest = divmod(self.duration_ms, 60000)
        return f"{minutes}:{rest // 1000:02d}"


class Artist(BaseModel):
    id: str
    name: str
    genres: List[str] = Field(default_factory=list)
    popularity: Optional[int] = None
    images: List[Image] = Field(default_factory=list)


class PlaylistTracks(BaseModel):
    total: int = 0


class Playlist(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    images: Optional[List[Image]] = None
    tracks: Optional[PlaylistTracks] = None


class UserProfile(BaseModel):
    id: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    country: Optional[str] = None
    product: Optional[str] = None
    images: List[Image] = Field(default_factory=list)


class AudioFeatures(BaseModel):
    id: str
    danceability: Optional[float] = None
    energy: Optional[float] = None
    valence: Optional[float] = None
    acousticness: Optional[float] = None
    instrumentalness: Optional[float] = None
    liveness: Optional[float] = None
    speechiness: Optional[float] = None
    tempo: Optional[float] = None
    loudness: Optional[float] = None
    key: Optional[int] = None
    mode: Optional[int] = None


class DashboardData(BaseModel):
    """Everything the dashboard views render after login."""
    me: UserProfile
    top_tracks: Dict[str, List[Track]]
    top_artists: List[Artist]
    playlists: List[Playlist]


class TrackInsights(BaseModel):
    track: Track
    features: AudioFeatures

    def popularity_label(self) -> str:
        popularity = self.track.popularity or 0
        if popularity >= 80:
            return "Extremely popular! This is a major hit."
        if popularity >= 60:
            return "Very popular track with strong listener engagement."
        if popularity >= 40:
            return "Moderately popular with a solid fanbase."
        if popularity >= 20:
            return "Niche appeal, loved by dedicated fans."
        return "Hidden gem waiting to be discovered."


class WebApiError(Exception):
    """A Web API call failed. status_code is None for timeouts and transport errors."""

    def __init__(self, status_code: Optional[int], message: str):
        self.status_code = status_code
        super().__init__(f"API error {status_code}: {message}" if status_code else message)

    @property
    def invalid_token(self) -> bool:
        return self.status_code == 401


def _items(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    # Paging objects can contain null entries (e.g. deleted playlists)
    return [item for item in payload.get("items") or [] if item]


class SpotifyWebApi:
    """Bearer-authenticated GETs against api.spotify.com with a per-request timeout."""

    def __init__(
        self,
        access_token: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = API_TIMEOUT_SECONDS,
        base_url: str = API_BASE,
    ):
        self.access_token = access_token
        self._owns_client = http_client is None
        self.http = http_client or httpx.AsyncClient()
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")

    async def get(self, path: str) -> Dict[str, Any]:
        try:
            resp = await self.http.get(
                f"{self.base_url}{path}",
                headers={"Authorization": f"Bearer {self.access_token}"},
                timeout=self.timeout,
            )
        except httpx.TimeoutException as exc:
            raise WebApiError(None, "Request timeout - Spotify API is not responding") from exc
        except httpx.HTTPError as exc:
            raise WebApiError(None, f"Spotify API unreachable: {type(exc).__name__}") from exc
        if not resp.is_success:
            raise WebApiError(resp.status_code, resp.text)
        try:
            return resp.json()
        except ValueError as exc:
            raise WebApiError(resp.status_code, "Response was not JSON") from exc

    async def load_dashboard(self) -> DashboardData:
        """Fetch profile, top tracks per time range, top artists and playlists."""
        me = await self.get("/v1/me")
        top_tracks = {}
        for time_range in TIME_RANGES:
            page = await self.get(f"/v1/me/top/tracks?limit={TOP_LIMIT}&time_range={time_range}")
            top_tracks[time_range] = _items(page)
        artists = await self.get(f"/v1/me/top/artists?limit={TOP_LIMIT}&time_range=medium_term")
        playlists = await self.get(f"/v1/me/playlists?limit={TOP_LIMIT}")
        try:
            return DashboardData(
                me=me,
                top_tracks=top_tracks,
                top_artists=_items(artists),
                playlists=_items(playlists),
            )
        except ValidationError as exc:
            raise WebApiError(None, f"Unexpected Web API response shape: {exc.error_count()} errors") from exc

    async def track_insights(self, track_id: str) -> TrackInsights:
        features = await self.get(f"/v1/audio-features/{track_id}")
        track = await self.get(f"/v1/tracks/{track_id}")
        try:
            return TrackInsights(track=track, features=features)
        except ValidationError as exc:
            raise WebApiError(None, f"Unexpected Web API response shape: {exc.error_count()} errors") from exc

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http.aclose()
