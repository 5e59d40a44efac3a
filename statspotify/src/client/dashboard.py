"""In-memory view state for the dashboard, filled once per successful data load."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .web_api import Artist, DashboardData, Playlist, Track, UserProfile


@dataclass
class DashboardContext:
    me: Optional[UserProfile] = None
    top_tracks: List[Track] = field(default_factory=list)
    top_artists: List[Artist] = field(default_factory=list)
    playlists: List[Playlist] = field(default_factory=list)
    # Top tracks per time range, feeding the chart views
    chart_data: Dict[str, List[Track]] = field(default_factory=dict)
    all_data: Optional[DashboardData] = None

    @property
    def is_loaded(self) -> bool:
        return self.all_data is not None

    def populate(self, data: DashboardData) -> None:
        self.me = data.me
        self.top_tracks = list(data.top_tracks.get("medium_term", []))
        self.top_artists = list(data.top_artists)
        self.playlists = list(data.playlists)
        self.chart_data = {time_range: list(tracks) for time_range, tracks in data.top_tracks.items()}
        self.all_data = data

    def reset(self) -> None:
        self.me = None
        self.top_tracks = []
        self.top_artists = []
        self.playlists = []
        self.chart_data = {}
        self.all_data = None
