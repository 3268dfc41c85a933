from __future__ import annotations

from sqlalchemy.orm import Session

from vidhub.models.playlist import Playlist, PlaylistVideo
from vidhub.models.video import Video
from vidhub.schemas.playlist import PlaylistDetailOut, PlaylistSummaryOut
from vidhub.schemas.video import VideoListItemOut


def _published_videos(db: Session, playlist_id: int):
    return (
        db.query(Video)
        .join(PlaylistVideo, PlaylistVideo.video_id == Video.id)
        .filter(PlaylistVideo.playlist_id == playlist_id, Video.is_published.is_(True))
    )


def summarize_playlists(db: Session, playlists: list[Playlist]) -> list[PlaylistSummaryOut]:
    """
    Adds total published videos and the first video's thumbnail to each playlist.
    """
    out: list[PlaylistSummaryOut] = []
    for p in playlists:
        videos_q = _published_videos(db, p.id)
        first = videos_q.order_by(PlaylistVideo.id.asc()).first()
        item = PlaylistSummaryOut.model_validate(p)
        item.total_videos = videos_q.count()
        item.thumbnail_url = first.thumbnail_url if first else None
        out.append(item)
    return out


def playlist_detail(db: Session, playlist: Playlist) -> PlaylistDetailOut:
    videos = _published_videos(db, playlist.id).order_by(PlaylistVideo.id.asc()).all()
    out = PlaylistDetailOut.model_validate(playlist)
    out.videos = [VideoListItemOut.model_validate(v) for v in videos]
    out.total_videos = len(videos)
    return out
