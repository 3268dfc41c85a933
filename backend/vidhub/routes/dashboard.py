from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from vidhub.auth.identity import AuthContext
from vidhub.core.database import get_db
from vidhub.dependencies.auth import authenticate
from vidhub.models.playlist import Playlist
from vidhub.models.video import Video
from vidhub.schemas.common import Page
from vidhub.schemas.engagement import DashboardStatsOut
from vidhub.schemas.playlist import PlaylistSummaryOut
from vidhub.schemas.video import VideoOut
from vidhub.services.dashboard import channel_stats
from vidhub.services.pagination import PageParams, build_page, page_params, paginate
from vidhub.services.playlists import summarize_playlists

router = APIRouter(prefix="/dashboard", tags=["dashboard"], dependencies=[Depends(authenticate)])


@router.get("/stats", response_model=DashboardStatsOut)
def stats(
    identity: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    return channel_stats(db, identity.id)


@router.get("/videos", response_model=Page[VideoOut])
def my_videos(
    identity: AuthContext = Depends(authenticate),
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    qry = (
        db.query(Video)
        .filter(Video.owner_id == identity.id)
        .order_by(Video.created_at.desc(), Video.id.desc())
    )
    rows, total = paginate(qry, params)
    return build_page(rows, total=total, params=params)


@router.get("/playlists", response_model=list[PlaylistSummaryOut])
def my_playlists(
    identity: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    playlists = (
        db.query(Playlist)
        .filter(Playlist.owner_id == identity.id)
        .order_by(Playlist.created_at.desc(), Playlist.id.desc())
        .all()
    )
    return summarize_playlists(db, playlists)
