from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vidhub.auth.identity import AuthContext
from vidhub.core.database import get_db
from vidhub.dependencies.auth import authenticate
from vidhub.models.playlist import Playlist, PlaylistVideo
from vidhub.models.user import User
from vidhub.schemas.common import MessageOut
from vidhub.schemas.playlist import (
    PlaylistDetailOut,
    PlaylistIn,
    PlaylistOut,
    PlaylistSummaryOut,
    PlaylistUpdate,
)
from vidhub.services.ownership import get_or_404, get_owned_or_404
from vidhub.services.playlists import playlist_detail, summarize_playlists
from vidhub.services.videos import get_visible_video

router = APIRouter(prefix="/playlists", tags=["playlists"], dependencies=[Depends(authenticate)])


@router.post("", response_model=PlaylistOut, status_code=status.HTTP_201_CREATED)
def create_playlist(
    payload: PlaylistIn,
    identity: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    playlist = Playlist(
        owner_id=identity.id,
        name=payload.name,
        description=(payload.description or "").strip(),
    )
    db.add(playlist)
    db.commit()
    db.refresh(playlist)
    return playlist


@router.get("/user/{user_id}", response_model=list[PlaylistSummaryOut])
def list_user_playlists(
    user_id: int,
    db: Session = Depends(get_db),
):
    if not db.query(User.id).filter(User.id == user_id).first():
        raise HTTPException(status_code=404, detail="User not found")

    playlists = (
        db.query(Playlist)
        .filter(Playlist.owner_id == user_id)
        .order_by(Playlist.created_at.desc(), Playlist.id.desc())
        .all()
    )
    return summarize_playlists(db, playlists)


@router.get("/{playlist_id}", response_model=PlaylistDetailOut)
def get_playlist(
    playlist_id: int,
    db: Session = Depends(get_db),
):
    playlist = get_or_404(db, Playlist, playlist_id, label="Playlist")
    return playlist_detail(db, playlist)


@router.patch("/{playlist_id}", response_model=PlaylistOut)
def update_playlist(
    playlist_id: int,
    payload: PlaylistUpdate,
    identity: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    playlist = get_owned_or_404(
        db, Playlist, playlist_id, identity, label="Playlist", action="update this playlist"
    )

    data = payload.model_dump(exclude_unset=True)
    if data.get("name") is not None:
        name = data["name"].strip()
        if not name:
            raise HTTPException(status_code=400, detail="Playlist name is required")
        playlist.name = name
    if "description" in data:
        playlist.description = (data["description"] or "").strip()

    db.commit()
    db.refresh(playlist)
    return playlist


@router.delete("/{playlist_id}", response_model=MessageOut)
def delete_playlist(
    playlist_id: int,
    identity: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    playlist = get_owned_or_404(
        db, Playlist, playlist_id, identity, label="Playlist", action="delete this playlist"
    )
    db.delete(playlist)
    db.commit()
    return {"message": "Playlist deleted successfully"}


@router.post("/{playlist_id}/videos/{video_id}", response_model=PlaylistDetailOut)
def add_video(
    playlist_id: int,
    video_id: int,
    identity: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    playlist = get_owned_or_404(
        db, Playlist, playlist_id, identity, label="Playlist", action="add videos to this playlist"
    )
    get_visible_video(db, video_id, identity)

    exists = (
        db.query(PlaylistVideo.id)
        .filter(PlaylistVideo.playlist_id == playlist.id, PlaylistVideo.video_id == video_id)
        .first()
    )
    if not exists:
        db.add(PlaylistVideo(playlist_id=playlist.id, video_id=video_id))
        try:
            db.commit()
        except IntegrityError:
            # Added concurrently; set semantics make that a no-op.
            db.rollback()

    return playlist_detail(db, playlist)


@router.delete("/{playlist_id}/videos/{video_id}", response_model=PlaylistDetailOut)
def remove_video(
    playlist_id: int,
    video_id: int,
    identity: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    playlist = get_owned_or_404(
        db, Playlist, playlist_id, identity, label="Playlist", action="remove videos from this playlist"
    )
    (
        db.query(PlaylistVideo)
        .filter(PlaylistVideo.playlist_id == playlist.id, PlaylistVideo.video_id == video_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return playlist_detail(db, playlist)
