from __future__ import annotations

from sqlalchemy.orm import Query

from vidhub.models.comment import Comment
from vidhub.models.community_post import CommunityPost
from vidhub.models.follow import Follow
from vidhub.models.like import Like
from vidhub.services import likes


# -----------------------------
# Likes
# -----------------------------
def test_video_like_toggles_and_shows_in_detail(client_for, users, make_video, db_session):
    user_a, user_b = users
    video = make_video(user_a)

    with client_for(user_b) as c:
        assert c.post(f"/likes/video/{video.id}").json() == {"is_liked": True}
        detail = c.get(f"/videos/{video.id}").json()
        assert detail["likes_count"] == 1
        assert detail["is_liked"] is True

        liked = c.get("/likes/videos").json()
        assert [v["id"] for v in liked["items"]] == [video.id]

        assert c.post(f"/likes/video/{video.id}").json() == {"is_liked": False}
        assert c.get("/likes/videos").json()["total"] == 0

    assert db_session.query(Like).count() == 0


def test_like_unknown_targets_are_404(client):
    assert client.post("/likes/video/999").status_code == 404
    res = client.post("/likes/comment/999")
    assert res.status_code == 404
    assert res.json()["message"] == "Comment not found"
    res = client.post("/likes/post/999")
    assert res.json()["message"] == "Community post not found"


def test_toggle_like_survives_a_duplicate_insert_race(db_session, users, make_video, monkeypatch):
    user_a, user_b = users
    video = make_video(user_a)
    db_session.add(Like(liked_by_id=user_b.id, video_id=video.id))
    db_session.commit()

    # Conditional delete sees nothing, so the insert hits the unique constraint.
    with monkeypatch.context() as m:
        m.setattr(Query, "delete", lambda self, synchronize_session=None: 0)
        liked = likes.toggle_like(db_session, user_id=user_b.id, target=likes.VIDEO_TARGET, target_id=video.id)

    assert liked is True
    assert db_session.query(Like).count() == 1


def test_comment_and_post_likes_are_counted_per_viewer(client_for, users, db_session):
    user_a, user_b = users
    post = CommunityPost(owner_id=user_a.id, content="news")
    db_session.add(post)
    db_session.commit()
    comment = Comment(owner_id=user_a.id, community_post_id=post.id, content="c1")
    db_session.add(comment)
    db_session.commit()

    with client_for(user_b) as c:
        assert c.post(f"/likes/post/{post.id}").json()["is_liked"] is True
        assert c.post(f"/likes/comment/{comment.id}").json()["is_liked"] is True

        posts = c.get(f"/community-posts/user/{user_a.id}").json()
        assert posts["items"][0]["likes_count"] == 1
        assert posts["items"][0]["is_liked"] is True

        comments = c.get(f"/comments/post/{post.id}").json()
        assert comments["items"][0]["likes_count"] == 1
        assert comments["items"][0]["is_liked"] is True
        assert comments["items"][0]["owner"]["username"] == "alice"

    with client_for(user_a) as c:
        posts = c.get(f"/community-posts/user/{user_a.id}").json()
        assert posts["items"][0]["is_liked"] is False


# -----------------------------
# Follows
# -----------------------------
def test_follow_toggle_and_listings(client_for, users, db_session):
    user_a, user_b = users

    with client_for(user_b) as c:
        assert c.post(f"/follows/{user_a.id}/toggle").json() == {"is_followed": True}

        followers = c.get(f"/follows/{user_a.id}/followers").json()
        assert followers["total"] == 1
        assert followers["items"][0]["username"] == "bob"

        following = c.get(f"/follows/{user_b.id}/following").json()
        assert [u["username"] for u in following["items"]] == ["alice"]

        profile = c.get("/users/profile/alice").json()
        assert profile["followers_count"] == 1
        assert profile["is_followed_by_me"] is True

        assert c.post(f"/follows/{user_a.id}/toggle").json() == {"is_followed": False}

    assert db_session.query(Follow).count() == 0


def test_cannot_follow_yourself(client, users):
    user_a, _ = users
    res = client.post(f"/follows/{user_a.id}/toggle")
    assert res.status_code == 400
    assert res.json()["message"] == "You cannot follow yourself"


def test_cannot_follow_unknown_or_unverified_user(client, make_user):
    pending = make_user(username="pending", email="pending@example.com", verified=False)
    assert client.post("/follows/999/toggle").status_code == 404
    assert client.post(f"/follows/{pending.id}/toggle").status_code == 404


# -----------------------------
# Comments
# -----------------------------
def test_video_comments_add_and_list(client_for, users, make_video):
    user_a, user_b = users
    video = make_video(user_a)

    with client_for(user_b) as c:
        res = c.post(f"/comments/video/{video.id}", json={"content": "  great  "})
        assert res.status_code == 201
        body = res.json()
        assert body["content"] == "great"
        assert body["video_id"] == video.id
        assert body["community_post_id"] is None

        listing = c.get(f"/comments/video/{video.id}").json()
        assert listing["total"] == 1
        assert listing["items"][0]["owner"]["username"] == "bob"


def test_comment_on_unpublished_video_cannot_be_liked_by_others(client_for, users, make_video, db_session):
    user_a, user_b = users
    video = make_video(user_a, published=False)
    comment = Comment(owner_id=user_a.id, video_id=video.id, content="draft note")
    db_session.add(comment)
    db_session.commit()

    with client_for(user_b) as c:
        res = c.post(f"/likes/comment/{comment.id}")
        assert res.status_code == 404
        assert res.json()["message"] == "Video not found"
    assert db_session.query(Like).count() == 0

    with client_for(user_a) as c:
        assert c.post(f"/likes/comment/{comment.id}").json() == {"is_liked": True}


def test_blank_comment_is_rejected(client, users, make_video):
    user_a, _ = users
    video = make_video(user_a)
    res = client.post(f"/comments/video/{video.id}", json={"content": "   "})
    assert res.status_code == 422


def test_comment_on_missing_post_is_404(client):
    res = client.post("/comments/post/999", json={"content": "hi"})
    assert res.status_code == 404
    assert res.json()["message"] == "Community post not found"


def test_deleting_comment_removes_its_likes(client_for, users, make_video, db_session):
    user_a, user_b = users
    video = make_video(user_a)
    comment = Comment(owner_id=user_b.id, video_id=video.id, content="mine")
    db_session.add(comment)
    db_session.commit()
    db_session.add(Like(liked_by_id=user_a.id, comment_id=comment.id))
    db_session.commit()

    with client_for(user_b) as c:
        assert c.delete(f"/comments/{comment.id}").status_code == 200

    assert db_session.query(Comment).count() == 0
    assert db_session.query(Like).count() == 0


# -----------------------------
# Community posts
# -----------------------------
def test_create_and_list_posts(client, users):
    user_a, _ = users
    res = client.post("/community-posts", json={"content": "launch day"})
    assert res.status_code == 201
    assert res.json()["owner_id"] == user_a.id

    listing = client.get(f"/community-posts/user/{user_a.id}").json()
    assert listing["total"] == 1
    assert listing["items"][0]["content"] == "launch day"
    assert listing["items"][0]["owner"]["username"] == "alice"


def test_posts_for_unknown_user_is_404(client):
    res = client.get("/community-posts/user/999")
    assert res.status_code == 404
    assert res.json()["message"] == "User not found"


def test_deleting_post_cleans_up_comments_and_likes(client_for, users, db_session):
    user_a, user_b = users
    post = CommunityPost(owner_id=user_a.id, content="bye")
    db_session.add(post)
    db_session.commit()
    comment = Comment(owner_id=user_b.id, community_post_id=post.id, content="c")
    db_session.add(comment)
    db_session.commit()
    db_session.add_all(
        [
            Like(liked_by_id=user_b.id, community_post_id=post.id),
            Like(liked_by_id=user_b.id, comment_id=comment.id),
        ]
    )
    db_session.commit()

    with client_for(user_a) as c:
        assert c.delete(f"/community-posts/{post.id}").status_code == 200

    assert db_session.query(CommunityPost).count() == 0
    assert db_session.query(Comment).count() == 0
    assert db_session.query(Like).count() == 0
