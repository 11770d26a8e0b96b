from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint, func

from radiocalico.database import Base

THUMBS_UP = 1
THUMBS_DOWN = -1


class Rating(Base):
    __tablename__ = "ratings"
    __table_args__ = (
        # One rating per user per (title, artist); the upsert targets this
        UniqueConstraint("user_id", "song_title", "song_artist", name="uq_ratings_user_song"),
        CheckConstraint("rating IN (-1, 1)", name="ck_ratings_rating_sign"),
        Index("ix_ratings_song", "song_title", "song_artist"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Songs are keyed by their literal title/artist, not by songs.id
    song_title = Column(String, nullable=False)
    song_artist = Column(String, nullable=False)

    rating = Column(Integer, nullable=False)

    # Rewritten on every resubmission
    submitted_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
