"""Reset the catalog to the sample songs and playlists (ownerless, so public)."""
import asyncio

from sqlalchemy import delete

from radiocalico.database import AsyncSessionLocal, engine, init_models
from radiocalico.logger import database_logger, setup_logging
from radiocalico.models.playlist_model import Playlist, PlaylistSong
from radiocalico.models.song_model import Song

SAMPLE_SONGS = [
    {"title": "Bohemian Rhapsody", "artist": "Queen", "album": "A Night at the Opera", "duration": 354},
    {"title": "Hotel California", "artist": "Eagles", "album": "Hotel California", "duration": 391},
    {"title": "Imagine", "artist": "John Lennon", "album": "Imagine", "duration": 183},
    {"title": "Billie Jean", "artist": "Michael Jackson", "album": "Thriller", "duration": 294},
    {"title": "Sweet Child O' Mine", "artist": "Guns N' Roses", "album": "Appetite for Destruction", "duration": 356},
]

SAMPLE_PLAYLISTS = [
    {"name": "Classic Rock Hits", "description": "The best classic rock songs of all time"},
    {"name": "Road Trip Mix", "description": "Perfect songs for a long drive"},
    {"name": "Chill Vibes", "description": "Relaxing music for any time of day"},
]


async def seed_catalog(session) -> None:
    # Ratings are keyed by title/artist and survive a reseed
    await session.execute(delete(PlaylistSong))
    await session.execute(delete(Song))
    await session.execute(delete(Playlist))

    session.add_all(Song(**song) for song in SAMPLE_SONGS)
    session.add_all(Playlist(**playlist) for playlist in SAMPLE_PLAYLISTS)
    await session.commit()


async def _run() -> None:
    await init_models()
    async with AsyncSessionLocal() as session:
        await seed_catalog(session)
    await engine.dispose()

    database_logger.info("Added %d sample songs", len(SAMPLE_SONGS))
    database_logger.info("Added %d sample playlists", len(SAMPLE_PLAYLISTS))


def main():
    setup_logging()
    asyncio.run(_run())


if __name__ == "__main__":
    main()
