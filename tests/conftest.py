import random

import pytest

from game.torchchase.config import ChaseConfig
from game.torchchase.scene import AudioSink, RetainedScene
from game.torchchase.session import GameSession


class RecordingAudio(AudioSink):
    def __init__(self):
        self.chimes = []

    def play_upgrade_chime(self, scale: float) -> None:
        self.chimes.append(scale)


@pytest.fixture
def config() -> ChaseConfig:
    return ChaseConfig()


@pytest.fixture
def scene() -> RetainedScene:
    return RetainedScene(random.Random(0))


@pytest.fixture
def audio() -> RecordingAudio:
    return RecordingAudio()


@pytest.fixture
def session(scene, audio, config) -> GameSession:
    game = GameSession(scene=scene, audio=audio, config=config, rng=random.Random(1234))
    game.start()
    return game


@pytest.fixture
def empty_session(session) -> GameSession:
    """A started session with no collectables, so tests place their own"""
    session.registry.clear_all()
    return session


@pytest.fixture
def at_cursor():
    """Move an entity onto the session's current interaction point"""

    def _place(game: GameSession, entity):
        x, y = game.interaction_point()
        game.registry.move(entity, x, y)
        return entity

    return _place
